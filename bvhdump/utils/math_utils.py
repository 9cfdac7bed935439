"""
Mathematical utilities for rig transforms.

Provides functions for:
- Quaternion storage and conversion ((x, y, z, w) arrays <-> Rotation)
- Euler decomposition in the engine's Z-X-Y composition order
- Vector and quaternion interpolation
"""

from typing import Sequence, Union

import numpy as np
from scipy.spatial.transform import Rotation

QuaternionLike = Union[Rotation, Sequence[float], np.ndarray]

IDENTITY_QUATERNION = np.array([0.0, 0.0, 0.0, 1.0])


def as_quaternion(value: QuaternionLike) -> np.ndarray:
    """
    Convert a rotation to an (x, y, z, w) float array.

    Arrays are copied as-is (not renormalized) so that stored values
    round-trip bit for bit.
    """
    if isinstance(value, Rotation):
        return value.as_quat()
    quat = np.array(value, dtype=float)
    if quat.shape != (4,):
        raise ValueError(f"Quaternion must have 4 components, got shape {quat.shape}")
    return quat


def as_rotation(value: QuaternionLike) -> Rotation:
    """Convert an (x, y, z, w) array (or a Rotation) to a Rotation."""
    if isinstance(value, Rotation):
        return value
    return Rotation.from_quat(np.asarray(value, dtype=float))


def euler_to_quaternion(euler: Sequence[float]) -> np.ndarray:
    """
    Convert engine Euler angles to a quaternion.

    Args:
        euler: Angles in degrees [x, y, z], applied Z first, then X, then Y

    Returns:
        Quaternion [x, y, z, w]
    """
    x, y, z = euler
    return Rotation.from_euler("YXZ", [y, x, z], degrees=True).as_quat()


def wrap_degrees(angles: np.ndarray, signed: bool = False) -> np.ndarray:
    """
    Wrap angles into [0, 360), or (-180, 180] when signed.

    Values that would print as 360 (or -180) after rounding fold back to 0
    (or 180).
    """
    wrapped = np.mod(angles, 360.0)
    wrapped[np.isclose(wrapped, 360.0, rtol=0.0, atol=5e-9)] = 0.0
    if signed:
        wrapped = np.where(wrapped > 180.0, wrapped - 360.0, wrapped)
        wrapped[np.isclose(wrapped, -180.0, rtol=0.0, atol=5e-9)] = 180.0
    # Drop negative zeros
    return wrapped + 0.0


def rotation_to_euler_yxz(rotation: Rotation, signed: bool = False) -> np.ndarray:
    """
    Decompose a rotation into BVH channel angles.

    The engine composes rotations as R = Ry * Rx * Rz, so the intrinsic
    Y-X-Z decomposition yields the channels directly in
    Yrotation Xrotation Zrotation order.

    Args:
        rotation: Rotation to decompose
        signed: Report angles in (-180, 180] instead of [0, 360)

    Returns:
        Angles in degrees [y, x, z]
    """
    return wrap_degrees(rotation.as_euler("YXZ", degrees=True), signed)


def lerp(a: np.ndarray, b: np.ndarray, t: float) -> np.ndarray:
    """Linear interpolation between two vectors."""
    return (1.0 - t) * a + t * b
