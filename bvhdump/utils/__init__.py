"""Utility modules for bvhdump."""

from bvhdump.utils.math_utils import (
    IDENTITY_QUATERNION,
    as_quaternion,
    as_rotation,
    euler_to_quaternion,
    lerp,
    rotation_to_euler_yxz,
    wrap_degrees,
)

__all__ = [
    "IDENTITY_QUATERNION",
    "as_quaternion",
    "as_rotation",
    "euler_to_quaternion",
    "lerp",
    "rotation_to_euler_yxz",
    "wrap_degrees",
]
