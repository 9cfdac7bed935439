"""
Conversion from the engine's left-handed Y-up space to BVH's right-handed one.
"""

from typing import Iterable, List, Sequence

import numpy as np
from scipy.spatial.transform import Rotation

from bvhdump.utils.math_utils import rotation_to_euler_yxz

DECIMALS = 8


def format_value(value: float) -> str:
    """Format a channel or offset value with 8 decimals."""
    # Values that round to zero print without a sign
    return f"{round(float(value), DECIMALS) + 0.0:.{DECIMALS}f}"


def format_values(values: Iterable[float]) -> str:
    return " ".join(format_value(v) for v in values)


class CoordinateConverter:
    """
    Mirrors positions and rotations across the X axis.

    With right_handed disabled every conversion is a passthrough.
    """

    def __init__(self, right_handed: bool = True, signed_angles: bool = False):
        self.right_handed = right_handed
        self.signed_angles = signed_angles

    def position(self, position: Sequence[float]) -> np.ndarray:
        """Convert a position or offset vector."""
        converted = np.array(position, dtype=float)
        if self.right_handed:
            converted[0] = -converted[0]
        return converted

    def rotation(self, rotation: Rotation) -> Rotation:
        """Convert a rotation: mirror (x, y, z, w) to (-x, y, z, w), then invert."""
        if not self.right_handed:
            return rotation
        x, y, z, w = rotation.as_quat()
        return Rotation.from_quat([-x, y, z, w]).inv()

    def euler(self, rotation: Rotation) -> np.ndarray:
        """Converted rotation as [Yrotation, Xrotation, Zrotation] degrees."""
        return rotation_to_euler_yxz(self.rotation(rotation), self.signed_angles)

    def position_channels(self, position: Sequence[float]) -> List[float]:
        return [float(v) for v in self.position(position)]

    def rotation_channels(self, rotation: Rotation) -> List[float]:
        return [float(v) for v in self.euler(rotation)]
