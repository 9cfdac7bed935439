"""
Per-frame pose sampling into BVH channel rows.
"""

import logging
from typing import Iterator, List, Optional

from bvhdump.core.coordinates import CoordinateConverter
from bvhdump.core.hierarchy import Bone, BoneKind
from bvhdump.data.animation import AnimationEvaluator

logger = logging.getLogger(__name__)


def frame_count(clip_length: float, frame_rate: float) -> int:
    """Number of frames baked from a clip (round half to even)."""
    return int(round(clip_length * frame_rate))


def frame_time(frame_rate: float) -> float:
    """Seconds between two frames."""
    return 1.0 / frame_rate


class PoseSampler:
    """
    Reads the current pose of a bone tree into channel values.

    The bind pose of the root is captured on construction and used as
    the baseline for root motion.

    Args:
        root: Root bone (bind pose already captured)
        converter: Coordinate conversion applied to every value
        dump_root_motion: Emit the root's global displacement/rotation
            relative to its bind pose instead of its local transform
    """

    def __init__(
        self,
        root: Bone,
        converter: Optional[CoordinateConverter] = None,
        dump_root_motion: bool = False,
    ):
        self.root = root
        self.converter = converter or CoordinateConverter()
        self.dump_root_motion = dump_root_motion

        self.base_root_position = root.world_position
        self.base_root_rotation = root.world_rotation

    @property
    def channel_count(self) -> int:
        return self.root.channel_total

    def sample(self) -> List[float]:
        """
        Sample the current pose.

        Returns:
            Channel values in pre-order: root position (X, Y, Z) and
            rotation (Y, X, Z), then rotation (Y, X, Z) for every joint
        """
        values: List[float] = []
        for bone in self.root.iter_preorder():
            if bone.kind is BoneKind.ROOT:
                values.extend(self._root_channels(bone))
            elif bone.kind is BoneKind.JOINT:
                values.extend(self.converter.rotation_channels(bone.local_rotation))
        return values

    def _root_channels(self, bone: Bone) -> List[float]:
        if self.dump_root_motion:
            position = bone.world_position - self.base_root_position
            rotation = bone.world_rotation * self.base_root_rotation.inv()
        else:
            reference = bone.reference
            origin = reference.world_position if reference is not None else bone.base_position
            position = bone.world_position - origin
            rotation = bone.local_rotation
        return (
            self.converter.position_channels(position)
            + self.converter.rotation_channels(rotation)
        )

    def frames(
        self,
        animator: AnimationEvaluator,
        clip: str,
        num_frames: int,
        frame_rate: float,
    ) -> Iterator[List[float]]:
        """
        Drive the animator through a clip, yielding one row per frame.

        The animator mutates the scene; callers are expected to hold a
        TransformStateGuard around the iteration.
        """
        for index in range(num_frames):
            animator.advance_to(clip, index / frame_rate)
            yield self.sample()
        logger.debug(f"Sampled {num_frames} frames of {clip!r}")
