"""
Scoped save/restore of scene transforms and animator playback settings.

Sampling drives the live scene through the animator, so everything it
touches is captured first and written back on every exit path.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Tuple

import numpy as np

from bvhdump.core.errors import StateRestoreMismatch
from bvhdump.data.animation import AnimationEvaluator, CullingMode, UpdateMode
from bvhdump.data.scene import SceneNode

logger = logging.getLogger(__name__)

SavedTransform = Tuple[np.ndarray, np.ndarray]


def save_transforms(root: SceneNode) -> Deque[SavedTransform]:
    """
    Record local position and rotation of every node under root, in pre-order.

    Inactive nodes are included.
    """
    saved: Deque[SavedTransform] = deque()
    for node in root.iter_preorder():
        saved.append((node.local_position.copy(), node.local_rotation.copy()))
    return saved


def restore_transforms(root: SceneNode, saved: Deque[SavedTransform]):
    """
    Write saved transforms back in the same pre-order, consuming the queue.

    Raises:
        StateRestoreMismatch: The queue does not hold exactly one record per node
    """
    for node in root.iter_preorder():
        if not saved:
            raise StateRestoreMismatch(
                f"Ran out of saved transforms at {node.path!r}"
            )
        position, rotation = saved.popleft()
        node.local_position = position
        node.local_rotation = rotation
    if saved:
        raise StateRestoreMismatch(f"{len(saved)} saved transforms left after restore")


@dataclass(frozen=True)
class PlaybackSettings:
    """Animator playback configuration touched during sampling."""
    speed: float
    update_mode: UpdateMode
    apply_root_motion: bool
    culling_mode: CullingMode

    @classmethod
    def capture(cls, animator: AnimationEvaluator) -> "PlaybackSettings":
        return cls(
            speed=animator.speed,
            update_mode=animator.update_mode,
            apply_root_motion=animator.apply_root_motion,
            culling_mode=animator.culling_mode,
        )

    def apply(self, animator: AnimationEvaluator):
        animator.speed = self.speed
        animator.update_mode = self.update_mode
        animator.apply_root_motion = self.apply_root_motion
        animator.culling_mode = self.culling_mode


# Unscaled, always-evaluated playback so every requested time is honoured.
SAMPLING_PLAYBACK = PlaybackSettings(
    speed=1.0,
    update_mode=UpdateMode.UNSCALED_TIME,
    apply_root_motion=True,
    culling_mode=CullingMode.ALWAYS_ANIMATE,
)


class TransformStateGuard:
    """
    Context manager preserving the scene and animator around sampling.

    On enter, captures every transform under target and the animator's
    playback settings, then switches the animator to deterministic
    playback. On exit, normal or exceptional, restores both.

    Example:
        with TransformStateGuard(target, animator):
            animator.advance_to("Walk", 0.5)
    """

    def __init__(self, target: SceneNode, animator: Optional[AnimationEvaluator] = None):
        self.target = target
        self.animator = animator
        self._transforms: Optional[Deque[SavedTransform]] = None
        self._playback: Optional[PlaybackSettings] = None

    def __enter__(self) -> "TransformStateGuard":
        self._transforms = save_transforms(self.target)
        if self.animator is not None:
            self._playback = PlaybackSettings.capture(self.animator)
            SAMPLING_PLAYBACK.apply(self.animator)
        logger.debug(f"Saved {len(self._transforms)} transforms under {self.target.path!r}")
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        transforms, self._transforms = self._transforms, None
        playback, self._playback = self._playback, None
        try:
            restore_transforms(self.target, transforms)
        finally:
            if playback is not None:
                playback.apply(self.animator)
        logger.debug(f"Restored transforms under {self.target.path!r}")
        return False
