"""
Animation clips and the evaluator that poses a rig.

Provides classes for storing and evaluating keyframe animation:
- KeyframeTrack: Position/rotation keys for a single scene node
- AnimationClip: Named set of tracks with a length and frame rate
- AnimatorState: Controller state playing a clip
- KeyframeAnimator: AnimationEvaluator that writes sampled poses into the scene
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Protocol

import numpy as np
from scipy.spatial.transform import Rotation, Slerp

from bvhdump.data.scene import SceneNode
from bvhdump.utils.math_utils import lerp

logger = logging.getLogger(__name__)


class UpdateMode(Enum):
    """Clock driving the animator."""
    NORMAL = "normal"
    ANIMATE_PHYSICS = "animate_physics"
    UNSCALED_TIME = "unscaled_time"


class CullingMode(Enum):
    """What the animator does while its renderers are invisible."""
    ALWAYS_ANIMATE = "always_animate"
    CULL_UPDATE_TRANSFORMS = "cull_update_transforms"
    CULL_COMPLETELY = "cull_completely"


class AnimationEvaluator(Protocol):
    """Engine-side animation player consumed by the exporter."""

    speed: float
    update_mode: UpdateMode
    apply_root_motion: bool
    culling_mode: CullingMode

    def has_clip(self, name: str) -> bool:
        ...

    def clip_length(self, name: str) -> float:
        ...

    def clip_frame_rate(self, name: str) -> float:
        ...

    def advance_to(self, clip: str, time: float) -> None:
        ...


@dataclass
class KeyframeTrack:
    """
    Keys for one scene node.

    Attributes:
        path: Node path relative to the animated target ("" = target itself)
        times: Key times in seconds, strictly increasing
        positions: Local positions per key (Nx3), optional
        rotations: Local rotations per key as (x, y, z, w) quaternions (Nx4), optional
    """
    path: str
    times: np.ndarray
    positions: Optional[np.ndarray] = None
    rotations: Optional[np.ndarray] = None

    def __post_init__(self):
        self.times = np.asarray(self.times, dtype=float).reshape(-1)
        if len(self.times) == 0:
            raise ValueError(f"Track {self.path!r} has no keys")
        if np.any(np.diff(self.times) <= 0):
            raise ValueError(f"Track {self.path!r} key times must be strictly increasing")
        if self.positions is not None:
            self.positions = np.asarray(self.positions, dtype=float).reshape(-1, 3)
            self._check_length("positions", self.positions)
        if self.rotations is not None:
            self.rotations = np.asarray(self.rotations, dtype=float).reshape(-1, 4)
            self._check_length("rotations", self.rotations)
        self._slerp = None
        if self.rotations is not None and len(self.times) > 1:
            self._slerp = Slerp(self.times, Rotation.from_quat(self.rotations))

    def _check_length(self, name: str, values: np.ndarray):
        if len(values) != len(self.times):
            raise ValueError(
                f"Track {self.path!r} has {len(values)} {name} for {len(self.times)} keys"
            )

    @property
    def num_keys(self) -> int:
        return len(self.times)

    def _clamp(self, time: float) -> float:
        return float(np.clip(time, self.times[0], self.times[-1]))

    def position_at(self, time: float) -> Optional[np.ndarray]:
        """Get interpolated local position at a time (clamped to the key range)."""
        if self.positions is None:
            return None
        time = self._clamp(time)
        index = int(np.searchsorted(self.times, time, side="right")) - 1
        if index >= self.num_keys - 1:
            return self.positions[-1].copy()
        span = self.times[index + 1] - self.times[index]
        fraction = (time - self.times[index]) / span
        return lerp(self.positions[index], self.positions[index + 1], fraction)

    def rotation_at(self, time: float) -> Optional[Rotation]:
        """Get interpolated local rotation at a time (clamped to the key range)."""
        if self.rotations is None:
            return None
        if self._slerp is None:
            return Rotation.from_quat(self.rotations[0])
        return self._slerp([self._clamp(time)])[0]


@dataclass
class AnimationClip:
    """A named animation with a fixed length and sampling rate."""
    name: str
    length: float
    frame_rate: float = 30.0
    tracks: List[KeyframeTrack] = field(default_factory=list)

    @property
    def num_frames(self) -> int:
        """Number of whole frames the clip bakes to."""
        return int(round(self.length * self.frame_rate))


@dataclass
class AnimatorState:
    """A controller state and the clip (motion) it plays."""
    name: str
    clip: Optional[str] = None


class KeyframeAnimator:
    """
    Evaluates keyframe clips onto a scene hierarchy.

    Tracks are bound to nodes below the target by relative path. A track
    bound to the target itself carries root motion and is only applied
    while apply_root_motion is enabled.
    """

    def __init__(
        self,
        target: SceneNode,
        clips: Optional[List[AnimationClip]] = None,
        states: Optional[List[AnimatorState]] = None,
    ):
        self.target = target
        self.clips: Dict[str, AnimationClip] = {c.name: c for c in (clips or [])}
        self.states: List[AnimatorState] = list(states or [])

        # Playback configuration
        self.speed = 1.0
        self.update_mode = UpdateMode.NORMAL
        self.apply_root_motion = False
        self.culling_mode = CullingMode.CULL_UPDATE_TRANSFORMS

    def add_clip(self, clip: AnimationClip, state_name: Optional[str] = None):
        """Register a clip, optionally with a state that plays it."""
        self.clips[clip.name] = clip
        if state_name is not None:
            self.states.append(AnimatorState(state_name, clip.name))

    def has_clip(self, name: str) -> bool:
        return name in self.clips

    def _clip(self, name: str) -> AnimationClip:
        clip = self.clips.get(name)
        if clip is None:
            raise KeyError(f"No animation clip named {name!r}")
        return clip

    def clip_length(self, name: str) -> float:
        return self._clip(name).length

    def clip_frame_rate(self, name: str) -> float:
        return self._clip(name).frame_rate

    def state_names(self) -> List[str]:
        """Names of states that play a clip, in declaration order."""
        return [s.name for s in self.states if s.clip is not None]

    def clip_names(self) -> List[str]:
        """Names of clips owned by a state, in state order, without duplicates."""
        names: List[str] = []
        for state in self.states:
            if state.clip is not None and state.clip not in names:
                names.append(state.clip)
        return names

    def state_for_clip(self, clip: str) -> Optional[str]:
        """Name of the state playing a clip (the last one wins, like a dict rebuild)."""
        owner = None
        for state in self.states:
            if state.clip == clip:
                owner = state.name
        return owner

    def advance_to(self, clip: str, time: float) -> None:
        """
        Pose the rig at a time within a clip.

        Args:
            clip: Clip name
            time: Time in seconds from the start of the clip
        """
        animation = self._clip(clip)

        for track in animation.tracks:
            node = self.target.find(track.path) if track.path else self.target
            if node is None:
                logger.debug(f"Track {track.path!r} is not bound to any node, skipping")
                continue
            if node is self.target and not self.apply_root_motion:
                continue

            position = track.position_at(time)
            if position is not None:
                node.local_position = position
            rotation = track.rotation_at(time)
            if rotation is not None:
                node.local_rotation = rotation
