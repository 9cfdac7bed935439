"""
Scene, skeleton and animation data structures.

Provides:
- Scene graph with world transform derivation
- Humanoid bone mapping
- Keyframe clips and the animator evaluating them
- Rig document loading
"""

from bvhdump.data.animation import (
    AnimationClip,
    AnimationEvaluator,
    AnimatorState,
    CullingMode,
    KeyframeAnimator,
    KeyframeTrack,
    UpdateMode,
)
from bvhdump.data.scene import Scene, SceneNode
from bvhdump.data.skeleton import HumanBone, HumanoidAvatar, SkeletonSource

__all__ = [
    "AnimationClip",
    "AnimationEvaluator",
    "AnimatorState",
    "CullingMode",
    "KeyframeAnimator",
    "KeyframeTrack",
    "UpdateMode",
    "Scene",
    "SceneNode",
    "HumanBone",
    "HumanoidAvatar",
    "SkeletonSource",
]
