"""
Loading of rig documents.

A rig document (YAML, or JSON since YAML parses it) describes the scene
hierarchy, the export target, the humanoid bone mapping and the
animation clips:

    target: Character
    scene:
      - name: Character
        children:
          - name: Armature
            children:
              - name: Hips
                position: [0.0, 1.0, 0.0]
                euler: [0.0, 90.0, 0.0]
    humanoid:
      Hips: Armature/Hips
    animation:
      states:
        - {name: Walk, clip: walk}
      clips:
        - name: walk
          length: 1.0
          frame_rate: 30
          tracks:
            - path: Armature/Hips
              times: [0.0, 1.0]
              positions: [[0, 1, 0], [0, 1, 2]]
              rotations: [[0, 0, 0, 1], [0, 0.7071068, 0, 0.7071068]]

Node rotations are given either as a quaternion ("rotation", x y z w)
or as engine Euler angles in degrees ("euler"); tracks likewise use
"rotations" or "eulers".
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import yaml

from bvhdump.core.errors import RigFormatError
from bvhdump.data.animation import AnimationClip, AnimatorState, KeyframeAnimator, KeyframeTrack
from bvhdump.data.scene import Scene, SceneNode
from bvhdump.data.skeleton import HumanBone, HumanoidAvatar
from bvhdump.utils.math_utils import euler_to_quaternion

logger = logging.getLogger(__name__)


@dataclass
class Rig:
    """
    An export target with its rig capabilities.

    Attributes:
        scene: Scene containing the target
        target: Node owning the rig (animator and avatar)
        avatar: Humanoid bone mapping, None if the rig is not humanoid
        animator: Animation evaluator, None if the target is not animated
    """
    scene: Scene
    target: SceneNode
    avatar: Optional[HumanoidAvatar] = None
    animator: Optional[KeyframeAnimator] = None

    @property
    def name(self) -> str:
        return self.target.name


def _node_rotation(data: Dict[str, Any]) -> Optional[np.ndarray]:
    if "rotation" in data and "euler" in data:
        raise RigFormatError(f"Node {data.get('name')!r} has both rotation and euler")
    if "rotation" in data:
        return np.asarray(data["rotation"], dtype=float)
    if "euler" in data:
        return euler_to_quaternion(data["euler"])
    return None


def _build_node(data: Dict[str, Any]) -> SceneNode:
    if not isinstance(data, dict) or "name" not in data:
        raise RigFormatError(f"Scene node must be a mapping with a name, got {data!r}")

    node = SceneNode(
        name=str(data["name"]),
        local_position=data.get("position"),
        local_rotation=_node_rotation(data),
        active=bool(data.get("active", True)),
    )
    for child in data.get("children") or []:
        node.add_child(_build_node(child))
    return node


def _build_avatar(target: SceneNode, data: Dict[str, str]) -> HumanoidAvatar:
    avatar = HumanoidAvatar()
    for bone_name, path in data.items():
        try:
            bone = HumanBone[bone_name]
        except KeyError:
            raise RigFormatError(f"Unknown humanoid bone: {bone_name}") from None
        node = target.find(path)
        if node is None:
            raise RigFormatError(f"Humanoid bone {bone_name} maps to missing node {path!r}")
        avatar.assign(bone, node)
    return avatar


def _build_track(data: Dict[str, Any]) -> KeyframeTrack:
    if "rotations" in data and "eulers" in data:
        raise RigFormatError(f"Track {data.get('path')!r} has both rotations and eulers")
    rotations = data.get("rotations")
    if "eulers" in data:
        rotations = [euler_to_quaternion(e) for e in data["eulers"]]
    return KeyframeTrack(
        path=str(data.get("path", "")),
        times=data["times"],
        positions=data.get("positions"),
        rotations=rotations,
    )


def _build_clip(data: Dict[str, Any]) -> AnimationClip:
    name = str(data["name"])
    length = float(data["length"])
    frame_rate = float(data.get("frame_rate", 30.0))
    if not frame_rate > 0:
        raise RigFormatError(f"Clip {name!r} must have a positive frame_rate, got {frame_rate}")
    if not length >= 0:
        raise RigFormatError(f"Clip {name!r} must not have a negative length, got {length}")

    return AnimationClip(
        name=name,
        length=length,
        frame_rate=frame_rate,
        tracks=[_build_track(t) for t in data.get("tracks") or []],
    )


def _build_animator(target: SceneNode, data: Dict[str, Any]) -> KeyframeAnimator:
    clips = [_build_clip(c) for c in data.get("clips") or []]
    if "states" in data:
        states = [
            AnimatorState(name=str(s["name"]), clip=s.get("clip"))
            for s in data["states"] or []
        ]
    else:
        states = [AnimatorState(name=c.name, clip=c.name) for c in clips]

    animator = KeyframeAnimator(target, clips, states)
    for state in states:
        if state.clip is not None and not animator.has_clip(state.clip):
            logger.warning(f"State {state.name!r} plays unknown clip {state.clip!r}")
    return animator


def rig_from_dict(data: Dict[str, Any]) -> Rig:
    """
    Build a rig from a parsed document.

    Raises:
        RigFormatError: If the document is malformed
    """
    if not isinstance(data, dict):
        raise RigFormatError("Rig document must be a mapping")

    try:
        scene = Scene([_build_node(n) for n in data.get("scene") or []])
        if not scene.roots:
            raise RigFormatError("Rig document has an empty scene")

        target_path = data.get("target", scene.roots[0].name)
        target = scene.find(str(target_path))
        if target is None:
            raise RigFormatError(f"Target {target_path!r} not found in scene")

        avatar = _build_avatar(target, data["humanoid"]) if data.get("humanoid") else None
        animator = _build_animator(target, data["animation"]) if data.get("animation") else None
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise RigFormatError(f"Malformed rig document: {e}") from e

    return Rig(scene=scene, target=target, avatar=avatar, animator=animator)


def load_rig(path: Path) -> Rig:
    """Load a rig document from a YAML or JSON file."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise RigFormatError(f"Cannot parse {path}: {e}") from e

    rig = rig_from_dict(data)
    logger.info(f"Loaded rig {rig.name!r} from {path}")
    return rig
