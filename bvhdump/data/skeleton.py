"""
Humanoid skeleton definitions.

Provides:
- HumanBone: the closed set of canonical humanoid joint roles
- SkeletonSource: read-only query interface used to classify scene nodes
- HumanoidAvatar: SkeletonSource backed by an explicit bone -> node map
"""

from enum import Enum
from typing import Dict, Mapping, Optional, Protocol

from bvhdump.data.scene import SceneNode


class HumanBone(Enum):
    """Canonical humanoid bone roles, in the engine's declaration order."""
    Hips = 0
    LeftUpperLeg = 1
    RightUpperLeg = 2
    LeftLowerLeg = 3
    RightLowerLeg = 4
    LeftFoot = 5
    RightFoot = 6
    Spine = 7
    Chest = 8
    Neck = 9
    Head = 10
    LeftShoulder = 11
    RightShoulder = 12
    LeftUpperArm = 13
    RightUpperArm = 14
    LeftLowerArm = 15
    RightLowerArm = 16
    LeftHand = 17
    RightHand = 18
    LeftToes = 19
    RightToes = 20
    LeftEye = 21
    RightEye = 22
    Jaw = 23
    LeftThumbProximal = 24
    LeftThumbIntermediate = 25
    LeftThumbDistal = 26
    LeftIndexProximal = 27
    LeftIndexIntermediate = 28
    LeftIndexDistal = 29
    LeftMiddleProximal = 30
    LeftMiddleIntermediate = 31
    LeftMiddleDistal = 32
    LeftRingProximal = 33
    LeftRingIntermediate = 34
    LeftRingDistal = 35
    LeftLittleProximal = 36
    LeftLittleIntermediate = 37
    LeftLittleDistal = 38
    RightThumbProximal = 39
    RightThumbIntermediate = 40
    RightThumbDistal = 41
    RightIndexProximal = 42
    RightIndexIntermediate = 43
    RightIndexDistal = 44
    RightMiddleProximal = 45
    RightMiddleIntermediate = 46
    RightMiddleDistal = 47
    RightRingProximal = 48
    RightRingIntermediate = 49
    RightRingDistal = 50
    RightLittleProximal = 51
    RightLittleIntermediate = 52
    RightLittleDistal = 53
    UpperChest = 54


class SkeletonSource(Protocol):
    """Read-only view of which scene nodes are canonical humanoid bones."""

    @property
    def is_human(self) -> bool:
        ...

    def canonical_bone(self, node: SceneNode) -> Optional[HumanBone]:
        ...

    def bone_node(self, bone: HumanBone) -> Optional[SceneNode]:
        ...


class HumanoidAvatar:
    """
    Maps canonical humanoid bones to scene nodes.

    Each bone maps to at most one node and each node to at most one bone.
    """

    def __init__(self, bones: Optional[Mapping[HumanBone, SceneNode]] = None):
        self._nodes: Dict[HumanBone, SceneNode] = {}
        self._bones: Dict[int, HumanBone] = {}
        for bone, node in (bones or {}).items():
            self.assign(bone, node)

    def assign(self, bone: HumanBone, node: SceneNode):
        """
        Map a bone role to a scene node.

        Raises:
            ValueError: If the node already carries another role
        """
        owner = self._bones.get(id(node))
        if owner is not None and owner is not bone:
            raise ValueError(f"Node {node.path!r} is already mapped to {owner.name}")
        previous = self._nodes.get(bone)
        if previous is not None:
            del self._bones[id(previous)]
        self._nodes[bone] = node
        self._bones[id(node)] = bone

    @property
    def is_human(self) -> bool:
        return HumanBone.Hips in self._nodes

    @property
    def bones(self) -> Dict[HumanBone, SceneNode]:
        """Get copy of the bone -> node map."""
        return dict(self._nodes)

    def canonical_bone(self, node: SceneNode) -> Optional[HumanBone]:
        return self._bones.get(id(node))

    def bone_node(self, bone: HumanBone) -> Optional[SceneNode]:
        return self._nodes.get(bone)
