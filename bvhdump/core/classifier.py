"""
Classification of scene nodes into skeleton roles.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from bvhdump.data.scene import SceneNode
from bvhdump.data.skeleton import HumanBone, SkeletonSource

# Conventional name of the rig's top node, also used as a synthetic root
# when root motion is exported.
ARMATURE_NAME = "Armature"
END_SITE_SUFFIX = "_end"


class BoneRole(Enum):
    """What a scene node contributes to the exported skeleton."""
    JOINT = auto()
    END_SITE = auto()
    SKIP = auto()  # Pass through, look for joints further down
    INACTIVE = auto()  # Ignore the node and its whole subtree


@dataclass(frozen=True)
class Classification:
    role: BoneRole
    bone: Optional[HumanBone] = None

    @property
    def is_joint(self) -> bool:
        return self.role is BoneRole.JOINT


SKIP = Classification(BoneRole.SKIP)
INACTIVE = Classification(BoneRole.INACTIVE)
END_SITE = Classification(BoneRole.END_SITE)


def is_end_site_name(name: str, parent_name: str) -> bool:
    """True if name is "<parent_name>_end", ignoring case."""
    return name.lower() == parent_name.lower() + END_SITE_SUFFIX


class BoneClassifier:
    """
    Decides whether a scene node is a joint, an end site or neither.

    Args:
        skeleton: Source of canonical humanoid bones
        target: Export target (owner of the rig)
        dump_root_motion: Treat an "Armature" node under the target as a joint
    """

    def __init__(self, skeleton: SkeletonSource, target: SceneNode, dump_root_motion: bool = False):
        self.skeleton = skeleton
        self.target = target
        self.dump_root_motion = dump_root_motion

    def is_joint(self, node: SceneNode) -> bool:
        return self.classify(node).is_joint

    def classify(self, node: SceneNode, parent_name: Optional[str] = None) -> Classification:
        """
        Classify a node.

        Args:
            node: Scene node to classify
            parent_name: Name of the joint the node would attach to, used
                for the "<parent>_end" end-site convention

        Returns:
            Classification of the node
        """
        if not node.active:
            return INACTIVE

        bone = self.skeleton.canonical_bone(node)
        if bone is not None:
            return Classification(BoneRole.JOINT, bone)

        if (
            self.dump_root_motion
            and node.name == ARMATURE_NAME
            and node.is_descendant_of(self.target)
        ):
            return Classification(BoneRole.JOINT)

        if parent_name is not None and is_end_site_name(node.name, parent_name):
            return END_SITE

        return SKIP
