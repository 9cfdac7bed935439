"""
Bone tree construction from a scene hierarchy.

Walks the scene below the export root, keeps the nodes the classifier
reports as joints or end sites, and records each bone's bind pose so that
later rotations can be expressed relative to it.
"""

import logging
from enum import Enum, auto
from typing import Iterator, List, Optional

import numpy as np
from scipy.spatial.transform import Rotation

from bvhdump.core.classifier import ARMATURE_NAME, BoneClassifier, BoneRole
from bvhdump.core.errors import (
    AmbiguousRoot,
    MisplacedEndSite,
    MissingDefaultRoot,
    RootNotDescendant,
    UnterminatedBranch,
)
from bvhdump.data.scene import SceneNode
from bvhdump.data.skeleton import HumanBone

logger = logging.getLogger(__name__)


class BoneKind(Enum):
    """Role of a bone in the exported hierarchy."""
    ROOT = auto()
    JOINT = auto()
    END_SITE = auto()


class Bone:
    """
    A node of the exported skeleton.

    Attributes:
        node: Scene node the bone reads its pose from (not owned)
        kind: ROOT, JOINT or END_SITE
        human_bone: Canonical humanoid role, if any
        parent: Parent bone (None for the root)
        children: Child bones in output order
        anchor: Bookkeeping bone supplying the root's reference frame
        base_position: Bind position relative to the reference frame
        base_rotation: Bind rotation relative to the reference frame
        bind_offset: Bind-time world vector from the reference frame to the node
    """

    def __init__(
        self,
        node: Optional[SceneNode],
        kind: BoneKind = BoneKind.JOINT,
        human_bone: Optional[HumanBone] = None,
    ):
        self.node = node
        self.kind = kind
        self.human_bone = human_bone
        self.parent: Optional["Bone"] = None
        self.children: List["Bone"] = []
        self.anchor: Optional["Bone"] = None

        self.base_position = np.zeros(3)
        self.base_rotation = Rotation.identity()
        self.bind_offset = np.zeros(3)
        self._bind_captured = False

    def __repr__(self) -> str:
        return f"Bone({self.name!r}, {self.kind.name})"

    @property
    def name(self) -> str:
        return self.node.name if self.node is not None else ""

    @property
    def is_root(self) -> bool:
        return self.kind is BoneKind.ROOT

    @property
    def is_end_site(self) -> bool:
        return self.kind is BoneKind.END_SITE

    @property
    def channel_count(self) -> int:
        """Number of BVH channels this bone contributes per frame."""
        if self.kind is BoneKind.ROOT:
            return 6
        if self.kind is BoneKind.JOINT:
            return 3
        return 0

    @property
    def reference(self) -> Optional["Bone"]:
        """Bone whose frame this bone's pose is expressed in."""
        return self.parent if self.parent is not None else self.anchor

    @property
    def world_position(self) -> np.ndarray:
        return self.node.position if self.node is not None else np.zeros(3)

    @property
    def world_rotation(self) -> Rotation:
        return self.node.rotation if self.node is not None else Rotation.identity()

    @property
    def local_rotation(self) -> Rotation:
        """
        Current rotation relative to the reference frame and the bind pose.

        inverse(base) * inverse(reference_world) * world, so a bone at its
        bind pose reports identity whatever the scene-graph parenting.
        """
        reference = self.reference
        current = self.world_rotation
        if reference is None:
            return self.base_rotation.inv() * current
        return self.base_rotation.inv() * reference.world_rotation.inv() * current

    def add_child(self, child: "Bone") -> "Bone":
        """
        Attach a child bone.

        Raises:
            MisplacedEndSite: If an end site would join existing children, or the
                parent is itself an end site
        """
        if self.is_end_site:
            raise MisplacedEndSite(f"End site {self.name!r} cannot have children")
        if child.is_end_site and self.children:
            raise MisplacedEndSite(
                f"End site {child.name!r} must come before the other children of {self.name!r}"
            )
        child.parent = self
        self.children.append(child)
        return child

    def capture_bind_pose(self):
        """Record bind pose for this bone and its descendants (once)."""
        if not self._bind_captured:
            reference = self.reference
            position = self.world_position
            rotation = self.world_rotation

            if reference is None:
                self.base_rotation = rotation
                self.base_position = position
                self.bind_offset = np.zeros(3)
            else:
                offset = position - reference.world_position
                self.base_rotation = reference.world_rotation.inv() * rotation
                self.base_position = self.base_rotation.inv().apply(offset)
                self.bind_offset = offset
            self._bind_captured = True

        for child in self.children:
            child.capture_bind_pose()

    def iter_preorder(self) -> Iterator["Bone"]:
        yield self
        for child in self.children:
            yield from child.iter_preorder()

    @property
    def joint_count(self) -> int:
        """Number of non-root, non-end bones in this subtree."""
        return sum(1 for b in self.iter_preorder() if b.kind is BoneKind.JOINT)

    @property
    def end_site_count(self) -> int:
        return sum(1 for b in self.iter_preorder() if b.is_end_site)

    @property
    def channel_total(self) -> int:
        """Number of values in one motion row for this subtree."""
        return sum(b.channel_count for b in self.iter_preorder())


def resolve_export_root(target: SceneNode, root: Optional[SceneNode] = None) -> SceneNode:
    """
    Pick the scene node the hierarchy is built from.

    Args:
        target: Export target owning the rig
        root: Explicitly chosen root, or None for the target's "Armature" child

    Raises:
        MissingDefaultRoot: No root chosen and no "Armature" child exists
        RootNotDescendant: The chosen root is not under the target
    """
    if root is None:
        default = target.find(ARMATURE_NAME)
        if default is None:
            raise MissingDefaultRoot(f"No default root node: {ARMATURE_NAME}")
        return default
    if not root.is_descendant_of(target):
        raise RootNotDescendant(f"Root transform {root.path!r} is not a descendant of {target.path!r}")
    return root


class HierarchyBuilder:
    """
    Builds the bone tree below an export root.

    Nodes that are neither joints nor end sites are passed through, so
    decorative intermediate nodes do not break the chain.
    """

    def __init__(self, classifier: BoneClassifier):
        self.classifier = classifier

    def build(self, root: SceneNode) -> Bone:
        """
        Build the skeleton below a root node.

        Args:
            root: Export root (a joint, or an ancestor of exactly one joint chain)

        Returns:
            Root bone of the tree, bind pose captured

        Raises:
            AmbiguousRoot: Not exactly one top-level joint was found
            MisplacedEndSite: An end site shares its parent with other bones
            UnterminatedBranch: Some joints have no child joint or end site
        """
        classification = self.classifier.classify(root)
        if classification.role is BoneRole.INACTIVE:
            raise AmbiguousRoot(f"Root transform {root.path!r} is inactive")
        root_is_joint = classification.is_joint

        # The anchor only supplies a reference frame for the real root.
        if root_is_joint:
            anchor = Bone(root.parent)
            self._traverse(anchor, root)
        else:
            anchor = Bone(root)
            self._traverse_children(anchor, root)

        if len(anchor.children) != 1 or anchor.children[0].is_end_site:
            names = ", ".join(repr(c.name) for c in anchor.children) or "none"
            raise AmbiguousRoot(
                f"Expected exactly one top-level joint below {root.path!r}, found {names}"
            )

        if self.classifier.dump_root_motion and not root_is_joint:
            # The non-joint root itself carries the global displacement.
            top = anchor
        else:
            top = anchor.children[0]
            anchor.children.clear()
            top.parent = None
            top.anchor = anchor
        top.kind = BoneKind.ROOT

        top.capture_bind_pose()
        self._check_terminated(top)

        logger.debug(
            f"Built hierarchy from {top.name!r}: {top.joint_count} joints, "
            f"{top.end_site_count} end sites"
        )
        return top

    def _traverse(self, parent: Bone, node: SceneNode):
        classification = self.classifier.classify(node, parent.name if parent.node is not None else None)
        role = classification.role

        if role is BoneRole.INACTIVE:
            return
        if role is BoneRole.JOINT:
            bone = parent.add_child(Bone(node, BoneKind.JOINT, classification.bone))
            self._traverse_children(bone, node)
        elif role is BoneRole.END_SITE:
            parent.add_child(Bone(node, BoneKind.END_SITE))
        else:
            self._traverse_children(parent, node)

    def _traverse_children(self, parent: Bone, node: SceneNode):
        for child in node.children:
            self._traverse(parent, child)

    def _check_terminated(self, root: Bone):
        unterminated = [
            bone.name
            for bone in root.iter_preorder()
            if not bone.is_end_site and not bone.children
        ]
        for name in unterminated:
            logger.error(f'Bone "{name}" is not terminated by "{name}_end".')
        if unterminated:
            raise UnterminatedBranch(unterminated)
