"""
Scene graph data structures.

Provides a minimal transform hierarchy mirroring a game engine scene:
- SceneNode: named transform with local position/rotation and children
- Scene: collection of top-level nodes with path lookup

World transforms are derived from the parent chain (translation and
rotation only, no scale).
"""

from typing import Iterator, List, Optional, Sequence

import numpy as np
from scipy.spatial.transform import Rotation

from bvhdump.utils.math_utils import (
    IDENTITY_QUATERNION,
    QuaternionLike,
    as_quaternion,
    as_rotation,
)

PATH_SEPARATOR = "/"


class SceneNode:
    """
    A single transform in the scene.

    Attributes:
        name: Node name (not required to be unique)
        active: Inactive nodes and their subtrees are ignored by the exporter
        parent: Parent node (None for top-level nodes)
        children: Ordered child nodes
    """

    def __init__(
        self,
        name: str,
        local_position: Optional[Sequence[float]] = None,
        local_rotation: Optional[QuaternionLike] = None,
        active: bool = True,
    ):
        self.name = name
        self.active = active
        self.parent: Optional["SceneNode"] = None
        self.children: List["SceneNode"] = []
        self.local_position = np.zeros(3) if local_position is None else local_position
        self.local_rotation = IDENTITY_QUATERNION if local_rotation is None else local_rotation

    def __repr__(self) -> str:
        return f"SceneNode({self.path!r})"

    @property
    def local_position(self) -> np.ndarray:
        return self._local_position

    @local_position.setter
    def local_position(self, value: Sequence[float]):
        position = np.array(value, dtype=float)
        if position.shape != (3,):
            raise ValueError(f"Position must have 3 components, got shape {position.shape}")
        self._local_position = position

    @property
    def local_rotation(self) -> np.ndarray:
        """Local rotation as an (x, y, z, w) quaternion."""
        return self._local_rotation

    @local_rotation.setter
    def local_rotation(self, value: QuaternionLike):
        self._local_rotation = as_quaternion(value)

    @property
    def position(self) -> np.ndarray:
        """World position."""
        if self.parent is None:
            return self._local_position.copy()
        return self.parent.position + self.parent.rotation.apply(self._local_position)

    @property
    def rotation(self) -> Rotation:
        """World rotation."""
        local = as_rotation(self._local_rotation)
        if self.parent is None:
            return local
        return self.parent.rotation * local

    @property
    def path(self) -> str:
        """Slash separated path from the top-level ancestor."""
        names = []
        node: Optional[SceneNode] = self
        while node is not None:
            names.append(node.name)
            node = node.parent
        return PATH_SEPARATOR.join(reversed(names))

    def add_child(self, child: "SceneNode") -> "SceneNode":
        """Attach a child node (detaching it from any previous parent)."""
        if child.parent is not None:
            child.parent.children.remove(child)
        child.parent = self
        self.children.append(child)
        return child

    def find(self, path: str) -> Optional["SceneNode"]:
        """
        Find a descendant by relative path.

        Each path segment matches the first child with that name, like
        the engine's Transform.Find.
        """
        node: Optional[SceneNode] = self
        for part in path.split(PATH_SEPARATOR):
            if not part:
                continue
            node = next((c for c in node.children if c.name == part), None)
            if node is None:
                return None
        return node

    def is_descendant_of(self, ancestor: "SceneNode") -> bool:
        """True if this node is ancestor itself or lies below it."""
        node: Optional[SceneNode] = self
        while node is not None:
            if node is ancestor:
                return True
            node = node.parent
        return False

    def iter_preorder(self) -> Iterator["SceneNode"]:
        """Iterate over this node and all descendants, parents first."""
        yield self
        for child in self.children:
            yield from child.iter_preorder()


class Scene:
    """Top-level container of scene nodes."""

    def __init__(self, roots: Optional[List[SceneNode]] = None):
        self.roots: List[SceneNode] = list(roots) if roots else []

    def add(self, node: SceneNode) -> SceneNode:
        self.roots.append(node)
        return node

    def find(self, path: str) -> Optional[SceneNode]:
        """Find a node by absolute path ("Character/Armature/Hips")."""
        head, _, rest = path.strip(PATH_SEPARATOR).partition(PATH_SEPARATOR)
        root = next((r for r in self.roots if r.name == head), None)
        if root is None or not rest:
            return root
        return root.find(rest)
