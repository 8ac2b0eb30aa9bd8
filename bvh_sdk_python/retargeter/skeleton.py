"""
Target skeleton node contract and a reference in-memory implementation.

The retargeter never depends on a particular scene graph. Any node object
works as long as it exposes:
    - name: stable node name
    - children: iterable of child nodes
    - local_position: readable/writable (3,) parent-local position
    - local_rotation: readable/writable (w, x, y, z) parent-local rotation
    - world_rotation: readable (w, x, y, z) world-space rotation

SkeletonNode below implements that contract with numpy arrays and is used by
the examples and tests.
"""

from typing import Iterable, List, Optional, Protocol

import numpy as np

from ..utils.quat_utils import IDENTITY_QUAT, quat_mul, quat_normalize, rotate_vec_by_quat


class SkeletonNodeLike(Protocol):
    """Minimal capability interface a host node must provide."""

    name: str
    local_position: np.ndarray
    local_rotation: np.ndarray

    @property
    def children(self) -> Iterable["SkeletonNodeLike"]: ...

    @property
    def world_rotation(self) -> np.ndarray: ...


class SkeletonNode:
    """
    A single node of a target skeleton.

    Each node has:
    - Local transform (position + rotation relative to parent)
    - World rotation/position derived from the parent chain
    - Parent-child relationships
    """

    def __init__(
        self,
        name: str,
        local_position=None,
        local_rotation=None,
        parent: Optional["SkeletonNode"] = None,
    ):
        """
        Initialize a node.

        Args:
            name: Node name, possibly namespaced (e.g. "mixamorig:Hips")
            local_position: (3,) position relative to the parent (default: zeros)
            local_rotation: (w, x, y, z) rotation relative to the parent (default: identity)
            parent: Parent node (None for the root)
        """
        self.name = name
        self.parent = None
        self.children: List["SkeletonNode"] = []
        self.local_position = np.zeros(3) if local_position is None else local_position
        self.local_rotation = IDENTITY_QUAT if local_rotation is None else local_rotation
        if parent is not None:
            parent.add_child(self)

    @property
    def local_position(self):
        return self._local_position

    @local_position.setter
    def local_position(self, value):
        self._local_position = np.array(value, dtype=np.float64).reshape(3)

    @property
    def local_rotation(self):
        return self._local_rotation

    @local_rotation.setter
    def local_rotation(self, value):
        self._local_rotation = quat_normalize(np.array(value, dtype=np.float64).reshape(4))

    @property
    def world_rotation(self):
        if self.parent is None:
            return self._local_rotation.copy()
        return quat_normalize(quat_mul(self.parent.world_rotation, self._local_rotation))

    @property
    def world_position(self):
        if self.parent is None:
            return self._local_position.copy()
        return self.parent.world_position + rotate_vec_by_quat(
            self._local_position, self.parent.world_rotation)

    def add_child(self, child: "SkeletonNode"):
        """Add a child node to this node's hierarchy."""
        self.children.append(child)
        child.parent = self
        return child

    def find(self, name: str) -> Optional["SkeletonNode"]:
        """Depth-first search for a node by its raw name."""
        for node in iter_depth_first(self):
            if node.name == name:
                return node
        return None

    def __repr__(self):
        return f"SkeletonNode(name='{self.name}', children={len(self.children)})"


def iter_depth_first(root):
    """Yield ``root`` and all descendants in depth-first pre-order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(list(node.children)))


def build_skeleton_from_buffer(buffer, scale=1.0, prefix=""):
    """
    Build a SkeletonNode tree that mirrors a parsed BVH hierarchy.

    Node local positions are the parsed joint offsets times ``scale`` and all
    rotations start at identity.

    Args:
        buffer: MotionBuffer with joint_names, offsets and parents
        scale: uniform scale applied to offsets
        prefix: namespace prefix prepended to every node name (e.g. "mixamorig:")

    Returns:
        The root SkeletonNode, or None if the buffer has no joints
    """
    nodes = {}
    root = None
    for name in buffer.joint_names:
        offset = buffer.offsets.get(name, np.zeros(3))
        node = SkeletonNode(prefix + name, local_position=np.asarray(offset) * scale)
        parent_name = buffer.parents.get(name)
        if parent_name is not None and parent_name in nodes:
            nodes[parent_name].add_child(node)
        elif root is None:
            root = node
        else:
            root.add_child(node)
        nodes[name] = node
    return root
