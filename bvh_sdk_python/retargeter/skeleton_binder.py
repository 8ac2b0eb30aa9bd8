"""
SkeletonBinder - match BVH joint names to target skeleton nodes.
"""

import logging

from .skeleton import iter_depth_first


logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = ":"


def clean_bone_name(name, separator=DEFAULT_SEPARATOR):
    """
    Strip a namespace prefix from a bone name.

    "mixamorig:Hips" -> "Hips", "rig:mixamorig:Hips" -> "Hips", "Hips" -> "Hips"
    """
    if separator and separator in name:
        return name.rsplit(separator, 1)[1]
    return name


def bind_skeleton(root, joint_names, separator=DEFAULT_SEPARATOR):
    """
    Map clean joint names to target nodes.

    The target tree is walked once, depth-first. The first node whose clean
    name matches a joint wins; later nodes with the same clean name are
    ignored. Joints without a node (and nodes without a joint) are simply
    left out.

    Args:
        root: root node of the target skeleton
        joint_names: joint names from the MotionBuffer
        separator: namespace separator stripped from names

    Returns:
        Dict mapping clean joint name -> target node
    """
    wanted = {clean_bone_name(name, separator) for name in joint_names}
    bindings = {}
    if root is None:
        logger.warning("No target root node; nothing bound")
        return bindings

    for node in iter_depth_first(root):
        clean_name = clean_bone_name(node.name, separator)
        if clean_name in wanted and clean_name not in bindings:
            bindings[clean_name] = node

    unbound = sorted(wanted - set(bindings))
    if unbound:
        logger.debug("%d joint(s) have no target node: %s", len(unbound), ", ".join(unbound))
    logger.info("Bound %d of %d joints", len(bindings), len(wanted))
    return bindings


class SkeletonBinder:
    """
    Holds the joint -> node bindings for one target skeleton.

    Bindings are rebuilt only when bind() is called, never per frame.

    Example usage:
        binder = SkeletonBinder(root_node)
        bindings = binder.bind(buffer.joint_names)
    """

    def __init__(self, root, separator: str = DEFAULT_SEPARATOR):
        self.root = root
        self.separator = separator
        self.bindings = {}
        self._joint_names = []

    def bind(self, joint_names):
        """Rebuild the bindings for a new joint list."""
        self._joint_names = list(joint_names)
        self.bindings = bind_skeleton(self.root, self._joint_names, self.separator)
        return self.bindings

    def unbound_joints(self):
        """Joint names (clean) that found no target node."""
        return [
            name for name in (clean_bone_name(j, self.separator) for j in self._joint_names)
            if name not in self.bindings
        ]

    def __contains__(self, name):
        return name in self.bindings

    def __getitem__(self, name):
        return self.bindings[name]

    def get(self, name, default=None):
        return self.bindings.get(name, default)
