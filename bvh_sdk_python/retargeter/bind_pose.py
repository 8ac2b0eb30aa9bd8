"""
BindPoseSnapshot - the target skeleton's reference pose.
"""

import logging

import numpy as np

from .skeleton import iter_depth_first


logger = logging.getLogger(__name__)


class BindPoseSnapshot:
    """
    World rotation and parent-local position of every target node, captured once.

    Entries are keyed by the node's raw (unstripped) name. Retargeting looks
    rotations up with rotation_for(), which builds the key as
    ``prefix + clean_name`` and can fall back to the bound node's own name.
    """

    def __init__(self, root=None):
        self.rotations = {}
        self.positions = {}
        if root is not None:
            self.capture(root)

    def capture(self, root):
        """Read the current pose of the whole tree, replacing any previous capture."""
        self.rotations = {}
        self.positions = {}
        if root is None:
            logger.error("Root node is not assigned.")
            return self

        for node in iter_depth_first(root):
            self.rotations[node.name] = np.array(node.world_rotation, dtype=np.float64)
            self.positions[node.name] = np.array(node.local_position, dtype=np.float64)

        logger.info("Initial pose read successfully (%d nodes).", len(self.rotations))
        return self

    def rotation_for(self, clean_name, prefix="", fallback_name=None):
        """
        Bind-pose world rotation for a joint.

        Args:
            clean_name: joint name without namespace
            prefix: prepended to clean_name to form the lookup key
            fallback_name: key tried when the prefixed key is missing,
                typically the bound node's raw name

        Returns:
            (w, x, y, z) quaternion, or None if nothing was captured for it
        """
        rotation = self.rotations.get(prefix + clean_name)
        if rotation is None and fallback_name is not None:
            rotation = self.rotations.get(fallback_name)
        return rotation

    def position_for(self, name):
        return self.positions.get(name)

    @property
    def names(self):
        return list(self.rotations.keys())

    def __contains__(self, name):
        return name in self.rotations

    def __len__(self):
        return len(self.rotations)
