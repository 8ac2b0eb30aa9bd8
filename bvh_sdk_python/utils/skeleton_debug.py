"""
Plain-data BVH skeleton geometry for external debug drawing.

Nothing here draws anything: hosts take the positions and segments and render
them however they like (spheres at joints, lines between them).
"""

import logging

import numpy as np

from ..retargeter.skeleton_binder import DEFAULT_SEPARATOR, clean_bone_name


logger = logging.getLogger(__name__)


def compute_joint_positions(root, offsets, separator=DEFAULT_SEPARATOR, origin=None):
    """
    Lay the parsed BVH offsets out along the target skeleton's tree.

    Each node's position is its parent's position plus the parsed offset of
    the joint with the same clean name. Nodes with no parsed offset add
    nothing and are reported with a warning.

    Args:
        root: root node of the target skeleton
        offsets: dict joint name -> (3,) offset (MotionBuffer.offsets)
        separator: namespace separator stripped from node names
        origin: start position of the root (default: zeros)

    Returns:
        Tuple of (positions, segments) where positions is a list of
        (clean_name, (3,) array) and segments a list of (start, end) arrays
    """
    positions = []
    segments = []
    if root is None:
        logger.error("Root node is not set.")
        return positions, segments

    start = np.zeros(3) if origin is None else np.asarray(origin, dtype=np.float64)
    stack = [(root, start)]
    while stack:
        node, parent_position = stack.pop()
        name = clean_bone_name(node.name, separator)
        offset = offsets.get(name)
        if offset is None:
            logger.warning("Joint offset not found for %s", name)
            offset = np.zeros(3)

        position = parent_position + np.asarray(offset, dtype=np.float64)
        positions.append((name, position))
        if not np.allclose(position, parent_position):
            segments.append((parent_position, position))

        for child in reversed(list(node.children)):
            stack.append((child, position))

    return positions, segments


def scaled_segments(segments, scale):
    """Scale segment endpoints (e.g. by RetargetConfig.scale_factor) for drawing."""
    return [(np.asarray(a) * scale, np.asarray(b) * scale) for a, b in segments]
