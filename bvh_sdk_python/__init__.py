"""
BVH SDK Python - BVH motion capture playback onto arbitrary skeletons.

This package parses BVH files (hierarchy + per-frame channels) and
retargets each frame onto a target skeleton by bone name, with optional
left/right mirroring, Euler sign/order remapping and time-based smoothing.

Main classes:
    - BVHParser: Parses BVH text into a MotionBuffer
    - PoseRetargeter: Applies MotionBuffer frames to bound skeleton nodes
    - BVHPlayer: Plays a BVH file at its own frame rate

Example usage:
    from bvh_sdk_python import (
        BVHParser, BindPoseSnapshot, PoseRetargeter, RetargetConfig, bind_skeleton,
    )

    # Parse
    buffer = BVHParser().parse(open("motion.bvh").read())

    # Capture bind pose and bind joints once
    bind_pose = BindPoseSnapshot(root)
    bindings = bind_skeleton(root, buffer.joint_names)

    # Main loop, one file frame per tick
    retargeter = PoseRetargeter(buffer, bindings, bind_pose, RetargetConfig())
    while retargeter.apply_frame():
        render(root)
"""

from .parser import (
    BVHParseError,
    BVHParser,
    ChannelCountMismatch,
    HierarchyImbalance,
    MotionBuffer,
    MotionFrame,
    NumericFormatError,
    UnknownSection,
)
from .player import BVHPlayer
from .retargeter import (
    AxisOrder,
    BindPoseSnapshot,
    PoseRetargeter,
    RetargetConfig,
    RotationMappingConfig,
    SkeletonBinder,
    SkeletonNode,
    bind_skeleton,
    build_skeleton_from_buffer,
    clean_bone_name,
)
from .utils import load_bvh_file, load_bvh_text
from .utils.skeleton_debug import compute_joint_positions

__version__ = "0.1.0"
__all__ = [
    "BVHParseError",
    "BVHParser",
    "ChannelCountMismatch",
    "HierarchyImbalance",
    "MotionBuffer",
    "MotionFrame",
    "NumericFormatError",
    "UnknownSection",
    "BVHPlayer",
    "AxisOrder",
    "BindPoseSnapshot",
    "PoseRetargeter",
    "RetargetConfig",
    "RotationMappingConfig",
    "SkeletonBinder",
    "SkeletonNode",
    "bind_skeleton",
    "build_skeleton_from_buffer",
    "clean_bone_name",
    "load_bvh_file",
    "load_bvh_text",
    "compute_joint_positions",
]
