"""
Retargeter - applies parsed BVH motion to an arbitrary target skeleton.

Example usage:
    from bvh_sdk_python.retargeter import (
        BindPoseSnapshot, PoseRetargeter, RetargetConfig, bind_skeleton,
    )

    bind_pose = BindPoseSnapshot(root)                    # capture once
    bindings = bind_skeleton(root, buffer.joint_names)    # bind once
    retargeter = PoseRetargeter(buffer, bindings, bind_pose, RetargetConfig(scale_factor=0.01))

    while retargeter.apply_frame():                       # once per tick
        ...
"""

from .bind_pose import BindPoseSnapshot
from .config import AxisOrder, RetargetConfig, RotationMappingConfig
from .retargeter import PoseRetargeter
from .skeleton import SkeletonNode, SkeletonNodeLike, build_skeleton_from_buffer, iter_depth_first
from .skeleton_binder import SkeletonBinder, bind_skeleton, clean_bone_name

__all__ = [
    "BindPoseSnapshot",
    "AxisOrder",
    "RetargetConfig",
    "RotationMappingConfig",
    "PoseRetargeter",
    "SkeletonNode",
    "SkeletonNodeLike",
    "build_skeleton_from_buffer",
    "iter_depth_first",
    "SkeletonBinder",
    "bind_skeleton",
    "clean_bone_name",
]
