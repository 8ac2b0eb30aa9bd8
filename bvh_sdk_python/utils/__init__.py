"""
Utility functions for BVH loading and retargeting.

This module provides:
    - bvh_loader: BVH file loading
    - quat_utils: Quaternion math utilities
    - skeleton_debug: Plain-data skeleton geometry for debug drawing
      (import it from bvh_sdk_python.utils.skeleton_debug)
"""

from .bvh_loader import load_bvh_file, load_bvh_text
from .quat_utils import euler_deg_to_quat, quat_mul, quat_slerp, rotate_vec_by_quat

__all__ = [
    "load_bvh_file",
    "load_bvh_text",
    "euler_deg_to_quat",
    "quat_mul",
    "quat_slerp",
    "rotate_vec_by_quat",
]
