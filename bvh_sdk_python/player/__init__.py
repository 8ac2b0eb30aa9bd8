"""
Player module for bvh_sdk_python.

Provides BVHPlayer, a rate-limited tick loop around PoseRetargeter.
"""

from .bvh_player import BVHPlayer

__all__ = ["BVHPlayer"]
