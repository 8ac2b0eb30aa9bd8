"""
Parser - BVH hierarchy and motion parsing.

Example usage:
    from bvh_sdk_python.parser import BVHParser

    buffer = BVHParser().parse(bvh_text)
    print(buffer.joint_names)       # depth-first declaration order
    print(buffer.frames[0]["Hips"]) # channel values of the first frame
"""

from .bvh_parser import BVHParser, ParserState, Token, TokenKind, step, tokenize_line
from .errors import (
    BVHParseError,
    ChannelCountMismatch,
    HierarchyImbalance,
    NumericFormatError,
    UnknownSection,
)
from .motion_buffer import MotionBuffer, MotionFrame

__all__ = [
    "BVHParser",
    "ParserState",
    "Token",
    "TokenKind",
    "step",
    "tokenize_line",
    "BVHParseError",
    "ChannelCountMismatch",
    "HierarchyImbalance",
    "NumericFormatError",
    "UnknownSection",
    "MotionBuffer",
    "MotionFrame",
]
