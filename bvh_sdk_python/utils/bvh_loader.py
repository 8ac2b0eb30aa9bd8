"""
BVH file loading helpers.
"""

from ..parser.bvh_parser import BVHParser


def load_bvh_text(text, buffer=None, strict=False):
    """
    Parse BVH text.

    Args:
        text: whole BVH document
        buffer: MotionBuffer to fill (a new one if None)
        strict: reject content outside the known sections

    Returns:
        MotionBuffer
    """
    return BVHParser(strict=strict).parse(text, buffer=buffer)


def load_bvh_file(bvh_file, buffer=None, strict=False):
    """
    Load and parse a BVH file.

    The file is read completely before parsing starts, and ``buffer`` is only
    replaced once the whole document parsed successfully.

    Args:
        bvh_file: Path to BVH file
        buffer: MotionBuffer to fill (a new one if None)
        strict: reject content outside the known sections

    Returns:
        MotionBuffer
    """
    with open(bvh_file, "r") as f:
        lines = f.read().splitlines()
    return BVHParser(strict=strict).parse(lines, buffer=buffer)
