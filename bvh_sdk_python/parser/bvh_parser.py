"""
BVH text parser.

Parsing is split into two small pieces:
    - tokenize_line() turns one line of text into a tagged Token
    - step() applies one Token to an explicit ParserState

BVHParser drives both over a whole document and installs the result into a
MotionBuffer only once the parse has succeeded. All parse state lives in the
ParserState instance, so separate parsers can run side by side.
"""

import enum
import logging
import re
from typing import NamedTuple, Optional, Tuple

import numpy as np

from .errors import (
    ChannelCountMismatch,
    HierarchyImbalance,
    NumericFormatError,
    UnknownSection,
)
from .motion_buffer import MotionBuffer, MotionFrame


logger = logging.getLogger(__name__)

END_SITE_SUFFIX = "_EndSite"
MOTION_MARKER = "MOTION"
HIERARCHY_MARKER = "HIERARCHY"

_JOINT_RE = re.compile(r"^(ROOT|JOINT)\s+(\S+)")
_END_SITE_RE = re.compile(r"^End\s+[Ss]ite\b")
_OFFSET_RE = re.compile(r"^OFFSET\b(.*)$")
_CHANNELS_RE = re.compile(r"^CHANNELS\b(.*)$")
_FRAMES_RE = re.compile(r"^Frames:\s*(.*)$")
_FRAME_TIME_RE = re.compile(r"^Frame Time:\s*(.*)$")
_FLOAT_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")
_INT_RE = re.compile(r"^[+-]?\d+$")


class TokenKind(enum.Enum):
    BLANK = "blank"
    HIERARCHY = "hierarchy"
    MOTION = "motion"
    JOINT_OPEN = "joint_open"
    END_SITE = "end_site"
    OPEN_BRACE = "open_brace"
    OFFSET = "offset"
    CHANNELS = "channels"
    CLOSE = "close"
    FRAMES_HEADER = "frames_header"
    FRAME_TIME_HEADER = "frame_time_header"
    DATA_ROW = "data_row"
    UNKNOWN = "unknown"


class Token(NamedTuple):
    """One classified line of BVH text."""
    kind: TokenKind
    line_number: int
    text: str
    name: Optional[str] = None
    values: Tuple = ()
    labels: Tuple = ()


def _parse_floats(parts, line_number, line):
    values = []
    for part in parts:
        if not _FLOAT_RE.match(part):
            raise NumericFormatError(f"Non-numeric token {part!r}", line_number, line)
        values.append(float(part))
    return values


def _parse_int(part, line_number, line):
    if not _INT_RE.match(part):
        raise NumericFormatError(f"Expected an integer, got {part!r}", line_number, line)
    return int(part)


def tokenize_line(line, line_number=0, in_motion=False):
    """
    Classify a single line of BVH text.

    Args:
        line: raw line (surrounding whitespace is ignored)
        line_number: 1-based line number, used in error messages
        in_motion: True once the MOTION marker has been seen

    Returns:
        Token

    Raises:
        NumericFormatError: if a numeric field cannot be parsed
    """
    text = line.strip()
    if not text:
        return Token(TokenKind.BLANK, line_number, text)

    if in_motion:
        match = _FRAMES_RE.match(text)
        if match:
            value = _parse_int(match.group(1).strip(), line_number, line)
            return Token(TokenKind.FRAMES_HEADER, line_number, text, values=(value,))
        match = _FRAME_TIME_RE.match(text)
        if match:
            value = _parse_floats([match.group(1).strip()], line_number, line)[0]
            return Token(TokenKind.FRAME_TIME_HEADER, line_number, text, values=(value,))
        values = _parse_floats(text.split(), line_number, line)
        return Token(TokenKind.DATA_ROW, line_number, text, values=tuple(values))

    if text == MOTION_MARKER:
        return Token(TokenKind.MOTION, line_number, text)
    if text.startswith(HIERARCHY_MARKER):
        return Token(TokenKind.HIERARCHY, line_number, text)

    match = _JOINT_RE.match(text)
    if match:
        return Token(TokenKind.JOINT_OPEN, line_number, text, name=match.group(2))

    if _END_SITE_RE.match(text):
        return Token(TokenKind.END_SITE, line_number, text)

    match = _OFFSET_RE.match(text)
    if match:
        parts = match.group(1).split()
        if len(parts) != 3:
            raise NumericFormatError(f"OFFSET expects 3 values, got {len(parts)}", line_number, line)
        values = _parse_floats(parts, line_number, line)
        return Token(TokenKind.OFFSET, line_number, text, values=tuple(values))

    match = _CHANNELS_RE.match(text)
    if match:
        parts = match.group(1).split()
        if not parts:
            raise NumericFormatError("CHANNELS is missing its count", line_number, line)
        count = _parse_int(parts[0], line_number, line)
        return Token(TokenKind.CHANNELS, line_number, text, values=(count,), labels=tuple(parts[1:]))

    if text.startswith("{"):
        return Token(TokenKind.OPEN_BRACE, line_number, text)
    if text.startswith("}"):
        return Token(TokenKind.CLOSE, line_number, text)

    return Token(TokenKind.UNKNOWN, line_number, text)


class ParserState:
    """
    Mutable state of a single parse.

    Attributes:
        stack: names of currently open joints (end sites use a
            ``<parent>_EndSite`` placeholder)
        joint_names: joint names in declaration order (end sites excluded)
        channel_counts / channel_names / offsets / parents: per-joint data
        frames: parsed MotionFrame list
        num_frames: declared frame count, None until ``Frames:`` is seen
        frame_time: declared seconds per frame
        in_motion: True after the MOTION marker
        seen_hierarchy: True after the HIERARCHY keyword
        end_site_pending: the next OFFSET belongs to an end site
    """

    def __init__(self):
        self.stack = []
        self.joint_names = []
        self.channel_counts = {}
        self.channel_names = {}
        self.offsets = {}
        self.parents = {}
        self.frames = []
        self.num_frames = None
        self.frame_time = 0.0
        self.in_motion = False
        self.seen_hierarchy = False
        self.end_site_pending = False

    @property
    def top(self):
        return self.stack[-1] if self.stack else None

    def to_buffer(self, buffer=None):
        """Install the parsed data into ``buffer`` (or a new MotionBuffer)."""
        if buffer is None:
            buffer = MotionBuffer()
        return buffer.install(
            self.joint_names,
            self.channel_counts,
            self.offsets,
            self.frames,
            num_frames=self.num_frames,
            frame_time=self.frame_time,
            channel_names=self.channel_names,
            parents=self.parents,
        )


def _split_data_row(state, token):
    values = token.values
    expected = sum(state.channel_counts.get(name, 0) for name in state.joint_names)
    if len(values) != expected:
        raise ChannelCountMismatch(
            f"Motion line has {len(values)} values, hierarchy declares {expected} channels",
            token.line_number, token.text,
        )
    frame = MotionFrame()
    index = 0
    for name in state.joint_names:
        count = state.channel_counts.get(name, 0)
        frame[name] = np.array(values[index:index + count], dtype=np.float64)
        index += count
    return frame


def _step_motion(state, token):
    kind = token.kind
    if kind == TokenKind.BLANK:
        return state
    if kind == TokenKind.FRAMES_HEADER:
        state.num_frames = token.values[0]
    elif kind == TokenKind.FRAME_TIME_HEADER:
        state.frame_time = token.values[0]
    elif kind == TokenKind.DATA_ROW:
        state.frames.append(_split_data_row(state, token))
    return state


def step(state, token, strict=False):
    """
    Apply one token to the parser state.

    The state object is updated in place and returned.

    Raises:
        HierarchyImbalance: on an unmatched '}' or an open joint at MOTION
        UnknownSection: on unrecognized content when ``strict`` is set
    """
    if state.in_motion:
        return _step_motion(state, token)

    kind = token.kind
    if kind == TokenKind.BLANK:
        return state

    if kind == TokenKind.HIERARCHY:
        state.seen_hierarchy = True
        return state

    if strict and not state.seen_hierarchy:
        raise UnknownSection("Content before the HIERARCHY section", token.line_number, token.text)

    if kind == TokenKind.MOTION:
        if state.stack:
            raise HierarchyImbalance(
                f"MOTION reached with {len(state.stack)} unclosed joint(s): {', '.join(state.stack)}",
                token.line_number, token.text,
            )
        state.in_motion = True
    elif kind == TokenKind.JOINT_OPEN:
        state.parents[token.name] = state.top
        state.stack.append(token.name)
        state.joint_names.append(token.name)
    elif kind == TokenKind.END_SITE:
        if not state.stack:
            raise HierarchyImbalance("End Site outside of a joint", token.line_number, token.text)
        state.stack.append(state.top + END_SITE_SUFFIX)
        state.end_site_pending = True
    elif kind == TokenKind.OFFSET:
        if state.end_site_pending:
            state.end_site_pending = False
        elif not state.stack:
            raise HierarchyImbalance("OFFSET outside of a joint", token.line_number, token.text)
        else:
            state.offsets[state.top] = np.array(token.values, dtype=np.float64)
    elif kind == TokenKind.CHANNELS:
        if not state.stack:
            raise HierarchyImbalance("CHANNELS outside of a joint", token.line_number, token.text)
        state.channel_counts[state.top] = token.values[0]
        state.channel_names[state.top] = list(token.labels)
    elif kind == TokenKind.CLOSE:
        if not state.stack:
            raise HierarchyImbalance("Unmatched closing brace", token.line_number, token.text)
        state.stack.pop()
        state.end_site_pending = False
    elif kind == TokenKind.UNKNOWN:
        if strict:
            raise UnknownSection("Unrecognized hierarchy line", token.line_number, token.text)
        logger.debug("Skipping unrecognized line %d: %r", token.line_number, token.text)
    return state


class BVHParser:
    """
    Parses BVH text into a MotionBuffer.

    Example usage:
        parser = BVHParser()
        buffer = parser.parse(open("motion.bvh").read())
        print(buffer.joint_names, len(buffer.frames))

    A failed parse raises a BVHParseError subclass and leaves any buffer
    passed in untouched.
    """

    def __init__(self, strict: bool = False):
        """
        Args:
            strict: reject content outside the known sections with UnknownSection
        """
        self.strict = strict

    def parse(self, source, buffer: Optional[MotionBuffer] = None) -> MotionBuffer:
        """
        Parse a complete BVH document.

        Args:
            source: the whole text as a string, or an iterable of lines
            buffer: MotionBuffer to install the result into (a new one if None)

        Returns:
            The populated MotionBuffer
        """
        if isinstance(source, str):
            source = source.splitlines()

        state = ParserState()
        line_number = 0
        for line_number, line in enumerate(source, start=1):
            token = tokenize_line(line, line_number, in_motion=state.in_motion)
            step(state, token, strict=self.strict)

        if state.stack:
            raise HierarchyImbalance(
                f"Unexpected end of input with {len(state.stack)} unclosed joint(s): "
                f"{', '.join(state.stack)}",
                line_number,
            )

        buffer = state.to_buffer(buffer)
        logger.info("BVH parsing completed: %d joints, %d frames",
                    len(buffer.joint_names), len(buffer.frames))
        return buffer
