"""
Exceptions raised while parsing BVH text.

Every error carries the 1-based line number and the offending line so that
callers can point at the exact location in the source file.
"""


class BVHParseError(ValueError):
    """Base class for fatal BVH parse errors."""

    def __init__(self, message, line_number=None, line=None):
        self.message = message
        self.line_number = line_number
        self.line = line
        if line_number is not None:
            message = f"line {line_number}: {message}"
            if line is not None:
                message = f"{message} ({line.strip()!r})"
        super().__init__(message)


class HierarchyImbalance(BVHParseError):
    """Unmatched closing brace, or a joint left open at the end of the hierarchy."""


class ChannelCountMismatch(BVHParseError):
    """A motion line does not carry exactly one value per declared channel."""


class NumericFormatError(BVHParseError):
    """A token that should be a number could not be parsed as one."""


class UnknownSection(BVHParseError):
    """Content outside any recognized section (strict mode only)."""
