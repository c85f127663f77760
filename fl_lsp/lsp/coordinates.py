"""
Conversion between 1-based line/column locations and absolute character offsets.

Issues arrive as line/column pairs, editors want 0-based ranges. Every function
here is pure and clamps out-of-range input instead of raising, so a bad location
from the engine can never take down a publish cycle.
"""

from typing import Tuple

from lsprotocol import types as lsp

from ..core.models import Location


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def to_offset(text: str, line: int, column: int) -> int:
    """
    Convert a 1-based (line, column) pair into an absolute offset within text.

    Lines past the end of the document clamp to end-of-text. The result is
    always within [0, len(text)].
    """
    line = max(1, line)
    column = max(1, column)

    lines = text.split("\n")
    if line > len(lines):
        return len(text)

    offset = 0
    for i in range(line - 1):
        offset += len(lines[i]) + 1  # +1 for the line terminator

    return _clamp(offset + column - 1, 0, len(text))


def to_range(text: str, location: Location) -> Tuple[int, int]:
    """
    Convert a location into a half-open (start, end) offset pair.

    A location without an end covers the single character at its start.
    """
    start = to_offset(text, location.line, location.column)
    if location.has_end:
        end = to_offset(text, location.end_line, location.end_column)
    else:
        end = start + 1
    return start, _clamp(end, start, len(text))


def offset_to_location(text: str, offset: int) -> Tuple[int, int]:
    """Convert an absolute offset back into a 1-based (line, column) pair."""
    offset = _clamp(offset, 0, len(text))
    line = text.count("\n", 0, offset) + 1
    line_start = text.rfind("\n", 0, offset) + 1
    return line, offset - line_start + 1


def offset_to_position(text: str, offset: int) -> lsp.Position:
    """Convert an absolute offset into a 0-based editor position."""
    line, column = offset_to_location(text, offset)
    return lsp.Position(line=line - 1, character=column - 1)


def location_to_range(text: str, location: Location) -> lsp.Range:
    """Convert an issue location into an editor range."""
    start, end = to_range(text, location)
    return lsp.Range(
        start=offset_to_position(text, start),
        end=offset_to_position(text, end),
    )
