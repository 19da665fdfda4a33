"""
Source Location (Span)

Locations are kept as character offsets into a document's text; line and
column are derived on demand for diagnostics.
"""

import bisect
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class SourceLocation:
    """
    Source location of a diagnostic or feature.

    - File, line, column (1-based) for display
    - start/end character offsets into the file contents
    - Immutable (frozen) for hashability
    """
    file: str
    line: int
    column: int
    start: int = 0
    end: int = 0
    end_line: int = 0
    end_column: int = 0

    def __str__(self) -> str:
        """Format as file:line:column"""
        return f"{self.file}:{self.line}:{self.column}"


class LineIndex:
    """Maps character offsets of one text to (line, column) pairs."""

    def __init__(self, text: str):
        self._line_starts: List[int] = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                self._line_starts.append(i + 1)

    def line_and_column(self, offset: int):
        line = bisect.bisect_right(self._line_starts, offset)
        column = offset - self._line_starts[line - 1] + 1
        return line, column

    def offset_of(self, line: int, column: int) -> int:
        """Inverse of line_and_column; lines past the end clamp to the last line."""
        line = min(max(line, 1), len(self._line_starts))
        return self._line_starts[line - 1] + column - 1

    def location(self, file: str, start: int, end: int = 0) -> SourceLocation:
        line, column = self.line_and_column(start)
        if end > start:
            end_line, end_column = self.line_and_column(end)
        else:
            end_line, end_column = 0, 0
        return SourceLocation(
            file=file,
            line=line,
            column=column,
            start=start,
            end=end,
            end_line=end_line,
            end_column=end_column,
        )


def location_from_offsets(file: str, text: str, start: int, end: int = 0) -> SourceLocation:
    """Build a SourceLocation for a span of text."""
    return LineIndex(text).location(file, start, end)


def shift_location(location: SourceLocation, text: str, base_offset: int) -> SourceLocation:
    """
    Re-anchor a location within text[base_offset:] to the whole of text.

    Used for scripts embedded in an HTML document, whose parse errors count
    lines from the start of the script.
    """
    index = LineIndex(text)
    base_line, base_column = index.line_and_column(base_offset)
    line = base_line + location.line - 1
    column = location.column + (base_column - 1 if location.line == 1 else 0)
    return index.location(location.file, index.offset_of(line, column))
