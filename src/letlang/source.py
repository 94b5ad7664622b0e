"""Source file representation and span tracking for diagnostics."""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass
from pathlib import Path

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class Span:
    """A half-open range of character offsets within a source file."""

    file: str
    start: int
    end: int

    def __str__(self) -> str:
        return f"{self.file}:{self.start}..{self.end}"

    def __len__(self) -> int:
        return self.end - self.start

    def to(self, other: Span) -> Span:
        """Span from the start of this span to the end of ``other``."""
        return Span(self.file, self.start, max(self.end, other.end))


class SourceFile:
    """Source text with line access and offset to line/column mapping."""

    def __init__(self, name: str, content: str) -> None:
        self.name = name
        self.content = content
        # Line breaks are \n, \r\n and a lone \r, matching LSP clients
        self.lines = _LINE_BREAK.split(content)
        self._line_starts = [0]
        for m in _LINE_BREAK.finditer(content):
            self._line_starts.append(m.end())

    @classmethod
    def from_path(cls, path: Path) -> SourceFile:
        """Read ``path`` as strict UTF-8.

        Raises OSError if the file cannot be read and UnicodeDecodeError if
        it is not valid UTF-8.
        """
        return cls(str(path), path.read_bytes().decode("utf-8"))

    def line_col(self, offset: int) -> tuple[int, int]:
        """Return the 1-indexed (line, column) of a character offset."""
        offset = max(0, min(offset, len(self.content)))
        idx = bisect_right(self._line_starts, offset) - 1
        return idx + 1, offset - self._line_starts[idx] + 1

    def offset_of(self, line: int, col: int) -> int:
        """Inverse of line_col, clamped to the end of the line and the text."""
        if line < 1:
            return 0
        if line > len(self._line_starts):
            return len(self.content)
        start = self._line_starts[line - 1]
        end = start + len(self.lines[line - 1])
        return min(start + max(col, 1) - 1, end)

    def line_at(self, n: int) -> str:
        """Return the 1-indexed line, or empty string if out of range."""
        if 1 <= n <= len(self.lines):
            return self.lines[n - 1]
        return ""

    def span_text(self, span: Span) -> str:
        """Extract the text covered by a span."""
        return self.content[span.start : span.end]
