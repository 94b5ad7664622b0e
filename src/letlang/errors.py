"""Parse errors, diagnostics, and Rust-style colored rendering."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from letlang.source import SourceFile, Span


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


class ErrorKind(Enum):
    """Parse failure kinds as (diagnostic code, category)."""

    UNEXPECTED_CHARACTER = ("E100", "lexical")
    INVALID_NUMBER = ("E101", "lexical")
    UNEXPECTED_TOKEN = ("E200", "syntactic")
    UNEXPECTED_EOF = ("E201", "syntactic")
    MISSING_SEMICOLON = ("E300", "structural")
    UNCLOSED_PAREN = ("E301", "structural")
    MISSING_IN = ("E302", "structural")

    @property
    def code(self) -> str:
        return self.value[0]

    @property
    def category(self) -> str:
        return self.value[1]


# ANSI color codes
_COLORS = {
    Severity.ERROR: "\033[1;31m",    # bold red
    Severity.WARNING: "\033[1;33m",  # bold yellow
    Severity.NOTE: "\033[1;36m",     # bold cyan
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_YELLOW = "\033[1;33m"
_RESET = "\033[0m"


@dataclass(frozen=True)
class DiagnosticLabel:
    """Points to a specific source location."""

    span: Span
    message: str
    style: str = "primary"  # "primary" or "secondary"


@dataclass
class Diagnostic:
    """A single diagnostic message with optional labels and notes."""

    severity: Severity
    code: str
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ParseError:
    """A positioned parse failure.

    ``contexts`` is the stack of labelled rules that were being parsed when
    the failure happened, outermost first. Each entry spans from the start of
    the rule to the end of the failing region.
    """

    kind: ErrorKind
    span: Span
    message: str
    reason: str
    expected: tuple[str, ...] = ()
    found: str | None = None
    contexts: tuple[tuple[str, Span], ...] = ()

    def __str__(self) -> str:
        return f"{self.message}, {self.reason}" if self.reason else self.message

    @property
    def context_labels(self) -> list[str]:
        return [label for label, _ in self.contexts]

    def to_diagnostic(self) -> Diagnostic:
        labels = [DiagnosticLabel(span=self.span, message=self.reason)]
        for label, span in reversed(self.contexts):
            labels.append(DiagnosticLabel(
                span=span,
                message=f"while parsing this {label}",
                style="secondary",
            ))
        return Diagnostic(
            severity=Severity.ERROR,
            code=self.kind.code,
            message=self.message,
            labels=labels,
        )


class DiagnosticRenderer:
    """Renders diagnostics in Rust-style format with colors."""

    def __init__(self, *, color: bool = True, sources: Iterable[SourceFile] = ()) -> None:
        self.color = color
        self._file_cache: dict[str, SourceFile | None] = {s.name: s for s in sources}

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def _get_source(self, filename: str) -> SourceFile | None:
        """Return the registered source, loading it from disk on first use."""
        if filename not in self._file_cache:
            try:
                path = Path(filename)
                if path.is_file():
                    self._file_cache[filename] = SourceFile.from_path(path)
                else:
                    self._file_cache[filename] = None
            except (OSError, UnicodeDecodeError):
                self._file_cache[filename] = None
        return self._file_cache[filename]

    def render(self, diag: Diagnostic) -> str:
        lines: list[str] = []
        sev = diag.severity
        color = _COLORS[sev]

        # Header: error[E200]: message
        lines.append(
            f"{self._c(color)}{sev.value}[{diag.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        )

        for label in diag.labels:
            label_color = color if label.style == "primary" else _YELLOW
            lines.extend(self._render_label(label, label_color))

        # Notes
        for note in diag.notes:
            lines.append(f"  {self._c(_BLUE)}={self._c(_RESET)} note: {note}")

        return "\n".join(lines)

    def _render_label(self, label: DiagnosticLabel, color: str) -> list[str]:
        span = label.span
        source = self._get_source(span.file)
        if source is None:
            lines = [f"  {self._c(_BLUE)}-->{self._c(_RESET)} {span}"]
            if label.message:
                lines.append(
                    f"  {self._c(_BLUE)}   |{self._c(_RESET)}   "
                    f"{self._c(color)}{label.message}{self._c(_RESET)}"
                )
            return lines

        start_line, start_col = source.line_col(span.start)
        end_line, end_col = source.line_col(max(span.start, span.end - 1))
        lines = [
            f"  {self._c(_BLUE)}-->{self._c(_RESET)} "
            f"{span.file}:{start_line}:{start_col}",
            f"  {self._c(_BLUE)}   |{self._c(_RESET)}",
        ]

        gutter = f"{start_line:>4}"
        source_line = source.line_at(start_line)
        lines.append(f"  {self._c(_BLUE)}{gutter} |{self._c(_RESET)} {source_line}")

        # Carets underneath; a multi-line span is underlined to the end of its first line
        if start_line == end_line:
            caret_len = max(1, end_col - start_col + 1)
        else:
            caret_len = max(1, len(source_line) - start_col + 1)
        padding = " " * (start_col - 1)
        lines.append(
            f"  {self._c(_BLUE)}   |{self._c(_RESET)} "
            f"{padding}{self._c(color)}{'^' * caret_len}{self._c(_RESET)}"
        )

        if label.message:
            lines.append(
                f"  {self._c(_BLUE)}   |{self._c(_RESET)}   "
                f"{self._c(color)}{label.message}{self._c(_RESET)}"
            )
        return lines


class CompileError(Exception):
    """Batch error carrying multiple diagnostics."""

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        messages = [d.message for d in diagnostics]
        super().__init__(f"{len(diagnostics)} error(s): {'; '.join(messages)}")
