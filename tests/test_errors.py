"""Tests for parse errors and diagnostic rendering."""

from __future__ import annotations

from letlang.errors import (
    CompileError,
    Diagnostic,
    DiagnosticLabel,
    DiagnosticRenderer,
    ErrorKind,
    Severity,
)
from letlang.parser import parse
from letlang.source import SourceFile, Span

SOURCE = "let a = ; in a"


def first_error(source: str = SOURCE):
    return parse(source, "test.let").errors[0]


class TestErrorKind:
    def test_codes(self):
        assert ErrorKind.UNEXPECTED_CHARACTER.code == "E100"
        assert ErrorKind.INVALID_NUMBER.code == "E101"
        assert ErrorKind.UNEXPECTED_TOKEN.code == "E200"
        assert ErrorKind.UNEXPECTED_EOF.code == "E201"
        assert ErrorKind.MISSING_SEMICOLON.code == "E300"
        assert ErrorKind.UNCLOSED_PAREN.code == "E301"
        assert ErrorKind.MISSING_IN.code == "E302"

    def test_categories(self):
        assert ErrorKind.UNEXPECTED_CHARACTER.category == "lexical"
        assert ErrorKind.UNEXPECTED_EOF.category == "syntactic"
        assert ErrorKind.MISSING_IN.category == "structural"

    def test_codes_are_unique(self):
        codes = [kind.code for kind in ErrorKind]
        assert len(codes) == len(set(codes))


class TestParseError:
    def test_str_joins_message_and_reason(self):
        assert str(first_error()) == (
            "unexpected ';', "
            "expected one of: 'let', number, identifier, '(', '-'"
        )

    def test_to_diagnostic_primary_label(self):
        diag = first_error().to_diagnostic()
        assert diag.severity == Severity.ERROR
        assert diag.code == "E200"
        assert diag.message == "unexpected ';'"
        primary = diag.labels[0]
        assert primary.style == "primary"
        assert primary.span == Span("test.let", 8, 9)

    def test_to_diagnostic_context_labels_innermost_first(self):
        diag = first_error().to_diagnostic()
        secondary = diag.labels[1:]
        assert [label.message for label in secondary] == [
            "while parsing this binding",
            "while parsing this let-in",
        ]
        assert all(label.style == "secondary" for label in secondary)
        assert secondary[0].span == Span("test.let", 4, 9)

    def test_compile_error_message(self):
        diags = parse("1 +", "test.let").diagnostics()
        err = CompileError(diags)
        assert str(err) == "1 error(s): unexpected end of input"
        assert err.diagnostics == diags


class TestDiagnosticRenderer:
    def render(self, source: str = SOURCE, **kwargs) -> str:
        renderer = DiagnosticRenderer(
            color=False, sources=[SourceFile("test.let", source)], **kwargs,
        )
        return renderer.render(first_error(source).to_diagnostic())

    def test_header(self):
        assert self.render().startswith("error[E200]: unexpected ';'")

    def test_location_is_one_indexed(self):
        assert "--> test.let:1:9" in self.render()

    def test_source_line_and_caret(self):
        output = self.render()
        assert "   1 | let a = ; in a" in output
        assert "   | " + " " * 8 + "^\n" in output

    def test_reason_is_shown(self):
        assert "expected one of: 'let', number" in self.render()

    def test_context_labels_rendered(self):
        output = self.render()
        assert "while parsing this binding" in output
        assert "while parsing this let-in" in output
        assert "   | ^^^^^^^^^" in output

    def test_second_line_location(self):
        output = self.render("let\n  a = 1\nin a")
        assert "--> test.let:3:1" in output
        assert "   3 | in a" in output

    def test_multiline_span_underlined_to_end_of_first_line(self):
        output = self.render("let\n  a = 1\nin a")
        # the let-in context starts on line 1 and ends on line 3
        assert "   1 | let\n" in output
        assert "   | ^^^\n" in output

    def test_lone_carriage_return_line_ending(self):
        output = self.render("let a = 1;\rb = ;\rin a")
        assert "--> test.let:2:5" in output
        assert "   2 | b = ;\n" in output
        assert "   | " + " " * 4 + "^\n" in output

    def test_crlf_line_ending(self):
        output = self.render("let a = 1;\r\nb = ;\r\nin a")
        assert "--> test.let:2:5" in output
        assert "   2 | b = ;\n" in output

    def test_form_feed_is_not_a_line_break(self):
        output = self.render("1 +\x0c\n(2 *")
        assert "--> test.let:2:5" in output
        assert "   2 | (2 *\n" in output

    def test_no_color_has_no_escape_codes(self):
        assert "\033[" not in self.render()

    def test_color_output(self):
        renderer = DiagnosticRenderer(
            color=True, sources=[SourceFile("test.let", SOURCE)],
        )
        output = renderer.render(first_error().to_diagnostic())
        assert "\033[1;31m" in output
        assert "\033[1;33m" in output

    def test_missing_source_falls_back_to_span(self, tmp_path):
        span = Span(str(tmp_path / "gone.let"), 8, 9)
        diag = Diagnostic(
            severity=Severity.ERROR,
            code="E200",
            message="unexpected ';'",
            labels=[DiagnosticLabel(span=span, message="expected number")],
        )
        output = DiagnosticRenderer(color=False).render(diag)
        assert f"--> {span}" in output
        assert "expected number" in output

    def test_source_loaded_from_disk(self, tmp_path):
        path = tmp_path / "disk.let"
        path.write_text(SOURCE, encoding="utf-8")
        error = parse(SOURCE, str(path)).errors[0]
        output = DiagnosticRenderer(color=False).render(error.to_diagnostic())
        assert "   1 | let a = ; in a" in output

    def test_notes(self):
        diag = Diagnostic(
            severity=Severity.WARNING, code="W1", message="m", notes=["look here"],
        )
        output = DiagnosticRenderer(color=False).render(diag)
        assert output.startswith("warning[W1]: m")
        assert "= note: look here" in output
