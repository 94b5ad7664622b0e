"""Tests for the letlang LSP server."""

from __future__ import annotations

from lsprotocol import types as lsp

from letlang.lsp import (
    _analyze,
    _error_diag,
    _state,
    definition,
    document_symbol,
    find_name_at,
    hover,
    span_to_range,
)
from letlang.parser import parse
from letlang.source import SourceFile, Span

URI = "file:///test.let"


def analyze(text: str):
    return _analyze(URI, text)


def position_params(cls, line: int, character: int):
    return cls(
        text_document=lsp.TextDocumentIdentifier(uri=URI),
        position=lsp.Position(line=line, character=character),
    )


def resolve(text: str, offset: int):
    return find_name_at(parse(text, "test.let").output, offset)


class TestSpanConversion:
    def test_single_line(self):
        source = SourceFile("t.let", "let a = 1; in a")
        r = span_to_range(Span("t.let", 4, 5), source)
        assert (r.start.line, r.start.character) == (0, 4)
        assert (r.end.line, r.end.character) == (0, 5)

    def test_multiline(self):
        source = SourceFile("t.let", "let\n  a = 1;\nin a")
        r = span_to_range(Span("t.let", 6, 16), source)
        assert (r.start.line, r.start.character) == (1, 2)
        assert (r.end.line, r.end.character) == (2, 3)

    def test_lone_carriage_return_breaks_line(self):
        source = SourceFile("t.let", "let a = 1;\rin a")
        r = span_to_range(Span("t.let", 14, 15), source)
        assert (r.start.line, r.start.character) == (1, 3)
        assert (r.end.line, r.end.character) == (1, 4)

    def test_empty_span_at_end(self):
        source = SourceFile("t.let", "1 +")
        r = span_to_range(Span("t.let", 3, 3), source)
        assert r.start == r.end
        assert (r.start.line, r.start.character) == (0, 3)


class TestDiagnostics:
    def test_valid_document_has_no_diagnostics(self):
        ds = analyze("let a = 1; in a")
        assert ds.diagnostics == []
        assert ds.result.ok

    def test_error_diagnostic(self):
        ds = analyze("let a = ; in a")
        assert len(ds.diagnostics) == 1
        diag = ds.diagnostics[0]
        assert diag.code == "E200"
        assert diag.severity == lsp.DiagnosticSeverity.Error
        assert diag.source == "letlang"
        assert diag.message.startswith("unexpected ';': expected one of:")
        assert (diag.range.start.character, diag.range.end.character) == (8, 9)

    def test_related_information_innermost_first(self):
        diag = analyze("let a = ; in a").diagnostics[0]
        assert [r.message for r in diag.related_information] == [
            "while parsing this binding",
            "while parsing this let-in",
        ]
        assert diag.related_information[0].location.uri == URI

    def test_error_without_context(self):
        text = "1 2"
        error = parse(text, URI).errors[0]
        diag = _error_diag(error, SourceFile(URI, text), URI)
        assert diag.related_information is None

    def test_every_error_published(self):
        ds = analyze("let a = ; b = * 2; in a")
        assert [d.range.start.character for d in ds.diagnostics] == [8, 14]

    def test_deep_nesting(self):
        ds = analyze("(" * 5000 + "1" + ")" * 5000)
        assert ds.result is None
        assert "nested too deeply" in ds.diagnostics[0].message

    def test_state_is_cached(self):
        ds = analyze("x")
        assert _state[URI] is ds


class TestNameResolution:
    def test_let_reference_resolves_to_binding(self):
        found = resolve("let a = 1; in a + b", 14)
        assert found.name == "a"
        assert found.binder.kind == "let binding"
        assert found.binder.span == Span("test.let", 4, 5)

    def test_free_reference(self):
        found = resolve("let a = 1; in a + b", 18)
        assert found.name == "b"
        assert found.binder is None

    def test_lambda_argument(self):
        found = resolve("x: f x", 5)
        assert found.binder.kind == "lambda argument"
        assert found.binder.span == Span("test.let", 0, 1)

    def test_call_name(self):
        found = resolve("x: f x", 3)
        assert found.name == "f"
        assert found.span == Span("test.let", 3, 4)
        assert found.binder is None

    def test_binding_does_not_see_later_bindings(self):
        assert resolve("let a = b; b = 1; in a", 8).binder is None

    def test_later_binding_sees_earlier(self):
        found = resolve("let a = 1; b = a; in b", 15)
        assert found.binder.span == Span("test.let", 4, 5)

    def test_lambda_argument_shadows_binding(self):
        found = resolve("let x = 1; in x: x", 17)
        assert found.binder.kind == "lambda argument"
        assert found.binder.span == Span("test.let", 14, 15)

    def test_binder_resolves_to_itself(self):
        found = resolve("let a = 1; in a", 4)
        assert found.binder.span == found.span

    def test_whitespace_outside_tree(self):
        assert resolve("  a  ", 0) is None

    def test_operator_is_not_a_name(self):
        assert resolve("1 + 2", 2) is None


class TestFeatures:
    def test_hover_binding(self):
        analyze("let a = 1; in a")
        result = hover(position_params(lsp.HoverParams, 0, 14))
        assert result.contents.value == "**let binding** `a`"
        assert (result.range.start.character, result.range.end.character) == (14, 15)

    def test_hover_free_reference(self):
        analyze("f 1")
        result = hover(position_params(lsp.HoverParams, 0, 0))
        assert result.contents.value == "free reference `f`"

    def test_hover_nothing(self):
        analyze("1 + 2")
        assert hover(position_params(lsp.HoverParams, 0, 2)) is None

    def test_hover_unknown_document(self):
        _state.pop(URI, None)
        assert hover(position_params(lsp.HoverParams, 0, 0)) is None

    def test_definition(self):
        analyze("let a = 1;\nin a * 2")
        loc = definition(position_params(lsp.DefinitionParams, 1, 3))
        assert loc.uri == URI
        assert (loc.range.start.line, loc.range.start.character) == (0, 4)
        assert (loc.range.end.line, loc.range.end.character) == (0, 5)

    def test_definition_of_free_name(self):
        analyze("a")
        assert definition(position_params(lsp.DefinitionParams, 0, 0)) is None

    def test_document_symbols(self):
        analyze("let f = x: x * 2; n = 3; in f n")
        symbols = document_symbol(lsp.DocumentSymbolParams(
            text_document=lsp.TextDocumentIdentifier(uri=URI),
        ))
        assert [s.name for s in symbols] == ["f", "n"]
        assert symbols[0].kind == lsp.SymbolKind.Variable
        assert [c.name for c in symbols[0].children] == ["x"]
        assert symbols[0].children[0].kind == lsp.SymbolKind.Function
        assert symbols[1].children is None
        sel = symbols[0].selection_range
        assert (sel.start.character, sel.end.character) == (4, 5)

    def test_document_symbols_after_failed_parse(self):
        analyze("let a = 1;")
        symbols = document_symbol(lsp.DocumentSymbolParams(
            text_document=lsp.TextDocumentIdentifier(uri=URI),
        ))
        assert symbols == []
