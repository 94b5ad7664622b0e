"""letlang language server: pygls-based LSP for .let files.

Provides diagnostics, document symbols, hover and go-to-definition via
stdio transport. Documents are fully re-parsed on every change.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from letlang import __version__
from letlang.ast_nodes import (
    Add,
    Binding,
    Call,
    Div,
    Expr,
    Lambda,
    LetIn,
    Mul,
    Neg,
    Reference,
    Sub,
)
from letlang.errors import ParseError
from letlang.parser import ParseResult, parse
from letlang.source import SourceFile, Span

# ── Conversion helpers ────────────────────────────────────────────


def span_to_range(span: Span, source: SourceFile) -> lsp.Range:
    """Convert an offset Span to a 0-indexed LSP Range."""
    sl, sc = source.line_col(span.start)
    el, ec = source.line_col(span.end)
    return lsp.Range(
        start=lsp.Position(line=sl - 1, character=sc - 1),
        end=lsp.Position(line=el - 1, character=ec - 1),
    )


def _error_diag(error: ParseError, source: SourceFile, uri: str) -> lsp.Diagnostic:
    """Convert a ParseError to an LSP Diagnostic."""
    related = [
        lsp.DiagnosticRelatedInformation(
            location=lsp.Location(uri=uri, range=span_to_range(span, source)),
            message=f"while parsing this {label}",
        )
        for label, span in reversed(error.contexts)
    ]
    return lsp.Diagnostic(
        range=span_to_range(error.span, source),
        severity=lsp.DiagnosticSeverity.Error,
        source="letlang",
        code=error.kind.code,
        message=f"{error.message}: {error.reason}",
        related_information=related or None,
    )


# ── Name resolution ──────────────────────────────────────────────


@dataclass(frozen=True)
class Binder:
    """Where a name is introduced."""

    name: str
    kind: str  # "let binding" or "lambda argument"
    span: Span


@dataclass(frozen=True)
class NameAt:
    """An identifier occurrence and the binder it resolves to, if any."""

    name: str
    span: Span
    binder: Binder | None


def _name_span(node: Expr, name: str) -> Span:
    """Span of the identifier that starts ``node``."""
    return Span(node.span.file, node.span.start, node.span.start + len(name))


def _contains(span: Span | None, offset: int) -> bool:
    return span is not None and span.start <= offset <= span.end


def _children(expr: Expr) -> Iterator[Expr]:
    match expr:
        case Neg(operand=operand):
            yield operand
        case Add() | Sub() | Mul() | Div():
            yield expr.left
            yield expr.right
        case Binding(value=value):
            yield value
        case LetIn(bindings=bindings, body=body):
            yield from bindings
            yield body
        case Call(args=args):
            yield from args
        case Lambda(body=body):
            yield body


def find_name_at(expr: Expr, offset: int) -> NameAt | None:
    """Find the identifier at ``offset`` and resolve it.

    A let binding is visible in the bindings after it and in the body; a
    lambda argument is visible in the lambda body.
    """
    return _find(expr, offset, {})


def _find(expr: Expr, offset: int, scope: dict[str, Binder]) -> NameAt | None:
    if not _contains(expr.span, offset):
        return None

    match expr:
        case Reference(name=name):
            return NameAt(name, expr.span, scope.get(name))

        case Call(name=name):
            name_span = _name_span(expr, name)
            if _contains(name_span, offset):
                return NameAt(name, name_span, scope.get(name))

        case Binding(name=name, value=value):
            binder = Binder(name, "let binding", _name_span(expr, name))
            if _contains(binder.span, offset):
                return NameAt(name, binder.span, binder)
            return _find(value, offset, scope)

        case Lambda(arg=arg, body=body):
            binder = Binder(arg, "lambda argument", _name_span(expr, arg))
            if _contains(binder.span, offset):
                return NameAt(arg, binder.span, binder)
            return _find(body, offset, {**scope, arg: binder})

        case LetIn(bindings=bindings, body=body):
            inner = dict(scope)
            for binding in bindings:
                found = _find(binding, offset, inner)
                if found is not None:
                    return found
                inner[binding.name] = Binder(
                    binding.name, "let binding", _name_span(binding, binding.name),
                )
            return _find(body, offset, inner)

    for child in _children(expr):
        found = _find(child, offset, scope)
        if found is not None:
            return found
    return None


def _symbols(expr: Expr, source: SourceFile) -> list[lsp.DocumentSymbol]:
    """Bindings and lambda arguments as a nested symbol outline."""
    match expr:
        case LetIn(bindings=bindings, body=body):
            symbols = [
                lsp.DocumentSymbol(
                    name=b.name,
                    kind=lsp.SymbolKind.Variable,
                    range=span_to_range(b.span, source),
                    selection_range=span_to_range(_name_span(b, b.name), source),
                    children=_symbols(b.value, source) or None,
                )
                for b in bindings
            ]
            return symbols + _symbols(body, source)
        case Lambda(arg=arg, body=body):
            return [lsp.DocumentSymbol(
                name=arg,
                kind=lsp.SymbolKind.Function,
                range=span_to_range(expr.span, source),
                selection_range=span_to_range(_name_span(expr, arg), source),
                children=_symbols(body, source) or None,
            )]

    symbols: list[lsp.DocumentSymbol] = []
    for child in _children(expr):
        symbols.extend(_symbols(child, source))
    return symbols


# ── Per-document state ────────────────────────────────────────────


@dataclass
class DocumentState:
    """Cached analysis results for a single open document."""

    source: SourceFile
    result: ParseResult | None = None
    diagnostics: list[lsp.Diagnostic] = field(default_factory=list)


# ── Server ────────────────────────────────────────────────────────

server = LanguageServer(
    "letlang-lsp", __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)
_state: dict[str, DocumentState] = {}


def _analyze(uri: str, text: str) -> DocumentState:
    """Parse the document, cache results, return state."""
    ds = DocumentState(source=SourceFile(uri, text))
    try:
        ds.result = parse(text, uri)
    except RecursionError:
        ds.diagnostics = [lsp.Diagnostic(
            range=lsp.Range(
                start=lsp.Position(line=0, character=0),
                end=lsp.Position(line=0, character=0),
            ),
            severity=lsp.DiagnosticSeverity.Error, source="letlang",
            message="input is nested too deeply to parse",
        )]
    else:
        ds.diagnostics = [_error_diag(e, ds.source, uri) for e in ds.result.errors]
    _state[uri] = ds
    return ds


def _name_at_position(uri: str, position: lsp.Position) -> tuple[DocumentState, NameAt] | None:
    ds = _state.get(uri)
    if ds is None or ds.result is None or ds.result.output is None:
        return None
    offset = ds.source.offset_of(position.line + 1, position.character + 1)
    found = find_name_at(ds.result.output, offset)
    if found is None:
        return None
    return ds, found


# ── LSP Feature Handlers ─────────────────────────────────────────


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    uri = params.text_document.uri
    ds = _analyze(uri, params.text_document.text)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    # Full sync: the last change holds the whole text
    text = params.content_changes[-1].text if params.content_changes else ""
    ds = _analyze(uri, text)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    _state.pop(params.text_document.uri, None)


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
def hover(params: lsp.HoverParams) -> lsp.Hover | None:
    hit = _name_at_position(params.text_document.uri, params.position)
    if hit is None:
        return None
    ds, found = hit
    if found.binder is None:
        content = f"free reference `{found.name}`"
    else:
        content = f"**{found.binder.kind}** `{found.name}`"
    return lsp.Hover(
        contents=lsp.MarkupContent(kind=lsp.MarkupKind.Markdown, value=content),
        range=span_to_range(found.span, ds.source),
    )


@server.feature(lsp.TEXT_DOCUMENT_DEFINITION)
def definition(params: lsp.DefinitionParams) -> lsp.Location | None:
    hit = _name_at_position(params.text_document.uri, params.position)
    if hit is None:
        return None
    ds, found = hit
    if found.binder is None:
        return None
    return lsp.Location(
        uri=params.text_document.uri,
        range=span_to_range(found.binder.span, ds.source),
    )


@server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def document_symbol(params: lsp.DocumentSymbolParams) -> list[lsp.DocumentSymbol]:
    ds = _state.get(params.text_document.uri)
    if ds is None or ds.result is None or ds.result.output is None:
        return []
    return _symbols(ds.result.output, ds.source)


# ── Entry point ──────────────────────────────────────────────────


def main() -> None:
    """Start the letlang language server on stdio."""
    server.start_io()
