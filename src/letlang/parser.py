"""Parser for letlang.

Transforms a token stream into an AST. Expressions are parsed by a fixed
chain of precedence levels (atom, unary, product, sum); declarations
(let-in, lambda, binding) sit on top and recurse back into expressions.

Failures are recorded as ParseError values and unwound to the nearest
recovery point, so one pass reports every independent problem it can find.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from letlang.ast_nodes import (
    Add,
    BinaryExpr,
    Binding,
    Call,
    Div,
    Expr,
    Lambda,
    LetIn,
    Mul,
    Neg,
    Num,
    Reference,
    Sub,
)
from letlang.errors import CompileError, Diagnostic, ErrorKind, ParseError
from letlang.lexer import Lexer
from letlang.source import Span
from letlang.tokens import Token, TokenKind

logger = logging.getLogger(__name__)

# Tokens that may start an expression / a call argument
_EXPR_TOKENS = frozenset({
    TokenKind.INTEGER_LIT, TokenKind.IDENTIFIER,
    TokenKind.LPAREN, TokenKind.MINUS,
})
_ARG_TOKENS = frozenset({
    TokenKind.INTEGER_LIT, TokenKind.IDENTIFIER, TokenKind.LPAREN,
})

# Expected-token descriptions used in diagnostics
_EXPR_START = ("number", "identifier", "'('", "'-'")
_DECL_START = ("'let'",) + _EXPR_START
_AFTER_DECL = ("'+'", "'-'", "'*'", "'/'", "end of input")

_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.UNEXPECTED_CHARACTER: "unexpected character {found}",
    ErrorKind.INVALID_NUMBER: "invalid number literal {found}",
    ErrorKind.UNEXPECTED_TOKEN: "unexpected {found}",
    ErrorKind.UNEXPECTED_EOF: "unexpected end of input",
    ErrorKind.MISSING_SEMICOLON: "missing ';' after binding, found {found}",
    ErrorKind.UNCLOSED_PAREN: "unclosed parenthesis, found {found}",
    ErrorKind.MISSING_IN: "missing 'in' after let bindings, found {found}",
}


def _expected_text(expected: tuple[str, ...]) -> str:
    if len(expected) == 1:
        return f"expected {expected[0]}"
    return f"expected one of: {', '.join(expected)}"


@dataclass
class ParseResult:
    """Best-effort tree plus every error found.

    A non-empty ``errors`` list means the parse failed, even when
    ``output`` holds a tree.
    """

    output: Expr | None
    errors: list[ParseError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def diagnostics(self) -> list[Diagnostic]:
        return [e.to_diagnostic() for e in self.errors]

    def unwrap(self) -> Expr:
        """Return the tree, or raise CompileError if the parse failed."""
        if self.errors or self.output is None:
            raise CompileError(self.diagnostics())
        return self.output


class Parser:
    """Parses a list of tokens into a letlang AST."""

    def __init__(self, tokens: list[Token], filename: str = "<stdin>") -> None:
        self.tokens = tokens
        self.pos = 0
        self.filename = filename
        self.errors: list[ParseError] = []
        # (label, start offset) of the labelled rules being parsed
        self._contexts: list[tuple[str, int]] = []

    # ── Token access ─────────────────────────────────────────────

    def _current(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]  # EOF

    def _peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]

    def _at(self, kind: TokenKind) -> bool:
        return self._current().kind == kind

    def _at_any(self, *kinds: TokenKind) -> bool:
        return self._current().kind in kinds

    def _advance(self) -> Token:
        tok = self._current()
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def _expect(
        self,
        kind: TokenKind,
        description: str,
        error_kind: ErrorKind = ErrorKind.UNEXPECTED_TOKEN,
    ) -> Token:
        if self._at(kind):
            return self._advance()
        raise self._fail((description,), error_kind)

    # ── Errors ───────────────────────────────────────────────────

    @contextmanager
    def _context(self, label: str) -> Iterator[None]:
        """Attach ``label`` to every error raised while parsing the block."""
        self._contexts.append((label, self._current().span.start))
        try:
            yield
        finally:
            self._contexts.pop()

    def _error(
        self,
        expected: tuple[str, ...],
        kind: ErrorKind = ErrorKind.UNEXPECTED_TOKEN,
        tok: Token | None = None,
        reason: str | None = None,
    ) -> ParseError:
        """Record an error at ``tok`` (the current token by default)."""
        tok = tok or self._current()
        if tok.kind == TokenKind.ERROR:
            kind = ErrorKind.UNEXPECTED_CHARACTER
        elif tok.kind == TokenKind.EOF and kind == ErrorKind.UNEXPECTED_TOKEN:
            kind = ErrorKind.UNEXPECTED_EOF

        span = tok.span
        error = ParseError(
            kind=kind,
            span=span,
            message=_MESSAGES[kind].format(found=tok.describe()),
            reason=reason or _expected_text(expected),
            expected=expected,
            found=None if tok.kind == TokenKind.EOF else tok.value,
            contexts=tuple(
                (label, Span(self.filename, start, max(start, span.end)))
                for label, start in self._contexts
            ),
        )
        self.errors.append(error)
        return error

    def _fail(
        self,
        expected: tuple[str, ...],
        kind: ErrorKind = ErrorKind.UNEXPECTED_TOKEN,
    ) -> _ParseFailure:
        return _ParseFailure(self._error(expected, kind))

    def _synchronize(self) -> bool:
        """Skip past a failed binding.

        Stops after its ';' or before an 'in' at the nesting depth the
        binding started at. Returns False if the input ran out first.
        """
        depth = 0
        while not self._at(TokenKind.EOF):
            kind = self._current().kind
            if kind == TokenKind.LPAREN:
                depth += 1
            elif kind == TokenKind.RPAREN:
                depth = max(0, depth - 1)
            elif depth == 0 and kind == TokenKind.SEMICOLON:
                self._advance()
                return True
            elif depth == 0 and kind == TokenKind.IN:
                return True
            self._advance()
        return False

    # ── Top level ────────────────────────────────────────────────

    def parse(self) -> ParseResult:
        """Parse the entire token stream as one declaration."""
        output: Expr | None = None
        try:
            output = self._parse_declaration()
        except _ParseFailure:
            pass  # recorded in self.errors
        else:
            if not self._at(TokenKind.EOF):
                self._error(_AFTER_DECL)

        errors = sorted(self.errors, key=lambda e: e.span.start)
        logger.debug(
            "parsed %s: %d token(s), %d error(s)",
            self.filename, len(self.tokens), len(errors),
        )
        return ParseResult(output, errors)

    # ── Declarations ─────────────────────────────────────────────

    def _parse_declaration(self) -> Expr:
        """let-in, then lambda, then plain expression; first match wins."""
        tok = self._current()
        if tok.kind == TokenKind.LET:
            return self._parse_let_in()
        if tok.kind == TokenKind.IDENTIFIER and self._peek(1).kind == TokenKind.COLON:
            return self._parse_lambda()
        if tok.kind not in _EXPR_TOKENS:
            raise self._fail(_DECL_START)
        return self._parse_expression()

    def _parse_let_in(self) -> LetIn:
        start = self._current().span
        with self._context("let-in"):
            self._advance()  # let
            bindings: list[Binding] = []
            while not self._at(TokenKind.IN):
                if not self._at(TokenKind.IDENTIFIER):
                    raise self._fail(("identifier", "'in'"), ErrorKind.MISSING_IN)
                try:
                    bindings.append(self._parse_binding())
                except _ParseFailure:
                    if not self._synchronize():
                        raise
            self._advance()  # in
            body = self._parse_declaration()
        return LetIn(bindings, body, start.to(body.span))

    def _parse_binding(self) -> Binding:
        start = self._current().span
        with self._context("binding"):
            name_tok = self._expect(TokenKind.IDENTIFIER, "identifier")
            self._expect(TokenKind.ASSIGN, "'='")
            value = self._parse_declaration()
            end_tok = self._expect(
                TokenKind.SEMICOLON, "';'", ErrorKind.MISSING_SEMICOLON,
            )
        return Binding(name_tok.value, value, start.to(end_tok.span))

    def _parse_lambda(self) -> Lambda:
        arg_tok = self._advance()
        self._advance()  # ':'
        body = self._parse_declaration()
        return Lambda(arg_tok.value, body, arg_tok.span.to(body.span))

    # ── Expressions ──────────────────────────────────────────────

    def _parse_expression(self) -> Expr:
        return self._parse_sum()

    def _parse_sum(self) -> Expr:
        left = self._parse_product()
        while self._at_any(TokenKind.PLUS, TokenKind.MINUS):
            op_tok = self._advance()
            right = self._parse_product()
            left = _binary(op_tok, left, right)
        return left

    def _parse_product(self) -> Expr:
        left = self._parse_unary()
        while self._at_any(TokenKind.STAR, TokenKind.SLASH):
            op_tok = self._advance()
            right = self._parse_unary()
            left = _binary(op_tok, left, right)
        return left

    def _parse_unary(self) -> Expr:
        ops: list[Token] = []
        while self._at(TokenKind.MINUS):
            ops.append(self._advance())
        expr = self._parse_atom()
        # The minus closest to the atom binds first
        for op_tok in reversed(ops):
            expr = Neg(expr, op_tok.span.to(expr.span))
        return expr

    def _parse_atom(self) -> Expr:
        tok = self._current()

        if tok.kind == TokenKind.INTEGER_LIT:
            return self._parse_number()

        if tok.kind == TokenKind.LPAREN:
            return self._parse_parenthesized()

        if tok.kind == TokenKind.IDENTIFIER:
            self._advance()
            # A call needs at least one argument; otherwise this is a reference
            if self._current().kind in _ARG_TOKENS:
                return self._parse_call(tok)
            return Reference(tok.value, tok.span)

        raise self._fail(_EXPR_START)

    def _parse_call(self, name_tok: Token) -> Call:
        """Parse the arguments of ``name_tok arg+``."""
        args: list[Expr] = []
        while self._current().kind in _ARG_TOKENS:
            args.append(self._parse_argument())
        return Call(name_tok.value, args, name_tok.span.to(args[-1].span))

    def _parse_argument(self) -> Expr:
        """A call argument: number, parenthesized expression, or reference."""
        tok = self._current()
        if tok.kind == TokenKind.INTEGER_LIT:
            return self._parse_number()
        if tok.kind == TokenKind.LPAREN:
            return self._parse_parenthesized()
        self._advance()
        return Reference(tok.value, tok.span)

    def _parse_parenthesized(self) -> Expr:
        self._advance()  # (
        expr = self._parse_expression()
        self._expect(TokenKind.RPAREN, "')'", ErrorKind.UNCLOSED_PAREN)
        return expr

    def _parse_number(self) -> Num:
        tok = self._advance()
        value = float(tok.value)
        if not math.isfinite(value):
            raise _ParseFailure(self._error(
                (), ErrorKind.INVALID_NUMBER, tok=tok,
                reason="too large to represent as a 64-bit float",
            ))
        return Num(value, tok.span)


def _binary(op_tok: Token, left: Expr, right: Expr) -> BinaryExpr:
    span = left.span.to(right.span)
    match op_tok.kind:
        case TokenKind.PLUS:
            return Add(left, right, span)
        case TokenKind.MINUS:
            return Sub(left, right, span)
        case TokenKind.STAR:
            return Mul(left, right, span)
        case TokenKind.SLASH:
            return Div(left, right, span)
    raise ValueError(f"not a binary operator: {op_tok.kind.name}")


def parse(source: str, filename: str = "<stdin>") -> ParseResult:
    """Lex and parse ``source`` as a single declaration."""
    tokens = Lexer(source, filename).lex()
    return Parser(tokens, filename).parse()


class _ParseFailure(Exception):
    """Internal exception unwinding to the nearest recovery point."""

    def __init__(self, error: ParseError) -> None:
        super().__init__(error.message)
        self.error = error
