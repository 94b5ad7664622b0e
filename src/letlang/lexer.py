"""Lexer for letlang.

Produces a stream of tokens from source text. Whitespace only separates
tokens and is never emitted. Characters that cannot start any token are
grouped into ERROR tokens so the parser can report them in context.
"""

from __future__ import annotations

import sys

from letlang.source import Span
from letlang.tokens import KEYWORDS, PUNCTUATION, Token, TokenKind

_DIGITS = frozenset("0123456789")


class Lexer:
    """Tokenizes letlang source code."""

    def __init__(self, source: str, filename: str = "<stdin>") -> None:
        self.source = source
        self.filename = filename
        self.pos = 0
        self.tokens: list[Token] = []

    def lex(self) -> list[Token]:
        """Tokenize the entire source and return the token list."""
        while self.pos < len(self.source):
            self._skip_whitespace()
            if self.pos >= len(self.source):
                break
            ch = self.source[self.pos]
            if ch in _DIGITS:
                self._lex_number()
            elif ch.isalpha() or ch == '_':
                self._lex_identifier()
            elif ch in PUNCTUATION:
                self.pos += 1
                self._emit(PUNCTUATION[ch], ch, self.pos - 1)
            else:
                self._lex_error()

        self._emit(TokenKind.EOF, "", self.pos)
        return self.tokens

    # ── Helpers ───────────────────────────────────────────────────

    def _emit(self, kind: TokenKind, value: str, start: int) -> Token:
        tok = Token(kind, value, Span(self.filename, start, self.pos))
        self.tokens.append(tok)
        return tok

    def _is_ident_char(self) -> bool:
        ch = self.source[self.pos]
        return ch.isalnum() or ch == '_'

    def _starts_token(self, ch: str) -> bool:
        return (ch.isspace() or ch in _DIGITS or ch.isalpha()
                or ch == '_' or ch in PUNCTUATION)

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.source) and self.source[self.pos].isspace():
            self.pos += 1

    # ── Token classes ────────────────────────────────────────────

    def _lex_number(self) -> None:
        start = self.pos
        while self.pos < len(self.source) and self.source[self.pos] in _DIGITS:
            self.pos += 1
        self._emit(TokenKind.INTEGER_LIT, self.source[start:self.pos], start)

    def _lex_identifier(self) -> None:
        start = self.pos
        while self.pos < len(self.source) and self._is_ident_char():
            self.pos += 1
        word = self.source[start:self.pos]

        if word in KEYWORDS:
            self._emit(KEYWORDS[word], word, start)
            return

        self._emit(TokenKind.IDENTIFIER, sys.intern(word), start)

    def _lex_error(self) -> None:
        # One token per run of unrecognized characters
        start = self.pos
        self.pos += 1
        while self.pos < len(self.source) and not self._starts_token(self.source[self.pos]):
            self.pos += 1
        self._emit(TokenKind.ERROR, self.source[start:self.pos], start)
