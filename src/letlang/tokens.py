"""Token kinds and token representation for the letlang lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from letlang.source import Span


class TokenKind(Enum):
    # Keywords
    LET = auto()
    IN = auto()

    # Literals
    INTEGER_LIT = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    ASSIGN = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    SEMICOLON = auto()
    COLON = auto()

    # Identifiers
    IDENTIFIER = auto()

    # Special
    ERROR = auto()
    EOF = auto()


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    span: Span

    def describe(self) -> str:
        """Human-readable form used in diagnostics."""
        if self.kind == TokenKind.EOF:
            return "end of input"
        if len(self.value) > 20:
            return repr(self.value[:17] + "...")
        return repr(self.value)


KEYWORDS: dict[str, TokenKind] = {
    "let": TokenKind.LET,
    "in": TokenKind.IN,
}

PUNCTUATION: dict[str, TokenKind] = {
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.STAR,
    "/": TokenKind.SLASH,
    "=": TokenKind.ASSIGN,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    ";": TokenKind.SEMICOLON,
    ":": TokenKind.COLON,
}
