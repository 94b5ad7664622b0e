"""AST node definitions for letlang.

Spans are carried for diagnostics and editor features but are left out of
equality and ``repr``, so two trees compare equal when their structure does.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from letlang.source import Span


def _span() -> Span | None:
    return field(default=None, compare=False, repr=False)


# ── Leaves ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class Num:
    value: float
    span: Span | None = _span()


@dataclass(frozen=True)
class Reference:
    name: str
    span: Span | None = _span()


# ── Arithmetic ───────────────────────────────────────────────────


@dataclass(frozen=True)
class Neg:
    operand: Expr
    span: Span | None = _span()


@dataclass(frozen=True)
class Add:
    left: Expr
    right: Expr
    span: Span | None = _span()


@dataclass(frozen=True)
class Sub:
    left: Expr
    right: Expr
    span: Span | None = _span()


@dataclass(frozen=True)
class Mul:
    left: Expr
    right: Expr
    span: Span | None = _span()


@dataclass(frozen=True)
class Div:
    left: Expr
    right: Expr
    span: Span | None = _span()


# ── Declarations ─────────────────────────────────────────────────


@dataclass(frozen=True)
class Binding:
    name: str
    value: Expr
    span: Span | None = _span()


@dataclass(frozen=True)
class LetIn:
    bindings: list[Binding]
    body: Expr
    span: Span | None = _span()


@dataclass(frozen=True)
class Call:
    name: str
    args: list[Expr]  # never empty
    span: Span | None = _span()


@dataclass(frozen=True)
class Lambda:
    arg: str
    body: Expr
    span: Span | None = _span()


BinaryExpr = Union[Add, Sub, Mul, Div]

Expr = Union[
    Num, Reference, Neg, Add, Sub, Mul, Div,
    Binding, LetIn, Call, Lambda,
]
