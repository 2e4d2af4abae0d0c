"""Syntax tree for Orrery documents and arithmetic expressions.

All nodes are frozen dataclasses holding tuples, so a parsed tree is
immutable and compares by value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Ident:
    """Reference to a builtin constant or a previously defined variable."""

    name: str


@dataclass(frozen=True)
class NumberLiteral:
    value: float


@dataclass(frozen=True)
class FunctionCall:
    name: str
    args: tuple[Expression, ...] = ()


@dataclass(frozen=True)
class BinaryOp:
    left: Expression
    right: Expression

    symbol = "?"


@dataclass(frozen=True)
class Add(BinaryOp):
    symbol = "+"


@dataclass(frozen=True)
class Sub(BinaryOp):
    symbol = "-"


@dataclass(frozen=True)
class Mul(BinaryOp):
    symbol = "*"


@dataclass(frozen=True)
class Div(BinaryOp):
    symbol = "/"


Expression = Union[Ident, NumberLiteral, FunctionCall, Add, Sub, Mul, Div]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StringArg:
    """A bare identifier used as an invocation argument."""

    text: str


@dataclass(frozen=True)
class BlockArg:
    """A brace-delimited sequence of commands."""

    commands: tuple[Command, ...] = ()


Arg = Union[StringArg, BlockArg]


@dataclass(frozen=True)
class StringValue:
    text: str


@dataclass(frozen=True)
class ExprValue:
    expr: Expression


PropertyValue = Union[StringValue, ExprValue]


@dataclass(frozen=True)
class Invocation:
    """Generic ``arg arg {block}`` command; its meaning belongs to the consumer."""

    args: tuple[Arg, ...]


@dataclass(frozen=True)
class PropertyAssignment:
    """``name: value``"""

    name: str
    value: PropertyValue


@dataclass(frozen=True)
class VariableDefinition:
    """``name := expr``"""

    name: str
    expr: Expression


Command = Union[Invocation, PropertyAssignment, VariableDefinition]


def format_expression(expr: Expression) -> str:
    """Render an expression back to source form, fully parenthesized."""
    if isinstance(expr, Ident):
        return expr.name
    if isinstance(expr, NumberLiteral):
        return repr(expr.value)
    if isinstance(expr, FunctionCall):
        return f"{expr.name}({', '.join(format_expression(a) for a in expr.args)})"
    if isinstance(expr, BinaryOp):
        return f"({format_expression(expr.left)} {expr.symbol} {format_expression(expr.right)})"
    raise TypeError(f"Not an expression node: {expr!r}")
