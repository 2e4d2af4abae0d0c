"""Tree-walking evaluator for Orrery arithmetic expressions.

Arithmetic follows IEEE-754 double semantics: ``1 / 0`` is ``inf``,
``sqrt(-1)`` is ``nan``. Only unknown names, unknown functions and wrong
argument counts are errors.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from types import MappingProxyType

import numpy as np

from orrery.errors import (
    ArityMismatchError,
    EvaluationError,
    UnknownFunctionError,
    UnknownNameError,
)
from orrery.syntax import (
    Add,
    Div,
    Expression,
    FunctionCall,
    Ident,
    Mul,
    NumberLiteral,
    Sub,
)

Environment = dict[str, float]


def _log(value: float, base: float) -> float:
    return np.log(value) / np.log(base)


BUILTIN_CONSTANTS: Mapping[str, float] = MappingProxyType({"pi": math.pi})

BUILTIN_FUNCTIONS: Mapping[str, tuple[int, Callable[..., float]]] = MappingProxyType(
    {
        "sqrt": (1, np.sqrt),
        "sin": (1, np.sin),
        "cos": (1, np.cos),
        "tan": (1, np.tan),
        "asin": (1, np.arcsin),
        "acos": (1, np.arccos),
        "atan": (1, np.arctan),
        "exp": (1, np.exp),
        "log10": (1, np.log10),
        "atan2": (2, np.arctan2),
        "pow": (2, np.power),
        "log": (2, _log),
    }
)

_OPERATORS: dict[type, Callable[[np.float64, np.float64], np.float64]] = {
    Add: np.add,
    Sub: np.subtract,
    Mul: np.multiply,
    Div: np.divide,
}


def evaluate(expr: Expression, environment: Mapping[str, float] | None = None) -> float:
    """Evaluate an expression to a float.

    Names resolve against ``BUILTIN_CONSTANTS`` first, then ``environment``.
    The environment is only read.

    Raises:
        UnknownNameError: A name is neither a builtin constant nor defined.
        UnknownFunctionError: A call names a function that is not builtin.
        ArityMismatchError: A builtin is called with the wrong number of arguments.
        EvaluationError: The tree is too deep for the interpreter stack.
    """
    env = environment if environment is not None else {}
    try:
        with np.errstate(all="ignore"):
            return float(_interpret(expr, env))
    except RecursionError:
        raise EvaluationError("Expression is nested too deeply to evaluate") from None


def _interpret(expr: Expression, env: Mapping[str, float]) -> np.float64:
    if isinstance(expr, NumberLiteral):
        return np.float64(expr.value)

    if isinstance(expr, Ident):
        if expr.name in BUILTIN_CONSTANTS:
            return np.float64(BUILTIN_CONSTANTS[expr.name])
        if expr.name in env:
            return np.float64(env[expr.name])
        raise UnknownNameError(expr.name)

    if isinstance(expr, FunctionCall):
        return _interpret_call(expr, env)

    op = _OPERATORS.get(type(expr))
    if op is not None:
        left = _interpret(expr.left, env)
        right = _interpret(expr.right, env)
        return op(left, right)

    raise TypeError(f"Not an expression node: {type(expr).__name__}")


def _interpret_call(call: FunctionCall, env: Mapping[str, float]) -> np.float64:
    entry = BUILTIN_FUNCTIONS.get(call.name)
    if entry is None:
        raise UnknownFunctionError(call.name)
    arity, fn = entry
    if len(call.args) != arity:
        raise ArityMismatchError(call.name, arity, len(call.args))
    args = [_interpret(arg, env) for arg in call.args]
    return np.float64(fn(*args))
