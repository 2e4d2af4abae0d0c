"""In-order traversal of a parsed document with a running environment.

Variable definitions are evaluated eagerly when the traversal reaches them
and bound into the caller's environment, so only commands after a
definition can see it. Definitions inside blocks bind into the same
environment as top-level ones; they are not scoped to their block.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from orrery.evaluator import BUILTIN_CONSTANTS, Environment, evaluate
from orrery.syntax import (
    BlockArg,
    Command,
    ExprValue,
    Invocation,
    PropertyValue,
    StringValue,
    VariableDefinition,
)
from orrery.warning_policy import WarningPolicy, emit_warning


def define(
    definition: VariableDefinition,
    environment: Environment,
    *,
    policy: WarningPolicy | None = None,
) -> float:
    """Evaluate a definition against ``environment`` and bind the result."""
    if definition.name in BUILTIN_CONSTANTS:
        emit_warning(
            "W02",
            f"definition of {definition.name!r} shadows a builtin constant and is never used",
            policy=policy,
        )
    value = evaluate(definition.expr, environment)
    environment[definition.name] = value
    return value


def walk(
    commands: Iterable[Command],
    environment: Environment,
    *,
    policy: WarningPolicy | None = None,
) -> Iterator[Command]:
    """Yield commands in order, applying each definition before yielding it.

    Nested blocks are not entered; consumers walk them with the same
    environment when they reach them.
    """
    for command in commands:
        if isinstance(command, VariableDefinition):
            define(command, environment, policy=policy)
        yield command


def resolve_value(value: PropertyValue, environment: Environment) -> str | float:
    """Return a property's string, or its expression evaluated now."""
    if isinstance(value, StringValue):
        return value.text
    if isinstance(value, ExprValue):
        return evaluate(value.expr, environment)
    raise TypeError(f"Not a property value: {value!r}")


def evaluate_document(
    commands: Iterable[Command],
    environment: Environment | None = None,
    *,
    policy: WarningPolicy | None = None,
) -> Environment:
    """Apply every definition in the document, depth-first in document order.

    Returns the environment (the one passed in, updated in place, or a new one).
    """
    if environment is None:
        environment = {}
    for command in walk(commands, environment, policy=policy):
        if isinstance(command, Invocation):
            for arg in command.args:
                if isinstance(arg, BlockArg):
                    evaluate_document(arg.commands, environment, policy=policy)
    return environment
