"""Astro-body declarations read from a parsed Orrery document.

An astro declaration is an invocation of the form::

    astro Earth {
        radius: 0.3
        semimajor_axis: 4 * au
        texture: "earth.jpg"
        astro Moon { ... }
    }

Numeric properties are evaluated against the running environment at the
point the traversal reaches them. Nested ``astro`` invocations become
children of the enclosing body.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from orrery.document import walk
from orrery.errors import ValidationError
from orrery.evaluator import Environment, evaluate
from orrery.syntax import (
    BlockArg,
    Command,
    ExprValue,
    Invocation,
    PropertyAssignment,
    StringArg,
    StringValue,
)
from orrery.warning_policy import WarningPolicy, emit_warning

ASTRO_KEYWORD = "astro"

NUMERIC_PROPERTIES: frozenset[str] = frozenset(
    {"radius", "semimajor_axis", "omega", "rotation_omega"}
)
STRING_PROPERTIES: frozenset[str] = frozenset({"texture"})


class AstroBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    radius: float = 0.1
    semimajor_axis: float = 1.0
    omega: float = 1.0
    rotation_omega: float = 0.0
    texture: str | None = None
    children: list[AstroBody] = Field(default_factory=list)


def parse_astro_command(command: Command) -> tuple[str, tuple[Command, ...]] | None:
    """Split an ``astro <name> {...}`` invocation into (name, block commands).

    Returns None for commands that are not astro declarations.

    Raises:
        ValidationError: The command starts with ``astro`` but has no name
            or no block.
    """
    if not isinstance(command, Invocation):
        return None
    args = command.args
    if not args or args[0] != StringArg(ASTRO_KEYWORD):
        return None
    if len(args) < 2 or not isinstance(args[1], StringArg):
        raise ValidationError("astro declaration is missing a body name")
    name = args[1].text
    if len(args) < 3 or not isinstance(args[2], BlockArg):
        raise ValidationError(f"astro {name!r} is missing its {{ ... }} block")
    return name, args[2].commands


def load_bodies(
    commands: Iterable[Command],
    environment: Environment | None = None,
    *,
    policy: WarningPolicy | None = None,
) -> list[AstroBody]:
    """Build the astro-body tree declared by a document.

    Args:
        commands: Parsed top-level commands.
        environment: Running variable environment; updated in place by
            definitions met along the way. A new one is used when omitted.
        policy: Warning policy for unknown or mistyped properties.

    Raises:
        EvaluationError: A property expression cannot be evaluated.
        ValidationError: A malformed astro declaration, or a warning
            escalated by ``policy``.
    """
    if environment is None:
        environment = {}
    bodies = []
    for command in walk(commands, environment, policy=policy):
        body = _load_body(command, environment, policy)
        if body is not None:
            bodies.append(body)
    return bodies


def _load_body(
    command: Command, environment: Environment, policy: WarningPolicy | None
) -> AstroBody | None:
    parsed = parse_astro_command(command)
    if parsed is None:
        return None
    name, block = parsed
    attributes: dict[str, object] = {}
    children: list[AstroBody] = []
    for com in walk(block, environment, policy=policy):
        if isinstance(com, PropertyAssignment):
            _apply_property(name, com, attributes, environment, policy)
        elif isinstance(com, Invocation):
            child = _load_body(com, environment, policy)
            if child is not None:
                children.append(child)
    return AstroBody(name=name, children=children, **attributes)


def _apply_property(
    body_name: str,
    prop: PropertyAssignment,
    attributes: dict[str, object],
    environment: Environment,
    policy: WarningPolicy | None,
) -> None:
    if prop.name in NUMERIC_PROPERTIES:
        if isinstance(prop.value, ExprValue):
            attributes[prop.name] = evaluate(prop.value.expr, environment)
            return
        emit_warning(
            "W03",
            f"astro {body_name!r}: property {prop.name!r} expects a number, got a string",
            policy=policy,
        )
    elif prop.name in STRING_PROPERTIES:
        if isinstance(prop.value, StringValue):
            attributes[prop.name] = prop.value.text
            return
        emit_warning(
            "W03",
            f"astro {body_name!r}: property {prop.name!r} expects a quoted string",
            policy=policy,
        )
    else:
        emit_warning(
            "W01", f"astro {body_name!r}: unknown property {prop.name!r}", policy=policy
        )


def scan_textures(commands: Iterable[Command]) -> list[str]:
    """Collect ``texture`` strings of all astro bodies, depth-first in order."""
    textures: list[str] = []
    for command in commands:
        parsed = parse_astro_command(command)
        if parsed is None:
            continue
        _name, block = parsed
        for com in block:
            if (
                isinstance(com, PropertyAssignment)
                and com.name == "texture"
                and isinstance(com.value, StringValue)
            ):
                textures.append(com.value.text)
            elif isinstance(com, Invocation):
                textures.extend(scan_textures([com]))
    return textures
