"""Plain-data and YAML renderings of Orrery syntax trees for tooling."""

from __future__ import annotations

from io import StringIO

from ruamel.yaml import YAML

from orrery.syntax import (
    BinaryOp,
    BlockArg,
    Command,
    Expression,
    ExprValue,
    FunctionCall,
    Ident,
    Invocation,
    NumberLiteral,
    PropertyAssignment,
    StringArg,
    StringValue,
    VariableDefinition,
)


def expression_to_data(expr: Expression) -> dict:
    if isinstance(expr, Ident):
        return {"kind": "ident", "name": expr.name}
    if isinstance(expr, NumberLiteral):
        return {"kind": "number", "value": expr.value}
    if isinstance(expr, FunctionCall):
        return {
            "kind": "call",
            "name": expr.name,
            "args": [expression_to_data(arg) for arg in expr.args],
        }
    if isinstance(expr, BinaryOp):
        return {
            "kind": type(expr).__name__.lower(),
            "left": expression_to_data(expr.left),
            "right": expression_to_data(expr.right),
        }
    raise TypeError(f"Not an expression node: {expr!r}")


def command_to_data(command: Command) -> dict:
    if isinstance(command, Invocation):
        args: list[object] = []
        for arg in command.args:
            if isinstance(arg, StringArg):
                args.append(arg.text)
            elif isinstance(arg, BlockArg):
                args.append({"block": [command_to_data(c) for c in arg.commands]})
        return {"kind": "invocation", "args": args}
    if isinstance(command, PropertyAssignment):
        if isinstance(command.value, StringValue):
            value: object = command.value.text
        elif isinstance(command.value, ExprValue):
            value = expression_to_data(command.value.expr)
        return {"kind": "property", "name": command.name, "value": value}
    if isinstance(command, VariableDefinition):
        return {
            "kind": "definition",
            "name": command.name,
            "expr": expression_to_data(command.expr),
        }
    raise TypeError(f"Not a command node: {command!r}")


def document_to_data(commands: list[Command]) -> list[dict]:
    return [command_to_data(command) for command in commands]


def render_yaml(data: object) -> str:
    """Render plain data as block-style YAML."""
    yml = YAML(typ="rt")
    yml.allow_unicode = True
    yml.default_flow_style = False
    stream = StringIO()
    yml.dump(data, stream)
    return stream.getvalue()
