"""Click CLI entry point for Orrery tooling."""

from __future__ import annotations

import json
import math
from pathlib import Path

import click

from orrery import __version__
from orrery.dump import document_to_data, render_yaml
from orrery.errors import OrreryError
from orrery.evaluator import evaluate
from orrery.orbit import body_positions
from orrery.parser import DEFAULT_MAX_DEPTH, parse_document, parse_expression
from orrery.scene import AstroBody, load_bodies, scan_textures
from orrery.warning_policy import WarningPolicy, describe_codes


def _build_warning_policy(
    warn_as_error: str | None, suppress_warning: str | None
) -> WarningPolicy | None:
    """Parse CLI warning options into a WarningPolicy, or None if unset."""
    try:
        return WarningPolicy.from_options(warn_as_error, suppress_warning)
    except ValueError as e:
        raise click.ClickException(str(e)) from e


def _parse_define(raw: str) -> tuple[str, str]:
    name, sep, expression = raw.partition("=")
    if not sep or not name.strip():
        raise click.UsageError(f"Invalid -D value {raw!r}, expected NAME=EXPRESSION")
    return name.strip(), expression


_max_depth_option = click.option(
    "--max-depth",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_DEPTH,
    show_default=True,
    help="Maximum nesting of blocks and parentheses.",
)


@click.group()
@click.version_option(version=__version__, prog_name="orrery")
def main() -> None:
    """Orrery: a small description language for orbiting bodies."""


@main.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "yaml"]),
    default="yaml",
    show_default=True,
    help="Output format for the command tree.",
)
@_max_depth_option
def parse(input_file: Path, output_format: str = "yaml", max_depth: int = DEFAULT_MAX_DEPTH) -> None:
    """Parse a document and print its command tree."""
    try:
        commands = parse_document(input_file, max_depth=max_depth)
    except OrreryError as e:
        raise click.ClickException(str(e))

    data = document_to_data(commands)
    if output_format == "json":
        click.echo(json.dumps(data, indent=2))
    else:
        click.echo(render_yaml(data), nl=False)


@main.command(name="eval")
@click.argument("expression")
@click.option(
    "-D",
    "--define",
    "defines",
    multiple=True,
    help="Define NAME=EXPRESSION before evaluating. May be repeated; applied in order.",
)
def eval_command(expression: str, defines: tuple[str, ...] = ()) -> None:
    """Evaluate a single arithmetic expression."""
    environment: dict[str, float] = {}
    try:
        for raw in defines:
            name, body = _parse_define(raw)
            environment[name] = evaluate(parse_expression(body), environment)
        result = evaluate(parse_expression(expression), environment)
    except OrreryError as e:
        raise click.ClickException(str(e))
    click.echo(repr(result))


@main.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Inspection output format.",
)
@click.option(
    "--time",
    "time",
    type=float,
    default=None,
    help="Also report body positions at this time (seconds).",
)
@_max_depth_option
@click.option(
    "--warn-as-error",
    "warn_as_error",
    type=str,
    default=None,
    help=f"Comma-separated warning codes to treat as errors. Codes: {describe_codes()}.",
)
@click.option(
    "--suppress-warning",
    "suppress_warning",
    type=str,
    default=None,
    help="Comma-separated warning codes to silence (e.g. W01,W03).",
)
def inspect(
    input_file: Path,
    output_format: str = "text",
    time: float | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
    warn_as_error: str | None = None,
    suppress_warning: str | None = None,
) -> None:
    """Evaluate a document and report its astro bodies."""
    warning_policy = _build_warning_policy(warn_as_error, suppress_warning)

    try:
        commands = parse_document(input_file, max_depth=max_depth)
        environment: dict[str, float] = {}
        bodies = load_bodies(commands, environment, policy=warning_policy)
    except OrreryError as e:
        raise click.ClickException(str(e))

    payload: dict[str, object] = {
        "bodies": [body.model_dump() for body in bodies],
        "textures": scan_textures(commands),
        "environment": environment,
    }
    if time is not None:
        payload["time"] = time
        payload["positions"] = {
            path: [float(v) for v in position]
            for path, position in body_positions(bodies, time).items()
        }

    if output_format == "json":
        click.echo(json.dumps(_json_safe(payload), indent=2, allow_nan=False))
    else:
        click.echo(render_text(bodies, payload), nl=False)


def _json_safe(value):
    """Replace non-finite floats with "inf", "-inf" or "nan" so the output is strict JSON."""
    if isinstance(value, float) and not math.isfinite(value):
        return repr(value)
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_json_safe(item) for item in value]
    return value


def render_text(bodies: list[AstroBody], payload: dict) -> str:
    """Render human-readable inspection output."""
    lines: list[str] = ["bodies:"]
    if bodies:
        for body in bodies:
            _render_body(body, lines, indent=1)
    else:
        lines.append("  []")

    lines.append("textures:")
    if payload["textures"]:
        for texture in payload["textures"]:
            lines.append(f"  - {texture}")
    else:
        lines.append("  []")

    lines.append("environment:")
    environment = payload["environment"]
    if environment:
        for name, value in environment.items():
            lines.append(f"  {name}: {value:.6g}")
    else:
        lines.append("  {}")

    if "positions" in payload:
        lines.append(f"positions (t={payload['time']:.6g}):")
        for path, position in payload["positions"].items():
            lines.append(f"  {path}: {_fmt_vec(position)}")
    return "\n".join(lines) + "\n"


def _render_body(body: AstroBody, lines: list[str], indent: int) -> None:
    pad = "  " * indent
    lines.append(f"{pad}- name: {body.name}")
    lines.append(f"{pad}  radius: {body.radius:.6g}")
    lines.append(f"{pad}  semimajor_axis: {body.semimajor_axis:.6g}")
    lines.append(f"{pad}  omega: {body.omega:.6g}")
    lines.append(f"{pad}  rotation_omega: {body.rotation_omega:.6g}")
    if body.texture is not None:
        lines.append(f"{pad}  texture: {body.texture}")
    if body.children:
        lines.append(f"{pad}  children:")
        for child in body.children:
            _render_body(child, lines, indent + 2)


def _fmt_vec(values: list[float]) -> str:
    return "[" + ", ".join(f"{v:.6g}" for v in values) + "]"
