"""Lexical primitives shared by the expression and document grammars.

Scanners work directly on the source text: each takes the text and an offset
and returns ``(new_offset, value)`` on success or ``None`` when the input at
that offset does not have the expected shape. ``None`` never consumes input.
Right-shaped but unusable input raises a ``ParseError`` subclass instead.
"""

from __future__ import annotations

import math
import re

from orrery.errors import MalformedLiteralError, UnterminatedStringError

_SPACE_CHARS = " \t"
_NEWLINE_CHARS = "\r\n"

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NUMBER_RE = re.compile(r"[+-]?[0-9.]*[0-9][0-9.]*(?:[eE][+-]?[0-9]+)?")


def skip_whitespace(text: str, pos: int, newlines: bool = False) -> int:
    """Skip spaces and tabs (and line breaks when ``newlines`` is set)."""
    chars = _SPACE_CHARS + _NEWLINE_CHARS if newlines else _SPACE_CHARS
    end = len(text)
    while pos < end and text[pos] in chars:
        pos += 1
    return pos


def skip_newlines(text: str, pos: int) -> int | None:
    """Match ``space* [\\r\\n]+ space*``; None if there is no line break."""
    start = skip_whitespace(text, pos)
    end = start
    while end < len(text) and text[end] in _NEWLINE_CHARS:
        end = skip_whitespace(text, end + 1)
    if end == start:
        return None
    return end


def scan_identifier(text: str, pos: int) -> tuple[int, str] | None:
    m = _IDENTIFIER_RE.match(text, pos)
    if m is None:
        return None
    return m.end(), m.group(0)


def scan_number(text: str, pos: int) -> tuple[int, float] | None:
    """Scan a float-shaped token and convert it.

    Raises:
        MalformedLiteralError: The token looks like a number but ``float()``
            rejects it (``1.2.3``) or it overflows (``1e999``).
    """
    m = _NUMBER_RE.match(text, pos)
    if m is None:
        return None
    literal = m.group(0)
    try:
        value = float(literal)
    except ValueError:
        raise MalformedLiteralError(f"Malformed number literal {literal!r}", position=pos)
    if math.isinf(value):
        raise MalformedLiteralError(f"Number literal {literal!r} is out of range", position=pos)
    return m.end(), value


def scan_quoted_string(text: str, pos: int) -> tuple[int, str] | None:
    """Scan ``"..."`` with no escape processing."""
    if pos >= len(text) or text[pos] != '"':
        return None
    close = text.find('"', pos + 1)
    if close < 0:
        raise UnterminatedStringError("Unterminated string literal", position=pos)
    return close + 1, text[pos + 1 : close]


def line_column(text: str, pos: int) -> tuple[int, int]:
    """Return the 1-based (line, column) of an offset."""
    pos = min(pos, len(text))
    line = text.count("\n", 0, pos) + 1
    column = pos - (text.rfind("\n", 0, pos) + 1) + 1
    return line, column
