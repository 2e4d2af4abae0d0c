"""Custom exception hierarchy for the Orrery description language."""

from __future__ import annotations


class OrreryError(Exception):
    """Base exception for all Orrery errors."""


class ParseError(OrreryError):
    """Raised when a document or expression cannot be parsed.

    ``position`` is the character offset the parser was looking at; ``line``
    and ``column`` are 1-based and filled in when the source text is known.
    """

    def __init__(
        self,
        message: str,
        position: int | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.position = position
        self.line = line
        self.column = column
        if line is not None and column is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class MalformedLiteralError(ParseError):
    """A token has the shape of a number but is not a usable float."""


class UnterminatedBlockError(ParseError):
    """A ``{`` has no matching ``}`` before the end of input."""


class UnterminatedStringError(ParseError):
    """A ``"`` has no matching closing quote."""


class DepthLimitExceededError(ParseError):
    """Blocks or parentheses are nested deeper than the configured limit."""


class EvaluationError(OrreryError):
    """Raised when an expression cannot be evaluated."""


class UnknownNameError(EvaluationError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown name {name!r}")


class UnknownFunctionError(EvaluationError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown function {name!r}")


class ArityMismatchError(EvaluationError):
    def __init__(self, name: str, expected: int, got: int) -> None:
        self.name = name
        self.expected = expected
        self.got = got
        super().__init__(f"Function {name!r} expects {expected} arguments, got {got}")


class ValidationError(OrreryError):
    """Raised when a parsed document is structurally valid but semantically wrong."""
