"""Recursive-descent parser for Orrery documents and expressions.

The parser works directly on the source text. Every grammar rule is a method
taking an offset and returning ``(new_offset, node)`` on success or ``None``
on a structural mismatch, in which case nothing has been consumed and the
caller is free to try the next alternative. Input that has the right shape
but cannot be used (a malformed number, an unterminated string or block,
nesting beyond the depth limit) raises a ``ParseError`` subclass instead and
is never backtracked over.

Grammar::

    document      := command*
    command       := newlines? (definition | property | invocation) newlines?
    definition    := identifier ':=' expr
    property      := identifier ':' (quoted_string | expr)
    invocation    := arg+
    arg           := block | identifier
    block         := '{' command* '}'

    expr          := term (('+' | '-') term)*
    term          := factor (('*' | '/') factor)*
    factor        := number | function_call | identifier | '(' expr ')'
    function_call := identifier '(' (expr ','?)* ')'
"""

from __future__ import annotations

from pathlib import Path

from orrery.errors import DepthLimitExceededError, ParseError, UnterminatedBlockError
from orrery.lexer import (
    line_column,
    scan_identifier,
    scan_number,
    scan_quoted_string,
    skip_newlines,
    skip_whitespace,
)
from orrery.syntax import (
    Add,
    BlockArg,
    Command,
    Div,
    Expression,
    ExprValue,
    FunctionCall,
    Ident,
    Invocation,
    Mul,
    NumberLiteral,
    PropertyAssignment,
    StringArg,
    StringValue,
    Sub,
    VariableDefinition,
)

DEFAULT_MAX_DEPTH = 64

_ADDITIVE = {"+": Add, "-": Sub}
_MULTIPLICATIVE = {"*": Mul, "/": Div}

_Result = tuple[int, object] | None


def parse_expression(text: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Expression:
    """Parse a standalone arithmetic expression.

    Line breaks are treated as whitespace. The whole text must be consumed.

    Raises:
        ParseError: On syntax errors or nesting deeper than ``max_depth``.
    """
    parser = _Parser(text, max_depth, multiline=True)
    return parser.run(parser.parse_expression)


def parse_document(source: str | Path, *, max_depth: int = DEFAULT_MAX_DEPTH) -> list[Command]:
    """Parse an Orrery document from a string or file path.

    Args:
        source: Document text, or a ``Path`` to a UTF-8 file.
        max_depth: Maximum nesting of blocks and parentheses.

    Returns:
        Top-level commands in document order.

    Raises:
        ParseError: If the file cannot be read or the text is not a valid
            document. Subclasses identify unterminated blocks and strings,
            malformed numbers and exceeded nesting depth.
    """
    text = _read_source_text(source)
    parser = _Parser(text, max_depth)
    return parser.run(parser.parse_document)


def _read_source_text(source: str | Path) -> str:
    """Read document text from a path or treat input as raw text."""
    if isinstance(source, Path):
        try:
            return source.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ParseError(f"Cannot read file: {e}") from e
    return source


class _Parser:
    """Backtracking parser state for one source text."""

    def __init__(self, text: str, max_depth: int, multiline: bool = False):
        self.text = text
        self.max_depth = max_depth
        self._depth = 0
        # Inside parentheses line breaks are plain whitespace.
        self._paren = 1 if multiline else 0
        self._furthest = 0
        self._expected: set[str] = set()

    # -- driver -----------------------------------------------------------

    def run(self, rule):
        """Run a top-level rule, attaching line/column to any ParseError."""
        try:
            return rule()
        except ParseError as e:
            if e.line is not None or e.position is None:
                raise
            line, column = line_column(self.text, e.position)
            raise type(e)(str(e), e.position, line, column) from None
        except RecursionError:
            # A max_depth above what the interpreter stack can hold.
            line, column = line_column(self.text, self._furthest)
            raise DepthLimitExceededError(
                f"Nesting too deep for the interpreter stack (max_depth={self.max_depth})",
                self._furthest,
                line,
                column,
            ) from None

    def parse_expression(self) -> Expression:
        result = self.expr(0)
        end = skip_whitespace(self.text, result[0] if result else 0, newlines=True)
        if result is None:
            self._fail(end, "expression")
            raise self._error()
        if end != len(self.text):
            self._fail(end, "operator")
            raise self._error()
        return result[1]

    def parse_document(self) -> list[Command]:
        pos, commands = self.commands(0)
        end = skip_whitespace(self.text, pos, newlines=True)
        if end == len(self.text):
            return commands
        if self.text[end] == "}" and self._furthest <= end:
            raise ParseError("Unexpected '}' without matching '{'", position=end)
        self._fail(end, "command")
        raise self._error()

    # -- bookkeeping ------------------------------------------------------

    def _fail(self, pos: int, expected: str) -> None:
        """Record a failed alternative for diagnostics and signal no match."""
        if pos > self._furthest:
            self._furthest = pos
            self._expected = {expected}
        elif pos == self._furthest:
            self._expected.add(expected)
        return None

    def _error(self) -> ParseError:
        pos = self._furthest
        found = "end of input" if pos >= len(self.text) else repr(self.text[pos])
        expected = " or ".join(sorted(self._expected))
        return ParseError(f"Unexpected {found}, expected {expected}", position=pos)

    def _enter(self, pos: int) -> None:
        self._depth += 1
        if self._depth > self.max_depth:
            raise DepthLimitExceededError(
                f"Nesting deeper than {self.max_depth} levels", position=pos
            )

    def _leave(self) -> None:
        self._depth -= 1

    def _ws(self, pos: int) -> int:
        return skip_whitespace(self.text, pos, newlines=self._paren > 0)

    def _peek(self, pos: int, chars: str) -> bool:
        return pos < len(self.text) and self.text[pos] in chars

    # -- expressions ------------------------------------------------------

    def expr(self, pos: int) -> _Result:
        return self._fold(pos, self.term, _ADDITIVE)

    def term(self, pos: int) -> _Result:
        return self._fold(pos, self.factor, _MULTIPLICATIVE)

    def _fold(self, pos: int, operand, operators: dict) -> _Result:
        """Parse ``operand (op operand)*`` into a left-leaning tree."""
        first = operand(pos)
        if first is None:
            return None
        pos, node = first
        while True:
            op_pos = self._ws(pos)
            if not self._peek(op_pos, "".join(operators)):
                self._fail(op_pos, "operator")
                return pos, node
            rhs = operand(op_pos + 1)
            if rhs is None:
                return pos, node
            pos, right = rhs
            node = operators[self.text[op_pos]](node, right)

    def factor(self, pos: int) -> _Result:
        start = self._ws(pos)
        for alternative in (self._number, self._function_call, self._ident, self._parens):
            result = alternative(start)
            if result is not None:
                end, node = result
                return self._ws(end), node
        return self._fail(start, "expression")

    def _number(self, pos: int) -> _Result:
        scanned = scan_number(self.text, pos)
        if scanned is None:
            return None
        end, value = scanned
        return end, NumberLiteral(value)

    def _ident(self, pos: int) -> _Result:
        scanned = scan_identifier(self.text, pos)
        if scanned is None:
            return None
        end, name = scanned
        return end, Ident(name)

    def _function_call(self, pos: int) -> _Result:
        scanned = scan_identifier(self.text, pos)
        if scanned is None:
            return None
        pos, name = scanned
        pos = self._ws(pos)
        if not self._peek(pos, "("):
            return None
        self._enter(pos)
        self._paren += 1
        try:
            pos = self._ws(pos + 1)
            args = []
            while True:
                result = self.expr(pos)
                if result is None:
                    break
                pos, arg = result
                args.append(arg)
                pos = self._ws(pos)
                if self._peek(pos, ","):
                    pos = self._ws(pos + 1)
            self._expect_close(pos)
        finally:
            self._paren -= 1
            self._leave()
        return pos + 1, FunctionCall(name, tuple(args))

    def _expect_close(self, pos: int) -> None:
        """Require the ')' of a call or group whose '(' has already matched.

        Once the opening parenthesis is seen no other alternative can consume
        it, so a missing close is reported immediately instead of retried.
        """
        if not self._peek(pos, ")"):
            self._fail(pos, "')'")
            raise self._error()

    def _parens(self, pos: int) -> _Result:
        if not self._peek(pos, "("):
            return None
        self._enter(pos)
        self._paren += 1
        try:
            result = self.expr(pos + 1)
            if result is None:
                return None
            end, node = result
            end = self._ws(end)
            self._expect_close(end)
        finally:
            self._paren -= 1
            self._leave()
        return end + 1, node

    # -- commands ---------------------------------------------------------

    def commands(self, pos: int) -> tuple[int, list[Command]]:
        commands: list[Command] = []
        while True:
            result = self.command(pos)
            if result is None:
                return pos, commands
            pos, command = result
            commands.append(command)

    def command(self, pos: int) -> _Result:
        start = skip_newlines(self.text, pos)
        start = skip_whitespace(self.text, pos if start is None else start)
        for alternative in (self._definition, self._property, self._invocation):
            result = alternative(start)
            if result is not None:
                end, command = result
                after = skip_newlines(self.text, end)
                return (end if after is None else after), command
        return None

    def _assignment_head(self, pos: int, operator: str) -> tuple[int, str] | None:
        """Match ``identifier <operator>`` and skip the spaces after it."""
        scanned = scan_identifier(self.text, pos)
        if scanned is None:
            return self._fail(pos, "identifier")
        end, name = scanned
        end = skip_whitespace(self.text, end)
        if not self.text.startswith(operator, end):
            return self._fail(end, repr(operator))
        return skip_whitespace(self.text, end + len(operator)), name

    def _definition(self, pos: int) -> _Result:
        head = self._assignment_head(pos, ":=")
        if head is None:
            return None
        end, name = head
        result = self.expr(end)
        if result is None:
            return None
        end, expr = result
        return end, VariableDefinition(name, expr)

    def _property(self, pos: int) -> _Result:
        head = self._assignment_head(pos, ":")
        if head is None:
            return None
        end, name = head
        scanned = scan_quoted_string(self.text, end)
        if scanned is not None:
            end, text = scanned
            return skip_whitespace(self.text, end), PropertyAssignment(name, StringValue(text))
        result = self.expr(end)
        if result is None:
            return None
        end, expr = result
        return end, PropertyAssignment(name, ExprValue(expr))

    def _invocation(self, pos: int) -> _Result:
        args = []
        while True:
            start = skip_whitespace(self.text, pos)
            arg = self._block(start)
            if arg is None:
                arg = self._identifier_arg(start)
            if arg is None:
                break
            pos, node = arg
            args.append(node)
            pos = skip_whitespace(self.text, pos)
        if not args:
            return None
        return pos, Invocation(tuple(args))

    def _identifier_arg(self, pos: int) -> _Result:
        scanned = scan_identifier(self.text, pos)
        if scanned is None:
            return self._fail(pos, "identifier")
        end, text = scanned
        return end, StringArg(text)

    def _block(self, pos: int) -> _Result:
        if not self._peek(pos, "{"):
            return self._fail(pos, "'{'")
        self._enter(pos)
        try:
            end, commands = self.commands(pos + 1)
            end = skip_whitespace(self.text, end, newlines=True)
            if end >= len(self.text):
                raise UnterminatedBlockError("Block is never closed", position=pos)
            if self.text[end] != "}":
                return self._fail(end, "'}'")
        finally:
            self._leave()
        return end + 1, BlockArg(tuple(commands))
