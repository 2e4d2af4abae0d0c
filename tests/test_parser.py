"""Tests for the expression and document grammars."""

import time

import pytest

from orrery.errors import (
    DepthLimitExceededError,
    MalformedLiteralError,
    ParseError,
    UnterminatedBlockError,
    UnterminatedStringError,
)
from orrery.parser import parse_document, parse_expression
from orrery.syntax import (
    Add,
    BlockArg,
    Div,
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
    format_expression,
)


def num(value):
    return NumberLiteral(float(value))


class TestParseExpression:
    def test_number(self):
        assert parse_expression("123.45") == num(123.45)

    def test_precedence(self):
        assert parse_expression("2 * 3 + 4") == Add(Mul(num(2), num(3)), num(4))

    def test_parentheses(self):
        assert parse_expression("2 * (3 + 4)") == Mul(num(2), Add(num(3), num(4)))

    def test_subtraction_is_left_associative(self):
        assert parse_expression("8 - 4 - 2") == Sub(Sub(num(8), num(4)), num(2))

    def test_division_is_left_associative(self):
        assert parse_expression("16 / 4 / 2") == Div(Div(num(16), num(4)), num(2))

    def test_binary_minus_without_spaces(self):
        assert parse_expression("x-1") == Sub(Ident("x"), num(1))

    def test_negative_literal_operand(self):
        assert parse_expression("2 * -3") == Mul(num(2), num(-3))

    def test_identifier(self):
        assert parse_expression("world") == Ident("world")

    def test_function_call(self):
        assert parse_expression("pow(2, 10)") == FunctionCall("pow", (num(2), num(10)))

    def test_function_call_without_args(self):
        assert parse_expression("f()") == FunctionCall("f", ())

    def test_trailing_comma_tolerated(self):
        assert parse_expression("pow(2, 3,)") == FunctionCall("pow", (num(2), num(3)))

    def test_space_before_call_parenthesis(self):
        assert parse_expression("sin (x)") == FunctionCall("sin", (Ident("x"),))

    def test_nested_calls(self):
        assert parse_expression("sqrt(pow(x, 2))") == FunctionCall(
            "sqrt", (FunctionCall("pow", (Ident("x"), num(2))),)
        )

    def test_chained_operators(self):
        expr = parse_expression(" + ".join(["1"] * 200))
        depth = 0
        while isinstance(expr, Add):
            depth += 1
            expr = expr.left
        assert depth == 199

    def test_multiline(self):
        assert parse_expression("1 +\n 2") == Add(num(1), num(2))

    def test_surrounding_whitespace(self):
        assert parse_expression("  x  ") == Ident("x")

    def test_empty_input(self):
        with pytest.raises(ParseError, match="expected expression"):
            parse_expression("")

    def test_dangling_operator(self):
        with pytest.raises(ParseError, match="end of input") as excinfo:
            parse_expression("1 +")
        assert excinfo.value.position == 3

    def test_trailing_garbage(self):
        with pytest.raises(ParseError, match="Unexpected"):
            parse_expression("1 2")

    def test_unclosed_parenthesis(self):
        with pytest.raises(ParseError, match=r"'\)'"):
            parse_expression("(1 + 2")

    def test_unclosed_call_reports_missing_parenthesis(self):
        with pytest.raises(ParseError, match=r"end of input, expected '\)'") as excinfo:
            parse_expression("pow(2, sqrt(4)")
        assert excinfo.value.column == 15

    def test_unclosed_nested_calls_fail_fast(self):
        start = time.perf_counter()
        with pytest.raises(ParseError):
            parse_expression("f(" * 40 + "1")
        assert time.perf_counter() - start < 1.0

    def test_malformed_number(self):
        with pytest.raises(MalformedLiteralError):
            parse_expression("1 + 1.2.3")

    def test_nesting_within_limit(self):
        text = "(" * 30 + "1" + ")" * 30
        assert parse_expression(text) == num(1)

    def test_nesting_beyond_limit(self):
        text = "(" * 100 + "1" + ")" * 100
        with pytest.raises(DepthLimitExceededError):
            parse_expression(text)

    def test_custom_depth_limit(self):
        with pytest.raises(DepthLimitExceededError):
            parse_expression("sqrt(sqrt(sqrt(1)))", max_depth=2)

    def test_depth_beyond_interpreter_stack(self):
        text = "(" * 400 + "1" + ")" * 400
        with pytest.raises(DepthLimitExceededError, match="interpreter stack"):
            parse_expression(text, max_depth=1000)

    def test_format_round_trip(self):
        expr = parse_expression("1 + 2 * x - atan2(y, 3) / 4")
        assert parse_expression(format_expression(expr)) == expr

    def test_format_expression(self):
        assert format_expression(parse_expression("1 + 2 * x")) == "(1.0 + (2.0 * x))"


class TestParseCommands:
    def test_identifier_property(self):
        assert parse_document("hello: world") == [
            PropertyAssignment("hello", ExprValue(Ident("world")))
        ]

    def test_string_property(self):
        assert parse_document('hello: "world"') == [
            PropertyAssignment("hello", StringValue("world"))
        ]

    def test_expression_property(self):
        assert parse_document("radius: 2 * r") == [
            PropertyAssignment("radius", ExprValue(Mul(num(2), Ident("r"))))
        ]

    def test_definition(self):
        assert parse_document("au := 1.5") == [VariableDefinition("au", num(1.5))]

    def test_definition_without_spaces(self):
        assert parse_document("au:=1.5") == [VariableDefinition("au", num(1.5))]

    def test_bare_invocation(self):
        assert parse_document("p") == [Invocation((StringArg("p"),))]

    def test_block(self):
        assert parse_document("a {p}") == [
            Invocation((StringArg("a"), BlockArg((Invocation((StringArg("p"),)),))))
        ]

    def test_multiline_block(self):
        text = "a  {\n            p\n        }"
        assert parse_document(text) == [
            Invocation((StringArg("a"), BlockArg((Invocation((StringArg("p"),)),))))
        ]

    def test_astro_declaration(self):
        assert parse_document("astro Moon {\n radius: 0.5\n}") == [
            Invocation(
                (
                    StringArg("astro"),
                    StringArg("Moon"),
                    BlockArg((PropertyAssignment("radius", ExprValue(num(0.5))),)),
                )
            )
        ]

    def test_leading_newline(self):
        text = "\nastro Moon {\n    radius: 0.5\n}"
        assert len(parse_document(text)) == 1

    def test_inline_block(self):
        (command,) = parse_document("astro Moon { radius: 0.5 }")
        assert command.args[2] == BlockArg((PropertyAssignment("radius", ExprValue(num(0.5))),))

    def test_empty_blocks(self):
        assert parse_document("a {}\nb {\n}") == [
            Invocation((StringArg("a"), BlockArg(()))),
            Invocation((StringArg("b"), BlockArg(()))),
        ]

    def test_nested_blocks(self):
        (command,) = parse_document("a {\n b {\n  c {\n   x: 1\n  }\n }\n}")
        inner = command.args[1].commands[0].args[1].commands[0].args[1]
        assert inner == BlockArg((PropertyAssignment("x", ExprValue(num(1))),))

    def test_document_order(self):
        commands = parse_document("x := 1\ny: x\nastro A {}\nz: 3\n")
        assert [type(c).__name__ for c in commands] == [
            "VariableDefinition",
            "PropertyAssignment",
            "Invocation",
            "PropertyAssignment",
        ]

    def test_blank_lines_and_crlf(self):
        commands = parse_document("a: 1\r\n\r\n\r\nb: 2\r\n")
        assert [c.name for c in commands] == ["a", "b"]

    def test_call_arguments_may_span_lines(self):
        assert parse_document("x: pow(2,\n   3)") == [
            PropertyAssignment("x", ExprValue(FunctionCall("pow", (num(2), num(3)))))
        ]

    def test_line_break_ends_expression(self):
        with pytest.raises(ParseError):
            parse_document("a: 1\n- 2")

    def test_empty_document(self):
        assert parse_document("") == []
        assert parse_document("\n\n  \n") == []

    def test_file_source(self, solar_system_file):
        commands = parse_document(solar_system_file)
        assert len(commands) == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(ParseError, match="Cannot read"):
            parse_document(tmp_path / "missing.orrery")


class TestParseErrors:
    def test_unterminated_block(self):
        with pytest.raises(UnterminatedBlockError) as excinfo:
            parse_document("astro Moon {\n radius: 0.5\n")
        assert excinfo.value.line == 1
        assert excinfo.value.column == 12

    def test_unterminated_nested_block(self):
        with pytest.raises(UnterminatedBlockError):
            parse_document("a {\n b {\n }\n")

    def test_unterminated_string(self):
        with pytest.raises(UnterminatedStringError) as excinfo:
            parse_document('x: 1\ntexture: "moon.jpg\n')
        assert excinfo.value.line == 2
        assert excinfo.value.column == 10

    def test_malformed_number(self):
        with pytest.raises(MalformedLiteralError) as excinfo:
            parse_document("x: 1.2.3")
        assert (excinfo.value.line, excinfo.value.column) == (1, 4)

    def test_stray_closing_brace(self):
        with pytest.raises(ParseError, match="Unexpected '}'"):
            parse_document("a: 1\n}")

    def test_reports_furthest_failure(self):
        with pytest.raises(ParseError) as excinfo:
            parse_document("astro Moon {\n radius: 0.5\n ) \n}")
        assert (excinfo.value.line, excinfo.value.column) == (3, 2)
        assert "')'" in str(excinfo.value)

    def test_property_without_value(self):
        with pytest.raises(ParseError, match="line 1"):
            parse_document("hello:")

    def test_deeply_nested_blocks(self):
        with pytest.raises(DepthLimitExceededError):
            parse_document("a {" * 500)

    def test_depth_limit_is_configurable(self):
        text = "a {" * 3 + "}" * 3
        assert len(parse_document(text, max_depth=3)) == 1
        with pytest.raises(DepthLimitExceededError):
            parse_document(text, max_depth=2)

    def test_depth_limit_above_interpreter_stack(self):
        text = "a " + "{" * 400 + "}" * 400
        with pytest.raises(DepthLimitExceededError, match="interpreter stack") as excinfo:
            parse_document(text, max_depth=1000)
        assert excinfo.value.line == 1

    def test_unclosed_calls_in_property_fail_fast(self):
        start = time.perf_counter()
        with pytest.raises(ParseError, match=r"expected '\)'"):
            parse_document("radius: " + "sqrt(" * 24 + "1\n")
        assert time.perf_counter() - start < 1.0
