"""Unit tests for parser module."""

import unittest

import pytest

from symcalc_pkg import config
from symcalc_pkg.nodes import Add, Function, Mul, Number, Power, Sub, Variable, render
from symcalc_pkg.parser import (
    format_number,
    is_balanced,
    parse,
    parse_expression,
    replace_identifier,
    split_top_level_commas,
    tokenize,
    validate_input,
)
from symcalc_pkg.types import DepthExceeded, LexError, ParseError, ValidationError


class TestTokenize(unittest.TestCase):
    """Test the tokenizer and implicit multiplication."""

    def test_implicit_multiplication(self):
        self.assertEqual(tokenize("2x+3"), ["2", "*", "x", "+", "3"])

    def test_call_token(self):
        self.assertEqual(tokenize("sin(x)"), ["sin(", "x", ")"])
        self.assertEqual(tokenize("2sin(x)"), ["2", "*", "sin(", "x", ")"])

    def test_adjacent_groups(self):
        self.assertEqual(
            tokenize("(x+1)(x-1)"),
            ["(", "x", "+", "1", ")", "*", "(", "x", "-", "1", ")"],
        )

    def test_whitespace_skipped(self):
        self.assertEqual(tokenize("  2 *  x "), ["2", "*", "x"])

    def test_second_dot_ends_number(self):
        self.assertEqual(tokenize("1.2.3"), ["1.2", ".3"])

    def test_identifier_with_digits(self):
        self.assertEqual(tokenize("x2"), ["x2"])

    def test_unknown_character(self):
        with self.assertRaises(LexError) as ctx:
            tokenize("2$")
        self.assertEqual(ctx.exception.char, "$")
        self.assertEqual(str(ctx.exception), "Unknown character: $")


class TestParse(unittest.TestCase):
    """Test recursive-descent parsing."""

    def test_precedence(self):
        self.assertEqual(
            parse_expression("2x+3"),
            Add(Mul(Number(2.0), Variable("x")), Number(3.0)),
        )

    def test_power_is_right_associative(self):
        self.assertEqual(
            parse_expression("2^3^2"),
            Power(Number(2.0), Power(Number(3.0), Number(2.0))),
        )

    def test_subtraction_is_left_fold(self):
        self.assertEqual(
            parse_expression("5-2-1"),
            Sub(Sub(Number(5.0), Number(2.0)), Number(1.0)),
        )

    def test_unary_minus(self):
        self.assertEqual(parse_expression("-3"), Number(-3.0))
        self.assertEqual(parse_expression("-x"), Mul(Number(-1.0), Variable("x")))

    def test_function_call(self):
        self.assertEqual(
            parse_expression("sin(2x)"),
            Function("sin", (Mul(Number(2.0), Variable("x")),)),
        )

    def test_empty_token_list(self):
        with self.assertRaises(ParseError):
            parse([])

    def test_missing_close_paren(self):
        with self.assertRaises(ParseError) as ctx:
            parse_expression("(x+1")
        self.assertIn("Expected ')'", ctx.exception.message)

    def test_unexpected_end(self):
        with self.assertRaises(ParseError) as ctx:
            parse_expression("x+")
        self.assertEqual(ctx.exception.message, "Unexpected end of input")

    def test_trailing_tokens(self):
        with self.assertRaises(ParseError):
            parse_expression("2 3")

    def test_nesting_limit(self):
        depth = config.MAX_EXPRESSION_DEPTH
        with self.assertRaises(DepthExceeded) as ctx:
            parse_expression("(" * depth + "x" + ")" * depth)
        self.assertEqual(ctx.exception.code, "TOO_DEEP")


class TestHelpers(unittest.TestCase):
    """Test shared text helpers."""

    def test_format_number(self):
        self.assertEqual(format_number(2.0), "2")
        self.assertEqual(format_number(1 / 3), "0.3333")
        self.assertEqual(format_number(-0.0), "0")
        self.assertEqual(format_number(1 / 3, 10), "0.3333333333")

    def test_parentheses_balancing(self):
        self.assertEqual(is_balanced("(1+2)"), (True, None))
        self.assertEqual(is_balanced("(1+2"), (False, 0))
        self.assertEqual(is_balanced("1+2)"), (False, 3))

    def test_split_top_level_commas(self):
        self.assertEqual(split_top_level_commas("f(a,b),c"), ["f(a,b)", "c"])
        self.assertEqual(split_top_level_commas("x^2, 0, 3"), ["x^2", "0", "3"])

    def test_replace_identifier(self):
        self.assertEqual(replace_identifier("x+exp(x)", "x", "(2)"), "(2)+exp((2))")
        self.assertEqual(replace_identifier("x2+x", "x", "(1)"), "x2+(1)")


class TestValidateInput(unittest.TestCase):
    """Test input validation."""

    def test_strips(self):
        self.assertEqual(validate_input("  2+2  "), "2+2")

    def test_empty(self):
        for text in ("", "   "):
            with self.assertRaises(ValidationError) as ctx:
                validate_input(text)
            self.assertEqual(ctx.exception.code, "EMPTY_INPUT")

    def test_input_length_limit(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_input("x" * (config.MAX_INPUT_LENGTH + 1))
        self.assertEqual(ctx.exception.code, "TOO_LONG")

    def test_unbalanced(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_input("(()")
        self.assertEqual(ctx.exception.code, "UNBALANCED")


if __name__ == "__main__":
    unittest.main()


NUMERIC_LITERALS = [
    0,
    7,
    -5,
    2.5,
    -2.5,
    0.1,
    0.30000000000000004,
    123.456,
    10**16,
    2**53 + 1,
    12345678901234567,
    -12345678901234567,
]


@pytest.mark.parametrize("n", NUMERIC_LITERALS)
def test_numeric_literal_round_trip(n):
    """Numbers render back exactly as they were written."""
    assert render(parse(tokenize(str(n)))) == str(n)


def test_large_numbers_never_use_exponent_notation():
    node = parse_expression("10000000000000000+x")
    assert render(node) == "10000000000000000+x"
    assert render(parse_expression(render(node))) == "10000000000000000+x"
    assert render(Number(1e-07)) == "0.0000001"
