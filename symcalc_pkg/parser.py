"""Tokenizer, recursive-descent parser and text helpers.

Pipeline: ``tokenize(text)`` produces a flat token list with implicit
multiplication made explicit, ``parse(tokens)`` turns it into a tree of
:mod:`symcalc_pkg.nodes`. The remaining helpers (``validate_input``,
``split_top_level_commas``, ``replace_identifier``, ``format_number``) are
shared by the dispatcher and the text-pattern modules.
"""

from __future__ import annotations

import re
from typing import Any

from . import config
from .nodes import Add, Div, Function, Mul, Node, Number, Power, Sub, Variable
from .types import DepthExceeded, LexError, ParseError, ValidationError

OPERATORS = frozenset("+-*/^()")


def _is_digit(char: str) -> bool:
    return char.isascii() and char.isdigit()


def _is_ident_start(char: str) -> bool:
    return char.isascii() and char.isalpha()


def _is_ident_char(char: str) -> bool:
    return char.isascii() and char.isalnum()


def _ends_operand(token: str) -> bool:
    return token == ")" or (token not in OPERATORS and not token.endswith("("))


def _begins_operand(token: str) -> bool:
    return token == "(" or _is_ident_start(token[0])


def tokenize(text: str) -> list[str]:
    """Split text into tokens, inserting ``*`` for implicit multiplication.

    A name written directly before ``(`` becomes a single call token such as
    ``"sin("``.

    Raises:
        LexError: for a character that is not whitespace, a digit, a dot,
            an ASCII letter or one of ``+-*/^()``.

    Example:
        >>> tokenize("2x+3")
        ['2', '*', 'x', '+', '3']
    """
    raw: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        char = text[i]
        if char.isspace():
            i += 1
        elif _is_digit(char) or char == ".":
            start = i
            seen_dot = False
            while i < n and (_is_digit(text[i]) or (text[i] == "." and not seen_dot)):
                seen_dot = seen_dot or text[i] == "."
                i += 1
            raw.append(text[start:i])
        elif _is_ident_start(char):
            start = i
            while i < n and _is_ident_char(text[i]):
                i += 1
            if i < n and text[i] == "(":
                i += 1
            raw.append(text[start:i])
        elif char in OPERATORS:
            raw.append(char)
            i += 1
        else:
            raise LexError(char)

    tokens: list[str] = []
    for token in raw:
        if tokens and _ends_operand(tokens[-1]) and _begins_operand(token):
            tokens.append("*")
        tokens.append(token)
    return tokens


def _negated(literal: str | None) -> str | None:
    if literal is None:
        return None
    return literal[1:] if literal.startswith("-") else f"-{literal}"


class _Parser:
    """Recursive-descent parser over a token list.

    Grammar, highest precedence first::

        term       := number | name | name( expression ) | ( expression )
        factor     := - factor | term [ ^ factor ]
        term_chain := factor { (* | /) factor }
        expression := term_chain { (+ | -) term_chain }
    """

    def __init__(self, tokens: list[str]):
        self.tokens = tokens
        self.pos = 0
        self.depth = 0

    def peek(self) -> str | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def advance(self) -> str:
        token = self.peek()
        if token is None:
            raise ParseError("Unexpected end of input")
        self.pos += 1
        return token

    def expect(self, token: str) -> None:
        found = self.peek()
        if found != token:
            if found is None:
                raise ParseError(f"Expected '{token}' but input ended")
            raise ParseError(f"Expected '{token}' but found '{found}'")
        self.pos += 1

    def _enter(self) -> None:
        self.depth += 1
        if self.depth > config.MAX_EXPRESSION_DEPTH:
            raise DepthExceeded(config.MAX_EXPRESSION_DEPTH)

    def expression(self) -> Node:
        self._enter()
        node = self.term_chain()
        while self.peek() in ("+", "-"):
            op = self.advance()
            right = self.term_chain()
            node = Add(node, right) if op == "+" else Sub(node, right)
        self.depth -= 1
        return node

    def term_chain(self) -> Node:
        node = self.factor()
        while self.peek() in ("*", "/"):
            op = self.advance()
            right = self.factor()
            node = Mul(node, right) if op == "*" else Div(node, right)
        return node

    def factor(self) -> Node:
        self._enter()
        if self.peek() == "-":
            self.advance()
            operand = self.factor()
            if isinstance(operand, Number):
                node: Node = Number(-operand.value, _negated(operand.literal))
            else:
                node = Mul(Number(-1.0), operand)
        else:
            node = self.term()
            if self.peek() == "^":
                self.advance()
                node = Power(node, self.factor())
        self.depth -= 1
        return node

    def term(self) -> Node:
        token = self.advance()
        if _is_digit(token[0]) or token[0] == ".":
            try:
                value = float(token)
            except ValueError:
                raise ParseError(f"Invalid number: {token}")
            if token.isdigit() and int(token) != value:
                return Number(value, str(int(token)))
            return Number(value)
        if token.endswith("(") and len(token) > 1:
            arg = self.expression()
            self.expect(")")
            return Function(token[:-1], (arg,))
        if _is_ident_start(token[0]):
            return Variable(token)
        if token == "(":
            node = self.expression()
            self.expect(")")
            return node
        raise ParseError(f"Unexpected token: {token}")


def parse(tokens: list[str]) -> Node:
    """Parse a token list into an expression tree.

    Raises:
        ParseError: on trailing tokens, a missing ``)``, an unexpected token
            or input that ends mid-expression.
        DepthExceeded: when nesting passes MAX_EXPRESSION_DEPTH.
    """
    if not tokens:
        raise ParseError("Empty expression")
    parser = _Parser(tokens)
    node = parser.expression()
    if parser.peek() is not None:
        raise ParseError(f"Unexpected trailing token: {parser.peek()}")
    return node


def parse_expression(text: str) -> Node:
    """Tokenize and parse text in one step."""
    return parse(tokenize(text))


def format_number(val: Any, precision: int | None = None) -> str:
    """Format a numeric value with specified precision.

    Args:
        val: Numeric value to format
        precision: Number of significant digits (default: OUTPUT_PRECISION)

    Returns:
        Formatted string representation of the number; ``-0`` prints as ``0``
    """
    if precision is None:
        precision = config.OUTPUT_PRECISION
    try:
        fmt = "{:." + str(int(precision)) + "g}"
        text = fmt.format(float(val) + 0.0)
    except (ValueError, TypeError, OverflowError):
        return str(val)
    if text == "-0":
        return "0"
    return text


def is_balanced(input_str: str) -> tuple[bool, int | None]:
    """Check if parentheses are balanced. Returns (is_balanced, error_position)."""
    stack: list[int] = []
    for i, char in enumerate(input_str):
        if char == "(":
            stack.append(i)
        elif char == ")":
            if not stack:
                return False, i
            stack.pop()
    if stack:
        return False, stack[0]
    return True, None


def validate_input(input_str: str) -> str:
    """Strip and validate one line of input.

    Raises:
        ValidationError: with code EMPTY_INPUT, TOO_LONG or UNBALANCED.
    """
    text = input_str.strip() if input_str else ""
    if not text:
        raise ValidationError(
            "Empty input. Please enter a valid expression, equation, or command.",
            "EMPTY_INPUT",
        )
    if len(text) > config.MAX_INPUT_LENGTH:
        raise ValidationError(
            f"Input too long (max {config.MAX_INPUT_LENGTH} characters)", "TOO_LONG"
        )
    balanced, position = is_balanced(text)
    if not balanced:
        raise ValidationError(
            f"Unbalanced parentheses at position {position}", "UNBALANCED"
        )
    return text


def split_top_level_commas(input_str: str) -> list[str]:
    """Split string by commas that are not inside parentheses."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    for char in input_str:
        if char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth = max(0, depth - 1)
        current.append(char)
    parts.append("".join(current).strip())
    return parts


def replace_identifier(text: str, name: str, replacement: str) -> str:
    """Replace whole-identifier occurrences of name.

    ``replace_identifier("x+exp(x)", "x", "(2)")`` gives ``"(2)+exp((2))"``:
    the ``x`` inside ``exp`` is left alone.
    """
    pattern = r"(?<![A-Za-z0-9])" + re.escape(name) + r"(?![A-Za-z0-9])"
    return re.sub(pattern, lambda _: replacement, text)


def normalize(text: str) -> str:
    """Remove all whitespace."""
    return re.sub(r"\s+", "", text)
