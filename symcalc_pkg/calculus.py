"""Rule-based differentiation and integration over expression text.

These routines never consult the parsed tree: they work on the normalized
input string (whitespace removed) and try an ordered list of shape rules.
An expression no rule matches gives ``"d/dx not supported for: <expr>"`` or
``"∫ not supported for: <expr>"`` naming the innermost piece that failed.

Rule order for both directions:

1. front doors (``d/dx(...)``, ``d^n/dx^n(...)``, ``∂/∂y(...)``), derivative only
2. redundant outer parentheses are removed
3. constants and ``x``
4. table functions (``sin``, ``ln``, ``sqrt`` ...) with a linear inner argument,
   ``e^u``, ``a^u`` and numeric powers of table functions
5. monomials ``a*x^n``
6. linear-inner powers ``(a*x+b)^n``
7. sums and differences, split at top-level ``+``/``-``
8. constant multiples ``k*f`` and ``f/k``
9. product and quotient rules, split at the last top-level ``*`` or ``/``

:func:`series` builds Taylor polynomials from repeated derivatives, evaluated
at the expansion point on the parsed tree.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from fractions import Fraction

from . import config
from .algebra import subs
from .logging_config import get_logger
from .parser import format_number, normalize, parse_expression
from .simplify import evaluate
from .types import DepthExceeded

logger = get_logger("calculus")

SYMBOLIC_CONSTANTS = frozenset({"e", "pi", "π"})

DERIVATIVES = {
    "sin": "cos({u})",
    "cos": "-sin({u})",
    "tan": "sec({u})^2",
    "sec": "sec({u})tan({u})",
    "csc": "-csc({u})cot({u})",
    "cot": "-csc({u})^2",
    "ln": "1/{pu}",
    "log": "1/({pu}*ln(10))",
    "exp": "exp({u})",
    "sqrt": "1/(2sqrt({u}))",
    "abs": "{pu}/abs({u})",
    "asin": "1/sqrt(1-{pu}^2)",
    "acos": "-1/sqrt(1-{pu}^2)",
    "atan": "1/(1+{pu}^2)",
}

INTEGRALS = {
    "sin": "-cos({u})",
    "cos": "sin({u})",
    "tan": "-ln|cos({u})|",
    "sec": "ln|sec({u})+tan({u})|",
    "csc": "-ln|csc({u})+cot({u})|",
    "cot": "ln|sin({u})|",
    "ln": "{pu}*ln({u}) - {pu}",
    "log": "({pu}*ln({u}) - {pu})/ln(10)",
    "exp": "exp({u})",
    "sqrt": "2{pu}^1.5/3",
    "abs": "{pu}*abs({u})/2",
    "asin": "{pu}*asin({u}) + sqrt(1-{pu}^2)",
    "acos": "{pu}*acos({u}) - sqrt(1-{pu}^2)",
    "atan": "{pu}*atan({u}) - ln(1+{pu}^2)/2",
}

# Integrands that are not a single table function of x
SPECIAL_INTEGRALS = {
    "sec(x)^2": "tan(x)",
    "csc(x)^2": "-cot(x)",
    "sec(x)tan(x)": "sec(x)",
    "sec(x)*tan(x)": "sec(x)",
    "csc(x)cot(x)": "-csc(x)",
    "csc(x)*cot(x)": "-csc(x)",
    "1/x": "ln|x|",
}

_NUM = r"\d+\.?\d*|\.\d+"
_EXPONENT = rf"\((?:-?(?:{_NUM}))\)|-?(?:{_NUM})"
MONOMIAL_RE = re.compile(
    rf"(?P<coef>[+-]?(?:{_NUM})?)(?P<star>\*?)x(?:\^(?P<exp>{_EXPONENT}))?"
)
LINEAR_RE = re.compile(
    rf"(?P<coef>[+-]?(?:{_NUM})?)(?P<star>\*?)x(?P<const>[+-](?:{_NUM}))?"
)
CALL_RE = re.compile(r"(?P<name>[a-z]+)\(")
CALL_POWER_RE = re.compile(rf"\^(?P<exp>{_EXPONENT})$")
EXP_BASE_RE = re.compile(rf"(?P<base>e|{_NUM})\^")
CONST_MULTIPLE_RE = re.compile(rf"(?P<k>[+-]?(?:{_NUM}))(?P<star>\*?)(?P<rest>[A-Za-zπ(].*)")
ORDER_RE = re.compile(r"d\^?(?P<n>[0-9²³]+)/dx\^?(?P<m>[0-9²³]+)\((?P<body>.+)\)")
PARTIAL_RE = re.compile(r"∂/∂(?P<var>[xyz])\((?P<body>.+)\)")
FIRST_ORDER_RE = re.compile(r"d/d[xy]\((?P<body>.+)\)")

_SUPERSCRIPT_DIGITS = str.maketrans("²³", "23")


class _NoRule(Exception):
    """No rule matched expr."""

    def __init__(self, expr: str):
        self.expr = expr
        super().__init__(expr)


def _num(value: float) -> str:
    return format_number(value, config.CALCULUS_PRECISION)


def _closing(expr: str, start: int) -> int:
    """Index of the parenthesis closing the one at start, or -1."""
    depth = 0
    for i in range(start, len(expr)):
        if expr[i] == "(":
            depth += 1
        elif expr[i] == ")":
            depth -= 1
            if depth == 0:
                return i
    return -1


def _wraps_rest(expr: str, start: int) -> bool:
    return start < len(expr) and expr[start] == "(" and _closing(expr, start) == len(expr) - 1


def strip_outer_parens(expr: str) -> str:
    while expr.startswith("(") and _wraps_rest(expr, 0):
        expr = expr[1:-1]
    return expr


def split_terms(expr: str) -> list[tuple[str, str]]:
    """Split at top-level ``+``/``-`` into (sign, term) pairs.

    A sign at the start, or right after ``^ * / ( + -``, is unary and is
    kept inside its term. ``|...|`` counts as a bracket.
    """
    parts: list[tuple[str, str]] = []
    depth = 0
    in_bars = False
    sign = "+"
    start = 0
    for i, char in enumerate(expr):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == "|":
            in_bars = not in_bars
        elif (
            char in "+-"
            and depth == 0
            and not in_bars
            and i > 0
            and expr[i - 1] not in "^*/(+-"
        ):
            parts.append((sign, expr[start:i]))
            sign = char
            start = i + 1
    parts.append((sign, expr[start:]))
    return parts


def _is_compound(text: str) -> bool:
    return len(split_terms(normalize(text))) > 1


def _split_product(expr: str) -> tuple[str, str, str] | None:
    """Split at the last top-level ``*``, ``/`` or ``)``-juxtaposition."""
    depth = 0
    found = None
    for i, char in enumerate(expr):
        if char == "(":
            if depth == 0 and i > 0 and expr[i - 1] == ")":
                found = (expr[:i], "*", expr[i:])
            depth += 1
        elif char == ")":
            depth -= 1
        elif depth == 0 and char in "*/":
            found = (expr[:i], char, expr[i + 1 :])
        elif depth == 0 and char.isalpha() and i > 0 and expr[i - 1] == ")":
            found = (expr[:i], "*", expr[i:])
    if found is None or not found[0] or not found[2]:
        return None
    return found


def _const_value(expr: str) -> float | None:
    if config.NUMBER_RE.match(expr):
        return float(expr)
    return None


def _is_constant(expr: str) -> bool:
    stripped = expr.lstrip("+-")
    return _const_value(expr) is not None or stripped in SYMBOLIC_CONSTANTS


def _coefficient(text: str) -> float:
    if text in ("", "+"):
        return 1.0
    if text == "-":
        return -1.0
    return float(text)


def _exponent(text: str) -> float:
    return float(text.strip("()"))


def _parenthesize(text: str) -> str:
    if re.fullmatch(r"[A-Za-z0-9.]+", text) or (
        CALL_RE.match(text) and _wraps_rest(text, text.index("("))
    ):
        return text
    return f"({text})"


def _linear(inner: str) -> tuple[float, float] | None:
    """Read inner as ``a*x+b``."""
    match = LINEAR_RE.fullmatch(inner)
    if not match or (match.group("star") and not match.group("coef")):
        return None
    try:
        a = _coefficient(match.group("coef"))
    except ValueError:
        return None
    b = float(match.group("const")) if match.group("const") else 0.0
    if a == 0:
        return None
    return a, b


def negate(text: str) -> str:
    if text == "0":
        return "0"
    if _is_compound(text):
        return f"-({text})"
    if text.startswith("-"):
        return text[1:]
    return f"-{text}"


def combine(parts: list[tuple[str, str]]) -> str:
    """Join signed terms, dropping zeros: [("+", "2x"), ("-", "-1")] -> "2x + 1"."""
    out = ""
    for sign, text in parts:
        if text == "0":
            continue
        if sign == "-":
            text = negate(text)
        if not out:
            out = text
        elif text.startswith("-") and not _is_compound(text):
            out = f"{out} - {text[1:]}"
        else:
            out = f"{out} + {text}"
    return out or "0"


def scale(factor: float, text: str) -> str:
    """Multiply a result by a number, folding it into a leading coefficient."""
    if factor == 0 or text == "0":
        return "0"
    if factor == 1:
        return text
    if _is_compound(text):
        prefix = "-" if factor == -1 else _num(factor)
        return f"{prefix}({text})"
    divided = re.fullmatch(rf"(?P<head>.+)/(?P<d>{_NUM})", text)
    divisor = float(divided.group("d")) if divided else 0.0
    if divisor and divisor.is_integer() and float(factor).is_integer():
        reduced = Fraction(int(factor), int(divisor))
        head = scale(float(reduced.numerator), divided.group("head"))
        if reduced.denominator == 1:
            return head
        return f"{head}/{reduced.denominator}"
    if text.startswith("-"):
        factor, text = -factor, text[1:]
    leading = re.match(rf"({_NUM})(.*)", text)
    if leading and not leading.group(2).startswith("^"):
        factor *= float(leading.group(1))
        text = leading.group(2)
        if not text:
            return _num(factor)
        if text.startswith("*"):
            text = text[1:]
    if text.startswith("/"):
        return f"{_num(factor)}{text}"
    if factor == 1:
        return text
    prefix = "-" if factor == -1 else _num(factor)
    if text[0].isdigit() or text[0] == "." or (prefix != "-" and text[0] == "-"):
        return f"{prefix}*{text}"
    return f"{prefix}{text}"


def _product(left: str, right: str) -> str:
    if left == "0" or right == "0":
        return "0"
    if left == "1":
        return right
    if right == "1":
        return left
    if not _is_compound(left) and left.startswith("-"):
        return negate(_product(left[1:], right))
    if not _is_compound(right) and right.startswith("-"):
        return negate(_product(left, right[1:]))
    value = _const_value(left)
    if value is not None:
        return scale(value, right)
    value = _const_value(right)
    if value is not None:
        return scale(value, left)
    pl = f"({left})" if _is_compound(left) else left
    pr = f"({right})" if _is_compound(right) else right
    return f"{pl}*{pr}"


def _monomial(coeff: float, power: float) -> str:
    """Render coeff*x^power."""
    if coeff == 0:
        return "0"
    if power == 0:
        return _num(coeff)
    if power == 1:
        base = "x"
    elif power < 0:
        base = f"x^({_num(power)})"
    else:
        base = f"x^{_num(power)}"
    return scale(coeff, base)


def _call_parts(expr: str) -> tuple[str, str, str] | None:
    """Split ``name(inner)rest`` where the call's parenthesis closes before rest."""
    match = CALL_RE.match(expr)
    if not match:
        return None
    open_at = match.end() - 1
    close_at = _closing(expr, open_at)
    if close_at < 0:
        return None
    return match.group("name"), expr[open_at + 1 : close_at], expr[close_at + 1 :]


def _table_rule(
    expr: str, table: dict[str, str], chain: Callable[[float, str], str]
) -> str | None:
    """Apply a table entry to ``name(a*x+b)``; chain folds in the inner slope."""
    parts = _call_parts(expr)
    if parts is None or parts[2] or parts[0] not in table:
        return None
    name, inner, _ = parts
    linear = _linear(inner)
    if linear is None:
        raise _NoRule(expr)
    text = table[name].format(u=inner, pu=_parenthesize(inner))
    return chain(linear[0], text)


def _exponential_parts(expr: str) -> tuple[str, str, float] | None:
    """Match ``e^u`` or ``a^u`` with a linear u: (base, exponent text, slope)."""
    match = EXP_BASE_RE.match(expr)
    if not match:
        return None
    exponent = expr[match.end() :]
    if exponent != "x" and not _wraps_rest(exponent, 0):
        return None
    linear = _linear(strip_outer_parens(exponent))
    if linear is None:
        return None
    return match.group("base"), exponent, linear[0]


def _check_depth(depth: int) -> None:
    if depth > config.MAX_EXPRESSION_DEPTH:
        raise DepthExceeded(config.MAX_EXPRESSION_DEPTH)


def _derive(expr: str, depth: int = 0) -> str:
    _check_depth(depth)
    expr = strip_outer_parens(expr)
    if not expr:
        raise _NoRule(expr)
    if _is_constant(expr):
        return "0"
    if expr == "x":
        return "1"

    tabled = _table_rule(expr, DERIVATIVES, lambda a, text: scale(a, text))
    if tabled is not None:
        return tabled

    exponential = _exponential_parts(expr)
    if exponential is not None:
        base, exponent, slope = exponential
        if base == "e":
            return scale(slope, f"e^{exponent}")
        return scale(slope, f"{base}^{exponent}*ln({base})")

    parts = _call_parts(expr)
    if parts is not None and parts[0] in DERIVATIVES:
        power = CALL_POWER_RE.fullmatch(parts[2])
        if power:
            n = _exponent(power.group("exp"))
            call = f"{parts[0]}({parts[1]})"
            inner_derivative = _derive(call, depth + 1)
            remaining = n - 1
            if remaining == 0:
                outer = "1"
            elif remaining == 1:
                outer = call
            else:
                outer = f"{call}^{_num(remaining) if remaining > 0 else '(' + _num(remaining) + ')'}"
            return scale(n, _product(outer, inner_derivative))

    match = MONOMIAL_RE.fullmatch(expr)
    if match and not (match.group("star") and not match.group("coef")):
        coeff = _coefficient(match.group("coef"))
        if match.group("exp") is None:
            return _num(coeff)
        n = _exponent(match.group("exp"))
        return _monomial(coeff * n, n - 1)

    if expr.startswith("("):
        close_at = _closing(expr, 0)
        power = CALL_POWER_RE.fullmatch(expr[close_at + 1 :]) if close_at > 0 else None
        linear = _linear(expr[1:close_at]) if power else None
        if power and linear:
            n = _exponent(power.group("exp"))
            inner = expr[: close_at + 1]
            factor = n * linear[0]
            if n - 1 == 0:
                return _num(factor)
            if n - 1 == 1:
                return scale(factor, inner)
            exp_text = _num(n - 1) if n - 1 > 0 else f"({_num(n - 1)})"
            return scale(factor, f"{inner}^{exp_text}")

    terms = split_terms(expr)
    if len(terms) > 1:
        return combine([(sign, _derive(term, depth + 1)) for sign, term in terms])
    if expr[0] in "+-":
        derived = _derive(expr[1:], depth + 1)
        return negate(derived) if expr[0] == "-" else derived

    match = CONST_MULTIPLE_RE.fullmatch(expr)
    if match:
        return scale(float(match.group("k")), _derive(match.group("rest"), depth + 1))

    split = _split_product(expr)
    if split is not None:
        left, op, right = split
        if op == "/":
            divisor = _const_value(right)
            if divisor is not None and divisor != 0:
                return scale(1 / divisor, _derive(left, depth + 1))
            numerator = combine(
                [
                    ("+", _product(_derive(left, depth + 1), right)),
                    ("-", _product(left, _derive(right, depth + 1))),
                ]
            )
            if _is_compound(numerator):
                numerator = f"({numerator})"
            return f"{numerator}/{_parenthesize(strip_outer_parens(right))}^2"
        return combine(
            [
                ("+", _product(_derive(left, depth + 1), right)),
                ("+", _product(left, _derive(right, depth + 1))),
            ]
        )

    raise _NoRule(expr)


def _antiderive(expr: str, depth: int = 0) -> str:
    _check_depth(depth)
    expr = strip_outer_parens(expr)
    if not expr:
        raise _NoRule(expr)
    value = _const_value(expr)
    if value is not None:
        return _monomial(value, 1)
    if _is_constant(expr):
        return f"{expr}*x"
    if expr in SPECIAL_INTEGRALS:
        return SPECIAL_INTEGRALS[expr]

    tabled = _table_rule(expr, INTEGRALS, lambda a, text: scale(1 / a, text))
    if tabled is not None:
        return tabled

    exponential = _exponential_parts(expr)
    if exponential is not None:
        base, exponent, slope = exponential
        if base == "e":
            return scale(1 / slope, f"e^{exponent}")
        return scale(1 / slope, f"{base}^{exponent}/ln({base})")

    match = MONOMIAL_RE.fullmatch(expr)
    if match and not (match.group("star") and not match.group("coef")):
        coeff = _coefficient(match.group("coef"))
        n = _exponent(match.group("exp")) if match.group("exp") else 1.0
        if n == -1:
            return scale(coeff, "ln|x|")
        m = n + 1
        quotient = coeff / m
        if quotient.is_integer() or not coeff.is_integer():
            return _monomial(quotient, m)
        if m.is_integer():
            reduced = Fraction(int(coeff), int(m))
            return f"{_monomial(float(reduced.numerator), m)}/{reduced.denominator}"
        sign = -1 if m < 0 else 1
        return f"{_monomial(coeff * sign, m)}/{_num(abs(m))}"

    if expr.startswith("("):
        close_at = _closing(expr, 0)
        power = CALL_POWER_RE.fullmatch(expr[close_at + 1 :]) if close_at > 0 else None
        linear = _linear(expr[1:close_at]) if power else None
        if power and linear:
            n = _exponent(power.group("exp"))
            inner = expr[: close_at + 1]
            if n == -1:
                return scale(1 / linear[0], f"ln|{expr[1:close_at]}|")
            m = n + 1
            divisor = linear[0] * m
            exp_text = _num(m) if m > 0 else f"({_num(m)})"
            powered = inner if m == 1 else f"{inner}^{exp_text}"
            if divisor == 1:
                return powered
            if divisor == -1:
                return f"-{powered}"
            if divisor < 0:
                return f"-{powered}/{_num(-divisor)}"
            return f"{powered}/{_num(divisor)}"

    terms = split_terms(expr)
    if len(terms) > 1:
        return combine([(sign, _antiderive(term, depth + 1)) for sign, term in terms])
    if expr[0] in "+-":
        integrated = _antiderive(expr[1:], depth + 1)
        return negate(integrated) if expr[0] == "-" else integrated

    match = CONST_MULTIPLE_RE.fullmatch(expr)
    if match:
        return scale(float(match.group("k")), _antiderive(match.group("rest"), depth + 1))

    split = _split_product(expr)
    if split is not None:
        left, op, right = split
        right_value = _const_value(right)
        if op == "/" and right_value:
            return scale(1 / right_value, _antiderive(left, depth + 1))
        if op == "/" and strip_outer_parens(right) == "x" and _is_constant(left):
            return _product(left, "ln|x|")
        if op == "*":
            if right_value is not None:
                return scale(right_value, _antiderive(left, depth + 1))
            if _is_constant(left):
                return _product(left, _antiderive(right, depth + 1))
            if _is_constant(right):
                return _product(right, _antiderive(left, depth + 1))

    raise _NoRule(expr)


def _order(text: str) -> int:
    return int(text.translate(_SUPERSCRIPT_DIGITS))


def _front_door(expr: str) -> str:
    if expr.startswith("∂"):
        match = PARTIAL_RE.fullmatch(expr)
        if not match:
            return "Invalid partial"
        result = _front_door(normalize(match.group("body")))
        if match.group("var") == "x":
            return result
        return f"Partial w.r.t {match.group('var')}: {result}"

    match = FIRST_ORDER_RE.fullmatch(expr)
    if match:
        return _front_door(match.group("body"))

    match = ORDER_RE.fullmatch(expr)
    if match:
        n = _order(match.group("n"))
        if n != _order(match.group("m")) or n < 1:
            return "Invalid derivative order"
        if n > config.MAX_EXPRESSION_DEPTH:
            raise DepthExceeded(config.MAX_EXPRESSION_DEPTH)
        result = match.group("body")
        for _ in range(n):
            result = _derive(normalize(result))
            if result == "0":
                break
        return result

    return _derive(expr)


def differentiate(text: str) -> str:
    """Differentiate an expression in x.

    Args:
        text: Expression text, optionally wrapped in ``d/dx(...)``,
            ``d^n/dx^n(...)``, ``d²/dx²(...)`` or ``∂/∂y(...)``

    Returns:
        Derivative text, ``"Invalid partial"``, ``"Invalid derivative order"``
        or ``"d/dx not supported for: <expr>"``

    Example:
        >>> differentiate("x^3")
        '3x^2'
        >>> differentiate("x*sin(x)")
        'sin(x) + x*cos(x)'
    """
    expr = normalize(text)
    try:
        return _front_door(expr)
    except _NoRule as e:
        logger.debug("No derivative rule for %r (input %r)", e.expr, expr)
        return f"d/dx not supported for: {e.expr}"


def antiderivative(text: str) -> str | None:
    """Antiderivative without the constant, or None when no rule applies."""
    try:
        return _antiderive(normalize(text))
    except _NoRule:
        return None


def integrate(text: str) -> str:
    """Indefinite integral in x.

    Example:
        >>> integrate("x^2")
        'x^3/3 + C'
        >>> integrate("3x^2 + cos(x)")
        'x^3 + sin(x) + C'
    """
    expr = normalize(text)
    try:
        return f"{_antiderive(expr)} + C"
    except _NoRule as e:
        logger.debug("No integral rule for %r (input %r)", e.expr, expr)
        return f"∫ not supported for: {e.expr}"


def definite_integral(expression: str, lower: str, upper: str) -> str:
    """Evaluate ``F(upper) - F(lower)`` as text, e.g. ``"(9) - (0)"`` for x^2 on [0, 3]."""
    expr = normalize(expression)
    try:
        antideriv = _antiderive(expr)
    except _NoRule as e:
        return f"∫ not supported for: {e.expr}"
    upper_value = subs(antideriv, "x", upper.strip())
    lower_value = subs(antideriv, "x", lower.strip())
    return f"({upper_value}) - ({lower_value})"


def _series_term(coeff: float, center: float, power: int) -> str:
    if abs(coeff) <= config.ROOT_TOLERANCE:
        return "0"
    if power == 0:
        base = "1"
    else:
        if center == 0:
            base = "x"
        elif center > 0:
            base = f"(x - {_num(center)})"
        else:
            base = f"(x + {_num(-center)})"
        if power > 1:
            base = f"{base}^{power}"
    fraction = Fraction(coeff).limit_denominator(10**6)
    close = abs(float(fraction) - coeff) <= 1e-12 * max(1.0, abs(coeff))
    if close and fraction.denominator != 1:
        return f"{scale(float(fraction.numerator), base)}/{fraction.denominator}"
    return scale(coeff, base)


def series(expression: str, center: str, order: str) -> str:
    """Taylor polynomial of expression about x = center, up to degree order.

    Returns:
        Polynomial text, or ``"series not supported for: <expr>"`` when a
        derivative has no rule or no real value at the center

    Example:
        >>> series("sin(x)", "0", "5")
        'x - x^3/6 + x^5/120'
        >>> series("x^2", "1", "2")
        '1 + 2(x - 1) + (x - 1)^2'
    """
    expr = normalize(expression)
    a = _const_value(center.strip())
    order = order.strip()
    if a is None or not (order.isascii() and order.isdigit()):
        return "series requires a numeric center and a non-negative integer order"
    n = int(order)
    if n > config.MAX_SERIES_ORDER:
        return f"series limited to order <= {config.MAX_SERIES_ORDER}"

    terms = []
    derivative = expr
    for k in range(n + 1):
        if k > 0:
            try:
                derivative = _derive(normalize(derivative))
            except _NoRule as e:
                return f"series not supported for: {e.expr}"
        if derivative == "0":
            break
        if len(derivative) > config.MAX_INPUT_LENGTH:
            return f"series not supported for: {expr}"
        value = evaluate(parse_expression(derivative), a) / math.factorial(k)
        if not math.isfinite(value):
            logger.debug("Derivative %d of %r has no value at %s", k, expr, a)
            return f"series not supported for: {expr}"
        terms.append(("+", _series_term(value, a, k)))
    return combine(terms)
