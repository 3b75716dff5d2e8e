"""Algebra helpers: expand, factor, subs, gcd, lcm, factorial and trigid."""

from __future__ import annotations

import math
import re

from . import config
from .nodes import render
from .parser import format_number, normalize, parse_expression, replace_identifier
from .simplify import simplify
from .solver import collect_coefficients

_NUM = r"\d+\.?\d*|\.\d+"
BINOMIAL_RE = re.compile(
    rf"\((?P<coef>[+-]?(?:{_NUM})?)(?P<star>\*?)x(?P<const>[+-](?:{_NUM}))\)\^(?P<n>[23])"
)
INTEGER_RE = re.compile(r"[+-]?\d+")

TRIG_IDENTITIES = {
    "sin(2x)": "2sin(x)cos(x)",
    "cos(2x)": "cos(x)^2 - sin(x)^2",
    "tan(2x)": "2tan(x)/(1 - tan(x)^2)",
    "sin^2(x)": "(1 - cos(2x))/2",
    "sin(x)^2": "(1 - cos(2x))/2",
    "sin²(x)": "(1 - cos(2x))/2",
    "cos^2(x)": "(1 + cos(2x))/2",
    "cos(x)^2": "(1 + cos(2x))/2",
    "cos²(x)": "(1 + cos(2x))/2",
}


def _num(value: float) -> str:
    return format_number(value, config.CALCULUS_PRECISION)


def format_polynomial(coeffs: dict[int, float]) -> str:
    """Render {degree: coefficient} highest degree first: ``x^2 + 4x + 4``."""
    out = ""
    for degree in sorted(coeffs, reverse=True):
        coeff = coeffs[degree]
        if coeff == 0:
            continue
        magnitude = abs(coeff)
        if degree == 0:
            term = _num(magnitude)
        else:
            power = "x" if degree == 1 else f"x^{degree}"
            term = power if magnitude == 1 else f"{_num(magnitude)}{power}"
        if not out:
            out = f"-{term}" if coeff < 0 else term
        else:
            out = f"{out} {'-' if coeff < 0 else '+'} {term}"
    return out or "0"


def expand(text: str) -> str:
    """Multiply out ``(x+a)^2``, ``(ax+b)^2`` or ``(x+a)^3``.

    Example:
        >>> expand("(x+2)^2")
        'x^2 + 4x + 4'
    """
    expr = normalize(text)
    match = BINOMIAL_RE.fullmatch(expr)
    if not match or (match.group("star") and not match.group("coef")):
        return f"expand not supported for: {expr}"
    coef_text = match.group("coef")
    a = -1.0 if coef_text == "-" else float(coef_text) if coef_text not in ("", "+") else 1.0
    b = float(match.group("const"))
    if match.group("n") == "2":
        return format_polynomial({2: a * a, 1: 2 * a * b, 0: b * b})
    if a != 1:
        return f"expand not supported for: {expr}"
    return format_polynomial({3: 1.0, 2: 3 * b, 1: 3 * b * b, 0: b**3})


def _root_factor(root: float) -> str:
    if root == 0:
        return "x"
    sign = "-" if root > 0 else "+"
    return f"(x {sign} {format_number(abs(root), config.OUTPUT_PRECISION)})"


def factor(text: str) -> str:
    """Factor a real quadratic ``a*x^2 + b*x + c`` into linear factors.

    Returns:
        ``"(x - 2)(x + 2)"``, ``"(x - 1)^2"``, ``"2(x - 1)(x + 3)"``,
        ``"irreducible over the reals"`` or ``"factor not supported for: ..."``
    """
    expr = normalize(text)
    coeffs = collect_coefficients(simplify(parse_expression(expr)))
    if coeffs is None or coeffs[3] != 0 or coeffs[2] == 0:
        return f"factor not supported for: {expr}"
    a, b, c = coeffs[2], coeffs[1], coeffs[0]
    discriminant = b * b - 4 * a * c
    if discriminant < 0:
        return "irreducible over the reals"

    if a == 1:
        lead = ""
    elif a == -1:
        lead = "-"
    else:
        lead = _num(a)
    root = math.sqrt(discriminant)
    r1 = (-b + root) / (2 * a) + 0.0
    r2 = (-b - root) / (2 * a) + 0.0
    if discriminant == 0:
        return f"{lead}{_root_factor(r1)}^2"
    r1, r2 = max(r1, r2), min(r1, r2)
    if r2 == 0:
        r1, r2 = r2, r1
    return f"{lead}{_root_factor(r1)}{_root_factor(r2)}"


def subs(expr: str, var: str, val: str) -> str:
    """Replace var with ``(val)``; evaluate when only arithmetic is left.

    Example:
        >>> subs("x^2+1", "x", "3")
        '10'
        >>> subs("x+y", "x", "2")
        '(2)+y'
    """
    replaced = replace_identifier(expr.strip(), var.strip(), f"({val.strip()})")
    if config.ARITHMETIC_ONLY_RE.match(replaced):
        return render(simplify(parse_expression(replaced)))
    return replaced


def _parse_int(text: str | int) -> int | None:
    if isinstance(text, int):
        return text
    text = text.strip()
    if not INTEGER_RE.fullmatch(text):
        return None
    return int(text)


def _euclid(a: int, b: int) -> int:
    a, b = abs(a), abs(b)
    while b:
        a, b = b, a % b
    return a


def gcd(a: str | int, b: str | int) -> str:
    """Greatest common divisor of two integers given as text."""
    x, y = _parse_int(a), _parse_int(b)
    if x is None or y is None:
        return "gcd requires two integers"
    return str(_euclid(x, y))


def lcm(a: str | int, b: str | int) -> str:
    """Least common multiple, ``|a*b| / gcd(a, b)``; 0 when either is 0."""
    x, y = _parse_int(a), _parse_int(b)
    if x is None or y is None:
        return "lcm requires two integers"
    if x == 0 or y == 0:
        return "0"
    return str(abs(x * y) // _euclid(x, y))


def factorial(n: str | int) -> str:
    """Exact ``n!`` for an integer 0 <= n <= MAX_FACTORIAL.

    Example:
        >>> factorial("5")
        '120'
    """
    value = _parse_int(n)
    if value is None or value < 0:
        return "factorial requires a non-negative integer"
    if value > config.MAX_FACTORIAL:
        return f"factorial limited to n <= {config.MAX_FACTORIAL}"
    return str(math.factorial(value))


def trigid(text: str) -> str:
    """Look up a double-angle or power-reduction identity."""
    expr = re.sub(r"(\d)\*x", r"\1x", normalize(text))
    identity = TRIG_IDENTITIES.get(expr)
    if identity is None:
        return f"trigid not supported for: {expr}"
    return identity
