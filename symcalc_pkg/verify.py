"""Cross-check calculus results against SymPy.

The rule-based calculus never consults a CAS. These helpers parse its output
back with SymPy and compare numerically at a few sample points inside (0, 1),
where every table function is real and defined.

Each check returns True (agrees), False (disagrees) or None (not checkable:
unsupported result, text SymPy cannot parse, or no usable sample point).
"""

from __future__ import annotations

import math
import re

import sympy as sp
from sympy.parsing.sympy_parser import parse_expr

from . import config
from .logging_config import get_logger
from .parser import split_top_level_commas

logger = get_logger("verify")

X = sp.Symbol("x", real=True)

LOCAL_NAMES = {
    "x": X,
    "e": sp.E,
    "pi": sp.pi,
    "ln": sp.log,
    "log": lambda u: sp.log(u, 10),
    "abs": sp.Abs,
}

SAMPLE_POINTS = (0.2, 0.35, 0.45, 0.6, 0.8)
TOLERANCE = 1e-6

ABS_BARS_RE = re.compile(r"\|([^|]+)\|")
DERIVATIVE_LINE_RE = re.compile(r"d/dx\((?P<body>.+)\)")
INTEGRAL_LINE_RE = re.compile(r"∫\((?P<body>.+)\)d?x")
INT_CALL_RE = re.compile(r"int\((?P<body>.+)\)")


def to_sympy(text: str) -> sp.Expr | None:
    """Parse engine text (``ln|x|``, ``π``, ``x^2``, ``2sin(x)``) with SymPy."""
    text = text.strip()
    if text.endswith(" + C"):
        text = text[: -len(" + C")]
    text = ABS_BARS_RE.sub(r"(Abs(\1))", text).replace("π", "pi")
    try:
        return parse_expr(
            text, local_dict=dict(LOCAL_NAMES), transformations=config.TRANSFORMATIONS
        )
    except Exception as e:
        logger.debug("SymPy could not parse %r: %s", text, e)
        return None


def _value(expr: sp.Expr, point: float) -> float | None:
    try:
        value = complex(expr.evalf(subs={X: point}))
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    if abs(value.imag) > TOLERANCE or not math.isfinite(value.real):
        return None
    return value.real


def numerically_equal(left: sp.Expr, right: sp.Expr) -> bool | None:
    """Compare two expressions in x at the sample points."""
    compared = 0
    for point in SAMPLE_POINTS:
        a = _value(left, point)
        b = _value(right, point)
        if a is None or b is None:
            continue
        if abs(a - b) > TOLERANCE * max(1.0, abs(a), abs(b)):
            logger.debug("Mismatch at x=%s: %s != %s", point, a, b)
            return False
        compared += 1
    if compared == 0:
        return None
    return True


def _checkable(result: str) -> bool:
    return not (
        "not supported for:" in result
        or result.startswith("Invalid")
        or result.startswith("Partial w.r.t")
        or result.startswith("Error:")
    )


def verify_derivative(expression: str, result: str) -> bool | None:
    """Check that result is d/dx of expression.

    Example:
        >>> verify_derivative("x^3", "3x^2")
        True
    """
    if not _checkable(result):
        return None
    original = to_sympy(expression)
    derivative = to_sympy(result)
    if original is None or derivative is None:
        return None
    return numerically_equal(sp.diff(original, X), derivative)


def verify_integral(expression: str, result: str) -> bool | None:
    """Check that d/dx of result (with ``+ C`` dropped) gives back expression."""
    if not _checkable(result) or not result.endswith(" + C"):
        return None
    integrand = to_sympy(expression)
    antiderivative = to_sympy(result)
    if integrand is None or antiderivative is None:
        return None
    return numerically_equal(sp.diff(antiderivative, X), integrand)


def verify_line(line: str, output: str) -> bool | None:
    """Cross-check a dispatched ``d/dx(...)``, ``∫(...)dx`` or ``int(...)`` line."""
    text = line.strip()
    match = DERIVATIVE_LINE_RE.fullmatch(text)
    if match:
        return verify_derivative(match.group("body"), output)
    match = INTEGRAL_LINE_RE.fullmatch(text)
    if match:
        return verify_integral(match.group("body"), output)
    match = INT_CALL_RE.fullmatch(text)
    if match:
        args = split_top_level_commas(match.group("body"))
        if len(args) == 1:
            return verify_integral(args[0], output)
    return None
