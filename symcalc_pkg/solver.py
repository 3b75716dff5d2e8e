"""Closed-form solver for polynomial equations in x of degree 1 to 3."""

from __future__ import annotations

import math

from . import config
from .logging_config import get_logger
from .nodes import Add, Mul, Node, Number, Power, Sub, Variable
from .parser import format_number, parse_expression
from .simplify import simplify

logger = get_logger("solver")

SUBSCRIPTS = ("₁", "₂", "₃")


class _Unsupported(Exception):
    """Internal signal: the tree has a shape the coefficient walk does not know."""


def _degree(exponent: Node) -> int:
    if not isinstance(exponent, Number):
        raise _Unsupported
    value = exponent.value
    if value != int(value) or not 0 <= value <= 3:
        raise _Unsupported
    return int(value)


def _is_x(node: Node) -> bool:
    return isinstance(node, Variable) and node.name == "x"


def _is_x_power(node: Node) -> bool:
    return isinstance(node, Power) and _is_x(node.base)


def _walk(node: Node, coeffs: dict[int, float], sign: float) -> None:
    if isinstance(node, Number):
        coeffs[0] += sign * node.value
    elif _is_x(node):
        coeffs[1] += sign
    elif _is_x_power(node):
        coeffs[_degree(node.exponent)] += sign
    elif isinstance(node, Add):
        _walk(node.left, coeffs, sign)
        _walk(node.right, coeffs, sign)
    elif isinstance(node, Sub):
        _walk(node.left, coeffs, sign)
        _walk(node.right, coeffs, -sign)
    elif isinstance(node, Mul):
        if isinstance(node.left, Number) and _is_x(node.right):
            coeffs[1] += sign * node.left.value
        elif isinstance(node.right, Number) and _is_x(node.left):
            coeffs[1] += sign * node.right.value
        elif isinstance(node.left, Number) and _is_x_power(node.right):
            coeffs[_degree(node.right.exponent)] += sign * node.left.value
        else:
            raise _Unsupported
    else:
        raise _Unsupported


def collect_coefficients(node: Node) -> dict[int, float] | None:
    """Read a simplified tree as ``a x^3 + b x^2 + c x + d``.

    Recognised terms are numbers, ``x``, ``n*x``, ``x*n``, ``x^k`` and
    ``n*x^k`` (k in 0..3) joined by ``+`` and ``-``. Equivalent spellings
    such as ``x*x`` are not recognised.

    Returns:
        Mapping degree -> coefficient for degrees 0..3, or None when the
        tree contains anything else.
    """
    coeffs = {0: 0.0, 1: 0.0, 2: 0.0, 3: 0.0}
    try:
        _walk(node, coeffs, 1.0)
    except _Unsupported:
        return None
    return coeffs


def _cube_root(value: float) -> float:
    return math.copysign(abs(value) ** (1.0 / 3.0), value)


def _fmt(value: float) -> str:
    return format_number(value, config.OUTPUT_PRECISION)


def _format_roots(roots: list[float]) -> str:
    return ", ".join(
        f"x{SUBSCRIPTS[i]} = {_fmt(root)}" for i, root in enumerate(roots)
    )


def _solve_cubic(a: float, b: float, c: float, d: float) -> str:
    p = (3 * a * c - b**2) / (3 * a**2)
    q = (2 * b**3 - 9 * a * b * c + 27 * a**2 * d) / (27 * a**3)
    delta = q**2 / 4 + p**3 / 27
    shift = b / (3 * a)
    logger.debug("Depressed cubic p=%s q=%s delta=%s", p, q, delta)

    if abs(delta) <= config.ROOT_TOLERANCE:
        u = _cube_root(-q / 2)
        return _format_roots([2 * u - shift, -u - shift])
    if delta > 0:
        sqrt_delta = math.sqrt(delta)
        u = _cube_root(-q / 2 + sqrt_delta)
        v = _cube_root(-q / 2 - sqrt_delta)
        return f"x = {_fmt(u + v - shift)} (1 real root)"

    r = math.sqrt(-(p**3) / 27)
    phi = math.acos(max(-1.0, min(1.0, -q / (2 * r))))
    t = 2 * math.sqrt(-p / 3)
    roots = [t * math.cos((phi + 2 * math.pi * k) / 3) - shift for k in range(3)]
    return _format_roots(roots)


def solve(equation: str) -> str:
    """Solve a polynomial equation in x of degree 1, 2 or 3.

    Args:
        equation: Equation text such as ``"x^2-4=0"``; without ``=`` the
            right-hand side is taken to be 0

    Returns:
        ``"x = 4"``, ``"x₁ = 2, x₂ = -2"``, ``"x = 1 (1 real root)"``,
        ``"No real roots"``, ``"Invalid equation"``, ``"Numeric overflow"``
        or ``"Unsupported or no x found"``

    Raises:
        LexError, ParseError: when either side is not a valid expression.

    Example:
        >>> solve("x^2 - 4 = 0")
        'x₁ = 2, x₂ = -2'
    """
    sides = equation.split("=")
    if len(sides) > 2:
        return "Invalid equation"
    lhs = sides[0].strip()
    rhs = sides[1].strip() if len(sides) == 2 else "0"
    if not lhs or not rhs:
        return "Invalid equation"

    tree = simplify(parse_expression(f"({lhs})-({rhs})"))
    coeffs = collect_coefficients(tree)
    if coeffs is None:
        return "Unsupported or no x found"
    a, b, c, d = coeffs[3], coeffs[2], coeffs[1], coeffs[0]
    logger.debug("Coefficients a=%s b=%s c=%s d=%s", a, b, c, d)

    try:
        if a != 0:
            return _solve_cubic(a, b, c, d)
        if b != 0:
            discriminant = c**2 - 4 * b * d
            if discriminant < 0:
                return "No real roots"
            root = math.sqrt(discriminant)
            return _format_roots([(-c + root) / (2 * b), (-c - root) / (2 * b)])
    except (OverflowError, ValueError) as e:
        logger.debug("Root formula failed for %r: %s", equation, e)
        return "Numeric overflow"
    if c != 0:
        return f"x = {_fmt(-d / c)}"
    return "Unsupported or no x found"
