"""Bottom-up tree simplifier.

Rules are tried in a fixed order and the first one that applies wins:

1. constant folding
2. identity elimination (``x+0``, ``x*1``, ``x^0`` ...)
3. squaring a sum or difference into a product, so it can be distributed
4. distribution of ``*`` over ``+`` and ``-``
5. like-term collection (``2x + 3x -> 5x``, ``x*x^2 - x^3 -> 0``)

Every value the simplifier returns is already a fixed point of the rule set,
so ``simplify(simplify(e)) == simplify(e)``.

:func:`evaluate` gives the numeric value of a tree at a point.
"""

from __future__ import annotations

import math

from . import config
from .nodes import (
    Add,
    Div,
    Function,
    Mul,
    Node,
    Number,
    Power,
    Sub,
    Variable,
    is_number,
    render,
)
from .parser import parse_expression
from .types import DepthExceeded

Term = tuple[float, str, float]


def _fold_power(base: float, exponent: float) -> float:
    try:
        result = base**exponent
    except ZeroDivisionError:
        return math.inf
    except OverflowError:
        return math.inf
    if isinstance(result, complex):
        return math.nan
    return float(result)


def _fold_div(left: float, right: float) -> float:
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def _fold(node: Node, left: float, right: float) -> Number:
    if isinstance(node, Add):
        return Number(left + right)
    if isinstance(node, Sub):
        return Number(left - right)
    if isinstance(node, Mul):
        return Number(left * right)
    if isinstance(node, Div):
        return Number(_fold_div(left, right))
    return Number(_fold_power(left, right))


def _extract_term(node: Node) -> Term | None:
    """Reduce node to (coefficient, variable name, power) when it has a known shape."""
    if isinstance(node, Variable):
        return 1.0, node.name, 1.0
    if isinstance(node, Power):
        if isinstance(node.base, Variable) and isinstance(node.exponent, Number):
            return 1.0, node.base.name, node.exponent.value
        return None
    if not isinstance(node, Mul):
        return None
    left, right = node.left, node.right
    if isinstance(left, Number):
        inner = _extract_term(right)
        # only n*v and n*v^k; n*(v*v) is not a collected shape
        if inner is not None and isinstance(right, (Variable, Power)):
            return left.value, inner[1], inner[2]
        return None
    left_term = _extract_term(left) if isinstance(left, (Variable, Power)) else None
    right_term = _extract_term(right) if isinstance(right, (Variable, Power)) else None
    if left_term and right_term and left_term[1] == right_term[1]:
        return 1.0, left_term[1], left_term[2] + right_term[2]
    return None


def _build_term(coeff: float, name: str, power: float) -> Node:
    if coeff == 0:
        return Number(0.0)
    if power == 0:
        return Number(coeff)
    base: Node = Variable(name) if power == 1 else Power(Variable(name), Number(power))
    if coeff == 1:
        return base
    return Mul(Number(coeff), base)


def _collect_like_terms(node: Add | Sub, left: Node, right: Node) -> Node | None:
    left_term = _extract_term(left)
    right_term = _extract_term(right)
    if left_term is None or right_term is None:
        return None
    c1, v1, p1 = left_term
    c2, v2, p2 = right_term
    if v1 != v2 or p1 != p2:
        return None
    coeff = c1 + c2 if isinstance(node, Add) else c1 - c2
    return _build_term(coeff, v1, p1)


def _distribute(left: Node, right: Node) -> Node | None:
    if isinstance(left, Add):
        return Add(Mul(left.left, right), Mul(left.right, right))
    if isinstance(right, Add):
        return Add(Mul(left, right.left), Mul(left, right.right))
    if isinstance(left, Sub):
        return Sub(Mul(left.left, right), Mul(left.right, right))
    if isinstance(right, Sub):
        return Sub(Mul(left, right.left), Mul(left, right.right))
    return None


def simplify(node: Node, depth: int = 0) -> Node:
    """Return a reduced copy of node.

    Never fails on well-formed trees: division by zero folds to ``inf`` or
    ``nan`` instead of raising.

    Raises:
        DepthExceeded: when the tree is deeper than MAX_EXPRESSION_DEPTH.
    """
    if depth > config.MAX_EXPRESSION_DEPTH:
        raise DepthExceeded(config.MAX_EXPRESSION_DEPTH)
    if isinstance(node, (Number, Variable)):
        return node
    if isinstance(node, Function):
        return Function(node.name, tuple(simplify(arg, depth + 1) for arg in node.args))

    if isinstance(node, Power):
        base = simplify(node.base, depth + 1)
        exponent = simplify(node.exponent, depth + 1)
        if isinstance(base, Number) and isinstance(exponent, Number):
            return _fold(node, base.value, exponent.value)
        if is_number(exponent, 1):
            return base
        if is_number(exponent, 0):
            return Number(1.0)
        if is_number(exponent, 2) and isinstance(base, (Add, Sub)):
            return simplify(Mul(base, base), depth + 1)
        return Power(base, exponent)

    left = simplify(node.left, depth + 1)
    right = simplify(node.right, depth + 1)
    if isinstance(left, Number) and isinstance(right, Number):
        return _fold(node, left.value, right.value)

    if isinstance(node, Mul):
        if is_number(left, 0) or is_number(right, 0):
            return Number(0.0)
        if is_number(left, 1):
            return right
        if is_number(right, 1):
            return left
        distributed = _distribute(left, right)
        if distributed is not None:
            return simplify(distributed, depth + 1)
        return Mul(left, right)

    if isinstance(node, Div):
        if is_number(right, 1):
            return left
        return Div(left, right)

    if isinstance(node, Add):
        if is_number(right, 0):
            return left
        if is_number(left, 0):
            return right
    elif is_number(right, 0):
        return left
    collected = _collect_like_terms(node, left, right)
    if collected is not None:
        return collected
    return type(node)(left, right)


def simplify_expression(text: str) -> str:
    """Parse, simplify and render text.

    Example:
        >>> simplify_expression("2x + 3x")
        '5x'
        >>> simplify_expression("2(x+3)")
        '2x+6'
    """
    return render(simplify(parse_expression(text)))


NUMERIC_FUNCTIONS = {
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "sec": lambda u: 1 / math.cos(u),
    "csc": lambda u: 1 / math.sin(u),
    "cot": lambda u: 1 / math.tan(u),
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "ln": math.log,
    "log": math.log10,
    "exp": math.exp,
    "sqrt": math.sqrt,
    "abs": abs,
}

NUMERIC_CONSTANTS = {"e": math.e, "pi": math.pi}


def evaluate(node: Node, x: float, depth: int = 0) -> float:
    """Numeric value of a tree at the given x.

    Returns ``nan`` where the tree has no real value (``ln(0)``, an unknown
    name, a negative base under a fractional power).
    """
    if depth > config.MAX_EXPRESSION_DEPTH:
        raise DepthExceeded(config.MAX_EXPRESSION_DEPTH)
    if isinstance(node, Number):
        return node.value
    if isinstance(node, Variable):
        if node.name == "x":
            return x
        return NUMERIC_CONSTANTS.get(node.name, math.nan)
    if isinstance(node, Function):
        func = NUMERIC_FUNCTIONS.get(node.name)
        if func is None or len(node.args) != 1:
            return math.nan
        try:
            return float(func(evaluate(node.args[0], x, depth + 1)))
        except (ValueError, ZeroDivisionError, OverflowError):
            return math.nan
    if isinstance(node, Power):
        return _fold_power(
            evaluate(node.base, x, depth + 1), evaluate(node.exponent, x, depth + 1)
        )
    left = evaluate(node.left, x, depth + 1)
    right = evaluate(node.right, x, depth + 1)
    return _fold(node, left, right).value
