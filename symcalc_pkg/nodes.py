"""Expression tree node types and the tree-to-text renderer.

Trees are built by :mod:`symcalc_pkg.parser` and rewritten by
:mod:`symcalc_pkg.simplify`. Nodes are frozen dataclasses, so every rewrite
returns a new tree and structural equality comes for free.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Union


@dataclass(frozen=True)
class Number:
    value: float
    # digits as typed, for integers a float cannot hold exactly
    literal: str | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class Function:
    name: str
    args: tuple["Node", ...]

    @property
    def arg(self) -> "Node":
        """The single argument every supported function takes."""
        return self.args[0]


@dataclass(frozen=True)
class Power:
    base: "Node"
    exponent: "Node"


@dataclass(frozen=True)
class Mul:
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Div:
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Add:
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Sub:
    left: "Node"
    right: "Node"


Node = Union[Number, Variable, Function, Power, Mul, Div, Add, Sub]

BINARY_NODES = (Power, Mul, Div, Add, Sub)


def format_value(value: float) -> str:
    """Format a tree number so that it parses back to the same float.

    Whole values print as plain digits, others in the shortest positional
    form. Exponent notation is never produced.
    """
    if not math.isfinite(value):
        return str(value)
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    return format(Decimal(repr(float(value))), "f")


def number_text(node: Number) -> str:
    if node.literal is not None:
        return node.literal
    return format_value(node.value)


def is_number(node: Node | None, value: float | None = None) -> bool:
    """True when node is a Number (optionally with exactly the given value)."""
    if not isinstance(node, Number):
        return False
    return value is None or node.value == value


def contains_variable(node: Node) -> bool:
    if isinstance(node, Variable):
        return True
    if isinstance(node, Number):
        return False
    if isinstance(node, Function):
        return any(contains_variable(arg) for arg in node.args)
    return contains_variable(_left(node)) or contains_variable(_right(node))


def _left(node: Node) -> Node:
    return node.base if isinstance(node, Power) else node.left


def _right(node: Node) -> Node:
    return node.exponent if isinstance(node, Power) else node.right


def _is_atomic(node: Node) -> bool:
    if isinstance(node, (Variable, Function)):
        return True
    return isinstance(node, Number) and node.value >= 0 and math.isfinite(node.value)


def _wrap(text: str) -> str:
    return f"({text})"


def render(node: Node | None) -> str:
    """Render a tree back to display text.

    ``Mul`` of a number and a variable is written juxtaposed (``2x``), with
    ``1*x`` shortened to ``x``, ``0*x`` to ``0`` and ``-1*x`` to ``-x``.
    Every other product uses an explicit ``*``. Children are parenthesized
    where dropping the parentheses would change how the text parses back.
    """
    if node is None:
        return "?"
    if isinstance(node, Number):
        return number_text(node)
    if isinstance(node, Variable):
        return node.name
    if isinstance(node, Function):
        return f"{node.name}({', '.join(render(arg) for arg in node.args)})"
    if isinstance(node, Power):
        base = render(node.base)
        exponent = render(node.exponent)
        if not _is_atomic(node.base):
            base = _wrap(base)
        if not _is_atomic(node.exponent):
            exponent = _wrap(exponent)
        return f"{base}^{exponent}"
    if isinstance(node, Mul):
        juxtaposed = _render_coefficient(node)
        if juxtaposed is not None:
            return juxtaposed
        left = render(node.left)
        right = render(node.right)
        if isinstance(node.left, (Add, Sub)):
            left = _wrap(left)
        if isinstance(node.right, (Add, Sub, Mul, Div)):
            right = _wrap(right)
        return f"{left}*{right}"
    if isinstance(node, Div):
        left = render(node.left)
        right = render(node.right)
        if isinstance(node.left, (Add, Sub)):
            left = _wrap(left)
        if isinstance(node.right, (Add, Sub, Mul, Div)):
            right = _wrap(right)
        return f"{left}/{right}"
    if isinstance(node, (Add, Sub)):
        op = "+" if isinstance(node, Add) else "-"
        right = render(node.right)
        if isinstance(node.right, (Add, Sub)):
            right = _wrap(right)
        return f"{render(node.left)}{op}{right}"
    return "?"


def _render_coefficient(node: Mul) -> str | None:
    if isinstance(node.left, Number) and isinstance(node.right, Variable):
        number, var = node.left, node.right.name
    elif isinstance(node.right, Number) and isinstance(node.left, Variable):
        number, var = node.right, node.left.name
    else:
        return None
    coeff = number.value
    if not math.isfinite(coeff):
        return None
    if coeff == 1:
        return var
    if coeff == 0:
        return "0"
    if coeff == -1:
        return f"-{var}"
    return f"{number_text(number)}{var}"


def dump(node: Node | None) -> str:
    """Structural dump of a tree, e.g. ``Add(Mul(Number(2), Variable(x)), Number(3))``."""
    if node is None:
        return "?"
    if isinstance(node, Number):
        return f"Number({number_text(node)})"
    if isinstance(node, Variable):
        return f"Variable({node.name})"
    if isinstance(node, Function):
        return f"Function({node.name}, {', '.join(dump(arg) for arg in node.args)})"
    return f"{type(node).__name__}({dump(_left(node))}, {dump(_right(node))})"
