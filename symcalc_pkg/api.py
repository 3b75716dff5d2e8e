"""Public API for SymCalc - returns structured objects instead of display strings."""

from __future__ import annotations

from .algebra import expand, factor, factorial, subs
from .calculus import definite_integral as _definite_integral
from .calculus import differentiate, integrate, series
from .engine import get_engine
from .logging_config import get_logger
from .parser import parse_expression, validate_input
from .simplify import simplify_expression
from .solver import solve
from .types import CalculatorError, EvalResult

logger = get_logger("api")

# Result texts that report a shape the engine has no rule for
_UNSUPPORTED_MARKERS = (
    "not supported for:",
    "Unsupported or no x found",
    " requires a ",
    " limited to ",
)
_INVALID_RESULTS = frozenset(
    {"Invalid equation", "Invalid partial", "Invalid derivative order", "Numeric overflow"}
)


def _wrap(text: str) -> EvalResult:
    if text in _INVALID_RESULTS or any(marker in text for marker in _UNSUPPORTED_MARKERS):
        return EvalResult(ok=False, error=text)
    return EvalResult(ok=True, result=text)


def _guarded(operation, *args: str) -> EvalResult:
    try:
        return _wrap(operation(*args))
    except CalculatorError as e:
        return EvalResult(ok=False, error=e.message)


def evaluate(expression: str) -> EvalResult:
    """Simplify an expression.

    Example:
        >>> from symcalc_pkg.api import evaluate
        >>> evaluate("2x + 3x").result
        '5x'
        >>> evaluate("2 +* 3").ok
        False
    """
    return _guarded(simplify_expression, expression)


def diff(expression: str) -> EvalResult:
    """Differentiate an expression in x.

    Example:
        >>> from symcalc_pkg.api import diff
        >>> diff("x^3").result
        '3x^2'
    """
    return _guarded(differentiate, expression)


def integrate_expr(expression: str) -> EvalResult:
    """Indefinite integral in x, with the ``+ C`` suffix.

    Example:
        >>> from symcalc_pkg.api import integrate_expr
        >>> integrate_expr("x^2").result
        'x^3/3 + C'
    """
    return _guarded(integrate, expression)


def definite_integral(expression: str, lower: str, upper: str) -> EvalResult:
    """Definite integral ``F(upper) - F(lower)`` as text."""
    return _guarded(_definite_integral, expression, lower, upper)


def solve_equation(equation: str) -> EvalResult:
    """Solve a polynomial equation in x of degree at most 3.

    Args:
        equation: Equation string (e.g., "x+1=0", "x^2-4=0")

    Returns:
        EvalResult whose result lists the roots

    Example:
        >>> from symcalc_pkg.api import solve_equation
        >>> solve_equation("2x + 3 = 7").result
        'x = 2'
        >>> solve_equation("x^2 + 1 = 0").result
        'No real roots'
    """
    return _guarded(solve, equation)


def expand_expr(expression: str) -> EvalResult:
    """Multiply out a squared or cubed binomial."""
    return _guarded(expand, expression)


def factor_expr(expression: str) -> EvalResult:
    """Factor a quadratic in x over the reals."""
    return _guarded(factor, expression)


def substitute(expression: str, variable: str, value: str) -> EvalResult:
    """Substitute a value for a variable, evaluating pure arithmetic."""
    return _guarded(subs, expression, variable, value)


def series_expr(expression: str, center: str, order: str) -> EvalResult:
    """Taylor polynomial of expression about x = center.

    Example:
        >>> from symcalc_pkg.api import series_expr
        >>> series_expr("e^x", "0", "3").result
        '1 + x + x^2/2 + x^3/6'
    """
    return _guarded(series, expression, center, order)


def factorial_value(n: str) -> EvalResult:
    """Exact factorial of a non-negative integer."""
    return _guarded(factorial, n)


def validate_expression(expression: str) -> tuple[bool, str | None]:
    """Validate an expression without evaluating it.

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> from symcalc_pkg.api import validate_expression
        >>> validate_expression("2 + 2")
        (True, None)
        >>> validate_expression("2 + $")
        (False, 'Unknown character: $')
    """
    try:
        parse_expression(validate_input(expression))
        return True, None
    except CalculatorError as e:
        return False, e.message
    except Exception as e:
        logger.warning("Unexpected validation error: %s", e, exc_info=True)
        return False, "Unexpected validation error"


def dispatch(line: str) -> str:
    """Route one line through the default engine, as the REPL does."""
    return get_engine().dispatch(line)


def error_flag() -> bool:
    """True when the default engine's most recent dispatch failed."""
    return get_engine().error_flag
