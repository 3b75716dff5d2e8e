"""Cross-check calculus output against SymPy."""

import unittest

import pytest
import sympy as sp

from symcalc_pkg.calculus import differentiate, integrate
from symcalc_pkg.verify import (
    X,
    to_sympy,
    verify_derivative,
    verify_integral,
    verify_line,
)

DERIVATIVE_CASES = [
    "x^3",
    "x^2 + 3x",
    "sin(2x)",
    "cos(x)",
    "tan(x)",
    "x*sin(x)",
    "e^x",
    "ln(x)",
    "sqrt(x)",
    "sin(x)^2",
    "(x+1)^3",
    "x^2/2",
    "2^x",
    "atan(x)",
]

INTEGRAL_CASES = [
    "x^2",
    "3x^2 + cos(x)",
    "5",
    "x",
    "1/x",
    "sin(2x)",
    "e^x",
    "tan(x)",
    "sec(x)^2",
    "(2x+1)^3",
]


@pytest.mark.parametrize("expr", DERIVATIVE_CASES)
def test_derivatives_agree_with_sympy(expr):
    """Rule-based derivatives match SymPy numerically."""
    assert verify_derivative(expr, differentiate(expr)) is True


@pytest.mark.parametrize("expr", INTEGRAL_CASES)
def test_integrals_agree_with_sympy(expr):
    """Differentiating the antiderivative gives back the integrand."""
    assert verify_integral(expr, integrate(expr)) is True


class TestVerify(unittest.TestCase):
    """Test the verification helpers."""

    def test_to_sympy_notation(self):
        self.assertEqual(to_sympy("3x^2"), 3 * X**2)
        self.assertEqual(to_sympy("x^3/3 + C"), X**3 / 3)
        self.assertEqual(to_sympy("ln|x|"), sp.log(sp.Abs(X)))
        self.assertEqual(to_sympy("e^x"), sp.exp(X))

    def test_wrong_result_detected(self):
        self.assertIs(verify_derivative("x^3", "2x^2"), False)
        self.assertIs(verify_integral("x^2", "x^3 + C"), False)

    def test_unsupported_is_not_checkable(self):
        self.assertIsNone(verify_derivative("x^x", "d/dx not supported for: x^x"))
        self.assertIsNone(verify_integral("x^x", "∫ not supported for: x^x"))
        self.assertIsNone(verify_integral("x^2", "x^3/3"))

    def test_verify_line(self):
        self.assertIs(verify_line("d/dx(x^3)", "3x^2"), True)
        self.assertIs(verify_line("∫(x^2)dx", "x^3/3 + C"), True)
        self.assertIs(verify_line("int(x^2)", "x^3/3 + C"), True)
        self.assertIsNone(verify_line("2x + 3x", "5x"))
