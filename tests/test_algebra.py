"""Tests for expand, factor, subs, gcd, lcm and trigid."""

import unittest

import pytest

from symcalc_pkg import config
from symcalc_pkg.algebra import (
    expand,
    factor,
    factorial,
    format_polynomial,
    gcd,
    lcm,
    subs,
    trigid,
)


class TestExpand(unittest.TestCase):
    """Test binomial expansion."""

    def test_square(self):
        self.assertEqual(expand("(x+2)^2"), "x^2 + 4x + 4")
        self.assertEqual(expand("(x - 3)^2"), "x^2 - 6x + 9")

    def test_square_with_coefficient(self):
        self.assertEqual(expand("(2x+1)^2"), "4x^2 + 4x + 1")

    def test_cube(self):
        self.assertEqual(expand("(x-1)^3"), "x^3 - 3x^2 + 3x - 1")

    def test_unsupported(self):
        self.assertEqual(expand("(x+y)^2"), "expand not supported for: (x+y)^2")
        self.assertEqual(expand("(2x+1)^3"), "expand not supported for: (2x+1)^3")


class TestFactor(unittest.TestCase):
    """Test quadratic factoring."""

    def test_difference_of_squares(self):
        self.assertEqual(factor("x^2 - 4"), "(x - 2)(x + 2)")

    def test_double_root(self):
        self.assertEqual(factor("x^2 + 2x + 1"), "(x + 1)^2")

    def test_zero_root(self):
        self.assertEqual(factor("x^2 - 3x"), "x(x - 3)")

    def test_leading_coefficient(self):
        self.assertEqual(factor("2x^2 - 2"), "2(x - 1)(x + 1)")

    def test_irreducible(self):
        self.assertEqual(factor("x^2 + 1"), "irreducible over the reals")

    def test_not_quadratic(self):
        self.assertEqual(factor("x^3 - 1"), "factor not supported for: x^3-1")
        self.assertEqual(factor("x + 1"), "factor not supported for: x+1")


class TestSubs(unittest.TestCase):
    """Test substitution."""

    def test_numeric_result(self):
        self.assertEqual(subs("x^2+1", "x", "3"), "10")

    def test_symbolic_result(self):
        self.assertEqual(subs("x+y", "x", "2"), "(2)+y")

    def test_whole_identifiers_only(self):
        self.assertEqual(subs("exp(x)", "x", "0"), "exp((0))")

    def test_large_result_has_no_exponent(self):
        self.assertEqual(subs("x*2", "x", "10000000000000000"), "20000000000000000")


@pytest.mark.parametrize("a, b", [(12, 18), (7, 13), (0, 5), (-12, 18), (100, 75)])
def test_gcd_lcm_identity(a, b):
    """gcd(a, b) * lcm(a, b) == |a * b|."""
    assert int(gcd(str(a), str(b))) * int(lcm(str(a), str(b))) == abs(a * b)


class TestGcdLcm(unittest.TestCase):
    """Test integer helpers."""

    def test_values(self):
        self.assertEqual(gcd("12", "18"), "6")
        self.assertEqual(lcm("4", "6"), "12")
        self.assertEqual(gcd(" 21 ", "14"), "7")

    def test_zero(self):
        self.assertEqual(gcd("0", "0"), "0")
        self.assertEqual(lcm("0", "5"), "0")

    def test_non_integers(self):
        self.assertEqual(gcd("1.5", "3"), "gcd requires two integers")
        self.assertEqual(lcm("x", "3"), "lcm requires two integers")


class TestFactorial(unittest.TestCase):
    """Test exact factorials."""

    def test_values(self):
        self.assertEqual(factorial("0"), "1")
        self.assertEqual(factorial("5"), "120")
        self.assertEqual(factorial(" 20 "), "2432902008176640000")

    def test_rejects_non_integers(self):
        self.assertEqual(factorial("-1"), "factorial requires a non-negative integer")
        self.assertEqual(factorial("2.5"), "factorial requires a non-negative integer")

    def test_upper_limit(self):
        self.assertEqual(
            factorial(str(config.MAX_FACTORIAL + 1)),
            f"factorial limited to n <= {config.MAX_FACTORIAL}",
        )


class TestTrigid(unittest.TestCase):
    """Test identity lookup."""

    def test_double_angle(self):
        self.assertEqual(trigid("sin(2x)"), "2sin(x)cos(x)")
        self.assertEqual(trigid("sin(2*x)"), "2sin(x)cos(x)")
        self.assertEqual(trigid("cos(2x)"), "cos(x)^2 - sin(x)^2")

    def test_power_reduction(self):
        self.assertEqual(trigid("sin^2(x)"), "(1 - cos(2x))/2")
        self.assertEqual(trigid("cos²(x)"), "(1 + cos(2x))/2")

    def test_unsupported(self):
        self.assertEqual(trigid("tan(x)"), "trigid not supported for: tan(x)")


class TestFormatPolynomial(unittest.TestCase):
    """Test polynomial rendering."""

    def test_leading_negative(self):
        self.assertEqual(format_polynomial({2: -1.0, 1: 0.0, 0: 2.0}), "-x^2 + 2")

    def test_all_zero(self):
        self.assertEqual(format_polynomial({1: 0.0, 0: 0.0}), "0")
