"""Test that API functions return typed objects."""

import unittest

from symcalc_pkg import api
from symcalc_pkg.api import (
    definite_integral,
    diff,
    evaluate,
    expand_expr,
    factor_expr,
    factorial_value,
    integrate_expr,
    series_expr,
    solve_equation,
    substitute,
    validate_expression,
)
from symcalc_pkg.types import EvalResult


class TestAPITypedReturns(unittest.TestCase):
    """Test that API returns typed dataclasses."""

    def test_evaluate_returns_evalresult(self):
        result = evaluate("2x + 3x")
        self.assertIsInstance(result, EvalResult)
        self.assertTrue(result.ok)
        self.assertEqual(result.result, "5x")

    def test_evaluate_error(self):
        result = evaluate("2 +* 3")
        self.assertFalse(result.ok)
        self.assertEqual(result.error, "Unexpected token: *")

    def test_diff(self):
        self.assertEqual(diff("x^3").result, "3x^2")
        result = diff("x^x")
        self.assertFalse(result.ok)
        self.assertEqual(result.error, "d/dx not supported for: x^x")

    def test_integrate_expr(self):
        self.assertEqual(integrate_expr("x^2").result, "x^3/3 + C")
        self.assertFalse(integrate_expr("x*sin(x)").ok)

    def test_definite_integral(self):
        self.assertEqual(definite_integral("x^2", "0", "3").result, "(9) - (0)")

    def test_solve_equation(self):
        self.assertEqual(solve_equation("2x + 3 = 7").result, "x = 2")
        self.assertEqual(solve_equation("x^2 + 1 = 0").result, "No real roots")
        result = solve_equation("x = x = 1")
        self.assertFalse(result.ok)
        self.assertEqual(result.error, "Invalid equation")
        self.assertFalse(solve_equation("y = 1").ok)

    def test_algebra_helpers(self):
        self.assertEqual(expand_expr("(x+2)^2").result, "x^2 + 4x + 4")
        self.assertEqual(factor_expr("x^2 + 1").result, "irreducible over the reals")
        self.assertFalse(factor_expr("x^3").ok)
        self.assertEqual(substitute("x^2+1", "x", "3").result, "10")

    def test_series_and_factorial(self):
        self.assertEqual(series_expr("e^x", "0", "3").result, "1 + x + x^2/2 + x^3/6")
        self.assertFalse(series_expr("ln(x)", "0", "3").ok)
        self.assertFalse(series_expr("sin(x)", "0", "99").ok)
        self.assertEqual(factorial_value("6").result, "720")
        self.assertFalse(factorial_value("-3").ok)

    def test_numeric_overflow_is_reported(self):
        result = solve_equation("1" + "0" * 200 + "x^3 + x = 0")
        self.assertFalse(result.ok)
        self.assertEqual(result.error, "Numeric overflow")

    def test_to_dict(self):
        self.assertEqual(evaluate("1+1").to_dict(), {"ok": True, "result": "2"})
        self.assertEqual(
            diff("x^x").to_dict(),
            {"ok": False, "error": "d/dx not supported for: x^x"},
        )

    def test_validate_expression(self):
        self.assertEqual(validate_expression("2 + 2"), (True, None))
        self.assertEqual(validate_expression("2 + $"), (False, "Unknown character: $"))
        is_valid, error = validate_expression("")
        self.assertFalse(is_valid)
        self.assertIn("Empty input", error)

    def test_dispatch_uses_default_engine(self):
        self.assertEqual(api.dispatch("let apiname = 7"), "Stored: apiname = 7")
        self.assertEqual(api.dispatch("apiname"), "7")
        self.assertFalse(api.error_flag())
        api.dispatch("2 $ 3")
        self.assertTrue(api.error_flag())


if __name__ == "__main__":
    unittest.main()
