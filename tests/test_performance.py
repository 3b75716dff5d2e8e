"""Performance tests for SymCalc.

These tests are marked as 'slow' and can be skipped with: pytest -m "not slow"
"""

import time

import pytest

from symcalc_pkg import config
from symcalc_pkg.calculus import differentiate
from symcalc_pkg.engine import Engine
from symcalc_pkg.simplify import simplify_expression
from symcalc_pkg.solver import solve


@pytest.mark.slow
class TestPerformance:
    """Benchmarks for the hot paths."""

    def test_simplify_time(self):
        """Benchmark simplification."""
        start = time.time()
        for _ in range(200):
            simplify_expression("(2x+1)(x-3) + 3x^2 - x")
        elapsed = time.time() - start
        assert elapsed < 2.0, f"Simplification too slow: {elapsed}s"

    def test_solve_time(self):
        """Benchmark the cubic solver."""
        start = time.time()
        for i in range(200):
            solve(f"x^3 - {i}x + 1 = 0")
        elapsed = time.time() - start
        assert elapsed < 2.0, f"Solving too slow: {elapsed}s"

    def test_long_sum_differentiation(self):
        """Long flat sums stay fast."""
        text = "+".join(f"{i}x^{i}" for i in range(1, 80))
        start = time.time()
        result = differentiate(text)
        elapsed = time.time() - start
        assert "not supported" not in result
        assert elapsed < 2.0, f"Differentiation too slow: {elapsed}s"

    def test_max_length_input_rejected_quickly(self):
        """Oversized input is rejected before any parsing."""
        engine = Engine()
        start = time.time()
        output = engine.dispatch("x+" * config.MAX_INPUT_LENGTH)
        elapsed = time.time() - start
        assert output.startswith("Error: Input too long")
        assert elapsed < 1.0
