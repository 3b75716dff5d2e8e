from __future__ import annotations

import argparse
import json
import sys

from . import config
from .engine import Engine
from .logging_config import get_logger, setup_logging
from .types import DispatchResult
from .verify import verify_line

logger = get_logger("cli")

HELP_TEXT = """Commands:
  2x + 3x                  simplify an expression
  solve(x^2 - 4 = 0)       solve a linear, quadratic or cubic equation in x
  d/dx(x^3)                differentiate (also d^2/dx^2(...), ∂/∂y(...))
  ∫(x^2)dx, int(x^2)       indefinite integral
  int(x^2, 0, 3)           definite integral
  expand((x+2)^2)          multiply out a binomial power
  factor(x^2 - 4)          factor a quadratic
  subs(x^2+1, x, 3)        substitute a value
  gcd(12, 18), lcm(4, 6)   integer gcd / lcm
  trigid(sin(2x))          trigonometric identity
  series(sin(x), 0, 5)     Taylor polynomial about x = 0 up to x^5
  factorial(10)            exact factorial
  ast(2x + 3)              show the expression tree
  let a = 2x+1             store a name
  let f(x) = x^2 + 1       store a function, then call f(3)
  clear                    forget stored names and functions
  help                     show this text
  quit, exit               leave"""


def _health_check() -> int:
    """Run health check to verify dependencies and basic operations.

    Returns:
        Exit code (0 for success, non-zero for failures)
    """
    checks_passed = 0
    checks_failed = 0

    print("Running SymCalc health check...")
    print("-" * 50)

    # Check SymPy import
    try:
        import sympy as sp

        print(f"[OK] SymPy {sp.__version__} imported successfully")
        checks_passed += 1
    except ImportError as e:
        print(f"[FAIL] SymPy import failed: {e}")
        checks_failed += 1

    engine = Engine()
    checks = [
        ("Simplification", "2x + 3x", "5x"),
        ("Solving", "solve(x^2 - 4 = 0)", "x₁ = 2, x₂ = -2"),
        ("Differentiation", "d/dx(x^3)", "3x^2"),
        ("Integration", "∫(x^2)dx", "x^3/3 + C"),
        ("Factoring", "factor(x^2 - 4)", "(x - 2)(x + 2)"),
    ]
    for label, line, expected in checks:
        try:
            output = engine.dispatch(line)
            if output == expected:
                print(f"[OK] {label} works")
                checks_passed += 1
            else:
                print(f"[FAIL] {label} check failed: expected {expected}, got {output}")
                checks_failed += 1
        except Exception as e:
            print(f"[FAIL] {label} check failed: {e}")
            checks_failed += 1

    # Cross-check calculus results against SymPy
    try:
        agreed = verify_line("d/dx(x*sin(x))", engine.dispatch("d/dx(x*sin(x))"))
        if agreed:
            print("[OK] Calculus results agree with SymPy")
            checks_passed += 1
        else:
            print(f"[FAIL] SymPy cross-check returned {agreed}")
            checks_failed += 1
    except Exception as e:
        print(f"[FAIL] SymPy cross-check failed: {e}")
        checks_failed += 1

    print("-" * 50)
    print(f"Results: {checks_passed} passed, {checks_failed} failed")

    if checks_failed > 0:
        print("\n[WARN] Some health checks failed. Core functionality may be impaired.")
        return 1

    print("\n[OK] All health checks passed!")
    return 0


def print_result(
    result: DispatchResult,
    output_format: str = "human",
    verified: bool | None = None,
) -> None:
    """Print a dispatch result in the requested format."""
    if output_format == "json":
        data = result.to_dict()
        if verified is not None:
            data["verified"] = verified
        print(json.dumps(data, ensure_ascii=False))
        return
    print(result.output)
    if verified is True:
        print("[verified with SymPy]")
    elif verified is False:
        print("[WARN] SymPy disagrees with this result")


def _evaluate_line(
    engine: Engine, line: str, output_format: str, verify: bool
) -> DispatchResult:
    result = engine.dispatch_result(line)
    verified = verify_line(line, result.output) if verify and result.ok else None
    if verify:
        logger.info("SymPy cross-check for %r: %s", line, verified)
    print_result(result, output_format, verified)
    return result


def repl_loop(
    engine: Engine | None = None, output_format: str = "human", verify: bool = False
) -> None:
    """Interactive REPL loop with graceful interrupt handling."""
    engine = engine or Engine()
    print("SymCalc: type 'help' for commands, 'quit' to exit.")
    while True:
        try:
            raw = input(">>> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye.")
            break
        if not raw:
            continue
        command = raw.lower()
        if command in ("quit", "exit"):
            print("Goodbye.")
            break
        if command == "help":
            print(HELP_TEXT)
            continue
        if command == "clear":
            engine.memory.clear()
            print("Cleared stored definitions.")
            continue
        _evaluate_line(engine, raw, output_format, verify)


def main_entry(argv: list[str] | None = None) -> int:
    """
    Main entry point for SymCalc CLI.

    Args:
        argv: Optional command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parser = argparse.ArgumentParser(prog="symcalc")
    parser.add_argument(
        "-e",
        "--eval",
        type=str,
        help="Evaluate one expression and exit (non-interactive)",
        dest="eval_expr",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["json", "human"],
        default="human",
        help="Output format: json (machine-readable) or human (human-readable)",
    )
    parser.add_argument(
        "-p", "--precision", type=int, help="Set output precision (significant digits)"
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="Show program version"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set logging level",
    )
    parser.add_argument("--log-file", type=str, help="Write logs to file")
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Cross-check derivatives and integrals with SymPy",
    )
    parser.add_argument(
        "--health-check",
        action="store_true",
        help="Run health check and verify dependencies",
    )
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, log_file=args.log_file)

    # Apply CLI configuration overrides
    if args.precision and args.precision > 0:
        config.OUTPUT_PRECISION = int(args.precision)

    if args.version:
        print(config.VERSION)
        return 0
    if args.health_check:
        return _health_check()

    engine = Engine()
    if args.eval_expr is not None:
        expr = args.eval_expr.strip()
        # Remove ">>>" prompt if present
        if expr.startswith(">>>"):
            expr = expr[3:].strip()
        _evaluate_line(engine, expr, args.format, args.verify)
        return 1 if engine.error_flag else 0

    try:
        repl_loop(engine, args.format, args.verify)
    except KeyboardInterrupt:
        print("\nGoodbye.")
    return 0


if __name__ == "__main__":
    sys.exit(main_entry())
