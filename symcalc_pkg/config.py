"""Centralized configuration for SymCalc.

This module defines:
- Input validation limits (length, nesting depth)
- Output precision for roots and calculus coefficients
- Numeric tolerances used by the cubic solver
- Regex patterns shared by the dispatcher and the text-pattern modules
- SymPy transformations used when cross-checking results

Configuration can be overridden via:
- CLI flags (see cli.py)
- Environment variables (prefixed with SYMCALC_)
"""

import os
import re

from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_multiplication_application,
    standard_transformations,
)

# Version is defined in pyproject.toml [project] section
try:
    import importlib.metadata

    VERSION = importlib.metadata.version("symcalc")
except Exception:
    # Fallback if package not installed
    VERSION = "1.0.0"

# Input validation limits
MAX_INPUT_LENGTH = int(os.getenv("SYMCALC_MAX_INPUT_LENGTH", "10000"))  # characters
MAX_EXPRESSION_DEPTH = int(
    os.getenv("SYMCALC_MAX_EXPRESSION_DEPTH", "100")
)  # recursion depth for parser, simplifier and calculus

# Output precision (significant digits)
OUTPUT_PRECISION = int(os.getenv("SYMCALC_OUTPUT_PRECISION", "4"))  # solver roots
CALCULUS_PRECISION = int(
    os.getenv("SYMCALC_CALCULUS_PRECISION", "10")
)  # coefficients produced by the calculus rules

# Numeric tolerance for the cubic discriminant
ROOT_TOLERANCE = float(os.getenv("SYMCALC_ROOT_TOLERANCE", "1e-12"))

# Largest n accepted by factorial(n) and by series(expr, a, n)
MAX_FACTORIAL = int(os.getenv("SYMCALC_MAX_FACTORIAL", "1000"))
MAX_SERIES_ORDER = int(os.getenv("SYMCALC_MAX_SERIES_ORDER", "12"))

# Functions the tree parser accepts as calls; any other name(...) goes to memory
BUILTIN_FUNCTIONS = frozenset(
    {
        "sin",
        "cos",
        "tan",
        "sec",
        "csc",
        "cot",
        "asin",
        "acos",
        "atan",
        "ln",
        "log",
        "exp",
        "sqrt",
        "abs",
    }
)

# Commands recognised by the dispatcher (never treated as stored functions)
COMMAND_NAMES = frozenset(
    {
        "solve",
        "int",
        "expand",
        "subs",
        "factor",
        "gcd",
        "lcm",
        "trigid",
        "simplify",
        "ast",
        "factorial",
        "series",
    }
)

# Regex patterns
NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
IDENT_RE = re.compile(r"^[A-Za-z][A-Za-z0-9]*$")
CALL_SHAPE_RE = re.compile(r"^([A-Za-z][A-Za-z0-9]*)\((.*)\)$")
ARITHMETIC_ONLY_RE = re.compile(r"^[0-9.+\-*/^() ]+$")

# SymPy parsing transformations used by verify.py
TRANSFORMATIONS = standard_transformations + (
    implicit_multiplication_application,
    convert_xor,
)
