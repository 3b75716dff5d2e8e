"""SymCalc package: tokenizer, parser, simplifier, solver, calculus rules and dispatcher."""

__all__ = [
    "config",
    "nodes",
    "parser",
    "simplify",
    "solver",
    "calculus",
    "algebra",
    "function_manager",
    "engine",
    "verify",
    "cli",
    "types",
    "api",
    "logging_config",
]

# Public API exports

__api_exports__ = [
    "evaluate",
    "diff",
    "integrate_expr",
    "definite_integral",
    "solve_equation",
    "expand_expr",
    "factor_expr",
    "substitute",
    "series_expr",
    "factorial_value",
    "validate_expression",
    "dispatch",
    "error_flag",
]
