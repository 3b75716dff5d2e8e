"""Type definitions: result dataclasses and the engine's exception family."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class EvalResult:
    """Result of a single engine operation called through the API."""

    ok: bool
    result: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok}
        if self.result is not None:
            result_dict["result"] = self.result
        if self.error is not None:
            result_dict["error"] = self.error
        return result_dict

    def __repr__(self) -> str:
        """Return string representation of the result."""
        if not self.ok:
            return f"EvalResult(ok=False, error={self.error!r})"
        return f"EvalResult(ok=True, result={self.result!r})"


@dataclass
class DispatchResult:
    """Outcome of routing one input line through the dispatcher."""

    ok: bool
    output: str
    route: str | None = None  # "differentiate", "solve", "simplify", ...
    error_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok, "output": self.output}
        if self.route is not None:
            result_dict["route"] = self.route
        if self.error_code is not None:
            result_dict["error_code"] = self.error_code
        return result_dict

    def __repr__(self) -> str:
        """Return string representation of the result."""
        parts = [f"ok={self.ok}", f"output={self.output!r}"]
        if self.route is not None:
            parts.append(f"route={self.route!r}")
        if self.error_code is not None:
            parts.append(f"error_code={self.error_code!r}")
        return f"DispatchResult({', '.join(parts)})"


class CalculatorError(Exception):
    """Base class for failures raised inside the engine."""

    def __init__(self, message: str, code: str = "CALCULATOR_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class LexError(CalculatorError):
    """Raised when the tokenizer meets a character it does not recognise."""

    def __init__(self, char: str):
        self.char = char
        super().__init__(f"Unknown character: {char}", "UNKNOWN_CHARACTER")


class ParseError(CalculatorError):
    """Raised when parsing fails."""

    def __init__(self, message: str, code: str = "PARSE_ERROR"):
        super().__init__(message, code)


class DepthExceeded(CalculatorError):
    """Raised when an expression nests deeper than MAX_EXPRESSION_DEPTH."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(
            f"Expression nesting exceeds maximum depth of {limit}", "TOO_DEEP"
        )


class ValidationError(CalculatorError):
    """Raised when input validation fails."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(message, code)
