"""Dispatcher: routes one line of input to the engine component that handles it.

Routing order:

1. ``d/dx(...)``, ``d/dy(...)``, ``∂/∂x(...)``, ``d^n/dx^n(...)`` → differentiation
2. ``∫(...)dx`` and ``int(...)`` (1 or 3 arguments) → integration
3. ``solve(...)`` → equation solver
4. ``let ...`` → function memory definition
5. ``expand``, ``subs``, ``factor``, ``gcd``, ``lcm``, ``trigid``,
   ``simplify``, ``ast``, ``factorial``, ``series`` → helpers
6. calls of non-built-in names and bare stored names → function memory
7. anything else → tree simplification

Every failure is caught once in :meth:`Engine.dispatch_result`, turned into
``"Error: <message>"`` and recorded in the engine's error flag.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from . import config
from .algebra import expand, factor, factorial, gcd, lcm, subs, trigid
from .calculus import definite_integral, differentiate, integrate, series
from .function_manager import FunctionMemory
from .logging_config import get_logger
from .nodes import dump
from .parser import is_balanced, parse_expression, split_top_level_commas, validate_input
from .simplify import simplify, simplify_expression
from .solver import solve
from .types import CalculatorError, DispatchResult, ParseError, ValidationError

logger = get_logger("engine")

FALLBACK_MESSAGE = "No result. Internal CAS fallback used."

DERIVATIVE_RE = re.compile(r"d/d[xy]\(.+\)")
HIGHER_ORDER_RE = re.compile(r"d\^?[0-9²³]+/dx")
INTEGRAL_RE = re.compile(r"∫\((?P<body>.+)\)d?x")
CALL_NAME_RE = re.compile(r"(?<![A-Za-z0-9])(?P<name>[A-Za-z][A-Za-z0-9]*)\(")

HELPER_COMMANDS = (
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
)

Route = tuple[str, Callable[[], str]]


def _command_call(text: str) -> tuple[str, str] | None:
    """Split ``name(inner)`` when the opening parenthesis closes at the end."""
    match = config.CALL_SHAPE_RE.match(text)
    if not match:
        return None
    inner = match.group(2)
    balanced, _ = is_balanced(inner)
    if not balanced:
        return None
    return match.group(1), inner


def _invalid_format(command: str) -> ValidationError:
    return ValidationError(f"Invalid {command} format", "INVALID_FORMAT")


def _ast(text: str) -> str:
    return dump(simplify(parse_expression(text)))


class Engine:
    """Top-level engine context: function memory plus the error flag.

    One Engine serves one caller at a time. Use separate instances (or an
    external lock) when dispatching from several threads.

    Example:
        >>> engine = Engine()
        >>> engine.dispatch("2x + 3x")
        '5x'
        >>> engine.dispatch("solve(2x+3=7)")
        'x = 2'
        >>> engine.dispatch("let f(x) = x^2+1")
        'Stored function: f(x)'
        >>> engine.dispatch("f(3)")
        '10'
    """

    def __init__(self, memory: FunctionMemory | None = None):
        self.memory = memory if memory is not None else FunctionMemory()
        self._error_flag = False

    @property
    def error_flag(self) -> bool:
        """True when the most recent dispatch failed."""
        return self._error_flag

    def dispatch(self, line: str) -> str:
        """Evaluate one line of input and return the display text."""
        return self.dispatch_result(line).output

    def dispatch_result(self, line: str) -> DispatchResult:
        """Evaluate one line of input.

        Returns:
            DispatchResult with ok=False and output ``"Error: <message>"``
            when validation, routing or evaluation failed
        """
        self._error_flag = False
        route_name: str | None = None
        try:
            text = validate_input(line)
            route_name, handler = self._route(text)
            logger.debug("Routing %r to %s", text, route_name)
            output = handler()
        except CalculatorError as e:
            return self._fail(line, route_name, self._describe(e, route_name), e.code)
        except Exception as e:
            logger.debug("Unexpected failure for %r", line, exc_info=True)
            return self._fail(line, route_name, str(e) or type(e).__name__, "INTERNAL_ERROR")

        if not output:
            output = FALLBACK_MESSAGE
        return DispatchResult(ok=True, output=output, route=route_name)

    def _fail(
        self, line: str, route_name: str | None, message: str, code: str
    ) -> DispatchResult:
        self._error_flag = True
        logger.warning("Dispatch failed for %r: %s", line, message)
        return DispatchResult(
            ok=False, output=f"Error: {message}", route=route_name, error_code=code
        )

    @staticmethod
    def _describe(error: CalculatorError, route_name: str | None) -> str:
        if isinstance(error, ParseError):
            if route_name == "simplify":
                return f"Can't simplify: invalid expression ({error.message})"
            if route_name == "solve":
                return f"Could not parse equation ({error.message})"
        return error.message

    def _route(self, text: str) -> Route:
        if text.startswith("d/d"):
            if not DERIVATIVE_RE.fullmatch(text):
                raise _invalid_format("d/dx")
            return "differentiate", lambda: differentiate(text)
        if text.startswith("∂"):
            return "differentiate", lambda: differentiate(text)
        if HIGHER_ORDER_RE.match(text):
            return "differentiate", lambda: differentiate(text)

        if text.startswith("∫"):
            match = INTEGRAL_RE.fullmatch(text)
            if not match:
                raise _invalid_format("∫")
            body = match.group("body")
            return "integrate", lambda: integrate(body)

        call = _command_call(text)
        name, inner = call if call else (None, "")

        if text.startswith("int("):
            if name != "int":
                raise _invalid_format("int")
            args = split_top_level_commas(inner)
            if len(args) == 3 and all(args):
                return "integrate", lambda: definite_integral(*args)
            if len(args) == 1 and args[0]:
                return "integrate", lambda: integrate(args[0])
            raise _invalid_format("int")

        if text.startswith("solve("):
            if name != "solve" or not inner.strip():
                raise _invalid_format("solve")
            equation = inner if "=" in inner else f"{inner}=0"
            return "solve", lambda: solve(equation)

        if re.match(r"let\s", text):
            return "define", lambda: self.memory.define(text)

        if name in HELPER_COMMANDS:
            return name, self._helper(name, inner)

        for call_match in CALL_NAME_RE.finditer(text):
            if call_match.group("name") not in config.BUILTIN_FUNCTIONS:
                return "function", lambda: self.memory.evaluate(text)
        if text in self.memory:
            return "function", lambda: self.memory.evaluate(text)

        return "simplify", lambda: simplify_expression(text)

    def _helper(self, name: str, inner: str) -> Callable[[], str]:
        args = split_top_level_commas(inner)
        if not all(args):
            raise _invalid_format(name)
        if name == "subs":
            if len(args) != 3 or not config.IDENT_RE.match(args[1]):
                raise _invalid_format(name)
            return lambda: subs(*args)
        if name in ("gcd", "lcm"):
            if len(args) != 2:
                raise _invalid_format(name)
            return lambda: gcd(*args) if name == "gcd" else lcm(*args)
        if name == "series":
            if len(args) != 3:
                raise _invalid_format(name)
            return lambda: series(*args)
        if len(args) != 1:
            raise _invalid_format(name)
        handlers: dict[str, Callable[[str], str]] = {
            "expand": expand,
            "factor": factor,
            "trigid": trigid,
            "simplify": simplify_expression,
            "ast": _ast,
            "factorial": factorial,
        }
        handler = handlers[name]
        return lambda: handler(inner)


_default_engine: Engine | None = None


def get_engine() -> Engine:
    """Return the process-wide default engine, creating it on first use."""
    global _default_engine
    if _default_engine is None:
        _default_engine = Engine()
    return _default_engine
