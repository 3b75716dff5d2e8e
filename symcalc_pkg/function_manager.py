"""Function memory: ``let`` definitions and their recall.

Examples:
    Define: let a = 2x+1, let f(x) = x^2+1
    Evaluate: a → 2x+1, f(3) → 10, f(2)+f(1) → 7
"""

from __future__ import annotations

import re

from . import config
from .logging_config import get_logger
from .parser import replace_identifier
from .simplify import simplify_expression

logger = get_logger("function_manager")

_NAME = r"[A-Za-z][A-Za-z0-9]*"
VARIABLE_DEF_RE = re.compile(rf"let\s+(?P<name>{_NAME})\s*=\s*(?P<body>.+)")
FUNCTION_DEF_RE = re.compile(
    rf"let\s+(?P<name>{_NAME})\(\s*(?P<param>{_NAME})\s*\)\s*=\s*(?P<body>.+)"
)
FUNCTION_KEY_RE = re.compile(rf"(?P<name>{_NAME})\((?P<param>{_NAME})\)")
NUMERIC_ARG = r"[+-]?(?:\d+\.?\d*|\.\d+)"

# Names that cannot be redefined
RESERVED_NAMES = config.BUILTIN_FUNCTIONS | config.COMMAND_NAMES | {"let", "e", "pi", "x"}


def parse_definition(text: str) -> tuple[str, str, str | None] | None:
    """Parse ``let name = body`` or ``let name(param) = body``.

    Returns:
        (name, body, param) with param None for a plain name, or None when
        text is not a definition.
    """
    text = text.strip()
    match = FUNCTION_DEF_RE.fullmatch(text)
    if match:
        return match.group("name"), match.group("body").strip(), match.group("param")
    match = VARIABLE_DEF_RE.fullmatch(text)
    if match:
        return match.group("name"), match.group("body").strip(), None
    return None


def _call_pattern(name: str) -> re.Pattern[str]:
    return re.compile(rf"(?<![A-Za-z0-9]){re.escape(name)}\(\s*(?P<arg>{NUMERIC_ARG})\s*\)")


class FunctionMemory:
    """Stored definitions keyed by ``name`` or ``name(param)``.

    Entries are created or overwritten by :meth:`define` and live as long as
    the memory object; :meth:`clear` empties it.
    """

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> dict[str, str]:
        return dict(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def define(self, text: str) -> str:
        """Store a definition and return the confirmation text."""
        parsed = parse_definition(text)
        if parsed is None:
            return "Invalid definition"
        name, body, param = parsed
        if name in RESERVED_NAMES:
            return "Invalid definition"
        if param is None:
            self._entries[name] = body
            logger.debug("Stored variable %s = %s", name, body)
            return f"Stored: {name} = {body}"
        key = f"{name}({param})"
        self._entries[key] = body
        logger.debug("Stored function %s = %s", key, body)
        return f"Stored function: {key}"

    def lookup(self, name: str) -> str | None:
        return self._entries.get(name)

    def evaluate(self, text: str) -> str:
        """Evaluate a stored name or numeric calls of stored functions.

        A bare stored name gives its simplified body. Otherwise every call
        ``f(<number>)`` of a stored ``f(param)`` is replaced by the body with
        the argument substituted, and the whole input is simplified.
        """
        text = text.strip()
        if text in self._entries:
            return simplify_expression(self._entries[text])

        result = text
        substituted = False
        for key, body in self._entries.items():
            match = FUNCTION_KEY_RE.fullmatch(key)
            if match is None:
                continue
            param = match.group("param")

            def expand_call(call: re.Match[str], body: str = body, param: str = param) -> str:
                return "(" + replace_identifier(body, param, f"({call.group('arg')})") + ")"

            result, count = _call_pattern(match.group("name")).subn(expand_call, result)
            substituted = substituted or count > 0
        if not substituted:
            return "Unknown variable or function"
        logger.debug("Expanded %r to %r", text, result)
        return simplify_expression(result)
