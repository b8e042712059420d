"""Plain ``{{name}}`` substitution dialect."""

import json
import re
from collections.abc import Mapping
from typing import Any

from pydantic_core import PydanticSerializationError, to_jsonable_python

from ..models import ValidationResult
from ..types import MAX_VARIABLES, Dialect, ErrorCode, WarningCode, is_variable_name
from ._base import DialectCompiler

VARIABLE_TOKEN = re.compile(r"\{\{([A-Za-z][A-Za-z0-9_]*)\}\}")
_SPAN = re.compile(r"\{\{(.*?)\}\}")
_OPEN = re.compile(r"\{\{")
_CLOSE = re.compile(r"\}\}")


def format_value(value: Any) -> str:
    """Project a variable value to the text substituted into a template.

    Strings pass through, booleans become ``true``/``false``, numbers use their
    shortest form (``3.0`` renders as ``3``), None renders empty, objects with
    their own ``__str__`` use it and everything else is compact JSON.
    """
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        text = repr(value)
        return text[:-2] if text.endswith(".0") else text
    if type(value).__str__ is not object.__str__:
        return str(value)
    try:
        return json.dumps(value, default=to_jsonable_python, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError, PydanticSerializationError):
        return repr(value)


class SimpleCompiler(DialectCompiler):
    """Substitutes ``{{name}}`` tokens and nothing else.

    Tokens with no binding are left in place verbatim, so a partially bound
    template can be compiled again later.
    """

    dialect = Dialect.SIMPLE

    def extract_variables(self, content: str) -> list[str]:
        return sorted(set(VARIABLE_TOKEN.findall(content)))

    def _render(self, content: str, variables: Mapping[str, Any]) -> str:
        def substitute(match: re.Match[str]) -> str:
            name = match.group(1)
            if name not in variables:
                return match.group(0)
            return format_value(variables[name])

        return VARIABLE_TOKEN.sub(substitute, content)

    def _check(self, content: str, result: ValidationResult) -> None:
        for line_number, line in enumerate(content.split("\n"), start=1):
            self._check_balance(line, line_number, result)
            for span in _SPAN.finditer(line):
                self._check_span(span, line_number, result)

        count = len(self.extract_variables(content))
        if count > MAX_VARIABLES:
            result.add_warning(
                0,
                0,
                f"template uses {count} distinct variables, more than the recommended {MAX_VARIABLES}",
                WarningCode.UNUSED_VARIABLE,
            )

    @staticmethod
    def _check_balance(line: str, line_number: int, result: ValidationResult) -> None:
        opens = [m.start() for m in _OPEN.finditer(line)]
        closes = [m.start() for m in _CLOSE.finditer(line)]
        if len(opens) == len(closes):
            return

        pending: list[int] = []
        stray_closes: list[int] = []
        events = sorted([(pos, "open") for pos in opens] + [(pos, "close") for pos in closes])
        for pos, kind in events:
            if kind == "open":
                pending.append(pos)
            elif pending:
                pending.pop()
            else:
                stray_closes.append(pos)

        if len(opens) > len(closes):
            column = (pending[0] if pending else opens[-1]) + 1
            result.add_error(line_number, column, "unmatched opening braces '{{'", ErrorCode.UNMATCHED_OPENING)
        else:
            column = (stray_closes[-1] if stray_closes else closes[-1]) + 1
            result.add_error(line_number, column, "unmatched closing braces '}}'", ErrorCode.UNMATCHED_CLOSING)

    @staticmethod
    def _check_span(span: re.Match[str], line_number: int, result: ValidationResult) -> None:
        inner = span.group(1)
        if is_variable_name(inner):
            return

        column = span.start() + 1
        stripped = inner.strip()
        if stripped[:1] in ("#", "^", "/", ">"):
            result.add_warning(
                line_number,
                column,
                f"'{{{{{inner}}}}}' is Mustache section syntax; use the mustache dialect",
                WarningCode.DEPRECATED_SYNTAX,
            )
        elif "|" in stripped:
            result.add_warning(
                line_number,
                column,
                f"'{{{{{inner}}}}}' uses a filter; use the jinja2 dialect",
                WarningCode.DEPRECATED_SYNTAX,
            )
        elif not stripped:
            result.add_error(line_number, column, "empty variable name", ErrorCode.INVALID_VARIABLE_NAME)
        else:
            result.add_error(
                line_number,
                column,
                f"invalid variable name '{inner}': must match ^[A-Za-z][A-Za-z0-9_]*$",
                ErrorCode.INVALID_VARIABLE_NAME,
            )


__all__ = ["VARIABLE_TOKEN", "SimpleCompiler", "format_value"]
