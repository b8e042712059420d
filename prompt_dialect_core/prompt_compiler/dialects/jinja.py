"""Jinja2 dialect rendered in an immutable sandbox.

Templates render with ``ImmutableSandboxedEnvironment``: no loader (so
``include``/``extends``/``import`` cannot reach the filesystem), no globals
and no autoescaping. All data comes from the variables passed to ``compile``.
Undefined variables render as empty text.
"""

import re
from collections.abc import Mapping
from typing import Any

from jinja2 import TemplateSyntaxError, meta
from jinja2.sandbox import ImmutableSandboxedEnvironment

from prompt_dialect_core.exceptions import DialectCompilationError

from ..models import ValidationResult
from ..types import MAX_NESTING_DEPTH, Dialect, ErrorCode, WarningCode, is_variable_name
from ._base import DialectCompiler, LineIndex, running_depth

_ENVIRONMENT = ImmutableSandboxedEnvironment(autoescape=False, keep_trailing_newline=True)  # noqa: S701 Plain text, not HTML
_ENVIRONMENT.globals.clear()

BUILTIN_NAMES = frozenset({
    "loop",
    "self",
    "super",
    "true",
    "false",
    "none",
    "True",
    "False",
    "None",
})
"""Names Jinja2 defines itself; never reported as template variables."""

KNOWN_BLOCKS = frozenset({
    "for",
    "endfor",
    "if",
    "elif",
    "else",
    "endif",
    "set",
    "endset",
    "macro",
    "endmacro",
    "call",
    "endcall",
    "filter",
    "endfilter",
    "with",
    "endwith",
    "raw",
    "endraw",
    "block",
    "endblock",
    "autoescape",
    "endautoescape",
    "include",
    "extends",
    "import",
    "from",
})

# Statements that would load other templates. The sandbox has no loader, so
# they fail at render time, but they signal an attempt to escape the template.
LOADER_BLOCKS = frozenset({"include", "extends", "import", "from"})

_COMMENT = re.compile(r"\{#.*?#\}", re.DOTALL)
_EXPRESSION = re.compile(r"\{\{-?\s*(.*?)\s*-?\}\}")
_BLOCK = re.compile(r"\{%-?\s*([A-Za-z_][A-Za-z0-9_]*)\s*(.*?)\s*[-+]?%\}")
_STRING = re.compile(r"\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'")
_FILTER = re.compile(r"\|\s*([A-Za-z_][A-Za-z0-9_]*)")
_DUNDER = re.compile(r"__[A-Za-z0-9_]+__")
_LEADING_NAME = re.compile(r"^(?:not\s+)*([A-Za-z_][A-Za-z0-9_]*)")
_FOR_HEADER = re.compile(r"^(.*?)\s+in\s+(.*)$")
_SET_TARGET = re.compile(r"^([A-Za-z_][A-Za-z0-9_,\s]*?)\s*(?:=|$)")


def _blank_comments(content: str) -> str:
    """Replace comment bodies with spaces so offsets and line numbers survive."""
    return _COMMENT.sub(lambda m: re.sub(r"[^\n]", " ", m.group(0)), content)


def _expression_root(expression: str) -> str | None:
    match = _LEADING_NAME.match(expression.strip())
    return match.group(1) if match else None


def scan_roots(content: str) -> set[str]:
    """Regex fallback for templates the Jinja2 parser rejects.

    Collects the root name of every ``{{ }}`` expression, ``for`` iterable and
    ``if``/``elif`` condition, minus names bound by ``for`` targets and ``set``.
    """
    content = _blank_comments(content)
    roots: set[str] = set()
    bound: set[str] = set()

    for match in _EXPRESSION.finditer(content):
        if root := _expression_root(match.group(1)):
            roots.add(root)

    for match in _BLOCK.finditer(content):
        keyword, body = match.group(1), match.group(2)
        if keyword == "for" and (header := _FOR_HEADER.match(body)):
            bound.update(target.strip() for target in header.group(1).split(","))
            if root := _expression_root(header.group(2)):
                roots.add(root)
        elif keyword in ("if", "elif"):
            if root := _expression_root(body):
                roots.add(root)
        elif keyword == "set" and (target := _SET_TARGET.match(body)):
            bound.update(name.strip() for name in target.group(1).split(","))

    return roots - bound


class JinjaCompiler(DialectCompiler):
    """Jinja2 expressions, filters, loops and conditionals."""

    dialect = Dialect.JINJA2

    def extract_variables(self, content: str) -> list[str]:
        try:
            names = meta.find_undeclared_variables(_ENVIRONMENT.parse(content))
        except TemplateSyntaxError:
            names = scan_roots(content)
        return sorted(name for name in names if name not in BUILTIN_NAMES and is_variable_name(name))

    def _render(self, content: str, variables: Mapping[str, Any]) -> str:
        try:
            return _ENVIRONMENT.from_string(content).render(dict(variables))
        except Exception as e:
            raise DialectCompilationError(self.dialect, str(e) or type(e).__name__) from e

    def _depth_events(self, content: str) -> list[tuple[int, int]]:
        index = LineIndex(content)
        events: list[tuple[int, int]] = []
        for match in _BLOCK.finditer(content):
            keyword = match.group(1)
            if keyword in ("for", "if"):
                events.append((index.line(match.start()), 1))
            elif keyword in ("endfor", "endif"):
                events.append((index.line(match.start()), -1))
        return events

    def nesting_depth(self, content: str) -> int:
        return running_depth(self._depth_events(_blank_comments(content)))[0]

    def _check(self, content: str, result: ValidationResult) -> None:
        scanned = _blank_comments(content)
        index = LineIndex(scanned)
        # keyword -> open tags as (line, column, end offset)
        stacks: dict[str, list[tuple[int, int, int]]] = {"for": [], "if": []}

        for match in _BLOCK.finditer(scanned):
            keyword, body = match.group(1), match.group(2)
            line, column = index.position(match.start())

            if keyword not in KNOWN_BLOCKS:
                result.add_error(line, column, f"unknown block tag '{keyword}'", ErrorCode.UNKNOWN_BLOCK)
                continue
            if keyword in LOADER_BLOCKS:
                result.add_warning(
                    line,
                    column,
                    f"'{keyword}' loads other templates and is not available in the sandbox",
                    WarningCode.POTENTIAL_INJECTION,
                )

            if keyword in stacks:
                stacks[keyword].append((line, column, match.end()))
            elif keyword in ("endfor", "endif"):
                opened = keyword[3:]
                if not stacks[opened]:
                    result.add_error(
                        line,
                        column,
                        f"'{{% {keyword} %}}' has no matching '{{% {opened} %}}'",
                        ErrorCode.UNMATCHED_CLOSING,
                    )
                    continue
                open_line, open_column, open_end = stacks[opened].pop()
                if opened == "for" and not scanned[open_end : match.start()].strip():
                    result.add_warning(open_line, open_column, "for loop has an empty body", WarningCode.EMPTY_BLOCK)

            self._check_expression(body, line, column, result)

        for match in _EXPRESSION.finditer(scanned):
            line, column = index.position(match.start())
            self._check_expression(match.group(1), line, column, result)

        unclosed = sorted((line, column, keyword) for keyword, stack in stacks.items() for line, column, _ in stack)
        for line, column, keyword in unclosed:
            result.add_error(
                line,
                column,
                f"'{{% {keyword} %}}' is never closed with '{{% end{keyword} %}}'",
                ErrorCode.UNMATCHED_OPENING,
            )

        depth, line = running_depth(self._depth_events(scanned))
        if depth > MAX_NESTING_DEPTH:
            result.add_error(
                line,
                1,
                f"blocks nested {depth} deep, maximum is {MAX_NESTING_DEPTH}",
                ErrorCode.NESTED_TOO_DEEP,
            )

        if result.valid:
            try:
                _ENVIRONMENT.parse(content)
            except TemplateSyntaxError as e:
                result.add_error(e.lineno or 1, 1, e.message or str(e), ErrorCode.INVALID_SYNTAX)

    @staticmethod
    def _check_expression(expression: str, line: int, column: int, result: ValidationResult) -> None:
        if _DUNDER.search(expression):
            result.add_warning(
                line,
                column,
                "access to double-underscore attributes is blocked by the sandbox",
                WarningCode.POTENTIAL_INJECTION,
            )
        for name in _FILTER.findall(_STRING.sub("", expression)):
            if name not in _ENVIRONMENT.filters:
                result.add_error(line, column, f"unknown filter '{name}'", ErrorCode.UNKNOWN_FILTER)


__all__ = ["BUILTIN_NAMES", "KNOWN_BLOCKS", "JinjaCompiler", "scan_roots"]
