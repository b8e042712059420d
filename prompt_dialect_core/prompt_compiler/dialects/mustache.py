"""Mustache dialect rendered through pybars3.

Supported tags: ``{{v}}``, ``{{{v}}}``, ``{{&v}}``, sections ``{{#s}}...{{/s}}``,
inverted sections ``{{^s}}...{{/s}}``, partials ``{{>p}}`` and comments
``{{!...}}``. Validation is a line-by-line tag scan and never invokes the
renderer.

Rendering sees variables only as JSON data (dicts, lists and scalars), and
templates may not reference path segments starting with ``_``. pybars3 uses
Handlebars escaping for ``{{v}}``, which escapes ``'`` and ``` ` ``` on top of
``& < > "``. Use ``{{{v}}}`` or ``{{&v}}`` for text that must pass through
unchanged.
"""

import re
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pybars import Compiler
from pydantic_core import to_jsonable_python

from prompt_dialect_core.exceptions import DialectCompilationError

from ..models import ValidationResult
from ..types import MAX_NESTING_DEPTH, Dialect, ErrorCode, WarningCode, is_variable_name, root_variable
from ._base import DialectCompiler, LineIndex, running_depth

# Tags never span lines. Group "triple" holds the name of {{{v}}}; otherwise
# "sigil" is one of #^/>!& (or empty) and "name" is the tag body.
TAG_PATTERN = re.compile(r"\{\{\{\s*(?P<triple>[^{}]*?)\s*\}\}\}|\{\{(?P<sigil>[#^/>!&]?)\s*(?P<name>.*?)\s*\}\}")
_PARTIAL = re.compile(r"\{\{>\s*([^\s}]+)\s*\}\}")
_AMPERSAND = re.compile(r"\{\{&\s*([^}]*?)\s*\}\}")
_OPENING = re.compile(r"\{\{")
_PRIVATE_SEGMENT = re.compile(r"(?:^|[\s./])_")

_VARIABLE_SIGILS = ("", "&", "#", "^")
_BLOCK_HELPERS = frozenset({"if", "unless", "each", "with"})
_CONTEXT_NAMES = frozenset({"this"})
_SECTION_HELPER = "_dotted_section"


def _dotted_section(this: Any, options: dict[str, Any], value: Any) -> Any:
    """Mustache section semantics for a value reached through a dotted path."""
    if not value:
        return options["inverse"](this)
    if isinstance(value, list):
        rendered: list[str] = []
        for item in value:
            rendered.extend(options["fn"](item))
        return rendered
    if isinstance(value, dict):
        return options["fn"](value)
    return options["fn"](this)


def _tag_expression(match: re.Match[str]) -> str | None:
    """The path part of a tag, or None for comments, partials and closings."""
    if match.group("triple") is not None:
        return match.group("triple")
    if match.group("sigil") in _VARIABLE_SIGILS:
        return match.group("name")
    return None


def private_paths(template: str) -> list[str]:
    """Tag expressions that reference a segment starting with ``_``."""
    found = []
    for match in TAG_PATTERN.finditer(template):
        expression = _tag_expression(match)
        if expression and _PRIVATE_SEGMENT.search(expression):
            found.append(expression)
    return found


def rewrite_dotted_sections(template: str) -> str:
    """Rewrite tags pybars3 cannot compile into helper equivalents.

    ``{{#a.b}}...{{/a.b}}`` becomes a ``_dotted_section`` helper block that
    iterates lists and pushes dict context like a plain section,
    ``{{^a.b}}...{{/a.b}}`` becomes ``{{#unless a.b}}...{{/unless}}`` and
    ``{{&v}}`` becomes ``{{{v}}}``. Templates without such tags pass through
    unchanged.
    """
    template = _AMPERSAND.sub(lambda m: "{{{" + m.group(1) + "}}}", template)

    parts: list[str] = []
    # ("section" | "inverted" | "other", name) per open tag
    stack: list[tuple[str, str]] = []
    last_end = 0
    for match in re.finditer(r"\{\{(.*?)\}\}", template):
        parts.append(template[last_end : match.start()])
        body = match.group(1).strip()
        sigil, rest = body[:1], body[1:].strip()
        dotted = "." in rest and " " not in rest

        if sigil == "#" and dotted:
            parts.append("{{#" + _SECTION_HELPER + " " + rest + "}}")
            stack.append(("section", rest))
        elif sigil == "^" and dotted:
            parts.append("{{#unless " + rest + "}}")
            stack.append(("inverted", rest))
        elif sigil in ("#", "^"):
            parts.append(match.group(0))
            stack.append(("other", rest.split()[0] if rest else rest))
        elif sigil == "/" and stack and stack[-1][1] == rest:
            kind, _ = stack.pop()
            if kind == "section":
                parts.append("{{/" + _SECTION_HELPER + "}}")
            elif kind == "inverted":
                parts.append("{{/unless}}")
            else:
                parts.append(match.group(0))
        else:
            parts.append(match.group(0))
        last_end = match.end()

    parts.append(template[last_end:])
    return "".join(parts)


class MustacheCompiler(DialectCompiler):
    """Mustache sections, inverted sections, partials and comments.

    Args:
        partials: Partial templates by name. A partial that is referenced but
            not registered renders as empty text.
    """

    dialect = Dialect.MUSTACHE

    def __init__(self, partials: Mapping[str, str] | None = None) -> None:
        self._partials = MappingProxyType(dict(partials or {}))

    @property
    def partials(self) -> Mapping[str, str]:
        return self._partials

    def extract_variables(self, content: str) -> list[str]:
        names: set[str] = set()
        for match in TAG_PATTERN.finditer(content):
            expression = _tag_expression(match)
            if expression is None:
                continue
            helper, _, argument = expression.partition(" ")
            if match.group("sigil") == "#" and helper in _BLOCK_HELPERS:
                expression = argument
            root = root_variable(expression)
            if is_variable_name(root) and root not in _CONTEXT_NAMES:
                names.add(root)
        return sorted(names)

    def _render(self, content: str, variables: Mapping[str, Any]) -> str:
        sources = {name: self._partials.get(name, "") for name in set(_PARTIAL.findall(content))}
        for source in (content, *sources.values()):
            if paths := private_paths(source):
                raise DialectCompilationError(self.dialect, f"access to private attribute is not allowed: {paths[0]!r}")

        try:
            # JSON projection keeps host objects and their attributes out of reach
            context = to_jsonable_python(dict(variables), fallback=str)
            compiler = Compiler()
            template = compiler.compile(rewrite_dotted_sections(content))
            partials = {name: compiler.compile(rewrite_dotted_sections(source)) for name, source in sources.items()}
            return "".join(template(context, helpers={_SECTION_HELPER: _dotted_section}, partials=partials))
        except Exception as e:
            raise DialectCompilationError(self.dialect, str(e) or type(e).__name__) from e

    def _depth_events(self, content: str) -> list[tuple[int, int]]:
        index = LineIndex(content)
        events: list[tuple[int, int]] = []
        for match in TAG_PATTERN.finditer(content):
            sigil = match.group("sigil")
            if sigil in ("#", "^"):
                events.append((index.line(match.start()), 1))
            elif sigil == "/":
                events.append((index.line(match.start()), -1))
        return events

    def nesting_depth(self, content: str) -> int:
        return running_depth(self._depth_events(content))[0]

    def _check(self, content: str, result: ValidationResult) -> None:
        index = LineIndex(content)
        # (name, line, column, end offset of the opening tag)
        stack: list[tuple[str, int, int, int]] = []
        last_end = 0

        for match in TAG_PATTERN.finditer(content):
            self._check_unterminated(content[last_end : match.start()], last_end, index, result)
            last_end = match.end()

            sigil = match.group("sigil")
            name = match.group("name")
            line, column = index.position(match.start())

            expression = _tag_expression(match)
            if expression and _PRIVATE_SEGMENT.search(expression):
                result.add_warning(
                    line,
                    column,
                    f"'{expression}' references a private attribute and is rejected at render time",
                    WarningCode.POTENTIAL_INJECTION,
                )

            if sigil in ("#", "^"):
                # helper blocks such as {{#each items}} close with their first word
                stack.append((name.split()[0] if name.strip() else name, line, column, match.end()))
            elif sigil == "/":
                if not stack:
                    result.add_error(line, column, f"closing tag '{{{{/{name}}}}}' has no opening section", ErrorCode.UNMATCHED_CLOSING)
                    continue
                open_name, open_line, open_column, open_end = stack.pop()
                if open_name != name:
                    result.add_error(
                        line,
                        column,
                        f"mismatched section: '{{{{/{name}}}}}' closes '{open_name}' opened at line {open_line}, column {open_column}",
                        ErrorCode.INVALID_SYNTAX,
                    )
                elif open_end == match.start():
                    result.add_warning(open_line, open_column, f"section '{name}' is empty", WarningCode.EMPTY_BLOCK)

        self._check_unterminated(content[last_end:], last_end, index, result)

        for name, line, column, _ in stack:
            result.add_error(line, column, f"section '{name}' is never closed", ErrorCode.UNMATCHED_OPENING)

        depth, line = running_depth(self._depth_events(content))
        if depth > MAX_NESTING_DEPTH:
            result.add_error(
                line,
                1,
                f"sections nested {depth} deep, maximum is {MAX_NESTING_DEPTH}",
                ErrorCode.NESTED_TOO_DEEP,
            )

    @staticmethod
    def _check_unterminated(text: str, offset: int, index: LineIndex, result: ValidationResult) -> None:
        for match in _OPENING.finditer(text):
            line, column = index.position(offset + match.start())
            result.add_error(line, column, "unterminated tag: '{{' has no closing '}}' on this line", ErrorCode.UNMATCHED_OPENING)


__all__ = ["TAG_PATTERN", "MustacheCompiler", "private_paths", "rewrite_dotted_sections"]
