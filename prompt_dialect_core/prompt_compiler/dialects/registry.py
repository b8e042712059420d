"""Dialect registry and content-based dialect detection."""

import re
from collections.abc import Mapping
from types import MappingProxyType

from prompt_dialect_core.exceptions import UnsupportedDialectError
from prompt_dialect_core.logging import get_pipeline_logger

from ..types import Dialect
from ._base import DialectCompiler
from .jinja import JinjaCompiler
from .mustache import MustacheCompiler
from .simple import SimpleCompiler

logger = get_pipeline_logger(__name__)

_JINJA_BLOCK = re.compile(r"\{%-?\s*[A-Za-z_]")
_JINJA_FILTER = re.compile(r"\{\{[^{}]*\|[^{}]*\}\}")
_JINJA_DOTTED = re.compile(r"\{\{[^{}]*[A-Za-z_][A-Za-z0-9_]*\.[A-Za-z_][^{}]*\}\}")
_MUSTACHE_MARKER = re.compile(r"\{\{[#^>/]")


def detect_dialect(content: str) -> Dialect:
    """Guess the dialect a template is written in.

    Jinja2 signals (a ``{% tag``, a filter pipe or a dotted reference inside
    ``{{ }}``) win over Mustache markers (``{{#``, ``{{^``, ``{{>``, ``{{/``).
    Anything else is ``simple``. Never returns ``auto``.
    """
    if _JINJA_BLOCK.search(content) or _JINJA_FILTER.search(content) or _JINJA_DOTTED.search(content):
        return Dialect.JINJA2
    if _MUSTACHE_MARKER.search(content):
        return Dialect.MUSTACHE
    return Dialect.SIMPLE


class DialectRegistry:
    """One compiler per dialect, fixed at construction.

    Args:
        mustache_partials: Partial templates made available to ``{{>name}}``
            tags of the mustache dialect.

    Example:
        >>> registry = DialectRegistry()
        >>> registry.get("jinja2").compile("Hi {{ name | upper }}", {"name": "ada"})
        'Hi ADA'
    """

    def __init__(self, mustache_partials: Mapping[str, str] | None = None) -> None:
        compilers: list[DialectCompiler] = [
            SimpleCompiler(),
            MustacheCompiler(mustache_partials),
            JinjaCompiler(),
        ]
        self._compilers: Mapping[Dialect, DialectCompiler] = MappingProxyType({c.dialect: c for c in compilers})

    def get(self, dialect: Dialect | str) -> DialectCompiler:
        """Return the compiler for dialect.

        Raises:
            UnsupportedDialectError: dialect is unknown or ``auto``. There is no
                fallback to another dialect.
        """
        try:
            return self._compilers[Dialect(dialect)]
        except (KeyError, ValueError):
            logger.warning(f"Unsupported template dialect requested: {dialect!r}")
            raise UnsupportedDialectError(str(dialect)) from None

    detect = staticmethod(detect_dialect)

    def supported_dialects(self) -> frozenset[Dialect]:
        return frozenset(self._compilers)


__all__ = ["DialectRegistry", "detect_dialect"]
