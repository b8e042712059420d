"""Shared contract and scanning helpers for dialect compilers."""

from abc import ABC, abstractmethod
from bisect import bisect_right
from collections.abc import Iterable, Mapping
from typing import Any, ClassVar

from prompt_dialect_core.exceptions import DialectCompilationError, TemplateTooLargeError
from prompt_dialect_core.logging import get_pipeline_logger

from ..models import ValidationResult
from ..types import MAX_NESTING_DEPTH, MAX_TEMPLATE_SIZE, Dialect, ErrorCode, content_size

logger = get_pipeline_logger(__name__)


def check_template_size(content: str) -> None:
    """Raise TemplateTooLargeError if content exceeds MAX_TEMPLATE_SIZE bytes."""
    size = content_size(content)
    if size > MAX_TEMPLATE_SIZE:
        raise TemplateTooLargeError(size, MAX_TEMPLATE_SIZE)


class LineIndex:
    """Maps string offsets of one document to 1-based (line, column) pairs."""

    def __init__(self, content: str) -> None:
        self._starts = [0]
        for offset, char in enumerate(content):
            if char == "\n":
                self._starts.append(offset + 1)

    def position(self, offset: int) -> tuple[int, int]:
        line = bisect_right(self._starts, offset)
        return line, offset - self._starts[line - 1] + 1

    def line(self, offset: int) -> int:
        return bisect_right(self._starts, offset)


def running_depth(events: Iterable[tuple[int, int]]) -> tuple[int, int]:
    """Track how many block constructs are open at once.

    Args:
        events: ``(line, delta)`` per opening (+1) or closing (-1) tag, in
            document order. Stray closings never drive the counter below zero.

    Returns:
        ``(max_depth, line)`` where line is the line of the first opening tag
        that took the counter above MAX_NESTING_DEPTH, or 0 if none did.
    """
    depth = max_depth = 0
    first_exceeded = 0
    for line, delta in events:
        depth = max(depth + delta, 0)
        max_depth = max(max_depth, depth)
        if depth > MAX_NESTING_DEPTH and not first_exceeded:
            first_exceeded = line
    return max_depth, first_exceeded


class DialectCompiler(ABC):
    """Stateless grammar engine for one template dialect.

    Subclasses provide variable extraction, rendering and syntax checks.
    ``compile`` and ``validate`` run the size ceiling before any parsing, so
    an oversized template never reaches a dialect parser.
    """

    dialect: ClassVar[Dialect]

    @abstractmethod
    def extract_variables(self, content: str) -> list[str]:
        """Return the sorted, de-duplicated root variable names used by content."""

    @abstractmethod
    def _render(self, content: str, variables: Mapping[str, Any]) -> str: ...

    @abstractmethod
    def _check(self, content: str, result: ValidationResult) -> None: ...

    def nesting_depth(self, content: str) -> int:
        """Maximum section/block nesting depth. Dialects without sections return 0."""
        return 0

    def compile(self, content: str, variables: Mapping[str, Any]) -> str:
        """Render content with variables.

        Raises:
            TemplateTooLargeError: Content exceeds MAX_TEMPLATE_SIZE bytes.
            DialectCompilationError: The dialect engine rejected the template.
        """
        check_template_size(content)
        try:
            return self._render(content, variables)
        except DialectCompilationError as e:
            logger.warning(f"{self.dialect} compile failed: {e.reason}")
            raise

    def validate(self, content: str) -> ValidationResult:
        """Collect syntax diagnostics for content. Never raises."""
        result = ValidationResult(dialect=self.dialect)
        size = content_size(content)
        if size > MAX_TEMPLATE_SIZE:
            result.add_error(
                0,
                0,
                f"template size {size} bytes exceeds maximum of {MAX_TEMPLATE_SIZE} bytes",
                ErrorCode.TEMPLATE_TOO_LARGE,
            )
            return result

        try:
            self._check(content, result)
        except Exception as e:
            logger.warning(f"{self.dialect} validation aborted: {e}")
            result = ValidationResult(dialect=self.dialect)
            result.add_error(1, 1, f"failed to parse template: {e}", ErrorCode.INVALID_SYNTAX)
        return result


__all__ = ["DialectCompiler", "LineIndex", "check_template_size", "running_depth"]
