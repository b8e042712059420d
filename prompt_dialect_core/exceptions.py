"""Exception hierarchy for Prompt Dialect Core.

This module defines the exception hierarchy used throughout the Prompt Dialect Core library.
All exceptions inherit from PromptDialectError, providing a consistent error handling interface.

Every exception carries a ``kind`` (ErrorKind) and a free-text ``detail``. Callers classify
failures with the ``is_*_error`` predicates instead of matching on message text.
"""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Classification of a PromptDialectError."""

    INVALID_TEMPLATE_FORMAT = "invalid_template_format"
    INVALID_TEMPLATE = "invalid_template"
    UNSUPPORTED_DIALECT = "unsupported_dialect"
    DIALECT_COMPILATION = "dialect_compilation"
    TEMPLATE_TOO_LARGE = "template_too_large"
    NESTING_TOO_DEEP = "nesting_too_deep"
    VARIABLE_MISSING = "variable_missing"


class PromptDialectError(Exception):
    """Base exception for all Prompt Dialect Core errors."""

    kind: ErrorKind

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class TemplateError(PromptDialectError):
    """Base exception for template shape, size and variable errors."""


class InvalidTemplateFormatError(TemplateError):
    """Raised when the outer template container cannot be decoded."""

    kind = ErrorKind.INVALID_TEMPLATE_FORMAT

    def __init__(self, detail: str) -> None:
        super().__init__(f"invalid template format: {detail}")


class InvalidTemplateError(TemplateError):
    """Raised when a template violates a structural rule (empty content, bad role, ...)."""

    kind = ErrorKind.INVALID_TEMPLATE

    def __init__(self, detail: str) -> None:
        super().__init__(f"invalid template: {detail}")


class TemplateTooLargeError(TemplateError):
    """Raised when template content exceeds MAX_TEMPLATE_SIZE bytes."""

    kind = ErrorKind.TEMPLATE_TOO_LARGE

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"template size {size} bytes exceeds maximum of {limit} bytes")
        self.size = size
        self.limit = limit


class NestingTooDeepError(TemplateError):
    """Raised when nested sections/blocks exceed MAX_NESTING_DEPTH."""

    kind = ErrorKind.NESTING_TOO_DEEP

    def __init__(self, depth: int, limit: int) -> None:
        super().__init__(f"nesting depth {depth} exceeds maximum of {limit}")
        self.depth = depth
        self.limit = limit


class VariableMissingError(TemplateError):
    """Raised when required variables are not provided. Carries every missing name."""

    kind = ErrorKind.VARIABLE_MISSING

    def __init__(self, missing: list[str] | tuple[str, ...]) -> None:
        self.missing = tuple(missing)
        super().__init__(f"missing required variables: {', '.join(self.missing)}")


class UnsupportedDialectError(PromptDialectError):
    """Raised when a dialect is not registered. Never falls back to another dialect."""

    kind = ErrorKind.UNSUPPORTED_DIALECT

    def __init__(self, dialect: str) -> None:
        super().__init__(f"unsupported template dialect: {dialect!r}")
        self.dialect = dialect


class DialectCompilationError(PromptDialectError):
    """Raised when a dialect engine fails to parse or render a template."""

    kind = ErrorKind.DIALECT_COMPILATION

    def __init__(self, dialect: str, detail: str) -> None:
        super().__init__(f"{dialect} compilation failed: {detail}")
        self.dialect = dialect
        self.reason = detail


_VALIDATION_KINDS = frozenset({
    ErrorKind.INVALID_TEMPLATE_FORMAT,
    ErrorKind.INVALID_TEMPLATE,
    ErrorKind.TEMPLATE_TOO_LARGE,
    ErrorKind.NESTING_TOO_DEEP,
    ErrorKind.VARIABLE_MISSING,
})


def is_validation_error(error: BaseException) -> bool:
    """True for errors caused by the caller's template or variables."""
    return isinstance(error, PromptDialectError) and error.kind in _VALIDATION_KINDS


def is_not_found_error(error: BaseException) -> bool:
    """True when the requested dialect is not registered."""
    return isinstance(error, PromptDialectError) and error.kind is ErrorKind.UNSUPPORTED_DIALECT


def is_compilation_error(error: BaseException) -> bool:
    """True when a dialect engine rejected the template while rendering."""
    return isinstance(error, PromptDialectError) and error.kind is ErrorKind.DIALECT_COMPILATION


__all__ = [
    "DialectCompilationError",
    "ErrorKind",
    "InvalidTemplateError",
    "InvalidTemplateFormatError",
    "NestingTooDeepError",
    "PromptDialectError",
    "TemplateError",
    "TemplateTooLargeError",
    "UnsupportedDialectError",
    "VariableMissingError",
    "is_compilation_error",
    "is_not_found_error",
    "is_validation_error",
]
