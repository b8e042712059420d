"""Enumerations and limits shared by every template dialect.

All values here are wire-stable: dialect tokens and diagnostic codes are
persisted by callers and returned over HTTP, so they must round-trip exactly.
"""

import re
from enum import StrEnum

MAX_TEMPLATE_SIZE = 100_000
"""Maximum template size in UTF-8 bytes. Checked before any parsing."""

MAX_NESTING_DEPTH = 10
"""Maximum number of simultaneously open sections/blocks reported as valid."""

MAX_VARIABLES = 100
"""Distinct variable count above which the simple dialect emits a warning."""

VARIABLE_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")


class Dialect(StrEnum):
    """Template grammar identifier.

    AUTO is a resolution sentinel only. It is never the identity of a compiler
    and never the dialect stored on a ValidationResult.
    """

    SIMPLE = "simple"
    MUSTACHE = "mustache"
    JINJA2 = "jinja2"
    AUTO = "auto"


class PromptType(StrEnum):
    """Shape of a prompt template."""

    TEXT = "text"
    CHAT = "chat"


class MessageType(StrEnum):
    """Chat message entry kind. An empty type is treated as MESSAGE."""

    MESSAGE = "message"
    PLACEHOLDER = "placeholder"


class ChatRole(StrEnum):
    """Roles accepted on a regular chat message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ErrorCode(StrEnum):
    """Machine-readable codes for syntax errors."""

    UNMATCHED_OPENING = "UNMATCHED_OPENING"
    UNMATCHED_CLOSING = "UNMATCHED_CLOSING"
    INVALID_VARIABLE_NAME = "INVALID_VARIABLE_NAME"
    INVALID_SYNTAX = "INVALID_SYNTAX"
    NESTED_TOO_DEEP = "NESTED_TOO_DEEP"
    UNKNOWN_FILTER = "UNKNOWN_FILTER"
    UNKNOWN_BLOCK = "UNKNOWN_BLOCK"
    TEMPLATE_TOO_LARGE = "TEMPLATE_TOO_LARGE"


class WarningCode(StrEnum):
    """Machine-readable codes for syntax warnings."""

    UNUSED_VARIABLE = "UNUSED_VARIABLE"
    DEPRECATED_SYNTAX = "DEPRECATED_SYNTAX"
    EMPTY_BLOCK = "EMPTY_BLOCK"
    POTENTIAL_INJECTION = "POTENTIAL_INJECTION"


def is_variable_name(name: str) -> bool:
    """Return True if name is a valid template variable identifier."""
    return VARIABLE_NAME_PATTERN.fullmatch(name) is not None


def root_variable(expression: str) -> str:
    """Return the root identifier of a dotted path: ``user.name`` -> ``user``."""
    return expression.strip().split(".", 1)[0]


def content_size(content: str) -> int:
    """Size of template content in UTF-8 bytes."""
    return len(content.encode("utf-8"))


__all__ = [
    "MAX_NESTING_DEPTH",
    "MAX_TEMPLATE_SIZE",
    "MAX_VARIABLES",
    "VARIABLE_NAME_PATTERN",
    "ChatRole",
    "Dialect",
    "ErrorCode",
    "MessageType",
    "PromptType",
    "WarningCode",
    "content_size",
    "is_variable_name",
    "root_variable",
]
