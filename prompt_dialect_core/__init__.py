"""Prompt Dialect Core - template compilation engine for versioned LLM prompts.

@public

Prompts are stored as text templates or chat templates (ordered messages and
placeholders) and rendered with caller-supplied variables before they reach a
model provider. The engine supports three template dialects, detects which one
a template uses, and validates syntax with line/column diagnostics without
ever executing template code.

Quick Start:
    >>> from prompt_dialect_core import default_service
    >>>
    >>> service = default_service()
    >>> service.detect_dialect("Hi {{#user}}{{name}}{{/user}}", "text")
    <Dialect.MUSTACHE: 'mustache'>
    >>> service.compile_text("Hi {{name}}", {"name": "Ada"})
    'Hi Ada'

Environment Variables:
    - PROMPT_DIALECT_DEFAULT_DIALECT: Dialect used when a request names none
    - PROMPT_DIALECT_ENFORCE_NESTING_ON_COMPILE: Reject over-nested templates on compile
    - PROMPT_DIALECT_LOG_LEVEL: Log level for package loggers
    - PROMPT_DIALECT_LOGGING_CONFIG: Path to a YAML logging configuration
"""

from .exceptions import (
    DialectCompilationError,
    ErrorKind,
    InvalidTemplateError,
    InvalidTemplateFormatError,
    NestingTooDeepError,
    PromptDialectError,
    TemplateError,
    TemplateTooLargeError,
    UnsupportedDialectError,
    VariableMissingError,
    is_compilation_error,
    is_not_found_error,
    is_validation_error,
)
from .logging import LoggingConfig, get_pipeline_logger, setup_logging
from .logging import get_pipeline_logger as get_logger
from .prompt_compiler import (
    ChatMessage,
    ChatTemplate,
    CompilerService,
    Dialect,
    DialectRegistry,
    PromptType,
    TextTemplate,
    ValidationResult,
    default_service,
    diff_variables,
)
from .settings import settings

__version__ = "0.1.0"

__all__ = [
    # Config/Settings
    "settings",
    # Logging
    "get_logger",
    "get_pipeline_logger",
    "LoggingConfig",
    "setup_logging",
    # Errors
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
    # Compiler
    "ChatMessage",
    "ChatTemplate",
    "CompilerService",
    "Dialect",
    "DialectRegistry",
    "PromptType",
    "TextTemplate",
    "ValidationResult",
    "default_service",
    "diff_variables",
]
