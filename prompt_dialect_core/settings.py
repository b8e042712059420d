"""Core configuration settings for template compilation.

@public

This module provides centralized configuration for Prompt Dialect Core.
Settings are loaded from environment variables with .env file support
via pydantic-settings.

Environment variables:
    PROMPT_DIALECT_DEFAULT_DIALECT: Dialect used when a request names none (default: auto)
    PROMPT_DIALECT_ENFORCE_NESTING_ON_COMPILE: Reject over-nested templates on compile too
    PROMPT_DIALECT_LOG_LEVEL: Default log level for the package loggers

Configuration precedence:
    1. Environment variables (highest priority)
    2. .env file in current directory
    3. Default values

Example:
    >>> from prompt_dialect_core.settings import settings
    >>> settings.default_dialect
    'auto'

Note:
    Template limits (size, nesting depth, variable count) are process-wide
    constants in ``prompt_compiler.types``, not settings.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for the template compilation engine.

    @public

    Attributes:
        default_dialect: Dialect applied by the operations API and CLI when a
                         request does not name one. ``auto`` runs detection.

        enforce_nesting_on_compile: When True, ``compile_with_dialect``
                                    validates first and raises
                                    NestingTooDeepError for templates that
                                    ``validate`` would flag. Off by default,
                                    so only ``validate`` checks nesting.

        log_level: Default level for ``prompt_dialect_core`` loggers.

    Note:
        Settings are frozen after initialization.
    """

    model_config = SettingsConfigDict(
        env_prefix="PROMPT_DIALECT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    default_dialect: Literal["auto", "simple", "mustache", "jinja2"] = "auto"
    enforce_nesting_on_compile: bool = False
    log_level: str = "INFO"


settings = Settings()
"""Global settings instance, created at module import."""
