"""Centralized logging configuration for Prompt Dialect Core.

@public

Package loggers come from Prefect's ``get_logger``, which nests every name
under the ``prefect`` logger: ``get_pipeline_logger("prompt_dialect_core.x")``
returns the logger named ``prefect.prompt_dialect_core.x``. The default
configuration and ``setup_logging(level=...)`` therefore act on
``prefect.prompt_dialect_core``, the parent of every package logger. A custom
YAML configuration should use that name too.

Usage:
    >>> from prompt_dialect_core.logging import get_pipeline_logger
    >>> logger = get_pipeline_logger(__name__)
    >>> logger.debug("Resolved dialect")

Environment variables:
    PROMPT_DIALECT_LOGGING_CONFIG: Path to custom logging.yml
    PROMPT_DIALECT_LOG_LEVEL: Package log level (INFO, DEBUG, etc.)
    PREFECT_LOGGING_SETTINGS_PATH: Alternative config path
"""

import logging.config
import os
from pathlib import Path
from typing import Any

import yaml
from prefect.logging import get_logger

from prompt_dialect_core.settings import settings

PACKAGE_LOGGER = "prompt_dialect_core"
"""Root of the package logger names passed to ``get_pipeline_logger``."""


def qualified_name(name: str) -> str:
    """Name of the logger Prefect's ``get_logger`` returns for name."""
    if name == "prefect" or name.startswith("prefect."):
        return name
    return f"prefect.{name}"


def package_log_level() -> str:
    """Configured package level; the environment wins over ``settings``."""
    return os.environ.get("PROMPT_DIALECT_LOG_LEVEL", settings.log_level).upper()


class LoggingConfig:
    """Loads and applies a ``dictConfig`` for the package loggers.

    @public

    Configuration precedence:
        1. Explicit config_path parameter
        2. PROMPT_DIALECT_LOGGING_CONFIG environment variable
        3. PREFECT_LOGGING_SETTINGS_PATH environment variable
        4. Default configuration

    Example:
        >>> LoggingConfig().apply()
        >>> LoggingConfig(Path("custom_logging.yml")).apply()

    Note:
        The configuration is loaded once per instance.
    """

    def __init__(self, config_path: Path | None = None):
        self.config_path = config_path or self._get_default_config_path()
        self._config: dict[str, Any] | None = None

    @staticmethod
    def _get_default_config_path() -> Path | None:
        if env_path := os.environ.get("PROMPT_DIALECT_LOGGING_CONFIG"):
            return Path(env_path)
        if prefect_path := os.environ.get("PREFECT_LOGGING_SETTINGS_PATH"):
            return Path(prefect_path)
        return None

    def load_config(self) -> dict[str, Any]:
        """Return the configuration from config_path, or the default one."""
        if self._config is None:
            if self.config_path and self.config_path.exists():
                with open(self.config_path, "r") as f:
                    self._config = yaml.safe_load(f)
            else:
                self._config = self._get_default_config()
        assert self._config is not None
        return self._config

    @staticmethod
    def _get_default_config() -> dict[str, Any]:
        """Console output as ``HH:MM:SS.mmm | LEVEL | logger.name - message``."""
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s.%(msecs)03d | %(levelname)-7s | %(name)s - %(message)s",
                    "datefmt": "%H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {
                qualified_name(PACKAGE_LOGGER): {
                    "level": package_log_level(),
                    "handlers": ["console"],
                    "propagate": False,
                },
            },
        }

    def apply(self):
        """Install the configuration with ``logging.config.dictConfig``.

        A ``prefect`` entry in the configuration also seeds
        PREFECT_LOGGING_LEVEL when it is not already set.
        """
        config = self.load_config()
        logging.config.dictConfig(config)

        if "prefect" in config.get("loggers", {}):
            prefect_level = config["loggers"]["prefect"].get("level", "INFO")
            os.environ.setdefault("PREFECT_LOGGING_LEVEL", prefect_level)


_logging_config: LoggingConfig | None = None


def setup_logging(config_path: Path | None = None, level: str | None = None):
    """Configure package logging.

    @public

    Args:
        config_path: Optional path to a YAML logging configuration file.
        level: Optional level for the package root logger, overriding the
            configuration.

    Example:
        >>> setup_logging()
        >>> setup_logging(level="DEBUG")
    """
    global _logging_config

    _logging_config = LoggingConfig(config_path)
    _logging_config.apply()

    if level:
        get_logger(PACKAGE_LOGGER).setLevel(level.upper())


def get_pipeline_logger(name: str):
    """Get a package logger, configuring logging on first use.

    @public

    Example:
        >>> logger = get_pipeline_logger(__name__)
        >>> logger.warning("Template rejected", extra={"dialect": "jinja2"})
    """
    if _logging_config is None:
        setup_logging()

    return get_logger(name)
