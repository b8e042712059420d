"""Tests for logging configuration."""

import logging
import os
from pathlib import Path
from unittest.mock import MagicMock, Mock, patch

from prompt_dialect_core.logging import get_pipeline_logger, setup_logging
from prompt_dialect_core.logging.logging_config import PACKAGE_LOGGER, LoggingConfig, qualified_name


class TestLoggingConfig:
    """Test LoggingConfig class."""

    def test_default_config_path_from_env(self):
        """Test getting config path from environment."""
        with patch.dict(os.environ, {"PROMPT_DIALECT_LOGGING_CONFIG": "/path/to/config.yml"}):
            config = LoggingConfig()
            assert config.config_path == Path("/path/to/config.yml")

    def test_default_config_path_from_prefect_env(self):
        """Test getting config path from Prefect environment."""
        with patch.dict(os.environ, {"PREFECT_LOGGING_SETTINGS_PATH": "/prefect/config.yml"}, clear=True):
            config = LoggingConfig()
            assert config.config_path == Path("/prefect/config.yml")

    def test_package_env_wins_over_prefect_env(self):
        env = {"PROMPT_DIALECT_LOGGING_CONFIG": "/ours.yml", "PREFECT_LOGGING_SETTINGS_PATH": "/prefect.yml"}
        with patch.dict(os.environ, env):
            assert LoggingConfig().config_path == Path("/ours.yml")

    def test_no_config_path_returns_none(self):
        """Test that no env vars results in None config path."""
        with patch.dict(os.environ, clear=True):
            config = LoggingConfig()
            assert config.config_path is None

    def test_load_config_from_file(self, tmp_path: Path) -> None:
        """Test loading config from YAML file."""
        config_file = tmp_path / "logging.yml"
        config_file.write_text("""
version: 1
disable_existing_loggers: false
handlers:
  console:
    class: logging.StreamHandler
""")

        config = LoggingConfig(config_path=config_file)
        loaded = config.load_config()

        assert loaded["version"] == 1
        assert loaded["disable_existing_loggers"] is False
        assert "console" in loaded["handlers"]

    def test_missing_file_falls_back_to_default(self, tmp_path: Path) -> None:
        config = LoggingConfig(config_path=tmp_path / "missing.yml")
        assert config.load_config()["loggers"]["prefect.prompt_dialect_core"]["handlers"] == ["console"]

    def test_load_default_config_when_no_file(self):
        """Test loading default config when no file exists."""
        with patch.dict(os.environ, clear=True):
            config = LoggingConfig()
            loaded = config.load_config()

        assert loaded["version"] == 1
        assert "formatters" in loaded
        assert "handlers" in loaded
        assert "prefect.prompt_dialect_core" in loaded["loggers"]

    def test_default_level_from_env(self):
        with patch.dict(os.environ, {"PROMPT_DIALECT_LOG_LEVEL": "DEBUG"}, clear=True):
            loaded = LoggingConfig().load_config()
        assert loaded["loggers"]["prefect.prompt_dialect_core"]["level"] == "DEBUG"

    def test_config_is_cached(self):
        config = LoggingConfig()
        assert config.load_config() is config.load_config()

    @patch("logging.config.dictConfig")
    def test_apply_config(self, mock_dict_config: Mock) -> None:
        """Test applying logging configuration."""
        config = LoggingConfig()
        config.apply()

        mock_dict_config.assert_called_once()
        call_args = mock_dict_config.call_args[0][0]
        assert call_args["version"] == 1

    @patch("logging.config.dictConfig")
    def test_apply_with_prefect_settings(self, mock_dict_config: Mock) -> None:
        """Test applying config with Prefect settings."""
        with patch.dict(os.environ, clear=True):
            custom_config = {"version": 1, "loggers": {"prefect": {"level": "DEBUG"}}}
            with patch.object(LoggingConfig, "load_config", return_value=custom_config):
                config = LoggingConfig()
                config.apply()

                assert os.environ.get("PREFECT_LOGGING_LEVEL") == "DEBUG"


class TestQualifiedName:
    def test_package_names_nest_under_prefect(self):
        assert qualified_name(PACKAGE_LOGGER) == "prefect.prompt_dialect_core"
        assert qualified_name("prompt_dialect_core.cli") == "prefect.prompt_dialect_core.cli"

    def test_prefect_names_unchanged(self):
        assert qualified_name("prefect") == "prefect"
        assert qualified_name("prefect.flow_runs") == "prefect.flow_runs"
        assert qualified_name("prefectish") == "prefect.prefectish"


class TestPackageLoggerLevels:
    """Levels as seen by the loggers the package modules actually use."""

    def _reset(self):
        setup_logging()

    def test_env_level_reaches_service_logger(self):
        try:
            with patch.dict(os.environ, {"PROMPT_DIALECT_LOG_LEVEL": "ERROR"}):
                setup_logging()
                logger = get_pipeline_logger("prompt_dialect_core.prompt_compiler.service")

                assert logger.name == "prefect.prompt_dialect_core.prompt_compiler.service"
                assert logger.getEffectiveLevel() == logging.ERROR
        finally:
            self._reset()

    def test_explicit_level_reaches_dialect_logger(self):
        try:
            setup_logging(level="DEBUG")
            logger = get_pipeline_logger("prompt_dialect_core.prompt_compiler.dialects.jinja")

            assert logger.getEffectiveLevel() == logging.DEBUG
        finally:
            self._reset()


class TestSetupLogging:
    """Test setup_logging function."""

    @patch("prompt_dialect_core.logging.logging_config.LoggingConfig.apply")
    def test_setup_logging_basic(self, mock_apply: Mock) -> None:
        """Test basic setup_logging call."""
        setup_logging()
        mock_apply.assert_called_once()

    @patch("prompt_dialect_core.logging.logging_config.get_logger")
    @patch("prompt_dialect_core.logging.logging_config.LoggingConfig.apply")
    def test_setup_logging_with_level(self, mock_apply: Mock, mock_get_logger: Mock) -> None:
        """Test setup_logging with custom level."""
        mock_logger = MagicMock()
        mock_get_logger.return_value = mock_logger

        setup_logging(level="debug")

        mock_get_logger.assert_called_once_with(PACKAGE_LOGGER)
        mock_logger.setLevel.assert_called_once_with("DEBUG")

    @patch("prompt_dialect_core.logging.logging_config.LoggingConfig")
    def test_setup_logging_with_config_path(self, mock_config_class: Mock, tmp_path: Path) -> None:
        """Test setup_logging with custom config path."""
        config_file = tmp_path / "custom.yml"
        mock_instance = MagicMock()
        mock_config_class.return_value = mock_instance

        setup_logging(config_path=config_file)

        mock_config_class.assert_called_once_with(config_file)
        mock_instance.apply.assert_called_once()


class TestGetPipelineLogger:
    """Test get_pipeline_logger function."""

    @patch("prompt_dialect_core.logging.logging_config.setup_logging")
    @patch("prompt_dialect_core.logging.logging_config.get_logger")
    def test_get_pipeline_logger_ensures_setup(self, mock_get_logger: Mock, mock_setup: Mock) -> None:
        """Test that get_pipeline_logger ensures logging is setup."""
        mock_logger = MagicMock()
        mock_get_logger.return_value = mock_logger

        import prompt_dialect_core.logging.logging_config

        with patch.object(prompt_dialect_core.logging.logging_config, "_logging_config", None):
            logger = get_pipeline_logger("test.module")

        mock_setup.assert_called_once()
        mock_get_logger.assert_called_with("test.module")
        assert logger == mock_logger

    @patch("prompt_dialect_core.logging.logging_config.get_logger")
    def test_get_pipeline_logger_reuses_config(self, mock_get_logger: Mock) -> None:
        """Test that subsequent calls don't re-setup logging."""
        mock_logger = MagicMock()
        mock_get_logger.return_value = mock_logger

        import prompt_dialect_core.logging.logging_config

        with (
            patch.object(prompt_dialect_core.logging.logging_config, "_logging_config", MagicMock()),
            patch("prompt_dialect_core.logging.logging_config.setup_logging") as mock_setup,
        ):
            get_pipeline_logger("module1")
            get_pipeline_logger("module2")

            mock_setup.assert_not_called()
            assert mock_get_logger.call_count == 2
