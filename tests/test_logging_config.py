"""
Tests for logging configuration.
"""

import logging

import pytest

from doc_pipeline.logging_config import (
    LOG_LEVEL_ENV,
    ROOT_LOGGER,
    get_logger,
    level_from_flags,
    resolve_level,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    """Undo handler and level changes made to the package logger."""
    logger = logging.getLogger(ROOT_LOGGER)
    handlers, level = list(logger.handlers), logger.level
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestResolveLevel:
    """Tests for resolve_level."""

    def test_names_and_numbers(self):
        """Test that level names and numbers are both accepted."""
        assert resolve_level("debug") == logging.DEBUG
        assert resolve_level(" WARNING ") == logging.WARNING
        assert resolve_level(logging.ERROR) == logging.ERROR

    def test_environment(self, monkeypatch):
        """Test the environment default, then INFO."""
        monkeypatch.setenv(LOG_LEVEL_ENV, "ERROR")
        assert resolve_level() == logging.ERROR

        monkeypatch.delenv(LOG_LEVEL_ENV)
        assert resolve_level() == logging.INFO

    def test_unknown_name(self):
        """Test that an unknown name is rejected."""
        with pytest.raises(ValueError):
            resolve_level("chatty")

    def test_flags(self):
        """Test mapping the CLI verbosity flags."""
        assert level_from_flags(verbose=True) == logging.DEBUG
        assert level_from_flags(quiet=True) == logging.WARNING
        assert level_from_flags() is None


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_repeated_setup_replaces_handlers(self, restore_root_logger, monkeypatch):
        """Test that configuring twice does not duplicate handlers."""
        monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
        setup_logging()
        logger = setup_logging("DEBUG")

        assert logger is restore_root_logger
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_log_file(self, restore_root_logger, tmp_path):
        """Test that records reach the log file."""
        log_file = tmp_path / "logs" / "run.log"
        setup_logging(logging.INFO, log_file=log_file)

        get_logger("doc_pipeline.tools").warning("pdf2txt.py error: boom")
        for handler in restore_root_logger.handlers:
            handler.flush()

        assert "doc_pipeline.tools - WARNING - pdf2txt.py error: boom" in log_file.read_text(encoding="utf-8")

    def test_get_logger(self):
        """Test that loggers are placed below the package logger."""
        assert get_logger("doc_pipeline.cli").name == "doc_pipeline.cli"
        assert get_logger("scripts").name == "doc_pipeline.scripts"
