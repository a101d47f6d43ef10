"""Tests for logging configuration."""

import io
import logging
import sys

import colorlog
import pytest

from chainview.helpers.logging import (
    LOG_FORMAT,
    default_log_level,
    get_logger,
    set_log_stream,
)


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_returns_logger(self) -> None:
        """Test that get_logger returns a logger instance."""
        logger = get_logger("chainview.test_module")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "chainview.test_module"

    def test_get_logger_same_name_returns_same_instance(self) -> None:
        """Test that getting logger with same name returns same instance."""
        logger1 = get_logger("chainview.test_same")
        logger2 = get_logger("chainview.test_same")

        assert logger1 is logger2
        assert len(logger1.handlers) == 1

    @pytest.mark.parametrize("level", ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    def test_get_logger_with_level(self, level: str) -> None:
        """Test get_logger applies each supported level."""
        logger = get_logger(f"chainview.test_level_{level}", log_level=level)

        assert logger.level == getattr(logging, level)

    def test_level_is_case_insensitive(self) -> None:
        """Test lower-case level names are accepted."""
        logger = get_logger("chainview.test_lower", log_level="debug")

        assert logger.level == logging.DEBUG

    def test_default_level_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the default level comes from CHAINVIEW_LOG_LEVEL."""
        monkeypatch.setenv("CHAINVIEW_LOG_LEVEL", "warning")

        assert default_log_level() == "WARNING"
        assert get_logger("chainview.test_env_level").level == logging.WARNING

    def test_default_level_is_info(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test INFO is used when the environment is silent."""
        monkeypatch.delenv("CHAINVIEW_LOG_LEVEL", raising=False)

        assert default_log_level() == "INFO"

    def test_stderr_handler(self) -> None:
        """Test the stderr handler target."""
        logger = get_logger("chainview.test_stderr", log_handler="stderr")

        handler = logger.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        assert handler.stream is sys.stderr

    def test_format(self) -> None:
        """Test the shared log format is applied."""
        logger = get_logger("chainview.test_format")

        formatter = logger.handlers[0].formatter
        assert formatter is not None
        assert formatter._fmt == LOG_FORMAT

    def test_color_handler(self) -> None:
        """Test colored output uses colorlog."""
        logger = get_logger("chainview.test_color", log_color=True)

        assert isinstance(logger.handlers[0].formatter, colorlog.ColoredFormatter)

    def test_invalid_handler(self) -> None:
        """Test that invalid handler raises ValueError."""
        with pytest.raises(ValueError, match="Invalid handler: file"):
            get_logger("chainview.test_invalid_handler", log_handler="file")

    def test_invalid_level(self) -> None:
        """Test that invalid level raises ValueError."""
        with pytest.raises(ValueError, match="Invalid log level: VERBOSE"):
            get_logger("chainview.test_invalid_level", log_level="VERBOSE")


@pytest.mark.usefixtures("restore_log_streams")
class TestSetLogStream:
    """Tests for set_log_stream function."""

    def test_redirects_cached_loggers(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test existing handlers are pointed at the new stream."""
        logger = get_logger("chainview.test_redirect", log_handler="stdout")
        fake_stderr = io.StringIO()
        monkeypatch.setattr(sys, "stderr", fake_stderr)

        set_log_stream("stderr")
        logger.warning("redirected message")

        assert "redirected message" in fake_stderr.getvalue()

    def test_redirect_to_stream_closed_before_teardown(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test handlers left on a since-closed stream are restored cleanly."""
        get_logger("chainview.test_closed_stream", log_handler="stdout")
        capture = io.StringIO()
        monkeypatch.setattr(sys, "stderr", capture)

        set_log_stream("stderr")
        capture.close()

    def test_invalid_handler(self) -> None:
        """Test that invalid handler raises ValueError."""
        with pytest.raises(ValueError, match="Invalid handler"):
            set_log_stream("syslog")
