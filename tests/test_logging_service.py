"""Tests for the logging service."""

import json
import logging
import logging.handlers
import tempfile
from pathlib import Path

import structlog
from hypothesis import given, settings, strategies as st

from stealth_grid.services.logging import LoggingService, setup_logging


def read_json_lines(path: Path) -> list[dict[str, object]]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


class TestLoggingService:
    """Test cases for LoggingService."""

    def test_tui_mode_has_no_console_handler(self) -> None:
        """Console output would corrupt the full-screen interface."""
        with tempfile.TemporaryDirectory() as temp_dir:
            service = LoggingService(log_level="INFO", log_dir=Path(temp_dir), tui_mode=True)
            service.configure()

            handlers = logging.getLogger().handlers
            assert handlers
            assert all(isinstance(h, logging.handlers.RotatingFileHandler) for h in handlers)

    def test_console_handler_outside_tui_mode(self) -> None:
        service = LoggingService(log_level="INFO", tui_mode=False)
        service.configure()

        handlers = logging.getLogger().handlers
        assert any(type(h) is logging.StreamHandler for h in handlers)

    def test_log_level_is_applied(self) -> None:
        service = LoggingService(log_level="warning", tui_mode=True)
        service.configure()

        assert service.log_level == "WARNING"
        assert logging.getLogger().level == logging.WARNING

    def test_httpx_logger_is_quietened(self) -> None:
        service = LoggingService(log_level="DEBUG", tui_mode=True)
        service.configure()

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING

    def test_console_renderer_without_log_dir(self) -> None:
        service = LoggingService(log_level="INFO", tui_mode=False)

        renderer = service._get_processors()[-1]

        assert isinstance(renderer, structlog.dev.ConsoleRenderer)

    def test_file_logging_setup(self) -> None:
        """Test that file logging writes JSON records."""
        with tempfile.TemporaryDirectory() as temp_dir:
            log_dir = Path(temp_dir) / "logs"
            service = LoggingService(log_level="INFO", log_dir=log_dir, tui_mode=True)
            service.configure()

            logger = structlog.stdlib.get_logger("test")
            logger.info("test file message", data="test")

            app_log = log_dir / "app.log"
            assert app_log.exists()
            assert (log_dir / "error.log").exists()

            records = read_json_lines(app_log)
            assert records[-1]["event"] == "test file message"
            assert records[-1]["data"] == "test"

    def test_error_file_logging(self) -> None:
        """Test that errors are logged to the error file and nothing else is."""
        with tempfile.TemporaryDirectory() as temp_dir:
            log_dir = Path(temp_dir)
            service = LoggingService(log_level="DEBUG", log_dir=log_dir, tui_mode=True)
            service.configure()

            logger = structlog.stdlib.get_logger("test")
            logger.info("routine message")
            logger.error("test error message", error_code=500)

            records = read_json_lines(log_dir / "error.log")
            assert [r["event"] for r in records] == ["test error message"]
            assert records[0]["error_code"] == 500
            assert records[0]["level"] == "error"


class TestStructuredLoggingProperties:
    """Property-based tests for structured logging consistency."""

    @given(
        log_level=st.sampled_from(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
        logger_name=st.text(min_size=1, max_size=30).filter(lambda x: x.isidentifier()),
        message=st.text(min_size=1, max_size=100).filter(lambda x: x.strip() == x and "\n" not in x and "\r" not in x),
        context_data=st.dictionaries(
            keys=st.text(min_size=1, max_size=20).filter(lambda x: x.isidentifier() and x not in {"event", "level", "logger", "timestamp"}),
            values=st.one_of(
                st.text(max_size=50),
                st.integers(),
                st.booleans()
            ),
            max_size=5
        )
    )
    @settings(max_examples=30, deadline=None)
    def test_structured_logging_consistency(
        self,
        log_level: str,
        logger_name: str,
        message: str,
        context_data: dict[str, str | int | bool]
    ) -> None:
        """Every record carries event, level, logger, timestamp and all context values."""
        with tempfile.TemporaryDirectory() as temp_dir:
            log_dir = Path(temp_dir)
            service = LoggingService(log_level="DEBUG", log_dir=log_dir, tui_mode=True)
            service.configure()

            logger = structlog.stdlib.get_logger(logger_name)
            getattr(logger, log_level.lower())(message, **context_data)

            parsed = read_json_lines(log_dir / "app.log")[-1]

            assert parsed["event"] == message
            assert str(parsed["level"]).upper() == log_level
            assert parsed["logger"] == logger_name
            assert "T" in str(parsed["timestamp"])
            for key, value in context_data.items():
                assert parsed[key] == value

            logging.getLogger().handlers.clear()


def test_setup_logging_function() -> None:
    """Test the setup_logging convenience function."""
    with tempfile.TemporaryDirectory() as temp_dir:
        log_dir = Path(temp_dir)

        service = setup_logging(log_level="DEBUG", log_dir=log_dir, tui_mode=True)

        assert isinstance(service, LoggingService)
        assert service.numeric_level == logging.DEBUG

        logger = structlog.stdlib.get_logger("test_setup")
        logger.info("setup test", component="test")

        parsed = read_json_lines(log_dir / "app.log")[-1]
        assert parsed["event"] == "setup test"
        assert parsed["component"] == "test"
