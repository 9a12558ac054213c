"""Logging configuration for the stealth-grid application.

The terminal belongs to Textual while the browser runs, so in TUI mode records
only go to rotating JSON files under the log directory. Outside TUI mode a
console handler is added as well.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import structlog


DEFAULT_LOG_DIR = Path.home() / ".config" / "stealth-grid-cli" / "logs"

APP_LOG_NAME = "app.log"
ERROR_LOG_NAME = "error.log"

# Third-party loggers that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")


class LoggingService:
    """Service for configuring application logging."""

    def __init__(
        self,
        log_level: str = "INFO",
        log_dir: Path | None = None,
        tui_mode: bool = False,
    ) -> None:
        """Initialize the logging service.

        Args:
            log_level: The minimum log level to capture
            log_dir: Directory for log files (None disables file logging)
            tui_mode: If True, never write to the console
        """
        self.log_level = log_level.upper()
        self.log_dir = log_dir
        self.tui_mode = tui_mode

    @property
    def numeric_level(self) -> int:
        return getattr(logging, self.log_level, logging.INFO)

    def configure(self) -> None:
        """Install handlers on the root logger and route structlog through it."""
        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.setLevel(self.numeric_level)

        if not self.tui_mode:
            root_logger.addHandler(self._console_handler())
        if self.log_dir:
            for handler in self._file_handlers(self.log_dir):
                root_logger.addHandler(handler)

        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(max(self.numeric_level, logging.WARNING))

        structlog.configure(
            processors=self._get_processors(),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    def _console_handler(self) -> logging.Handler:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(self.numeric_level)
        handler.setFormatter(logging.Formatter("%(message)s"))
        return handler

    def _file_handlers(self, log_dir: Path) -> list[logging.Handler]:
        """Create the rotating app log and the errors-only log."""
        log_dir.mkdir(parents=True, exist_ok=True)
        formatter = logging.Formatter("%(message)s")

        app_handler = logging.handlers.RotatingFileHandler(
            filename=log_dir / APP_LOG_NAME,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        app_handler.setLevel(self.numeric_level)
        app_handler.setFormatter(formatter)

        error_handler = logging.handlers.RotatingFileHandler(
            filename=log_dir / ERROR_LOG_NAME,
            maxBytes=1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)

        return [app_handler, error_handler]

    def _get_processors(self) -> list[Any]:
        processors: list[Any] = [
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
        ]
        # JSON lines in files, plain text on the console
        if self.log_dir:
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
        return processors


def setup_logging(
    log_level: str = "INFO",
    log_dir: Path | None = None,
    tui_mode: bool = False,
) -> LoggingService:
    """Configure logging and return the service that did it."""
    service = LoggingService(log_level=log_level, log_dir=log_dir, tui_mode=tui_mode)
    service.configure()
    return service
