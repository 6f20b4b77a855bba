"""Logging for the Dice Games application.

Events are built once by a shared structlog chain and rendered per handler:
the console gets a readable line in development, while the log files always
get one JSON object per line with Japanese text left unescaped.
"""

import logging
import logging.handlers
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog

APP_LOG_NAME = "dice-games.log"
ERROR_LOG_NAME = "error.log"


@dataclass(frozen=True)
class LogFile:
    """A rotating log file kept under the log directory."""
    name: str
    max_bytes: int
    backup_count: int
    min_level: int | None = None  # None follows the configured level


LOG_FILES: tuple[LogFile, ...] = (
    LogFile(APP_LOG_NAME, max_bytes=5 * 1024 * 1024, backup_count=3),
    LogFile(ERROR_LOG_NAME, max_bytes=1024 * 1024, backup_count=2, min_level=logging.ERROR),
)

# Runs for every event before it reaches a handler
SHARED_PROCESSORS: list[Any] = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def _json_renderer() -> Any:
    return structlog.processors.JSONRenderer(ensure_ascii=False)


def _formatter(renderer: Any) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        foreign_pre_chain=SHARED_PROCESSORS,
    )


class LoggingService:
    """Configures structlog on top of the standard library logging handlers."""

    def __init__(
        self,
        log_level: str = "INFO",
        log_dir: Path | None = None,
        tui_mode: bool = False,
    ) -> None:
        """Initialize the logging service.

        Args:
            log_level: The minimum log level to capture
            log_dir: Directory for the rotating log files (None for console only)
            tui_mode: If True, nothing is written to the console so the TUI stays intact
        """
        self.log_level = log_level.upper()
        self.log_dir = log_dir
        self.tui_mode = tui_mode
        self.is_development = os.getenv("ENVIRONMENT", "development") == "development"

    @property
    def level(self) -> int:
        return logging.getLevelNamesMapping().get(self.log_level, logging.INFO)

    def configure(self) -> None:
        """Install the handlers on the root logger, then configure structlog."""
        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.setLevel(self.level)

        for handler in self._build_handlers():
            root_logger.addHandler(handler)

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                *SHARED_PROCESSORS,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    def _build_handlers(self) -> list[logging.Handler]:
        handlers: list[logging.Handler] = []

        if not self.tui_mode:
            console = logging.StreamHandler(sys.stdout)
            console.setLevel(self.level)
            console.setFormatter(_formatter(self._console_renderer()))
            handlers.append(console)

        if self.log_dir:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            handlers.extend(self._file_handler(log_file) for log_file in LOG_FILES)

        return handlers

    def _console_renderer(self) -> Any:
        if self.is_development:
            return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
        return _json_renderer()

    def _file_handler(self, log_file: LogFile) -> logging.Handler:
        assert self.log_dir is not None
        handler = logging.handlers.RotatingFileHandler(
            filename=self.log_dir / log_file.name,
            maxBytes=log_file.max_bytes,
            backupCount=log_file.backup_count,
            encoding="utf-8",
        )
        handler.setLevel(log_file.min_level if log_file.min_level is not None else self.level)
        handler.setFormatter(_formatter(_json_renderer()))
        return handler

    def get_logger(self, name: str | None = None) -> structlog.stdlib.BoundLogger:
        return structlog.stdlib.get_logger(name)


def setup_logging(
    log_level: str = "INFO",
    log_dir: Path | None = None,
    environment: str | None = None,
    tui_mode: bool = False,
) -> LoggingService:
    """Set up application logging.

    Args:
        log_level: Minimum log level to capture
        log_dir: Directory for log files (None for console only)
        environment: development or production; stored in ENVIRONMENT
        tui_mode: If True, disable console logging

    Returns:
        The configured LoggingService
    """
    if environment:
        os.environ["ENVIRONMENT"] = environment

    service = LoggingService(log_level=log_level, log_dir=log_dir, tui_mode=tui_mode)
    service.configure()
    return service
