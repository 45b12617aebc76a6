"""Logging setup for the freelance ledger CLI.

Console output is plain text by default; ``LOG_FORMAT=json`` switches every
handler to one JSON object per line with the LogContext fields (such as
``invoice_number`` or ``project_id``) as top-level keys.
"""

import json
import logging
import logging.handlers
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from freelance_ledger.utils.logging_utils import _ContextFilter

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
FORMATS = ("standard", "json")

TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# The Google client logs every discovery lookup at INFO
NOISY_LOGGERS = (
    "googleapiclient.discovery",
    "googleapiclient.discovery_cache",
    "urllib3",
)

_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """Render records as JSON lines.

    Anything JSON cannot encode natively (Decimal, date, Path) goes through
    ``str()``.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


@dataclass
class LoggingConfig:
    """
    Where log records go and how they look.

    Attributes:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (any case)
        log_format: 'standard' text or 'json'
        log_file: Rotating log file; required when enable_file is set
        enable_console: Write to stderr
        enable_file: Write to log_file
        max_file_size: Bytes before the log file rotates
        backup_count: Rotated files kept
    """

    log_level: str = "WARNING"
    log_format: str = "standard"
    log_file: Optional[str] = None
    enable_console: bool = True
    enable_file: bool = False
    max_file_size: int = 5 * 1024 * 1024
    backup_count: int = 3

    def __post_init__(self):
        self.log_level = self.log_level.upper()
        if self.log_level not in LEVELS:
            raise ValueError(
                f"Invalid log level: {self.log_level}. "
                f"Must be one of {', '.join(LEVELS)}"
            )
        if self.log_format not in FORMATS:
            raise ValueError(
                f"Invalid log format: {self.log_format}. "
                f"Must be one of {', '.join(FORMATS)}"
            )
        if self.enable_file and not self.log_file:
            raise ValueError("log_file must be specified when enable_file is True")

    @property
    def level(self) -> int:
        return logging.getLevelName(self.log_level)

    @classmethod
    def from_env(cls, debug: bool = False) -> "LoggingConfig":
        """
        Read LOG_LEVEL, LOG_FORMAT, LOG_FILE and LOG_CONSOLE.

        Setting LOG_FILE turns file output on.

        Args:
            debug: The CLI ``--debug`` flag; forces DEBUG over LOG_LEVEL
        """
        log_file = os.getenv("LOG_FILE") or None
        return cls(
            log_level="DEBUG" if debug else os.getenv("LOG_LEVEL", "WARNING"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
            log_file=log_file,
            enable_console=os.getenv("LOG_CONSOLE", "true").lower() == "true",
            enable_file=log_file is not None,
        )

    def build_handlers(self) -> List[logging.Handler]:
        handlers: List[logging.Handler] = []
        if self.enable_console:
            handlers.append(logging.StreamHandler())
        if self.enable_file:
            path = Path(self.log_file)
            path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(
                logging.handlers.RotatingFileHandler(
                    path, maxBytes=self.max_file_size, backupCount=self.backup_count
                )
            )
        return handlers

    def build_formatter(self) -> logging.Formatter:
        if self.log_format == "json":
            return JSONFormatter()
        return logging.Formatter(fmt=TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)


def configure_logging(config: LoggingConfig) -> None:
    """
    Install the configured handlers on the root logger.

    Previous root handlers are removed first, so configuring twice does not
    duplicate output. Google client chatter is held at WARNING unless the
    ledger itself logs at DEBUG.
    """
    reset_logging()
    root = logging.getLogger()
    root.setLevel(config.level)

    formatter = config.build_formatter()
    context_filter = _ContextFilter()
    for handler in config.build_handlers():
        handler.setLevel(config.level)
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root.addHandler(handler)

    library_level = logging.DEBUG if config.level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)


def reset_logging() -> None:
    """Close and remove every root handler and restore the WARNING level."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.WARNING)
