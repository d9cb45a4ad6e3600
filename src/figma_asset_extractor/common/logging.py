"""Console and file logging for the extractor."""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Type

# Verbosity names accepted by the CLI mapped to log levels
VERBOSITY_LEVELS = {
    "quiet": "ERROR",
    "normal": "INFO",
    "debug": "DEBUG",
}

# Chatty third-party loggers capped at WARNING
QUIET_LOGGERS = ("PIL",)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record.

    Structured fields are passed as ``extra={"extra_fields": {...}}`` and
    merged into the top level of the object.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            log_data["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        log_data.update(getattr(record, "extra_fields", {}))
        return json.dumps(log_data, default=str)


class DetailedFormatter(logging.Formatter):
    """Timestamped lines with logger, thread and call site."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


class SimpleFormatter(logging.Formatter):
    """Plain progress lines; warnings and errors carry their level."""

    def __init__(self) -> None:
        super().__init__(fmt="%(message)s")

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.WARNING:
            return f"{record.levelname}: {message}"
        return message


FORMATTERS: Dict[str, Type[logging.Formatter]] = {
    "simple": SimpleFormatter,
    "detailed": DetailedFormatter,
    "json": StructuredFormatter,
}


def verbosity_to_level(verbosity: str) -> str:
    """Translate a CLI verbosity (quiet, normal, debug) into a log level name."""
    try:
        return VERBOSITY_LEVELS[verbosity]
    except KeyError:
        raise ValueError(f"Unknown verbosity: {verbosity!r}") from None


def setup_logging(
    level: str = "INFO",
    format: str = "simple",
    log_file: Optional[Path] = None,
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> None:
    """Configure the root logger for a run.

    Replaces any handlers already installed, so calling it twice does not
    duplicate output.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        format: Console format (simple, detailed, json)
        log_file: Optional rotating log file, always written as JSON
        max_file_size_mb: Rotate the log file at this size
        backup_count: Rotated files to keep
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    # stderr, so stdout stays clean for piping
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(FORMATTERS.get(format, SimpleFormatter)())
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
