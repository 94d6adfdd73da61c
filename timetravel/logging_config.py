"""Logging configuration utilities for timetravel.

The library is silent by default: the ``timetravel`` logger only carries a
NullHandler. Applications (or test suites) opt in with the helpers below.

Example usage:
    import timetravel

    # Watch every advance step of a manual clock
    timetravel.enable_console_logging(level="DEBUG")

    # Rotating file logging
    timetravel.enable_file_logging("clock.log", max_bytes=10_000_000)

    # JSON lines for log aggregation
    timetravel.enable_json_logging()

    # Configure from environment variables
    timetravel.configure_from_env()

Environment variables:
    TT_LOGGING: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    TT_LOG_FILE: Path to log file (enables rotating file logging)
    TT_LOG_JSON: Set to "1" for JSON output
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Literal

__all__ = [
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_file_logging",
    "enable_json_logging",
    "enable_timed_file_logging",
    "set_level",
    "set_module_level",
]

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_BACKUP_COUNT = 5

LOGGER_NAME = "timetravel"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class JsonFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects.

    Example output:
        {"timestamp": "2024-01-15T10:30:00.123456+00:00", "level": "DEBUG",
         "logger": "timetravel.manual.clock", "thread": "MainThread",
         "message": "advance to 2024-01-15 10:30:05+00:00 fired 2 event(s)"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra"):
            log_data["extra"] = record.extra

        return json.dumps(log_data, default=str)


def _get_level(level: str | int) -> int:
    """Convert a level string or int to a logging level constant."""
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def _get_logger() -> logging.Logger:
    """Get the timetravel root logger."""
    return logging.getLogger(LOGGER_NAME)


def _clear_handlers() -> None:
    """Remove and close every handler on the timetravel logger except NullHandler."""
    logger = _get_logger()
    for handler in logger.handlers[:]:
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
            handler.close()


def _install(handler: logging.Handler, level: LogLevel | int, formatter: logging.Formatter):
    logger = _get_logger()
    logger.setLevel(_get_level(level))
    handler.setLevel(_get_level(level))
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return handler


def _prepare_path(path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def enable_console_logging(
    level: LogLevel | int = "INFO",
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> logging.StreamHandler:
    """Enable console (stderr) logging for timetravel.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL) or int.
        format: Log message format string.
        date_format: Date format string for %(asctime)s.

    Returns:
        The created StreamHandler.
    """
    return _install(logging.StreamHandler(), level, logging.Formatter(format, date_format))


def enable_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> RotatingFileHandler:
    """Enable size-based rotating file logging for timetravel.

    Args:
        path: Path to the log file. Parent directories are created automatically.
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL) or int.
        max_bytes: Maximum size of each log file in bytes. Default 10 MB.
        backup_count: Number of rotated files to keep. Default 5.
        format: Log message format string.
        date_format: Date format string for %(asctime)s.

    Returns:
        The created RotatingFileHandler.
    """
    handler = RotatingFileHandler(
        _prepare_path(path),
        maxBytes=max_bytes,
        backupCount=backup_count,
    )
    return _install(handler, level, logging.Formatter(format, date_format))


def enable_timed_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    when: str = "midnight",
    interval: int = 1,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> TimedRotatingFileHandler:
    """Enable time-based rotating file logging for timetravel.

    Args:
        path: Path to the log file. Parent directories are created automatically.
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL) or int.
        when: Rotation unit as understood by TimedRotatingFileHandler
            ('S', 'M', 'H', 'D', 'midnight', 'W0'-'W6').
        interval: Number of units between rotations.
        backup_count: Number of rotated files to keep. Default 5.
        format: Log message format string.
        date_format: Date format string for %(asctime)s.

    Returns:
        The created TimedRotatingFileHandler.
    """
    handler = TimedRotatingFileHandler(
        _prepare_path(path),
        when=when,
        interval=interval,
        backupCount=backup_count,
    )
    return _install(handler, level, logging.Formatter(format, date_format))


def enable_json_logging(level: LogLevel | int = "INFO") -> logging.StreamHandler:
    """Enable JSON console logging for timetravel.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL) or int.

    Returns:
        The created StreamHandler with JsonFormatter.
    """
    return _install(logging.StreamHandler(), level, JsonFormatter())


def enable_json_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> RotatingFileHandler:
    """Enable JSON rotating file logging for timetravel.

    Args:
        path: Path to the log file. Parent directories are created automatically.
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL) or int.
        max_bytes: Maximum size of each log file in bytes. Default 10 MB.
        backup_count: Number of rotated files to keep. Default 5.

    Returns:
        The created RotatingFileHandler with JsonFormatter.
    """
    handler = RotatingFileHandler(
        _prepare_path(path),
        maxBytes=max_bytes,
        backupCount=backup_count,
    )
    return _install(handler, level, JsonFormatter())


def configure_from_env() -> None:
    """Configure logging from TT_LOGGING, TT_LOG_FILE and TT_LOG_JSON.

    Does nothing when neither TT_LOGGING nor TT_LOG_FILE is set.
    """
    level = os.environ.get("TT_LOGGING", "").upper()
    log_file = os.environ.get("TT_LOG_FILE", "")
    use_json = os.environ.get("TT_LOG_JSON", "") == "1"

    if not level and not log_file:
        return

    level = level or "INFO"

    if use_json:
        if log_file:
            enable_json_file_logging(log_file, level=level)
        else:
            enable_json_logging(level=level)
    elif log_file:
        enable_file_logging(log_file, level=level)
    else:
        enable_console_logging(level=level)


def set_level(level: LogLevel | int) -> None:
    """Set the log level of the timetravel logger."""
    _get_logger().setLevel(_get_level(level))


def set_module_level(module: str, level: LogLevel | int) -> None:
    """Set the log level for one timetravel submodule.

    Args:
        module: Module name relative to timetravel (e.g., "manual.clock").
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL) or int.

    Example:
        >>> import timetravel
        >>> timetravel.enable_console_logging(level="INFO")
        >>> timetravel.set_module_level("manual.quiescence", "DEBUG")
    """
    logging.getLogger(f"{LOGGER_NAME}.{module}").setLevel(_get_level(level))


def disable_logging() -> None:
    """Silence timetravel completely.

    Removes all handlers and sets the level above CRITICAL.
    """
    logger = _get_logger()
    _clear_handlers()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.CRITICAL + 1)
