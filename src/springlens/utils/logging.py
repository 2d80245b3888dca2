"""Standardized logging for SpringLens.

Provides three output modes:
- Human mode: [LEVEL] message (colored if TTY)
- Verbose mode: [LEVEL][HH:MM:SS] logger: message
- CI/JSON mode: {"level":"...","ts":"...","logger":"...","msg":"..."}

Analyzers log through module-level ``logging.getLogger(__name__)`` loggers,
which all live under the "springlens" hierarchy configured here.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TextIO

ROOT_LOGGER = "springlens"


class LogMode(Enum):
    """Logging output mode."""

    HUMAN = "human"
    VERBOSE = "verbose"
    JSON = "json"


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    RED = "\033[31m"
    GRAY = "\033[90m"


LEVEL_COLORS = {
    logging.DEBUG: Colors.GRAY,
    logging.INFO: Colors.GREEN,
    logging.WARNING: Colors.YELLOW,
    logging.ERROR: Colors.RED,
    logging.CRITICAL: Colors.RED,
}


def _is_tty(stream: TextIO | None = None) -> bool:
    """Check if the stream is a TTY (supports colors)."""
    if stream is None:
        stream = sys.stderr
    return hasattr(stream, "isatty") and stream.isatty()


class _LevelFormatter(logging.Formatter):
    """Shared level tag rendering for the text formatters."""

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def level_tag(self, record: logging.LogRecord) -> str:
        tag = f"[{record.levelname}]"
        if self.use_colors:
            color = LEVEL_COLORS.get(record.levelno, Colors.RESET)
            return f"{color}{tag}{Colors.RESET}"
        return tag

    def with_exception(self, text: str, record: logging.LogRecord) -> str:
        if record.exc_info:
            return f"{text}\n{self.formatException(record.exc_info)}"
        return text


class HumanFormatter(_LevelFormatter):
    """Formatter for human-readable output.

    Format: [LEVEL] message
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record."""
        return self.with_exception(f"{self.level_tag(record)} {record.getMessage()}", record)


class VerboseFormatter(_LevelFormatter):
    """Formatter for verbose output with timestamps and logger names.

    Format: [LEVEL][HH:MM:SS] logger: message
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record with timestamp."""
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        text = f"{self.level_tag(record)}[{timestamp}] {record.name}: {record.getMessage()}"
        return self.with_exception(text, record)


class JSONFormatter(logging.Formatter):
    """Formatter for JSON lines output (machine-readable).

    Format: {"level":"INFO","ts":"2026-01-31T19:45:23+00:00","logger":"...","msg":"..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON."""
        log_entry: dict[str, Any] = {
            "level": record.levelname,
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "logger": record.name,
            "msg": record.getMessage(),
        }

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            log_entry.update(extra_data)

        if record.exc_info:
            log_entry["exc"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class SpringLensLogger(logging.Logger):
    """Logger with structured logging support."""

    def structured(self, level: int, msg: str, **kwargs: Any) -> None:
        """Log a message with additional structured data.

        The keyword arguments appear as top-level keys in JSON mode and are
        ignored by the text formatters.

        Args:
            level: Log level
            msg: Log message
            **kwargs: Additional data to include in JSON output
        """
        if self.isEnabledFor(level):
            self._log(level, msg, (), extra={"extra_data": kwargs}, stacklevel=2)


logging.setLoggerClass(SpringLensLogger)


def get_logger(name: str = ROOT_LOGGER) -> SpringLensLogger:
    """Get a SpringLens logger instance.

    Args:
        name: Logger name

    Returns:
        SpringLensLogger instance
    """
    return logging.getLogger(name)  # type: ignore[return-value]


def setup_logging(
    mode: LogMode = LogMode.HUMAN,
    level: int = logging.INFO,
    stream: TextIO | None = None,
) -> None:
    """Configure the springlens logger hierarchy.

    Args:
        mode: Output mode (human, verbose, json)
        level: Minimum log level
        stream: Output stream (default: stderr, keeping stdout for reports)
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.handlers.clear()

    use_colors = _is_tty(stream)

    if mode == LogMode.JSON:
        formatter: logging.Formatter = JSONFormatter()
    elif mode == LogMode.VERBOSE:
        formatter = VerboseFormatter(use_colors=use_colors)
    else:
        formatter = HumanFormatter(use_colors=use_colors)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def configure_from_cli(
    verbose: bool = False,
    quiet: bool = False,
    ci: bool = False,
    default_mode: str = "human",
    default_level: str = "INFO",
) -> None:
    """Configure logging based on CLI flags, falling back to config values.

    Args:
        verbose: Enable verbose mode with timestamps and debug output
        quiet: Suppress info messages (warnings and errors only)
        ci: Enable JSON output for CI/CD
        default_mode: Mode from configuration when no flag overrides it
        default_level: Level name from configuration when no flag overrides it
    """
    if ci:
        mode = LogMode.JSON
    elif verbose:
        mode = LogMode.VERBOSE
    else:
        mode = LogMode(default_mode)

    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.getLevelName(default_level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    setup_logging(mode=mode, level=level)
