"""
Logging setup for the Pokedex pipeline.

Console output is colored when attached to a terminal; ``--json-logs`` (or
``json_format=True``) switches to one JSON object per line for CI log
processors. Structured context travels in ``extra={"metadata": {...}}``.
"""

import os
import sys
import json
import logging
from pathlib import Path
from typing import Optional, Union
from datetime import datetime
from enum import IntEnum

from ..constants.env_keys import EnvKeys

PACKAGE_LOGGER = "pokedex_sync"


class LogLevel(IntEnum):
    """Log levels matching Python's logging levels"""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARN = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


class ColoredFormatter(logging.Formatter):
    """Custom formatter with ANSI color codes for terminal output"""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\x1b[36m",  # Cyan
        "INFO": "\x1b[32m",  # Green
        "WARNING": "\x1b[33m",  # Yellow
        "ERROR": "\x1b[31m",  # Red
        "CRITICAL": "\x1b[41m",  # Red background
    }
    RESET = "\x1b[0m"
    DIM = "\x1b[2m"
    MAGENTA = "\x1b[35m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors and structure"""
        timestamp = datetime.fromtimestamp(record.created).isoformat(timespec="seconds")
        level_name = record.levelname
        metadata = getattr(record, "metadata", None)

        if self.use_colors:
            color = self.COLORS.get(level_name, "")
            parts = [
                f"{self.DIM}{timestamp}{self.RESET}",
                f"{color}{level_name.ljust(8)}{self.RESET}",
                f"{self.MAGENTA}[{record.name}]{self.RESET}",
                record.getMessage(),
            ]
            if metadata:
                parts.append(f"{self.DIM}{json.dumps(metadata, default=str)}{self.RESET}")
        else:
            parts = [timestamp, level_name.ljust(8), f"[{record.name}]", record.getMessage()]
            if metadata:
                parts.append(json.dumps(metadata, default=str))

        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON"""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        # Add metadata if present
        if getattr(record, "metadata", None):
            log_data["metadata"] = record.metadata

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        # Add source location
        log_data["source"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
        }

        return json.dumps(log_data, default=str)


def resolve_level(level: Optional[Union[str, int]] = None) -> int:
    """Turn a level name (``WARN`` included) or number into a logging level"""
    if level is None:
        level = os.getenv(EnvKeys.LOG_LEVEL, "INFO")
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name in LogLevel.__members__:
        return int(LogLevel[name])
    return logging.INFO


def configure_logging(
    level: Optional[Union[str, int]] = None,
    json_format: bool = False,
    enable_colors: bool = True,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Install handlers on the package logger.

    Args:
        level: Log level name or number; defaults to ``LOG_LEVEL`` or INFO
        json_format: Emit JSON lines instead of colored text
        enable_colors: Use ANSI colors when stdout is a terminal
        log_file: Optional file that receives JSON lines as well

    Returns:
        The configured ``pokedex_sync`` logger
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(resolve_level(level))

    # Clear existing handlers
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    if json_format:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(ColoredFormatter(use_colors=enable_colors))
    package_logger.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        # Always use JSON for file logs for easier parsing
        file_handler.setFormatter(JSONFormatter())
        package_logger.addHandler(file_handler)

    package_logger.propagate = False

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return package_logger
