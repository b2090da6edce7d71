"""Logging setup for the hardening run.

Every run logs to two places:
- The console, one line per message prefixed with a UTC timestamp (progress
  on stdout, errors on stderr) so the operator can follow progress and see
  where a run stopped
- A rotating log file under /var/log/vps_harden/ in the standard
  "timestamp - severity - name - message" format for later review

If the log directory cannot be created (for example during a dry run as an
unprivileged user) the file handler is replaced by a stderr fallback.
"""

from __future__ import annotations

from datetime import datetime
from logging import (
    Filter, Formatter, Handler, Logger, LogRecord, StreamHandler, getLogger,
    DEBUG, INFO, WARNING, ERROR,
)
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional
import subprocess
import sys

import pytz

from lib.types import BYTES_PER_MB

# Default log configuration
DEFAULT_LOG_MAX_BYTES = 5 * BYTES_PER_MB  # 5 MB
DEFAULT_LOG_BACKUP_COUNT = 5
DEFAULT_LOG_LEVEL = INFO
DEFAULT_LOG_DIR = "/var/log/vps_harden"
DEFAULT_LOG_FILE = f"{DEFAULT_LOG_DIR}/harden.log"
LOGGER_NAME = "vps_harden"

CONSOLE_HANDLER_NAME = "console"
ERROR_HANDLER_NAME = "console_errors"
FALLBACK_HANDLER_NAME = "stderr_fallback"

# Format: timestamp - severity - name - message
STANDARD_LOG_FORMAT = "%(asctime)s - %(levelname)-8s - %(name)s - %(message)s"
STANDARD_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_LOG_FORMAT = "[%(asctime)s UTC] %(message)s"


class UTCFormatter(Formatter):
    """Formatter that renders record timestamps in UTC."""

    def formatTime(self, record: LogRecord, datefmt: Optional[str] = None) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=pytz.UTC)
        return stamp.strftime(datefmt or STANDARD_DATE_FORMAT)


def get_standard_formatter() -> Formatter:
    """Get the standard formatter used for the log file."""
    return UTCFormatter(STANDARD_LOG_FORMAT, STANDARD_DATE_FORMAT)


def get_console_formatter() -> Formatter:
    return UTCFormatter(CONSOLE_LOG_FORMAT, STANDARD_DATE_FORMAT)


class _BelowLevelFilter(Filter):
    """Pass only records below the given level."""

    def __init__(self, level: int) -> None:
        super().__init__()
        self.level = level

    def filter(self, record: LogRecord) -> bool:
        return record.levelno < self.level


def _find_handler(logger: Logger, name: str) -> Optional[Handler]:
    for handler in logger.handlers:
        if handler.get_name() == name:
            return handler
    return None


def _ensure_fallback_handler(logger: Logger, level: int = INFO) -> None:
    """Add a stderr handler as fallback if no file handler could be opened."""
    if _find_handler(logger, FALLBACK_HANDLER_NAME) is not None:
        return

    handler = StreamHandler(sys.stderr)
    handler.set_name(FALLBACK_HANDLER_NAME)
    handler.setLevel(max(level, WARNING))
    handler.addFilter(_BelowLevelFilter(ERROR))
    handler.setFormatter(get_standard_formatter())
    logger.addHandler(handler)


def _add_file_handler(logger: Logger, log_file: str, level: int,
                      max_bytes: int, backup_count: int) -> None:
    log_path = Path(log_file)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
    except (OSError, IOError) as e:
        print(f"Error creating log directory {log_path.parent}: {e}", file=sys.stderr)
        _ensure_fallback_handler(logger, level)
        return

    log_file_path = str(log_path.resolve())
    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler) and handler.baseFilename == log_file_path:
            return

    try:
        handler = RotatingFileHandler(log_file_path, maxBytes=max_bytes, backupCount=backup_count)
    except (OSError, IOError) as e:
        print(f"Error opening log file {log_file_path}: {e}", file=sys.stderr)
        _ensure_fallback_handler(logger, level)
        return

    handler.setLevel(level)
    handler.setFormatter(get_standard_formatter())
    logger.addHandler(handler)


def setup_logging(
    log_file: Optional[str] = DEFAULT_LOG_FILE,
    verbose: bool = False,
    max_bytes: int = DEFAULT_LOG_MAX_BYTES,
    backup_count: int = DEFAULT_LOG_BACKUP_COUNT,
) -> Logger:
    """Configure and return the hardening logger.

    Args:
        log_file: Path of the rotating log file, or None for console only
        verbose: Log DEBUG messages as well
        max_bytes: Maximum size of log file before rotation
        backup_count: Number of backup files to keep

    Returns:
        Configured Logger instance
    """
    level = DEBUG if verbose else DEFAULT_LOG_LEVEL
    logger = getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    console_handler = _find_handler(logger, CONSOLE_HANDLER_NAME)
    if console_handler is None:
        console_handler = StreamHandler(sys.stdout)
        console_handler.set_name(CONSOLE_HANDLER_NAME)
        console_handler.setFormatter(get_console_formatter())
        console_handler.addFilter(_BelowLevelFilter(ERROR))
        logger.addHandler(console_handler)
    console_handler.setLevel(level)

    if _find_handler(logger, ERROR_HANDLER_NAME) is None:
        error_handler = StreamHandler(sys.stderr)
        error_handler.set_name(ERROR_HANDLER_NAME)
        error_handler.setLevel(ERROR)
        error_handler.setFormatter(get_console_formatter())
        logger.addHandler(error_handler)

    if log_file:
        _add_file_handler(logger, log_file, level, max_bytes, backup_count)

    return logger


def log_subprocess_result(
    logger: Logger,
    action: str,
    result: subprocess.CompletedProcess[str],
    success_level: int = INFO,
    failure_level: int = WARNING
) -> bool:
    """Log concise command result details and return success state."""
    if result.returncode == 0:
        logger.log(success_level, f"✓ {action}")
        return True

    stderr_raw = result.stderr or ""
    if isinstance(stderr_raw, bytes):
        stderr_raw = stderr_raw.decode(errors="replace")
    stderr = stderr_raw.strip().splitlines()
    if stderr:
        detail_lines = stderr[:3]
        details = " | ".join(detail_lines)
        if len(stderr) > 3:
            details += " | ..."
    else:
        details = f"exit code {result.returncode}"
    logger.log(failure_level, f"⚠ {action} failed: {details}")
    return False
