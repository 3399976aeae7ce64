"""Logging infrastructure for himalaya-cache with per-account logs.

Log files live in the configured log directory with automatic rotation:
- himalaya-cache.log: Everything logged under the himalaya_cache package
- himalaya-cache-{account}.log: Per-account sync activity
- himalaya-cache-error.log: Warnings and errors from all accounts

Usage:
    from himalaya_cache.logging import setup_logging, get_account_logger

    # Initialize once at startup
    setup_logging(log_dir=settings.log_dir, log_level=settings.log_level)

    logger = get_account_logger("work")
    logger.info("Fetched 12 folders")

    # Skipped items also land in the error log
    logger.warning("failed to fetch envelopes for INBOX")
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

DEFAULT_LOG_DIR = Path.home() / ".local" / "state" / "himalaya-cache"

# Default rotation settings
DEFAULT_MAX_BYTES = 5 * 1024 * 1024  # 5MB
DEFAULT_BACKUP_COUNT = 3

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
PACKAGE_LOGGER = "himalaya_cache"

# Module-level state
_loggers: dict[str, logging.Logger] = {}
_account_file_handlers: dict[str, logging.Handler] = {}
_error_logger: logging.Logger | None = None
_package_handler: logging.Handler | None = None
_log_dir: Path = DEFAULT_LOG_DIR
_max_bytes: int = DEFAULT_MAX_BYTES
_backup_count: int = DEFAULT_BACKUP_COUNT
_initialized: bool = False


class ErrorPropagatingHandler(logging.Handler):
    """Handler that forwards WARNING+ records to the shared error logger."""

    def __init__(self, account: str, level: int = logging.WARNING) -> None:
        super().__init__(level=level)
        self.account = account

    def emit(self, record: logging.LogRecord) -> None:
        """Forward the record to the error logger with account context."""
        error_logger = get_error_logger()
        prefixed_record = logging.LogRecord(
            name=record.name,
            level=record.levelno,
            pathname=record.pathname,
            lineno=record.lineno,
            msg=f"[{self.account}] {record.getMessage()}",
            args=(),  # Already formatted via getMessage()
            exc_info=record.exc_info,
        )
        error_logger.handle(prefixed_record)


def _rotating_handler(filename: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        _log_dir / filename,
        maxBytes=_max_bytes,
        backupCount=_backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging(
    log_dir: Path | None = None,
    log_level: str = "INFO",
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> None:
    """Initialize the logging system.

    Args:
        log_dir: Directory for log files (default: ~/.local/state/himalaya-cache)
        log_level: Minimum log level (default: INFO)
        max_bytes: Max size per log file before rotation (default: 5MB)
        backup_count: Number of backup files to keep (default: 3)
    """
    global _log_dir, _max_bytes, _backup_count, _initialized, _package_handler

    _log_dir = log_dir or DEFAULT_LOG_DIR
    _max_bytes = max_bytes or DEFAULT_MAX_BYTES
    _backup_count = backup_count if backup_count is not None else DEFAULT_BACKUP_COUNT

    _log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger(PACKAGE_LOGGER)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    if _package_handler is None:
        _package_handler = _rotating_handler("himalaya-cache.log")
        root_logger.addHandler(_package_handler)

    _initialized = True


def get_error_logger() -> logging.Logger:
    """Get the shared error logger (WARNING+ level, all accounts).

    Returns:
        Logger that writes to himalaya-cache-error.log
    """
    global _error_logger

    if _error_logger is not None:
        return _error_logger

    if not _initialized:
        setup_logging()

    logger = logging.getLogger(f"{PACKAGE_LOGGER}.errors")
    logger.setLevel(logging.WARNING)
    # Don't propagate to root to avoid duplicate messages
    logger.propagate = False

    if not logger.handlers:
        handler = _rotating_handler("himalaya-cache-error.log")
        handler.setLevel(logging.WARNING)
        logger.addHandler(handler)

    _error_logger = logger
    return logger


def get_account_logger(account: str) -> logging.Logger:
    """Get or create a logger for a specific himalaya account.

    Args:
        account: Name of the account as known to himalaya

    Returns:
        Logger that writes to himalaya-cache-{account}.log
    """
    if account in _loggers:
        return _loggers[account]

    if not _initialized:
        setup_logging()

    # Sanitize account name for filename (replace non-alphanumeric with hyphen)
    safe_name = "".join(c if c.isalnum() else "-" for c in account)

    # One logger per raw name; colliding safe names share the file handler
    logger = logging.getLogger(f"{PACKAGE_LOGGER}.account.{account}")
    logger.setLevel(logging.INFO)
    logger.propagate = False

    if not logger.handlers:
        filename = f"himalaya-cache-{safe_name}.log"
        if filename not in _account_file_handlers:
            _account_file_handlers[filename] = _rotating_handler(filename)
        logger.addHandler(_account_file_handlers[filename])
        logger.addHandler(ErrorPropagatingHandler(account))

    _loggers[account] = logger
    return logger


def reset_logging() -> None:
    """Reset logging state (primarily for testing)."""
    global _loggers, _account_file_handlers, _error_logger, _initialized, _package_handler

    for logger in _loggers.values():
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    if _error_logger:
        for handler in _error_logger.handlers[:]:
            handler.close()
            _error_logger.removeHandler(handler)

    if _package_handler is not None:
        _package_handler.close()
        logging.getLogger(PACKAGE_LOGGER).removeHandler(_package_handler)

    _loggers = {}
    _account_file_handlers = {}
    _error_logger = None
    _package_handler = None
    _initialized = False
