"""Centralized logging utilities for umiaware.

Provides a single place to configure logging and fetch namespaced loggers.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"

# Log rotation settings
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_BACKUP_COUNT = 5

APP_LOGGER_NAME = "umiaware"


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> None:
    """Configure logging for the 'umiaware' namespace.

    Args:
        level: Logging level for the application logger
        log_file: Optional path for log file output
        max_bytes: Maximum size per log file before rotation (default: 10MB)
        backup_count: Number of backup files to keep (default: 5)

    Notes:
        - Root logger kept at WARNING to suppress pysam and third-party noise
        - 'umiaware' logger uses the requested level
        - Console handler uses concise format; file handler (if any) is detailed at DEBUG
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(level)
    # Avoid duplicate logs if called multiple times
    if app_logger.handlers:
        for h in list(app_logger.handlers):
            app_logger.removeHandler(h)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    app_logger.addHandler(console)

    if log_file:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
            app_logger.addHandler(file_handler)
        except OSError as e:
            import warnings
            warnings.warn(f"Failed to create log file {log_file}: {e}")

    app_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Return a namespaced logger under 'umiaware' root."""
    base = logging.getLogger(APP_LOGGER_NAME)
    return base.getChild(name)


def level_from_verbosity(verbose: int) -> int:
    """Map a -v count to a logging level (0: WARNING, 1: INFO, 2+: DEBUG)."""
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


class LogTemplates:
    """Standard log message templates for consistent logging across modules."""

    # Module lifecycle messages
    MODULE_START = "Starting {module_name}"
    MODULE_SUCCESS = "{module_name} completed successfully in {duration:.2f} seconds"
    MODULE_FAILURE = "{module_name} failed: {error}"

    # File operations
    FILE_CREATED = "Created output file: {path} ({size:,} bytes)"
    FILE_LOADED = "Loaded {count:,} records from {path}"

    # Processing statistics
    SPLIT_STATS = "Split {input_sets:,} duplicate sets into {output_sets:,} UMI groups"
    MARKING_STATS = "Marked {duplicates:,} of {total:,} records as duplicates ({percent:.2f}%)"
