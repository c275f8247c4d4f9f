"""Logging configuration for scrobble-stats."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import coloredlogs


def setup_logger(
    name: str = "scrobble_stats",
    log_file: Optional[Path] = None,
    level: str = "INFO",
    max_size_mb: int = 10,
    backup_count: int = 5,
    console: bool = True,
    console_level: Optional[str] = None
) -> logging.Logger:
    """Set up the import logger with file and console handlers.

    The file gets everything at ``level``; the console can be held back to a
    quieter ``console_level`` so per-batch progress stays in the log file
    while the CLI shows its own progress display.

    Args:
        name: Logger name
        log_file: Path to log file (if None, no file logging)
        level: File logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        max_size_mb: Maximum log file size in MB before rotation
        backup_count: Number of backup log files to keep
        console: Whether to add console handler
        console_level: Console logging level (defaults to ``level``)

    Returns:
        Configured logger instance
    """
    file_level = getattr(logging, level.upper())
    stream_level = getattr(logging, (console_level or level).upper())

    logger = logging.getLogger(name)
    logger.setLevel(min(file_level, stream_level) if console else file_level)
    # Re-running setup (one service per CLI command) must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(file_handler)

    # stderr keeps command output on stdout clean
    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(stream_level)
        console_handler.setFormatter(coloredlogs.ColoredFormatter(
            fmt='%(asctime)s %(levelname)s %(message)s',
            datefmt='%H:%M:%S'
        ))
        logger.addHandler(console_handler)

    return logger
