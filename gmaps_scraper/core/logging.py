"""
Logging setup for scrape runs.

Log lines go to stderr, since results may be streamed to stdout, and to one
log file per run when a log directory is configured.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def run_log_path(log_dir: Path, started: Optional[datetime] = None) -> Path:
    """
    Log file for a run started at ``started`` (default: now).

    Example:
        >>> run_log_path(Path("logs"), datetime(2024, 5, 1, 9, 30, 0))
        PosixPath('logs/run_20240501-093000.log')
    """
    started = started or datetime.now()
    return Path(log_dir) / f"run_{started:%Y%m%d-%H%M%S}.log"


def setup_logging(level: str = "INFO", log_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Configure the root logger for a scrape run.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for the run's log file; None logs to stderr only

    Returns:
        Path of the run's log file, or None
    """
    numeric_level = getattr(logging, level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = [logging.StreamHandler(sys.stderr)]

    log_path = None
    if log_dir is not None:
        log_path = run_log_path(log_dir)
        log_path.parent.mkdir(exist_ok=True, parents=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    root_logger.debug(f"Logging initialized - Level: {level}, File: {log_path}")
    return log_path


def get_logger(name: str) -> logging.Logger:
    """Logger for a module (pass ``__name__``)."""
    return logging.getLogger(name)
