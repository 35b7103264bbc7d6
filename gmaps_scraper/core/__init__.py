"""
Core utilities for gmaps-scraper.

This module contains shared utilities used across all components:
- Configuration management
- Structured logging
- Exception hierarchy and failure records
"""

from gmaps_scraper.core.logging import get_logger, setup_logging
from gmaps_scraper.core.config import Config
from gmaps_scraper.core.exceptions import (
    ScraperError,
    ExtractionError,
    PaginationError,
    EntryParseError,
    NavigationError,
    MonitorInvariantError,
    RunCancelledError,
)
from gmaps_scraper.core.error_models import (
    ErrorComponent,
    ErrorSeverity,
    ErrorType,
    ErrorStage,
    ErrorRecord,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "Config",
    "ScraperError",
    "ExtractionError",
    "PaginationError",
    "EntryParseError",
    "NavigationError",
    "MonitorInvariantError",
    "RunCancelledError",
    "ErrorComponent",
    "ErrorSeverity",
    "ErrorType",
    "ErrorStage",
    "ErrorRecord",
]
