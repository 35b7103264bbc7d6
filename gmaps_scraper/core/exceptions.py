"""
Exception hierarchy for gmaps-scraper.

Transient failures (ExtractionError, PaginationError, NavigationError) are
surfaced to the job-level retry loop. RunCancelledError is raised from
suspension points once the run's cancellation signal is set.
"""

from typing import Optional


class ScraperError(Exception):
    """Base class for all scraper errors."""


class ExtractionError(ScraperError):
    """Page-state payload could not be extracted after all attempts."""

    def __init__(self, message: str, attempts: int = 0, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.attempts = attempts
        self.cause = cause


class PaginationError(ScraperError):
    """Feed container missing or scroll evaluation kept failing."""


class EntryParseError(ScraperError):
    """Payload does not have the shape of a place record."""


class NavigationError(ScraperError):
    """Browser navigation failed or returned no response."""


class MonitorInvariantError(ScraperError):
    """Completion counters would violate completed <= expected."""


class RunCancelledError(ScraperError):
    """The run was cancelled while a job was suspended."""
