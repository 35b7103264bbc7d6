"""
Job kinds and the fan-out contract.

SearchJob -> PlaceJob (one per new result link) -> EmailJob (at most one).
EmailJob emits nothing.
"""

from gmaps_scraper.jobs.base import Job, Priority, Response
from gmaps_scraper.jobs.email import EmailJob
from gmaps_scraper.jobs.place import PlaceJob, PlaceOptions
from gmaps_scraper.jobs.search import SearchJob, result_links

__all__ = [
    "Job",
    "Priority",
    "Response",
    "EmailJob",
    "PlaceJob",
    "PlaceOptions",
    "SearchJob",
    "result_links",
]
