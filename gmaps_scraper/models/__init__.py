"""
Data models for gmaps-scraper.
"""

from gmaps_scraper.models.entry import (
    Coordinates,
    Review,
    Entry,
    entry_from_json,
    review_count_from_json,
    is_valid_email,
)

__all__ = [
    "Coordinates",
    "Review",
    "Entry",
    "entry_from_json",
    "review_count_from_json",
    "is_valid_email",
]
