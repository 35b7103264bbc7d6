"""
Shared utility functions for gmaps-scraper.

- URL canonicalization and dedup identities
- Retry logic with cancel-aware backoff
"""

from gmaps_scraper.utils.url_utils import (
    canonical_url,
    place_key,
    host_of,
    is_place_url,
    with_params,
    build_search_url,
    is_website_valid_for_email,
)
from gmaps_scraper.utils.retry import RetryConfig, retry_async_with_backoff, cancellable_sleep

__all__ = [
    # URL utilities
    "canonical_url",
    "place_key",
    "host_of",
    "is_place_url",
    "with_params",
    "build_search_url",
    "is_website_valid_for_email",
    # Retry utilities
    "RetryConfig",
    "retry_async_with_backoff",
    "cancellable_sleep",
]
