"""
Crawler module for map pages.

Module Structure:
- scripts: JavaScript evaluated in the page and the selectors it uses
- emails: contact email extraction from website markup (no playwright dependency)
- page_state: page-state payload extraction with defensive decoding
- paginator: height-stabilization scroll pagination for feeds
- reviews: review feed pagination and extraction
- navigation: navigation and consent handling

None of these modules import playwright; they drive whatever page object
they are given, so they can be exercised with fakes.
"""

from gmaps_scraper.crawler.scripts import (
    PAGE_STATE_JS,
    SCROLL_FEED_JS,
    REVIEWS_JS,
    RESULTS_FEED_SELECTOR,
    REVIEWS_FEED_SELECTOR,
    RESULT_LINK_SELECTOR,
)
from gmaps_scraper.crawler.emails import extract_emails
from gmaps_scraper.crawler.page_state import (
    extract_page_state,
    normalize_eval_result,
    clean_payload,
)
from gmaps_scraper.crawler.paginator import ScrollSettings, scroll_feed, next_wait, to_height
from gmaps_scraper.crawler.reviews import fetch_reviews
from gmaps_scraper.crawler.navigation import goto, reject_cookies_if_required, wait_until_settled

__all__ = [
    "PAGE_STATE_JS",
    "SCROLL_FEED_JS",
    "REVIEWS_JS",
    "RESULTS_FEED_SELECTOR",
    "REVIEWS_FEED_SELECTOR",
    "RESULT_LINK_SELECTOR",
    "extract_emails",
    "extract_page_state",
    "normalize_eval_result",
    "clean_payload",
    "ScrollSettings",
    "scroll_feed",
    "next_wait",
    "to_height",
    "fetch_reviews",
    "goto",
    "reject_cookies_if_required",
    "wait_until_settled",
]
