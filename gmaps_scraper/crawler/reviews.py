"""
Review feed pagination and extraction for place pages.
"""

import asyncio
import math
from typing import Any, Dict, List, Optional

from gmaps_scraper.core.exceptions import PaginationError
from gmaps_scraper.core.logging import get_logger
from gmaps_scraper.crawler.paginator import ScrollSettings, scroll_feed
from gmaps_scraper.crawler.scripts import REVIEWS_FEED_SELECTOR, REVIEWS_JS, REVIEWS_TAB_SELECTOR

logger = get_logger(__name__)

# The feed attaches roughly this many reviews per scroll round
REVIEWS_PER_ROUND = 10
UNLIMITED_REVIEW_ROUNDS = 200


def rounds_for_limit(limit: int) -> int:
    """
    Scroll rounds needed to load ``limit`` reviews (-1 = unlimited).

    Example:
        >>> rounds_for_limit(25)
        4
        >>> rounds_for_limit(-1)
        200
    """
    if limit < 0:
        return UNLIMITED_REVIEW_ROUNDS
    return math.ceil(limit / REVIEWS_PER_ROUND) + 1


async def open_reviews_tab(page, timeout_ms: float = 5_000) -> bool:
    """Click the reviews tab of a place page; False when it is not there."""
    try:
        tab = page.locator(REVIEWS_TAB_SELECTOR).first
        if not await tab.count():
            return False
        await tab.click(timeout=timeout_ms)
    except Exception as e:
        logger.debug(f"Reviews tab not opened: {e}")
        return False
    return True


def _to_review(item: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(item, dict):
        return None
    try:
        rating = float(item.get("rating") or 0)
    except (TypeError, ValueError):
        rating = 0.0
    review = {
        "author_name": str(item.get("author_name") or ""),
        "author_url": str(item.get("author_url") or ""),
        "rating": rating,
        "relative_time": str(item.get("relative_time") or ""),
        "text": str(item.get("text") or ""),
    }
    if not review["author_name"] and not review["text"]:
        return None
    return review


async def fetch_reviews(
    page,
    limit: int,
    settings: Optional[ScrollSettings] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> List[Dict[str, Any]]:
    """
    Load and read the reviews of the place currently open in ``page``.

    Args:
        page: Playwright page showing a place
        limit: Maximum number of reviews (-1 = unlimited)
        settings: Scroll timing knobs
        cancel_event: Run cancellation event

    Returns:
        Review dicts in feed order, at most ``limit`` of them

    Raises:
        PaginationError: If the review feed never appeared, kept failing
            or its cards could not be read
    """
    if limit == 0:
        return []

    await open_reviews_tab(page)

    rounds = await scroll_feed(
        page,
        REVIEWS_FEED_SELECTOR,
        rounds_for_limit(limit),
        settings=settings,
        cancel_event=cancel_event,
    )

    try:
        raw = await page.evaluate(REVIEWS_JS, REVIEWS_FEED_SELECTOR)
    except Exception as e:
        raise PaginationError(f"reading review cards failed: {e}") from e
    reviews = [r for r in (_to_review(item) for item in (raw or [])) if r is not None]

    if limit > 0:
        reviews = reviews[:limit]

    logger.info(f"Fetched {len(reviews)} reviews in {rounds} scroll rounds")
    return reviews
