"""
Scroll pagination for lazily loaded feeds.

Both the search results list and a place's review feed load more items
when scrolled. Neither exposes a page count, so the feed is scrolled to
the bottom round after round until its scroll height stops changing.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Optional

from gmaps_scraper.core.exceptions import PaginationError, RunCancelledError
from gmaps_scraper.core.logging import get_logger
from gmaps_scraper.crawler.scripts import SCROLL_FEED_JS
from gmaps_scraper.utils.retry import cancellable_sleep

logger = get_logger(__name__)


@dataclass
class ScrollSettings:
    """Timing knobs for scroll_feed."""

    base_wait_ms: float = 200.0
    growth: float = 1.3
    max_wait_ms: float = 3000.0
    eval_attempts: int = 3
    eval_backoff: float = 5.0
    selector_timeout_ms: float = 15000.0

    def __post_init__(self):
        if self.base_wait_ms < 0:
            raise ValueError("base_wait_ms must be non-negative")
        if self.growth < 1:
            raise ValueError("growth must be >= 1")
        if self.max_wait_ms < self.base_wait_ms:
            raise ValueError("max_wait_ms must be >= base_wait_ms")
        if self.eval_attempts < 1:
            raise ValueError("eval_attempts must be at least 1")


def next_wait(current_ms: float, settings: ScrollSettings) -> float:
    """
    Grow the inter-round wait multiplicatively, never past the cap.

    Example:
        >>> next_wait(200, ScrollSettings())
        260.0
        >>> next_wait(2900, ScrollSettings())
        3000.0
    """
    return min(current_ms * settings.growth, settings.max_wait_ms)


def to_height(value: Any) -> int:
    """
    Convert a script result to a scroll height.

    Floats are truncated, not rounded, so equal heights compare equal
    across rounds.

    Raises:
        PaginationError: If the value is not a number
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PaginationError(f"scrollHeight is not a number, got: {type(value).__name__}")
    return max(int(value), 0)


async def _scroll_once(page, selector: str, wait_ms: float, settings: ScrollSettings,
                       cancel_event: Optional[asyncio.Event]) -> int:
    last_error: Optional[Exception] = None

    for attempt in range(settings.eval_attempts):
        try:
            value = await page.evaluate(SCROLL_FEED_JS, {"selector": selector, "waitMs": wait_ms})
        except Exception as e:
            last_error = e
            if attempt < settings.eval_attempts - 1:
                logger.warning(f"Scroll retry {attempt + 1}/{settings.eval_attempts} due to error: {e}")
                await cancellable_sleep(settings.eval_backoff, cancel_event)
            continue
        return to_height(value)

    raise PaginationError(f"scroll evaluation failed after {settings.eval_attempts} attempts: {last_error}")


async def scroll_feed(
    page,
    selector: str,
    max_iterations: int,
    settings: Optional[ScrollSettings] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> int:
    """
    Scroll a feed container until it stops growing.

    Args:
        page: Playwright page
        selector: CSS selector of the scrollable container
        max_iterations: Upper bound on scroll rounds
        settings: Timing knobs (default: ScrollSettings())
        cancel_event: Run cancellation event, checked at every round

    Returns:
        Number of rounds in which the feed grew. A round that returns the
        previous height ends the loop and is not counted.

    Raises:
        PaginationError: Container missing, non-numeric height, or repeated
            evaluation failure

    Example:
        >>> rounds = await scroll_feed(page, "div[role='feed']", max_iterations=10)
    """
    settings = settings or ScrollSettings()

    try:
        await page.wait_for_selector(selector, timeout=settings.selector_timeout_ms)
    except Exception as e:
        raise PaginationError(f"scroll element not found: {selector}: {e}") from e

    height = 0
    rounds = 0
    wait_ms = settings.base_wait_ms

    for _ in range(max_iterations):
        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"Scrolling {selector} cancelled after {rounds} rounds at height {height}")
            return rounds

        try:
            new_height = await _scroll_once(page, selector, wait_ms, settings, cancel_event)
        except RunCancelledError:
            logger.info(f"Scrolling {selector} cancelled after {rounds} rounds at height {height}")
            return rounds

        if new_height == height:
            logger.debug(f"Feed {selector} exhausted at height {height} after {rounds} rounds")
            break

        height = new_height
        rounds += 1
        wait_ms = next_wait(wait_ms, settings)

    return rounds
