"""
Page navigation helpers for map and business pages.
"""

from typing import Dict, Tuple

from gmaps_scraper.core.exceptions import NavigationError
from gmaps_scraper.core.logging import get_logger
from gmaps_scraper.crawler.scripts import REJECT_COOKIES_SELECTOR

logger = get_logger(__name__)

DEFAULT_NAV_TIMEOUT_MS = 30_000
SETTLE_TIMEOUT_MS = 5_000


async def goto(
    page,
    url: str,
    wait_until: str = "domcontentloaded",
    timeout_ms: float = DEFAULT_NAV_TIMEOUT_MS,
) -> Tuple[str, int, Dict[str, str]]:
    """
    Navigate to ``url``.

    Args:
        page: Playwright page
        url: Target URL
        wait_until: Playwright load state to wait for
        timeout_ms: Navigation timeout

    Returns:
        Tuple of (final_url, status_code, headers)

    Raises:
        NavigationError: If navigation failed or produced no response
    """
    logger.debug(f"[nav] {url}")
    try:
        response = await page.goto(url, wait_until=wait_until, timeout=timeout_ms)
    except Exception as e:
        raise NavigationError(f"navigation to {url} failed: {e}") from e

    if response is None:
        raise NavigationError(f"navigation to {url} returned no response")

    return response.url, response.status, dict(response.headers)


async def reject_cookies_if_required(page, timeout_ms: float = 2_000) -> bool:
    """
    Dismiss the consent interstitial when it is shown.

    Returns:
        True if a reject button was clicked
    """
    try:
        button = page.locator(REJECT_COOKIES_SELECTOR).first
        if not await button.count():
            return False
        await button.click(timeout=timeout_ms)
    except Exception as e:
        logger.debug(f"Cookie consent not dismissed: {e}")
        return False

    logger.debug("[click] consent: reject all")
    return True


async def wait_until_settled(page, timeout_ms: float = SETTLE_TIMEOUT_MS) -> None:
    """
    Wait for the current URL to finish loading after redirects.

    Raises:
        NavigationError: If the page did not settle in time
    """
    try:
        await page.wait_for_url(page.url, wait_until="domcontentloaded", timeout=timeout_ms)
    except Exception as e:
        raise NavigationError(f"page did not settle at {page.url}: {e}") from e
