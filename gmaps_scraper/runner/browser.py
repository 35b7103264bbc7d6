"""
Playwright browser shared by the orchestrator's workers.
"""

import random
from contextlib import asynccontextmanager
from typing import Dict, Optional

from playwright.async_api import async_playwright

from gmaps_scraper.core.logging import get_logger

logger = get_logger(__name__)

BLOCK_RESOURCE_TYPES = {"media", "font", "image"}  # keep CSS/JS/XHR

UA_POOL = [
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_6) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/127 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/126 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/125 Safari/537.36",
]


class BrowserPages:
    """
    One Chromium instance; each worker gets its own context and page.

    Example:
        >>> async with BrowserPages(headless=True) as pages:
        ...     async with pages.page() as page:
        ...         await page.goto("https://www.google.com/maps")
    """

    def __init__(self, headless: bool = True, locale: str = "en-US", block_resources: bool = True):
        self.headless = headless
        self.locale = locale
        self.block_resources = block_resources
        self._pw = None
        self._browser = None

    async def __aenter__(self) -> "BrowserPages":
        self._pw = await async_playwright().start()
        self._browser = await self._pw.chromium.launch(
            headless=self.headless,
            args=["--disable-blink-features=AutomationControlled"],
        )
        logger.info(f"Browser launched (headless={self.headless})")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._browser is not None:
            await self._browser.close()
        if self._pw is not None:
            await self._pw.stop()
        self._browser = None
        self._pw = None

    @asynccontextmanager
    async def page(self):
        if self._browser is None:
            raise RuntimeError("BrowserPages used outside 'async with'")

        ctx_kwargs: Dict[str, object] = {
            "user_agent": random.choice(UA_POOL),
            "viewport": {"width": random.randint(1280, 1440), "height": random.randint(720, 900)},
            "locale": self.locale,
            "java_script_enabled": True,
        }
        context = await self._browser.new_context(**ctx_kwargs)
        await context.add_init_script("Object.defineProperty(navigator, 'webdriver', {get: () => undefined});")

        if self.block_resources:
            async def _route(route):
                if route.request.resource_type in BLOCK_RESOURCE_TYPES:
                    return await route.abort()
                return await route.continue_()

            await context.route("**/*", _route)

        try:
            yield await context.new_page()
        finally:
            await context.close()


def locale_for(lang_code: Optional[str]) -> str:
    """Browser locale for a Maps ``hl`` language code."""
    if not lang_code:
        return "en-US"
    if lang_code == "en":
        return "en-US"
    return lang_code
