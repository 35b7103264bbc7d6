"""
Email job: enrich an Entry with contact addresses from its website.

Email data is optional. A slow or dead website never fails the listing:
``process`` always hands back the Entry, with or without emails.
"""

import asyncio
from typing import Any, List, Optional, Tuple

from gmaps_scraper.core.error_models import ErrorComponent
from gmaps_scraper.core.exceptions import NavigationError
from gmaps_scraper.core.logging import get_logger
from gmaps_scraper.crawler.emails import extract_emails
from gmaps_scraper.crawler.navigation import goto
from gmaps_scraper.jobs.base import Job, Priority, Response
from gmaps_scraper.models.entry import Entry

logger = get_logger(__name__)


class EmailJob(Job):
    component = ErrorComponent.EMAIL
    process_on_fetch_error = True

    def __init__(
        self,
        entry: Entry,
        parent_id: str = "",
        nav_timeout_ms: float = 180_000,
        timeout: Optional[float] = None,
    ):
        super().__init__(
            entry.website or "",
            parent_id=parent_id,
            priority=Priority.HIGH,
            max_retries=0,
            timeout=timeout,
        )
        self.entry = entry
        self.nav_timeout_ms = nav_timeout_ms

    def fallback_result(self) -> Entry:
        # The place job handed its Entry over, so it is written without emails
        return self.entry

    async def browser_actions(self, page, cancel_event: Optional[asyncio.Event] = None) -> Response:
        resp = Response()

        try:
            resp.url, resp.status_code, resp.headers = await goto(
                page, self.url, wait_until="load", timeout_ms=self.nav_timeout_ms
            )
        except NavigationError as e:
            resp.error = e
            # Keep whatever did load; slow sites often render before "load"
            try:
                body = await page.content()
            except Exception:
                body = ""
            if body:
                resp.body = body
                resp.url = page.url
                resp.status_code = 200
            return resp

        try:
            resp.body = await page.content()
        except Exception as e:
            resp.error = e

        return resp

    async def process(self, response: Response) -> Tuple[Any, List[Job]]:
        logger.info(f"Processing email job url={self.url}")

        if response.error is not None:
            logger.info(f"Website fetch failed for {self.url}: {response.error}")

        if not response.body:
            return self.entry, []

        self.entry.add_emails(extract_emails(response.body))
        return self.entry, []
