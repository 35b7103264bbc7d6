"""
Place job: extract one business listing from its place page.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from gmaps_scraper.core.error_models import ErrorComponent
from gmaps_scraper.core.exceptions import ExtractionError, NavigationError, PaginationError
from gmaps_scraper.core.logging import get_logger
from gmaps_scraper.crawler.navigation import goto, reject_cookies_if_required, wait_until_settled
from gmaps_scraper.crawler.page_state import extract_page_state
from gmaps_scraper.crawler.paginator import ScrollSettings
from gmaps_scraper.crawler.reviews import fetch_reviews
from gmaps_scraper.jobs.base import Job, Priority, Response
from gmaps_scraper.jobs.email import EmailJob
from gmaps_scraper.models.entry import entry_from_json, review_count_from_json
from gmaps_scraper.utils.url_utils import place_key

logger = get_logger(__name__)


@dataclass
class PlaceOptions:
    """Per-run knobs passed from search jobs to the place jobs they emit."""

    extract_email: bool = False
    extra_reviews: bool = False
    reviews_limit: int = 300
    reviews_threshold: int = 8
    nav_timeout_ms: float = 30_000
    email_timeout_ms: float = 180_000
    scroll_settings: ScrollSettings = field(default_factory=ScrollSettings)


class PlaceJob(Job):
    """
    Scrape a place page into an Entry.

    When email extraction is enabled and the business has a usable website,
    the Entry is handed to exactly one EmailJob and is written by that job
    instead of this one.
    """

    component = ErrorComponent.PLACE

    def __init__(
        self,
        url: str,
        parent_id: str = "",
        lang_code: str = "en",
        options: Optional[PlaceOptions] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(
            url,
            parent_id=parent_id,
            priority=Priority.MEDIUM,
            max_retries=3,
            url_params={"hl": lang_code},
            timeout=timeout,
        )
        self.options = options or PlaceOptions()
        self._use_in_results = True

    def identity(self) -> str:
        return place_key(self.url)

    def use_in_results(self) -> bool:
        return self._use_in_results

    def wants_reviews(self, raw: bytes) -> bool:
        """Decide from the cheap review-count parse whether to paginate reviews."""
        if not self.options.extra_reviews or self.options.reviews_limit == 0:
            return False
        return review_count_from_json(raw) > self.options.reviews_threshold

    async def browser_actions(self, page, cancel_event: Optional[asyncio.Event] = None) -> Response:
        resp = Response()

        try:
            resp.url, resp.status_code, resp.headers = await goto(
                page, self.full_url(), timeout_ms=self.options.nav_timeout_ms
            )
            await reject_cookies_if_required(page)
            await wait_until_settled(page)
        except NavigationError as e:
            resp.error = e
            return resp

        try:
            raw = await extract_page_state(page, cancel_event=cancel_event)
        except ExtractionError as e:
            resp.error = e
            return resp

        resp.meta["json"] = raw

        if self.wants_reviews(raw):
            try:
                resp.meta["reviews"] = await fetch_reviews(
                    page,
                    self.options.reviews_limit,
                    settings=self.options.scroll_settings,
                    cancel_event=cancel_event,
                )
            except PaginationError as e:
                logger.warning(f"Error scrolling reviews for {self.url}: {e}")

        return resp

    async def process(self, response: Response) -> Tuple[Any, List[Job]]:
        raw = response.meta.get("json")
        if not isinstance(raw, (bytes, bytearray, str)):
            raise ExtractionError("response carries no page-state payload")

        entry = entry_from_json(raw)
        entry.id = self.parent_id
        entry.finalize(self.full_url())

        for review in response.meta.get("reviews") or []:
            entry.add_review(**review)

        if self.options.extract_email and entry.is_website_valid_for_email():
            self._use_in_results = False
            email_job = EmailJob(
                entry,
                parent_id=self.parent_id,
                nav_timeout_ms=self.options.email_timeout_ms,
            )
            return entry, [email_job]

        return entry, []
