"""
Search job: turn a free-text query into place jobs.
"""

import asyncio
from typing import Any, List, Optional, Set, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from gmaps_scraper.core.error_models import ErrorComponent
from gmaps_scraper.core.exceptions import NavigationError, PaginationError
from gmaps_scraper.core.logging import get_logger
from gmaps_scraper.crawler.navigation import goto, reject_cookies_if_required, wait_until_settled
from gmaps_scraper.crawler.paginator import scroll_feed
from gmaps_scraper.crawler.scripts import RESULTS_FEED_SELECTOR, RESULT_LINK_SELECTOR
from gmaps_scraper.jobs.base import Job, Priority, Response
from gmaps_scraper.jobs.place import PlaceJob, PlaceOptions
from gmaps_scraper.utils.retry import cancellable_sleep
from gmaps_scraper.utils.url_utils import MAPS_BASE_URL, build_search_url, is_place_url, place_key

logger = get_logger(__name__)

FEED_WAIT_MS = 2_000
NO_FEED_GRACE_SECONDS = 5.0


def result_links(html: str, base_url: str = MAPS_BASE_URL) -> List[str]:
    """
    Place links of the results feed in document order.

    Example:
        >>> html = "<div role='feed'><div jsaction='x'><a href='/maps/place/A'></a></div></div>"
        >>> result_links(html)
        ['https://www.google.com/maps/place/A']
    """
    soup = BeautifulSoup(html or "", "html.parser")
    links = []
    for anchor in soup.select(RESULT_LINK_SELECTOR):
        href = (anchor.get("href") or "").strip()
        if href:
            links.append(urljoin(base_url + "/", href))
    return links


class SearchJob(Job):
    """
    Scroll the results feed of one query and emit a PlaceJob per new link.
    """

    component = ErrorComponent.SEARCH

    def __init__(
        self,
        query: str,
        lang_code: str = "en",
        max_depth: int = 10,
        dedup=None,
        place_options: Optional[PlaceOptions] = None,
        geo_coordinates: str = "",
        zoom: int = 15,
        parent_id: str = "",
        timeout: Optional[float] = None,
    ):
        super().__init__(
            build_search_url(query, geo_coordinates, zoom),
            parent_id=parent_id,
            priority=Priority.LOW,
            max_retries=3,
            url_params={"hl": lang_code},
            timeout=timeout,
        )
        self.query = query
        self.lang_code = lang_code
        self.max_depth = max_depth
        self.dedup = dedup
        self.place_options = place_options or PlaceOptions()

    def use_in_results(self) -> bool:
        return False

    async def browser_actions(self, page, cancel_event: Optional[asyncio.Event] = None) -> Response:
        resp = Response()

        try:
            resp.url, resp.status_code, resp.headers = await goto(
                page, self.full_url(), timeout_ms=self.place_options.nav_timeout_ms
            )
            await reject_cookies_if_required(page)
            await wait_until_settled(page)
        except NavigationError as e:
            resp.error = e
            return resp

        try:
            await page.wait_for_selector(RESULTS_FEED_SELECTOR, timeout=FEED_WAIT_MS)
        except Exception:
            # A query matching a single business redirects to its place page
            await cancellable_sleep(NO_FEED_GRACE_SECONDS, cancel_event)

        try:
            if is_place_url(page.url):
                resp.url = page.url
                resp.body = await page.content()
                return resp

            rounds = await scroll_feed(
                page,
                RESULTS_FEED_SELECTOR,
                self.max_depth,
                settings=self.place_options.scroll_settings,
                cancel_event=cancel_event,
            )
            resp.meta["scroll_rounds"] = rounds
            resp.body = await page.content()
        except PaginationError as e:
            resp.error = e
        except Exception as e:
            resp.error = NavigationError(f"reading results page failed: {e}")

        return resp

    def make_place_job(self, url: str) -> PlaceJob:
        return PlaceJob(
            url,
            parent_id=self.id,
            lang_code=self.lang_code,
            options=self.place_options,
        )

    async def process(self, response: Response) -> Tuple[Any, List[Job]]:
        if is_place_url(response.url):
            links = [response.url]
        else:
            links = result_links(response.body or "")

        seen: Set[str] = set()
        children: List[Job] = []
        for link in links:
            key = place_key(link)
            if key in seen:
                continue
            seen.add(key)
            if self.dedup is not None and not self.dedup.try_claim(key):
                continue
            children.append(self.make_place_job(link))

        logger.info(f"Query {self.query!r}: {len(links)} links, {len(children)} new places")
        return None, children
