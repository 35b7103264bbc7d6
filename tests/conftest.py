"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all tests in the test suite. Browser-facing code is exercised against
FakePage, a scripted stand-in for a Playwright page.
"""

import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest


# ============================================================================
# Fake browser objects
# ============================================================================

class FakeResponse:
    def __init__(self, url: str, status: int = 200, headers: Optional[Dict[str, str]] = None):
        self.url = url
        self.status = status
        self.headers = headers or {"content-type": "text/html"}


class FakeLocator:
    def __init__(self, count: int = 0):
        self._count = count
        self.clicks = 0

    @property
    def first(self) -> "FakeLocator":
        return self

    async def count(self) -> int:
        return self._count

    async def click(self, timeout=None) -> None:
        self.clicks += 1


class FakePage:
    """
    Scripted page.

    ``evaluate_results`` are returned by successive ``evaluate`` calls;
    exception instances in the list are raised instead.
    """

    def __init__(
        self,
        evaluate_results: Optional[List[Any]] = None,
        html: str = "",
        final_url: Optional[str] = None,
        missing_selectors: Optional[List[str]] = None,
        goto_error: Optional[BaseException] = None,
        goto_returns_none: bool = False,
        status: int = 200,
    ):
        self.evaluate_results = list(evaluate_results or [])
        self.html = html
        self.final_url = final_url
        self.missing_selectors = set(missing_selectors or [])
        self.goto_error = goto_error
        self.goto_returns_none = goto_returns_none
        self.status = status
        self.url = "about:blank"

        self.evaluate_calls: List[tuple] = []
        self.goto_calls: List[str] = []
        self.waited_for: List[str] = []

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        self.evaluate_calls.append((expression, arg))
        if not self.evaluate_results:
            raise RuntimeError("no scripted evaluate result left")
        result = self.evaluate_results.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result

    async def wait_for_selector(self, selector: str, timeout=None) -> None:
        self.waited_for.append(selector)
        if selector in self.missing_selectors:
            raise TimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    async def goto(self, url: str, wait_until=None, timeout=None):
        self.goto_calls.append(url)
        if self.goto_error is not None:
            raise self.goto_error
        self.url = self.final_url or url
        if self.goto_returns_none:
            return None
        return FakeResponse(self.url, self.status)

    async def wait_for_url(self, url, wait_until=None, timeout=None) -> None:
        return None

    async def content(self) -> str:
        return self.html

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(count=0)


@pytest.fixture
def fake_page_factory():
    """Page factory for the orchestrator that yields FakePage objects."""
    pages: List[FakePage] = []

    @asynccontextmanager
    async def factory():
        page = FakePage()
        pages.append(page)
        yield page

    factory.pages = pages
    return factory


# ============================================================================
# Sample Data Fixtures
# ============================================================================

def build_place_payload(
    title: str = "Cafe Central",
    categories=("Cafe", "Bakery"),
    full_address: str = "Herrengasse 14, 1010 Wien, Austria",
    address: str = "",
    link: str = "https://www.google.com/maps/place/Cafe+Central/data=!4m2!3m1!1s0x476d079b:0x5e2d7b4c",
    data_id: str = "0x476d079b:0x5e2d7b4c",
    lat: Optional[float] = 48.2104,
    lon: Optional[float] = 16.3655,
    rating: Any = 4.5,
    review_count: Any = 120,
    website: Optional[str] = "https://cafecentral.example",
    phone: str = "+43 1 5333763",
) -> str:
    """Serialize a page-state payload with the business array at index 6."""
    darray: List[Any] = [None] * 179
    darray[4] = [None] * 9
    darray[4][7] = rating
    darray[4][8] = review_count
    darray[7] = [website] if website else None
    darray[9] = [None, None, lat, lon]
    darray[10] = data_id
    darray[11] = title
    darray[13] = list(categories) if categories is not None else None
    darray[18] = address
    darray[27] = link
    darray[39] = full_address
    darray[178] = [[phone]]

    jd: List[Any] = [None] * 7
    jd[6] = darray
    return json.dumps(jd)


@pytest.fixture
def place_payload() -> str:
    """Return a complete place payload."""
    return build_place_payload()


@pytest.fixture
def results_html() -> str:
    """Return a results feed with three place links, one of them repeated."""
    return """
    <html><body>
      <div role="feed">
        <div jsaction="mouseover:pane">
          <a href="https://www.google.com/maps/place/Cafe+A/data=!4m2!3m1!1s0xa1:0xb1?authuser=0">Cafe A</a>
        </div>
        <div jsaction="mouseover:pane">
          <a href="https://www.google.com/maps/place/Cafe+B/data=!4m2!3m1!1s0xa2:0xb2">Cafe B</a>
        </div>
        <div jsaction="mouseover:pane">
          <a href="https://www.google.com/maps/place/Cafe+A/data=!4m2!3m1!1s0xa1:0xb1">Cafe A again</a>
        </div>
        <div jsaction="mouseover:pane">
          <a href="/maps/place/Cafe+C/data=!4m2!3m1!1s0xa3:0xb3">Cafe C</a>
        </div>
      </div>
    </body></html>
    """


@pytest.fixture
def website_html() -> str:
    """Return a business website with a mailto link and a plain address."""
    return """
    <html><body>
      <footer>
        <a href="mailto:Info@CafeCentral.example?subject=Hello">Write to us</a>
        <p>Press: press@cafecentral.example</p>
        <img src="logo@2x.png">
      </footer>
    </body></html>
    """


@pytest.fixture
def missing_env(tmp_path: Path) -> Path:
    """Path of a .env file that does not exist."""
    return tmp_path / "missing.env"


# ============================================================================
# Test Markers
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "e2e: mark test as an end-to-end test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
