"""
Job model shared by all job kinds.

A job is one unit of schedulable work. The orchestrator calls
``browser_actions`` with a page to produce a Response, then ``process`` to
turn it into a result plus any child jobs. ``process`` raises to signal
failure; the orchestrator's retry policy decides what happens next.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional, Tuple

from gmaps_scraper.core.error_models import ErrorComponent
from gmaps_scraper.utils.url_utils import canonical_url, with_params


class Priority(IntEnum):
    """Scheduling priority; higher values are pulled first."""
    LOW = 0
    MEDIUM = 1
    HIGH = 2


@dataclass
class Response:
    """
    Outcome of a job's browser actions.

    ``meta`` is a side channel for pre-extracted data; the place payload is
    stored under ``"json"`` and fetched reviews under ``"reviews"``.
    """
    url: str = ""
    status_code: int = 0
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)
    error: Optional[BaseException] = None


class Job:
    """Base class for Search, Place and Email jobs."""

    component = ErrorComponent.UNKNOWN

    # When True, process() runs even if browser_actions reported an error
    process_on_fetch_error = False

    def __init__(
        self,
        url: str,
        parent_id: str = "",
        priority: Priority = Priority.MEDIUM,
        max_retries: int = 0,
        url_params: Optional[Dict[str, str]] = None,
        method: str = "GET",
        timeout: Optional[float] = None,
    ):
        self.id = str(uuid.uuid4())
        self.parent_id = parent_id
        self.url = url
        self.method = method
        self.priority = Priority(priority)
        self.max_retries = max_retries
        self.url_params = dict(url_params or {})
        self.timeout = timeout

    def full_url(self) -> str:
        """Target URL with ``url_params`` applied."""
        return with_params(self.url, self.url_params)

    def identity(self) -> str:
        """Dedup identity of the job's target (not its generated id)."""
        return canonical_url(self.url)

    def use_in_results(self) -> bool:
        return True

    def fallback_result(self) -> Any:
        """Result to write when the job fails or never runs; None writes nothing."""
        return None

    async def browser_actions(self, page, cancel_event: Optional[asyncio.Event] = None) -> Response:
        raise NotImplementedError

    async def process(self, response: Response) -> Tuple[Any, List["Job"]]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id[:8]}, url={self.url!r})"
