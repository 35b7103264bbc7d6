"""
Page-state extraction for place pages.

The place payload is injected by the map application into a global state
container. The value handed back by ``page.evaluate`` has no fixed type:
depending on how the binding marshals it we may see a string, bytes, a list,
a dict, or None. It is decoded case by case, stripped of the
anti-hijacking prefix, and validated as JSON before it is returned.
"""

import asyncio
import json
from typing import Any, Optional

from gmaps_scraper.core.exceptions import ExtractionError, RunCancelledError
from gmaps_scraper.core.logging import get_logger
from gmaps_scraper.crawler.scripts import PAGE_STATE_JS
from gmaps_scraper.utils.retry import RetryConfig, retry_async_with_backoff

logger = get_logger(__name__)

JSON_HIJACK_PREFIX = ")]}'"

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 1.0


class _AttemptFailed(Exception):
    """One extraction attempt failed; retried by extract_page_state."""


def normalize_eval_result(value: Any) -> Optional[str]:
    """
    Decode the polymorphic return value of the page-state script.

    Args:
        value: Whatever ``page.evaluate`` returned

    Returns:
        JSON text, or None when the page had no state yet

    Example:
        >>> normalize_eval_result('{"a":1}')
        '{"a":1}'
        >>> normalize_eval_result({"a": 1})
        '{"a":1}'
        >>> normalize_eval_result(None) is None
        True
    """
    if isinstance(value, str):
        return value

    if value is None:
        return None

    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")

    if isinstance(value, (list, dict)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)

    text = str(value)
    logger.debug(f"Converted {type(value).__name__} page-state value to string")
    return text


def clean_payload(text: str) -> str:
    """
    Strip the anti-JSON-hijacking prefix and surrounding whitespace.

    Example:
        >>> clean_payload(")]}'\\n[1,2]")
        '[1,2]'
    """
    text = text.strip()
    if text.startswith(JSON_HIJACK_PREFIX):
        text = text[len(JSON_HIJACK_PREFIX):]
    return text.strip()


def is_valid_json(text: str) -> bool:
    if not text:
        return False
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


async def extract_page_state(
    page,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    retry_delay: float = DEFAULT_RETRY_DELAY,
    cancel_event: Optional[asyncio.Event] = None,
) -> bytes:
    """
    Extract the raw place payload from a loaded page.

    Each attempt evaluates PAGE_STATE_JS, decodes the result, strips the
    prefix, and validates the JSON. Evaluation errors, a None result, and
    invalid JSON are all retried after a fixed delay.

    Args:
        page: Playwright page (anything with an async ``evaluate``)
        max_attempts: Total attempts before giving up
        retry_delay: Fixed delay in seconds between attempts
        cancel_event: Run cancellation event observed between attempts

    Returns:
        UTF-8 encoded JSON payload

    Raises:
        ExtractionError: After all attempts failed
        RunCancelledError: If the run was cancelled while waiting

    Example:
        >>> raw = await extract_page_state(page)
        >>> entry = entry_from_json(raw)
    """
    attempts = 0

    async def attempt() -> bytes:
        nonlocal attempts
        attempts += 1

        if cancel_event is not None and cancel_event.is_set():
            raise RunCancelledError("run cancelled before page-state extraction")

        try:
            value = await page.evaluate(PAGE_STATE_JS)
        except Exception as e:
            raise _AttemptFailed(f"script evaluation failed: {e}") from e

        text = normalize_eval_result(value)
        if text is None:
            raise _AttemptFailed("script returned null")

        text = clean_payload(text)
        if not is_valid_json(text):
            raise _AttemptFailed("extracted data is not valid JSON")

        return text.encode("utf-8")

    def on_retry(n: int, e: Exception) -> None:
        logger.warning(f"Page-state extraction attempt {n}/{max_attempts} failed: {e}")

    config = RetryConfig(
        max_retries=max(max_attempts - 1, 0),
        base_delay=retry_delay,
        max_delay=retry_delay,
        exponential_base=1.0,
    )

    try:
        return await retry_async_with_backoff(
            attempt,
            config=config,
            retry_on=(_AttemptFailed,),
            on_retry=on_retry,
            cancel_event=cancel_event,
        )
    except _AttemptFailed as e:
        raise ExtractionError(
            f"failed to extract page state after {attempts} attempts: {e}",
            attempts=attempts,
            cause=e,
        ) from e
