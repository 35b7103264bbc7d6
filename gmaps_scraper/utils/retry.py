"""
Retry utility with bounded backoff for gmaps-scraper.

This module provides retry logic for transient page failures. Every sleep
between attempts observes the run's cancellation event.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from gmaps_scraper.core.exceptions import RunCancelledError
from gmaps_scraper.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    ``exponential_base=1.0`` gives a fixed delay between attempts.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0

    def __post_init__(self):
        """Validate configuration."""
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.exponential_base < 1:
            raise ValueError("exponential_base must be >= 1")

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number ``attempt + 1`` (attempt is 0-based)."""
        return min(self.base_delay * (self.exponential_base ** attempt), self.max_delay)


async def cancellable_sleep(delay: float, cancel_event: Optional[asyncio.Event] = None) -> None:
    """
    Sleep for ``delay`` seconds, waking early if the run is cancelled.

    Raises:
        RunCancelledError: If ``cancel_event`` is set before or during the sleep
    """
    if cancel_event is None:
        await asyncio.sleep(delay)
        return

    if cancel_event.is_set():
        raise RunCancelledError("run cancelled")

    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return

    raise RunCancelledError("run cancelled")


async def retry_async_with_backoff(
    func: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    retry_on: tuple = (Exception,),
    on_retry: Optional[Callable[[int, Exception], None]] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> T:
    """
    Await ``func`` until it succeeds or retries are exhausted.

    Args:
        func: Zero-argument coroutine function to retry
        config: Retry configuration (default: 3 retries, 1s base delay)
        retry_on: Tuple of exception types to retry on
        on_retry: Optional callback called on each retry (attempt, exception)
        cancel_event: Run cancellation event observed while sleeping

    Returns:
        Result from the successful call

    Raises:
        Last exception if all retries are exhausted, or RunCancelledError

    Example:
        >>> async def flaky():
        ...     return "ok"
        >>> # await retry_async_with_backoff(flaky, RetryConfig(base_delay=0.1))
    """
    if config is None:
        config = RetryConfig()

    for attempt in range(config.max_retries + 1):
        try:
            return await func()
        except retry_on as e:
            if attempt == config.max_retries:
                logger.debug(f"All {config.max_retries} retries exhausted: {e}")
                raise

            delay = config.delay_for(attempt)

            logger.debug(
                f"Retry {attempt + 1}/{config.max_retries} "
                f"after {delay:.2f}s: {e}"
            )

            if on_retry:
                on_retry(attempt + 1, e)

            await cancellable_sleep(delay, cancel_event)

    raise RuntimeError("Retry logic error")
