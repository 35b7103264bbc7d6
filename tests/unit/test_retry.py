"""
Unit tests for retry utility functions.
"""

import asyncio

import pytest

from gmaps_scraper.core.exceptions import RunCancelledError
from gmaps_scraper.utils.retry import RetryConfig, cancellable_sleep, retry_async_with_backoff


class TestRetryConfig:
    """Tests for RetryConfig dataclass."""

    def test_default_config(self):
        """Test default configuration values."""
        config = RetryConfig()
        assert config.max_retries == 3
        assert config.base_delay == 1.0
        assert config.max_delay == 60.0
        assert config.exponential_base == 2.0

    def test_validation_negative_retries(self):
        """Test that negative retries raises error."""
        with pytest.raises(ValueError, match="max_retries"):
            RetryConfig(max_retries=-1)

    def test_validation_negative_base_delay(self):
        with pytest.raises(ValueError, match="base_delay"):
            RetryConfig(base_delay=-1)

    def test_validation_max_delay_less_than_base(self):
        """Test that max_delay < base_delay raises error."""
        with pytest.raises(ValueError, match="max_delay"):
            RetryConfig(base_delay=10.0, max_delay=5.0)

    def test_delay_for_exponential_and_capped(self):
        config = RetryConfig(base_delay=1.0, max_delay=5.0)
        assert [config.delay_for(i) for i in range(4)] == [1.0, 2.0, 4.0, 5.0]

    def test_fixed_delay(self):
        config = RetryConfig(base_delay=1.0, max_delay=1.0, exponential_base=1.0)
        assert [config.delay_for(i) for i in range(3)] == [1.0, 1.0, 1.0]


class TestRetryAsyncWithBackoff:
    """Tests for retry_async_with_backoff function."""

    def test_succeeds_on_first_try(self):
        calls = [0]

        async def success():
            calls[0] += 1
            return "success"

        assert asyncio.run(retry_async_with_backoff(success)) == "success"
        assert calls[0] == 1

    def test_succeeds_after_retries(self):
        """Test function that succeeds after some failures."""
        calls = [0]

        async def eventual_success():
            calls[0] += 1
            if calls[0] < 3:
                raise ConnectionError("Transient error")
            return "success"

        config = RetryConfig(max_retries=5, base_delay=0.001)
        assert asyncio.run(retry_async_with_backoff(eventual_success, config=config)) == "success"
        assert calls[0] == 3

    def test_exhausts_retries(self):
        """Test that the last exception is raised after all retries."""
        calls = [0]

        async def always_fails():
            calls[0] += 1
            raise ValueError("Persistent error")

        config = RetryConfig(max_retries=2, base_delay=0.001)
        with pytest.raises(ValueError, match="Persistent error"):
            asyncio.run(retry_async_with_backoff(always_fails, config=config))
        assert calls[0] == 3

    def test_only_retries_listed_exceptions(self):
        calls = [0]

        async def wrong_kind():
            calls[0] += 1
            raise KeyError("not retried")

        config = RetryConfig(max_retries=3, base_delay=0.001)
        with pytest.raises(KeyError):
            asyncio.run(retry_async_with_backoff(wrong_kind, config=config, retry_on=(ValueError,)))
        assert calls[0] == 1

    def test_on_retry_callback(self):
        seen = []

        async def flaky():
            if len(seen) < 2:
                raise ValueError(f"fail {len(seen)}")
            return "ok"

        config = RetryConfig(max_retries=3, base_delay=0.001)
        asyncio.run(retry_async_with_backoff(flaky, config=config, on_retry=lambda n, e: seen.append(n)))
        assert seen == [1, 2]

    def test_cancellation_interrupts_backoff(self):
        """Test a set cancel event ends the retry loop."""
        async def scenario():
            event = asyncio.Event()
            calls = [0]

            async def fails_then_cancels():
                calls[0] += 1
                event.set()
                raise ValueError("fail")

            config = RetryConfig(max_retries=5, base_delay=10, max_delay=10)
            with pytest.raises(RunCancelledError):
                await retry_async_with_backoff(fails_then_cancels, config=config, cancel_event=event)
            return calls[0]

        assert asyncio.run(scenario()) == 1


class TestCancellableSleep:
    def test_sleeps_without_event(self):
        asyncio.run(cancellable_sleep(0.001))

    def test_wakes_on_cancel(self):
        async def scenario():
            event = asyncio.Event()
            asyncio.get_running_loop().call_later(0.01, event.set)
            with pytest.raises(RunCancelledError):
                await cancellable_sleep(10, event)

        asyncio.run(asyncio.wait_for(scenario(), timeout=2))

    def test_times_out_normally(self):
        async def scenario():
            await cancellable_sleep(0.001, asyncio.Event())

        asyncio.run(scenario())
