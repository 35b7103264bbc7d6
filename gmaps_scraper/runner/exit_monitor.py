"""
Completion tracking for runs whose amount of work grows while they run.

The monitor keeps two counters: ``expected`` (seed jobs plus every child
job registered since) and ``completed`` (jobs finished, successfully or
not). The run is over the moment ``completed`` catches up with
``expected``. A watchdog also ends the run when neither counter has moved
for the configured inactivity timeout.

Children must be registered with ``incr_expected`` before their parent's
``incr_completed``; otherwise the counters could meet while work is still
pending.
"""

import asyncio
import threading
import time
from enum import Enum
from typing import Callable, Optional

from gmaps_scraper.core.exceptions import MonitorInvariantError
from gmaps_scraper.core.logging import get_logger

logger = get_logger(__name__)

STOP_COMPLETED = "completed"
STOP_INACTIVITY = "inactivity"


class MonitorState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class ExitMonitor:
    """
    Decide when a run is finished.

    Args:
        inactivity_timeout: Seconds without counter changes before the run
            is stopped (None or 0 disables the watchdog)
        on_stop: Called exactly once with the stop reason
        clock: Monotonic time source
    """

    def __init__(
        self,
        inactivity_timeout: Optional[float] = None,
        on_stop: Optional[Callable[[str], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._lock = threading.Lock()
        self._expected = 0
        self._completed = 0
        self._state = MonitorState.IDLE
        self._stop_reason: Optional[str] = None
        self._on_stop = on_stop
        self._clock = clock
        self._last_activity = clock()
        self._stopped = threading.Event()
        self.inactivity_timeout = inactivity_timeout or None

    @property
    def expected(self) -> int:
        with self._lock:
            return self._expected

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    @property
    def state(self) -> MonitorState:
        with self._lock:
            return self._state

    @property
    def stop_reason(self) -> Optional[str]:
        return self._stop_reason

    def set_on_stop(self, on_stop: Callable[[str], None]) -> None:
        self._on_stop = on_stop

    def set_seed_count(self, count: int) -> None:
        """Register the seed jobs and start the run (IDLE -> RUNNING)."""
        if count < 0:
            raise ValueError("seed count must be non-negative")

        with self._lock:
            if self._state is MonitorState.STOPPED:
                return
            self._expected += count
            self._state = MonitorState.RUNNING
            self._last_activity = self._clock()
            done = self._completed == self._expected

        logger.info(f"Run started with {count} seed jobs")
        if done:
            self.stop(STOP_COMPLETED)

    def incr_expected(self, count: int = 1) -> None:
        """Register ``count`` newly emitted jobs."""
        if count < 0:
            raise ValueError("count must be non-negative")

        with self._lock:
            self._expected += count
            self._last_activity = self._clock()

    def incr_completed(self, count: int = 1) -> None:
        """
        Record ``count`` finished jobs (success or terminal failure).

        Raises:
            MonitorInvariantError: If completed would exceed expected
        """
        if count < 0:
            raise ValueError("count must be non-negative")

        with self._lock:
            if self._completed + count > self._expected:
                raise MonitorInvariantError(
                    f"completed ({self._completed + count}) would exceed expected ({self._expected})"
                )
            self._completed += count
            self._last_activity = self._clock()
            done = self._state is MonitorState.RUNNING and self._completed == self._expected

        if done:
            self.stop(STOP_COMPLETED)

    def idle_for(self) -> float:
        """Seconds since the last counter change."""
        with self._lock:
            return self._clock() - self._last_activity

    def stop(self, reason: str) -> bool:
        """
        Stop the run. Only the first call has an effect.

        Returns:
            True if this call stopped the monitor
        """
        with self._lock:
            if self._state is MonitorState.STOPPED:
                return False
            self._state = MonitorState.STOPPED
            self._stop_reason = reason
            expected, completed = self._expected, self._completed

        logger.info(f"Run stopped ({reason}): {completed}/{expected} jobs completed")
        self._stopped.set()
        if self._on_stop is not None:
            self._on_stop(reason)
        return True

    def is_stopped(self) -> bool:
        return self._stopped.is_set()

    async def run(self, poll_interval: Optional[float] = None) -> None:
        """
        Inactivity watchdog; returns once the monitor is stopped.

        Args:
            poll_interval: Seconds between checks (default: a quarter of the
                timeout, at most one second)
        """
        if poll_interval is None:
            poll_interval = 1.0
            if self.inactivity_timeout:
                poll_interval = min(poll_interval, self.inactivity_timeout / 4)

        while not self.is_stopped():
            if self.inactivity_timeout and self.idle_for() >= self.inactivity_timeout:
                logger.warning(f"No job activity for {self.inactivity_timeout}s, stopping run")
                self.stop(STOP_INACTIVITY)
                break
            await asyncio.sleep(poll_interval)
