"""
Per-run state: dedup set, completion monitor, cancellation signal.

A RunContext is created at run start and dropped at run end. Nothing here
is module-global, so consecutive runs in one process share no state.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from gmaps_scraper.core.logging import get_logger
from gmaps_scraper.runner.dedup import Deduplicator
from gmaps_scraper.runner.exit_monitor import ExitMonitor

logger = get_logger(__name__)


@dataclass
class RunContext:
    dedup: Deduplicator
    monitor: ExitMonitor
    cancel_event: asyncio.Event

    @classmethod
    def create(cls, inactivity_timeout: Optional[float] = None) -> "RunContext":
        """Build a fresh context whose monitor cancels the run when it stops."""
        ctx = cls(
            dedup=Deduplicator(),
            monitor=ExitMonitor(inactivity_timeout=inactivity_timeout),
            cancel_event=asyncio.Event(),
        )
        ctx.monitor.set_on_stop(ctx.cancel)
        return ctx

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        if not self.cancel_event.is_set():
            logger.info(f"Cancelling run: {reason}")
            self.cancel_event.set()
