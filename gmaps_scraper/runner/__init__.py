"""
Run orchestration: dedup, completion tracking, scheduling and output.
"""

from gmaps_scraper.runner.dedup import Deduplicator
from gmaps_scraper.runner.exit_monitor import ExitMonitor, MonitorState
from gmaps_scraper.runner.run_context import RunContext
from gmaps_scraper.runner.orchestrator import Orchestrator, RunStats
from gmaps_scraper.runner.writers import CsvWriter, JsonLinesWriter, build_writer

__all__ = [
    "Deduplicator",
    "ExitMonitor",
    "MonitorState",
    "RunContext",
    "Orchestrator",
    "RunStats",
    "CsvWriter",
    "JsonLinesWriter",
    "build_writer",
]
