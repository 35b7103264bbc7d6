"""
Unit tests for the orchestrator, driven by scripted jobs.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import List

from gmaps_scraper.core.error_models import ErrorType
from gmaps_scraper.jobs.base import Job, Priority, Response
from gmaps_scraper.jobs.email import EmailJob
from gmaps_scraper.models.entry import Entry
from gmaps_scraper.runner.orchestrator import Orchestrator
from gmaps_scraper.runner.run_context import RunContext


class ListWriter:
    def __init__(self):
        self.records = []
        self.closed = False

    def write(self, record):
        self.records.append(record)

    def close(self):
        self.closed = True


class ScriptedJob(Job):
    """Job whose outcome is fixed up front."""

    def __init__(
        self,
        name: str,
        children=(),
        result=None,
        fail_times: int = 0,
        priority: Priority = Priority.MEDIUM,
        max_retries: int = 0,
        delay: float = 0,
        fetch_error: Exception = None,
        in_results: bool = True,
        log: List[str] = None,
    ):
        super().__init__(f"https://example.com/{name}", priority=priority, max_retries=max_retries)
        self.name = name
        self.children = list(children)
        self.result = result
        self.fail_times = fail_times
        self.delay = delay
        self.fetch_error = fetch_error
        self.in_results = in_results
        self.log = log if log is not None else []
        self.attempts = 0

    def use_in_results(self) -> bool:
        return self.in_results

    async def browser_actions(self, page, cancel_event=None) -> Response:
        self.attempts += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.attempts <= self.fail_times:
            return Response(url=self.url, error=RuntimeError(f"{self.name} attempt {self.attempts} failed"))
        return Response(url=self.url, body=self.name, error=self.fetch_error)

    async def process(self, response: Response):
        self.log.append(self.name)
        return self.result, list(self.children)


@asynccontextmanager
async def fake_pages():
    yield object()


class SlowPage:
    """Page whose navigation hangs far past any job timeout."""

    url = "about:blank"

    async def goto(self, url, wait_until=None, timeout=None):
        await asyncio.sleep(5)

    async def content(self) -> str:
        return ""


@asynccontextmanager
async def slow_pages():
    yield SlowPage()


def run_jobs(seeds, concurrency=1, inactivity=None, pages=fake_pages, **kwargs):
    """Run ``seeds`` to completion and return (stats, run, writer)."""
    writer = ListWriter()

    async def scenario():
        run = RunContext.create(inactivity_timeout=inactivity)
        orchestrator = Orchestrator(run, [writer], pages, concurrency=concurrency, **kwargs)
        stats = await asyncio.wait_for(orchestrator.start(seeds), timeout=10)
        return stats, run

    stats, run = asyncio.run(scenario())
    return stats, run, writer


class TestOrchestrator:
    """Tests for Orchestrator.start."""

    def test_fan_out_runs_to_completion(self):
        """Test children are run and the run stops once all are done."""
        children = [ScriptedJob(f"child-{i}", result={"n": i}) for i in range(3)]
        parent = ScriptedJob("parent", children=children, in_results=False)

        stats, run, writer = run_jobs([parent], concurrency=2)

        assert stats.completed == 4
        assert stats.failed == 0
        assert sorted(r["n"] for r in writer.records) == [0, 1, 2]
        assert stats.results == 3
        assert run.monitor.expected == run.monitor.completed == 4
        assert run.monitor.stop_reason == "completed"

    def test_zero_seeds(self):
        stats, run, writer = run_jobs([])
        assert stats.completed == 0
        assert run.cancelled
        assert writer.records == []

    def test_higher_priority_first(self):
        log = []
        seeds = [
            ScriptedJob("low", priority=Priority.LOW, log=log),
            ScriptedJob("high", priority=Priority.HIGH, log=log),
            ScriptedJob("medium", priority=Priority.MEDIUM, log=log),
            ScriptedJob("high-2", priority=Priority.HIGH, log=log),
        ]
        run_jobs(seeds, concurrency=1)
        assert log == ["high", "high-2", "medium", "low"]

    def test_transient_failures_are_retried(self):
        job = ScriptedJob("flaky", result={"ok": True}, fail_times=2, max_retries=3)
        stats, _, writer = run_jobs([job])

        assert job.attempts == 3
        assert stats.completed == 1
        assert writer.records == [{"ok": True}]

    def test_terminal_failure_is_recorded(self):
        """Test a job out of retries is counted as done and recorded."""
        job = ScriptedJob("broken", fail_times=10, max_retries=2)
        ok = ScriptedJob("ok", result={"ok": True})

        stats, run, writer = run_jobs([job, ok])

        assert job.attempts == 3
        assert stats.failed == 1
        assert stats.completed == 1
        assert run.monitor.completed == 2

        record = stats.failures[0]
        assert record.job_id == job.id
        assert record.attempts == 3
        assert record.stage == "browser_actions"
        assert "attempt 3 failed" in record.message

    def test_attempt_timeout(self):
        job = ScriptedJob("slow", delay=5)
        job.timeout = 0.05

        stats, _, _ = run_jobs([job])

        assert stats.failed == 1
        assert stats.failures[0].error_type == ErrorType.TIMEOUT.value

    def test_process_on_fetch_error(self):
        """Test jobs that opt in are processed despite a fetch error."""
        job = ScriptedJob("lenient", result={"partial": True}, fetch_error=RuntimeError("slow site"))
        job.process_on_fetch_error = True

        stats, _, writer = run_jobs([job])

        assert stats.failed == 0
        assert writer.records == [{"partial": True}]

    def test_results_hidden_when_not_used(self):
        job = ScriptedJob("hidden", result={"x": 1}, in_results=False)
        stats, _, writer = run_jobs([job])
        assert stats.completed == 1
        assert writer.records == []

    def test_inactivity_stops_stuck_run(self):
        """Test a hung job cannot keep the run alive past the watchdog."""
        job = ScriptedJob("stuck", delay=30)
        job.timeout = 60

        stats, run, _ = run_jobs([job], inactivity=0.1, shutdown_grace=0.05)

        assert run.monitor.stop_reason == "inactivity"
        assert stats.completed == 0

    def test_timed_out_email_job_still_writes_listing(self):
        """Test the listing handed to an email job survives the job timing out."""
        entry = Entry(id="search-1", title="Bakery", website="https://bakery.example")
        email_job = EmailJob(entry, timeout=0.2)
        place = ScriptedJob("place", children=[email_job], in_results=False)

        stats, run, writer = run_jobs([place], pages=slow_pages)

        assert writer.records == [entry]
        assert stats.results == 1
        assert stats.failed == 1
        assert stats.failures[0].error_type == ErrorType.TIMEOUT.value
        assert run.monitor.stop_reason == "completed"

    def test_email_job_cut_off_at_shutdown_writes_listing(self):
        entry = Entry(id="search-1", title="Bakery", website="https://bakery.example")
        email_job = EmailJob(entry, timeout=60)

        stats, run, writer = run_jobs([email_job], pages=slow_pages, inactivity=0.1, shutdown_grace=0.05)

        assert run.monitor.stop_reason == "inactivity"
        assert writer.records == [entry]
        assert stats.results == 1

    def test_queued_email_job_writes_listing_when_run_stops(self):
        """Test email jobs that never ran still emit their listing."""
        stuck = ScriptedJob("stuck", delay=30, priority=Priority.HIGH)
        stuck.timeout = 60
        entry = Entry(id="search-1", title="Bakery", website="https://bakery.example")

        stats, run, writer = run_jobs(
            [stuck, EmailJob(entry)], concurrency=1, inactivity=0.1, shutdown_grace=0.05,
        )

        assert run.monitor.stop_reason == "inactivity"
        assert writer.records == [entry]

    def test_crashing_page_factory_ends_run(self):
        @asynccontextmanager
        async def broken_pages():
            raise RuntimeError("browser failed to start")
            yield

        async def scenario():
            run = RunContext.create()
            orchestrator = Orchestrator(run, [], broken_pages, concurrency=2)
            await asyncio.wait_for(orchestrator.start([ScriptedJob("never")]), timeout=5)
            return run

        run = asyncio.run(scenario())
        assert run.cancelled
