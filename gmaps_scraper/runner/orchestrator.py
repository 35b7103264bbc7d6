"""
Job scheduling for a scrape run.

Workers pull jobs from a priority queue (HIGH first, FIFO within a
priority), run the job's browser actions on their own page, then hand the
response to the job's ``process``. Results go to the writers; child jobs
are registered with the completion monitor before the parent is marked
complete, then queued.

A job that fails, is cut off at shutdown or is still queued when the run
stops has its ``fallback_result()`` written instead, so an email job never
takes its listing down with it.
"""

import asyncio
import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Tuple

from gmaps_scraper.core.error_models import ErrorComponent, ErrorRecord, ErrorStage
from gmaps_scraper.core.exceptions import RunCancelledError
from gmaps_scraper.core.logging import get_logger
from gmaps_scraper.jobs.base import Job
from gmaps_scraper.runner.run_context import RunContext
from gmaps_scraper.runner.writers import ResultWriter

logger = get_logger(__name__)

DEFAULT_JOB_TIMEOUT = 300.0
DEFAULT_SHUTDOWN_GRACE = 10.0


@dataclass
class RunStats:
    completed: int = 0
    failed: int = 0
    results: int = 0
    failures: List[ErrorRecord] = field(default_factory=list)


class _StageError(Exception):
    """Carries the stage an attempt failed in."""

    def __init__(self, stage: str, error: BaseException):
        super().__init__(str(error))
        self.stage = stage
        self.error = error


class Orchestrator:
    """
    Run jobs until the run's completion monitor stops it.

    Args:
        run: Per-run state (dedup, monitor, cancel event)
        writers: Sinks for results of jobs whose ``use_in_results()`` is True
        page_factory: Zero-arg callable returning an async context manager
            that yields a page; each worker enters it once
        concurrency: Number of workers
        default_timeout: Per-attempt timeout for jobs without their own
        shutdown_grace: Seconds busy workers get to finish once the run stops

    Example:
        >>> run = RunContext.create(inactivity_timeout=60)
        >>> async with BrowserPages() as pages:
        ...     stats = await Orchestrator(run, [writer], pages.page, concurrency=2).start(seeds)
    """

    def __init__(
        self,
        run: RunContext,
        writers: Sequence[ResultWriter],
        page_factory: Callable[[], Any],
        concurrency: int = 1,
        default_timeout: float = DEFAULT_JOB_TIMEOUT,
        shutdown_grace: float = DEFAULT_SHUTDOWN_GRACE,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")

        self.run = run
        self.writers = list(writers)
        self.page_factory = page_factory
        self.concurrency = concurrency
        self.default_timeout = default_timeout
        self.shutdown_grace = shutdown_grace
        self.stats = RunStats()
        self._queue: Optional[asyncio.PriorityQueue] = None
        self._seq = itertools.count()

    def _enqueue(self, job: Job) -> None:
        self._queue.put_nowait((-int(job.priority), next(self._seq), job))

    async def start(self, seed_jobs: Sequence[Job]) -> RunStats:
        """
        Schedule the seed jobs and block until the run stops.

        Returns:
            RunStats for the finished run
        """
        self._queue = asyncio.PriorityQueue()
        for job in seed_jobs:
            self._enqueue(job)

        self.run.monitor.set_seed_count(len(seed_jobs))

        watchdog = asyncio.create_task(self.run.monitor.run())
        workers = [asyncio.create_task(self._worker(i)) for i in range(self.concurrency)]

        try:
            await self.run.cancel_event.wait()
            # In-flight jobs get a grace period, then their workers are cancelled
            _, pending = await asyncio.wait(workers, timeout=self.shutdown_grace)
            if pending:
                logger.warning(f"Cancelling {len(pending)} workers still busy after {self.shutdown_grace}s")
        finally:
            for task in workers:
                task.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            watchdog.cancel()
            await asyncio.gather(watchdog, return_exceptions=True)
            self._flush_queued()

        logger.info(
            f"Run finished: {self.stats.completed} completed, {self.stats.failed} failed, "
            f"{self.stats.results} results written"
        )
        return self.stats

    async def _next_job(self) -> Optional[Job]:
        """Next queued job, or None once the run is cancelled."""
        get_task = asyncio.ensure_future(self._queue.get())
        cancel_task = asyncio.ensure_future(self.run.cancel_event.wait())
        try:
            await asyncio.wait({get_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            self._release(get_task)
            raise
        finally:
            cancel_task.cancel()

        if self.run.cancelled:
            self._release(get_task)
            return None

        _, _, job = get_task.result()
        return job

    def _release(self, get_task: asyncio.Future) -> None:
        """Put a job taken by an abandoned ``get`` back on the queue."""
        if get_task.done() and not get_task.cancelled():
            self._queue.put_nowait(get_task.result())
            self._queue.task_done()
        else:
            get_task.cancel()

    def _flush_queued(self) -> None:
        """Write fallback results of jobs the stopped run never started."""
        while not self._queue.empty():
            _, _, job = self._queue.get_nowait()
            self._queue.task_done()
            self._write_fallback(job)

    async def _worker(self, idx: int) -> None:
        if self.run.cancelled:
            return

        try:
            async with self.page_factory() as page:
                while not self.run.cancelled:
                    job = await self._next_job()
                    if job is None:
                        break
                    try:
                        await self._execute(job, page)
                    finally:
                        self._queue.task_done()
        except Exception as e:
            # Stop the run rather than leave queued jobs unowned
            logger.error(f"Worker {idx} crashed: {e!r}")
            self.run.cancel(f"worker {idx} crashed")
            raise

        logger.debug(f"Worker {idx} stopped")

    async def _attempt(self, job: Job, page) -> Tuple[Any, List[Job]]:
        resp = await job.browser_actions(page, self.run.cancel_event)
        if resp.error is not None and not job.process_on_fetch_error:
            if isinstance(resp.error, RunCancelledError):
                raise resp.error
            raise _StageError(ErrorStage.BROWSER_ACTIONS, resp.error)

        try:
            return await job.process(resp)
        except RunCancelledError:
            raise
        except Exception as e:
            raise _StageError(ErrorStage.PROCESS, e) from e

    async def _execute(self, job: Job, page) -> None:
        timeout = job.timeout or self.default_timeout
        last_error: Optional[BaseException] = None
        stage = ErrorStage.BROWSER_ACTIONS
        attempts = 0

        for attempt in range(job.max_retries + 1):
            if self.run.cancelled:
                last_error = last_error or RunCancelledError("run cancelled before job started")
                break

            attempts += 1
            try:
                result, children = await asyncio.wait_for(self._attempt(job, page), timeout=timeout)
            except asyncio.CancelledError:
                # Worker cancelled at shutdown with this job in flight
                self._write_fallback(job)
                raise
            except RunCancelledError as e:
                last_error = e
                break
            except asyncio.TimeoutError:
                last_error = TimeoutError(f"attempt timed out after {timeout}s")
                stage = ErrorStage.BROWSER_ACTIONS
            except _StageError as e:
                last_error, stage = e.error, e.stage
            except Exception as e:
                last_error, stage = e, ErrorStage.BROWSER_ACTIONS
            else:
                self._on_success(job, result, children)
                return

            if attempt < job.max_retries:
                logger.warning(
                    f"{job!r} attempt {attempts}/{job.max_retries + 1} failed: {last_error}"
                )

        self._on_failure(job, last_error, stage, attempts)

    def _on_success(self, job: Job, result: Any, children: List[Job]) -> None:
        # Children are counted before the parent completes
        if children:
            self.run.monitor.incr_expected(len(children))
            for child in children:
                self._enqueue(child)

        if result is not None and job.use_in_results():
            self._write(job, result)

        self.stats.completed += 1
        self.run.monitor.incr_completed(1)

    def _write(self, job: Job, result: Any) -> None:
        for writer in self.writers:
            try:
                writer.write(result)
            except Exception as e:
                record = ErrorRecord.from_exception(
                    e,
                    component=ErrorComponent.RUNNER,
                    stage=ErrorStage.WRITE_RESULT,
                    job_id=job.id,
                    url=job.url,
                )
                logger.error(f"Writing result of {job!r} failed: {record.message}")
                self.stats.failures.append(record)
                return
        self.stats.results += 1

    def _on_failure(self, job: Job, error: Optional[BaseException], stage: str, attempts: int) -> None:
        error = error or RuntimeError("job failed without an error")
        record = ErrorRecord.from_exception(
            error,
            component=job.component,
            stage=stage,
            job_id=job.id,
            parent_id=job.parent_id or None,
            url=job.url,
            attempts=attempts,
        )
        logger.error(
            f"{job!r} failed after {attempts} attempt(s) [{record.error_type}] at {record.stage}: {record.message}"
        )
        self.stats.failed += 1
        self.stats.failures.append(record)
        self._write_fallback(job)
        self.run.monitor.incr_completed(1)

    def _write_fallback(self, job: Job) -> None:
        result = job.fallback_result()
        if result is not None:
            logger.info(f"Writing fallback result of unfinished {job!r}")
            self._write(job, result)
