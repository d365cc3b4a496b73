"""Periodic maintenance jobs for the access key engine.

Each registered :class:`CronJob` gets its own asyncio task that runs the
handler every ``period`` seconds (optionally once right at start-up).  A
failing run is logged and recorded in the job's :class:`JobStatus`; the
schedule carries on.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from gallery_access.metrics.collector import EngineMetrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CronJob:
    """A recurring background job."""

    handler: Callable[[], Awaitable[None]]
    period: float  # seconds
    name: str = ""
    run_on_start: bool = False


@dataclass
class JobStatus:
    """Run history of one job since the manager was created."""

    runs: int = 0
    failures: int = 0
    last_finished: float | None = None  # epoch seconds
    last_error: str | None = None

    def record(self, *, ok: bool, error: str | None = None) -> None:
        self.runs += 1
        self.last_finished = time.time()
        if ok:
            self.last_error = None
        else:
            self.failures += 1
            self.last_error = error


class TaskManager:
    """Runs the registered jobs on asyncio tasks.

    Usage::

        tm = TaskManager(metrics=engine_metrics)
        tm.register("purge", CronJob(handler=..., period=3600, run_on_start=True))
        await tm.start()
        ...
        await tm.stop()
    """

    def __init__(self, *, metrics: EngineMetrics | None = None) -> None:
        self._jobs: dict[str, CronJob] = {}
        self._status: dict[str, JobStatus] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._running = False
        self._metrics = metrics

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def jobs(self) -> dict[str, CronJob]:
        """Registered jobs (name → CronJob)."""
        return dict(self._jobs)

    def status(self, name: str) -> JobStatus:
        """Run history of the job registered as *name*.

        Raises:
            KeyError: If no job is registered under *name*.
        """
        return self._status[name]

    @property
    def healthy(self) -> bool:
        """False when any job's most recent run failed."""
        return all(s.last_error is None for s in self._status.values())

    def register(self, name: str, job: CronJob) -> None:
        """Register *job* under *name*; it starts at once if the manager runs."""
        named = CronJob(
            handler=job.handler, period=job.period, name=name, run_on_start=job.run_on_start
        )
        self._jobs[name] = named
        self._status.setdefault(name, JobStatus())
        if self._running:
            self._spawn(named)

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        for job in self._jobs.values():
            self._spawn(job)
        logger.info("TaskManager started with %d jobs", len(self._jobs))

    async def stop(self) -> None:
        """Cancel every job task and wait until they have unwound."""
        if not self._running:
            return
        self._running = False
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info("TaskManager stopped")

    async def run_once(self, name: str) -> bool:
        """Run the job registered as *name* now, outside its schedule.

        Returns:
            Whether the run succeeded.

        Raises:
            KeyError: If no job is registered under *name*.
        """
        return await self._execute(self._jobs[name])

    def _spawn(self, job: CronJob) -> None:
        self._tasks[job.name] = asyncio.create_task(
            self._schedule(job), name=f"cron:{job.name}"
        )

    async def _execute(self, job: CronJob) -> bool:
        try:
            if self._metrics:
                with self._metrics.track_cron(job.name):
                    await job.handler()
            else:
                await job.handler()
        except Exception as exc:
            logger.exception("Cron job %r failed", job.name)
            self._status[job.name].record(ok=False, error=repr(exc))
            return False
        self._status[job.name].record(ok=True)
        return True

    async def _schedule(self, job: CronJob) -> None:
        if job.run_on_start:
            await self._execute(job)
        while self._running:
            await asyncio.sleep(job.period)
            if not self._running:
                break
            await self._execute(job)
