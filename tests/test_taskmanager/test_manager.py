"""Tests for the asyncio cron task manager."""

from __future__ import annotations

import asyncio

import pytest

from gallery_access.metrics.collector import EngineMetrics
from gallery_access.taskmanager.manager import CronJob, TaskManager


class _Counter:
    def __init__(self) -> None:
        self.calls = 0

    async def __call__(self) -> None:
        self.calls += 1


class TestTaskManager:
    def test_register(self) -> None:
        tm = TaskManager()
        tm.register("job", CronJob(handler=_Counter(), period=60))
        assert tm.jobs["job"].name == "job"
        assert not tm.is_running

    async def test_start_stop(self) -> None:
        tm = TaskManager()
        counter = _Counter()
        tm.register("fast", CronJob(handler=counter, period=0.01))
        await tm.start()
        assert tm.is_running
        await asyncio.sleep(0.1)
        await tm.stop()
        assert not tm.is_running
        assert counter.calls >= 1

    async def test_stop_when_not_running(self) -> None:
        await TaskManager().stop()

    async def test_run_once(self) -> None:
        tm = TaskManager()
        counter = _Counter()
        tm.register("job", CronJob(handler=counter, period=3600))
        assert await tm.run_once("job") is True
        assert counter.calls == 1
        assert tm.status("job").runs == 1
        assert tm.status("job").last_finished is not None

    async def test_run_on_start(self) -> None:
        tm = TaskManager()
        eager, lazy = _Counter(), _Counter()
        tm.register("eager", CronJob(handler=eager, period=3600, run_on_start=True))
        tm.register("lazy", CronJob(handler=lazy, period=3600))
        await tm.start()
        await asyncio.sleep(0.05)
        await tm.stop()
        assert eager.calls == 1
        assert lazy.calls == 0

    async def test_failure_recorded(self) -> None:
        async def _broken() -> None:
            raise RuntimeError("disk full")

        tm = TaskManager()
        tm.register("broken", CronJob(handler=_broken, period=3600))
        tm.register("fine", CronJob(handler=_Counter(), period=3600))
        assert tm.healthy
        assert await tm.run_once("broken") is False
        status = tm.status("broken")
        assert (status.runs, status.failures) == (1, 1)
        assert "disk full" in (status.last_error or "")
        assert not tm.healthy

    async def test_recovery_clears_error(self) -> None:
        fail = True

        async def _flaky() -> None:
            if fail:
                raise RuntimeError("boom")

        tm = TaskManager()
        tm.register("flaky", CronJob(handler=_flaky, period=3600))
        await tm.run_once("flaky")
        fail = False
        await tm.run_once("flaky")
        assert tm.status("flaky").last_error is None
        assert tm.status("flaky").failures == 1
        assert tm.healthy

    async def test_run_once_unknown(self) -> None:
        with pytest.raises(KeyError):
            await TaskManager().run_once("missing")

    async def test_failing_job_keeps_running(self) -> None:
        calls = 0

        async def _flaky() -> None:
            nonlocal calls
            calls += 1
            raise RuntimeError("boom")

        tm = TaskManager()
        tm.register("flaky", CronJob(handler=_flaky, period=0.01))
        await tm.start()
        await asyncio.sleep(0.1)
        await tm.stop()
        assert calls >= 2

    async def test_tracks_cron_metrics(self) -> None:
        metrics = EngineMetrics()
        tm = TaskManager(metrics=metrics)
        tm.register("job", CronJob(handler=_Counter(), period=3600))
        await tm.run_once("job")
        value = metrics.registry.get_sample_value(
            "gallery_cron_histogram_count", {"job_name": "job"}
        )
        assert value == 1
