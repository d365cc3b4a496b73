"""Tests for the background task handlers."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

import pytest

from gallery_access.metrics.collector import EngineMetrics
from gallery_access.taskmanager.tasks import (
    CALCULATE_METRICS,
    PURGE_STALE_ACCESS_KEYS,
    task_calculate_metrics,
    task_purge_stale_access_keys,
)

if TYPE_CHECKING:
    from gallery_access.engine.client import GalleryEngine
    from tests.conftest import FrozenClock, SeededGallery


class TestPurgeTask:
    async def test_purges_keys_past_retention(
        self, engine: GalleryEngine, gallery: SeededGallery, clock: FrozenClock
    ) -> None:
        service = engine.access_key_service
        await service.issue(gallery.image.id, gallery.bob.id)
        await task_purge_stale_access_keys(engine)
        assert await service.count() == 1

        clock.advance(timedelta(days=7, minutes=1).total_seconds())
        await task_purge_stale_access_keys(engine)
        assert await service.count() == 0

    async def test_purge_logged_once(
        self,
        engine: GalleryEngine,
        gallery: SeededGallery,
        clock: FrozenClock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        await engine.access_key_service.issue(gallery.image.id, gallery.bob.id)
        clock.advance(timedelta(days=8).total_seconds())
        with caplog.at_level(logging.INFO, logger="gallery_access"):
            await task_purge_stale_access_keys(engine)
        purged = [r for r in caplog.records if "access key(s)" in r.getMessage()]
        assert len(purged) == 1

    async def test_registered_on_engine(self, engine: GalleryEngine) -> None:
        assert engine.task_manager is not None
        assert PURGE_STALE_ACCESS_KEYS in engine.task_manager.jobs
        assert CALCULATE_METRICS in engine.task_manager.jobs


class TestCalculateMetricsTask:
    async def test_sets_gauge(self, engine: GalleryEngine, gallery: SeededGallery) -> None:
        metrics = EngineMetrics()
        for _ in range(3):
            await engine.access_key_service.issue(gallery.image.id, gallery.bob.id)
        await task_calculate_metrics(engine, metrics)
        assert metrics.registry.get_sample_value("gallery_access_keys") == 3
