"""Background task definitions — cron job handlers.

- ``purge_stale_access_keys`` — drop keys past the retention window
- ``calculate_metrics`` — stored key count for the Prometheus gauge
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gallery_access.engine.client import GalleryEngine
    from gallery_access.metrics.collector import EngineMetrics

PURGE_STALE_ACCESS_KEYS = "purge_stale_access_keys"
CALCULATE_METRICS = "calculate_metrics"


async def task_purge_stale_access_keys(engine: GalleryEngine) -> None:
    """Delete access keys created longer ago than the retention window.

    The service logs the number of removed keys.
    """
    await engine.access_key_service.purge_stale()


async def task_calculate_metrics(engine: GalleryEngine, metrics: EngineMetrics) -> None:
    """Push the stored access key count to the Prometheus gauge."""
    metrics.set_access_key_count(await engine.access_key_service.count())
