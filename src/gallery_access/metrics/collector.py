"""Metrics collector — Prometheus counters, gauges, histograms.

- ``gallery_access_keys_total`` gauge  (stored access keys)
- ``gallery_access_keys_issued_total`` counter
- ``gallery_access_keys_revoked_total`` counter
- ``gallery_access_key_verifications_total`` counter by outcome
- ``gallery_cron_histogram``
- ``gallery_cron_last_execution_gauge``
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

if TYPE_CHECKING:
    from collections.abc import Iterator


_PREFIX = "gallery"


class MetricsCollector:
    """Low-level Prometheus collector that owns the registry.

    Use :class:`EngineMetrics` for the high-level tracking interface.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._registry

    def gauge(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Gauge:
        """Register and return a Gauge."""
        return Gauge(name, doc, labels, registry=self._registry)

    def histogram(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Histogram:
        """Register and return a Histogram."""
        return Histogram(name, doc, labels, registry=self._registry)

    def counter(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Counter:
        """Register and return a Counter."""
        return Counter(name, doc, labels, registry=self._registry)


class EngineMetrics:
    """High-level access key metrics."""

    def __init__(self, collector: MetricsCollector | None = None) -> None:
        self._collector = collector or MetricsCollector()

        self._stored = self._collector.gauge(
            f"{_PREFIX}_access_keys",
            "Number of stored image access keys",
        )
        self._issued = self._collector.counter(
            f"{_PREFIX}_access_keys_issued",
            "Image access keys issued",
        )
        self._revoked = self._collector.counter(
            f"{_PREFIX}_access_keys_revoked",
            "Image access keys removed by revocation",
        )
        self._verifications = self._collector.counter(
            f"{_PREFIX}_access_key_verifications",
            "Image access key verifications by outcome",
            ("outcome",),
        )

        # Cron metrics
        self._cron_histogram = self._collector.histogram(
            f"{_PREFIX}_cron_histogram",
            "Duration of cron job executions",
            ("job_name",),
        )
        self._cron_last = self._collector.gauge(
            f"{_PREFIX}_cron_last_execution_gauge",
            "Timestamp of last cron execution",
            ("job_name",),
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._collector.registry

    def set_access_key_count(self, count: int) -> None:
        """Set the current number of stored access keys."""
        self._stored.set(count)

    def inc_issued(self) -> None:
        self._issued.inc()

    def inc_revoked(self, count: int = 1) -> None:
        self._revoked.inc(count)

    def inc_verification(self, outcome: str) -> None:
        """Count one verification; *outcome* is ``ok`` or an error code."""
        self._verifications.labels(outcome=outcome).inc()

    @contextmanager
    def track_cron(self, job_name: str) -> Iterator[None]:
        """Track the duration of a cron job and record last execution time."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._cron_histogram.labels(job_name=job_name).observe(time.monotonic() - start)
            self._cron_last.labels(job_name=job_name).set(time.time())
