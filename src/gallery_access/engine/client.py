"""GalleryEngine — central engine client owning the datastore and services."""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING

from gallery_access.datastore.client import Datastore
from gallery_access.datastore.migrations import run_auto_migrate
from gallery_access.engine.services.access_key_service import AccessKeyService
from gallery_access.engine.store.sql import (
    SQLAccessKeyStore,
    SQLImageCatalog,
    SQLPrincipalDirectory,
)
from gallery_access.metrics.collector import EngineMetrics
from gallery_access.taskmanager.manager import CronJob, TaskManager
from gallery_access.taskmanager.tasks import (
    CALCULATE_METRICS,
    PURGE_STALE_ACCESS_KEYS,
    task_calculate_metrics,
    task_purge_stale_access_keys,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from gallery_access.config.settings import AppConfig

logger = logging.getLogger(__name__)

_ERR_NOT_INITIALIZED = "Engine not initialized. Call initialize() first."


class GalleryEngine:
    """Central engine that owns infrastructure and services.

    Provides lifecycle management and a small service registry.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        metrics: EngineMetrics | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize engine with configuration.

        Args:
            config: Application configuration.
            metrics: Metrics sink shared with the HTTP layer; created on
                initialize when metrics are enabled and none is given.
            clock: Time source for the access key service (tests).
        """
        self._config = config
        self._initialized = False
        self._clock = clock

        self._datastore: Datastore | None = None
        self._images: SQLImageCatalog | None = None
        self._users: SQLPrincipalDirectory | None = None
        self._access_key_service: AccessKeyService | None = None
        self._task_manager: TaskManager | None = None
        self._metrics = metrics

    async def initialize(self) -> None:
        """Open the datastore, create tables and start services.

        Raises:
            RuntimeError: If already initialized.
        """
        if self._initialized:
            msg = "Engine already initialized"
            raise RuntimeError(msg)

        self._datastore = Datastore(self._config.db)
        await self._datastore.open()
        await run_auto_migrate(self._datastore.engine)

        if self._metrics is None and self._config.metrics.enabled:
            self._metrics = EngineMetrics()

        self._images = SQLImageCatalog(self._datastore)
        self._users = SQLPrincipalDirectory(self._datastore)
        store = SQLAccessKeyStore(self._datastore, self._images)

        self._access_key_service = AccessKeyService(
            store,
            self._images,
            self._users,
            self._config.access_keys,
            metrics=self._metrics,
            clock=self._clock,
        )

        self._task_manager = TaskManager(metrics=self._metrics)
        self._task_manager.register(
            PURGE_STALE_ACCESS_KEYS,
            CronJob(
                handler=partial(task_purge_stale_access_keys, self),
                period=self._config.task.purge_period,
                run_on_start=True,
            ),
        )
        if self._metrics is not None:
            self._task_manager.register(
                CALCULATE_METRICS,
                CronJob(
                    handler=partial(task_calculate_metrics, self, self._metrics),
                    period=self._config.task.metrics_period,
                ),
            )
        if self._config.task.enabled:
            await self._task_manager.start()

        self._initialized = True
        logger.info("Gallery engine initialized (%s)", self._config.db.engine)

    async def close(self) -> None:
        """Gracefully shut down all services and connections.

        Can be called multiple times (idempotent).
        """
        if not self._initialized:
            return

        if self._task_manager is not None:
            await self._task_manager.stop()
            self._task_manager = None

        self._access_key_service = None
        self._images = None
        self._users = None

        if self._datastore is not None:
            await self._datastore.close()
            self._datastore = None

        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def datastore(self) -> Datastore:
        """Get the datastore instance.

        Raises:
            RuntimeError: If engine not initialized.
        """
        if self._datastore is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._datastore

    @property
    def images(self) -> SQLImageCatalog:
        """Get the image catalog."""
        if self._images is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._images

    @property
    def users(self) -> SQLPrincipalDirectory:
        """Get the principal directory."""
        if self._users is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._users

    @property
    def access_key_service(self) -> AccessKeyService:
        """Get the access key service."""
        if self._access_key_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._access_key_service

    @property
    def metrics(self) -> EngineMetrics | None:
        """Get the engine metrics (None when disabled)."""
        return self._metrics

    @property
    def task_manager(self) -> TaskManager | None:
        """Get the task manager (None before initialize)."""
        return self._task_manager

    async def health_check(self) -> dict[str, str]:
        """Check health status of engine components."""
        status = {
            "engine": "ok" if self._initialized else "not_initialized",
            "datastore": "unknown",
        }
        if self._initialized:
            status["datastore"] = (
                "ok" if self._datastore is not None and self._datastore.is_open else "error"
            )
            status["tasks"] = self._task_health()
        return status

    def _task_health(self) -> str:
        tm = self._task_manager
        if tm is None or not tm.is_running:
            return "stopped"
        return "ok" if tm.healthy else "degraded"
