"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest
from starlette.responses import Response

from gallery_access import __version__
from gallery_access.api.middleware.cors import setup_cors
from gallery_access.api.v1 import v1_router
from gallery_access.config.settings import AppConfig
from gallery_access.engine.client import GalleryEngine
from gallery_access.errors.gallery_errors import GalleryError
from gallery_access.metrics.collector import EngineMetrics
from gallery_access.metrics.middleware import PrometheusMiddleware

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle hooks.

    Initialises the engine (datastore, services, tasks) on startup and
    gracefully shuts down on exit.
    """
    config: AppConfig = app.state.config
    engine = GalleryEngine(config, metrics=app.state.metrics)

    try:
        await engine.initialize()
        app.state.engine = engine
        logger.info("Gallery access engine initialized")
        yield
    finally:
        await engine.close()
        app.state.engine = None
        logger.info("Gallery access engine shut down")


def create_app(*, config: AppConfig | None = None) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        config: Optional AppConfig. If *None*, a default config is created
            from environment variables.
    """
    if config is None:
        config = AppConfig()

    app = FastAPI(
        title="gallery-access",
        version=__version__,
        description="Time-limited image access keys for the gallery",
        lifespan=_lifespan,
    )

    app.state.config = config
    app.state.metrics = EngineMetrics() if config.metrics.enabled else None

    # -- Middleware --
    setup_cors(app)
    if app.state.metrics is not None:
        app.add_middleware(PrometheusMiddleware, registry=app.state.metrics.registry)

    # -- Error handler --
    @app.exception_handler(GalleryError)
    async def _gallery_error_handler(request: Request, exc: GalleryError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"code": exc.code, "message": exc.message},
        )

    # -- Base routes --
    @app.get("/health", tags=["base"])
    async def health() -> dict[str, str]:
        engine: GalleryEngine | None = getattr(app.state, "engine", None)
        components = await engine.health_check() if engine is not None else {}
        return {"status": "ok", **components}

    @app.get("/metrics", tags=["base"], include_in_schema=False)
    async def metrics_endpoint() -> Response:
        """Prometheus metrics endpoint."""
        metrics: EngineMetrics | None = app.state.metrics
        body = generate_latest(metrics.registry) if metrics else generate_latest()
        return Response(
            content=body,
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    # -- Mount v1 API --
    app.include_router(v1_router)

    return app
