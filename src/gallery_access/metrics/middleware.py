"""Prometheus HTTP metrics as plain ASGI middleware.

Tracks:
- ``http_request_total`` (counter) by method, route template and status
- ``http_request_duration_seconds`` (histogram) by method and route template
- ``gallery_image_gate_total`` (counter) by required permission and outcome,
  for requests that went through the image access gate

Paths are recorded as route templates (``/api/v1/images/{image_id}/shared``)
so image ids never become label values.  The gate reports through
``request.state`` (see :data:`GATE_PERMISSION_STATE` and
:data:`GATE_OUTCOME_STATE`); this middleware only reads it back.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from prometheus_client import Counter, Histogram

if TYPE_CHECKING:
    from prometheus_client import CollectorRegistry
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

GATE_PERMISSION_STATE = "image_gate_permission"
GATE_OUTCOME_STATE = "image_gate_outcome"
GATE_GRANTED = "granted"


class PrometheusMiddleware:
    """Record request count, duration and image gate outcomes."""

    def __init__(self, app: ASGIApp, *, registry: CollectorRegistry) -> None:
        self.app = app
        self._requests = Counter(
            "http_request_total",
            "Total HTTP requests",
            ("method", "path", "status_code"),
            registry=registry,
        )
        self._duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ("method", "path"),
            registry=registry,
        )
        self._gate = Counter(
            "gallery_image_gate",
            "Image access gate decisions",
            ("permission", "outcome"),
            registry=registry,
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        # Shared with every Request built downstream, so the gate's
        # request.state writes land here.
        state: dict[str, Any] = scope.setdefault("state", {})
        status = 500
        start = time.monotonic()

        async def _send(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, _send)
        finally:
            self._observe(scope, state, status, time.monotonic() - start)

    def _observe(
        self, scope: Scope, state: dict[str, Any], status: int, duration: float
    ) -> None:
        route = scope.get("route")
        path = getattr(route, "path", None) or scope.get("path", "")
        method = scope.get("method", "")

        self._requests.labels(method=method, path=path, status_code=str(status)).inc()
        self._duration.labels(method=method, path=path).observe(duration)

        outcome = state.get(GATE_OUTCOME_STATE)
        if outcome is not None:
            self._gate.labels(
                permission=state.get(GATE_PERMISSION_STATE, ""), outcome=outcome
            ).inc()
