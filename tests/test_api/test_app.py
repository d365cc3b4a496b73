"""Tests for the application factory, base routes and error rendering."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.testclient import TestClient

from gallery_access.api.app import create_app
from gallery_access.config.settings import MetricsConfig

if TYPE_CHECKING:
    from gallery_access.config.settings import AppConfig
    from tests.conftest import SeededGallery


class TestCreateApp:
    def test_returns_fastapi(self, app_config: AppConfig) -> None:
        app = create_app(config=app_config)
        assert isinstance(app, FastAPI)
        assert app.title == "gallery-access"

    def test_routes_registered(self, app_config: AppConfig) -> None:
        app = create_app(config=app_config)
        assert "/metrics" in {getattr(route, "path", None) for route in app.routes}
        paths = app.openapi()["paths"]
        assert "/health" in paths
        assert "/api/v1/images/{image_id}/access-keys" in paths
        assert "/api/v1/images/{image_id}/shared" in paths
        assert "/api/v1/images/{image_id}/shared/download" in paths

    def test_metrics_disabled(self, app_config: AppConfig) -> None:
        app_config.metrics = MetricsConfig(enabled=False)
        assert create_app(config=app_config).state.metrics is None


class TestBaseRoutes:
    def test_health(self, test_client: TestClient) -> None:
        resp = test_client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {
            "status": "ok",
            "engine": "ok",
            "datastore": "ok",
            "tasks": "stopped",
        }

    def test_metrics(self, test_client: TestClient, seeded: SeededGallery) -> None:
        test_client.post(
            f"/api/v1/images/{seeded.image.id}/access-keys",
            headers={"x-auth-user": seeded.bob.id},
        )
        resp = test_client.get("/metrics")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        body = resp.text
        assert "gallery_access_keys_issued_total 1.0" in body
        assert "http_request_total" in body

    def test_openapi(self, test_client: TestClient) -> None:
        resp = test_client.get("/openapi.json")
        assert resp.status_code == 200
        assert resp.json()["info"]["title"] == "gallery-access"


class TestEngineUnavailable:
    def test_routes_fail_before_startup(self, app_config: AppConfig) -> None:
        # No context manager: the lifespan never runs.
        client = TestClient(create_app(config=app_config), raise_server_exceptions=False)
        resp = client.post("/api/v1/images/img1/access-keys", headers={"x-auth-user": "u"})
        assert resp.status_code == 503
        assert resp.json()["code"] == "engine-unavailable"
