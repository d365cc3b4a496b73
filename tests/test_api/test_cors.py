"""Tests for CORS configuration."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from gallery_access.api.middleware.cors import setup_cors


def _app() -> FastAPI:
    app = FastAPI()
    setup_cors(app)

    @app.get("/ping")
    async def ping() -> dict[str, str]:
        return {"pong": "ok"}

    return app


class TestCORS:
    def test_preflight_allows_custom_headers(self) -> None:
        client = TestClient(_app())
        resp = client.options(
            "/ping",
            headers={
                "Origin": "https://viewer.example.com",
                "Access-Control-Request-Method": "GET",
                "Access-Control-Request-Headers": "x-image-token",
            },
        )
        assert resp.status_code == 200
        assert "x-image-token" in resp.headers["access-control-allow-headers"].lower()

    def test_simple_request_has_origin_header(self) -> None:
        client = TestClient(_app())
        resp = client.get("/ping", headers={"Origin": "https://viewer.example.com"})
        assert resp.status_code == 200
        assert "access-control-allow-origin" in resp.headers
