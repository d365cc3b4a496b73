"""Application entry point for the gallery access server."""

from __future__ import annotations

import os

import uvicorn

from gallery_access.config.settings import AppConfig


def main() -> None:
    """Start the gallery access server."""
    config = AppConfig()
    reload = os.getenv("GALLERY_RELOAD", "false").lower() in ("1", "true", "yes")
    uvicorn.run(
        "gallery_access.api.app:create_app",
        factory=True,
        host=config.server.host,
        port=config.server.port,
        reload=reload,
        log_level="debug" if config.debug else "info",
    )


if __name__ == "__main__":
    main()
