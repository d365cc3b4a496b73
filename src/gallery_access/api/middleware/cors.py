"""CORS middleware configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware

from gallery_access.api.middleware.auth import AUTH_HEADER_USER
from gallery_access.api.middleware.image_access import IMAGE_TOKEN_HEADER

if TYPE_CHECKING:
    from fastapi import FastAPI

# Custom headers that the browser needs to send via CORS pre-flight.
_CUSTOM_HEADERS = [
    AUTH_HEADER_USER,
    IMAGE_TOKEN_HEADER,
]


def setup_cors(app: FastAPI) -> None:
    """Add CORS middleware allowing all origins plus the custom headers.

    Shared image links are opened from arbitrary origins, so ``*`` is allowed.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*", *_CUSTOM_HEADERS],
    )
