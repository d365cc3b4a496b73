"""Tests for the image access gate helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from gallery_access.api.middleware.image_access import authorize, extract_token
from gallery_access.engine.permissions import Permission
from gallery_access.errors.access_errors import (
    AccessDeniedError,
    InsufficientPermissionError,
    MissingTokenError,
)

if TYPE_CHECKING:
    from gallery_access.engine.client import GalleryEngine
    from tests.conftest import SeededGallery


class TestExtractToken:
    def test_query_wins(self) -> None:
        assert extract_token("from-query", "from-header") == "from-query"

    def test_header_fallback(self) -> None:
        assert extract_token(None, "from-header") == "from-header"
        assert extract_token("", "from-header") == "from-header"

    @pytest.mark.parametrize(("query", "header"), [(None, None), ("", ""), (None, "")])
    def test_missing(self, query: str | None, header: str | None) -> None:
        with pytest.raises(MissingTokenError):
            extract_token(query, header)


class TestAuthorize:
    async def test_granted(self, engine: GalleryEngine, gallery: SeededGallery) -> None:
        service = engine.access_key_service
        issued = await service.issue(gallery.image.id, gallery.bob.id)
        ctx = await authorize(service, issued.token, Permission.VIEW)
        assert ctx.image.id == gallery.image.id
        assert ctx.grantee is not None
        assert ctx.grantee.username == "bob"
        assert ctx.permissions == frozenset({Permission.VIEW})

    async def test_missing_permission(self, engine: GalleryEngine, gallery: SeededGallery) -> None:
        service = engine.access_key_service
        issued = await service.issue(gallery.image.id, gallery.bob.id)
        with pytest.raises(InsufficientPermissionError):
            await authorize(service, issued.token, Permission.DOWNLOAD)

    async def test_verification_errors_propagate(
        self, engine: GalleryEngine, gallery: SeededGallery
    ) -> None:
        with pytest.raises(AccessDeniedError):
            await authorize(
                engine.access_key_service, f"{'00' * 32}.{gallery.image.id}", Permission.VIEW
            )
