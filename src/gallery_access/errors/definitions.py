"""Shared error instances used outside the access key core."""

from __future__ import annotations

from gallery_access.errors.gallery_errors import GalleryError

# -- Authentication --------------------------------------------------------

ErrUnauthorized = GalleryError("unauthorized", status_code=401, code="unauthorized")

# -- Engine ----------------------------------------------------------------

ErrEngineUnavailable = GalleryError(
    "service is starting up", status_code=503, code="engine-unavailable"
)
