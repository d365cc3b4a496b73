"""Image access key errors.

One class per failure kind so callers can catch a precise condition; each
carries the HTTP status the API layer renders.
"""

from __future__ import annotations

from gallery_access.errors.gallery_errors import GalleryError


class ImageNotFoundError(GalleryError):
    """The referenced image does not exist."""

    def __init__(self, message: str = "image not found") -> None:
        super().__init__(message, status_code=404, code="image-not-found")


class InvalidAccessKeyOptionsError(GalleryError):
    """Issuance options (expiry, permissions, usage cap) are invalid."""

    def __init__(self, message: str = "invalid access key options") -> None:
        super().__init__(message, status_code=400, code="invalid-access-key-options")


class DuplicateHashError(GalleryError):
    """A record with the same secret hash already exists."""

    def __init__(self, message: str = "access key hash already exists") -> None:
        super().__init__(message, status_code=409, code="duplicate-hash")


class KeyIssuanceFailedError(GalleryError):
    """Issuance gave up after exhausting its collision retries."""

    def __init__(self, message: str = "could not issue access key") -> None:
        super().__init__(message, status_code=500, code="key-issuance-failed")


class MalformedTokenError(GalleryError):
    """The token is not of the form ``<secret>.<imageId>``."""

    def __init__(self, message: str = "malformed access token") -> None:
        super().__init__(message, status_code=400, code="malformed-token")


class MissingTokenError(GalleryError):
    """No token was presented with the request."""

    def __init__(self, message: str = "access token required") -> None:
        super().__init__(message, status_code=401, code="missing-token")


class AccessDeniedError(GalleryError):
    """No access key matches the presented token."""

    def __init__(self, message: str = "access denied") -> None:
        super().__init__(message, status_code=403, code="access-denied")


class AccessExpiredError(GalleryError):
    """The access key has passed its expiry."""

    def __init__(self, message: str = "access key expired") -> None:
        super().__init__(message, status_code=403, code="access-expired")


class UsageLimitExceededError(GalleryError):
    """The access key has been used more times than its cap allows."""

    def __init__(self, message: str = "access key usage limit reached") -> None:
        super().__init__(message, status_code=403, code="usage-limit-exceeded")


class InsufficientPermissionError(GalleryError):
    """The access key does not grant the permission the route requires."""

    def __init__(self, message: str = "insufficient permissions") -> None:
        super().__init__(message, status_code=403, code="insufficient-permission")
