"""Token codec — bearer secrets, lookup hashes, and the public token format.

Public tokens have the form ``<hex-secret>.<imageId>``.  Only the SHA-256
of the secret is ever persisted; the image id travels in the clear so that
verification can locate the record by ``(hash, image)`` without scanning.
"""

from __future__ import annotations

from gallery_access.errors.access_errors import MalformedTokenError
from gallery_access.utils.crypto import random_hex, sha256_hex

TOKEN_SEPARATOR = "."
SECRET_BYTES = 32  # 256 bits of entropy, 64 hex chars


def generate_secret() -> str:
    """Return a fresh random secret as a fixed-length hex string."""
    return random_hex(SECRET_BYTES)


def hash_secret(secret: str) -> str:
    """Derive the one-way lookup hash for *secret*."""
    return sha256_hex(secret.encode("utf-8"))


def compose_token(secret: str, image_id: str) -> str:
    """Join *secret* and *image_id* into the public token string.

    Raises:
        ValueError: If either part is empty or contains the separator.
    """
    for name, part in (("secret", secret), ("image_id", image_id)):
        if not part:
            msg = f"{name} must not be empty"
            raise ValueError(msg)
        if TOKEN_SEPARATOR in part:
            msg = f"{name} must not contain {TOKEN_SEPARATOR!r}"
            raise ValueError(msg)
    return f"{secret}{TOKEN_SEPARATOR}{image_id}"


def parse_token(token: str) -> tuple[str, str]:
    """Split a public token into ``(secret, image_id)``.

    Raises:
        MalformedTokenError: If the separator is missing or repeated, or
            either part is empty.
    """
    parts = token.split(TOKEN_SEPARATOR)
    if len(parts) != 2:
        raise MalformedTokenError
    secret, image_id = parts
    if not secret or not image_id:
        raise MalformedTokenError
    return secret, image_id
