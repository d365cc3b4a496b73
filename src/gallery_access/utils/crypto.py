"""Cryptographic helpers — hashing and random secrets."""

from __future__ import annotations

import hashlib
import secrets


def sha256_hex(data: bytes) -> str:
    """SHA-256 hash rendered as lowercase hex."""
    return hashlib.sha256(data).hexdigest()


def random_hex(num_bytes: int) -> str:
    """Return *num_bytes* of CSPRNG output as lowercase hex."""
    return secrets.token_hex(num_bytes)
