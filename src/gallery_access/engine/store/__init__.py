"""Persistence collaborators for the access key service."""

from gallery_access.engine.store.interfaces import (
    AccessKeyStore,
    ImageCatalog,
    PrincipalDirectory,
)
from gallery_access.engine.store.sql import (
    SQLAccessKeyStore,
    SQLImageCatalog,
    SQLPrincipalDirectory,
)

__all__ = [
    "AccessKeyStore",
    "ImageCatalog",
    "PrincipalDirectory",
    "SQLAccessKeyStore",
    "SQLImageCatalog",
    "SQLPrincipalDirectory",
]
