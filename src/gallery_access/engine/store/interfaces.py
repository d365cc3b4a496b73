"""Collaborator interfaces the access key service depends on.

These protocols define the narrow contract between the service and its
storage.  The SQLAlchemy implementations live in
:mod:`gallery_access.engine.store.sql`; tests may substitute their own.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from gallery_access.engine.models import Image, ImageAccessKey, User
    from gallery_access.engine.permissions import Permission


class ImageCatalog(Protocol):
    """Read access to gallery images."""

    async def exists(self, image_id: str) -> bool: ...

    async def find_by_id(self, image_id: str) -> Image | None: ...


class PrincipalDirectory(Protocol):
    """Read access to gallery users."""

    async def find_by_id(self, user_id: str) -> User | None: ...


class AccessKeyStore(Protocol):
    """Persistent access key records."""

    async def exists(self, image_id: str) -> bool:
        """Whether *image_id* references an existing image."""
        ...

    async def create(
        self,
        image_id: str,
        grantee_id: str,
        secret_hash: str,
        permissions: Iterable[Permission],
        expires_at: datetime,
        max_usage: int | None = None,
    ) -> ImageAccessKey:
        """Persist a new record.

        Raises:
            DuplicateHashError: If *secret_hash* is already stored.
        """
        ...

    async def find_and_touch(
        self, secret_hash: str, image_id: str, now: datetime
    ) -> ImageAccessKey | None:
        """Atomically locate a record and bump its usage counters.

        The lookup, ``usage_count`` increment and ``last_used_at = now``
        update must happen as one indivisible storage operation.
        """
        ...

    async def delete_all_for(self, image_id: str, grantee_id: str) -> int:
        """Delete every record for the image/grantee pair; return the count."""
        ...

    async def purge_created_before(self, cutoff: datetime) -> int:
        """Delete records created before *cutoff*; return the count."""
        ...

    async def count(self) -> int:
        """Total number of stored records."""
        ...
