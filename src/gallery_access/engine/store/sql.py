"""SQLAlchemy implementations of the store collaborators."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError

from gallery_access.engine.models import Image, ImageAccessKey, User
from gallery_access.engine.permissions import sorted_permissions
from gallery_access.errors.access_errors import DuplicateHashError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from gallery_access.datastore.client import Datastore
    from gallery_access.engine.permissions import Permission

logger = logging.getLogger(__name__)


class SQLImageCatalog:
    """Image lookups against the ``images`` table."""

    def __init__(self, datastore: Datastore) -> None:
        self._datastore = datastore

    async def exists(self, image_id: str) -> bool:
        async with self._datastore.transaction() as session:
            result = await session.execute(
                select(func.count(Image.id)).where(Image.id == image_id)
            )
            return result.scalar_one() > 0

    async def find_by_id(self, image_id: str) -> Image | None:
        async with self._datastore.transaction() as session:
            return await session.get(Image, image_id)


class SQLPrincipalDirectory:
    """User lookups against the ``users`` table."""

    def __init__(self, datastore: Datastore) -> None:
        self._datastore = datastore

    async def find_by_id(self, user_id: str) -> User | None:
        async with self._datastore.transaction() as session:
            return await session.get(User, user_id)


class SQLAccessKeyStore:
    """Access key records in the ``image_access_keys`` table.

    ``find_and_touch`` is a single ``UPDATE ... RETURNING`` statement, so the
    match and the usage bump cannot be split by a concurrent verification.
    """

    def __init__(self, datastore: Datastore, catalog: SQLImageCatalog) -> None:
        self._datastore = datastore
        self._catalog = catalog

    async def exists(self, image_id: str) -> bool:
        return await self._catalog.exists(image_id)

    async def create(
        self,
        image_id: str,
        grantee_id: str,
        secret_hash: str,
        permissions: Iterable[Permission],
        expires_at: datetime,
        max_usage: int | None = None,
    ) -> ImageAccessKey:
        access_key = ImageAccessKey(
            image_id=image_id,
            grantee_id=grantee_id,
            secret_hash=secret_hash,
            permissions=[str(p) for p in sorted_permissions(permissions)],
            expires_at=expires_at,
            max_usage=max_usage,
            usage_count=0,
        )
        try:
            async with self._datastore.transaction() as session:
                session.add(access_key)
        except IntegrityError as exc:
            if await self._hash_taken(secret_hash):
                raise DuplicateHashError from exc
            raise
        return access_key

    async def find_and_touch(
        self, secret_hash: str, image_id: str, now: datetime
    ) -> ImageAccessKey | None:
        stmt = (
            update(ImageAccessKey)
            .where(
                ImageAccessKey.secret_hash == secret_hash,
                ImageAccessKey.image_id == image_id,
            )
            .values(
                usage_count=ImageAccessKey.usage_count + 1,
                last_used_at=now,
            )
            .returning(ImageAccessKey)
        )
        async with self._datastore.transaction() as session:
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def delete_all_for(self, image_id: str, grantee_id: str) -> int:
        stmt = delete(ImageAccessKey).where(
            ImageAccessKey.image_id == image_id,
            ImageAccessKey.grantee_id == grantee_id,
        )
        async with self._datastore.transaction() as session:
            result = await session.execute(stmt)
            return result.rowcount  # type: ignore[union-attr]

    async def purge_created_before(self, cutoff: datetime) -> int:
        stmt = delete(ImageAccessKey).where(ImageAccessKey.created_at < cutoff)
        async with self._datastore.transaction() as session:
            result = await session.execute(stmt)
            return result.rowcount  # type: ignore[union-attr]

    async def count(self) -> int:
        async with self._datastore.transaction() as session:
            result = await session.execute(select(func.count(ImageAccessKey.id)))
            return result.scalar_one()

    async def _hash_taken(self, secret_hash: str) -> bool:
        async with self._datastore.transaction() as session:
            result = await session.execute(
                select(func.count(ImageAccessKey.id)).where(
                    ImageAccessKey.secret_hash == secret_hash
                )
            )
            return result.scalar_one() > 0
