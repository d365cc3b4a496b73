"""Tests for datastore abstraction — engines and client."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import delete, inspect, select
from sqlalchemy.exc import IntegrityError

from gallery_access.config.settings import DatabaseConfig
from gallery_access.datastore.client import Datastore
from gallery_access.datastore.engines import create_engine, is_sqlite
from gallery_access.datastore.migrations import drop_all_tables, run_auto_migrate
from gallery_access.engine.models import Base, Image, User
from gallery_access.errors.access_errors import AccessDeniedError

if TYPE_CHECKING:
    from gallery_access.engine.client import GalleryEngine
    from tests.conftest import SeededGallery

_MEMORY = "sqlite+aiosqlite:///:memory:"


def _config(**kwargs: object) -> DatabaseConfig:
    return DatabaseConfig(engine="sqlite", dsn=_MEMORY, **kwargs)


# ---------------------------------------------------------------------------
# Engine factory
# ---------------------------------------------------------------------------


class TestCreateEngine:
    async def test_create_sqlite_engine(self) -> None:
        engine = create_engine(_config())
        assert engine is not None
        await engine.dispose()

    async def test_engine_echo_flag(self) -> None:
        engine = create_engine(_config(debug_sql=True))
        assert engine.echo is True
        await engine.dispose()

    @pytest.mark.parametrize(
        ("dsn", "expected"),
        [
            (_MEMORY, True),
            ("sqlite:///gallery.db", True),
            ("postgresql+asyncpg://u:p@localhost/gallery", False),
        ],
    )
    def test_is_sqlite(self, dsn: str, expected: bool) -> None:
        assert is_sqlite(dsn) is expected


# ---------------------------------------------------------------------------
# Datastore client
# ---------------------------------------------------------------------------


class TestDatastore:
    async def test_open_close(self) -> None:
        ds = Datastore(_config())
        assert not ds.is_open
        await ds.open()
        assert ds.is_open
        await ds.close()
        assert not ds.is_open

    async def test_engine_property_when_closed(self) -> None:
        with pytest.raises(RuntimeError, match="not open"):
            _ = Datastore(_config()).engine

    async def test_session_when_closed(self) -> None:
        with pytest.raises(RuntimeError, match="not open"):
            Datastore(_config()).session()

    async def test_transaction_commits(self) -> None:
        ds = Datastore(_config())
        await ds.open(base=Base)
        try:
            async with ds.transaction() as session:
                session.add(User(id="u1", username="carol"))
            async with ds.transaction() as session:
                user = (await session.execute(select(User))).scalar_one()
            assert user.username == "carol"
        finally:
            await ds.close()

    async def test_transaction_rolls_back(self) -> None:
        ds = Datastore(_config())
        await ds.open(base=Base)
        try:
            with pytest.raises(RuntimeError, match="boom"):
                async with ds.transaction() as session:
                    session.add(User(id="u1", username="carol"))
                    await session.flush()
                    raise RuntimeError("boom")
            async with ds.transaction() as session:
                users = (await session.execute(select(User))).scalars().all()
            assert users == []
        finally:
            await ds.close()

    async def test_transactions_do_not_interleave(self) -> None:
        ds = Datastore(_config())
        await ds.open(base=Base)
        active = 0
        peak = 0

        async def _work(i: int) -> None:
            nonlocal active, peak
            async with ds.transaction() as session:
                active += 1
                peak = max(peak, active)
                session.add(User(id=f"u{i}", username=f"user{i}"))
                await asyncio.sleep(0)
                active -= 1

        try:
            await asyncio.gather(*(_work(i) for i in range(10)))
            assert peak == 1
        finally:
            await ds.close()


# ---------------------------------------------------------------------------
# Migrations
# ---------------------------------------------------------------------------


class TestMigrations:
    async def test_auto_migrate_and_drop(self) -> None:
        engine = create_engine(_config())

        def _tables(conn: object) -> set[str]:
            return set(inspect(conn).get_table_names())

        try:
            assert await run_auto_migrate(engine) == ["users", "images", "image_access_keys"]
            assert await run_auto_migrate(engine) == []
            async with engine.connect() as conn:
                tables = await conn.run_sync(_tables)
            assert {"users", "images", "image_access_keys"} <= tables

            await drop_all_tables(engine)
            async with engine.connect() as conn:
                assert await conn.run_sync(_tables) == set()
        finally:
            await engine.dispose()


# ---------------------------------------------------------------------------
# SQLite foreign keys
# ---------------------------------------------------------------------------


class TestForeignKeys:
    async def test_deleting_image_removes_its_keys(
        self, engine: GalleryEngine, gallery: SeededGallery
    ) -> None:
        service = engine.access_key_service
        issued = await service.issue(gallery.image.id, gallery.bob.id)
        await service.issue(gallery.other_image.id, gallery.bob.id)

        async with engine.datastore.transaction() as session:
            await session.execute(delete(Image).where(Image.id == gallery.image.id))

        assert await service.count() == 1
        with pytest.raises(AccessDeniedError):
            await service.verify(issued.token)

    async def test_unknown_grantee_rejected(
        self, engine: GalleryEngine, gallery: SeededGallery
    ) -> None:
        with pytest.raises(IntegrityError):
            await engine.access_key_service.issue(gallery.image.id, "no-such-user")
