"""Shared test fixtures for the gallery-access test suite."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from gallery_access.config.settings import (
    AppConfig,
    DatabaseConfig,
    DatabaseEngine,
    TaskConfig,
)
from gallery_access.engine.models import Base, Image, User
from gallery_access.engine.models.base import utcnow

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator
    from pathlib import Path

    from fastapi.testclient import TestClient

    from gallery_access.datastore.client import Datastore
    from gallery_access.engine.client import GalleryEngine


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or utcnow()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@dataclass(frozen=True)
class SeededGallery:
    alice: User
    bob: User
    image: Image
    other_image: Image


async def seed_gallery(datastore: Datastore) -> SeededGallery:
    """Insert two users and two images."""
    alice = User(id="user-alice", username="alice", email="alice@example.com")
    bob = User(id="user-bob", username="bob", email="bob@example.com")
    image = Image(
        id="img1",
        title="Sunset",
        url="https://cdn.example.com/gallery/sunset.jpg",
        description="Evening over the bay",
        author_id=alice.id,
    )
    other_image = Image(
        id="img2",
        title="Harbour",
        url="https://cdn.example.com/gallery/harbour.jpg",
        author_id=alice.id,
    )
    async with datastore.transaction() as session:
        session.add_all([alice, bob])
        await session.flush()
        session.add_all([image, other_image])
    return SeededGallery(alice=alice, bob=bob, image=image, other_image=other_image)


def _config(dsn: str) -> AppConfig:
    return AppConfig(
        debug=True,
        db=DatabaseConfig(engine=DatabaseEngine.SQLITE, dsn=dsn),
        task=TaskConfig(enabled=False),
    )


@pytest.fixture
def app_config() -> AppConfig:
    """Provide a test AppConfig backed by in-memory SQLite."""
    return _config("sqlite+aiosqlite:///:memory:")


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
async def engine(app_config: AppConfig, clock: FrozenClock) -> AsyncIterator[GalleryEngine]:
    """Initialized engine on an in-memory database."""
    from gallery_access.engine.client import GalleryEngine

    eng = GalleryEngine(app_config, clock=clock)
    await eng.initialize()
    yield eng
    await eng.close()


@pytest.fixture
async def gallery(engine: GalleryEngine) -> SeededGallery:
    return await seed_gallery(engine.datastore)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest.fixture
def http_config(tmp_path: Path) -> AppConfig:
    """Config on a file database so data seeded up front survives app startup."""
    return _config(f"sqlite+aiosqlite:///{tmp_path / 'gallery.db'}")


@pytest.fixture
def seeded(http_config: AppConfig) -> SeededGallery:
    from gallery_access.datastore.client import Datastore

    async def _seed() -> SeededGallery:
        datastore = Datastore(http_config.db)
        await datastore.open(base=Base)
        try:
            return await seed_gallery(datastore)
        finally:
            await datastore.close()

    return asyncio.run(_seed())


@pytest.fixture
def test_client(http_config: AppConfig, seeded: SeededGallery) -> Iterator[TestClient]:
    """FastAPI TestClient with the lifespan running against seeded data."""
    from fastapi.testclient import TestClient

    from gallery_access.api.app import create_app

    app = create_app(config=http_config)
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
