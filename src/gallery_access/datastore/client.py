"""Datastore client — async SQLAlchemy engine & session management.

Central datastore abstraction providing:
- Engine lifecycle (create, dispose)
- Async session factory
- Transaction scopes, serialised in-process for SQLite
- Table creation support
"""

from __future__ import annotations

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from gallery_access.datastore.engines import create_engine, is_sqlite
from gallery_access.datastore.migrations import run_auto_migrate

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.orm import DeclarativeBase

    from gallery_access.config.settings import DatabaseConfig

_ERR_NOT_OPEN = "Datastore is not open. Call open() first."


class Datastore:
    """Async datastore wrapping a SQLAlchemy engine and session factory.

    Usage::

        ds = Datastore(db_config)
        await ds.open()
        async with ds.transaction() as session:
            ...
        await ds.close()
    """

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        # SQLite has a single writer and an in-memory database shares one
        # connection between sessions, so transactions must not interleave.
        self._write_lock: asyncio.Lock | None = None

    @property
    def engine(self) -> AsyncEngine:
        """Return the underlying async engine.

        Raises:
            RuntimeError: If the datastore is not open.
        """
        if self._engine is None:
            raise RuntimeError(_ERR_NOT_OPEN)
        return self._engine

    async def open(self, *, base: type[DeclarativeBase] | None = None) -> None:
        """Open the datastore — create engine and optionally create tables.

        Args:
            base: If provided, create all tables defined by this declarative base.
                  Primarily used for SQLite in-memory testing.
        """
        self._engine = create_engine(self._config)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        if is_sqlite(self._config.dsn):
            self._write_lock = asyncio.Lock()
        if base is not None:
            await run_auto_migrate(self._engine, base)

    async def close(self) -> None:
        """Dispose the engine and release all connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            self._write_lock = None

    def session(self) -> AsyncSession:
        """Create a new async session from the session factory.

        Returns:
            An ``AsyncSession`` instance. Use as an async context manager.

        Raises:
            RuntimeError: If the datastore is not open.
        """
        if self._session_factory is None:
            raise RuntimeError(_ERR_NOT_OPEN)
        return self._session_factory()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Yield a session inside a transaction that commits on exit.

        The transaction is rolled back if the block raises.
        """
        lock = self._write_lock if self._write_lock is not None else contextlib.nullcontext()
        async with lock:
            async with self.session() as session, session.begin():
                yield session

    @property
    def is_open(self) -> bool:
        """Check if the datastore is open."""
        return self._engine is not None
