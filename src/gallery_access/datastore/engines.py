"""Async engine construction for the access key database.

SQLite (aiosqlite) backs development and tests; PostgreSQL (asyncpg) backs
deployments.  On SQLite, foreign key enforcement is switched on per
connection so deleting an image or user cascades to its access keys the
same way it does on PostgreSQL.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

if TYPE_CHECKING:
    from gallery_access.config.settings import DatabaseConfig


def is_sqlite(dsn: str) -> bool:
    """Whether *dsn* points at a SQLite database."""
    return dsn.startswith("sqlite")


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _pool_options(config: DatabaseConfig) -> dict[str, Any]:
    if is_sqlite(config.dsn):
        return {}
    return {
        "pool_size": config.max_idle_connections,
        "max_overflow": max(config.max_open_connections - config.max_idle_connections, 0),
        "pool_pre_ping": True,
    }


def create_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create the async engine described by *config*.

    Args:
        config: Database settings (DSN, pool sizes, SQL echo).

    Returns:
        An ``AsyncEngine``; SQLite engines enforce foreign keys.
    """
    engine = create_async_engine(config.dsn, echo=config.debug_sql, **_pool_options(config))
    if is_sqlite(config.dsn):
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine
