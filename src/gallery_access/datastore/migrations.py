"""Schema bootstrap without Alembic.

The engine calls :func:`run_auto_migrate` on startup so a fresh SQLite file
or an empty PostgreSQL database is usable immediately.  Deployments that
manage the schema with the revisions under ``alembic/`` find every table
already present and nothing is created.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import inspect

from gallery_access.engine.models import Base

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection
    from sqlalchemy.ext.asyncio import AsyncEngine
    from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


async def run_auto_migrate(
    engine: AsyncEngine, base: type[DeclarativeBase] = Base
) -> list[str]:
    """Create the tables of *base* that do not exist yet.

    Returns:
        Names of the tables created, in dependency order.
    """

    def _create_missing(conn: Connection) -> list[str]:
        existing = set(inspect(conn).get_table_names())
        missing = [t for t in base.metadata.sorted_tables if t.name not in existing]
        base.metadata.create_all(conn, tables=missing)
        return [t.name for t in missing]

    async with engine.begin() as conn:
        created = await conn.run_sync(_create_missing)
    if created:
        logger.info("Created tables: %s", ", ".join(created))
    return created


async def drop_all_tables(engine: AsyncEngine, base: type[DeclarativeBase] = Base) -> None:
    """Drop every table of *base*.  Test and development use only."""
    async with engine.begin() as conn:
        await conn.run_sync(base.metadata.drop_all)
