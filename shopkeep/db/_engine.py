"""
Database setup.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from shopkeep.db._tables import Base

SQLITE_BUSY_TIMEOUT = 30.0


async def create_database(
    url: str = "sqlite+aiosqlite:///./shopkeep.db",
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Create schema and return (session_factory, engine)."""
    connect_args: dict[str, Any] = {}
    if make_url(url).get_backend_name() == "sqlite":
        # Concurrent writers wait on the file lock instead of failing.
        connect_args["timeout"] = SQLITE_BUSY_TIMEOUT

    engine = create_async_engine(url, echo=False, connect_args=connect_args)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return async_sessionmaker(engine, expire_on_commit=False), engine


__all__ = ("create_database",)
