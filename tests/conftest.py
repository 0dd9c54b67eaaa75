"""Pytest fixtures: a file-backed SQLite shop per test, seeded with two tenants."""

from collections.abc import AsyncIterator
from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shopkeep._types import TenantId
from shopkeep.config import Settings
from shopkeep.db import create_database
from shopkeep.seed import ACME, GLOBEX, seed_all
from shopkeep.service import ShopService

from support import NOW, clock


@pytest.fixture
async def session_factory(tmp_path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    factory, engine = await create_database(f"sqlite+aiosqlite:///{tmp_path / 'shop.db'}")
    yield factory
    await engine.dispose()


@pytest.fixture
def settings() -> Settings:
    return (
        Settings()
        .with_reservation_timeout(seconds=5)
        .with_compensation_retry(2, timedelta(0))
    )


@pytest.fixture
async def service(session_factory, settings) -> ShopService:
    service = ShopService(session_factory, settings, clock=clock)
    await seed_all(service.catalog, NOW)
    return service


@pytest.fixture
def acme() -> TenantId:
    return ACME


@pytest.fixture
def globex() -> TenantId:
    return GLOBEX
