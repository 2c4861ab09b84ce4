from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from maguru.api.deps import get_db_session, get_storage
from maguru.api.main import create_app
from maguru.core.config import Settings
from maguru.infrastructure.db.base import Base
from maguru.infrastructure.db.session import enable_sqlite_foreign_keys
from tests.utils import FakeThumbnailStorage


@pytest.fixture()
async def engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    # A file database so the app and the test each get their own connection.
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'maguru.db'}")
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture()
async def db(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Provide a database session for tests that need direct DB access."""
    async with session_factory() as session:
        yield session


@pytest.fixture()
def edge_guard_enabled() -> bool:
    """Data endpoints are tested without the edge check; override per module."""
    return False


@pytest.fixture()
def storage() -> FakeThumbnailStorage:
    return FakeThumbnailStorage()


@pytest.fixture()
def app(
    session_factory: async_sessionmaker[AsyncSession],
    edge_guard_enabled: bool,
    storage: FakeThumbnailStorage,
) -> FastAPI:
    application = create_app(Settings(edge_guard_enabled=edge_guard_enabled))

    async def override_db_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db_session] = override_db_session
    application.dependency_overrides[get_storage] = lambda: storage
    return application


@pytest.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Async HTTP client for testing async routes."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
