"""Shared fixtures for catalog tests.

Every test gets its own in-memory SQLite database through aiosqlite.
``StaticPool`` keeps the single connection alive so the schema created
by the fixture is visible to every session of the test.
"""

import os

# Must be set before catalog_api is imported so the app engine is SQLite too.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from collections.abc import AsyncGenerator, Iterator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from catalog_api.infrastructure.database import (  # noqa: E402
    create_tables,
    get_session_factory,
)
from catalog_api.main import app  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite://"


def make_engine() -> AsyncEngine:
    """Create an engine bound to a fresh in-memory database."""
    return create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an engine with the catalog schema."""
    engine = make_engine()
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory for the test database."""
    return make_session_factory(engine)


@pytest.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session with a transaction committed at teardown."""
    async with session_factory() as session, session.begin():
        yield session


@pytest.fixture
def client() -> Iterator[TestClient]:
    """Create a test client backed by a fresh database.

    The client runs the lifespan and owns the event loop, so the schema
    is created through its portal rather than the test's loop.
    """
    engine = make_engine()
    factory = make_session_factory(engine)
    app.dependency_overrides[get_session_factory] = lambda: factory
    with TestClient(app) as client:
        client.portal.call(create_tables, engine)
        yield client
        client.portal.call(engine.dispose)
    app.dependency_overrides.clear()
