"""Database configuration and session management.

Provides async SQLAlchemy engine and session factory.
"""

from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from catalog_api.domain.exceptions import StorageError
from catalog_api.infrastructure.config import settings

logger = structlog.get_logger()

# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

# Session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Base class for models
Base = declarative_base()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the session factory used by the query endpoint.

    Each protocol operation opens its own session from this factory,
    so tests override this dependency to point at their own engine.
    """
    return async_session_factory


async def create_tables(bind: AsyncEngine | None = None) -> None:
    """Create catalog tables if they don't exist.

    Args:
        bind: Engine to use, defaults to the application engine.
    """
    # Import models so they register on Base.metadata
    from catalog_api.catalog import models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Re-raise persistence engine failures as ``StorageError``.

    Args:
        operation: Short name of the storage operation, logged and
            reported in the error details.

    Raises:
        StorageError: If the wrapped block raises ``SQLAlchemyError``.
    """
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(
            "Storage operation failed",
            operation=operation,
            error=str(e),
        )
        raise StorageError(operation) from e
