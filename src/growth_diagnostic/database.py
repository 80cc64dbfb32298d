"""Async SQLAlchemy engine and session management.

One transaction per request: ``get_db_session`` commits when the request
handler returns and rolls back if it raises.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from growth_diagnostic.observability import get_logger
from growth_diagnostic.settings import Settings

logger = get_logger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def init_database(settings: Settings) -> async_sessionmaker[AsyncSession]:
    """Create the engine and session factory from settings.

    Args:
        settings: Service settings carrying the database URL and pool size.

    Returns:
        The configured session factory.
    """
    global _engine, _session_factory

    _engine = create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_size=settings.database_pool_size,
        pool_pre_ping=True,
    )
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)

    logger.info("Database initialised", pool_size=settings.database_pool_size)
    return _session_factory


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory created by ``init_database``.

    Raises:
        RuntimeError: If the database has not been initialised.
    """
    if _session_factory is None:
        raise RuntimeError("Database is not initialised. Call init_database() first.")
    return _session_factory


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session scoped to one request."""
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def dispose_database() -> None:
    """Close all pooled connections."""
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
