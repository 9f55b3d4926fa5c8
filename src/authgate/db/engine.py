"""Async SQLAlchemy engine and session factory.

Learn: One engine per process, one AsyncSession per request. get_db is
the FastAPI dependency the GraphQL route depends on; a request that
fails halfway leaves nothing half-written, because the session is
rolled back before it closes.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from authgate.config import settings


def _engine_options(url: str) -> dict:
    # SQLite (local runs, tests) has no connection pool to size.
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": True,
    }


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_engine_options(settings.database_url),
)

# expire_on_commit=False: resolvers return ORM rows after the commit.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency: yields a session per request."""
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
