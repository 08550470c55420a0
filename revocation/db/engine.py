"""Async SQLAlchemy engine and session management."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from revocation.core.settings import DatabaseSettings


class _EngineHolder:
    """Lazy singleton for the async session factory."""

    factory: async_sessionmaker[AsyncSession] | None = None


_holder = _EngineHolder()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Lazily create the async session factory."""
    if _holder.factory is None:
        db = DatabaseSettings()
        engine = create_async_engine(
            db.async_url,
            pool_size=db.pool_size,
            max_overflow=db.max_overflow,
        )
        _holder.factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _holder.factory


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Yield a session that commits on success and rolls back on error."""
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
