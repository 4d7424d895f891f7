"""
Async engine and request-scoped sessions.

One session per request; the transaction commits when the route returns
and rolls back if it raises.
"""

from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from eventhub.core.config import get_settings


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    settings = get_settings()
    if url.startswith("sqlite"):
        # Writers wait on the file lock instead of failing immediately
        return create_async_engine(url, echo=echo, connect_args={"timeout": 30})
    return create_async_engine(
        url,
        echo=echo,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )


@lru_cache()
def get_engine() -> AsyncEngine:
    settings = get_settings()
    return build_engine(settings.DATABASE_URL, echo=settings.DEBUG)


@lru_cache()
def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with get_sessionmaker()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
