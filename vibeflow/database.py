"""Database wiring: one pooled async engine, its session factory, the ORM base.

Services receive an ``AsyncSession`` through :func:`get_db` and commit their
own units of work; the dependency only guarantees that a failed request never
leaves a transaction open.
"""

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from vibeflow.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DB_ECHO,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
)

# Objects stay readable after commit; responses are built from them
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base shared by every vibeflow model."""


async def get_db() -> AsyncIterator[AsyncSession]:
    """Yield a session for one request; roll back whatever is left on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
