# app/db/database.py
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import settings
from app.core.exceptions import ConflictError
from app.core.logging import logger


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine; SQLite (dev/tests) skips pool sizing"""
    if database_url.startswith("sqlite"):
        return create_async_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=echo,
        )

    database_url = database_url.replace("postgresql://", "postgresql+asyncpg://")
    return create_async_engine(
        database_url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        connect_args={
            "server_settings": {
                "statement_timeout": str(settings.DB_STATEMENT_TIMEOUT_SECONDS * 1000),
            }
        },
        echo=echo,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Create async engine
engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# Create async session factory
async_session_local = build_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Database session dependency"""
    async with async_session_local() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def unit_of_work(session: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """
    One logical transaction: commit on success, roll back on any error.

    Store-level write conflicts surface as ConflictError so callers can retry.
    """
    try:
        yield session
        await session.commit()
    except StaleDataError as exc:
        await session.rollback()
        logger.warning(f"Concurrent modification detected: {exc}")
        raise ConflictError("The record was modified concurrently; retry the operation") from exc
    except IntegrityError as exc:
        await session.rollback()
        logger.warning(f"Integrity conflict on commit: {exc.orig}")
        raise ConflictError("The change conflicts with a concurrent update") from exc
    except BaseException:
        await session.rollback()
        raise


async def init_db(bind: AsyncEngine = None):
    """Initialize database (create tables)"""
    from app.db.base import Base
    # Import all models to ensure they're registered
    from app.db import models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    """Close database connections"""
    await engine.dispose()
