"""
Async database engine and session management.
PostgreSQL (asyncpg) in production, SQLite (aiosqlite) for local runs and tests.
"""

import logging
from typing import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from arena.core.config import settings

logger = logging.getLogger(__name__)


def create_engine_for_url(url: str, **kwargs) -> AsyncEngine:
    engine_kwargs: dict[str, object] = {"echo": False, "pool_pre_ping": True}
    backend = make_url(url).get_backend_name()

    if backend == "sqlite":
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        # Recycle long-lived connections before PgBouncer idle timeouts kill them
        engine_kwargs["pool_recycle"] = 300

    engine_kwargs.update(kwargs)
    return create_async_engine(url, **engine_kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


engine = create_engine_for_url(settings.DATABASE_URL)
SessionLocal = create_session_factory(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    async with SessionLocal() as session:
        yield session


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create tables that do not exist yet."""
    from arena import models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
