"""Async database layer for AgentMesh.

One engine per process. SQLite (aiosqlite) is the default for local runs and
tests; a postgres DATABASE_URL is rewritten to the asyncpg driver.

Every unit of work commits on success and rolls back on error, whether it
comes in through the FastAPI dependency or the context manager used by the
run timeline.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

import sqlalchemy
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from . import config

_ASYNC_DRIVERS = {
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
}


def async_database_url(url: str) -> str:
    """Point a plain postgres URL at the asyncpg driver; other URLs pass through."""
    for prefix, replacement in _ASYNC_DRIVERS.items():
        if url.startswith(prefix):
            return replacement + url[len(prefix):]
    return url


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _engine_options(url: str) -> Dict[str, Any]:
    if _is_sqlite(url):
        return {}
    return {"pool_size": 5, "max_overflow": 10, "pool_pre_ping": True}


DATABASE_URL = async_database_url(config.DATABASE_URL)

engine: AsyncEngine = create_async_engine(
    DATABASE_URL, echo=config.DB_ECHO, **_engine_options(DATABASE_URL),
)

async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    """Declarative base shared by every collection table."""


@asynccontextmanager
async def get_session_ctx() -> AsyncGenerator[AsyncSession, None]:
    """Session scope for code running outside a request (background tasks)."""
    # Looked up at call time so tests can swap the factory
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one committed-or-rolled-back session per request."""
    async with get_session_ctx() as session:
        yield session


async def init_db() -> None:
    """Create missing tables. Schema migrations are out of scope."""
    from .models import db as _models  # noqa: F401  register ORM models

    async with engine.begin() as conn:
        if _is_sqlite(DATABASE_URL):
            # The run timeline writes while requests read
            await conn.execute(sqlalchemy.text("PRAGMA journal_mode=WAL"))
            await conn.execute(sqlalchemy.text("PRAGMA busy_timeout=5000"))
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
