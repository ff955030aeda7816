"""Root conftest for API and repository tests.

Provides:
- In-memory SQLite database (replaces production engine)
- FastAPI AsyncClient over ASGITransport
- Fake generative-AI provider built on httpx.MockTransport
"""

from __future__ import annotations

import json
import os
import tempfile
from typing import AsyncGenerator, Callable, List

# Keep test log files out of the source tree
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="agentmesh-test-logs-"))

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

import agentmesh.database as db_module  # noqa: E402
from agentmesh.database import Base  # noqa: E402

# Import all ORM models so they register with Base.metadata
import agentmesh.models.db  # noqa: F401, E402


# ---------------------------------------------------------------------------
# In-memory async SQLite engine (StaticPool shares one connection)
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory SQLite engine per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Per-test database session with automatic rollback."""
    factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )
    async with factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def session_factory(test_engine: AsyncEngine) -> AsyncGenerator[async_sessionmaker, None]:
    """Point agentmesh.database at the test engine.

    Everything that opens its own session through get_session_ctx() (the
    run timeline, the run endpoint) then uses the test DB.
    """
    original_engine = db_module.engine
    original_factory = db_module.async_session_factory

    factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )
    db_module.engine = test_engine
    db_module.async_session_factory = factory
    try:
        yield factory
    finally:
        db_module.engine = original_engine
        db_module.async_session_factory = original_factory


# ---------------------------------------------------------------------------
# FastAPI test client
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def client(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI routes against the test DB."""
    from agentmesh.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Fake generative-AI provider
# ---------------------------------------------------------------------------

def genai_reply(payload) -> dict:
    """generateContent response body whose text part carries ``payload``."""
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


@pytest.fixture
def genai_transport() -> Callable[..., httpx.MockTransport]:
    """Build a MockTransport that plays back ``responses`` in order.

    Each item is an httpx.Response, or an exception instance to raise.
    Sent requests are recorded on ``transport.requests``.
    """

    def _build(*responses) -> httpx.MockTransport:
        queue = list(responses)
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            item = queue.pop(0) if len(queue) > 1 else queue[0]
            if isinstance(item, Exception):
                raise item
            return item

        transport = httpx.MockTransport(handler)
        transport.requests = requests
        return transport

    return _build
