"""Tests for agentmesh/database.py URL handling and session scopes."""

from __future__ import annotations

import pytest

from agentmesh.database import async_database_url, get_session_ctx
from agentmesh.repositories.tool import ToolRepository


class TestAsyncDatabaseUrl:

    @pytest.mark.parametrize("raw, expected", [
        ("postgres://u:p@db/agentmesh", "postgresql+asyncpg://u:p@db/agentmesh"),
        ("postgresql://u:p@db/agentmesh", "postgresql+asyncpg://u:p@db/agentmesh"),
        ("postgresql+asyncpg://u:p@db/agentmesh", "postgresql+asyncpg://u:p@db/agentmesh"),
        ("sqlite+aiosqlite:///./agentmesh.db", "sqlite+aiosqlite:///./agentmesh.db"),
    ])
    def test_rewrite(self, raw: str, expected: str):
        assert async_database_url(raw) == expected


class TestSessionScope:

    @pytest.mark.asyncio
    async def test_commits_on_success(self, session_factory):
        async with get_session_ctx() as session:
            await ToolRepository(session).create("kept_tool", "Survives the commit.")

        async with session_factory() as session:
            assert await ToolRepository(session).count() == 1

    @pytest.mark.asyncio
    async def test_rolls_back_on_error(self, session_factory):
        with pytest.raises(RuntimeError):
            async with get_session_ctx() as session:
                await ToolRepository(session).create("lost_tool", "Rolled back on error.")
                raise RuntimeError("boom")

        async with session_factory() as session:
            assert await ToolRepository(session).count() == 0
