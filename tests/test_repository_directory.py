"""Tests for AgentRepository and ToolRepository.

Covers CRUD, first-run seeding and the copy semantics of tools embedded
in agents.
"""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from agentmesh.repositories.agent import DEFAULT_AGENTS, AgentRepository
from agentmesh.repositories.tool import DEFAULT_TOOLS, ToolRepository, tool_to_ref


async def _create_agent(session: AsyncSession, **overrides):
    fields = {
        "name": "Sentinel",
        "description": "Runs patch pipelines.",
        "type": "LLM-Powered",
        "icon": "wrench",
        "model": "gemini-pro",
        "prompt": "You patch things.",
    }
    fields.update(overrides)
    return await AgentRepository(session).create(**fields)


# ---------------------------------------------------------------------------
# Agents
# ---------------------------------------------------------------------------


class TestAgents:

    @pytest.mark.asyncio
    async def test_create_and_get(self, test_session: AsyncSession):
        agent = await _create_agent(test_session)
        fetched = await AgentRepository(test_session).get(agent.id)
        assert fetched.name == "Sentinel"
        assert fetched.tools == []

    @pytest.mark.asyncio
    async def test_icon_defaults_to_bot(self, test_session: AsyncSession):
        agent = await AgentRepository(test_session).create(
            name="Plain", description="No icon given.", type="Custom",
        )
        assert agent.icon == "bot"
        assert agent.model is None

    @pytest.mark.asyncio
    async def test_update_overwrites_in_place(self, test_session: AsyncSession):
        agent = await _create_agent(test_session)
        updated = await AgentRepository(test_session).update(
            agent.id, name="Sentinel v2", prompt="New prompt", tools=[],
        )
        assert updated.id == agent.id
        assert updated.name == "Sentinel v2"
        assert updated.prompt == "New prompt"

    @pytest.mark.asyncio
    async def test_update_missing(self, test_session: AsyncSession):
        assert await AgentRepository(test_session).update("nope", name="x") is None

    @pytest.mark.asyncio
    async def test_delete(self, test_session: AsyncSession):
        repo = AgentRepository(test_session)
        agent = await _create_agent(test_session)
        assert await repo.delete(agent.id) is True
        assert await repo.get(agent.id) is None
        assert await repo.delete(agent.id) is False


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


class TestTools:

    @pytest.mark.asyncio
    async def test_partial_update(self, test_session: AsyncSession):
        repo = ToolRepository(test_session)
        tool = await repo.create("security_scanner", "Scans for vulnerabilities.")
        updated = await repo.update(tool.id, description="Scans hosts for CVEs.")
        assert updated.name == "security_scanner"
        assert updated.description == "Scans hosts for CVEs."

    @pytest.mark.asyncio
    async def test_names_are_not_unique(self, test_session: AsyncSession):
        repo = ToolRepository(test_session)
        await repo.create("dup_tool", "First of two tools.")
        await repo.create("dup_tool", "Second of two tools.")
        assert await repo.count() == 2

    @pytest.mark.asyncio
    async def test_update_and_delete_missing(self, test_session: AsyncSession):
        repo = ToolRepository(test_session)
        assert await repo.update("nope", name="x") is None
        assert await repo.delete("nope") is False

    @pytest.mark.asyncio
    async def test_agent_keeps_its_copy_after_tool_edit(self, test_session: AsyncSession):
        tools = ToolRepository(test_session)
        tool = await tools.create("security_scanner", "Scans for vulnerabilities.")
        agent = await _create_agent(test_session, tools=[tool_to_ref(tool)])

        await tools.update(tool.id, name="renamed_scanner")
        await tools.delete(tool.id)

        fetched = await AgentRepository(test_session).get(agent.id)
        assert fetched.tools == [{
            "id": tool.id,
            "name": "security_scanner",
            "description": "Scans for vulnerabilities.",
        }]


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------


class TestSeeding:

    @pytest.mark.asyncio
    async def test_list_or_seed_agents_on_empty(self, test_session: AsyncSession):
        agents = await AgentRepository(test_session).list_or_seed()
        assert len(agents) == len(DEFAULT_AGENTS) == 5
        assert {a.name for a in agents} == {
            "Sentinel", "Validator", "Auditor", "Optimizer", "Gatekeeper",
        }
        gatekeeper = next(a for a in agents if a.name == "Gatekeeper")
        assert gatekeeper.type == "Custom"
        assert gatekeeper.model is None

    @pytest.mark.asyncio
    async def test_list_or_seed_tools_on_empty(self, test_session: AsyncSession):
        tools = await ToolRepository(test_session).list_or_seed()
        assert len(tools) == len(DEFAULT_TOOLS) == 7
        assert "mcp_integration_tool" in {t.name for t in tools}

    @pytest.mark.asyncio
    async def test_no_seed_when_not_empty(self, test_session: AsyncSession):
        repo = AgentRepository(test_session)
        await _create_agent(test_session, name="Mine")

        agents = await repo.list_or_seed()

        assert [a.name for a in agents] == ["Mine"]
        assert await repo.seed_defaults() == 0

    @pytest.mark.asyncio
    async def test_seed_twice_inserts_once(self, test_session: AsyncSession):
        repo = ToolRepository(test_session)
        assert await repo.seed_defaults() == 7
        assert await repo.seed_defaults() == 0
        assert await repo.count() == 7


# ---------------------------------------------------------------------------
# Concurrent first loads (known limitation: no lock around seeding)
# ---------------------------------------------------------------------------


def _hold_after_count(monkeypatch, repo_cls, sessions: int = 2) -> None:
    """Make each repo wait after its emptiness check until every session has checked."""
    original_count = repo_cls.count
    checked = []
    all_checked = asyncio.Event()

    async def count_then_wait(self):
        n = await original_count(self)
        checked.append(n)
        if len(checked) == sessions:
            all_checked.set()
        await all_checked.wait()
        return n

    monkeypatch.setattr(repo_cls, "count", count_then_wait)


async def _seed_side_by_side(factory, repo_cls):
    """Two first loads in separate sessions; both commit once both have seeded."""
    async with factory() as first, factory() as second:
        inserted = await asyncio.gather(
            repo_cls(first).seed_defaults(),
            repo_cls(second).seed_defaults(),
        )
        await first.commit()
        await second.commit()
    return inserted


class TestConcurrentSeeding:

    @pytest.mark.asyncio
    async def test_two_first_loads_double_seed_tools(self, session_factory, monkeypatch):
        _hold_after_count(monkeypatch, ToolRepository)

        inserted = await _seed_side_by_side(session_factory, ToolRepository)

        # Both sessions saw an empty catalogue, so both inserted the defaults
        assert inserted == [7, 7]
        async with session_factory() as session:
            tools = await ToolRepository(session).list()
        assert len(tools) == 14
        assert sorted(t.name for t in tools).count("security_scanner") == 2

    @pytest.mark.asyncio
    async def test_two_first_loads_double_seed_agents(self, session_factory, monkeypatch):
        _hold_after_count(monkeypatch, AgentRepository)

        inserted = await _seed_side_by_side(session_factory, AgentRepository)

        assert inserted == [5, 5]
        async with session_factory() as session:
            assert len(await AgentRepository(session).list()) == 10
