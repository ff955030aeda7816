"""Tests for agent, tool and MCP server routes.

Covers:
- GET/POST/PUT/DELETE /api/v2/agents
- GET/POST/PATCH/DELETE /api/v2/tools
- GET/POST/DELETE /api/v2/mcp-servers
"""

from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from agentmesh.repositories.agent import AgentRepository


AGENT_PAYLOAD = {
    "name": "Sentinel",
    "description": "Executes structured patch management pipelines.",
    "type": "LLM-Powered",
    "icon": "wrench",
    "model": "gemini-pro",
    "prompt": "You are a patch management expert.",
    "tools": [],
}


async def _create_agent(client: AsyncClient, **overrides) -> dict:
    resp = await client.post("/api/v2/agents", json={**AGENT_PAYLOAD, **overrides})
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Agents
# ---------------------------------------------------------------------------


class TestAgentRoutes:

    @pytest.mark.asyncio
    async def test_first_list_seeds_defaults(self, client: AsyncClient):
        resp = await client.get("/api/v2/agents")
        assert resp.status_code == 200
        assert len(resp.json()) == 5

        again = await client.get("/api/v2/agents")
        assert len(again.json()) == 5

    @pytest.mark.asyncio
    async def test_create_and_get(self, client: AsyncClient):
        created = await _create_agent(client)
        resp = await client.get(f"/api/v2/agents/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["name"] == "Sentinel"
        assert resp.json()["icon"] == "wrench"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["name", "description", "model", "prompt"])
    async def test_blank_field_rejected_without_write(
        self, client: AsyncClient, test_session: AsyncSession, field: str,
    ):
        resp = await client.post("/api/v2/agents", json={**AGENT_PAYLOAD, field: "  "})
        assert resp.status_code == 422
        assert await AgentRepository(test_session).count() == 0

    @pytest.mark.asyncio
    async def test_missing_type_rejected(self, client: AsyncClient, test_session: AsyncSession):
        payload = {k: v for k, v in AGENT_PAYLOAD.items() if k != "type"}
        resp = await client.post("/api/v2/agents", json=payload)
        assert resp.status_code == 422
        assert await AgentRepository(test_session).count() == 0

    @pytest.mark.asyncio
    async def test_update_in_place(self, client: AsyncClient):
        created = await _create_agent(client)
        tool = {"id": "t1", "name": "security_scanner", "description": "Scans for vulnerabilities."}

        resp = await client.put(
            f"/api/v2/agents/{created['id']}",
            json={**AGENT_PAYLOAD, "name": "Sentinel v2", "tools": [tool]},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["id"] == created["id"]
        assert body["name"] == "Sentinel v2"
        assert body["tools"] == [tool]

    @pytest.mark.asyncio
    async def test_update_missing(self, client: AsyncClient):
        resp = await client.put("/api/v2/agents/nope", json=AGENT_PAYLOAD)
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_delete(self, client: AsyncClient):
        created = await _create_agent(client)
        assert (await client.delete(f"/api/v2/agents/{created['id']}")).status_code == 204
        assert (await client.get(f"/api/v2/agents/{created['id']}")).status_code == 404
        assert (await client.delete(f"/api/v2/agents/{created['id']}")).status_code == 404


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


class TestToolRoutes:

    @pytest.mark.asyncio
    async def test_first_list_seeds_defaults(self, client: AsyncClient):
        resp = await client.get("/api/v2/tools")
        assert resp.status_code == 200
        assert len(resp.json()) == 7

    @pytest.mark.asyncio
    async def test_create_update_delete(self, client: AsyncClient):
        resp = await client.post("/api/v2/tools", json={
            "name": "ticket_router", "description": "Routes tickets to the right queue.",
        })
        assert resp.status_code == 201
        tool_id = resp.json()["id"]

        resp = await client.patch(f"/api/v2/tools/{tool_id}", json={"name": "ticket_dispatcher"})
        assert resp.status_code == 200
        assert resp.json()["name"] == "ticket_dispatcher"
        assert resp.json()["description"] == "Routes tickets to the right queue."

        assert (await client.delete(f"/api/v2/tools/{tool_id}")).status_code == 204
        assert (await client.get(f"/api/v2/tools/{tool_id}")).status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"name": "Bad-Name", "description": "Has an invalid name."},
        {"name": "x", "description": "Name is too short."},
        {"name": "short_desc", "description": "Too short"},
    ])
    async def test_invalid_tool_rejected(self, client: AsyncClient, payload: dict):
        assert (await client.post("/api/v2/tools", json=payload)).status_code == 422

    @pytest.mark.asyncio
    async def test_empty_patch_rejected(self, client: AsyncClient):
        resp = await client.post("/api/v2/tools", json={
            "name": "ticket_router", "description": "Routes tickets to the right queue.",
        })
        resp = await client.patch(f"/api/v2/tools/{resp.json()['id']}", json={})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_agent_copy_survives_tool_edit(self, client: AsyncClient):
        tool = (await client.post("/api/v2/tools", json={
            "name": "ticket_router", "description": "Routes tickets to the right queue.",
        })).json()
        agent = await _create_agent(client, tools=[tool])

        await client.patch(f"/api/v2/tools/{tool['id']}", json={"name": "renamed_router"})

        fetched = (await client.get(f"/api/v2/agents/{agent['id']}")).json()
        assert fetched["tools"][0]["name"] == "ticket_router"


# ---------------------------------------------------------------------------
# MCP servers
# ---------------------------------------------------------------------------


class TestMcpServerRoutes:

    @pytest.mark.asyncio
    async def test_register_list_delete(self, client: AsyncClient):
        resp = await client.post("/api/v2/mcp-servers", json={
            "name": "Ticketing",
            "url": "https://mcp.example.com/ticketing",
            "description": "Ticketing system integration.",
        })
        assert resp.status_code == 201
        server = resp.json()
        assert server["url"] == "https://mcp.example.com/ticketing"

        listed = (await client.get("/api/v2/mcp-servers")).json()
        assert [s["id"] for s in listed] == [server["id"]]

        assert (await client.delete(f"/api/v2/mcp-servers/{server['id']}")).status_code == 204
        assert (await client.get("/api/v2/mcp-servers")).json() == []
        assert (await client.delete(f"/api/v2/mcp-servers/{server['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_url_rejected(self, client: AsyncClient):
        resp = await client.post("/api/v2/mcp-servers", json={
            "name": "Ticketing", "url": "not a url", "description": "Ticketing system integration.",
        })
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_url_stored_as_submitted(self, client: AsyncClient):
        resp = await client.post("/api/v2/mcp-servers", json={
            "name": "Tickets", "url": "https://mcp.example.com", "description": "Bare host.",
        })
        assert resp.status_code == 201
        assert resp.json()["url"] == "https://mcp.example.com"

        listed = (await client.get("/api/v2/mcp-servers")).json()
        assert [s["url"] for s in listed] == ["https://mcp.example.com"]

    @pytest.mark.asyncio
    async def test_non_http_scheme_rejected(self, client: AsyncClient):
        resp = await client.post("/api/v2/mcp-servers", json={
            "name": "Tickets", "url": "ftp://mcp.example.com", "description": "Wrong scheme.",
        })
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
