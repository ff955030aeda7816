"""Agent CRUD API endpoints."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_session
from ..models.schemas import AgentCreate, AgentResponse, ToolRef
from ..repositories.agent import AgentRepository

logger = logging.getLogger("agentmesh.routes.agents")

router = APIRouter(prefix="/api/v2/agents", tags=["agents"])


def _agent_to_response(agent) -> AgentResponse:
    return AgentResponse(
        id=agent.id,
        name=agent.name,
        description=agent.description,
        type=agent.type,
        icon=agent.icon,
        model=agent.model,
        prompt=agent.prompt,
        tools=[ToolRef(**t) for t in agent.tools or []],
    )


def _document(payload: AgentCreate) -> dict:
    doc = payload.model_dump()
    doc["tools"] = [t.model_dump() for t in payload.tools]
    return doc


@router.get("", response_model=List[AgentResponse])
async def list_agents(session: AsyncSession = Depends(get_session)):
    """List agents, seeding the default agents on first load."""
    agents = await AgentRepository(session).list_or_seed()
    return [_agent_to_response(a) for a in agents]


@router.get("/{agent_id}", response_model=AgentResponse)
async def get_agent(agent_id: str, session: AsyncSession = Depends(get_session)):
    agent = await AgentRepository(session).get(agent_id)
    if not agent:
        raise HTTPException(status_code=404, detail=f"Agent '{agent_id}' not found")
    return _agent_to_response(agent)


@router.post("", response_model=AgentResponse, status_code=201)
async def create_agent(payload: AgentCreate, session: AsyncSession = Depends(get_session)):
    agent = await AgentRepository(session).create(**_document(payload))
    logger.info(f"Agent created: {agent.id} ({agent.name})")
    return _agent_to_response(agent)


@router.put("/{agent_id}", response_model=AgentResponse)
async def update_agent(
    agent_id: str,
    payload: AgentCreate,
    session: AsyncSession = Depends(get_session),
):
    """Overwrite an agent with a full form submission."""
    agent = await AgentRepository(session).update(agent_id, **_document(payload))
    if not agent:
        raise HTTPException(status_code=404, detail=f"Agent '{agent_id}' not found")
    return _agent_to_response(agent)


@router.delete("/{agent_id}", status_code=204)
async def delete_agent(agent_id: str, session: AsyncSession = Depends(get_session)):
    """Delete an agent. Workflows referencing it show "Unknown Agent" afterwards."""
    deleted = await AgentRepository(session).delete(agent_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Agent '{agent_id}' not found")
    logger.info(f"Agent deleted: {agent_id}")
