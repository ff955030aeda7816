"""Tool catalogue CRUD API endpoints."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_session
from ..models.schemas import ToolCreate, ToolResponse, ToolUpdate
from ..repositories.tool import ToolRepository

logger = logging.getLogger("agentmesh.routes.tools")

router = APIRouter(prefix="/api/v2/tools", tags=["tools"])


def _tool_to_response(tool) -> ToolResponse:
    return ToolResponse(id=tool.id, name=tool.name, description=tool.description)


@router.get("", response_model=List[ToolResponse])
async def list_tools(session: AsyncSession = Depends(get_session)):
    """List tools, seeding the default catalogue on first load."""
    tools = await ToolRepository(session).list_or_seed()
    return [_tool_to_response(t) for t in tools]


@router.get("/{tool_id}", response_model=ToolResponse)
async def get_tool(tool_id: str, session: AsyncSession = Depends(get_session)):
    tool = await ToolRepository(session).get(tool_id)
    if not tool:
        raise HTTPException(status_code=404, detail=f"Tool '{tool_id}' not found")
    return _tool_to_response(tool)


@router.post("", response_model=ToolResponse, status_code=201)
async def create_tool(payload: ToolCreate, session: AsyncSession = Depends(get_session)):
    tool = await ToolRepository(session).create(name=payload.name, description=payload.description)
    logger.info(f"Tool created: {tool.id} ({tool.name})")
    return _tool_to_response(tool)


@router.patch("/{tool_id}", response_model=ToolResponse)
async def update_tool(
    tool_id: str,
    payload: ToolUpdate,
    session: AsyncSession = Depends(get_session),
):
    """Update a tool. Agents that embed a copy of it keep their copy."""
    updates = payload.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    tool = await ToolRepository(session).update(tool_id, **updates)
    if not tool:
        raise HTTPException(status_code=404, detail=f"Tool '{tool_id}' not found")
    return _tool_to_response(tool)


@router.delete("/{tool_id}", status_code=204)
async def delete_tool(tool_id: str, session: AsyncSession = Depends(get_session)):
    deleted = await ToolRepository(session).delete(tool_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Tool '{tool_id}' not found")
    logger.info(f"Tool deleted: {tool_id}")
