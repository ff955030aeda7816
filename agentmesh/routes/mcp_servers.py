"""MCP server integration endpoints."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_session
from ..models.schemas import McpServerCreate, McpServerResponse
from ..repositories.mcp_server import McpServerRepository

logger = logging.getLogger("agentmesh.routes.mcp_servers")

router = APIRouter(prefix="/api/v2/mcp-servers", tags=["mcp-servers"])


def _server_to_response(server) -> McpServerResponse:
    return McpServerResponse(
        id=server.id, name=server.name, url=server.url, description=server.description,
    )


@router.get("", response_model=List[McpServerResponse])
async def list_servers(session: AsyncSession = Depends(get_session)):
    servers = await McpServerRepository(session).list()
    return [_server_to_response(s) for s in servers]


@router.post("", response_model=McpServerResponse, status_code=201)
async def create_server(payload: McpServerCreate, session: AsyncSession = Depends(get_session)):
    server = await McpServerRepository(session).create(
        name=payload.name, url=payload.url, description=payload.description,
    )
    logger.info(f"MCP server registered: {server.id} ({server.url})")
    return _server_to_response(server)


@router.delete("/{server_id}", status_code=204)
async def delete_server(server_id: str, session: AsyncSession = Depends(get_session)):
    deleted = await McpServerRepository(session).delete(server_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"MCP server '{server_id}' not found")
