"""Repository layer for MCP server integrations."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agentmesh.models.db import McpServerModel


class McpServerRepository:
    """Data access layer for MCP servers."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, name: str, url: str, description: str) -> McpServerModel:
        server = McpServerModel(name=name, url=url, description=description)
        self.session.add(server)
        await self.session.flush()
        return server

    async def get(self, server_id: str) -> Optional[McpServerModel]:
        result = await self.session.execute(
            select(McpServerModel).where(McpServerModel.id == server_id)
        )
        return result.scalar_one_or_none()

    async def list(self) -> List[McpServerModel]:
        result = await self.session.execute(
            select(McpServerModel).order_by(McpServerModel.created_at)
        )
        return list(result.scalars().all())

    async def delete(self, server_id: str) -> bool:
        server = await self.get(server_id)
        if not server:
            return False
        await self.session.delete(server)
        await self.session.flush()
        return True
