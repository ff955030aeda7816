"""Repository layer for the tool catalogue.

Provides async CRUD operations for ToolModel plus first-run seeding.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from agentmesh.models.db import ToolModel

logger = logging.getLogger("agentmesh.repositories.tool")

DEFAULT_TOOLS: List[Dict[str, str]] = [
    {"name": "cloud_provisioning_tool", "description": "Provisions and manages cloud resources on AWS, Azure, and GCP."},
    {"name": "cost_optimization_tool", "description": "Analyzes cloud spend and suggests cost-saving measures."},
    {"name": "security_scanner", "description": "Scans for vulnerabilities and compliance issues."},
    {"name": "ad_management_tool", "description": "Manages Active Directory users, groups, and permissions."},
    {"name": "network_config_tool", "description": "Configures network devices like routers and firewalls."},
    {"name": "backup_integrity_checker", "description": "Verifies the integrity of system backups."},
    {"name": "mcp_integration_tool", "description": "Integrates with external services via Model Context Protocol (MCP)."},
]


def tool_to_ref(tool: ToolModel) -> Dict[str, str]:
    """Full copy of a tool, the shape agents embed."""
    return {"id": tool.id, "name": tool.name, "description": tool.description}


class ToolRepository:
    """Data access layer for tools."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, name: str, description: str) -> ToolModel:
        tool = ToolModel(name=name, description=description)
        self.session.add(tool)
        await self.session.flush()
        return tool

    async def get(self, tool_id: str) -> Optional[ToolModel]:
        result = await self.session.execute(
            select(ToolModel).where(ToolModel.id == tool_id)
        )
        return result.scalar_one_or_none()

    async def list(self) -> List[ToolModel]:
        result = await self.session.execute(
            select(ToolModel).order_by(ToolModel.created_at, ToolModel.name)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(ToolModel))
        return result.scalar() or 0

    async def update(
        self,
        tool_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Optional[ToolModel]:
        """Partial update. Agents holding a copy of this tool are not touched."""
        tool = await self.get(tool_id)
        if not tool:
            return None

        if name is not None:
            tool.name = name
        if description is not None:
            tool.description = description

        await self.session.flush()
        return tool

    async def delete(self, tool_id: str) -> bool:
        tool = await self.get(tool_id)
        if not tool:
            return False
        await self.session.delete(tool)
        await self.session.flush()
        return True

    async def seed_defaults(self) -> int:
        """Insert the default tool set if the collection is empty.

        The emptiness check and the inserts are not guarded against a
        concurrent caller doing the same, so two first loads racing on an
        empty collection can both seed.

        Returns:
            Number of tools inserted
        """
        if await self.count() > 0:
            return 0
        for entry in DEFAULT_TOOLS:
            self.session.add(ToolModel(**entry))
        await self.session.flush()
        logger.info("Seeded %d default tools", len(DEFAULT_TOOLS))
        return len(DEFAULT_TOOLS)

    async def list_or_seed(self) -> List[ToolModel]:
        """List tools, seeding the defaults first when the collection is empty."""
        tools = await self.list()
        if not tools:
            await self.seed_defaults()
            tools = await self.list()
        return tools
