"""Repository layer for agent definitions.

Provides async CRUD operations for AgentModel plus first-run seeding.
Deleting an agent does not touch workflows that reference it.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from agentmesh.models.db import AgentModel

logger = logging.getLogger("agentmesh.repositories.agent")

DEFAULT_AGENTS: List[Dict[str, Any]] = [
    {"name": "Sentinel", "description": "Executes structured patch management pipelines.", "icon": "wrench",
     "type": "LLM-Powered", "model": "gemini-pro", "prompt": "You are a patch management expert."},
    {"name": "Validator", "description": "Systematically verifies backup integrity across systems.", "icon": "database-backup",
     "type": "LLM-Powered", "model": "gemini-pro", "prompt": "You are a data integrity specialist."},
    {"name": "Auditor", "description": "Runs automated security audits and compliance checks.", "icon": "shield-check",
     "type": "LLM-Powered", "model": "gemini-2.5-flash", "prompt": "You are a security compliance auditor."},
    {"name": "Optimizer", "description": "Analyzes cloud spend and suggests cost-saving measures.", "icon": "cpu",
     "type": "LLM-Powered", "model": "gemini-2.5-flash", "prompt": "You are a cloud cost optimization expert."},
    {"name": "Gatekeeper", "description": "Manages access control and identity verification.", "icon": "building-2",
     "type": "Custom", "prompt": "You handle identity and access management."},
]


class AgentRepository:
    """Data access layer for agents."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        name: str,
        description: str,
        type: str,
        icon: str = "bot",
        model: Optional[str] = None,
        prompt: Optional[str] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> AgentModel:
        """Create an agent.

        Args:
            name: Display name
            description: Short description
            type: "LLM-Powered" or "Custom"
            icon: Icon name (unknown names render as "bot")
            model: Model identifier
            prompt: Agent instruction
            tools: Full tool copies [{id, name, description}]

        Returns:
            Created AgentModel
        """
        agent = AgentModel(
            name=name,
            description=description,
            type=type,
            icon=icon,
            model=model,
            prompt=prompt,
            tools=list(tools or []),
        )
        self.session.add(agent)
        await self.session.flush()
        return agent

    async def get(self, agent_id: str) -> Optional[AgentModel]:
        result = await self.session.execute(
            select(AgentModel).where(AgentModel.id == agent_id)
        )
        return result.scalar_one_or_none()

    async def list(self) -> List[AgentModel]:
        result = await self.session.execute(
            select(AgentModel).order_by(AgentModel.created_at, AgentModel.name)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(AgentModel))
        return result.scalar() or 0

    async def update(self, agent_id: str, **document: Any) -> Optional[AgentModel]:
        """Overwrite an agent's fields in place with a form submission.

        Args:
            agent_id: Agent identifier
            **document: Fields to write (name, description, type, icon, model, prompt, tools)

        Returns:
            Updated AgentModel or None if not found
        """
        agent = await self.get(agent_id)
        if not agent:
            return None

        for key, value in document.items():
            if key == "tools":
                value = list(value or [])
            if hasattr(agent, key) and key != "id":
                setattr(agent, key, value)

        await self.session.flush()
        return agent

    async def delete(self, agent_id: str) -> bool:
        agent = await self.get(agent_id)
        if not agent:
            return False
        await self.session.delete(agent)
        await self.session.flush()
        return True

    async def seed_defaults(self) -> int:
        """Insert the default agents if the collection is empty.

        Not idempotent under concurrent first loads (no lock, no unique name).

        Returns:
            Number of agents inserted
        """
        if await self.count() > 0:
            return 0
        for entry in DEFAULT_AGENTS:
            self.session.add(AgentModel(tools=[], **entry))
        await self.session.flush()
        logger.info("Seeded %d default agents", len(DEFAULT_AGENTS))
        return len(DEFAULT_AGENTS)

    async def list_or_seed(self) -> List[AgentModel]:
        """List agents, seeding the defaults first when the collection is empty."""
        agents = await self.list()
        if not agents:
            await self.seed_defaults()
            agents = await self.list()
        return agents
