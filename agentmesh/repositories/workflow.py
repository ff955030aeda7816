"""Repository layer for workflow definitions.

Provides async CRUD operations for WorkflowModel, agent-step resolution,
and first-run seeding of the default workflows.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from agentmesh.models.db import AgentModel, WorkflowModel
from agentmesh.repositories.agent import AgentRepository

logger = logging.getLogger("agentmesh.repositories.workflow")

UNKNOWN_AGENT_NAME = "Unknown Agent"
DEFAULT_STEP_ICON = "bot"
DEFAULT_WORKFLOW_ICON = "wrench"

# Default workflows reference default agents by name
DEFAULT_WORKFLOWS: List[Dict[str, Any]] = [
    {
        "name": "Automated Patch Management",
        "description": "Sequentially runs Sentinel to patch and Validator to check.",
        "type": "Sequential",
        "agents": ["Sentinel", "Validator"],
    },
    {
        "name": "Cloud Security Audit",
        "description": "Runs a parallel security audit and access check.",
        "type": "Parallel",
        "agents": ["Auditor", "Gatekeeper"],
    },
    {
        "name": "Cost Optimization & Reporting",
        "description": "Finds and reports on cloud cost-saving opportunities.",
        "type": "Sequential",
        "agents": ["Optimizer"],
    },
]


def _step_for(agent: Optional[AgentModel]) -> Dict[str, str]:
    if agent is None:
        return {"name": UNKNOWN_AGENT_NAME, "icon": DEFAULT_STEP_ICON}
    return {"name": agent.name, "icon": agent.icon or DEFAULT_STEP_ICON}


def resolve_steps(
    workflow: WorkflowModel,
    agents_by_id: Dict[str, AgentModel],
) -> Dict[str, Any]:
    """Attach display steps and an icon to a workflow.

    Unknown agent ids resolve to "Unknown Agent" instead of failing. The
    workflow icon is the first step's icon.
    """
    steps = [_step_for(agents_by_id.get(agent_id)) for agent_id in workflow.agent_ids or []]
    return {
        "id": workflow.id,
        "name": workflow.name,
        "description": workflow.description,
        "type": workflow.type,
        "status": workflow.status,
        "agent_ids": list(workflow.agent_ids or []),
        "steps": steps,
        "icon": steps[0]["icon"] if steps else DEFAULT_WORKFLOW_ICON,
    }


class WorkflowRepository:
    """Data access layer for workflows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        name: str,
        description: str,
        type: str,
        agent_ids: Iterable[str],
    ) -> WorkflowModel:
        """Create a workflow. New workflows always start Idle."""
        workflow = WorkflowModel(
            name=name,
            description=description,
            type=type,
            status="Idle",
            agent_ids=list(agent_ids),
        )
        self.session.add(workflow)
        await self.session.flush()
        return workflow

    async def get(self, workflow_id: str) -> Optional[WorkflowModel]:
        result = await self.session.execute(
            select(WorkflowModel).where(WorkflowModel.id == workflow_id)
        )
        return result.scalar_one_or_none()

    async def list(self) -> List[WorkflowModel]:
        result = await self.session.execute(
            select(WorkflowModel).order_by(WorkflowModel.created_at, WorkflowModel.name)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(WorkflowModel))
        return result.scalar() or 0

    async def list_with_steps(self, all_agents: Iterable[AgentModel]) -> List[Dict[str, Any]]:
        """List workflows with steps resolved against an already-fetched agent list."""
        agents_by_id = {a.id: a for a in all_agents}
        return [resolve_steps(wf, agents_by_id) for wf in await self.list()]

    async def get_with_steps(self, workflow_id: str) -> Optional[Dict[str, Any]]:
        """Get one workflow, looking each referenced agent up individually."""
        workflow = await self.get(workflow_id)
        if not workflow:
            return None

        agent_repo = AgentRepository(self.session)
        agents_by_id: Dict[str, AgentModel] = {}
        for agent_id in workflow.agent_ids or []:
            agent = await agent_repo.get(agent_id)
            if agent is not None:
                agents_by_id[agent_id] = agent
        return resolve_steps(workflow, agents_by_id)

    async def set_status(self, workflow_id: str, status: str) -> Optional[WorkflowModel]:
        """Overwrite the workflow status.

        No check against the current status or the workflow's runs, so a
        workflow can be marked Completed with no run at all.
        """
        workflow = await self.get(workflow_id)
        if not workflow:
            return None
        workflow.status = status
        await self.session.flush()
        return workflow

    async def delete(self, workflow_id: str) -> bool:
        """Delete a workflow. Its runs are left in place."""
        workflow = await self.get(workflow_id)
        if not workflow:
            return False
        await self.session.delete(workflow)
        await self.session.flush()
        return True

    async def seed_defaults(self) -> int:
        """Seed the default workflows if the collection is empty.

        Seeds the default agents first so the workflows can reference them by
        name. Workflows whose agents cannot be found are skipped.

        Returns:
            Number of workflows inserted
        """
        if await self.count() > 0:
            return 0

        agent_repo = AgentRepository(self.session)
        await agent_repo.seed_defaults()
        agents = await agent_repo.list()
        if not agents:
            logger.error("No agents found to seed workflows.")
            return 0

        ids_by_name = {a.name: a.id for a in agents}
        inserted = 0
        for entry in DEFAULT_WORKFLOWS:
            agent_ids = [ids_by_name[n] for n in entry["agents"] if n in ids_by_name]
            if not agent_ids:
                continue
            self.session.add(WorkflowModel(
                name=entry["name"],
                description=entry["description"],
                type=entry["type"],
                status="Idle",
                agent_ids=agent_ids,
            ))
            inserted += 1
        await self.session.flush()
        logger.info("Seeded %d default workflows", inserted)
        return inserted
