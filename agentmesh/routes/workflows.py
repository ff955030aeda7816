"""Workflow CRUD API endpoints."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_session
from ..models.schemas import WorkflowCreate, WorkflowResponse, WorkflowStatusUpdate
from ..repositories.agent import AgentRepository
from ..repositories.workflow import WorkflowRepository, resolve_steps

logger = logging.getLogger("agentmesh.routes.workflows")

router = APIRouter(prefix="/api/v2/workflows", tags=["workflows"])


@router.get("", response_model=List[WorkflowResponse])
async def list_workflows(session: AsyncSession = Depends(get_session)):
    """List workflows with agent steps resolved.

    Seeds the default agents and workflows on first load.
    """
    agent_repo = AgentRepository(session)
    repo = WorkflowRepository(session)

    agents = await agent_repo.list_or_seed()
    workflows = await repo.list_with_steps(agents)
    if not workflows:
        await repo.seed_defaults()
        workflows = await repo.list_with_steps(await agent_repo.list())
    return [WorkflowResponse(**wf) for wf in workflows]


@router.get("/{workflow_id}", response_model=WorkflowResponse)
async def get_workflow(workflow_id: str, session: AsyncSession = Depends(get_session)):
    workflow = await WorkflowRepository(session).get_with_steps(workflow_id)
    if not workflow:
        raise HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")
    return WorkflowResponse(**workflow)


@router.post("", response_model=WorkflowResponse, status_code=201)
async def create_workflow(payload: WorkflowCreate, session: AsyncSession = Depends(get_session)):
    """Create a workflow. Status always starts Idle."""
    repo = WorkflowRepository(session)
    workflow = await repo.create(
        name=payload.name,
        description=payload.description,
        type=payload.type,
        agent_ids=payload.agent_ids,
    )
    logger.info(f"Workflow created: {workflow.id} ({workflow.name})")
    return WorkflowResponse(**await repo.get_with_steps(workflow.id))


@router.patch("/{workflow_id}/status", response_model=WorkflowResponse)
async def set_workflow_status(
    workflow_id: str,
    payload: WorkflowStatusUpdate,
    session: AsyncSession = Depends(get_session),
):
    """Overwrite the workflow status without looking at its runs."""
    repo = WorkflowRepository(session)
    workflow = await repo.set_status(workflow_id, payload.status)
    if not workflow:
        raise HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")
    agents = await AgentRepository(session).list()
    return WorkflowResponse(**resolve_steps(workflow, {a.id: a for a in agents}))


@router.delete("/{workflow_id}", status_code=204)
async def delete_workflow(workflow_id: str, session: AsyncSession = Depends(get_session)):
    """Delete a workflow. Its runs are kept as history."""
    deleted = await WorkflowRepository(session).delete(workflow_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")
    logger.info(f"Workflow deleted: {workflow_id}")
