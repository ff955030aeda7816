"""Workflow invocation and run polling endpoints.

Invoking a workflow commits a Running run and then schedules the simulated
timeline in the background. Clients poll ``GET /workflows/{id}/runs`` while
the latest run is Running; there is no push channel.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_session, get_session_ctx
from ..execution import schedule_timeline
from ..models.schemas import (
    LogEntry,
    RunCompleteRequest,
    RunInvokeResponse,
    RunLogsUpdate,
    WorkflowRunResponse,
)
from ..repositories.workflow import WorkflowRepository
from ..repositories.workflow_run import RUN_RUNNING, RunStateError, WorkflowRunRepository
from ..settings import RUN_POLL_INTERVAL

logger = logging.getLogger("agentmesh.routes.execution")

router = APIRouter(prefix="/api/v2", tags=["execution"])


def _iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _run_to_response(run) -> WorkflowRunResponse:
    return WorkflowRunResponse(
        id=run.id,
        workflow_id=run.workflow_id,
        status=run.status,
        start_time=_iso(run.start_time),
        end_time=_iso(run.end_time),
        logs=[LogEntry(**e) for e in run.logs or []],
    )


def _parse_end_time(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Invalid end_time: {raw}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ---------------------------------------------------------------------------
# Invocation
# ---------------------------------------------------------------------------

@router.post("/workflows/{workflow_id}/run", response_model=RunInvokeResponse, status_code=202)
async def run_workflow(workflow_id: str):
    """Start a run of a workflow.

    Marks the workflow Running, records a new run with its seed log entry
    and schedules the simulated timeline once both writes are committed.
    """
    async with get_session_ctx() as session:
        repo = WorkflowRepository(session)
        workflow = await repo.get(workflow_id)
        if not workflow:
            raise HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")

        await repo.set_status(workflow_id, "Running")
        run = await WorkflowRunRepository(session).start_run(workflow_id)
        run_id = run.id

    schedule_timeline(workflow_id, run_id)
    logger.info(f"Workflow {workflow_id}: run {run_id} started")

    return RunInvokeResponse(
        run_id=run_id,
        workflow_id=workflow_id,
        status=RUN_RUNNING,
        poll_interval=RUN_POLL_INTERVAL,
    )


@router.get("/workflows/{workflow_id}/runs", response_model=List[WorkflowRunResponse])
async def list_workflow_runs(workflow_id: str, session: AsyncSession = Depends(get_session)):
    """Runs of a workflow, newest first. Runs outlive their workflow."""
    runs = await WorkflowRunRepository(session).list_for_workflow(workflow_id)
    return [_run_to_response(r) for r in runs]


# ---------------------------------------------------------------------------
# Run records
# ---------------------------------------------------------------------------

@router.get("/runs/{run_id}", response_model=WorkflowRunResponse)
async def get_run(run_id: str, session: AsyncSession = Depends(get_session)):
    run = await WorkflowRunRepository(session).get(run_id)
    if not run:
        raise HTTPException(status_code=404, detail=f"Run '{run_id}' not found")
    return _run_to_response(run)


@router.put("/runs/{run_id}/logs", response_model=WorkflowRunResponse)
async def replace_run_logs(
    run_id: str,
    payload: RunLogsUpdate,
    session: AsyncSession = Depends(get_session),
):
    """Replace the run's log list with the full list in the request."""
    try:
        run = await WorkflowRunRepository(session).append_log(
            run_id, [e.model_dump() for e in payload.logs],
        )
    except RunStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not run:
        raise HTTPException(status_code=404, detail=f"Run '{run_id}' not found")
    return _run_to_response(run)


@router.post("/runs/{run_id}/complete", response_model=WorkflowRunResponse)
async def complete_run(
    run_id: str,
    payload: RunCompleteRequest,
    session: AsyncSession = Depends(get_session),
):
    end_time = _parse_end_time(payload.end_time)
    try:
        run = await WorkflowRunRepository(session).complete_run(
            run_id, end_time, [e.model_dump() for e in payload.logs],
        )
    except RunStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not run:
        raise HTTPException(status_code=404, detail=f"Run '{run_id}' not found")
    logger.info(f"Run {run_id}: completed by client")
    return _run_to_response(run)
