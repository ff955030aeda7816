"""Repository layer for workflow runs and the run state machine.

A run starts Running and moves once to Completed (or Failed, which is a
valid stored status that nothing currently sets). Once a run has left
Running its record is history and further writes are refused.

The log list is written wholesale: ``append_log`` replaces the stored list
with the one the caller sends, so callers must resend earlier entries.
Two writers updating the same run concurrently lose each other's entries.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agentmesh.models.db import WorkflowRunModel

RUN_RUNNING = "Running"
RUN_COMPLETED = "Completed"
RUN_FAILED = "Failed"

SEED_LOG_MESSAGE = "Workflow run initiated."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def log_entry(message: str, at: Optional[datetime] = None) -> Dict[str, str]:
    """Build a run log entry ``{timestamp, message}``."""
    return {"timestamp": (at or _utcnow()).isoformat(), "message": message}


class RunStateError(Exception):
    """Raised when a write targets a run that is no longer Running."""

    def __init__(self, run_id: str, status: str):
        super().__init__(f"Run {run_id} is {status}; only Running runs accept updates")
        self.run_id = run_id
        self.status = status


class WorkflowRunRepository:
    """Data access layer for workflow runs."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def start_run(self, workflow_id: str) -> WorkflowRunModel:
        """Create a Running run with a single seed log entry.

        Does not change the parent workflow's status; the caller does that.
        """
        now = _utcnow()
        run = WorkflowRunModel(
            workflow_id=workflow_id,
            status=RUN_RUNNING,
            start_time=now,
            logs=[log_entry(SEED_LOG_MESSAGE, now)],
        )
        self.session.add(run)
        await self.session.flush()
        return run

    async def get(self, run_id: str) -> Optional[WorkflowRunModel]:
        result = await self.session.execute(
            select(WorkflowRunModel).where(WorkflowRunModel.id == run_id)
        )
        return result.scalar_one_or_none()

    async def list_for_workflow(self, workflow_id: str) -> List[WorkflowRunModel]:
        """All runs of a workflow, newest first."""
        result = await self.session.execute(
            select(WorkflowRunModel)
            .where(WorkflowRunModel.workflow_id == workflow_id)
            .order_by(WorkflowRunModel.start_time.desc())
        )
        return list(result.scalars().all())

    async def latest_for_workflow(self, workflow_id: str) -> Optional[WorkflowRunModel]:
        runs = await self.list_for_workflow(workflow_id)
        return runs[0] if runs else None

    async def append_log(
        self,
        run_id: str,
        entries: Iterable[Dict[str, Any]],
    ) -> Optional[WorkflowRunModel]:
        """Replace the run's log list with ``entries``.

        Args:
            run_id: Run identifier
            entries: The complete log list [{timestamp, message}], prior entries included

        Returns:
            Updated WorkflowRunModel or None if not found

        Raises:
            RunStateError: The run is no longer Running
        """
        run = await self.get(run_id)
        if not run:
            return None
        if run.status != RUN_RUNNING:
            raise RunStateError(run_id, run.status)

        run.logs = [dict(e) for e in entries]
        await self.session.flush()
        return run

    async def complete_run(
        self,
        run_id: str,
        end_time: Optional[datetime],
        final_logs: Iterable[Dict[str, Any]],
    ) -> Optional[WorkflowRunModel]:
        """Mark a run Completed, recording its end time and final log list.

        Raises:
            RunStateError: The run is no longer Running
        """
        run = await self.get(run_id)
        if not run:
            return None
        if run.status != RUN_RUNNING:
            raise RunStateError(run_id, run.status)

        run.status = RUN_COMPLETED
        run.end_time = end_time or _utcnow()
        run.logs = [dict(e) for e in final_logs]
        await self.session.flush()
        return run
