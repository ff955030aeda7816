"""Simulated run timeline.

Invoking a workflow does no agent work. Three timed steps write canned log
lines to the run and finally mark the run and the workflow Completed:

    ~1s  "Starting pre-patch validation..."
    ~3s  "Pre-patch validation successful."
    ~5s  "Workflow completed successfully." (run + workflow -> Completed)

Every step opens its own session and resends the full log list it wants
stored. The timeline is fire-and-forget and only shutdown cancels it. A
step whose run or workflow has been deleted logs a warning and the
timeline moves on to the next step.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Set

from agentmesh.database import get_session_ctx
from agentmesh.logging_config import get_runner_logger
from agentmesh.repositories.workflow import WorkflowRepository
from agentmesh.repositories.workflow_run import (
    RunStateError,
    WorkflowRunRepository,
    log_entry,
)
from agentmesh.settings import RUN_SHUTDOWN_GRACE, RUN_STEP_DELAYS

logger = get_runner_logger()

STEP_MESSAGES = (
    "Starting pre-patch validation...",
    "Pre-patch validation successful.",
    "Workflow completed successfully.",
)

# Strong references so scheduled timelines are not garbage collected mid-flight
_pending: Set[asyncio.Task] = set()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def _write_logs(run_id: str, logs: List[Dict[str, str]]) -> bool:
    """Overwrite the run's log list. Returns True on success."""
    try:
        async with get_session_ctx() as session:
            run = await WorkflowRunRepository(session).append_log(run_id, logs)
        if run is None:
            logger.warning(f"Run {run_id}: gone, dropped {len(logs)} log entries")
            return False
        logger.info(f"Run {run_id}: logs -> {len(logs)} entries")
        return True
    except RunStateError as e:
        logger.warning(f"Run {run_id}: {e}")
        return False
    except Exception as e:
        logger.error(f"Run {run_id}: Failed to write logs: {e}")
        return False


async def _finish(workflow_id: str, run_id: str, logs: List[Dict[str, str]]) -> bool:
    """Mark the workflow and the run Completed. Returns True on success."""
    try:
        async with get_session_ctx() as session:
            workflow = await WorkflowRepository(session).set_status(workflow_id, "Completed")
            if workflow is None:
                logger.warning(f"Run {run_id}: workflow {workflow_id} gone")
            run = await WorkflowRunRepository(session).complete_run(run_id, _utcnow(), logs)
        if run is None:
            logger.warning(f"Run {run_id}: gone, cannot complete")
            return False
        logger.info(f"Run {run_id}: Completed")
        return True
    except RunStateError as e:
        logger.warning(f"Run {run_id}: {e}")
        return False
    except Exception as e:
        logger.error(f"Run {run_id}: Failed to complete: {e}")
        return False


async def run_timeline(
    workflow_id: str,
    run_id: str,
    delays: Optional[Sequence[float]] = None,
) -> bool:
    """Play the three-step timeline for a run.

    Args:
        workflow_id: Parent workflow, set Completed on the last step
        run_id: Run receiving the log writes
        delays: Seconds after start for each step (defaults to RUN_STEP_DELAYS)

    Returns:
        True if the final step completed the run
    """
    d1, d2, d3 = tuple(delays if delays is not None else RUN_STEP_DELAYS)[:3]

    await asyncio.sleep(d1)
    first = log_entry(STEP_MESSAGES[0])
    await _write_logs(run_id, [first])

    await asyncio.sleep(max(0.0, d2 - d1))
    second = log_entry(STEP_MESSAGES[1])
    await _write_logs(run_id, [first, second])

    await asyncio.sleep(max(0.0, d3 - d2))
    return await _finish(workflow_id, run_id, [first, second, log_entry(STEP_MESSAGES[2])])


def schedule_timeline(
    workflow_id: str,
    run_id: str,
    delays: Optional[Sequence[float]] = None,
) -> asyncio.Task:
    """Start the timeline in the background and return its task."""
    task = asyncio.get_running_loop().create_task(
        run_timeline(workflow_id, run_id, delays),
        name=f"run-timeline-{run_id}",
    )
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    logger.info(f"Run {run_id}: timeline scheduled for workflow {workflow_id}")
    return task


def pending_timelines() -> List[asyncio.Task]:
    """Timelines that have not finished yet."""
    return [t for t in _pending if not t.done()]


async def drain_timelines(timeout: float = RUN_SHUTDOWN_GRACE) -> int:
    """Wait for in-flight timelines, then cancel whatever is still running.

    Called before the engine is disposed so no step writes to a closed
    database.

    Returns:
        Number of timelines cancelled
    """
    pending = pending_timelines()
    if not pending:
        return 0

    logger.info(f"Waiting up to {timeout:.1f}s for {len(pending)} run timeline(s)")
    _, still_running = await asyncio.wait(pending, timeout=timeout)
    for task in still_running:
        task.cancel()
    if still_running:
        await asyncio.gather(*still_running, return_exceptions=True)
        logger.warning(f"Cancelled {len(still_running)} unfinished run timeline(s) at shutdown")
    return len(still_running)
