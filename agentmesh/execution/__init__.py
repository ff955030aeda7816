"""Workflow invocation: the simulated run timeline."""

from .timeline import drain_timelines, pending_timelines, run_timeline, schedule_timeline

__all__ = ["drain_timelines", "pending_timelines", "run_timeline", "schedule_timeline"]
