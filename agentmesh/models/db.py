"""SQLAlchemy ORM models for AgentMesh.

Each table stands in for one document collection. Embedded arrays (agent
tools, workflow steps, run logs, tenant customers and user ids) are JSON
columns and there are no foreign keys between collections:

- tenants: MSP account boundary with customers and denormalized user ids
- users: every non-admin user
- platform_admins: Platform Admin users (separate collection)
- agents: agent definitions with embedded tool copies
- tools: tool catalogue
- workflows: workflow definitions referencing agents by id
- workflow_runs: one record per workflow invocation with its log list
- mcp_servers: MCP server integrations
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import Mapped, mapped_column

from agentmesh.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _gen_uuid() -> str:
    return str(uuid.uuid4())


# ─── Organization ───────────────────────────────────────────────────


class TenantModel(Base):
    """MSP tenant.

    ``users`` holds user ids only; the user records live in ``users``.
    """

    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_gen_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    customers: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list, comment="[{id, name}]",
    )
    users: Mapped[List[str]] = mapped_column(
        JSON, nullable=False, default=list, comment="User ids (denormalized)",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )


class _UserColumns:
    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_gen_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    role: Mapped[str] = mapped_column(
        String(32), nullable=False,
        comment="Platform Admin | MSP Admin | MSP Engineer | Client User",
    )
    avatar: Mapped[str] = mapped_column(Text, nullable=False, default="")
    tenant_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    customer: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, comment="Customer scope for Client Users",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )


class UserModel(_UserColumns, Base):
    """MSP Admin, MSP Engineer and Client User records."""

    __tablename__ = "users"

    __table_args__ = (
        Index("ix_users_email", "email"),
        Index("ix_users_tenant_id", "tenant_id"),
    )


class PlatformAdminModel(_UserColumns, Base):
    """Platform Admin records, kept apart from every other role."""

    __tablename__ = "platform_admins"

    __table_args__ = (
        Index("ix_platform_admins_email", "email"),
    )


# ─── Agents & Tools ─────────────────────────────────────────────────


class AgentModel(Base):
    """Agent definition.

    ``tools`` stores full copies of tool records, so later edits to a tool
    never reach agents that already embed it.
    """

    __tablename__ = "agents"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_gen_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[str] = mapped_column(
        String(32), nullable=False, comment="LLM-Powered | Custom",
    )
    icon: Mapped[str] = mapped_column(String(64), nullable=False, default="bot")
    model: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tools: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list, comment="[{id, name, description}]",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )


class ToolModel(Base):
    """Tool catalogue entry. Names are not unique."""

    __tablename__ = "tools"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_gen_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )


class McpServerModel(Base):
    """MCP server integration."""

    __tablename__ = "mcp_servers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_gen_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )


# ─── Workflow Definition ─────────────────────────────────────────────


class WorkflowModel(Base):
    """Workflow definition.

    ``status`` is a coarse workflow-level field written directly by callers;
    it is never derived from the workflow's runs.
    """

    __tablename__ = "workflows"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_gen_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[str] = mapped_column(
        String(32), nullable=False, comment="Sequential | Parallel",
    )
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="Idle",
        comment="Idle | Running | Completed",
    )
    agent_ids: Mapped[List[str]] = mapped_column(
        JSON, nullable=False, default=list, comment="Ordered agent ids (steps)",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )

    __table_args__ = (
        Index("ix_workflows_status", "status"),
    )


# ─── Workflow Run ────────────────────────────────────────────────────


class WorkflowRunModel(Base):
    """Record of a single workflow invocation.

    ``logs`` is written wholesale on every update: [{timestamp, message}].
    """

    __tablename__ = "workflow_runs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_gen_uuid)
    workflow_id: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="Running",
        comment="Running | Completed | Failed",
    )
    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    end_time: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    logs: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list,
    )

    __table_args__ = (
        Index("ix_runs_workflow_id", "workflow_id"),
        Index("ix_runs_start_time", "start_time"),
    )
