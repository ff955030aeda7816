"""Pydantic schemas for the AgentMesh API.

Request models carry the dashboard form rules, so an invalid submission is
rejected with 422 before any repository call is made.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, HttpUrl, TypeAdapter, ValidationError, field_validator

AgentType = Literal["LLM-Powered", "Custom"]
WorkflowType = Literal["Sequential", "Parallel"]
WorkflowStatus = Literal["Idle", "Running", "Completed"]
RunStatus = Literal["Running", "Completed", "Failed"]
UserRole = Literal["Platform Admin", "MSP Admin", "MSP Engineer", "Client User"]
SignInRole = Literal["Platform Admin", "MSP Staff"]


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


# --- Tools ---


class ToolRef(BaseModel):
    """Full tool copy as embedded in an agent."""
    id: str
    name: str
    description: str


class ToolCreate(BaseModel):
    name: str = Field(..., min_length=2, pattern=r"^[a-z_]+$", description="snake_case name")
    description: str = Field(..., min_length=10)


class ToolUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, pattern=r"^[a-z_]+$")
    description: Optional[str] = Field(None, min_length=10)


class ToolResponse(ToolRef):
    pass


# --- Agents ---


class AgentCreate(BaseModel):
    """Agent form submission (create and full update)."""
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    type: AgentType
    icon: str = "bot"
    model: str = Field(..., min_length=1)
    prompt: str = Field(..., min_length=1)
    tools: List[ToolRef] = Field(default_factory=list)

    @field_validator("name", "description", "model", "prompt")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        return _not_blank(value)


class AgentResponse(BaseModel):
    id: str
    name: str
    description: str
    type: AgentType
    icon: str
    model: Optional[str] = None
    prompt: Optional[str] = None
    tools: List[ToolRef] = Field(default_factory=list)


# --- Workflows ---


class WorkflowCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=255)
    description: str = Field(..., min_length=10)
    type: WorkflowType
    agent_ids: List[str] = Field(..., min_length=1, description="Ordered agent ids")


class WorkflowStatusUpdate(BaseModel):
    status: WorkflowStatus


class WorkflowStep(BaseModel):
    name: str
    icon: str


class WorkflowResponse(BaseModel):
    id: str
    name: str
    description: str
    type: WorkflowType
    status: WorkflowStatus
    agent_ids: List[str]
    steps: List[WorkflowStep]
    icon: str


# --- Workflow runs ---


class LogEntry(BaseModel):
    timestamp: str = Field(..., description="ISO 8601")
    message: str


class RunLogsUpdate(BaseModel):
    """Full replacement log list for a run."""
    logs: List[LogEntry]


class RunCompleteRequest(BaseModel):
    end_time: Optional[str] = Field(None, description="ISO 8601, defaults to now")
    logs: List[LogEntry]


class WorkflowRunResponse(BaseModel):
    id: str
    workflow_id: str
    status: RunStatus
    start_time: str
    end_time: Optional[str] = None
    logs: List[LogEntry]


class RunInvokeResponse(BaseModel):
    run_id: str
    workflow_id: str
    status: RunStatus
    poll_interval: float


# --- Organization ---


class Customer(BaseModel):
    id: str
    name: str


class TenantCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    customer_names: List[str] = Field(..., min_length=1)

    @field_validator("customer_names")
    @classmethod
    def validate_customer_names(cls, names: List[str]) -> List[str]:
        if any(not n.strip() for n in names):
            raise ValueError("Customer name cannot be empty.")
        return names


class UserCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    role: UserRole
    tenant_id: Optional[str] = None
    customer: Optional[str] = None


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    email: Optional[str] = Field(None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    role: Optional[UserRole] = None
    tenant_id: Optional[str] = None
    customer: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    avatar: str
    tenant_id: Optional[str] = None
    customer: Optional[str] = None


class TenantResponse(BaseModel):
    id: str
    name: str
    customers: List[Customer]
    users: List[UserResponse]


# --- MCP servers ---


_HTTP_URL = TypeAdapter(HttpUrl)


class McpServerCreate(BaseModel):
    """MCP server registration. The URL is stored exactly as submitted."""
    name: str = Field(..., min_length=2, max_length=255)
    url: str = Field(..., description="http(s) URL")
    description: str = Field(..., min_length=10)

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        value = value.strip()
        try:
            _HTTP_URL.validate_python(value)
        except ValidationError:
            raise ValueError("must be a valid http(s) URL")
        return value


class McpServerResponse(BaseModel):
    id: str
    name: str
    url: str
    description: str


# --- Sign-in ---


class RoleCheckRequest(BaseModel):
    email: str
    role: SignInRole


class SignInErrorRequest(BaseModel):
    code: Optional[str] = None
    message: Optional[str] = None


class SignInErrorResponse(BaseModel):
    message: str
