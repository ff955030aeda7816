"""FastAPI Application Entry Point.

Configures the app, lifespan, CORS, and includes all route modules.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import CORS_ORIGINS as _CORS_ORIGINS, GENAI_API_KEY
from .database import close_db, init_db
from .execution import drain_timelines
from .logging_config import configure_package_logging, get_api_logger

configure_package_logging()
logger = get_api_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage the database lifecycle."""
    await init_db()

    if not GENAI_API_KEY:
        logger.warning(
            "GENAI_API_KEY not set: /api/v2/advisor endpoints will answer 503. "
            "Set GENAI_API_KEY (or GEMINI_API_KEY) in the environment to enable them."
        )

    yield
    await drain_timelines()
    await close_db()


app = FastAPI(title="AgentMesh API", version="2.0.0", lifespan=lifespan)

# CORS configuration, comma-separated in CORS_ORIGINS
CORS_ORIGINS = [o.strip() for o in _CORS_ORIGINS.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
from .routes.agents import router as agents_router  # noqa: E402
from .routes.tools import router as tools_router  # noqa: E402
from .routes.workflows import router as workflows_router  # noqa: E402
from .routes.execution import router as execution_router  # noqa: E402
from .routes.organization import router as organization_router  # noqa: E402
from .routes.mcp_servers import router as mcp_servers_router  # noqa: E402
from .routes.auth import router as auth_router  # noqa: E402
from .routes.advisor import router as advisor_router  # noqa: E402

app.include_router(agents_router)
app.include_router(tools_router)
app.include_router(workflows_router)
app.include_router(execution_router)
app.include_router(organization_router)
app.include_router(mcp_servers_router)
app.include_router(auth_router)
app.include_router(advisor_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "ok"}
