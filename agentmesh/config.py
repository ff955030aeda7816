"""AgentMesh configuration constants: single source of truth for infrastructure env vars."""

import os

# Database: sqlite+aiosqlite for development, postgres in production
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./agentmesh.db")
DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"

# Server binding, used by entrypoint / uvicorn
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))

# Comma-separated list of allowed dashboard origins
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:9002,http://127.0.0.1:9002")

# Hosted generative-AI provider (Gemini REST API)
GENAI_API_KEY = (
    os.getenv("GENAI_API_KEY")
    or os.getenv("GEMINI_API_KEY")
    or os.getenv("GOOGLE_API_KEY")
    or ""
)
GENAI_MODEL = os.getenv("GENAI_MODEL", "gemini-2.0-flash")
GENAI_API_BASE = os.getenv("GENAI_API_BASE", "https://generativelanguage.googleapis.com")
