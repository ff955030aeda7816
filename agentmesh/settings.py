"""Runtime settings: tunable parameters for the run timeline and advisory flows.

All values read from environment variables with defaults matching the
dashboard's behaviour. Infrastructure config (database, provider key, CORS)
stays in agentmesh/config.py.
"""

from __future__ import annotations

import os
from typing import Tuple


def _int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


def _floats(key: str, default: Tuple[float, ...]) -> Tuple[float, ...]:
    raw = os.getenv(key)
    if not raw:
        return default
    return tuple(float(v) for v in raw.split(",") if v.strip())


# =====================================================================
# Simulated run timeline
# =====================================================================

# Seconds after invocation at which each of the three timeline steps fires
RUN_STEP_DELAYS = _floats("RUN_STEP_DELAYS", (1.0, 3.0, 5.0))

# Poll interval advertised to clients watching a Running workflow (seconds)
RUN_POLL_INTERVAL = _float("RUN_POLL_INTERVAL", 2.0)

# How long shutdown waits for in-flight timelines before cancelling them (seconds)
RUN_SHUTDOWN_GRACE = _float("RUN_SHUTDOWN_GRACE", 6.0)


# =====================================================================
# Generative AI (advisory flows)
# =====================================================================

GENAI_HTTP_TIMEOUT = _float("GENAI_HTTP_TIMEOUT", 60.0)
GENAI_MAX_RETRIES = _int("GENAI_MAX_RETRIES", 2)

# Base delay for exponential backoff (seconds)
GENAI_RETRY_BASE_DELAY = _float("GENAI_RETRY_BASE_DELAY", 2.0)

# Min delay when rate-limited (overrides base delay)
GENAI_RATE_LIMIT_MIN_DELAY = _float("GENAI_RATE_LIMIT_MIN_DELAY", 10.0)

GENAI_TEMPERATURE = _float("GENAI_TEMPERATURE", 0.4)
