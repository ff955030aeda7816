"""Logging setup for the AgentMesh backend.

Module loggers are named ``agentmesh.<area>`` and propagate to the
``agentmesh`` package logger. The API and the run timeline get their own
files as well.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

# Log directory, configurable via LOG_DIR env var for Docker
LOG_DIR = Path(os.getenv("LOG_DIR", str(Path(__file__).parent.parent / "logs")))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

_FILE_FORMAT = "%(asctime)s [%(name)s] [%(levelname)s] %(message)s"
_CONSOLE_FORMAT = "%(asctime)s [%(name)s] %(message)s"

# Prevent duplicate handlers
_configured_loggers: set[str] = set()


def _handler(handler: logging.Handler, fmt: str) -> logging.Handler:
    handler.setLevel(LOG_LEVEL)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def setup_logger(name: str, filename: str, propagate: bool = False) -> logging.Logger:
    """Attach a file handler and a console handler to a logger, once.

    Args:
        name: Logger name (e.g., 'agentmesh', 'agentmesh.runner')
        filename: File under LOG_DIR (e.g., 'runner.log')
        propagate: Also pass records up to parent loggers

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    if name in _configured_loggers:
        return logger

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    logger.setLevel(LOG_LEVEL)
    logger.propagate = propagate
    logger.addHandler(_handler(logging.FileHandler(LOG_DIR / filename, encoding="utf-8"), _FILE_FORMAT))
    logger.addHandler(_handler(logging.StreamHandler(), _CONSOLE_FORMAT))

    _configured_loggers.add(name)
    return logger


def configure_package_logging() -> logging.Logger:
    """Route every ``agentmesh.*`` module logger to agentmesh.log and the console."""
    return setup_logger("agentmesh", "agentmesh.log")


def get_api_logger() -> logging.Logger:
    """Logger for API lifecycle events."""
    return setup_logger("agentmesh.api", "api.log")


def get_runner_logger() -> logging.Logger:
    """Logger for the simulated run timeline."""
    return setup_logger("agentmesh.runner", "runner.log")
