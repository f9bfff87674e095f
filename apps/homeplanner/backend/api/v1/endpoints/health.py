"""
Health Endpoints
================

Liveness and agent discovery. No dependency probes: the model services are
called lazily per turn and report their own failures to the user.
"""

import time

from apps.homeplanner.backend.api.v1.schemas.health import (
    AgentsResponse,
    AgentSummary,
    HealthResponse,
)
from apps.homeplanner.backend.config import validate_settings
from fastapi import APIRouter, Request
from utils.ml_logging import get_logger

logger = get_logger("v1.health")

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Basic liveness check plus configuration warnings."""
    report = validate_settings()
    return HealthResponse(
        status="degraded" if report["errors"] else "healthy",
        version=request.app.version,
        timestamp=time.time(),
        active_sessions=getattr(request.app.state, "active_sessions", 0),
        warnings=report["warnings"],
        errors=report["errors"],
    )


@router.get("/agents", response_model=AgentsResponse)
async def list_agents(request: Request) -> AgentsResponse:
    """Agent ids, names, colors and voices in detection order."""
    agents = request.app.state.agents
    return AgentsResponse(
        start_agent=request.app.state.start_agent.value,
        agents=[AgentSummary(**agent.to_summary()) for agent in agents.values()],
    )
