"""
Health check API schemas.
"""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness plus a summary of configuration problems."""

    status: str = Field(..., description="healthy or degraded", examples=["healthy"])
    version: str = Field(..., description="Service version", examples=["0.1.0"])
    timestamp: float = Field(..., description="Unix timestamp")
    active_sessions: int = Field(0, description="Open conversation WebSockets")
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class AgentSummary(BaseModel):
    """Presentation metadata for one agent (no persona text)."""

    id: str = Field(..., examples=["bob"])
    name: str = Field(..., examples=["Bob"])
    description: str = ""
    color: str = ""
    voice: str = Field(..., examples=["echo"])


class AgentsResponse(BaseModel):
    start_agent: str = Field(..., examples=["bob"])
    agents: list[AgentSummary]
