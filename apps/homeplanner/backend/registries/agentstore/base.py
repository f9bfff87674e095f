"""
Agent Base Types
================

Immutable agent identities shared by the intent detector, the reasoning
gateway and the cascade orchestrator.

Agents are declared in ``registries/agentstore/<id>/agent.yaml`` and loaded
once at process start by :mod:`.loader`; they are never created or destroyed
at runtime.

Usage:
    from apps.homeplanner.backend.registries.agentstore import AgentId, discover_agents

    agents = discover_agents()
    intro = agents[AgentId.ALICE].render_handoff_greeting(agents[AgentId.BOB])
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from jinja2 import Template
from utils.ml_logging import get_logger

logger = get_logger("agents.base")


class AgentConfigError(ValueError):
    """Raised when agent definitions are missing or malformed."""


class AgentId(str, Enum):
    """
    The two agent identities.

    Declaration order is the fixed evaluation order used by the intent
    detector when looking for a transfer target.
    """

    ALICE = "alice"
    BOB = "bob"

    @classmethod
    def parse(cls, value: str | AgentId | None) -> AgentId | None:
        """Case-insensitive lookup; returns None for unknown ids."""
        if isinstance(value, AgentId):
            return value
        if not value:
            return None
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class VoiceConfig:
    """Voice configuration for TTS."""

    name: str = "alloy"
    speed: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> VoiceConfig:
        """Create VoiceConfig from dict (YAML parsing)."""
        if not data:
            return cls()
        speed = data.get("speed")
        return cls(
            name=data.get("name", cls.name),
            speed=float(speed) if speed is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "speed": self.speed}


@dataclass(frozen=True)
class Agent:
    """
    Immutable agent identity.

    Attributes:
        id: One of the enumerated agent ids
        name: Display name ("Bob", "Alice")
        prompt: Persona instructions sent as the leading system directive
        description: Short role description (presentation only)
        color: UI accent color (presentation only)
        voice: TTS voice selector for this agent
        handoff_greeting: Jinja2 template spoken when this agent takes over;
            receives ``previous_agent`` (display name) and ``agent_name``
    """

    id: AgentId
    name: str
    prompt: str
    description: str = ""
    color: str = ""
    voice: VoiceConfig = field(default_factory=VoiceConfig)
    handoff_greeting: str = ""

    def render_handoff_greeting(self, previous: Agent) -> str:
        """
        Render the fixed introduction this agent speaks when taking over.

        Args:
            previous: The agent that was active before the handoff

        Returns:
            Rendered introduction referencing the previous agent by name.
        """
        if not self.handoff_greeting:
            return f"Hi, I'm {self.name}. I'm picking up from {previous.name}."

        template = Template(self.handoff_greeting)
        rendered = template.render(agent_name=self.name, previous_agent=previous.name)
        return " ".join(rendered.split())

    def to_summary(self) -> dict[str, Any]:
        """Public, presentation-only view (no persona text)."""
        return {
            "id": self.id.value,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "voice": self.voice.name,
        }
