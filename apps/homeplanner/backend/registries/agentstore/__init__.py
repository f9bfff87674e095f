"""
Agent Registry
==============

Static table of the two cooperating agents (intake planner and technical
specialist): identity, display metadata, voice and persona instructions.

Usage:
    from apps.homeplanner.backend.registries.agentstore import AgentId, get_agents

    agents = get_agents()
    print(agents[AgentId.BOB].name)   # "Bob"
"""

from apps.homeplanner.backend.registries.agentstore.base import (
    Agent,
    AgentConfigError,
    AgentId,
    VoiceConfig,
)
from apps.homeplanner.backend.registries.agentstore.loader import (
    AGENTS_DIR,
    discover_agents,
    get_agent,
    get_agents,
    load_agent,
)

__all__ = [
    "Agent",
    "AgentConfigError",
    "AgentId",
    "VoiceConfig",
    "AGENTS_DIR",
    "discover_agents",
    "get_agent",
    "get_agents",
    "load_agent",
]
