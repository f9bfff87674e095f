"""
Agent Configuration Loader
==========================

Loads agents from the modular folder structure:

    registries/agentstore/
        bob/agent.yaml
        bob/prompt.md
        alice/agent.yaml
        alice/prompt.md

Usage:
    from apps.homeplanner.backend.registries.agentstore.loader import discover_agents

    agents = discover_agents()
    bob = agents[AgentId.BOB]
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from apps.homeplanner.backend.registries.agentstore.base import (
    Agent,
    AgentConfigError,
    AgentId,
    VoiceConfig,
)
from utils.ml_logging import get_logger

logger = get_logger("agents.loader")

AGENTS_DIR = Path(__file__).parent


def load_prompt(agent_dir: Path, prompt_value: str) -> str:
    """
    Load prompt content.

    If prompt_value ends with .md or .txt, load from file.
    Otherwise, treat as inline prompt.
    """
    if not prompt_value:
        return ""

    if prompt_value.endswith((".md", ".txt")):
        prompt_file = agent_dir / prompt_value
        if not prompt_file.exists():
            raise AgentConfigError(f"Prompt file not found: {prompt_file}")
        return prompt_file.read_text(encoding="utf-8").strip()
    return prompt_value.strip()


def load_agent(agent_file: Path) -> Agent:
    """Load a single agent from its agent.yaml file."""
    with open(agent_file, encoding="utf-8") as f:
        raw: dict[str, Any] = yaml.safe_load(f) or {}

    agent_dir = agent_file.parent
    raw_id = raw.get("id") or agent_dir.name
    agent_id = AgentId.parse(raw_id)
    if agent_id is None:
        raise AgentConfigError(f"Unknown agent id '{raw_id}' in {agent_file}")

    prompt = load_prompt(agent_dir, raw.get("prompt", ""))
    if not prompt:
        raise AgentConfigError(f"Agent '{agent_id.value}' has no persona prompt")

    return Agent(
        id=agent_id,
        name=raw.get("name") or agent_id.value.title(),
        prompt=prompt,
        description=raw.get("description", ""),
        color=raw.get("color", ""),
        voice=VoiceConfig.from_dict(raw.get("voice")),
        handoff_greeting=(raw.get("handoff_greeting") or "").strip(),
    )


def discover_agents(agents_dir: Path = AGENTS_DIR) -> dict[AgentId, Agent]:
    """
    Load every agent folder under agents_dir.

    Returns:
        Agents keyed by id, in AgentId declaration order.

    Raises:
        AgentConfigError: If an agent is malformed, duplicated or missing.
    """
    found: dict[AgentId, Agent] = {}

    for agent_file in sorted(agents_dir.glob("*/agent.yaml")):
        agent = load_agent(agent_file)
        if agent.id in found:
            raise AgentConfigError(f"Duplicate agent id '{agent.id.value}' in {agent_file}")
        found[agent.id] = agent
        logger.debug("Loaded agent %s from %s", agent.name, agent_file.parent.name)

    missing = [agent_id.value for agent_id in AgentId if agent_id not in found]
    if missing:
        raise AgentConfigError(f"Missing agent definitions: {', '.join(missing)}")

    logger.info("Discovered agents: %s", ", ".join(a.name for a in found.values()))
    return {agent_id: found[agent_id] for agent_id in AgentId}


@lru_cache(maxsize=1)
def get_agents() -> dict[AgentId, Agent]:
    """Process-wide agent table loaded from the packaged definitions."""
    return discover_agents()


def get_agent(agent_id: AgentId | str) -> Agent:
    """Get a single packaged agent by id."""
    parsed = AgentId.parse(agent_id)
    if parsed is None:
        raise AgentConfigError(f"Unknown agent id '{agent_id}'")
    return get_agents()[parsed]
