"""
Embedded Transfer Directives
============================

Agents request a handoff by embedding ``[TRANSFER:<agentId>]`` in their reply.
The token is machine-readable only: every token, for every agent, is removed
before the reply is shown or spoken.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from apps.homeplanner.backend.registries.agentstore.base import AgentId

TRANSFER_TOKEN_PATTERN = re.compile(
    r"\[TRANSFER:(" + "|".join(re.escape(a.value) for a in AgentId) + r")\]",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ParsedReply:
    """A model reply split into speakable text and an optional handoff directive."""

    text: str
    directive: AgentId | None = None


def parse_transfer_directive(raw: str, current: AgentId | None = None) -> ParsedReply:
    """
    Extract the handoff target from a reply and strip all transfer tokens.

    The directive is the first token naming an agent other than ``current``;
    tokens for the agent already speaking are removed but never chosen.

    Returns:
        ParsedReply with whitespace-trimmed text when any token was found, or
        the raw text untouched and ``directive=None`` when none was.
    """
    tokens = [AgentId(m.group(1).lower()) for m in TRANSFER_TOKEN_PATTERN.finditer(raw)]
    if not tokens:
        return ParsedReply(text=raw)

    directive = next((t for t in tokens if t is not current), None)
    cleaned = TRANSFER_TOKEN_PATTERN.sub("", raw).strip()
    return ParsedReply(text=cleaned, directive=directive)
