"""
Transfer Intent Detection
=========================

Maps free text (a user utterance or a model reply) plus the currently active
agent to an optional transfer target, using an ordered table of regular
expressions per candidate agent.

Rules per target, in evaluation order:
    1. "transfer (me) to <name>" (plus "go back"/"switch back" for bob)
    2. "talk/speak to/with <name>"
    3. "get/bring/switch (me) (to) <name>"
    4. bare name followed by whitespace and optional "please"/"now"
    5. the literal control token ``[TRANSFER:<id>]``

The bare-name rule is deliberately permissive: any mention of the other
agent's name followed by a space triggers a transfer.
"""

from __future__ import annotations

import re

from apps.homeplanner.backend.registries.agentstore.base import AgentId

_FLAGS = re.IGNORECASE

TRANSFER_RULES: dict[AgentId, tuple[re.Pattern[str], ...]] = {
    AgentId.ALICE: (
        re.compile(r"transfer(?:\s+me)?\s+to\s+alice", _FLAGS),
        re.compile(r"(?:talk|speak)\s+(?:to|with)\s+alice", _FLAGS),
        re.compile(r"(?:get|bring|switch)\s+(?:me\s+)?(?:to\s+)?alice", _FLAGS),
        re.compile(r"alice\s+(?:please|now)?", _FLAGS),
        re.compile(r"\[TRANSFER:alice\]", _FLAGS),
    ),
    AgentId.BOB: (
        re.compile(
            r"(?:go\s+back|transfer(?:\s+me)?|switch(?:\s+me)?)\s+(?:back\s+)?to\s+bob", _FLAGS
        ),
        re.compile(r"(?:talk|speak)\s+(?:to|with)\s+bob", _FLAGS),
        re.compile(r"(?:get|bring|switch)\s+(?:me\s+)?(?:to\s+)?bob", _FLAGS),
        re.compile(r"bob\s+(?:please|now)?", _FLAGS),
        re.compile(r"\[TRANSFER:bob\]", _FLAGS),
    ),
}


def detect_transfer_intent(text: str, current_agent: AgentId) -> AgentId | None:
    """
    Return the agent the text asks to transfer to, or None.

    Candidates are every agent except ``current_agent``, evaluated in AgentId
    declaration order; within a candidate the first matching rule wins. Asking
    for the agent that is already active is a no-op, not an error.
    """
    if not text:
        return None

    for target in AgentId:
        if target == current_agent:
            continue
        for pattern in TRANSFER_RULES[target]:
            if pattern.search(text):
                return target
    return None
