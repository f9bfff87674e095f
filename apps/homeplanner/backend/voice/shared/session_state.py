"""
Conversation State
==================

The single shared conversation for a session: the ordered message history
replayed to the reasoning service on every turn, the display transcript, and
the active-agent pointer.

Both sequences are append-only. The active agent's persona is never stored
as a message; it is derived from ``active_agent`` when a reasoning request is
built, so a handoff changes which persona governs future turns without
rewriting history.

Usage:
    state = ConversationState()
    state.append_user("Hi Bob, I want to remodel my kitchen.")
    state.append_assistant("Great! What's your budget?", AgentId.BOB)
    previous = state.switch_agent(AgentId.ALICE)
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from apps.homeplanner.backend.registries.agentstore.base import AgentId

USER_SPEAKER = "user"


class Role(str, Enum):
    """Message author role."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Message:
    """One turn in the shared history."""

    role: Role
    content: str
    agent_id: AgentId | None = None
    created_at: int = field(default_factory=_now_ms)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        """
        Parse a wire message (``{"role", "content", "agentId"?}``).

        Raises:
            ValueError: On an unknown role or non-string content.
        """
        role = Role(data.get("role"))
        content = data.get("content")
        if not isinstance(content, str):
            raise ValueError("message content must be a string")
        return cls(role=role, content=content, agent_id=AgentId.parse(data.get("agentId")))


@dataclass(frozen=True)
class TranscriptEntry:
    """Display-oriented projection of one utterance."""

    speaker: str  # "user" or an agent id value
    text: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: int = field(default_factory=_now_ms)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "speaker": self.speaker,
            "text": self.text,
            "timestamp": self.timestamp,
        }


class ConversationState:
    """
    Ordered history, transcript and active agent for one session.

    Creation timestamps are strictly increasing within a store so that
    ``messages[n]`` always precedes ``messages[n + 1]``, even when two appends
    land within the same millisecond.
    """

    def __init__(self, active_agent: AgentId = AgentId.BOB) -> None:
        self._active_agent = active_agent
        self._messages: list[Message] = []
        self._transcript: list[TranscriptEntry] = []
        self._last_ts = 0

    @property
    def active_agent(self) -> AgentId:
        return self._active_agent

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def transcript(self) -> tuple[TranscriptEntry, ...]:
        return tuple(self._transcript)

    def _next_timestamp(self) -> int:
        self._last_ts = max(_now_ms(), self._last_ts + 1)
        return self._last_ts

    def append_user(self, text: str) -> Message:
        """Record a user utterance in history and transcript."""
        ts = self._next_timestamp()
        message = Message(role=Role.USER, content=text, created_at=ts)
        self._messages.append(message)
        self._transcript.append(TranscriptEntry(speaker=USER_SPEAKER, text=text, timestamp=ts))
        return message

    def append_assistant(self, text: str, agent_id: AgentId) -> Message:
        """Record an agent utterance (reply or handoff introduction)."""
        ts = self._next_timestamp()
        message = Message(role=Role.ASSISTANT, content=text, agent_id=agent_id, created_at=ts)
        self._messages.append(message)
        self._transcript.append(TranscriptEntry(speaker=agent_id.value, text=text, timestamp=ts))
        return message

    def switch_agent(self, target: AgentId) -> AgentId:
        """Point the session at a new agent; returns the previous one."""
        previous = self._active_agent
        self._active_agent = target
        return previous

    def snapshot(self) -> tuple[Message, ...]:
        """Read-only snapshot handed to gateways."""
        return tuple(self._messages)
