"""
Session Event Surface
=====================

Protocols the orchestrator pushes events through, so the conversation core
never touches a transport (WebSocket, test harness) directly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from apps.homeplanner.backend.registries.agentstore.base import Agent
    from apps.homeplanner.backend.voice.shared.session_state import TranscriptEntry
    from apps.homeplanner.backend.voice.speech_cascade.state_machine import TurnState


class SessionEventSink(Protocol):
    """Receives user-visible session events from the orchestrator."""

    async def emit_status(self, message: str) -> None:
        """Status line under the push-to-talk control changed."""
        ...

    async def emit_transcript(self, entry: TranscriptEntry) -> None:
        """A transcript entry was appended."""
        ...

    async def emit_agent_change(self, agent: Agent, previous: Agent | None) -> None:
        """The active agent changed."""
        ...

    async def emit_state(self, state: TurnState) -> None:
        """The turn state machine moved."""
        ...


class NullEventSink:
    """Event sink that discards everything (REST paths, headless use)."""

    async def emit_status(self, message: str) -> None:
        return None

    async def emit_transcript(self, entry: TranscriptEntry) -> None:
        return None

    async def emit_agent_change(self, agent: Agent, previous: Agent | None) -> None:
        return None

    async def emit_state(self, state: TurnState) -> None:
        return None


__all__ = ["NullEventSink", "SessionEventSink"]
