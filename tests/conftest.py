import asyncio
import os
from collections.abc import Iterable
from unittest.mock import AsyncMock, MagicMock

import pytest

# Disable telemetry for tests
os.environ["DISABLE_CLOUD_TELEMETRY"] = "true"

# Model credentials are never used (every SDK call is faked) but keep
# validate_settings quiet for the app-level tests.
os.environ.setdefault("OPENAI_API_KEY", "test-key")

from apps.homeplanner.backend.registries.agentstore.base import AgentId  # noqa: E402
from apps.homeplanner.backend.registries.agentstore.loader import discover_agents  # noqa: E402
from apps.homeplanner.backend.src.services.reasoning import ReasoningReply  # noqa: E402
from apps.homeplanner.backend.voice.speech_cascade.orchestrator import (  # noqa: E402
    CascadeOrchestrator,
)
from apps.homeplanner.backend.voice.tts.playback import TTSPlayback  # noqa: E402


# ═══════════════════════════════════════════════════════════════════════════════
# TEST DOUBLES
# ═══════════════════════════════════════════════════════════════════════════════


class FakeReasoning:
    """Scripted reasoning gateway; each item is a reply, a string or an exception."""

    def __init__(self, replies: Iterable[object] = ()) -> None:
        self.replies = list(replies)
        self.calls: list[tuple[tuple, object]] = []

    async def complete(self, history, agent):
        self.calls.append((tuple(history), agent))
        item = self.replies.pop(0) if self.replies else ReasoningReply("Sounds good.")
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, str):
            return ReasoningReply(item)
        return item


class FakeAudioOutput:
    """
    Audio sink that either finishes immediately or holds playback open until
    ``release`` or the cancel token fires.
    """

    def __init__(self, *, auto_finish: bool = True) -> None:
        self.auto_finish = auto_finish
        self.played: list[bytes] = []
        self.stops = 0
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def play(self, audio: bytes, cancel_event: asyncio.Event) -> bool:
        self.played.append(audio)
        self.started.set()
        if self.auto_finish:
            return not cancel_event.is_set()

        waiters = {
            asyncio.create_task(self.release.wait()),
            asyncio.create_task(cancel_event.wait()),
        }
        try:
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in waiters:
                waiter.cancel()
        return not cancel_event.is_set()

    async def stop(self) -> None:
        self.stops += 1


class RecordingSink:
    """Event sink that keeps everything the orchestrator emits."""

    def __init__(self) -> None:
        self.statuses: list[str] = []
        self.transcripts: list = []
        self.agent_changes: list[tuple[AgentId, AgentId | None]] = []
        self.states: list = []

    async def emit_status(self, message: str) -> None:
        self.statuses.append(message)

    async def emit_transcript(self, entry) -> None:
        self.transcripts.append(entry)

    async def emit_agent_change(self, agent, previous) -> None:
        self.agent_changes.append((agent.id, previous.id if previous is not None else None))

    async def emit_state(self, state) -> None:
        self.states.append(state)


# ═══════════════════════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def agents():
    """The packaged Bob and Alice definitions."""
    return discover_agents()


@pytest.fixture
def reasoning():
    return FakeReasoning()


@pytest.fixture
def stt():
    """Speech-to-text gateway double."""
    gateway = MagicMock()
    gateway.transcribe = AsyncMock(return_value="Hi Bob, I want to remodel my kitchen.")
    return gateway


@pytest.fixture
def tts():
    """Text-to-speech gateway double."""
    gateway = MagicMock()
    gateway.synthesize = AsyncMock(return_value=b"ID3-fake-mp3")
    return gateway


@pytest.fixture
def audio_output():
    return FakeAudioOutput()


@pytest.fixture
def held_output():
    """Audio sink whose playback lasts until released or cancelled."""
    return FakeAudioOutput(auto_finish=False)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_orchestrator(agents, reasoning, stt, tts, audio_output, sink):
    """Factory so tests can swap a single collaborator."""

    def _make(**overrides) -> CascadeOrchestrator:
        output = overrides.pop("output", audio_output)
        options = {
            "agents": agents,
            "reasoning": reasoning,
            "stt": stt,
            "playback": TTSPlayback(overrides.pop("tts", tts), output),
            "events": sink,
            "start_agent": AgentId.BOB,
            "min_audio_bytes": 1000,
            "status_revert_seconds": 0.01,
        }
        options.update(overrides)
        return CascadeOrchestrator(**options)

    return _make


@pytest.fixture
def orchestrator(make_orchestrator):
    return make_orchestrator()
