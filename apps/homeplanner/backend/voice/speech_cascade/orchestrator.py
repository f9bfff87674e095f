"""
Cascade Orchestrator
====================

Push-to-talk turn pipeline for the two-agent renovation assistant:

    record -> transcribe -> (handoff intent | reason) -> speak -> (handoff) -> idle

The orchestrator is the only writer of :class:`ConversationState` and the only
caller of :meth:`TurnStateMachine.transition`. Each turn runs as one asyncio
task; the machine's guards are the sole concurrency control, so at most one
pipeline is ever in flight per session.

Ordering rules:
    - The user's utterance is appended to history before any awaited call that
      depends on it, so a failed turn loses only the agent's reply.
    - The active agent is read from the conversation at the moment it is
      needed, never from a value captured when the turn started.
    - Only Speaking is cancellable. Starting a recording while an agent is
      speaking cancels playback and moves straight to Recording; the
      interrupted pipeline then returns without touching state.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine, Mapping
from typing import Any

from apps.homeplanner.backend.config import (
    DEFAULT_RECORDING_CONTENT_TYPE,
    DEFAULT_RECORDING_FILENAME,
    MIN_AUDIO_BYTES,
    STATUS_MIC_DENIED,
    STATUS_NOT_UNDERSTOOD,
    STATUS_PROCESSING,
    STATUS_REASONING_FAILED,
    STATUS_RECORDING,
    STATUS_REVERT_SECONDS,
    STATUS_SPEAKING,
    STATUS_THINKING,
    STATUS_TRANSCRIBING,
    STATUS_TRANSCRIPTION_FAILED,
    STATUS_TRANSFERRING,
)
from apps.homeplanner.backend.registries.agentstore.base import Agent, AgentId
from apps.homeplanner.backend.src.services.reasoning import ReasoningError, ReasoningGateway
from apps.homeplanner.backend.voice.handoffs.intent import detect_transfer_intent
from apps.homeplanner.backend.voice.shared.base import NullEventSink, SessionEventSink
from apps.homeplanner.backend.voice.shared.session_state import ConversationState, Message
from apps.homeplanner.backend.voice.shared.status import StatusReporter
from apps.homeplanner.backend.voice.speech_cascade.state_machine import (
    TurnState,
    TurnStateMachine,
)
from apps.homeplanner.backend.voice.tts.playback import TTSPlayback
from opentelemetry import trace
from opentelemetry.trace import SpanKind
from src.speech.speech_to_text import SpeechToTextGateway, TranscriptionError
from utils.ml_logging import get_logger
from utils.session_context import get_short_id, set_active_agent

logger = get_logger("voice.speech_cascade.orchestrator")
tracer = trace.get_tracer(__name__)


class CascadeOrchestrator:
    """
    Turn-taking driver for one conversation session.

    Args:
        agents: Agent table keyed by id (both agents required)
        reasoning: Completion gateway used for agent replies
        stt: Speech-to-text gateway for recorded utterances
        playback: Cancellable TTS playback for agent speech
        events: Transport-facing event sink
        start_agent: Agent active when the session opens
        min_audio_bytes: Recordings below this size are discarded as noise
        status_revert_seconds: Delay before a transient status reverts to idle
    """

    def __init__(
        self,
        *,
        agents: Mapping[AgentId, Agent],
        reasoning: ReasoningGateway,
        stt: SpeechToTextGateway,
        playback: TTSPlayback,
        events: SessionEventSink | None = None,
        start_agent: AgentId = AgentId.BOB,
        min_audio_bytes: int = MIN_AUDIO_BYTES,
        status_revert_seconds: float = STATUS_REVERT_SECONDS,
    ) -> None:
        missing = [a.value for a in AgentId if a not in agents]
        if missing:
            raise ValueError(f"Missing agents: {', '.join(missing)}")

        self.agents = dict(agents)
        self.conversation = ConversationState(active_agent=start_agent)
        self.machine = TurnStateMachine()
        self._reasoning = reasoning
        self._stt = stt
        self._playback = playback
        self._events: SessionEventSink = events or NullEventSink()
        self._min_audio_bytes = min_audio_bytes
        self._pipeline: asyncio.Task | None = None
        # Bumped on every barge-in; a continuation holding an older value is stale.
        self._generation = 0
        self._closed = False

        self.status = StatusReporter(self._events.emit_status, revert_after=status_revert_seconds)
        self.machine.add_listener(self._on_transition)

    # ------------------------------------------------------------------ #
    # Read-only views
    # ------------------------------------------------------------------ #
    @property
    def state(self) -> TurnState:
        return self.machine.state

    @property
    def active_agent(self) -> Agent:
        return self.agents[self.conversation.active_agent]

    @property
    def messages(self) -> tuple[Message, ...]:
        return self.conversation.messages

    @property
    def pipeline(self) -> asyncio.Task | None:
        """The turn task currently in flight, if any."""
        if self._pipeline is not None and self._pipeline.done():
            return None
        return self._pipeline

    # ------------------------------------------------------------------ #
    # Session lifecycle
    # ------------------------------------------------------------------ #
    async def start(self) -> None:
        """Publish the opening agent, state and status to the transport."""
        agent = self.active_agent
        set_active_agent(agent.name)
        await self._events.emit_agent_change(agent, None)
        await self._events.emit_state(self.machine.state)
        await self.status.reset()

    async def close(self) -> None:
        """Stop playback, abandon any in-flight turn and go idle."""
        if self._closed:
            return
        self._closed = True
        self._generation += 1
        await self._playback.cancel()

        task = self._pipeline
        self._pipeline = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        self.status.close()
        await self.machine.reset("session closed")
        logger.info("[%s] Orchestrator closed", get_short_id())

    # ------------------------------------------------------------------ #
    # User actions
    # ------------------------------------------------------------------ #
    async def start_recording(self) -> bool:
        """
        Push-to-talk pressed.

        Allowed from Idle, and from Speaking as a barge-in. Ignored while a
        transcription, reasoning call or handoff is in flight.

        Returns:
            True if the machine is now Recording because of this call.
        """
        if self._closed:
            return False

        state = self.machine.state
        if state is TurnState.IDLE:
            await self.machine.transition(TurnState.RECORDING, "record start")
        elif state is TurnState.SPEAKING:
            await self._barge_in()
            await self.machine.transition(TurnState.RECORDING, "barge-in")
        else:
            logger.debug("[%s] Record start ignored in state %s", get_short_id(), state.value)
            return False

        await self.status.set(STATUS_RECORDING)
        return True

    async def stop_recording(
        self,
        audio: bytes,
        *,
        filename: str = DEFAULT_RECORDING_FILENAME,
        content_type: str = DEFAULT_RECORDING_CONTENT_TYPE,
    ) -> asyncio.Task | None:
        """
        Push-to-talk released with the recorded clip.

        Returns:
            The turn task, or None when the clip was discarded or no recording
            was in progress.
        """
        if self.machine.state is not TurnState.RECORDING:
            logger.debug(
                "[%s] Record stop ignored in state %s", get_short_id(), self.machine.state.value
            )
            return None

        if len(audio) < self._min_audio_bytes:
            logger.info(
                "[%s] Discarding %d-byte recording (below %d)",
                get_short_id(),
                len(audio),
                self._min_audio_bytes,
            )
            await self.machine.transition(TurnState.IDLE, "recording too short")
            await self.status.reset()
            return None

        await self.machine.transition(TurnState.TRANSCRIBING, "record stop")
        await self.status.set(STATUS_PROCESSING)
        return self._spawn(self._voice_turn(audio, filename, content_type), "voice-turn")

    async def submit_text(self, text: str) -> asyncio.Task | None:
        """
        Typed utterance; enters the pipeline where a finished transcription would.

        While an agent is speaking the typed text interrupts it first.

        Returns:
            The turn task, or None when the text was empty or the session is busy.
        """
        if self._closed or not text or not text.strip():
            return None

        if self.machine.state is TurnState.SPEAKING:
            await self._barge_in()
            await self.machine.transition(TurnState.IDLE, "typed barge-in")

        if self.machine.state is not TurnState.IDLE:
            logger.debug(
                "[%s] Text ignored in state %s", get_short_id(), self.machine.state.value
            )
            return None

        target = await self._accept_user_text(text.strip())
        return self._spawn(self._continue_turn(target), "text-turn")

    async def report_microphone_denied(self) -> None:
        """The browser refused microphone access. Persistent status, no retry."""
        if self.machine.state is TurnState.RECORDING:
            await self.machine.transition(TurnState.IDLE, "microphone denied")
        logger.warning("[%s] Microphone access denied", get_short_id())
        await self.status.set(STATUS_MIC_DENIED)

    # ------------------------------------------------------------------ #
    # Pipeline
    # ------------------------------------------------------------------ #
    async def _voice_turn(self, audio: bytes, filename: str, content_type: str) -> None:
        await self.status.set(STATUS_TRANSCRIBING)
        try:
            text = await self._stt.transcribe(audio, filename, content_type)
        except TranscriptionError:
            await self._fail_turn(STATUS_TRANSCRIPTION_FAILED, "transcription failed")
            return

        if not text or not text.strip():
            await self._fail_turn(STATUS_NOT_UNDERSTOOD, "empty transcript")
            return

        target = await self._accept_user_text(text.strip())
        await self._continue_turn(target)

    async def _accept_user_text(self, text: str) -> AgentId | None:
        """Record the user's turn, then decide between handoff and reasoning."""
        current = self.conversation.active_agent
        self.conversation.append_user(text)
        await self._events.emit_transcript(self.conversation.transcript[-1])

        target = detect_transfer_intent(text, current)
        if target is not None:
            logger.info(
                "[%s] User asked for %s (active: %s)", get_short_id(), target.value, current.value
            )
            await self.machine.transition(TurnState.TRANSFERRING, "user transfer intent")
            return target

        await self.machine.transition(TurnState.REASONING, "user utterance")
        return None

    async def _continue_turn(self, target: AgentId | None) -> None:
        if target is not None:
            await self._transfer(target)
        else:
            await self._reason_and_speak()

    async def _reason_and_speak(self) -> None:
        agent = self.active_agent
        generation = self._generation
        await self.status.set(STATUS_THINKING)

        with tracer.start_as_current_span(
            "cascade.reason",
            kind=SpanKind.INTERNAL,
            attributes={"agent.id": agent.id.value, "history.length": len(self.conversation.messages)},
        ):
            try:
                reply = await self._reasoning.complete(self.conversation.snapshot(), agent)
            except ReasoningError as exc:
                logger.error("[%s] Reasoning failed for %s: %s", get_short_id(), agent.name, exc)
                await self._fail_turn(STATUS_REASONING_FAILED, "reasoning failed")
                return

        self.conversation.append_assistant(reply.text, agent.id)
        await self._events.emit_transcript(self.conversation.transcript[-1])

        await self.machine.transition(TurnState.SPEAKING, "agent reply")
        if not await self._speak(reply.text, agent.id, generation):
            return

        if reply.directive is not None and reply.directive != self.conversation.active_agent:
            await self.machine.transition(TurnState.TRANSFERRING, "reply transfer directive")
            await self._transfer(reply.directive)
            return

        await self._finish_turn("playback done")

    async def _transfer(self, target: AgentId) -> None:
        """Hand the conversation to ``target``, which introduces itself."""
        previous = self.active_agent
        incoming = self.agents[target]
        generation = self._generation
        await self.status.set(STATUS_TRANSFERRING.format(agent_name=incoming.name))

        with tracer.start_as_current_span(
            "cascade.handoff",
            kind=SpanKind.INTERNAL,
            attributes={"handoff.source": previous.id.value, "handoff.target": target.value},
        ):
            intro = incoming.render_handoff_greeting(previous)
            self.conversation.append_assistant(intro, target)
            self.conversation.switch_agent(target)
            set_active_agent(incoming.name)
            logger.info("[%s] Handoff %s -> %s", get_short_id(), previous.name, incoming.name)

        await self._events.emit_transcript(self.conversation.transcript[-1])
        await self._events.emit_agent_change(incoming, previous)

        await self.machine.transition(TurnState.SPEAKING, "handoff introduction")
        if not await self._speak(intro, target, generation):
            return
        await self._finish_turn("handoff complete")

    async def _speak(self, text: str, agent_id: AgentId, generation: int) -> bool:
        """
        Voice one utterance.

        Args:
            generation: Barge-in counter observed before entering Speaking

        Returns:
            False when the utterance was interrupted; the caller must then
            return without touching state.
        """
        if generation != self._generation:
            return False
        await self.status.set(STATUS_SPEAKING)
        if generation != self._generation:
            return False
        completed = await self._playback.speak(text, agent_id)
        if not completed or generation != self._generation:
            logger.debug("[%s] Playback interrupted for %s", get_short_id(), agent_id.value)
            return False
        return True

    async def _finish_turn(self, reason: str) -> None:
        await self.machine.transition(TurnState.IDLE, reason)
        await self.status.reset()

    async def _fail_turn(self, status: str, reason: str) -> None:
        await self.machine.transition(TurnState.IDLE, reason)
        await self.status.flash(status)

    async def _barge_in(self) -> None:
        self._generation += 1
        await self._playback.cancel()
        logger.info("[%s] Barge-in: agent speech interrupted", get_short_id())

    # ------------------------------------------------------------------ #
    # Plumbing
    # ------------------------------------------------------------------ #
    def _spawn(self, coro: Coroutine[Any, Any, None], label: str) -> asyncio.Task:
        task = asyncio.create_task(self._guarded(coro, label), name=label)
        self._pipeline = task
        return task

    async def _guarded(self, coro: Coroutine[Any, Any, None], label: str) -> None:
        """Run a turn; an unexpected error ends the turn, never the session."""
        try:
            await coro
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("[%s] Turn '%s' failed unexpectedly", get_short_id(), label)
            if not self._closed:
                await self.machine.reset(f"{label} error")
                await self.status.flash(STATUS_REASONING_FAILED)

    async def _on_transition(self, previous: TurnState, current: TurnState, reason: str) -> None:
        await self._events.emit_state(current)
