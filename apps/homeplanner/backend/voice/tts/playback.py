"""
TTS Playback - Cancellable Agent Speech
=======================================

Synthesizes one utterance in the speaking agent's voice and plays it through
an :class:`AudioOutput`, with a fresh cancellation token per utterance so a
barge-in never leaks into the next playback.

Cancellation both stops the output and drops any synthesized audio that has
not been handed to the output yet; the pending ``speak()`` call then resolves
with ``False`` instead of waiting for playback that will never finish.

Usage:
    from apps.homeplanner.backend.voice.tts import TTSPlayback

    playback = TTSPlayback(tts_gateway, output)
    completed = await playback.speak("Let me put together a plan.", AgentId.BOB)
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol

from utils.ml_logging import get_logger
from utils.session_context import get_short_id

if TYPE_CHECKING:
    from apps.homeplanner.backend.registries.agentstore.base import AgentId
    from src.speech.text_to_speech import TextToSpeechGateway

logger = get_logger("voice.tts.playback")


class AudioOutput(Protocol):
    """Where synthesized audio goes (browser WebSocket, test harness)."""

    async def play(self, audio: bytes, cancel_event: asyncio.Event) -> bool:
        """
        Play ``audio`` and wait for it to finish.

        Returns:
            True when played to completion, False when ``cancel_event`` fired first.
        """
        ...

    async def stop(self) -> None:
        """Stop whatever is currently playing."""
        ...


class TTSPlayback:
    """
    One utterance at a time, always cancellable.

    Args:
        tts: Gateway used to synthesize text in an agent's voice
        output: Audio sink that plays the synthesized bytes
    """

    def __init__(self, tts: TextToSpeechGateway, output: AudioOutput) -> None:
        self._tts = tts
        self._output = output
        self._cancel_event: asyncio.Event | None = None

    @property
    def is_playing(self) -> bool:
        return self._cancel_event is not None

    async def speak(self, text: str, agent_id: AgentId) -> bool:
        """
        Synthesize and play ``text`` in ``agent_id``'s voice.

        Synthesis failures are logged and treated as finished playback so the
        conversation carries on without audio for this utterance.

        Returns:
            True unless the utterance was cancelled.
        """
        cancel_event = asyncio.Event()
        self._cancel_event = cancel_event
        try:
            try:
                audio = await self._tts.synthesize(text, agent_id.value)
            except Exception as exc:
                logger.warning(
                    "[%s] TTS unavailable for %s, continuing without audio: %s",
                    get_short_id(),
                    agent_id.value,
                    exc,
                )
                return not cancel_event.is_set()

            if cancel_event.is_set():
                logger.debug("[%s] Dropping synthesized audio after cancel", get_short_id())
                return False

            completed = await self._output.play(audio, cancel_event)
            return completed and not cancel_event.is_set()
        finally:
            if self._cancel_event is cancel_event:
                self._cancel_event = None

    async def cancel(self) -> bool:
        """
        Cancel the utterance in flight, if any.

        Returns:
            True if something was cancelled.
        """
        cancel_event = self._cancel_event
        if cancel_event is None:
            return False
        self._cancel_event = None
        cancel_event.set()
        try:
            await self._output.stop()
        except Exception:
            logger.debug("[%s] Audio output stop failed", get_short_id(), exc_info=True)
        logger.info("[%s] Playback cancelled", get_short_id())
        return True
