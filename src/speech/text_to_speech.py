"""
src/speech/text_to_speech.py
----------------------------
Text -> MPEG audio with a per-agent voice.

Voices are looked up by agent id in a plain mapping supplied by the caller;
unknown ids fall back to a neutral voice instead of failing the turn.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Mapping
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode
from src.aoai.client import get_client
from utils.ml_logging import get_logger

logger = get_logger("speech.tts")
tracer = trace.get_tracer(__name__)

FALLBACK_VOICE = "alloy"


class SynthesisError(RuntimeError):
    """Speech synthesis failed; no audio is available."""


class TextToSpeechGateway:
    """
    Synthesize one utterance at a time.

    Args:
        voices: Agent id -> voice name
        model: Speech model or deployment (e.g. ``tts-1``)
        speed: Default playback speed, 0.25-4.0
        speeds: Agent id -> playback speed overriding ``speed``
        response_format: Audio container returned by the service
        fallback_voice: Voice for agent ids missing from ``voices``
        client_factory: Returns the SDK client; defaults to the shared client
    """

    def __init__(
        self,
        voices: Mapping[str, str] | None = None,
        *,
        model: str = "tts-1",
        speed: float = 1.0,
        speeds: Mapping[str, float] | None = None,
        response_format: str = "mp3",
        fallback_voice: str = FALLBACK_VOICE,
        client_factory: Callable[[], Any] = get_client,
    ) -> None:
        self.voices = dict(voices or {})
        self.model = model
        self.speed = speed
        self.speeds = dict(speeds or {})
        self.response_format = response_format
        self.fallback_voice = fallback_voice
        self._client_factory = client_factory

    def voice_for(self, agent_id: str | None) -> str:
        if agent_id and agent_id in self.voices:
            return self.voices[agent_id]
        return self.fallback_voice

    def speed_for(self, agent_id: str | None) -> float:
        return self.speeds.get(agent_id, self.speed) if agent_id else self.speed

    async def synthesize(self, text: str, agent_id: str | None = None) -> bytes:
        """
        Synthesize ``text`` in the voice configured for ``agent_id``.

        Raises:
            ValueError: If ``text`` is empty.
            SynthesisError: On any transport or service failure.
        """
        if not text or not text.strip():
            raise ValueError("text is required for speech synthesis")

        voice = self.voice_for(agent_id)
        with tracer.start_as_current_span(
            "speech.synthesize",
            kind=SpanKind.CLIENT,
            attributes={
                "speech.model": self.model,
                "speech.voice": voice,
                "speech.text_chars": len(text),
                "peer.service": "openai",
            },
        ) as span:
            start = time.perf_counter()
            try:
                client = self._client_factory()
                response = await asyncio.to_thread(
                    client.audio.speech.create,
                    model=self.model,
                    voice=voice,
                    input=text,
                    speed=self.speed_for(agent_id),
                    response_format=self.response_format,
                )
                audio = response.content if hasattr(response, "content") else bytes(response)
            except Exception as exc:
                span.set_status(Status(StatusCode.ERROR, str(exc)))
                span.record_exception(exc)
                logger.error("Synthesis failed | voice=%s error=%s", voice, exc)
                raise SynthesisError(str(exc)) from exc

            elapsed_ms = (time.perf_counter() - start) * 1000
            span.set_attribute("speech.audio_bytes", len(audio))
            span.set_status(Status(StatusCode.OK))
            logger.debug(
                "Synthesis done | voice=%s chars=%d bytes=%d latency_ms=%.0f",
                voice,
                len(text),
                len(audio),
                elapsed_ms,
            )
            return audio
