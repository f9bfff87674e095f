"""
src/speech/speech_to_text.py
----------------------------
Batch transcription of one recorded utterance.

The browser records a compressed clip (webm/opus by default) and sends it
whole once the push-to-talk control is released; there is no streaming
recognition.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode
from src.aoai.client import get_client
from utils.ml_logging import get_logger

logger = get_logger("speech.stt")
tracer = trace.get_tracer(__name__)


class TranscriptionError(RuntimeError):
    """Transcription request failed; no partial text is available."""


class SpeechToTextGateway:
    """
    Audio bytes -> text via the OpenAI transcription endpoint.

    Args:
        model: Transcription model or deployment (e.g. ``whisper-1``)
        language: ISO-639-1 hint passed to the service
        client_factory: Returns the SDK client; defaults to the shared client
    """

    def __init__(
        self,
        model: str = "whisper-1",
        *,
        language: str | None = "en",
        client_factory: Callable[[], Any] = get_client,
    ) -> None:
        self.model = model
        self.language = language
        self._client_factory = client_factory

    async def transcribe(
        self,
        audio: bytes,
        filename: str = "audio.webm",
        content_type: str = "audio/webm",
    ) -> str:
        """
        Transcribe a complete recording.

        Returns:
            The recognized text, stripped. May be empty for silence.

        Raises:
            TranscriptionError: On any transport or service failure.
        """
        with tracer.start_as_current_span(
            "speech.transcribe",
            kind=SpanKind.CLIENT,
            attributes={
                "speech.model": self.model,
                "speech.language": self.language or "",
                "speech.audio_bytes": len(audio),
                "peer.service": "openai",
            },
        ) as span:
            start = time.perf_counter()
            kwargs: dict[str, Any] = {
                "model": self.model,
                "file": (filename, audio, content_type),
            }
            if self.language:
                kwargs["language"] = self.language

            try:
                client = self._client_factory()
                result = await asyncio.to_thread(client.audio.transcriptions.create, **kwargs)
            except Exception as exc:
                span.set_status(Status(StatusCode.ERROR, str(exc)))
                span.record_exception(exc)
                logger.error("Transcription failed | bytes=%d error=%s", len(audio), exc)
                raise TranscriptionError(str(exc)) from exc

            text = result if isinstance(result, str) else getattr(result, "text", "")
            text = (text or "").strip()
            elapsed_ms = (time.perf_counter() - start) * 1000
            span.set_attribute("speech.text_chars", len(text))
            span.set_status(Status(StatusCode.OK))
            logger.info(
                "Transcription done | bytes=%d chars=%d latency_ms=%.0f",
                len(audio),
                len(text),
                elapsed_ms,
            )
            return text
