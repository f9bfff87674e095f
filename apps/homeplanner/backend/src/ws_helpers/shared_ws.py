"""
shared_ws.py
============
Browser WebSocket adapters for the conversation core:

    • WebSocketEventSink   – status / transcript / agent / state envelopes
    • WebSocketAudioOutput – binary TTS frames, completion via ``playback_ended``
    • send_envelope        – JSON send that tolerates a closed socket
"""

from __future__ import annotations

import asyncio
import uuid
from typing import TYPE_CHECKING, Any

from apps.homeplanner.backend.config import TTS_CONTENT_TYPE
from apps.homeplanner.backend.src.ws_helpers.envelopes import (
    make_agent_envelope,
    make_audio_envelope,
    make_state_envelope,
    make_status_envelope,
    make_stop_audio_envelope,
    make_transcript_envelope,
)
from fastapi import WebSocket
from fastapi.websockets import WebSocketState
from utils.ml_logging import get_logger

if TYPE_CHECKING:
    from apps.homeplanner.backend.registries.agentstore.base import Agent
    from apps.homeplanner.backend.voice.shared.session_state import TranscriptEntry
    from apps.homeplanner.backend.voice.speech_cascade.state_machine import TurnState

logger = get_logger("shared_ws")


def _ws_is_connected(ws: WebSocket) -> bool:
    """Return True if both client and application state are CONNECTED."""
    return (
        ws.client_state == WebSocketState.CONNECTED
        and ws.application_state == WebSocketState.CONNECTED
    )


async def send_envelope(ws: WebSocket, envelope: dict[str, Any]) -> bool:
    """Send one JSON envelope; returns False when the socket is gone."""
    if not _ws_is_connected(ws):
        return False
    try:
        await ws.send_json(envelope)
        return True
    except Exception as exc:
        logger.debug("Envelope send failed (%s): %s", envelope.get("type"), exc)
        return False


class WebSocketEventSink:
    """Pushes orchestrator events to the browser as envelopes."""

    def __init__(self, websocket: WebSocket, session_id: str | None = None) -> None:
        self._ws = websocket
        self._session_id = session_id

    async def emit_status(self, message: str) -> None:
        await send_envelope(self._ws, make_status_envelope(message, session_id=self._session_id))

    async def emit_transcript(self, entry: TranscriptEntry) -> None:
        await send_envelope(
            self._ws, make_transcript_envelope(entry.to_dict(), session_id=self._session_id)
        )

    async def emit_agent_change(self, agent: Agent, previous: Agent | None) -> None:
        await send_envelope(
            self._ws,
            make_agent_envelope(
                agent.to_summary(),
                previous.to_summary() if previous is not None else None,
                session_id=self._session_id,
            ),
        )

    async def emit_state(self, state: TurnState) -> None:
        await send_envelope(self._ws, make_state_envelope(state.value, session_id=self._session_id))


class WebSocketAudioOutput:
    """
    Plays synthesized audio in the browser.

    Each utterance is an ``audio`` envelope followed by one binary frame. The
    browser answers with ``{"type": "playback_ended", "id": ...}`` when the clip
    finishes; a ``stop_audio`` envelope tells it to stop early.

    Args:
        websocket: Accepted browser socket
        session_id: Correlation id stamped on envelopes
        playback_timeout: Upper bound on waiting for ``playback_ended``; None waits forever
    """

    def __init__(
        self,
        websocket: WebSocket,
        session_id: str | None = None,
        *,
        playback_timeout: float | None = 120.0,
    ) -> None:
        self._ws = websocket
        self._session_id = session_id
        self._playback_timeout = playback_timeout
        self._current_id: str | None = None
        self._finished: asyncio.Event | None = None

    @property
    def current_playback_id(self) -> str | None:
        return self._current_id

    def notify_playback_ended(self, playback_id: str | None = None) -> bool:
        """
        Browser reported the clip finished.

        Returns:
            True if it matched the clip currently playing.
        """
        if self._finished is None:
            return False
        if playback_id and playback_id != self._current_id:
            logger.debug("Ignoring playback_ended for stale clip %s", playback_id)
            return False
        self._finished.set()
        return True

    async def play(self, audio: bytes, cancel_event: asyncio.Event) -> bool:
        playback_id = uuid.uuid4().hex
        finished = asyncio.Event()
        self._current_id = playback_id
        self._finished = finished
        try:
            announced = await send_envelope(
                self._ws,
                make_audio_envelope(
                    playback_id,
                    content_type=TTS_CONTENT_TYPE,
                    size=len(audio),
                    session_id=self._session_id,
                ),
            )
            if not announced or cancel_event.is_set():
                return False
            try:
                await self._ws.send_bytes(audio)
            except Exception as exc:
                logger.debug("Audio frame send failed: %s", exc)
                return False

            waiters = {
                asyncio.create_task(finished.wait()),
                asyncio.create_task(cancel_event.wait()),
            }
            try:
                await asyncio.wait(
                    waiters,
                    timeout=self._playback_timeout,
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                for waiter in waiters:
                    waiter.cancel()

            if cancel_event.is_set():
                return False
            if not finished.is_set():
                logger.warning("No playback_ended for clip %s; assuming it finished", playback_id)
            return True
        finally:
            if self._current_id == playback_id:
                self._current_id = None
                self._finished = None

    async def stop(self) -> None:
        await send_envelope(self._ws, make_stop_audio_envelope(session_id=self._session_id))
