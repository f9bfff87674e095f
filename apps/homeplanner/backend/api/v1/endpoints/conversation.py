"""
Conversation WebSocket Endpoint
===============================

One push-to-talk conversation per connection. The connection owns a
:class:`CascadeOrchestrator`; closing the socket discards the conversation.

Client -> server (JSON text frames):
    {"type": "record_start", "mime_type"?: "audio/webm;codecs=opus"}
    <binary frames>                  recorded audio chunks, in order
    {"type": "record_stop"}          submit everything received since record_start
    {"type": "text", "text": "..."}  typed utterance
    {"type": "playback_ended", "id"?: "<clip id>"}
    {"type": "mic_denied"}

Server -> client: ``status``, ``transcript``, ``agent``, ``state``, ``audio``
(followed by one binary frame), ``stop_audio`` and ``error`` envelopes.
"""

import json
import uuid
from typing import Any

from apps.homeplanner.backend.config import (
    DEFAULT_RECORDING_CONTENT_TYPE,
    DEFAULT_RECORDING_FILENAME,
)
from apps.homeplanner.backend.src.ws_helpers.envelopes import make_error_envelope
from apps.homeplanner.backend.src.ws_helpers.shared_ws import (
    WebSocketAudioOutput,
    WebSocketEventSink,
    _ws_is_connected,
    send_envelope,
)
from apps.homeplanner.backend.voice.speech_cascade.orchestrator import CascadeOrchestrator
from apps.homeplanner.backend.voice.speech_cascade.state_machine import TurnState
from apps.homeplanner.backend.voice.tts.playback import TTSPlayback
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from opentelemetry import trace
from opentelemetry.trace import SpanKind
from utils.ml_logging import get_logger
from utils.session_context import session_context

logger = get_logger("api.v1.endpoints.conversation")
tracer = trace.get_tracer(__name__)

router = APIRouter(tags=["Conversation"])


def _recording_file(mime_type: str | None) -> tuple[str, str]:
    """Filename and content type to hand the transcription service."""
    if not mime_type:
        return DEFAULT_RECORDING_FILENAME, DEFAULT_RECORDING_CONTENT_TYPE
    base = mime_type.split(";", 1)[0].strip().lower()
    extension = base.split("/", 1)[-1] if "/" in base else "webm"
    return f"audio.{extension}", base


def create_orchestrator(
    app_state: Any, websocket: WebSocket, session_id: str
) -> tuple[CascadeOrchestrator, WebSocketAudioOutput]:
    """Wire one orchestrator to this socket using the app's shared gateways."""
    output = WebSocketAudioOutput(websocket, session_id)
    orchestrator = CascadeOrchestrator(
        agents=app_state.agents,
        reasoning=app_state.reasoning,
        stt=app_state.stt,
        playback=TTSPlayback(app_state.tts, output),
        events=WebSocketEventSink(websocket, session_id),
        start_agent=app_state.start_agent,
    )
    return orchestrator, output


@router.websocket("/conversation")
async def conversation_endpoint(
    websocket: WebSocket,
    session_id: str | None = Query(None),
) -> None:
    """Push-to-talk conversation with Bob and Alice."""
    session_id = session_id or uuid.uuid4().hex
    app_state = websocket.app.state
    orchestrator: CascadeOrchestrator | None = None

    await websocket.accept()

    async with session_context(
        session_id=session_id,
        transport_type="BROWSER",
        agent_name=app_state.agents[app_state.start_agent].name,
        component="conversation",
    ):
        app_state.active_sessions = getattr(app_state, "active_sessions", 0) + 1
        try:
            with tracer.start_as_current_span(
                "api.v1.conversation_connect",
                kind=SpanKind.SERVER,
                attributes={"session.id": session_id, "network.protocol.name": "websocket"},
            ):
                orchestrator, output = create_orchestrator(app_state, websocket, session_id)
                await orchestrator.start()
                logger.info("[%s] Conversation session initialized", session_id[-8:])

            await _message_loop(websocket, orchestrator, output)
        except WebSocketDisconnect as e:
            level = logger.info if e.code in (1000, 1001) else logger.warning
            level("[%s] Conversation disconnected (code=%s)", session_id[-8:], e.code)
        finally:
            if orchestrator is not None:
                await orchestrator.close()
            app_state.active_sessions = max(0, app_state.active_sessions - 1)
            if _ws_is_connected(websocket):
                await websocket.close()
            logger.info("[%s] Conversation cleanup complete", session_id[-8:])


async def _message_loop(
    websocket: WebSocket,
    orchestrator: CascadeOrchestrator,
    output: WebSocketAudioOutput,
) -> None:
    recording = bytearray()
    mime_type: str | None = None

    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(message.get("code", 1000))

        data = message.get("bytes")
        if data is not None:
            if orchestrator.state is TurnState.RECORDING:
                recording.extend(data)
            else:
                logger.debug("Dropping %d audio bytes received outside a recording", len(data))
            continue

        raw = message.get("text")
        if raw is None:
            continue
        try:
            event = json.loads(raw)
            kind = event["type"]
        except (ValueError, KeyError, TypeError):
            await send_envelope(websocket, make_error_envelope("Malformed message", "bad_message"))
            continue

        if kind == "record_start":
            if await orchestrator.start_recording():
                recording.clear()
                declared = event.get("mime_type")
                mime_type = declared if isinstance(declared, str) else None
        elif kind == "record_stop":
            filename, content_type = _recording_file(mime_type)
            await orchestrator.stop_recording(
                bytes(recording), filename=filename, content_type=content_type
            )
            recording.clear()
        elif kind == "text":
            await orchestrator.submit_text(str(event.get("text") or ""))
        elif kind == "playback_ended":
            output.notify_playback_ended(event.get("id"))
        elif kind == "mic_denied":
            await orchestrator.report_microphone_denied()
        else:
            await send_envelope(
                websocket, make_error_envelope(f"Unknown message type '{kind}'", "bad_message")
            )
