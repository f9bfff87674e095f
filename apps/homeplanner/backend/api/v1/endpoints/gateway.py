"""
Stateless Model Gateway Endpoints
=================================

Request/response routes over the three model services, for clients that
drive the conversation themselves:

- POST /chat        history + active agent -> reply (+ transfer directive)
- POST /transcribe  multipart ``audio`` -> text
- POST /tts         text + agent id -> audio/mpeg

Errors use ``{"error": "..."}`` bodies: 400 for bad input, 500 when the
model service fails. Nothing is retried.
"""

from apps.homeplanner.backend.api.v1.schemas.chat import (
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    SpeechRequest,
    TranscriptionResponse,
)
from apps.homeplanner.backend.config import (
    DEFAULT_RECORDING_CONTENT_TYPE,
    DEFAULT_RECORDING_FILENAME,
    TTS_CONTENT_TYPE,
)
from apps.homeplanner.backend.registries.agentstore.base import AgentId
from apps.homeplanner.backend.src.services.reasoning import ReasoningError
from apps.homeplanner.backend.voice.shared.session_state import Message
from fastapi import APIRouter, File, Request, UploadFile
from fastapi.responses import JSONResponse, Response
from src.speech.speech_to_text import TranscriptionError
from src.speech.text_to_speech import SynthesisError
from utils.ml_logging import get_logger

logger = get_logger("v1.gateway")

router = APIRouter(tags=["Gateway"])


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(content={"error": message}, status_code=status_code)


@router.post(
    "/chat",
    response_model=ChatResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def chat(body: ChatRequest, request: Request):
    """Ask the active agent for its next reply to the supplied history."""
    agent_id = AgentId.parse(body.active_agent)
    agents = request.app.state.agents
    if agent_id is None or agent_id not in agents:
        return _error("Invalid agent", 400)

    agent = agents[agent_id]
    history = [Message.from_dict(m.model_dump(by_alias=True)) for m in body.messages]

    try:
        reply = await request.app.state.reasoning.complete(history, agent)
    except ReasoningError as exc:
        logger.error("Chat API error: %s", exc)
        return _error("Failed to get response", 500)

    transfer = reply.directive if reply.directive not in (None, agent_id) else None
    return ChatResponse(reply=reply.text, transfer=transfer.value if transfer else None)


@router.post(
    "/transcribe",
    response_model=TranscriptionResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def transcribe(request: Request, audio: UploadFile | None = File(None)):
    """Transcribe one uploaded recording."""
    if audio is None:
        return _error("No audio file provided", 400)

    data = await audio.read()
    try:
        text = await request.app.state.stt.transcribe(
            data,
            audio.filename or DEFAULT_RECORDING_FILENAME,
            audio.content_type or DEFAULT_RECORDING_CONTENT_TYPE,
        )
    except TranscriptionError as exc:
        logger.error("Transcription error: %s", exc)
        return _error("Failed to transcribe audio", 500)

    return TranscriptionResponse(text=text)


@router.post(
    "/tts",
    response_class=Response,
    responses={
        200: {"content": {TTS_CONTENT_TYPE: {}}},
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def text_to_speech(body: SpeechRequest, request: Request):
    """Synthesize text in the named agent's voice (unknown ids get the fallback voice)."""
    if not body.text or not body.text.strip():
        return _error("No text provided", 400)

    try:
        audio = await request.app.state.tts.synthesize(body.text, body.agent_id)
    except SynthesisError as exc:
        logger.error("TTS error: %s", exc)
        return _error("Failed to synthesize speech", 500)

    return Response(content=audio, media_type=TTS_CONTENT_TYPE)
