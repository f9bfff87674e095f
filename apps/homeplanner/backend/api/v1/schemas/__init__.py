from .chat import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    SpeechRequest,
    TranscriptionResponse,
)
from .health import AgentsResponse, AgentSummary, HealthResponse

__all__ = [
    "AgentSummary",
    "AgentsResponse",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "ErrorResponse",
    "HealthResponse",
    "SpeechRequest",
    "TranscriptionResponse",
]
