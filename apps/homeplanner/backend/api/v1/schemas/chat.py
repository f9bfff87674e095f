"""
Conversation API schemas.

Pydantic schemas for the stateless chat, transcription and speech routes.
Field aliases keep the camelCase wire format used by the browser client.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """One history entry as sent by the client."""

    role: Literal["user", "assistant", "system"] = Field(..., description="Message author role")
    content: str = Field(..., description="Message text")
    agent_id: str | None = Field(
        None, alias="agentId", description="Agent that authored an assistant message"
    )

    model_config = ConfigDict(populate_by_name=True)


class ChatRequest(BaseModel):
    """Full history plus the agent that should answer."""

    messages: list[ChatMessage] = Field(default_factory=list, description="Ordered history")
    active_agent: str | None = Field(
        None, alias="activeAgent", description="Agent id that should reply", examples=["bob"]
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "messages": [
                    {"role": "user", "content": "Hi Bob, I want to remodel my kitchen."}
                ],
                "activeAgent": "bob",
            }
        },
    )


class ChatResponse(BaseModel):
    """Cleaned reply and, when the agent asked for it, the handoff target."""

    reply: str = Field(..., description="Reply text with transfer tokens removed")
    transfer: str | None = Field(None, description="Agent id the reply asked to hand off to")


class TranscriptionResponse(BaseModel):
    text: str = Field(..., description="Recognized text (may be empty)")


class SpeechRequest(BaseModel):
    """Text to synthesize and the agent whose voice to use."""

    text: str | None = Field(None, description="Text to speak")
    agent_id: str | None = Field(None, alias="agentId", description="Speaking agent id")

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Human-readable error", examples=["Invalid agent"])
