"""
WebSocket Message Envelopes
===========================

Standard JSON envelope for every server -> browser text frame. Audio travels
separately as binary frames, announced by an ``audio`` envelope.
"""

from datetime import UTC, datetime
from typing import Any, Literal

EnvelopeType = Literal["status", "transcript", "agent", "state", "audio", "stop_audio", "error"]
SenderType = Literal["System", "User", "Assistant"]


def _utc_now_iso() -> str:
    """Return the current UTC timestamp in ISO-8601 format."""

    return datetime.now(UTC).isoformat()


def make_envelope(
    *,
    etype: EnvelopeType,
    payload: dict[str, Any],
    sender: SenderType = "System",
    session_id: str | None = None,
) -> dict[str, Any]:
    """Build standard WebSocket message envelope."""
    return {
        "type": etype,
        "session_id": session_id,
        "sender": sender,
        "ts": _utc_now_iso(),
        "payload": payload,
    }


def make_status_envelope(message: str, *, session_id: str | None = None) -> dict[str, Any]:
    """Status line under the push-to-talk control."""
    return make_envelope(etype="status", payload={"message": message}, session_id=session_id)


def make_transcript_envelope(
    entry: dict[str, Any], *, session_id: str | None = None
) -> dict[str, Any]:
    """One transcript entry (``TranscriptEntry.to_dict()``)."""
    sender: SenderType = "User" if entry.get("speaker") == "user" else "Assistant"
    return make_envelope(etype="transcript", payload=entry, sender=sender, session_id=session_id)


def make_agent_envelope(
    agent: dict[str, Any],
    previous: dict[str, Any] | None = None,
    *,
    session_id: str | None = None,
) -> dict[str, Any]:
    """Active agent changed (or was announced at session start)."""
    payload: dict[str, Any] = {"agent": agent}
    if previous is not None:
        payload["previous"] = previous
    return make_envelope(etype="agent", payload=payload, session_id=session_id)


def make_state_envelope(state: str, *, session_id: str | None = None) -> dict[str, Any]:
    """Turn state machine moved."""
    return make_envelope(etype="state", payload={"state": state}, session_id=session_id)


def make_audio_envelope(
    playback_id: str,
    *,
    content_type: str,
    size: int,
    session_id: str | None = None,
) -> dict[str, Any]:
    """Announces the binary audio frame that follows immediately."""
    return make_envelope(
        etype="audio",
        payload={"id": playback_id, "content_type": content_type, "bytes": size},
        sender="Assistant",
        session_id=session_id,
    )


def make_stop_audio_envelope(*, session_id: str | None = None) -> dict[str, Any]:
    """Tell the browser to stop playback immediately (barge-in)."""
    return make_envelope(etype="stop_audio", payload={}, session_id=session_id)


def make_error_envelope(
    error_message: str,
    error_type: str = "unknown",
    *,
    session_id: str | None = None,
) -> dict[str, Any]:
    """Protocol error (bad client frame); never used for turn failures."""
    return make_envelope(
        etype="error",
        payload={"error_type": error_type, "message": error_message},
        session_id=session_id,
    )
