"""
Shared Voice Components
=======================

- **ConversationState**: ordered history, transcript and active agent
- **StatusReporter**: the single status line with auto-revert
- **SessionEventSink**: protocol for pushing session events to a transport
"""

from .base import NullEventSink, SessionEventSink
from .session_state import (
    USER_SPEAKER,
    ConversationState,
    Message,
    Role,
    TranscriptEntry,
)
from .status import StatusReporter

__all__ = [
    "USER_SPEAKER",
    "ConversationState",
    "Message",
    "NullEventSink",
    "Role",
    "SessionEventSink",
    "StatusReporter",
    "TranscriptEntry",
]
