"""
Speech Cascade - Push-to-Talk STT→LLM→TTS Pipeline
===================================================

One recorded (or typed) utterance at a time:

    Recording → Transcribing → Reasoning | Transferring → Speaking → Idle

Barge-in: pressing the mic while an agent is speaking cancels playback and
goes straight to Recording.

Usage:
    from apps.homeplanner.backend.voice.speech_cascade import (
        CascadeOrchestrator,
        TurnState,
    )
"""

from .orchestrator import CascadeOrchestrator
from .state_machine import (
    BUSY_STATES,
    TRANSITIONS,
    InvalidTransitionError,
    TurnState,
    TurnStateMachine,
)

__all__ = [
    "BUSY_STATES",
    "TRANSITIONS",
    "CascadeOrchestrator",
    "InvalidTransitionError",
    "TurnState",
    "TurnStateMachine",
]
