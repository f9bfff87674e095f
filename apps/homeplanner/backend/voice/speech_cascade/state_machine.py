"""
Turn State Machine
==================

Explicit finite-state machine for one push-to-talk conversation turn.

    Idle          -> Recording (mic), Reasoning | Transferring (typed text)
    Recording     -> Transcribing (audio ok), Idle (too short, mic denied)
    Transcribing  -> Reasoning, Transferring (user asked for the other agent), Idle (empty/failed)
    Reasoning     -> Speaking (reply), Idle (gateway failure)
    Speaking      -> Idle (done), Transferring (directive), Recording (barge-in)
    Transferring  -> Speaking (introduction)

``transition()`` is the only way to change state; every other component reads
``state`` through the machine so asynchronous continuations always see the
current value.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from enum import Enum

from utils.ml_logging import get_logger
from utils.session_context import get_short_id

logger = get_logger("voice.speech_cascade.state")


class TurnState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"
    REASONING = "reasoning"
    SPEAKING = "speaking"
    TRANSFERRING = "transferring"


# Typed text enters at the transcription-complete point, so Idle may move
# straight to Reasoning or Transferring.
TRANSITIONS: dict[TurnState, frozenset[TurnState]] = {
    TurnState.IDLE: frozenset(
        {TurnState.RECORDING, TurnState.REASONING, TurnState.TRANSFERRING}
    ),
    TurnState.RECORDING: frozenset({TurnState.IDLE, TurnState.TRANSCRIBING}),
    TurnState.TRANSCRIBING: frozenset(
        {TurnState.IDLE, TurnState.REASONING, TurnState.TRANSFERRING}
    ),
    TurnState.REASONING: frozenset({TurnState.IDLE, TurnState.SPEAKING}),
    TurnState.SPEAKING: frozenset(
        {TurnState.IDLE, TurnState.RECORDING, TurnState.TRANSFERRING}
    ),
    TurnState.TRANSFERRING: frozenset({TurnState.IDLE, TurnState.SPEAKING}),
}

# States in which a new recording is refused outright.
BUSY_STATES = frozenset({TurnState.TRANSCRIBING, TurnState.REASONING, TurnState.TRANSFERRING})

TransitionListener = Callable[[TurnState, TurnState, str], Awaitable[None]]


class InvalidTransitionError(RuntimeError):
    """Raised when a transition is not in the table."""

    def __init__(self, current: TurnState, target: TurnState, reason: str = "") -> None:
        self.current = current
        self.target = target
        self.reason = reason
        super().__init__(f"Illegal transition {current.value} -> {target.value} ({reason or 'no reason'})")


class TurnStateMachine:
    """Single owner of the turn state."""

    def __init__(self, initial: TurnState = TurnState.IDLE) -> None:
        self._state = initial
        self._listeners: list[TransitionListener] = []
        self._history: list[tuple[TurnState, TurnState, str]] = []

    @property
    def state(self) -> TurnState:
        return self._state

    @property
    def history(self) -> tuple[tuple[TurnState, TurnState, str], ...]:
        """Every transition taken so far as (previous, new, reason)."""
        return tuple(self._history)

    @property
    def is_busy(self) -> bool:
        return self._state in BUSY_STATES

    def can_transition(self, target: TurnState) -> bool:
        return target in TRANSITIONS[self._state]

    def add_listener(self, listener: TransitionListener) -> None:
        self._listeners.append(listener)

    async def transition(self, target: TurnState, reason: str = "") -> TurnState:
        """
        Move to ``target`` and notify listeners.

        Returns:
            The previous state.

        Raises:
            InvalidTransitionError: If ``target`` is not reachable from the current state.
        """
        previous = self._state
        if target not in TRANSITIONS[previous]:
            raise InvalidTransitionError(previous, target, reason)

        self._state = target
        self._history.append((previous, target, reason))
        logger.debug("[%s] %s -> %s (%s)", get_short_id(), previous.value, target.value, reason)
        await self._notify(previous, target, reason)
        return previous

    async def reset(self, reason: str = "reset") -> None:
        """Force Idle from any state (session teardown)."""
        if self._state is TurnState.IDLE:
            return
        previous = self._state
        self._state = TurnState.IDLE
        self._history.append((previous, TurnState.IDLE, reason))
        await self._notify(previous, TurnState.IDLE, reason)

    async def _notify(self, previous: TurnState, target: TurnState, reason: str) -> None:
        for listener in list(self._listeners):
            try:
                await listener(previous, target, reason)
            except Exception:
                logger.debug("[%s] State listener failed", get_short_id(), exc_info=True)
