"""
Status Reporter
===============

Owns the single user-visible status line.

- ``set``: show a status until something else replaces it
- ``flash``: show a transient status that reverts to idle after a delay
- ``reset``: go back to the idle prompt immediately

A newer status always cancels a pending revert.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from apps.homeplanner.backend.config import STATUS_IDLE, STATUS_REVERT_SECONDS
from utils.ml_logging import get_logger

logger = get_logger("voice.shared.status")

StatusCallback = Callable[[str], Awaitable[None]]


class StatusReporter:
    def __init__(
        self,
        emit: StatusCallback | None = None,
        *,
        idle_text: str = STATUS_IDLE,
        revert_after: float = STATUS_REVERT_SECONDS,
    ) -> None:
        self._emit = emit
        self._idle_text = idle_text
        self._revert_after = revert_after
        self._current = idle_text
        self._revert_task: asyncio.Task | None = None

    @property
    def current(self) -> str:
        return self._current

    @property
    def idle_text(self) -> str:
        return self._idle_text

    async def set(self, text: str) -> None:
        self._cancel_revert()
        await self._apply(text)

    async def flash(self, text: str) -> None:
        """Show a transient status that reverts to idle after the configured delay."""
        self._cancel_revert()
        await self._apply(text)
        self._revert_task = asyncio.create_task(self._revert_later(), name="status-revert")

    async def reset(self) -> None:
        await self.set(self._idle_text)

    def close(self) -> None:
        self._cancel_revert()

    def _cancel_revert(self) -> None:
        task = self._revert_task
        self._revert_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _revert_later(self) -> None:
        await asyncio.sleep(self._revert_after)
        self._revert_task = None
        await self._apply(self._idle_text)

    async def _apply(self, text: str) -> None:
        self._current = text
        if self._emit is None:
            return
        try:
            await self._emit(text)
        except Exception:
            # A dead transport must not break the turn pipeline
            logger.debug("Status emit failed", exc_info=True)
