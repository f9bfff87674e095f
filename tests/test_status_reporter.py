"""
Tests for StatusReporter
========================

Unit tests for persistent, transient and idle status lines.
"""

from __future__ import annotations

import asyncio

import pytest

from apps.homeplanner.backend.voice.shared.status import StatusReporter


@pytest.fixture
def emitted():
    return []


@pytest.fixture
def reporter(emitted):
    async def emit(text):
        emitted.append(text)

    return StatusReporter(emit, idle_text="idle", revert_after=0.01)


class TestStatusReporter:
    """Tests for set() / flash() / reset()."""

    @pytest.mark.asyncio
    async def test_set_persists(self, reporter, emitted):
        await reporter.set("Microphone access denied")
        await asyncio.sleep(0.05)

        assert reporter.current == "Microphone access denied"
        assert emitted == ["Microphone access denied"]

    @pytest.mark.asyncio
    async def test_flash_reverts_to_idle(self, reporter, emitted):
        await reporter.flash("Transcription failed")
        await asyncio.sleep(0.05)

        assert reporter.current == "idle"
        assert emitted == ["Transcription failed", "idle"]

    @pytest.mark.asyncio
    async def test_newer_status_cancels_revert(self, reporter, emitted):
        await reporter.flash("Error occurred")
        await reporter.set("Recording")
        await asyncio.sleep(0.05)

        assert reporter.current == "Recording"
        assert emitted == ["Error occurred", "Recording"]

    @pytest.mark.asyncio
    async def test_close_cancels_revert(self, reporter, emitted):
        await reporter.flash("Error occurred")
        reporter.close()
        await asyncio.sleep(0.05)

        assert emitted == ["Error occurred"]

    @pytest.mark.asyncio
    async def test_emit_failure_is_contained(self):
        async def broken(text):
            raise ConnectionError("socket gone")

        reporter = StatusReporter(broken, idle_text="idle")
        await reporter.set("Thinking")
        assert reporter.current == "Thinking"

    @pytest.mark.asyncio
    async def test_without_callback(self):
        reporter = StatusReporter(idle_text="idle")
        await reporter.reset()
        assert reporter.current == "idle"
