"""
Tests for TTSPlayback
=====================

Unit tests for cancellable agent speech: per-utterance cancel tokens,
synthesis failures and barge-in cancellation.
"""

from __future__ import annotations

import asyncio

import pytest

from apps.homeplanner.backend.registries.agentstore.base import AgentId
from apps.homeplanner.backend.voice.tts.playback import TTSPlayback
from src.speech.text_to_speech import SynthesisError


class TestSpeak:
    """Tests for TTSPlayback.speak()."""

    @pytest.mark.asyncio
    async def test_plays_in_agent_voice(self, tts, audio_output):
        playback = TTSPlayback(tts, audio_output)
        completed = await playback.speak("Let me draft a plan.", AgentId.BOB)

        assert completed is True
        tts.synthesize.assert_awaited_once_with("Let me draft a plan.", "bob")
        assert audio_output.played == [b"ID3-fake-mp3"]
        assert not playback.is_playing

    @pytest.mark.asyncio
    async def test_synthesis_failure_counts_as_finished(self, tts, audio_output):
        tts.synthesize.side_effect = SynthesisError("quota")
        playback = TTSPlayback(tts, audio_output)

        assert await playback.speak("Hello", AgentId.ALICE) is True
        assert audio_output.played == []


class TestCancel:
    """Tests for TTSPlayback.cancel()."""

    @pytest.mark.asyncio
    async def test_cancel_resolves_pending_speak(self, tts, held_output):
        playback = TTSPlayback(tts, held_output)
        task = asyncio.create_task(playback.speak("A long explanation", AgentId.ALICE))
        await asyncio.wait_for(held_output.started.wait(), timeout=1)

        assert playback.is_playing
        assert await playback.cancel() is True

        assert await asyncio.wait_for(task, timeout=1) is False
        assert held_output.stops == 1
        assert not playback.is_playing

    @pytest.mark.asyncio
    async def test_cancel_when_idle(self, tts, audio_output):
        playback = TTSPlayback(tts, audio_output)
        assert await playback.cancel() is False
        assert audio_output.stops == 0

    @pytest.mark.asyncio
    async def test_cancel_during_synthesis_drops_audio(self, tts, audio_output):
        gate = asyncio.Event()

        async def slow_synthesize(text, voice):
            await gate.wait()
            return b"late-audio"

        tts.synthesize.side_effect = slow_synthesize
        playback = TTSPlayback(tts, audio_output)
        task = asyncio.create_task(playback.speak("Hello", AgentId.BOB))
        await asyncio.sleep(0)

        await playback.cancel()
        gate.set()

        assert await asyncio.wait_for(task, timeout=1) is False
        assert audio_output.played == []

    @pytest.mark.asyncio
    async def test_fresh_token_per_utterance(self, tts, audio_output):
        """A cancel for one utterance never leaks into the next."""
        playback = TTSPlayback(tts, audio_output)
        await playback.cancel()

        assert await playback.speak("Next one", AgentId.BOB) is True
