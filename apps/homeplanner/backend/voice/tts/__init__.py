"""
TTS Module
==========

Cancellable text-to-speech playback for agent utterances.
"""

from .playback import AudioOutput, TTSPlayback

__all__ = ["AudioOutput", "TTSPlayback"]
