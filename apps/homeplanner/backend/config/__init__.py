"""
Configuration Package
====================

Centralized configuration for the voice renovation assistant.

Structure:
  - settings.py   : All environment-loaded settings (flat, organized by domain)
  - constants.py  : Hard-coded values that never change
  - __init__.py   : This file (exports everything)

Usage:
    from apps.homeplanner.backend.config import DEFAULT_MAX_TOKENS, STATUS_IDLE
"""

from .constants import (
    DEFAULT_RECORDING_CONTENT_TYPE,
    DEFAULT_RECORDING_FILENAME,
    FALLBACK_REPLY,
    FALLBACK_TTS_VOICE,
    STATUS_IDLE,
    STATUS_MIC_DENIED,
    STATUS_NOT_UNDERSTOOD,
    STATUS_PROCESSING,
    STATUS_REASONING_FAILED,
    STATUS_RECORDING,
    STATUS_SPEAKING,
    STATUS_THINKING,
    STATUS_TRANSCRIBING,
    STATUS_TRANSCRIPTION_FAILED,
    STATUS_TRANSFERRING,
    TTS_CONTENT_TYPE,
    TTS_RESPONSE_FORMAT,
)
from .settings import (
    ALLOWED_ORIGINS,
    AOAI_REQUEST_TIMEOUT,
    AZURE_OPENAI_API_VERSION,
    AZURE_OPENAI_ENDPOINT,
    AZURE_OPENAI_KEY,
    CHAT_MODEL,
    DEFAULT_MAX_TOKENS,
    DEFAULT_SPEECH_SPEED,
    DEFAULT_TEMPERATURE,
    ENABLE_DOCS,
    ENVIRONMENT,
    HOST,
    MIN_AUDIO_BYTES,
    OPENAI_API_KEY,
    PORT,
    SPEECH_MODEL,
    START_AGENT,
    STATUS_REVERT_SECONDS,
    TRANSCRIPTION_LANGUAGE,
    TRANSCRIPTION_MODEL,
    validate_settings,
)

__all__ = [
    # Settings
    "ALLOWED_ORIGINS",
    "AOAI_REQUEST_TIMEOUT",
    "AZURE_OPENAI_API_VERSION",
    "AZURE_OPENAI_ENDPOINT",
    "AZURE_OPENAI_KEY",
    "CHAT_MODEL",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_SPEECH_SPEED",
    "DEFAULT_TEMPERATURE",
    "ENABLE_DOCS",
    "ENVIRONMENT",
    "HOST",
    "MIN_AUDIO_BYTES",
    "OPENAI_API_KEY",
    "PORT",
    "SPEECH_MODEL",
    "START_AGENT",
    "STATUS_REVERT_SECONDS",
    "TRANSCRIPTION_LANGUAGE",
    "TRANSCRIPTION_MODEL",
    "validate_settings",
    # Constants
    "DEFAULT_RECORDING_CONTENT_TYPE",
    "DEFAULT_RECORDING_FILENAME",
    "FALLBACK_REPLY",
    "FALLBACK_TTS_VOICE",
    "STATUS_IDLE",
    "STATUS_MIC_DENIED",
    "STATUS_NOT_UNDERSTOOD",
    "STATUS_PROCESSING",
    "STATUS_REASONING_FAILED",
    "STATUS_RECORDING",
    "STATUS_SPEAKING",
    "STATUS_THINKING",
    "STATUS_TRANSCRIBING",
    "STATUS_TRANSCRIPTION_FAILED",
    "STATUS_TRANSFERRING",
    "TTS_CONTENT_TYPE",
    "TTS_RESPONSE_FORMAT",
]
