"""
Application Settings
====================

All environment-loaded configuration in one place, organized by domain.
This is the single source of truth for runtime configuration.

Loading Order:
    1. Load .env.local / .env (if present) - local development overrides
    2. Environment variables (container/cloud deployments) always win

Usage:
    from apps.homeplanner.backend.config import DEFAULT_MAX_TOKENS, MIN_AUDIO_BYTES
"""

import os
from pathlib import Path


def _load_dotenv_local():
    """
    Load .env.local file if it exists.

    Search order:
    1. apps/homeplanner/backend/.env.local (app-specific)
    2. Project root .env.local
    3. Project root .env (fallback)

    Only loads values NOT already set in the environment.
    """
    from dotenv import load_dotenv

    backend_dir = Path(__file__).parent.parent
    project_root = backend_dir.parent.parent.parent

    env_files = [
        backend_dir / ".env.local",
        project_root / ".env.local",
        project_root / ".env",
    ]

    for env_file in env_files:
        if env_file.exists():
            load_dotenv(env_file, override=False)
            break


_load_dotenv_local()


# ==============================================================================
# HELPER FUNCTIONS
# ==============================================================================


def _env_bool(key: str, default: bool = False) -> bool:
    """Parse boolean from environment variable."""
    return os.getenv(key, str(default)).lower() in ("true", "1", "yes", "on")


def _env_int(key: str, default: int) -> int:
    """Parse integer from environment variable."""
    return int(os.getenv(key, str(default)))


def _env_float(key: str, default: float) -> float:
    """Parse float from environment variable."""
    return float(os.getenv(key, str(default)))


def _env_list(key: str, default: str = "", sep: str = ",") -> list[str]:
    """Parse list from comma-separated environment variable."""
    raw = os.getenv(key, default)
    return [item.strip() for item in raw.split(sep) if item.strip()]


# ==============================================================================
# OPENAI / AZURE OPENAI
# ==============================================================================
# When AZURE_OPENAI_ENDPOINT is set the Azure client is used (API key or
# Entra ID); otherwise the public OpenAI endpoint with OPENAI_API_KEY.

AZURE_OPENAI_ENDPOINT: str = os.getenv("AZURE_OPENAI_ENDPOINT", "")
AZURE_OPENAI_KEY: str = os.getenv("AZURE_OPENAI_KEY", "")
AZURE_OPENAI_API_VERSION: str = os.getenv("AZURE_OPENAI_API_VERSION", "2025-01-01-preview")
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")

# Model / deployment names
CHAT_MODEL: str = os.getenv("AZURE_OPENAI_CHAT_DEPLOYMENT_ID") or os.getenv(
    "CHAT_MODEL", "gpt-4o-mini"
)
TRANSCRIPTION_MODEL: str = os.getenv("TRANSCRIPTION_MODEL", "whisper-1")
SPEECH_MODEL: str = os.getenv("SPEECH_MODEL", "tts-1")

# Model behavior
# 300 tokens is ~200-250 spoken words, roughly 60-90 seconds of speech
DEFAULT_MAX_TOKENS: int = _env_int("DEFAULT_MAX_TOKENS", 300)
DEFAULT_TEMPERATURE: float = _env_float("DEFAULT_TEMPERATURE", 0.7)
AOAI_REQUEST_TIMEOUT: float = _env_float("AOAI_REQUEST_TIMEOUT", 30.0)


# ==============================================================================
# SPEECH
# ==============================================================================

TRANSCRIPTION_LANGUAGE: str = os.getenv("TRANSCRIPTION_LANGUAGE", "en")
# 1.0 = normal conversational pace (range 0.25-4.0)
DEFAULT_SPEECH_SPEED: float = _env_float("DEFAULT_SPEECH_SPEED", 1.0)
# Recordings smaller than this are silence or recorder misfires
MIN_AUDIO_BYTES: int = _env_int("MIN_AUDIO_BYTES", 1000)


# ==============================================================================
# CONVERSATION
# ==============================================================================

START_AGENT: str = os.getenv("START_AGENT", "bob")
STATUS_REVERT_SECONDS: float = _env_float("STATUS_REVERT_SECONDS", 2.0)


# ==============================================================================
# SERVER
# ==============================================================================

HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = _env_int("PORT", 8010)
ALLOWED_ORIGINS: list[str] = _env_list("ALLOWED_ORIGINS", "*")
ENABLE_DOCS: bool = _env_bool("ENABLE_DOCS", True)
ENVIRONMENT: str = os.getenv("ENVIRONMENT", "dev")


# ==============================================================================
# VALIDATION
# ==============================================================================


def validate_settings() -> dict:
    """
    Validate settings that the voice pipeline depends on.

    Returns:
        Dict with 'errors' (unusable values) and 'warnings' (missing credentials).
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not AZURE_OPENAI_ENDPOINT and not OPENAI_API_KEY:
        warnings.append("Neither AZURE_OPENAI_ENDPOINT nor OPENAI_API_KEY is set")
    if AZURE_OPENAI_ENDPOINT and not AZURE_OPENAI_KEY:
        warnings.append("AZURE_OPENAI_KEY not set; Entra ID authentication will be used")

    if DEFAULT_MAX_TOKENS <= 0:
        errors.append(f"DEFAULT_MAX_TOKENS must be positive, got {DEFAULT_MAX_TOKENS}")
    if not 0.0 <= DEFAULT_TEMPERATURE <= 2.0:
        errors.append(f"DEFAULT_TEMPERATURE must be within 0-2, got {DEFAULT_TEMPERATURE}")
    if not 0.25 <= DEFAULT_SPEECH_SPEED <= 4.0:
        errors.append(f"DEFAULT_SPEECH_SPEED must be within 0.25-4.0, got {DEFAULT_SPEECH_SPEED}")
    if MIN_AUDIO_BYTES < 0:
        errors.append(f"MIN_AUDIO_BYTES must not be negative, got {MIN_AUDIO_BYTES}")
    if STATUS_REVERT_SECONDS < 0:
        errors.append(f"STATUS_REVERT_SECONDS must not be negative, got {STATUS_REVERT_SECONDS}")

    return {"errors": errors, "warnings": warnings}
