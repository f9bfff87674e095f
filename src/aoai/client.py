"""
src/aoai/client.py
------------------
Single shared OpenAI client for chat completions, transcription and speech.

Azure OpenAI is used when AZURE_OPENAI_ENDPOINT is configured (API key, or
Entra ID bearer tokens via azure-identity when no key is set); otherwise the
public OpenAI endpoint is used with OPENAI_API_KEY.
"""

from __future__ import annotations

import os
import threading

from azure.identity import get_bearer_token_provider
from openai import AzureOpenAI, OpenAI
from utils.azure_auth import get_credential
from utils.ml_logging import get_logger

logger = get_logger("aoai.client")

_COGNITIVE_SCOPE = "https://cognitiveservices.azure.com/.default"

_client_instance: OpenAI | AzureOpenAI | None = None
_client_lock = threading.Lock()


def create_openai_client(
    *,
    azure_endpoint: str | None = None,
    azure_api_key: str | None = None,
    openai_api_key: str | None = None,
    api_version: str | None = None,
    timeout: float | None = None,
) -> OpenAI | AzureOpenAI:
    """
    Create an OpenAI-compatible client.

    Parameters default to environment variables when not provided. SDK-level
    retries are disabled: a failed call surfaces once to the caller.

    Raises:
        ValueError: If neither an Azure endpoint nor an OpenAI API key is available.
    """
    azure_endpoint = azure_endpoint or os.getenv("AZURE_OPENAI_ENDPOINT", "")
    azure_api_key = azure_api_key or os.getenv("AZURE_OPENAI_KEY", "")
    openai_api_key = openai_api_key or os.getenv("OPENAI_API_KEY", "")
    api_version = api_version or os.getenv("AZURE_OPENAI_API_VERSION", "2025-01-01-preview")
    timeout = timeout or float(os.getenv("AOAI_REQUEST_TIMEOUT", "30.0"))

    if azure_endpoint:
        if azure_api_key:
            logger.info("Using API key authentication for Azure OpenAI")
            return AzureOpenAI(
                api_version=api_version,
                azure_endpoint=azure_endpoint,
                api_key=azure_api_key,
                timeout=timeout,
                max_retries=0,
            )

        logger.info("Using Azure AD authentication for Azure OpenAI")
        token_provider = get_bearer_token_provider(get_credential(), _COGNITIVE_SCOPE)
        return AzureOpenAI(
            api_version=api_version,
            azure_endpoint=azure_endpoint,
            azure_ad_token_provider=token_provider,
            timeout=timeout,
            max_retries=0,
        )

    if openai_api_key:
        logger.info("Using OpenAI API key authentication")
        return OpenAI(api_key=openai_api_key, timeout=timeout, max_retries=0)

    raise ValueError(
        "AZURE_OPENAI_ENDPOINT or OPENAI_API_KEY must be provided via argument or environment."
    )


def get_client() -> OpenAI | AzureOpenAI:
    """
    Get the shared client (lazy initialization).

    Raises:
        ValueError: If no endpoint or key is configured.
    """
    global _client_instance
    if _client_instance is None:
        with _client_lock:
            if _client_instance is None:
                _client_instance = create_openai_client()
    return _client_instance


def reset_client() -> None:
    """Drop the cached client (tests, credential rotation)."""
    global _client_instance
    with _client_lock:
        _client_instance = None
