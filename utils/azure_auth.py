"""
utils/azure_auth.py
-------------------
Entra ID credential for Azure OpenAI when no API key is configured.

Only used by ``src.aoai.client`` on the Azure path; the public OpenAI path
authenticates with an API key and never touches azure-identity.
"""

import logging
import os
from functools import lru_cache

from azure.identity import DefaultAzureCredential, ManagedIdentityCredential
from utils.ml_logging import get_logger

logging.getLogger("azure.identity").setLevel(logging.WARNING)

logger = get_logger("utils.azure_auth")

_PROD_ENVIRONMENTS = ("prod", "production", "staging")


def credential_mode() -> str:
    """
    Which credential chain ``get_credential`` will build.

    Returns:
        "managed_identity" when hosted with an identity endpoint, "developer"
        (Azure CLI login) for local runs, "environment" otherwise.
    """
    if os.getenv("AZURE_CLIENT_ID") or os.getenv("MSI_ENDPOINT") or os.getenv("IDENTITY_ENDPOINT"):
        return "managed_identity"
    if os.getenv("ENVIRONMENT", "").lower() not in _PROD_ENVIRONMENTS:
        return "developer"
    return "environment"


@lru_cache(maxsize=1)
def get_credential():
    """Process-wide credential, built once for the mode reported by ``credential_mode``."""
    mode = credential_mode()
    logger.info("Azure credential mode: %s", mode)

    if mode == "managed_identity":
        return ManagedIdentityCredential(client_id=os.getenv("AZURE_CLIENT_ID"))

    # Developer runs rely on `az login`; hosted runs never fall back to it.
    return DefaultAzureCredential(
        exclude_managed_identity_credential=mode == "developer",
        exclude_workload_identity_credential=True,
        exclude_shared_token_cache_credential=True,
        exclude_visual_studio_code_credential=True,
        exclude_cli_credential=mode != "developer",
        exclude_powershell_credential=True,
        exclude_interactive_browser_credential=True,
    )
