"""Credential acquisition for the deployer.

SECRETLESS MODEL:
- A user-assigned managed identity is used when AZURE_CLIENT_ID is set
- Otherwise the operator's Azure CLI login is used
- Service principal secrets, certificates and passwords are refused

SECURITY INVARIANTS:
1. AZURE_CLIENT_SECRET must never be present in the environment
2. No credential is ever read from or written to a file by this tool
"""

from __future__ import annotations

import logging
import os

from azure.core.credentials import TokenCredential
from azure.identity import AzureCliCredential, ManagedIdentityCredential

logger = logging.getLogger(__name__)

# Environment variables that indicate credential leakage
FORBIDDEN_CREDENTIAL_ENV_VARS: tuple[str, ...] = (
    "AZURE_CLIENT_SECRET",
    "AZURE_CLIENT_CERTIFICATE_PATH",
    "AZURE_CLIENT_CERTIFICATE_PASSWORD",
    "AZURE_USERNAME",
    "AZURE_PASSWORD",
)

SECRETLESS_VIOLATION_MESSAGE = (
    "SECURITY VIOLATION: {env_var} is set. This tool only authenticates with a "
    "managed identity or an Azure CLI login. Remove the variable and sign in with "
    "'az login' or set AZURE_CLIENT_ID to a user-assigned identity."
)


class SecretlessViolationError(Exception):
    """Raised when a credential secret is found in the environment."""

    pass


def enforce_secretless_architecture() -> None:
    """Refuse to run when credential secrets are present in the environment.

    Raises:
        SecretlessViolationError: If any credential environment variable is set.
    """
    for env_var in FORBIDDEN_CREDENTIAL_ENV_VARS:
        if os.environ.get(env_var):
            logger.critical("Secretless violation: %s is set", env_var)
            raise SecretlessViolationError(SECRETLESS_VIOLATION_MESSAGE.format(env_var=env_var))


def get_credential(client_id: str | None = None) -> TokenCredential:
    """Get a credential after verifying no secrets are present.

    Args:
        client_id: Client ID of a user-assigned managed identity. When None,
                   the Azure CLI login of the operator is used.

    Returns:
        Token credential for the Azure management clients.

    Raises:
        SecretlessViolationError: If credential environment variables detected.
    """
    enforce_secretless_architecture()

    if client_id:
        masked = client_id[:8] + "..." if len(client_id) > 8 else client_id
        logger.info("Using user-assigned managed identity %s", masked)
        return ManagedIdentityCredential(client_id=client_id)

    logger.info("Using Azure CLI credential")
    return AzureCliCredential()
