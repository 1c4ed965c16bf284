"""Configuration management with validation.

Runtime settings come from environment variables and are validated when the
Config is constructed, so a bad value stops the tool before any Azure call.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


# Configuration constants with documented bounds
DEFAULT_DEPLOYMENT_FILE = "deployment.yaml"
DEFAULT_LOG_DIR = "logs"

DEFAULT_LOG_RETENTION_MONTHS = 3
MIN_LOG_RETENTION_MONTHS = 1
MAX_LOG_RETENTION_MONTHS = 24

# Private endpoints for App Service always live in this zone
PRIVATE_DNS_ZONE_SUFFIX = "privatelink.azurewebsites.net"
DNS_RECORD_TTL_SECONDS = 300

PRIVATE_ENDPOINT_PREFIX = "pe-"
PRIVATE_LINK_CONNECTION_PREFIX = "plsc-"
PRIVATE_LINK_GROUP_ID = "sites"
SCM_RECORD_SUFFIX = ".scm"

# Azure reserves the first four addresses of every subnet
AZURE_RESERVED_SUBNET_ADDRESSES = 4

# Input validation patterns
VALID_SUBSCRIPTION_ID_PATTERN = r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"


def get_project_root() -> Path:
    """Get the project root directory.

    Returns:
        Path to project root (where pyproject.toml lives).
    """
    current = Path(__file__).resolve()
    for parent in [current, *current.parents]:
        if (parent / "pyproject.toml").exists():
            return parent
    return Path.cwd()


@dataclass(frozen=True)
class Config:
    """Tool configuration loaded from environment variables.

    All fields are validated at construction time. Invalid configurations
    raise ConfigurationError immediately rather than failing mid-deployment.
    """

    subscription_id: str

    deployment_file: Path = field(default_factory=lambda: Path(DEFAULT_DEPLOYMENT_FILE))
    log_dir: Path = field(default_factory=lambda: Path(DEFAULT_LOG_DIR))
    output_dir: Path = field(default_factory=get_project_root)

    # User-assigned identity for the tool itself; unset means Azure CLI login
    client_id: str | None = None

    log_retention_months: int = DEFAULT_LOG_RETENTION_MONTHS

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        errors: list[str] = []

        if not self.subscription_id:
            errors.append("AZURE_SUBSCRIPTION_ID is required")
        elif not re.match(VALID_SUBSCRIPTION_ID_PATTERN, self.subscription_id.lower()):
            errors.append(f"AZURE_SUBSCRIPTION_ID must be a valid GUID: {self.subscription_id}")

        if not (
            MIN_LOG_RETENTION_MONTHS <= self.log_retention_months <= MAX_LOG_RETENTION_MONTHS
        ):
            errors.append(
                f"LOG_RETENTION_MONTHS must be between {MIN_LOG_RETENTION_MONTHS} "
                f"and {MAX_LOG_RETENTION_MONTHS}"
            )

        if self.output_dir.exists() and not self.output_dir.is_dir():
            errors.append(f"OUTPUT_DIR is not a directory: {self.output_dir}")

        if errors:
            error_msg = "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            raise ConfigurationError(error_msg)

    @classmethod
    def from_env(cls) -> Config:
        """Load configuration from environment variables.

        Environment Variables:
            AZURE_SUBSCRIPTION_ID: Subscription that owns the web app
            DEPLOYMENT_FILE: Path to the deployment YAML (default: deployment.yaml)
            LOG_DIR: Directory for daily log files (default: logs)
            OUTPUT_DIR: Directory for dry-run templates (default: project root)
            AZURE_CLIENT_ID: Client ID of a user-assigned managed identity
            LOG_RETENTION_MONTHS: Months of log files to keep (default: 3)
        """

        def get_int(key: str, default: int) -> int:
            value = os.environ.get(key)
            if value is None:
                return default
            try:
                return int(value)
            except ValueError as e:
                raise ConfigurationError(f"{key} must be an integer: {value}") from e

        output_dir = os.environ.get("OUTPUT_DIR")

        return cls(
            subscription_id=os.environ.get("AZURE_SUBSCRIPTION_ID", ""),
            deployment_file=Path(os.environ.get("DEPLOYMENT_FILE", DEFAULT_DEPLOYMENT_FILE)),
            log_dir=Path(os.environ.get("LOG_DIR", DEFAULT_LOG_DIR)),
            output_dir=Path(output_dir) if output_dir else get_project_root(),
            client_id=os.environ.get("AZURE_CLIENT_ID") or None,
            log_retention_months=get_int("LOG_RETENTION_MONTHS", DEFAULT_LOG_RETENTION_MONTHS),
        )
