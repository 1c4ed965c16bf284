"""Deployment file loading with validation.

SECURITY: File reads enforce a size limit and YAML is parsed with safe_load.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import DeploymentSpec

logger = logging.getLogger(__name__)

MAX_DEPLOYMENT_FILE_SIZE_BYTES = 1024 * 1024  # 1MB


class DeploymentLoadError(Exception):
    """Raised when the deployment file cannot be loaded or fails validation."""

    pass


def load_deployment(path: Path) -> DeploymentSpec:
    """Load and validate a deployment description from YAML.

    Args:
        path: Path to the deployment YAML file.

    Returns:
        Validated deployment spec.

    Raises:
        DeploymentLoadError: If the file cannot be loaded or fails validation.
    """
    if not path.exists():
        raise DeploymentLoadError(f"Deployment file not found: {path}")

    try:
        file_size = path.stat().st_size
    except OSError as e:
        raise DeploymentLoadError(f"Failed to stat deployment file {path}: {e}") from e

    if file_size > MAX_DEPLOYMENT_FILE_SIZE_BYTES:
        raise DeploymentLoadError(
            f"Deployment file exceeds maximum size of {MAX_DEPLOYMENT_FILE_SIZE_BYTES} bytes: {path}"
        )

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DeploymentLoadError(f"Failed to read deployment file {path}: {e}") from e

    try:
        raw_data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise DeploymentLoadError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(raw_data, dict):
        raise DeploymentLoadError(f"Deployment file must contain a YAML mapping: {path}")

    # Accept Kubernetes-style apiVersion/kind/spec wrapper as well as flat content
    if "apiVersion" in raw_data and "spec" in raw_data:
        data = raw_data.get("spec", {})
        if not isinstance(data, dict):
            raise DeploymentLoadError(f"Spec section must be a mapping: {path}")
    else:
        data = raw_data

    try:
        spec = DeploymentSpec.model_validate(data)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"  - {loc}: {error['msg']}")

        error_list = "\n".join(errors)
        raise DeploymentLoadError(f"Validation failed for {path}:\n{error_list}") from e

    logger.info("Loaded deployment for app '%s' from %s", spec.app_name, path)
    return spec
