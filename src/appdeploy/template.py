"""Dry-run rendering of the web app as an ARM deployment template."""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any

from .app_settings import to_arm_app_settings

logger = logging.getLogger(__name__)

DEPLOYMENT_TEMPLATE_SCHEMA = (
    "https://schema.management.azure.com/schemas/2019-04-01/deploymentTemplate.json#"
)
WEB_SITE_API_VERSION = "2022-09-01"
CONTAINER_SITE_KIND = "app,linux,container"


def linux_fx_version(image: str) -> str:
    """Runtime string App Service uses for custom containers."""
    return f"DOCKER|{image}"


def build_site_template(
    app_name: str,
    location: str,
    plan_id: str,
    identity_id: str,
    identity_client_id: str,
    app_subnet_id: str,
    image: str,
    settings: dict[str, str],
    tags: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Build a deployment template describing one containerized web app."""
    site: dict[str, Any] = {
        "type": "Microsoft.Web/sites",
        "apiVersion": WEB_SITE_API_VERSION,
        "name": app_name,
        "location": location,
        "kind": CONTAINER_SITE_KIND,
        "identity": {
            "type": "UserAssigned",
            "userAssignedIdentities": {identity_id: {}},
        },
        "properties": {
            "serverFarmId": plan_id,
            "httpsOnly": True,
            "virtualNetworkSubnetId": app_subnet_id,
            "siteConfig": {
                "linuxFxVersion": linux_fx_version(image),
                "acrUseManagedIdentityCreds": True,
                "acrUserManagedIdentityID": identity_client_id,
                "vnetRouteAllEnabled": True,
                "appSettings": to_arm_app_settings(settings),
            },
        },
    }
    if tags:
        site["tags"] = dict(tags)

    return {
        "$schema": DEPLOYMENT_TEMPLATE_SCHEMA,
        "contentVersion": "1.0.0.0",
        "resources": [site],
    }


def dry_run_path(output_dir: Path, app_name: str, today: date | None = None) -> Path:
    day = (today or date.today()).isoformat()
    return output_dir / f"{app_name}-DryRun-{day}.json"


def write_template(template: dict[str, Any], path: Path) -> Path:
    """Serialize the template to path, creating the parent directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(template, indent=2) + "\n", encoding="utf-8")
    logger.info("Wrote dry-run template to %s", path)
    return path
