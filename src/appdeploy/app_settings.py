"""App settings merged onto the web app."""

from __future__ import annotations

import logging

from .models import SettingsOverride

logger = logging.getLogger(__name__)

PORT_SETTING = "WEBSITES_PORT"
ROUTE_ALL_SETTING = "WEBSITE_VNET_ROUTE_ALL"
REGISTRY_URL_SETTING = "DOCKER_REGISTRY_SERVER_URL"

FIXED_SETTING_KEYS: frozenset[str] = frozenset({PORT_SETTING, ROUTE_ALL_SETTING})


def registry_url(image: str) -> str:
    """Return the registry URL for an image reference.

    >>> registry_url("myacr.azurecr.io/team/api:1.2")
    'https://myacr.azurecr.io'
    """
    host = image.split("/", 1)[0]
    return f"https://{host}"


def merge_app_settings(
    image: str,
    port: int,
    additional: dict[str, str] | None = None,
    override: SettingsOverride = SettingsOverride.FIXED_WINS,
) -> dict[str, str]:
    """Build the full settings mapping for the web app.

    The port and route-all entries are fixed. With FIXED_WINS a caller entry for
    either key is dropped with a warning; with CALLER_WINS it replaces the fixed
    value. The registry URL is derived from the image and may always be
    overridden by the caller.
    """
    fixed = {
        PORT_SETTING: str(port),
        ROUTE_ALL_SETTING: "1",
    }
    settings = {REGISTRY_URL_SETTING: registry_url(image), **fixed}

    for key, value in (additional or {}).items():
        if key in FIXED_SETTING_KEYS and override is SettingsOverride.FIXED_WINS:
            if value != fixed[key]:
                logger.warning("Ignoring app setting %s=%s; fixed value %s wins", key, value, fixed[key])
            continue
        settings[key] = value

    return settings


def to_arm_app_settings(settings: dict[str, str]) -> list[dict[str, str]]:
    """Convert a settings mapping to the ARM siteConfig.appSettings array."""
    return [{"name": key, "value": value} for key, value in settings.items()]
