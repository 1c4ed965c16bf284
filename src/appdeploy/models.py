"""Pydantic models for the deployment description with validation.

These models provide:
1. Type-safe YAML parsing
2. Validation at the boundary (fail fast, fail loudly)
3. Resolution of optional per-resource resource groups
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, Field, field_validator

from .config import PRIVATE_DNS_ZONE_SUFFIX

# App Service site names: 2-60 chars, lowercase alphanumerics and hyphens
VALID_APP_NAME_PATTERN = r"^[a-z0-9][a-z0-9-]{0,58}[a-z0-9]$"

# registry/image:tag, registry host is the first path segment
VALID_IMAGE_PATTERN = r"^[A-Za-z0-9.-]+(:[0-9]+)?/[A-Za-z0-9._/-]+:[A-Za-z0-9._-]+$"


class SettingsOverride(str, Enum):
    """Precedence between fixed app settings and caller-supplied ones."""

    FIXED_WINS = "fixed-wins"
    CALLER_WINS = "caller-wins"


class AppServicePlanRef(BaseModel):
    """Existing App Service plan the web app runs on."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    name: Annotated[str, Field(min_length=1)]
    resource_group: str | None = Field(None, alias="resourceGroup")


class ManagedIdentityRef(BaseModel):
    """Existing user-assigned identity bound to the web app."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    name: Annotated[str, Field(min_length=1)]
    resource_group: str | None = Field(None, alias="resourceGroup")


class NetworkRef(BaseModel):
    """Virtual network placement for VNet integration and the private endpoint."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    virtual_network: Annotated[str, Field(min_length=1)] = Field(alias="virtualNetwork")
    app_subnet: Annotated[str, Field(min_length=1)] = Field(alias="appSubnet")
    private_endpoint_subnet: Annotated[str, Field(min_length=1)] = Field(
        alias="privateEndpointSubnet"
    )
    resource_group: str | None = Field(None, alias="resourceGroup")


class DnsZoneRef(BaseModel):
    """Private DNS zone, possibly owned by another subscription."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    name: Annotated[str, Field(min_length=1)]
    resource_group: Annotated[str, Field(min_length=1)] = Field(alias="resourceGroup")
    subscription_id: Annotated[str, Field(min_length=1)] = Field(alias="subscriptionId")

    @field_validator("name")
    @classmethod
    def validate_zone_suffix(cls, v: str) -> str:
        if not v.lower().rstrip(".").endswith(PRIVATE_DNS_ZONE_SUFFIX):
            raise ValueError(f"DNS zone {v!r} must end with {PRIVATE_DNS_ZONE_SUFFIX}")
        return v


class DeploymentSpec(BaseModel):
    """Everything needed to provision or remove one private web app."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    app_name: str = Field(alias="appName")
    location: Annotated[str, Field(min_length=1)]
    resource_group: Annotated[str, Field(min_length=1, max_length=90)] = Field(
        alias="resourceGroup"
    )
    app_service_plan: AppServicePlanRef = Field(alias="appServicePlan")
    managed_identity: ManagedIdentityRef = Field(alias="managedIdentity")
    network: NetworkRef
    dns_zone: DnsZoneRef = Field(alias="dnsZone")
    image: str
    port: Annotated[int, Field(ge=1, le=65535)] = 80
    app_settings: dict[str, str] = Field(default_factory=dict, alias="appSettings")
    settings_override: SettingsOverride = Field(
        SettingsOverride.FIXED_WINS, alias="settingsOverride"
    )
    tags: dict[str, str] = Field(default_factory=dict)

    @field_validator("app_name")
    @classmethod
    def validate_app_name(cls, v: str) -> str:
        if not re.match(VALID_APP_NAME_PATTERN, v):
            raise ValueError(
                "appName must be 2-60 lowercase letters, digits or hyphens "
                "and must not start or end with a hyphen"
            )
        return v

    @field_validator("image")
    @classmethod
    def validate_image(cls, v: str) -> str:
        if not re.match(VALID_IMAGE_PATTERN, v):
            raise ValueError("image must be in the form registry/image:tag")
        return v

    @field_validator("app_settings", mode="before")
    @classmethod
    def stringify_settings(cls, v: object) -> object:
        # YAML turns 8080 and true into int/bool; App Service only stores strings
        if isinstance(v, dict):
            return {str(key): str(value).lower() if isinstance(value, bool) else str(value)
                    for key, value in v.items()}
        return v

    def plan_resource_group(self) -> str:
        return self.app_service_plan.resource_group or self.resource_group

    def identity_resource_group(self) -> str:
        return self.managed_identity.resource_group or self.resource_group

    def network_resource_group(self) -> str:
        return self.network.resource_group or self.resource_group
