"""Lookup of the existing resources a deployment is wired into.

Only read calls are made here. Nothing is created or changed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .context import AzureClients
from .models import DeploymentSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DnsZoneHandle:
    """A private DNS zone together with where it lives."""

    zone: Any
    resource_group: str
    subscription_id: str

    @property
    def name(self) -> str:
        return self.zone.name


@dataclass(frozen=True)
class DeploymentTargets:
    """Resolved handles for everything the web app depends on.

    Attributes are the SDK model objects returned by the lookups
    (ResourceGroup, AppServicePlan, Identity, VirtualNetwork, Subnet).
    """

    resource_group: Any
    plan: Any
    identity: Any
    virtual_network: Any
    app_subnet: Any
    endpoint_subnet: Any
    dns_zone: DnsZoneHandle

    @property
    def location(self) -> str:
        return self.resource_group.location


def resolve_targets(clients: AzureClients, spec: DeploymentSpec) -> DeploymentTargets:
    """Look up every resource referenced by the deployment.

    The DNS zone is read with its own subscription active.

    Raises:
        azure.core.exceptions.ResourceNotFoundError: If a referenced resource is missing.
    """
    resource_group = clients.resources().resource_groups.get(spec.resource_group)
    plan = clients.web().app_service_plans.get(spec.plan_resource_group(), spec.app_service_plan.name)
    identity = clients.identities().user_assigned_identities.get(
        spec.identity_resource_group(), spec.managed_identity.name
    )

    network_client = clients.network()
    network_rg = spec.network_resource_group()
    vnet = network_client.virtual_networks.get(network_rg, spec.network.virtual_network)
    app_subnet = network_client.subnets.get(
        network_rg, spec.network.virtual_network, spec.network.app_subnet
    )
    endpoint_subnet = network_client.subnets.get(
        network_rg, spec.network.virtual_network, spec.network.private_endpoint_subnet
    )

    with clients.context.switched_to(spec.dns_zone.subscription_id):
        zone = clients.private_dns().private_zones.get(
            spec.dns_zone.resource_group, spec.dns_zone.name
        )

    logger.info(
        "Resolved deployment targets for '%s' in resource group %s",
        spec.app_name,
        spec.resource_group,
    )
    return DeploymentTargets(
        resource_group=resource_group,
        plan=plan,
        identity=identity,
        virtual_network=vnet,
        app_subnet=app_subnet,
        endpoint_subnet=endpoint_subnet,
        dns_zone=DnsZoneHandle(
            zone=zone,
            resource_group=spec.dns_zone.resource_group,
            subscription_id=spec.dns_zone.subscription_id,
        ),
    )
