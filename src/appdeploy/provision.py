"""Provisioning of a private, containerized web app.

FLOW (real run, strictly ordered, fail fast):
1. Create the web app on the plan with the user-assigned identity
2. Apply app settings (fixed entries, registry URL, caller additions)
3. Derive the private endpoint IP from the endpoint subnet
4. Create the private endpoint with a private link connection to the app
5. Switch to the DNS zone's subscription
6. Create A-records for the app and its scm host
7. Restore the previous subscription (always, also on failure)

A failure aborts the run and propagates. Resources created by earlier steps
stay in place and are listed in the error log; nothing is rolled back.

A dry run validates, renders the web app as an ARM template on disk and
returns its path without any remote call.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from azure.mgmt.network.models import (
    PrivateEndpoint,
    PrivateEndpointIPConfiguration,
    PrivateLinkServiceConnection,
    Subnet,
)
from azure.mgmt.privatedns.models import ARecord, RecordSet, RecordType
from azure.mgmt.web.models import (
    ManagedServiceIdentity,
    Site,
    SiteConfig,
    StringDictionary,
    UserAssignedIdentity,
)

from .addressing import first_assignable_address, subnet_prefix
from .app_settings import merge_app_settings
from .approval import ConfirmationGate
from .config import (
    DNS_RECORD_TTL_SECONDS,
    PRIVATE_DNS_ZONE_SUFFIX,
    PRIVATE_ENDPOINT_PREFIX,
    PRIVATE_LINK_CONNECTION_PREFIX,
    PRIVATE_LINK_GROUP_ID,
    SCM_RECORD_SUFFIX,
)
from .context import AzureClients
from .models import VALID_APP_NAME_PATTERN, VALID_IMAGE_PATTERN, DeploymentSpec
from .resolver import DeploymentTargets
from .template import (
    CONTAINER_SITE_KIND,
    build_site_template,
    dry_run_path,
    linux_fx_version,
    write_template,
)

logger = logging.getLogger(__name__)


class DeploymentValidationError(Exception):
    """Raised when inputs are rejected before any resource is touched."""

    pass


@dataclass
class ProvisionProgress:
    """Resource ids created so far, in creation order."""

    created: list[str] = field(default_factory=list)

    def record(self, resource_id: str) -> None:
        self.created.append(resource_id)


def private_endpoint_name(app_name: str) -> str:
    return f"{PRIVATE_ENDPOINT_PREFIX}{app_name}"


def validate_inputs(app_name: str, image: str, dns_zone_name: str) -> None:
    """Reject inputs that would fail or misroute a deployment.

    Raises:
        DeploymentValidationError: With every problem found.
    """
    errors: list[str] = []

    if not re.match(VALID_APP_NAME_PATTERN, app_name):
        errors.append(f"app name is not a valid web app name: {app_name!r}")

    if not re.match(VALID_IMAGE_PATTERN, image):
        errors.append(f"image must be in the form registry/image:tag: {image!r}")

    if not dns_zone_name.lower().rstrip(".").endswith(PRIVATE_DNS_ZONE_SUFFIX):
        errors.append(f"DNS zone {dns_zone_name!r} must end with {PRIVATE_DNS_ZONE_SUFFIX}")

    if errors:
        raise DeploymentValidationError("Invalid deployment:\n  - " + "\n  - ".join(errors))


class Provisioner:
    """Creates the web app, its private endpoint and its private DNS records."""

    def __init__(
        self,
        clients: AzureClients,
        output_dir: Path,
        gate: ConfirmationGate | None = None,
    ) -> None:
        """Initialize provisioner.

        Args:
            clients: Client factory bound to the active subscription.
            output_dir: Directory that receives dry-run templates.
            gate: Operator confirmation gate for real runs.
        """
        self._clients = clients
        self._output_dir = output_dir
        self._gate = gate or ConfirmationGate()

    def provision(
        self,
        spec: DeploymentSpec,
        targets: DeploymentTargets,
        *,
        dry_run: bool = False,
        force: bool = False,
        today: date | None = None,
    ) -> Site | Path | None:
        """Provision the web app described by spec onto the resolved targets.

        Returns:
            The created Site, the dry-run template Path, or None if the
            operator declined.

        Raises:
            DeploymentValidationError: Before any call, on invalid inputs.
            azure.core.exceptions.AzureError: When a provider call fails.
        """
        try:
            validate_inputs(spec.app_name, spec.image, targets.dns_zone.name)
        except DeploymentValidationError as e:
            logger.error("Provisioning of web app %s rejected: %s", spec.app_name, e)
            raise

        settings = merge_app_settings(
            spec.image, spec.port, spec.app_settings, spec.settings_override
        )

        if dry_run:
            return self._render(spec, targets, settings, today)

        if not self._gate.confirm("Create web app", spec.app_name, force=force):
            return None

        progress = ProvisionProgress()
        try:
            site = self._create_site(spec, targets, progress)
            self._apply_settings(spec, settings)
            private_ip = first_assignable_address(subnet_prefix(targets.endpoint_subnet))
            self._create_private_endpoint(spec, targets, site, private_ip, progress)
            self._register_dns(spec.app_name, targets, private_ip, progress)
        except Exception as e:
            logger.error(
                "Provisioning of web app %s failed: %s. Resources left in place: %s",
                spec.app_name,
                e,
                ", ".join(progress.created) or "none",
            )
            raise

        logger.info(
            "Provisioned web app %s behind private endpoint %s (%s)",
            spec.app_name,
            private_endpoint_name(spec.app_name),
            private_ip,
        )
        return site

    def _render(
        self,
        spec: DeploymentSpec,
        targets: DeploymentTargets,
        settings: dict[str, str],
        today: date | None,
    ) -> Path:
        template = build_site_template(
            app_name=spec.app_name,
            location=targets.location,
            plan_id=targets.plan.id,
            identity_id=targets.identity.id,
            identity_client_id=targets.identity.client_id,
            app_subnet_id=targets.app_subnet.id,
            image=spec.image,
            settings=settings,
            tags=spec.tags,
        )
        return write_template(template, dry_run_path(self._output_dir, spec.app_name, today))

    def _create_site(
        self, spec: DeploymentSpec, targets: DeploymentTargets, progress: ProvisionProgress
    ) -> Site:
        identity = targets.identity
        site_envelope = Site(
            location=targets.location,
            kind=CONTAINER_SITE_KIND,
            server_farm_id=targets.plan.id,
            https_only=True,
            virtual_network_subnet_id=targets.app_subnet.id,
            identity=ManagedServiceIdentity(
                type="UserAssigned",
                user_assigned_identities={identity.id: UserAssignedIdentity()},
            ),
            site_config=SiteConfig(
                linux_fx_version=linux_fx_version(spec.image),
                acr_use_managed_identity_creds=True,
                acr_user_managed_identity_id=identity.client_id,
                vnet_route_all_enabled=True,
            ),
            tags=spec.tags or None,
        )

        logger.info("Creating web app %s in %s", spec.app_name, spec.resource_group)
        site = (
            self._clients.web()
            .web_apps.begin_create_or_update(spec.resource_group, spec.app_name, site_envelope)
            .result()
        )
        progress.record(site.id)
        return site

    def _apply_settings(self, spec: DeploymentSpec, settings: dict[str, str]) -> None:
        logger.info("Applying %d app settings to %s", len(settings), spec.app_name)
        self._clients.web().web_apps.update_application_settings(
            spec.resource_group, spec.app_name, StringDictionary(properties=settings)
        )

    def _create_private_endpoint(
        self,
        spec: DeploymentSpec,
        targets: DeploymentTargets,
        site: Any,
        private_ip: str,
        progress: ProvisionProgress,
    ) -> Any:
        name = private_endpoint_name(spec.app_name)
        connection = PrivateLinkServiceConnection(
            name=f"{PRIVATE_LINK_CONNECTION_PREFIX}{spec.app_name}",
            private_link_service_id=site.id,
            group_ids=[PRIVATE_LINK_GROUP_ID],
        )
        endpoint = PrivateEndpoint(
            location=targets.location,
            subnet=Subnet(id=targets.endpoint_subnet.id),
            private_link_service_connections=[connection],
            ip_configurations=[
                PrivateEndpointIPConfiguration(
                    name=f"ipconfig-{spec.app_name}",
                    group_id=PRIVATE_LINK_GROUP_ID,
                    member_name=PRIVATE_LINK_GROUP_ID,
                    private_ip_address=private_ip,
                )
            ],
            tags=spec.tags or None,
        )

        logger.info("Creating private endpoint %s at %s", name, private_ip)
        created = (
            self._clients.network()
            .private_endpoints.begin_create_or_update(spec.resource_group, name, endpoint)
            .result()
        )
        progress.record(created.id)
        return created

    def _register_dns(
        self,
        app_name: str,
        targets: DeploymentTargets,
        private_ip: str,
        progress: ProvisionProgress,
    ) -> None:
        zone = targets.dns_zone
        with self._clients.context.switched_to(zone.subscription_id):
            dns_client = self._clients.private_dns()
            for record_name in (app_name, f"{app_name}{SCM_RECORD_SUFFIX}"):
                logger.info("Creating A record %s.%s -> %s", record_name, zone.name, private_ip)
                record = dns_client.record_sets.create_or_update(
                    zone.resource_group,
                    zone.name,
                    RecordType.A,
                    record_name,
                    RecordSet(ttl=DNS_RECORD_TTL_SECONDS, a_records=[ARecord(ipv4_address=private_ip)]),
                )
                progress.record(record.id)
