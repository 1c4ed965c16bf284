"""Removal of a private web app and its private endpoint.

The endpoint goes first so the private link connection never points at a
deleted site. DNS records in the zone are left untouched.
"""

from __future__ import annotations

import logging

from azure.core.exceptions import ResourceNotFoundError

from .approval import ConfirmationGate
from .context import AzureClients
from .provision import private_endpoint_name

logger = logging.getLogger(__name__)


class Decommissioner:
    """Deletes the private endpoint (if any) and then the web app."""

    def __init__(self, clients: AzureClients, gate: ConfirmationGate | None = None) -> None:
        self._clients = clients
        self._gate = gate or ConfirmationGate()

    def remove(self, app_name: str, resource_group: str, *, force: bool = False) -> None:
        """Remove app_name from resource_group.

        A missing private endpoint is skipped. Any other failure is logged and
        re-raised.
        """
        if not self._gate.confirm("Remove web app", app_name, force=force):
            return

        try:
            self._delete_private_endpoint(app_name, resource_group)
            logger.info("Deleting web app %s in %s", app_name, resource_group)
            self._clients.web().web_apps.delete(resource_group, app_name)
        except Exception as e:
            logger.error("Removal of web app %s failed: %s", app_name, e)
            raise

        logger.info("Removed web app %s from %s", app_name, resource_group)

    def _delete_private_endpoint(self, app_name: str, resource_group: str) -> None:
        name = private_endpoint_name(app_name)
        network_client = self._clients.network()
        try:
            network_client.private_endpoints.get(resource_group, name)
        except ResourceNotFoundError:
            logger.debug("Private endpoint %s not found, skipping", name)
            return

        logger.info("Deleting private endpoint %s", name)
        network_client.private_endpoints.begin_delete(resource_group, name).result()
