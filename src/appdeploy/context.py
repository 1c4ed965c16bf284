"""Active subscription selection and Azure client construction.

Every SDK client is built on demand for an explicit subscription id. The
active subscription only decides which id the next client gets, and
switched_to() guarantees it is put back after cross-subscription work.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from azure.core.credentials import TokenCredential
from azure.mgmt.msi import ManagedServiceIdentityClient
from azure.mgmt.network import NetworkManagementClient
from azure.mgmt.privatedns import PrivateDnsManagementClient
from azure.mgmt.resource import ResourceManagementClient
from azure.mgmt.web import WebSiteManagementClient

logger = logging.getLogger(__name__)


class SubscriptionContext:
    """Process-wide selector of the subscription targeted by new clients."""

    def __init__(self, subscription_id: str) -> None:
        self._current = subscription_id
        self._history: list[str] = [subscription_id]

    @property
    def current(self) -> str:
        return self._current

    @property
    def history(self) -> list[str]:
        """Every subscription that has been active, in order."""
        return self._history.copy()

    def set(self, subscription_id: str) -> None:
        if subscription_id != self._current:
            logger.info("Switching subscription %s -> %s", self._current, subscription_id)
        self._current = subscription_id
        self._history.append(subscription_id)

    @contextmanager
    def switched_to(self, subscription_id: str) -> Iterator[str]:
        """Make subscription_id active for the block, then restore the previous one.

        Restoration happens even when the block raises.
        """
        previous = self._current
        self.set(subscription_id)
        try:
            yield subscription_id
        finally:
            self.set(previous)


class AzureClients:
    """Factory for management clients bound to the active subscription."""

    def __init__(self, credential: TokenCredential, context: SubscriptionContext) -> None:
        self._credential = credential
        self._context = context

    @property
    def context(self) -> SubscriptionContext:
        return self._context

    def resources(self) -> ResourceManagementClient:
        return ResourceManagementClient(self._credential, self._context.current)

    def web(self) -> WebSiteManagementClient:
        return WebSiteManagementClient(self._credential, self._context.current)

    def network(self) -> NetworkManagementClient:
        return NetworkManagementClient(self._credential, self._context.current)

    def identities(self) -> ManagedServiceIdentityClient:
        return ManagedServiceIdentityClient(self._credential, self._context.current)

    def private_dns(self) -> PrivateDnsManagementClient:
        return PrivateDnsManagementClient(self._credential, self._context.current)
