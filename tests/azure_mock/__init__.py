"""Azure API Mock for testing the deployer.

Provides in-memory stand-ins for the Azure management clients the deployer
uses (resources, web, network, managed identity, private DNS).

Key Features:
- In-memory state for looked-up and created resources
- Ordered call log tagged with the subscription of each client
- Error injection per operation for failure scenarios

Usage:
    from azure_mock import MockAzureClients, MockAzureState

    state = MockAzureState()
    state.seed()
    clients = MockAzureClients(state, SubscriptionContext(DEFAULT_SUBSCRIPTION_ID))
"""

from .clients import MockAzureClients, MockPoller
from .context import MockAzureContext, mock_azure_context
from .state import (
    DEFAULT_SUBSCRIPTION_ID,
    DNS_SUBSCRIPTION_ID,
    MUTATING_OPERATIONS,
    MockAzureState,
    MockCall,
)

__all__ = [
    "DEFAULT_SUBSCRIPTION_ID",
    "DNS_SUBSCRIPTION_ID",
    "MUTATING_OPERATIONS",
    "MockAzureClients",
    "MockAzureContext",
    "MockAzureState",
    "MockCall",
    "MockPoller",
    "mock_azure_context",
]
