"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from typing import Any

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Add tests to path for azure_mock imports
tests_path = Path(__file__).parent
sys.path.insert(0, str(tests_path))

from appdeploy.context import SubscriptionContext  # noqa: E402
from appdeploy.models import DeploymentSpec  # noqa: E402
from appdeploy.resolver import DeploymentTargets, resolve_targets  # noqa: E402
from azure_mock import (  # noqa: E402
    DEFAULT_SUBSCRIPTION_ID,
    DNS_SUBSCRIPTION_ID,
    MockAzureClients,
    MockAzureState,
)


@pytest.fixture
def deployment_data() -> dict[str, Any]:
    """Raw deployment description matching the seeded mock state."""
    return {
        "appName": "myapp-eastus-d",
        "location": "eastus",
        "resourceGroup": "rg-apps",
        "appServicePlan": {"name": "asp-apps"},
        "managedIdentity": {"name": "id-apps"},
        "network": {
            "virtualNetwork": "vnet-apps",
            "appSubnet": "snet-app",
            "privateEndpointSubnet": "snet-pe",
        },
        "dnsZone": {
            "name": "privatelink.azurewebsites.net",
            "resourceGroup": "rg-dns",
            "subscriptionId": DNS_SUBSCRIPTION_ID,
        },
        "image": "myregistry.azurecr.io/team/api:1.4.2",
        "port": 8080,
        "appSettings": {"FEATURE_FLAG": "on"},
    }


@pytest.fixture
def deployment_spec(deployment_data: dict[str, Any]) -> DeploymentSpec:
    return DeploymentSpec.model_validate(deployment_data)


@pytest.fixture
def azure_state() -> MockAzureState:
    state = MockAzureState()
    state.seed()
    return state


@pytest.fixture
def subscription_context() -> SubscriptionContext:
    return SubscriptionContext(DEFAULT_SUBSCRIPTION_ID)


@pytest.fixture
def mock_clients(azure_state: MockAzureState, subscription_context: SubscriptionContext) -> MockAzureClients:
    return MockAzureClients(azure_state, subscription_context)


@pytest.fixture
def targets(
    mock_clients: MockAzureClients,
    azure_state: MockAzureState,
    deployment_spec: DeploymentSpec,
) -> DeploymentTargets:
    """Resolved targets with the lookup calls cleared from the call log."""
    resolved = resolve_targets(mock_clients, deployment_spec)
    azure_state.calls.clear()
    return resolved
