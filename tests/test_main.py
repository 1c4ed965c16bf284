"""Tests for the command line dispatcher."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from appdeploy.config import Config
from appdeploy.main import cli, execute
from appdeploy.models import DeploymentSpec, DnsZoneRef
from azure_mock import DEFAULT_SUBSCRIPTION_ID, DNS_SUBSCRIPTION_ID, MockAzureContext


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def env(tmp_path: Path, deployment_data: dict[str, Any]) -> dict[str, str]:
    """Environment pointing at a deployment file and temp directories."""
    deployment_file = tmp_path / "deployment.yaml"
    deployment_file.write_text(yaml.safe_dump(deployment_data), encoding="utf-8")
    (tmp_path / "out").mkdir()
    return {
        "AZURE_SUBSCRIPTION_ID": DEFAULT_SUBSCRIPTION_ID,
        "DEPLOYMENT_FILE": str(deployment_file),
        "LOG_DIR": str(tmp_path / "logs"),
        "OUTPUT_DIR": str(tmp_path / "out"),
    }


@pytest.fixture(autouse=True)
def no_log_handlers():
    """Keep the CLI from attaching handlers to the root logger."""
    with patch("appdeploy.main.setup_logging", return_value=Path("deploy.log")) as mock_setup:
        yield mock_setup


class TestModeSelection:
    """Tests for create/remove flag handling."""

    def test_no_mode_is_usage_error(self, runner: CliRunner, env: dict[str, str]) -> None:
        """Test that a mode is required."""
        result = runner.invoke(cli, [], env=env)

        assert result.exit_code == 2
        assert "exactly one of --create or --remove" in result.output

    def test_both_modes_is_usage_error(self, runner: CliRunner, env: dict[str, str]) -> None:
        """Test that the modes are mutually exclusive."""
        with MockAzureContext() as ctx:
            result = runner.invoke(cli, ["--create", "--remove"], env=env)

        assert result.exit_code == 2
        assert ctx.state.calls == []


class TestCreate:
    """Tests for --create."""

    def test_dry_run(self, runner: CliRunner, env: dict[str, str], tmp_path: Path) -> None:
        """Test a dry run writes the dated template and mutates nothing."""
        with MockAzureContext() as ctx:
            result = runner.invoke(cli, ["--create", "--dry-run"], env=env)

        assert result.exit_code == 0, result.output
        expected = tmp_path / "out" / f"myapp-eastus-d-DryRun-{date.today().isoformat()}.json"
        assert expected.exists()
        assert ctx.state.mutating_calls == []

    def test_forced_create(self, runner: CliRunner, env: dict[str, str]) -> None:
        """Test a forced create provisions everything."""
        with MockAzureContext() as ctx:
            result = runner.invoke(cli, ["--create", "--force"], env=env)

        assert result.exit_code == 0, result.output
        assert ("rg-apps", "myapp-eastus-d") in ctx.state.sites
        assert ("rg-apps", "pe-myapp-eastus-d") in ctx.state.private_endpoints
        assert len(ctx.state.records) == 2
        assert ctx.subscription.current == DEFAULT_SUBSCRIPTION_ID

    def test_declined_create(self, runner: CliRunner, env: dict[str, str]) -> None:
        """Test answering no exits 0 without changes."""
        with MockAzureContext() as ctx:
            result = runner.invoke(cli, ["--create"], env=env, input="n\n")

        assert result.exit_code == 0, result.output
        assert ctx.state.mutating_calls == []

    def test_confirmed_create(self, runner: CliRunner, env: dict[str, str]) -> None:
        """Test answering yes provisions the app."""
        with MockAzureContext() as ctx:
            result = runner.invoke(cli, ["--create"], env=env, input="y\n")

        assert result.exit_code == 0, result.output
        assert ("rg-apps", "myapp-eastus-d") in ctx.state.sites

    def test_provider_failure_exits_1(self, runner: CliRunner, env: dict[str, str]) -> None:
        """Test a failing provider call gives exit code 1."""
        with MockAzureContext(fail_on={"private_endpoints.begin_create_or_update": None}) as ctx:
            result = runner.invoke(cli, ["--create", "--force"], env=env)

        assert result.exit_code == 1
        assert "record_sets.create_or_update" not in ctx.state.operations

    def test_bad_zone_exits_1(
        self,
        runner: CliRunner,
        env: dict[str, str],
        deployment_data: dict[str, Any],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test an absent zone with the wrong suffix is a validation error, not a lookup error."""
        deployment_data["dnsZone"]["name"] = "privatelink.contoso.com"
        Path(env["DEPLOYMENT_FILE"]).write_text(yaml.safe_dump(deployment_data), encoding="utf-8")

        with MockAzureContext() as ctx:
            result = runner.invoke(cli, ["--create", "--dry-run"], env=env)

        assert result.exit_code == 1
        assert "must end with privatelink.azurewebsites.net" in caplog.text
        assert "was not found" not in caplog.text
        assert ctx.state.calls == []

    def test_zone_checked_before_lookups(
        self, tmp_path: Path, deployment_spec: DeploymentSpec, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test execute rejects a bad zone before resolving anything."""
        spec = deployment_spec.model_copy(
            update={
                "dns_zone": DnsZoneRef.model_construct(
                    name="contoso.com", resource_group="rg-dns", subscription_id=DNS_SUBSCRIPTION_ID
                )
            }
        )
        config = Config(subscription_id=DEFAULT_SUBSCRIPTION_ID, output_dir=tmp_path)

        with MockAzureContext() as ctx, patch("appdeploy.main.load_deployment", return_value=spec):
            exit_code = execute(config, create=True, dry_run=True)

        assert exit_code == 1
        assert "DNS zone 'contoso.com' must end with" in caplog.text
        assert ctx.state.calls == []

    def test_missing_deployment_file_exits_1(self, runner: CliRunner, env: dict[str, str], tmp_path: Path) -> None:
        """Test a missing deployment file gives exit code 1."""
        with MockAzureContext():
            result = runner.invoke(
                cli, ["--create", "--config", str(tmp_path / "absent.yaml")], env=env
            )

        assert result.exit_code == 1


class TestRemove:
    """Tests for --remove."""

    def test_forced_remove_order(self, runner: CliRunner, env: dict[str, str]) -> None:
        """Test the endpoint is deleted before the web app."""
        with MockAzureContext() as ctx:
            ctx.state.add_site("rg-apps", "myapp-eastus-d")
            ctx.state.add_private_endpoint("rg-apps", "pe-myapp-eastus-d")
            result = runner.invoke(cli, ["--remove", "--force"], env=env)

        assert result.exit_code == 0, result.output
        assert [call.operation for call in ctx.state.mutating_calls] == [
            "private_endpoints.begin_delete",
            "web_apps.delete",
        ]

    def test_remove_failure_exits_1(self, runner: CliRunner, env: dict[str, str]) -> None:
        """Test removing a missing app gives exit code 1."""
        with MockAzureContext():
            result = runner.invoke(cli, ["--remove", "--force"], env=env)

        assert result.exit_code == 1

    def test_remove_dry_run_does_nothing(self, runner: CliRunner, env: dict[str, str]) -> None:
        """Test --dry-run with --remove changes nothing."""
        with MockAzureContext() as ctx:
            ctx.state.add_site("rg-apps", "myapp-eastus-d")
            result = runner.invoke(cli, ["--remove", "--dry-run", "--force"], env=env)

        assert result.exit_code == 0
        assert ctx.state.mutating_calls == []


class TestStartup:
    """Tests for configuration and log housekeeping."""

    def test_invalid_configuration_exits_1(self, runner: CliRunner, env: dict[str, str]) -> None:
        """Test a bad subscription id gives exit code 1."""
        env["AZURE_SUBSCRIPTION_ID"] = "not-a-guid"

        result = runner.invoke(cli, ["--create", "--dry-run"], env=env)

        assert result.exit_code == 1
        assert "valid GUID" in result.output

    def test_expired_logs_purged(self, runner: CliRunner, env: dict[str, str]) -> None:
        """Test log files older than the retention window are deleted."""
        log_dir = Path(env["LOG_DIR"])
        log_dir.mkdir()
        old = log_dir / "deploy-2000-01-01.log"
        old.write_text("old\n")

        with MockAzureContext():
            result = runner.invoke(cli, ["--create", "--dry-run"], env=env)

        assert result.exit_code == 0, result.output
        assert not old.exists()
