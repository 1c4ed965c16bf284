"""Command line entry point for the private web app deployer.

Usage:
    appdeploy --create [--dry-run] [--force] [--config deployment.yaml]
    appdeploy --remove [--force] [--config deployment.yaml]

Exit code 0 on success, 1 on any failure (2 for usage errors).
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from .config import Config, ConfigurationError
from .context import AzureClients, SubscriptionContext
from .decommission import Decommissioner
from .loader import load_deployment
from .logs import purge_expired_logs, setup_logging
from .provision import Provisioner, validate_inputs
from .resolver import resolve_targets
from .security import get_credential

logger = logging.getLogger(__name__)


def build_clients(config: Config) -> AzureClients:
    """Create the client factory for the configured subscription."""
    credential = get_credential(config.client_id)
    return AzureClients(credential, SubscriptionContext(config.subscription_id))


def execute(
    config: Config,
    *,
    create: bool,
    dry_run: bool = False,
    force: bool = False,
    deployment_file: Path | None = None,
) -> int:
    """Run the selected operation.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    mode = "create" if create else "remove"

    try:
        spec = load_deployment(deployment_file or config.deployment_file)
        if create:
            validate_inputs(spec.app_name, spec.image, spec.dns_zone.name)
        clients = build_clients(config)

        if create:
            targets = resolve_targets(clients, spec)
            result = Provisioner(clients, config.output_dir).provision(
                spec, targets, dry_run=dry_run, force=force
            )
            if isinstance(result, Path):
                logger.info("Dry run complete, template written to %s", result)
        else:
            if dry_run:
                logger.warning("--dry-run has no effect with --remove; ignoring it")
                return 0
            Decommissioner(clients).remove(spec.app_name, spec.resource_group, force=force)
    except Exception as e:
        logger.error("Operation %s failed: %s", mode, e)
        return 1

    logger.info("Operation %s finished", mode)
    return 0


@click.command()
@click.version_option(version="0.1.0", prog_name="appdeploy")
@click.option("--create", is_flag=True, help="Provision the web app and its private endpoint")
@click.option("--remove", is_flag=True, help="Delete the private endpoint and the web app")
@click.option("--dry-run", is_flag=True, help="Write the deployment template instead of creating")
@click.option("--force", "-f", is_flag=True, help="Skip the confirmation prompt")
@click.option(
    "--config",
    "deployment_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Deployment YAML (default: $DEPLOYMENT_FILE or deployment.yaml)",
)
def cli(create: bool, remove: bool, dry_run: bool, force: bool, deployment_file: Path | None) -> None:
    """Provision or remove a private, containerized Azure web app."""
    if create == remove:
        raise click.UsageError("Specify exactly one of --create or --remove")

    try:
        config = Config.from_env()
    except ConfigurationError as e:
        click.secho(str(e), fg="red", err=True)
        sys.exit(1)

    purged = purge_expired_logs(config.log_dir, config.log_retention_months)
    log_path = setup_logging(config.log_dir)
    logger.info("Logging to %s", log_path)
    for path in purged:
        logger.info("Deleted expired log file %s", path)

    sys.exit(
        execute(
            config,
            create=create,
            dry_run=dry_run,
            force=force,
            deployment_file=deployment_file,
        )
    )


def run() -> None:
    """Entry point for the console script."""
    cli()


if __name__ == "__main__":
    run()
