#!/usr/bin/env python3
"""
Utility functions for opsdeploy CLI

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import logging
from typing import List, Optional, Tuple

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from opsdeploy.config_loader import ConfigLoader
from opsdeploy.core.errors import (
    ConfigurationError,
    ErrorHandler,
    InventoryError,
    OpsDeployError,
    ValidationError,
    set_error_handler,
)
from opsdeploy.deployment.base import DeploymentResult, RollingResult
from opsdeploy.models import Instance, InstanceHealth
from opsdeploy.orchestration.deployer import Deployer
from opsdeploy.services.aws import (
    ClassicLoadBalancerService,
    OpsWorksDeploymentService,
    OpsWorksInventory,
)
from .constants import ExitCode


# Initialize Rich console
console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Setup Rich logging configuration and unified error handler."""
    log_level = logging.DEBUG if verbose else logging.INFO

    rich_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=verbose,
        markup=False,
        rich_tracebacks=True,
    )

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[rich_handler],
    )
    # boto is chatty at DEBUG
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)

    error_handler = ErrorHandler(console=console, verbose=verbose)
    set_error_handler(error_handler)


def print_attempt(deployment_id: str, attempt: int, max_attempts: int) -> None:
    """Poll observer printing one line per status check."""
    console.print(
        f"[dim]Attempt {attempt}/{max_attempts} to check deployment {deployment_id} status[/dim]"
    )


def build_deployer(
    app_id: str,
    region: Optional[str] = None,
    config_file: Optional[str] = None,
) -> Deployer:
    """
    Create a Deployer backed by the AWS services.

    Args:
        app_id: Application identifier
        region: AWS region, overrides the config file
        config_file: Optional JSON config file

    Returns:
        Deployer for the application

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    settings = ConfigLoader.load_settings(config_file, overrides={"region": region})
    return Deployer(
        app_id,
        inventory=OpsWorksInventory(region=settings.region),
        deployments=OpsWorksDeploymentService(region=settings.region),
        load_balancers=ClassicLoadBalancerService(region=settings.region),
        settings=settings,
        on_attempt=print_attempt,
    )


def exit_code_for_error(error: OpsDeployError) -> int:
    """Map a raised opsdeploy error to a process exit code."""
    if isinstance(error, InventoryError):
        return ExitCode.INVENTORY_ERROR
    if isinstance(error, (ValidationError, ConfigurationError)):
        return ExitCode.INVALID_ARGS
    return ExitCode.FAILURE


def display_deployment_result(result: DeploymentResult) -> None:
    """Print the outcome of a single deployment."""
    targets = "all instances" if result.instance_ids is None else ", ".join(result.instance_ids)
    if result.is_success:
        console.print(
            f"✅ [bold green]Deployment {result.deployment_id} successful[/bold green] "
            f"([cyan]{result.command.value}[/cyan] on {targets})"
        )
    else:
        console.print(
            f"❌ [bold red]Failed to deploy: {result.message or result.status.value}[/bold red]"
        )


def display_rolling_table(result: RollingResult) -> None:
    """Display one row per instance of a rolling deploy."""
    title = f"🔄 Rolling deploy of {result.layer_name}"
    if result.load_balancer:
        title += f" behind {result.load_balancer}"
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Index", justify="right", style="dim")
    table.add_column("Instance", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("Steps", style="blue")
    table.add_column("Deployment", style="yellow")

    for index, attempt in enumerate(result.attempts, start=1):
        steps = " → ".join(step.value for step in attempt.completed_steps) or "-"
        if attempt.success:
            status = "✅ Success"
        else:
            failed = attempt.failed_step.value if attempt.failed_step else "unknown"
            status = f"❌ Failed ({failed})"
        deployment_id = attempt.deployment.deployment_id if attempt.deployment else "-"
        table.add_row(str(index), attempt.hostname, status, steps, deployment_id or "-")

    if result.skipped_instances:
        table.add_row("", f"{result.skipped_instances} more", "⏭️ Not attempted", "", "")
    if result.total_instances == 0:
        table.add_row("1", "", "ℹ️ No instances", "", "")

    console.print(table)


def display_health_table(layer_name: str, health: List[Tuple[Instance, InstanceHealth]]) -> None:
    """Display the load balancer state of each instance in a layer."""
    table = Table(
        title=f"🩺 Instance health for {layer_name}", show_header=True, header_style="bold magenta"
    )
    table.add_column("Instance", style="cyan")
    table.add_column("EC2 Id", style="dim")
    table.add_column("State", style="bold")
    table.add_column("Reason")
    table.add_column("Description")

    for instance, record in health:
        state = f"✅ {record.state}" if record.in_service else f"⚠️  {record.state}"
        table.add_row(
            instance.hostname,
            instance.ec2_instance_id,
            state,
            record.reason_code or "",
            record.description or "",
        )

    if not health:
        table.add_row("", "", "ℹ️ No load balancer instances", "", "")

    console.print(table)
