#!/usr/bin/env python3
"""
Non-rolling deployment commands for opsdeploy CLI

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from typing import Annotated, Callable, Optional

import typer
from rich.panel import Panel

from opsdeploy.core.errors import OpsDeployError, handle_error
from opsdeploy.deployment.base import DeploymentResult
from opsdeploy.orchestration.deployer import Deployer

from ..constants import ENV_REGION, ExitCode
from ..utils import (
    console,
    setup_logging,
    build_deployer,
    exit_code_for_error,
    display_deployment_result,
)


AppIdArg = Annotated[str, typer.Argument(help="Application id to deploy")]
RegionOpt = Annotated[
    Optional[str], typer.Option("--region", "-r", envvar=ENV_REGION, help="AWS region")
]
ConfigOpt = Annotated[
    Optional[str], typer.Option("--config", "-c", help="JSON configuration file")
]
VerboseOpt = Annotated[
    bool, typer.Option("--verbose", "-v", help="Enable verbose logging")
]


def _validate_timeout(timeout: Optional[int]) -> None:
    if timeout is not None and timeout <= 0:
        console.print("❌ [red]Timeout must be a positive number of seconds[/red]")
        raise typer.Exit(ExitCode.INVALID_ARGS)


def _run(
    app_id: str,
    region: Optional[str],
    config: Optional[str],
    title: str,
    action: Callable[[Deployer], DeploymentResult],
) -> None:
    """Build a deployer, run ``action`` and exit with the matching code."""
    console.print(
        Panel(
            f"🚀 [bold cyan]{title}[/bold cyan]\n"
            f"App: [yellow]{app_id}[/yellow]\n"
            f"Region: [yellow]{region or 'Default'}[/yellow]",
            title="Deployment Configuration",
            border_style="blue",
        )
    )
    try:
        deployer = build_deployer(app_id, region=region, config_file=config)
        result = action(deployer)
    except OpsDeployError as e:
        handle_error(e)
        raise typer.Exit(exit_code_for_error(e))

    display_deployment_result(result)
    if result.is_success:
        raise typer.Exit(ExitCode.SUCCESS)
    raise typer.Exit(ExitCode.DEPLOY_FAILURE)


def update_cookbooks(
    app_id: AppIdArg,
    timeout: Annotated[
        Optional[int],
        typer.Option(
            "--timeout", "-t",
            help="Seconds to wait for the update (default: timeouts.update_cookbooks)",
        ),
    ] = None,
    region: RegionOpt = None,
    config: ConfigOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """
    📚 Update custom cookbooks on every instance of the stack.
    """
    setup_logging(verbose)
    _validate_timeout(timeout)
    _run(
        app_id, region, config,
        "Updating cookbooks",
        lambda deployer: deployer.update_cookbooks(timeout),
    )


def deploy(
    app_id: AppIdArg,
    layer: Annotated[
        Optional[str],
        typer.Option("--layer", "-l", help="Layer to deploy (default: all layers)"),
    ] = None,
    timeout: Annotated[
        Optional[int],
        typer.Option(
            "--timeout", "-t",
            help="Seconds to wait for the deployment (default: timeouts.deploy)",
        ),
    ] = None,
    region: RegionOpt = None,
    config: ConfigOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """
    🚀 Deploy to one layer, or to every layer of the stack.
    """
    setup_logging(verbose)
    _validate_timeout(timeout)
    title = f"Deploying on {layer} layer" if layer else "Deploying on all layers"
    _run(app_id, region, config, title, lambda deployer: deployer.deploy(layer, timeout))


def deploy_exclude(
    app_id: AppIdArg,
    layer: Annotated[
        str, typer.Option("--layer", "-l", help="Layer to leave out")
    ],
    timeout: Annotated[
        Optional[int],
        typer.Option(
            "--timeout", "-t",
            help="Seconds to wait for the deployment (default: timeouts.deploy)",
        ),
    ] = None,
    region: RegionOpt = None,
    config: ConfigOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """
    🚀 Deploy to every layer except one.
    """
    setup_logging(verbose)
    _validate_timeout(timeout)
    _run(
        app_id, region, config,
        f"Deploying to all layers except {layer}",
        lambda deployer: deployer.deploy_excluding(layer, timeout),
    )
