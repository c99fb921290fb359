#!/usr/bin/env python3
"""
Rolling deploy command for opsdeploy CLI

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from typing import Annotated, Optional

import typer
from rich.panel import Panel

from opsdeploy.core.errors import OpsDeployError, handle_error

from ..constants import ExitCode
from ..utils import (
    console,
    setup_logging,
    build_deployer,
    exit_code_for_error,
    display_rolling_table,
)
from .deployment import AppIdArg, RegionOpt, ConfigOpt, VerboseOpt, _validate_timeout


def rolling_deploy(
    app_id: AppIdArg,
    layer: Annotated[
        str, typer.Option("--layer", "-l", help="Layer to roll")
    ],
    timeout: Annotated[
        Optional[int],
        typer.Option(
            "--timeout", "-t",
            help="Seconds to wait for each instance's deployment (default: timeouts.rolling)",
        ),
    ] = None,
    region: RegionOpt = None,
    config: ConfigOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """
    🔄 Deploy to a layer one instance at a time.

    Each instance is removed from the layer's load balancer, deployed,
    added back and checked for health. The first failure stops the rollout.
    """
    setup_logging(verbose)
    _validate_timeout(timeout)

    console.print(
        Panel(
            f"🔄 [bold cyan]Rolling deploy on {layer} layer[/bold cyan]\n"
            f"App: [yellow]{app_id}[/yellow]\n"
            f"Region: [yellow]{region or 'Default'}[/yellow]",
            title="Rolling Deploy Configuration",
            border_style="magenta",
        )
    )

    try:
        deployer = build_deployer(app_id, region=region, config_file=config)
        result = deployer.roll_layer(layer, timeout)
    except OpsDeployError as e:
        handle_error(e)
        raise typer.Exit(exit_code_for_error(e))

    display_rolling_table(result)

    if result.success:
        console.print(
            f"🎉 [bold green]Rolling deploy of {layer} completed on "
            f"{result.total_instances} instances[/bold green]"
        )
        raise typer.Exit(ExitCode.SUCCESS)

    failed = result.failed_instance
    console.print(
        f"💥 [bold red]Rolling deploy of {layer} stopped at "
        f"{failed.hostname if failed else 'unknown instance'}[/bold red]"
    )
    raise typer.Exit(ExitCode.DEPLOY_FAILURE)
