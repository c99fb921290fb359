#!/usr/bin/env python3
"""
Health command for opsdeploy CLI

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from typing import Annotated

import typer

from opsdeploy.core.errors import OpsDeployError, handle_error

from ..constants import ExitCode
from ..utils import (
    console,
    setup_logging,
    build_deployer,
    exit_code_for_error,
    display_health_table,
)
from .deployment import AppIdArg, RegionOpt, ConfigOpt, VerboseOpt


def health(
    app_id: AppIdArg,
    layer: Annotated[
        str, typer.Option("--layer", "-l", help="Layer to inspect")
    ],
    region: RegionOpt = None,
    config: ConfigOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """
    🩺 Show the load balancer health of a layer's instances.

    Exits non-zero when any instance is out of service.
    """
    setup_logging(verbose)

    try:
        deployer = build_deployer(app_id, region=region, config_file=config)
        records = deployer.instance_health(layer)
    except OpsDeployError as e:
        handle_error(e)
        raise typer.Exit(exit_code_for_error(e))

    if not deployer.inventory.layer(layer).load_balancer:
        console.print(f"ℹ️  Layer [cyan]{layer}[/cyan] has no load balancer")
        raise typer.Exit(ExitCode.SUCCESS)

    display_health_table(layer, records)
    unhealthy = [instance for instance, record in records if not record.in_service]
    if unhealthy:
        console.print(f"⚠️  [yellow]{len(unhealthy)} instances out of service[/yellow]")
        raise typer.Exit(ExitCode.DEPLOY_FAILURE)
    raise typer.Exit(ExitCode.SUCCESS)
