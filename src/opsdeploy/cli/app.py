#!/usr/bin/env python3
"""
Main CLI Application for opsdeploy

This module contains the main Typer app and entry point for the opsdeploy CLI.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import sys
from typing import Annotated

import typer
from rich.traceback import install

from opsdeploy import __version__

from .commands import deploy, deploy_exclude, update_cookbooks, rolling_deploy, health
from .constants import ExitCode
from .utils import console

install(show_locals=False)

app = typer.Typer(
    name="opsdeploy",
    help="🚀 opsdeploy - Deploy applications to OpsWorks stacks, one layer or one instance at a time",
    rich_markup_mode="rich",
    add_completion=False,
    no_args_is_help=True,
)

app.command("update-cookbooks")(update_cookbooks)
app.command("deploy")(deploy)
app.command("deploy-exclude")(deploy_exclude)
app.command("rolling-deploy")(rolling_deploy)
app.command("health")(health)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        bool, typer.Option("--version", help="Show version and exit")
    ] = False,
) -> None:
    """
    🚀 opsdeploy

    Rolling and layer-scoped deployments for OpsWorks applications
    behind classic Elastic Load Balancers.
    """
    if version:
        console.print(
            f"🚀 [bold cyan]opsdeploy[/bold cyan] version [green]{__version__}[/green]"
        )
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        ctx.exit()


def cli_main() -> None:
    """Entry point for the CLI application."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n🛑 [yellow]Operation cancelled by user[/yellow]")
        sys.exit(ExitCode.FAILURE)
    except Exception as e:
        console.print(f"💥 [bold red]Unexpected error: {e}[/bold red]")
        console.print_exception()
        sys.exit(ExitCode.FAILURE)


if __name__ == "__main__":
    cli_main()
