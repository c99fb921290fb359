#!/usr/bin/env python3
"""
CLI Package for opsdeploy

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from .app import app, cli_main
from .constants import ExitCode
from .utils import (
    setup_logging,
    build_deployer,
    exit_code_for_error,
    display_deployment_result,
    display_rolling_table,
    display_health_table,
)

__all__ = [
    "app",
    "cli_main",
    "ExitCode",
    "setup_logging",
    "build_deployer",
    "exit_code_for_error",
    "display_deployment_result",
    "display_rolling_table",
    "display_health_table",
]
