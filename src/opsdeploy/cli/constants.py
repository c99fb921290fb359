#!/usr/bin/env python3
"""
Constants and configuration for opsdeploy CLI

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""


# Exit codes
class ExitCode:
    """Exit codes for CLI commands."""

    SUCCESS = 0
    FAILURE = 1
    DEPLOY_FAILURE = 2
    INVENTORY_ERROR = 3
    INVALID_ARGS = 4


# Environment
ENV_REGION = "AWS_DEFAULT_REGION"
