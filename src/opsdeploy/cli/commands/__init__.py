#!/usr/bin/env python3
"""
CLI Commands Package for opsdeploy

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from .deployment import deploy, deploy_exclude, update_cookbooks
from .rolling import rolling_deploy
from .health_report import health

__all__ = ["deploy", "deploy_exclude", "update_cookbooks", "rolling_deploy", "health"]
