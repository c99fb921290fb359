"""
Orchestration layer for opsdeploy.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from .deployer import Deployer

__all__ = ["Deployer"]
