"""
opsdeploy - rolling and non-rolling deployments for OpsWorks stacks.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

__version__ = "1.0.0"
