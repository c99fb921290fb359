"""
Collaborator interfaces and their AWS implementations.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from .base import (
    Application,
    DeploymentService,
    DrainingPolicy,
    HealthCheckPolicy,
    Instance,
    InstanceHealth,
    Layer,
    LoadBalancerService,
    StackInventory,
)

__all__ = [
    "Application",
    "DeploymentService",
    "DrainingPolicy",
    "HealthCheckPolicy",
    "Instance",
    "InstanceHealth",
    "Layer",
    "LoadBalancerService",
    "StackInventory",
]
