#!/usr/bin/env python3
"""
Data model shared by the services and the deployment core.

Read-only snapshots of cloud state plus the command and status enums of
the deployment service.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

IN_SERVICE = "InService"


class DeploymentCommand(Enum):
    """Commands accepted by the deployment service."""

    DEPLOY = "deploy"
    UPDATE_CUSTOM_COOKBOOKS = "update_custom_cookbooks"


class DeploymentStatus(Enum):
    """Deployment status enumeration."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCESSFUL = "successful"
    FAILED = "failed"
    TIMED_OUT = "timed_out"  # attempt budget exhausted, never reported by the service


@dataclass(frozen=True)
class Application:
    """Deployable application and its owning stack."""

    app_id: str
    stack_id: str
    name: str = ""


@dataclass(frozen=True)
class Layer:
    """Role-based group of instances within a stack."""

    name: str
    layer_id: str
    load_balancer: Optional[str] = None


@dataclass(frozen=True)
class Instance:
    """Managed compute instance.

    ``ec2_instance_id`` is the id the load balancer knows the instance by.
    """

    instance_id: str
    hostname: str
    ec2_instance_id: str
    status: str = ""


@dataclass(frozen=True)
class DrainingPolicy:
    """Connection draining attributes of a load balancer."""

    enabled: bool
    timeout: int = 0


@dataclass(frozen=True)
class HealthCheckPolicy:
    """Health check settings of a load balancer."""

    healthy_threshold: int
    interval: int


@dataclass(frozen=True)
class InstanceHealth:
    """Point-in-time health of one instance in a load balancer."""

    instance_id: str
    state: str
    reason_code: str = ""
    description: str = ""

    @property
    def in_service(self) -> bool:
        return self.state == IN_SERVICE
