#!/usr/bin/env python3
"""
Collaborator interfaces consumed by the deployment core.

StackInventory, DeploymentService and LoadBalancerService are implemented
by the boto3 adapters in ``opsdeploy.services.aws`` and by in-memory fakes
in the tests.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from opsdeploy.models import (
    Application,
    DeploymentCommand,
    DeploymentStatus,
    DrainingPolicy,
    HealthCheckPolicy,
    Instance,
    InstanceHealth,
    Layer,
)


class StackInventory(ABC):
    """Resolves applications, layers and instances."""

    @abstractmethod
    def resolve_app(self, app_id: str) -> Application:
        """
        Look up an application.

        Raises:
            AppNotFoundError: If zero or several applications match
        """

    @abstractmethod
    def list_layers(self, stack_id: str) -> Dict[str, Layer]:
        """Return the stack's layers keyed by name."""

    @abstractmethod
    def list_instances(
        self, stack_id: Optional[str] = None, layer_id: Optional[str] = None
    ) -> List[Instance]:
        """Return the instances of a stack or of a single layer, in service order."""


class DeploymentService(ABC):
    """Creates deployments and reports their status."""

    @abstractmethod
    def create_deployment(
        self,
        stack_id: str,
        app_id: str,
        instance_ids: Optional[Sequence[str]],
        command: DeploymentCommand,
        comment: str,
    ) -> str:
        """
        Create a deployment.

        Args:
            stack_id: Owning stack
            app_id: Application to deploy
            instance_ids: Target instances, None for every instance of the stack
            command: Command to run
            comment: Free-text tag stored with the deployment

        Returns:
            Deployment id
        """

    @abstractmethod
    def poll_status(self, deployment_id: str) -> DeploymentStatus:
        """Return the current status of a deployment."""


class LoadBalancerService(ABC):
    """Membership and health operations on named load balancers."""

    @abstractmethod
    def describe_attributes(self, name: str) -> DrainingPolicy:
        """Return the connection draining policy."""

    @abstractmethod
    def describe(self, name: str) -> HealthCheckPolicy:
        """Return the health check policy."""

    @abstractmethod
    def deregister(self, name: str, instance_id: str) -> int:
        """Deregister an instance. Returns the number of instances left."""

    @abstractmethod
    def register(self, name: str, instance_id: str) -> int:
        """Register an instance. Returns the number of instances attached."""

    @abstractmethod
    def describe_instance_health(self, name: str, instance_id: str) -> InstanceHealth:
        """Return the current health of an instance."""
