#!/usr/bin/env python3
"""
boto3 implementations of the collaborator interfaces.

OpsWorks backs the inventory and the deployments; a classic Elastic Load
Balancer backs the load balancer operations. botocore ClientErrors are
translated into opsdeploy errors at this boundary.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from opsdeploy.core.errors import (
    AppNotFoundError,
    DeploymentServiceError,
    InventoryError,
    LoadBalancerServiceError,
    create_error_context,
)
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
from opsdeploy.services.base import DeploymentService, LoadBalancerService, StackInventory

logger = logging.getLogger(__name__)

# OpsWorks deployment statuses
_STATUS_MAP = {
    "pending": DeploymentStatus.PENDING,
    "running": DeploymentStatus.RUNNING,
    "successful": DeploymentStatus.SUCCESSFUL,
    "failed": DeploymentStatus.FAILED,
}


def _error_code(error: Exception) -> str:
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code", "")
    return ""


class OpsWorksInventory(StackInventory):
    """Stack inventory read from the OpsWorks API."""

    def __init__(self, client: Any = None, region: Optional[str] = None):
        self.client = client or boto3.client("opsworks", region_name=region)

    def resolve_app(self, app_id: str) -> Application:
        context = create_error_context("resolve_app", component="OpsWorksInventory", app_id=app_id)
        try:
            data = self.client.describe_apps(AppIds=[app_id])
        except ClientError as e:
            if _error_code(e) == "ResourceNotFoundException":
                raise AppNotFoundError(app_id, context=context, cause=e) from e
            raise InventoryError(f"Failed to describe app {app_id}: {e}", context=context, cause=e) from e
        except BotoCoreError as e:
            raise InventoryError(f"Failed to describe app {app_id}: {e}", context=context, cause=e) from e

        apps = data.get("Apps") or []
        if len(apps) != 1:
            raise AppNotFoundError(app_id, matches=len(apps), context=context)

        app = apps[0]
        return Application(app_id=app["AppId"], stack_id=app["StackId"], name=app.get("Name", ""))

    def list_layers(self, stack_id: str) -> Dict[str, Layer]:
        context = create_error_context("list_layers", component="OpsWorksInventory")
        try:
            layers = self.client.describe_layers(StackId=stack_id).get("Layers", [])
            load_balancers = self.client.describe_elastic_load_balancers(StackId=stack_id).get(
                "ElasticLoadBalancers", []
            )
        except (ClientError, BotoCoreError) as e:
            raise InventoryError(
                f"Failed to describe layers of stack {stack_id}: {e}", context=context, cause=e
            ) from e

        elb_by_layer = {
            elb["LayerId"]: elb["ElasticLoadBalancerName"]
            for elb in load_balancers
            if elb.get("LayerId")
        }
        return {
            layer["Name"]: Layer(
                name=layer["Name"],
                layer_id=layer["LayerId"],
                load_balancer=elb_by_layer.get(layer["LayerId"]),
            )
            for layer in layers
        }

    def list_instances(
        self, stack_id: Optional[str] = None, layer_id: Optional[str] = None
    ) -> List[Instance]:
        if (stack_id is None) == (layer_id is None):
            raise ValueError("Exactly one of stack_id or layer_id is required")

        params = {"LayerId": layer_id} if layer_id else {"StackId": stack_id}
        try:
            data = self.client.describe_instances(**params)
        except (ClientError, BotoCoreError) as e:
            raise InventoryError(
                f"Failed to describe instances for {params}: {e}",
                context=create_error_context("list_instances", component="OpsWorksInventory"),
                cause=e,
            ) from e

        return [
            Instance(
                instance_id=item["InstanceId"],
                hostname=item.get("Hostname", item["InstanceId"]),
                ec2_instance_id=item.get("Ec2InstanceId", ""),
                status=item.get("Status", ""),
            )
            for item in data.get("Instances", [])
        ]


class OpsWorksDeploymentService(DeploymentService):
    """Deployments through the OpsWorks API."""

    def __init__(self, client: Any = None, region: Optional[str] = None):
        self.client = client or boto3.client("opsworks", region_name=region)

    def create_deployment(
        self,
        stack_id: str,
        app_id: str,
        instance_ids: Optional[Sequence[str]],
        command: DeploymentCommand,
        comment: str,
    ) -> str:
        request = {
            "StackId": stack_id,
            "AppId": app_id,
            "Command": {"Name": command.value},
            "Comment": comment,
        }
        # OpsWorks targets the whole stack when InstanceIds is omitted
        if instance_ids is not None:
            request["InstanceIds"] = list(instance_ids)

        try:
            response = self.client.create_deployment(**request)
        except (ClientError, BotoCoreError) as e:
            raise DeploymentServiceError(
                f"Failed to create {command.value} deployment: {e}",
                code=_error_code(e),
                context=create_error_context("create_deployment", app_id=app_id),
                cause=e,
            ) from e
        return response["DeploymentId"]

    def poll_status(self, deployment_id: str) -> DeploymentStatus:
        try:
            response = self.client.describe_deployments(DeploymentIds=[deployment_id])
        except (ClientError, BotoCoreError) as e:
            raise DeploymentServiceError(
                f"Failed to describe deployment {deployment_id}: {e}",
                code=_error_code(e),
                context=create_error_context("poll_status"),
                cause=e,
            ) from e

        deployments = response.get("Deployments") or []
        if not deployments:
            raise DeploymentServiceError(f"Deployment {deployment_id} not found")

        raw = deployments[0].get("Status", "")
        status = _STATUS_MAP.get(raw)
        if status is None:
            logger.warning("Unknown status %r for deployment %s", raw, deployment_id)
            return DeploymentStatus.PENDING
        return status


class ClassicLoadBalancerService(LoadBalancerService):
    """Classic Elastic Load Balancer operations."""

    def __init__(self, client: Any = None, region: Optional[str] = None):
        self.client = client or boto3.client("elb", region_name=region)

    def _call(self, operation: str, name: str, **kwargs) -> Dict[str, Any]:
        try:
            return getattr(self.client, operation)(LoadBalancerName=name, **kwargs)
        except (ClientError, BotoCoreError) as e:
            raise LoadBalancerServiceError(
                f"{operation} failed for load balancer {name}: {e}",
                code=_error_code(e),
                context=create_error_context(operation, component="ClassicLoadBalancerService"),
                cause=e,
            ) from e

    def describe_attributes(self, name: str) -> DrainingPolicy:
        response = self._call("describe_load_balancer_attributes", name)
        draining = response.get("LoadBalancerAttributes", {}).get("ConnectionDraining", {})
        return DrainingPolicy(
            enabled=bool(draining.get("Enabled", False)),
            timeout=int(draining.get("Timeout", 0)),
        )

    def describe(self, name: str) -> HealthCheckPolicy:
        try:
            response = self.client.describe_load_balancers(LoadBalancerNames=[name])
        except (ClientError, BotoCoreError) as e:
            raise LoadBalancerServiceError(
                f"describe_load_balancers failed for load balancer {name}: {e}",
                code=_error_code(e),
                cause=e,
            ) from e

        descriptions = response.get("LoadBalancerDescriptions") or []
        if not descriptions:
            raise LoadBalancerServiceError(f"Load balancer {name} not found")

        health_check = descriptions[0]["HealthCheck"]
        return HealthCheckPolicy(
            healthy_threshold=int(health_check["HealthyThreshold"]),
            interval=int(health_check["Interval"]),
        )

    def deregister(self, name: str, instance_id: str) -> int:
        response = self._call(
            "deregister_instances_from_load_balancer", name, Instances=[{"InstanceId": instance_id}]
        )
        return len(response.get("Instances", []))

    def register(self, name: str, instance_id: str) -> int:
        response = self._call(
            "register_instances_with_load_balancer", name, Instances=[{"InstanceId": instance_id}]
        )
        return len(response.get("Instances", []))

    def describe_instance_health(self, name: str, instance_id: str) -> InstanceHealth:
        response = self._call(
            "describe_instance_health", name, Instances=[{"InstanceId": instance_id}]
        )
        states = response.get("InstanceStates") or []
        if not states:
            return InstanceHealth(instance_id=instance_id, state="Unknown")

        state = states[0]
        return InstanceHealth(
            instance_id=state.get("InstanceId", instance_id),
            state=state.get("State", "Unknown"),
            reason_code=state.get("ReasonCode", ""),
            description=state.get("Description", ""),
        )
