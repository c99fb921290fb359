"""In-memory collaborators for tests.

Each fake records the calls it receives so tests can assert on ordering
and arguments without a network.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

# built-in modules
from typing import Dict, List, Optional, Sequence

# project modules
from opsdeploy.core.errors import (
    AppNotFoundError,
    DeploymentServiceError,
    LoadBalancerServiceError,
)
from opsdeploy.models import (
    IN_SERVICE,
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


def make_instance(name: str) -> Instance:
    """Instance whose ids and hostname are derived from ``name``."""
    return Instance(instance_id=name, hostname=f"{name}-host", ec2_instance_id=f"ec2-{name}")


class FakeStackInventory(StackInventory):
    """Single-stack inventory.

    Stack instances are the layer instances in layer order (deduplicated),
    followed by ``unlayered`` instances.
    """

    def __init__(
        self,
        application: Application,
        layers: Sequence[Layer] = (),
        layer_instances: Optional[Dict[str, List[Instance]]] = None,
        unlayered: Sequence[Instance] = (),
    ):
        self.application = application
        self.layers = {layer.name: layer for layer in layers}
        self.layer_instances = layer_instances or {}
        self.unlayered = list(unlayered)
        self.calls: List[tuple] = []

    def resolve_app(self, app_id: str) -> Application:
        self.calls.append(("resolve_app", app_id))
        if app_id != self.application.app_id:
            raise AppNotFoundError(app_id)
        return self.application

    def list_layers(self, stack_id: str) -> Dict[str, Layer]:
        self.calls.append(("list_layers", stack_id))
        return dict(self.layers)

    def list_instances(self, stack_id=None, layer_id=None) -> List[Instance]:
        self.calls.append(("list_instances", stack_id, layer_id))
        if layer_id is not None:
            for name, layer in self.layers.items():
                if layer.layer_id == layer_id:
                    return list(self.layer_instances.get(name, []))
            return []

        seen = set()
        result = []
        for name in self.layers:
            for instance in self.layer_instances.get(name, []):
                if instance.instance_id not in seen:
                    seen.add(instance.instance_id)
                    result.append(instance)
        return result + self.unlayered


class FakeDeploymentService(DeploymentService):
    """Deployment service with scripted status sequences.

    Each created deployment consumes the next script from ``scripts``; the
    last status of a script repeats once it is exhausted. Exception entries
    are raised instead of returned. Without a script
    a deployment reports ``default``.
    """

    def __init__(
        self,
        scripts: Optional[List[List[DeploymentStatus]]] = None,
        default: DeploymentStatus = DeploymentStatus.SUCCESSFUL,
        fail_create: bool = False,
    ):
        self.scripts = list(scripts or [])
        self.default = default
        self.fail_create = fail_create
        self.created: List[dict] = []
        self.poll_counts: Dict[str, int] = {}
        self._statuses: Dict[str, List[DeploymentStatus]] = {}

    def create_deployment(
        self,
        stack_id: str,
        app_id: str,
        instance_ids: Optional[Sequence[str]],
        command: DeploymentCommand,
        comment: str,
    ) -> str:
        if self.fail_create:
            raise DeploymentServiceError("create_deployment refused")
        deployment_id = f"d-{len(self.created) + 1}"
        self.created.append(
            {
                "deployment_id": deployment_id,
                "stack_id": stack_id,
                "app_id": app_id,
                "instance_ids": instance_ids,
                "command": command,
                "comment": comment,
            }
        )
        self._statuses[deployment_id] = self.scripts.pop(0) if self.scripts else [self.default]
        self.poll_counts[deployment_id] = 0
        return deployment_id

    def poll_status(self, deployment_id: str) -> DeploymentStatus:
        script = self._statuses[deployment_id]
        index = min(self.poll_counts[deployment_id], len(script) - 1)
        self.poll_counts[deployment_id] += 1
        if isinstance(script[index], Exception):
            raise script[index]
        return script[index]


class FakeLoadBalancerService(LoadBalancerService):
    """Load balancer with scripted health states per EC2 instance id.

    ``health`` maps an EC2 id to a list of states; the last one repeats.
    Exception entries in ``health`` are raised.
    Instances missing from ``health`` report InService. Operation names in
    ``failing`` raise LoadBalancerServiceError.
    """

    def __init__(
        self,
        draining: DrainingPolicy = DrainingPolicy(enabled=True, timeout=30),
        health_check: HealthCheckPolicy = HealthCheckPolicy(healthy_threshold=3, interval=10),
        health: Optional[Dict[str, List[str]]] = None,
        members: Sequence[str] = (),
        failing: Sequence[str] = (),
    ):
        self.draining = draining
        self.health_check = health_check
        self.health = health or {}
        self.members = set(members)
        self.failing = set(failing)
        self.calls: List[tuple] = []
        self._health_polls: Dict[str, int] = {}

    def _record(self, operation: str, *args) -> None:
        self.calls.append((operation,) + args)
        if operation in self.failing:
            raise LoadBalancerServiceError(f"{operation} refused")

    def describe_attributes(self, name: str) -> DrainingPolicy:
        self._record("describe_attributes", name)
        return self.draining

    def describe(self, name: str) -> HealthCheckPolicy:
        self._record("describe", name)
        return self.health_check

    def deregister(self, name: str, instance_id: str) -> int:
        self._record("deregister", name, instance_id)
        self.members.discard(instance_id)
        return len(self.members)

    def register(self, name: str, instance_id: str) -> int:
        self._record("register", name, instance_id)
        self.members.add(instance_id)
        return len(self.members)

    def describe_instance_health(self, name: str, instance_id: str) -> InstanceHealth:
        self._record("describe_instance_health", name, instance_id)
        states = self.health.get(instance_id, [IN_SERVICE])
        index = min(self._health_polls.get(instance_id, 0), len(states) - 1)
        self._health_polls[instance_id] = self._health_polls.get(instance_id, 0) + 1
        state = states[index]
        if isinstance(state, Exception):
            raise state
        if state == IN_SERVICE:
            return InstanceHealth(instance_id=instance_id, state=state)
        return InstanceHealth(
            instance_id=instance_id,
            state=state,
            reason_code="Instance",
            description="Instance has failed at least the UnhealthyThreshold number of health checks consecutively.",
        )

    def operations(self) -> List[str]:
        return [call[0] for call in self.calls]


class RecordingSleep:
    """Sleep replacement that records requested durations."""

    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.calls)
