#!/usr/bin/env python3
"""
Base types for the deployment layer.

Result objects returned by the executor, the load balancer controller
and the rolling orchestrator. Operational failures travel as results,
never as exceptions.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from opsdeploy.models import DeploymentCommand, DeploymentStatus


@dataclass
class DeploymentResult:
    """Result of one deployment."""

    status: DeploymentStatus
    deployment_id: str
    command: DeploymentCommand
    instance_ids: Optional[Tuple[str, ...]] = None  # None targets the whole stack
    comment: str = ""
    attempts: int = 0
    message: str = ""

    @property
    def is_success(self) -> bool:
        """Check if deployment succeeded."""
        return self.status == DeploymentStatus.SUCCESSFUL

    @property
    def is_failed(self) -> bool:
        """Check if deployment failed or timed out."""
        return self.status in (DeploymentStatus.FAILED, DeploymentStatus.TIMED_OUT)

    def __bool__(self) -> bool:
        return self.is_success


class RollingStep(Enum):
    """Sub-steps of one instance's rolling cycle, in execution order."""

    DRAIN = "drain"
    DEPLOY = "deploy"
    READD = "readd"


@dataclass
class StepResult:
    """Result of a load balancer membership step."""

    step: RollingStep
    success: bool
    instance_id: str
    message: str = ""
    attempts: int = 0
    waited: float = 0.0

    def __bool__(self) -> bool:
        return self.success


@dataclass
class RollingAttempt:
    """Progress of one instance through the rolling cycle."""

    instance_id: str
    hostname: str
    current_step: Optional[RollingStep] = None
    completed_steps: List[RollingStep] = field(default_factory=list)
    failed_step: Optional[RollingStep] = None
    deployment: Optional[DeploymentResult] = None

    def start(self, step: RollingStep) -> None:
        self.current_step = step

    def finish(self, success: bool) -> None:
        if success:
            self.completed_steps.append(self.current_step)
        else:
            self.failed_step = self.current_step
        self.current_step = None

    @property
    def success(self) -> bool:
        return self.failed_step is None and RollingStep.DEPLOY in self.completed_steps


@dataclass
class RollingResult:
    """Result of rolling a whole layer."""

    layer_name: str
    attempts: List[RollingAttempt] = field(default_factory=list)
    load_balancer: Optional[str] = None
    total_instances: int = 0

    @property
    def success(self) -> bool:
        """True iff every instance of the layer was rolled successfully."""
        return len(self.attempts) == self.total_instances and all(
            attempt.success for attempt in self.attempts
        )

    @property
    def failed_instance(self) -> Optional[RollingAttempt]:
        for attempt in self.attempts:
            if not attempt.success:
                return attempt
        return None

    @property
    def skipped_instances(self) -> int:
        """Instances never touched because an earlier one failed."""
        return self.total_instances - len(self.attempts)

    def __bool__(self) -> bool:
        return self.success
