"""
Deployment layer.

Architecture:
- DeploymentExecutor: creates a deployment and polls it to a terminal state
- LoadBalancerController: drain/re-add and health polling for one load balancer
- RollingOrchestrator: drain -> deploy -> re-add per instance, stop on first failure
- PollPolicy / poll: fixed-interval waits shared by the above

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from .base import (
    DeploymentCommand,
    DeploymentResult,
    DeploymentStatus,
    RollingAttempt,
    RollingResult,
    RollingStep,
    StepResult,
)
from .executor import DeploymentExecutor
from .load_balancer import LoadBalancerController
from .polling import PollOutcome, PollPolicy, PollState, poll
from .rolling import RollingOrchestrator

__all__ = [
    "DeploymentCommand",
    "DeploymentResult",
    "DeploymentStatus",
    "RollingAttempt",
    "RollingResult",
    "RollingStep",
    "StepResult",
    "DeploymentExecutor",
    "LoadBalancerController",
    "PollOutcome",
    "PollPolicy",
    "PollState",
    "poll",
    "RollingOrchestrator",
]
