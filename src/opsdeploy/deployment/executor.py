#!/usr/bin/env python3
"""
Deployment Executor - creates a deployment and waits for it.

One deployment per call, tagged with the source revision, then polled
every ``poll_interval`` seconds for at most ``floor(timeout / poll_interval)``
attempts. A failed or timed-out deployment is returned, not raised.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import logging
import time
from typing import Callable, Optional, Sequence

from opsdeploy.core.errors import (
    DeploymentServiceError,
    EmptyTargetError,
    ValidationError,
    create_error_context,
)
from opsdeploy.deployment.base import DeploymentCommand, DeploymentResult, DeploymentStatus
from opsdeploy.deployment.polling import DEFAULT_POLL_INTERVAL, PollPolicy, PollState, poll
from opsdeploy.inventory import ResolvedInventory
from opsdeploy.models import Instance
from opsdeploy.services.base import DeploymentService

logger = logging.getLogger(__name__)

AttemptObserver = Callable[[str, int, int], None]


class DeploymentExecutor:
    """
    Issues deployments for one application.

    Args:
        inventory: Resolved application/stack snapshot
        service: Deployment service
        comment: Comment stored with every deployment (e.g. "Git Sha: <sha>")
        poll_interval: Seconds between status checks
        sleep: Sleep function, injectable for tests
        on_attempt: Observer called as ``on_attempt(deployment_id, attempt, max_attempts)``
    """

    def __init__(
        self,
        inventory: ResolvedInventory,
        service: DeploymentService,
        comment: str,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
        on_attempt: Optional[AttemptObserver] = None,
    ):
        self.inventory = inventory
        self.service = service
        self.comment = comment
        self.poll_interval = poll_interval
        self.sleep = sleep
        self.on_attempt = on_attempt

    def execute(
        self,
        command: DeploymentCommand,
        instances: Optional[Sequence[Instance]],
        timeout: float,
    ) -> DeploymentResult:
        """
        Create a deployment and wait for it to finish.

        Args:
            command: Command to run
            instances: Target instances, or None for every instance of the stack
            timeout: Seconds to wait for a terminal status

        Returns:
            DeploymentResult; ``is_success`` only when the deployment reached
            "successful" within the attempt budget

        Raises:
            ValidationError: If timeout is not positive
            EmptyTargetError: If ``instances`` is an empty collection
        """
        if timeout <= 0:
            raise ValidationError(
                f"Timeout must be positive, got {timeout}",
                context=create_error_context("execute", app_id=self.inventory.app_id),
            )
        if instances is not None and len(instances) == 0:
            raise EmptyTargetError(
                "Explicit instance set is empty; pass None to target the whole stack",
                context=create_error_context("execute", app_id=self.inventory.app_id),
            )

        instance_ids = None if instances is None else tuple(i.instance_id for i in instances)
        try:
            deployment_id = self.service.create_deployment(
                stack_id=self.inventory.stack_id,
                app_id=self.inventory.app_id,
                instance_ids=instance_ids,
                command=command,
                comment=self.comment,
            )
        except DeploymentServiceError as e:
            logger.error("Failed to create deployment: %s", e)
            return DeploymentResult(
                status=DeploymentStatus.FAILED,
                deployment_id="",
                command=command,
                instance_ids=instance_ids,
                comment=self.comment,
                message=str(e),
            )
        logger.info("Deployment created: %s", deployment_id)
        logger.info("Running Command: %s", command.value)

        result = DeploymentResult(
            status=DeploymentStatus.PENDING,
            deployment_id=deployment_id,
            command=command,
            instance_ids=instance_ids,
            comment=self.comment,
        )
        return self._wait_until_deployed(result, timeout)

    def _wait_until_deployed(self, result: DeploymentResult, timeout: float) -> DeploymentResult:
        policy = PollPolicy.from_timeout(timeout, self.poll_interval)

        def before_attempt(attempt: int, max_attempts: int) -> None:
            result.attempts = attempt
            logger.debug("Attempt %d/%d to check deployment status", attempt, max_attempts)
            if self.on_attempt:
                self.on_attempt(result.deployment_id, attempt, max_attempts)

        try:
            outcome = poll(
                lambda: self.service.poll_status(result.deployment_id),
                policy,
                is_success=lambda status: status == DeploymentStatus.SUCCESSFUL,
                is_failure=lambda status: status == DeploymentStatus.FAILED,
                on_attempt=before_attempt,
                sleep=self.sleep,
            )
        except DeploymentServiceError as e:
            logger.error("Failed to deploy: %s", e)
            result.status = DeploymentStatus.FAILED
            result.message = str(e)
            return result

        result.attempts = outcome.attempts
        if outcome.state == PollState.SUCCEEDED:
            result.status = DeploymentStatus.SUCCESSFUL
            result.message = "Deployment successful"
            logger.info("Deployment successful")
        elif outcome.state == PollState.FAILED:
            result.status = DeploymentStatus.FAILED
            result.message = f"Deployment {result.deployment_id} failed"
            logger.error("Failed to deploy: %s", result.message)
        else:
            result.status = DeploymentStatus.TIMED_OUT
            result.message = (
                f"Deployment {result.deployment_id} not successful after "
                f"{outcome.attempts} attempts"
            )
            logger.error("Failed to deploy: %s", result.message)
        return result
