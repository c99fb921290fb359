#!/usr/bin/env python3
"""
Load Balancer Controller - membership and health of one load balancer.

Removal is followed by an unconditional connection-draining wait; adding
is followed by a bounded health poll. Both report failures as StepResult
values. Draining and health-check policies are read once and cached for
the controller's lifetime.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import logging
import time
from typing import Callable, Optional

from opsdeploy.core.errors import LoadBalancerServiceError
from opsdeploy.deployment.base import RollingStep, StepResult
from opsdeploy.deployment.polling import DEFAULT_POLL_INTERVAL, PollPolicy, PollState, poll
from opsdeploy.models import DrainingPolicy, HealthCheckPolicy, Instance, InstanceHealth
from opsdeploy.services.base import LoadBalancerService

logger = logging.getLogger(__name__)

DEFAULT_DRAIN_FALLBACK = 20
DEFAULT_HEALTH_PADDING_CHECKS = 2

# Returned by ELB while a fresh registration settles
INVALID_INSTANCE = "InvalidInstance"


class LoadBalancerController:
    """
    Controls one load balancer for the instances of a layer.

    Args:
        name: Load balancer name
        service: Load balancer service
        poll_interval: Seconds between health checks
        drain_fallback: Drain wait when connection draining is disabled
        health_padding_checks: Extra health-check intervals allowed for warm-up
        sleep: Sleep function, injectable for tests
    """

    def __init__(
        self,
        name: str,
        service: LoadBalancerService,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        drain_fallback: float = DEFAULT_DRAIN_FALLBACK,
        health_padding_checks: int = DEFAULT_HEALTH_PADDING_CHECKS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.name = name
        self.service = service
        self.poll_interval = poll_interval
        self.drain_fallback = drain_fallback
        self.health_padding_checks = health_padding_checks
        self.sleep = sleep
        self._draining_policy: Optional[DrainingPolicy] = None
        self._health_check_policy: Optional[HealthCheckPolicy] = None

    @property
    def draining_policy(self) -> DrainingPolicy:
        if self._draining_policy is None:
            self._draining_policy = self.service.describe_attributes(self.name)
        return self._draining_policy

    @property
    def health_check_policy(self) -> HealthCheckPolicy:
        if self._health_check_policy is None:
            self._health_check_policy = self.service.describe(self.name)
        return self._health_check_policy

    def drain_wait(self) -> float:
        """Seconds to wait after deregistering an instance."""
        policy = self.draining_policy
        if policy.enabled:
            return policy.timeout
        return self.drain_fallback

    def health_wait_budget(self) -> float:
        """Seconds allowed for a registered instance to become healthy."""
        policy = self.health_check_policy
        return (policy.healthy_threshold + self.health_padding_checks) * policy.interval

    def remove_instance(self, instance: Instance) -> StepResult:
        """
        Deregister an instance and wait for its connections to drain.

        The wait is a fixed sleep, it does not poll drain completion.

        Args:
            instance: Instance to remove

        Returns:
            StepResult for the DRAIN step
        """
        try:
            wait = self.drain_wait()
            remaining = self.service.deregister(self.name, instance.ec2_instance_id)
        except LoadBalancerServiceError as e:
            logger.error("Failed to remove %s from %s: %s", instance.hostname, self.name, e)
            return StepResult(RollingStep.DRAIN, False, instance.instance_id, message=str(e))

        logger.info(
            "Removed %s from %s (%d instances remaining)", instance.hostname, self.name, remaining
        )
        logger.info("Waiting %ss for connection draining", wait)
        self.sleep(wait)
        return StepResult(
            RollingStep.DRAIN,
            True,
            instance.instance_id,
            message=f"Removed from {self.name}",
            waited=wait,
        )

    def add_instance(self, instance: Instance) -> StepResult:
        """
        Register an instance and wait until it is in service.

        An InvalidInstance answer counts as not in service yet; any other
        load balancer error ends the wait.

        Args:
            instance: Instance to add

        Returns:
            StepResult for the READD step; failed on health timeout
        """
        try:
            budget = self.health_wait_budget()
            attached = self.service.register(self.name, instance.ec2_instance_id)
        except LoadBalancerServiceError as e:
            logger.error("Failed to add %s to %s: %s", instance.hostname, self.name, e)
            return StepResult(RollingStep.READD, False, instance.instance_id, message=str(e))

        logger.info("Added %s to %s (%d instances attached)", instance.hostname, self.name, attached)

        policy = PollPolicy.from_timeout(budget, self.poll_interval)

        def before_attempt(attempt: int, max_attempts: int) -> None:
            logger.debug(
                "Attempt %d/%d to check health of %s", attempt, max_attempts, instance.hostname
            )

        def probe() -> InstanceHealth:
            try:
                return self.instance_health(instance)
            except LoadBalancerServiceError as e:
                if e.code != INVALID_INSTANCE:
                    raise
                logger.debug("%s not yet known to %s: %s", instance.hostname, self.name, e)
                return InstanceHealth(
                    instance_id=instance.ec2_instance_id,
                    state=INVALID_INSTANCE,
                    description=e.message,
                )

        try:
            outcome = poll(
                probe,
                policy,
                is_success=lambda health: health.in_service,
                on_attempt=before_attempt,
                sleep=self.sleep,
            )
        except LoadBalancerServiceError as e:
            logger.error("Health check of %s failed: %s", instance.hostname, e)
            return StepResult(RollingStep.READD, False, instance.instance_id, message=str(e))

        if outcome.state == PollState.SUCCEEDED:
            logger.info("%s is in service on %s", instance.hostname, self.name)
            return StepResult(
                RollingStep.READD,
                True,
                instance.instance_id,
                message="InService",
                attempts=outcome.attempts,
            )

        last = outcome.value
        detail = f"{last.state}: {last.description}" if last is not None else "no health reported"
        logger.error(
            "%s did not become healthy on %s after %d attempts (%s)",
            instance.hostname,
            self.name,
            outcome.attempts,
            detail,
        )
        return StepResult(
            RollingStep.READD,
            False,
            instance.instance_id,
            message=detail,
            attempts=outcome.attempts,
        )

    def instance_health(self, instance: Instance) -> InstanceHealth:
        """Current health record of an instance."""
        return self.service.describe_instance_health(self.name, instance.ec2_instance_id)

    def is_instance_healthy(self, instance: Instance) -> bool:
        """
        Point-in-time health check, no waiting.

        Returns:
            True if the instance is in service
        """
        health = self.instance_health(instance)
        if not health.in_service:
            logger.info(
                "%s is %s on %s: %s %s",
                instance.hostname,
                health.state,
                self.name,
                health.reason_code,
                health.description,
            )
        return health.in_service
