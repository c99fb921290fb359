#!/usr/bin/env python3
"""
Rolling Orchestrator - updates a layer one instance at a time.

Each instance goes through drain -> deploy -> re-add (drain and re-add only
when the layer has a load balancer). The first failing instance stops the
rollout; instances already updated are left as they are.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import logging
from typing import Callable, Optional

from opsdeploy.deployment.base import DeploymentCommand, RollingAttempt, RollingResult, RollingStep
from opsdeploy.deployment.executor import DeploymentExecutor
from opsdeploy.deployment.load_balancer import LoadBalancerController
from opsdeploy.inventory import ResolvedInventory
from opsdeploy.models import Instance

logger = logging.getLogger(__name__)

ControllerFactory = Callable[[str], LoadBalancerController]


class RollingOrchestrator:
    """
    Sequences load balancer and deployment steps across a layer.

    Args:
        inventory: Resolved application/stack snapshot
        executor: Deployment executor for the application
        controller_factory: Builds a LoadBalancerController for a load balancer name
    """

    def __init__(
        self,
        inventory: ResolvedInventory,
        executor: DeploymentExecutor,
        controller_factory: ControllerFactory,
    ):
        self.inventory = inventory
        self.executor = executor
        self.controller_factory = controller_factory

    def roll_layer(self, layer_name: str, timeout: float) -> RollingResult:
        """
        Deploy to every instance of a layer, one at a time.

        Args:
            layer_name: Layer to roll
            timeout: Deployment timeout per instance, in seconds

        Returns:
            RollingResult; successful only if every instance succeeded

        Raises:
            LayerNotFoundError: If the stack has no such layer
        """
        layer = self.inventory.layer(layer_name)
        instances = self.inventory.instances(layer_name)
        controller = self.controller_factory(layer.load_balancer) if layer.load_balancer else None

        result = RollingResult(
            layer_name=layer_name,
            load_balancer=layer.load_balancer,
            total_instances=len(instances),
        )
        if not instances:
            logger.warning("Layer %s has no instances, nothing to roll", layer_name)
            return result

        for index, instance in enumerate(instances, start=1):
            logger.info(
                "Rolling deploy on %s (%d/%d)", instance.hostname, index, len(instances)
            )
            attempt = self.roll_instance(instance, timeout, controller)
            result.attempts.append(attempt)

            if not attempt.success:
                logger.error(
                    "Rolling deploy of %s stopped: %s failed at %s step, %d instances not attempted",
                    layer_name,
                    instance.hostname,
                    attempt.failed_step.value,
                    result.skipped_instances,
                )
                return result

        logger.info("Rolling deploy of %s completed on %d instances", layer_name, len(instances))
        return result

    def roll_instance(
        self,
        instance: Instance,
        timeout: float,
        controller: Optional[LoadBalancerController] = None,
    ) -> RollingAttempt:
        """
        Run the drain/deploy/re-add cycle for one instance.

        Re-adding only happens when the deployment succeeded.

        Args:
            instance: Instance to update
            timeout: Deployment timeout in seconds
            controller: Load balancer of the layer, if any

        Returns:
            RollingAttempt describing how far the instance got
        """
        attempt = RollingAttempt(instance_id=instance.instance_id, hostname=instance.hostname)

        if controller is not None:
            attempt.start(RollingStep.DRAIN)
            drained = controller.remove_instance(instance)
            attempt.finish(drained.success)
            if not drained:
                return attempt

        attempt.start(RollingStep.DEPLOY)
        deployment = self.executor.execute(DeploymentCommand.DEPLOY, [instance], timeout)
        attempt.deployment = deployment
        attempt.finish(deployment.is_success)
        if not deployment:
            return attempt

        if controller is not None:
            attempt.start(RollingStep.READD)
            added = controller.add_instance(instance)
            attempt.finish(added.success)

        return attempt
