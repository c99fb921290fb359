#!/usr/bin/env python3
"""
Deployer - top-level entry points for one application.

Supports:
1. Cookbook updates on every instance
2. Deploying to the whole stack or to one layer
3. Deploying to every layer but one
4. Rolling deploys of a layer behind its load balancer

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import logging
import time
from typing import Callable, Dict, List, Optional, Tuple

from opsdeploy.config_loader import DeployerSettings
from opsdeploy.core.errors import EmptyTargetError, create_error_context
from opsdeploy.core.revision import current_revision
from opsdeploy.deployment.base import DeploymentCommand, DeploymentResult, RollingResult
from opsdeploy.deployment.executor import AttemptObserver, DeploymentExecutor
from opsdeploy.deployment.load_balancer import LoadBalancerController
from opsdeploy.deployment.rolling import RollingOrchestrator
from opsdeploy.inventory import InventoryResolver, ResolvedInventory
from opsdeploy.models import Instance, InstanceHealth
from opsdeploy.services.base import DeploymentService, LoadBalancerService, StackInventory

logger = logging.getLogger(__name__)


class Deployer:
    """
    Deploys one application.

    Responsibilities:
    - Resolve the application's inventory once and keep the snapshot
    - Build the target instance set for each entry point
    - Delegate to DeploymentExecutor or RollingOrchestrator

    Failed deployments are returned as results. Only inventory and
    argument errors are raised.
    """

    def __init__(
        self,
        app_id: str,
        inventory: StackInventory,
        deployments: DeploymentService,
        load_balancers: LoadBalancerService,
        settings: Optional[DeployerSettings] = None,
        revision: Optional[str] = None,
        sleep: Callable[[float], None] = time.sleep,
        on_attempt: Optional[AttemptObserver] = None,
    ):
        """
        Initialize the deployer.

        Args:
            app_id: Application identifier
            inventory: Stack inventory service
            deployments: Deployment service
            load_balancers: Load balancer service
            settings: Run settings (defaults when omitted)
            revision: Source revision for the deployment comment;
                read from git on first use when omitted
            sleep: Sleep function, injectable for tests
            on_attempt: Observer for deployment poll attempts
        """
        self.app_id = app_id
        self.resolver = InventoryResolver(inventory)
        self.deployments = deployments
        self.load_balancers = load_balancers
        self.settings = settings or DeployerSettings()
        self.sleep = sleep
        self.on_attempt = on_attempt
        self._revision = revision
        self._inventory: Optional[ResolvedInventory] = None
        self._controllers: Dict[str, LoadBalancerController] = {}

    @property
    def revision(self) -> str:
        if self._revision is None:
            self._revision = current_revision()
        return self._revision

    @property
    def inventory(self) -> ResolvedInventory:
        """Inventory snapshot, resolved on first access.

        Raises:
            AppNotFoundError: If the application id does not resolve
        """
        if self._inventory is None:
            self._inventory = self.resolver.resolve(self.app_id)
        return self._inventory

    def refresh(self) -> None:
        """Drop the inventory snapshot and cached load balancer policies."""
        self._inventory = None
        self._controllers.clear()

    def executor(self) -> DeploymentExecutor:
        return DeploymentExecutor(
            self.inventory,
            self.deployments,
            comment=self.settings.comment(self.revision),
            poll_interval=self.settings.poll_interval,
            sleep=self.sleep,
            on_attempt=self.on_attempt,
        )

    def controller(self, load_balancer: str) -> LoadBalancerController:
        """Controller for a load balancer, one per name for the deployer's lifetime."""
        if load_balancer not in self._controllers:
            self._controllers[load_balancer] = LoadBalancerController(
                load_balancer,
                self.load_balancers,
                poll_interval=self.settings.poll_interval,
                drain_fallback=self.settings.drain_fallback_seconds,
                health_padding_checks=self.settings.health_padding_checks,
                sleep=self.sleep,
            )
        return self._controllers[load_balancer]

    def update_cookbooks(self, timeout: Optional[int] = None) -> DeploymentResult:
        """Update custom cookbooks on every instance of the stack."""
        timeout = self.settings.update_cookbooks_timeout if timeout is None else timeout
        logger.info("Updating cookbooks")
        return self.executor().execute(DeploymentCommand.UPDATE_CUSTOM_COOKBOOKS, None, timeout)

    def deploy(self, layer_name: Optional[str] = None, timeout: Optional[int] = None) -> DeploymentResult:
        """
        Deploy to one layer, or to the whole stack when no layer is given.

        Raises:
            LayerNotFoundError: If the layer does not exist
            EmptyTargetError: If the layer has no instances
        """
        timeout = self.settings.deploy_timeout if timeout is None else timeout
        if layer_name is not None:
            logger.info("Deploying on %s layer", layer_name)
            instances: Optional[List[Instance]] = list(self.inventory.instances(layer_name))
            if not instances:
                raise EmptyTargetError(
                    f"Layer {layer_name} has no instances",
                    context=create_error_context("deploy", app_id=self.app_id, layer_name=layer_name),
                )
        else:
            logger.info("Deploying on all layers")
            instances = None

        return self.executor().execute(DeploymentCommand.DEPLOY, instances, timeout)

    def deploy_all(self, timeout: Optional[int] = None) -> DeploymentResult:
        """Deploy to every instance of the stack."""
        return self.deploy(None, timeout)

    def deploy_excluding(self, layer_name: str, timeout: Optional[int] = None) -> DeploymentResult:
        """
        Deploy to every instance not in ``layer_name``.

        A missing or empty layer excludes nothing.

        Raises:
            EmptyTargetError: If every instance belongs to the excluded layer
        """
        timeout = self.settings.deploy_timeout if timeout is None else timeout
        logger.info("Deploying to all layers except %s", layer_name)
        if not self.inventory.has_layer(layer_name):
            logger.warning("Layer %s not found, deploying to all instances", layer_name)

        instances = list(self.inventory.instances_excluding(layer_name))
        if not instances:
            raise EmptyTargetError(
                f"No instances left after excluding layer {layer_name}",
                context=create_error_context(
                    "deploy_excluding", app_id=self.app_id, layer_name=layer_name
                ),
            )
        return self.executor().execute(DeploymentCommand.DEPLOY, instances, timeout)

    def roll_layer(self, layer_name: str, timeout: Optional[int] = None) -> RollingResult:
        """
        Rolling deploy of a layer, one instance at a time.

        Raises:
            LayerNotFoundError: If the layer does not exist
        """
        timeout = self.settings.rolling_timeout if timeout is None else timeout
        logger.info("Rolling deploy on %s layer", layer_name)
        orchestrator = RollingOrchestrator(self.inventory, self.executor(), self.controller)
        return orchestrator.roll_layer(layer_name, timeout)

    def instance_health(self, layer_name: str) -> List[Tuple[Instance, InstanceHealth]]:
        """
        Load balancer health of every instance in a layer.

        Returns:
            (instance, health) pairs in layer order, empty when the layer has no load balancer

        Raises:
            LayerNotFoundError: If the layer does not exist
        """
        layer = self.inventory.layer(layer_name)
        if not layer.load_balancer:
            return []
        controller = self.controller(layer.load_balancer)
        return [(i, controller.instance_health(i)) for i in self.inventory.instances(layer_name)]
