#!/usr/bin/env python3
"""
Inventory resolution.

Resolves an application id into an immutable ResolvedInventory snapshot
once per run. Everything downstream reads from the snapshot, so a run
never observes inventory changes made after it started.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from opsdeploy.core.errors import LayerNotFoundError, create_error_context
from opsdeploy.models import Application, Instance, Layer
from opsdeploy.services.base import StackInventory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedInventory:
    """Application, layers and instances of one stack."""

    application: Application
    layers: Dict[str, Layer] = field(default_factory=dict)
    stack_instances: Tuple[Instance, ...] = ()
    layer_instances: Dict[str, Tuple[Instance, ...]] = field(default_factory=dict)

    @property
    def app_id(self) -> str:
        return self.application.app_id

    @property
    def stack_id(self) -> str:
        return self.application.stack_id

    def has_layer(self, layer_name: str) -> bool:
        return layer_name in self.layers

    def layer(self, layer_name: str) -> Layer:
        """
        Look up a layer by name.

        Raises:
            LayerNotFoundError: If the stack has no such layer
        """
        try:
            return self.layers[layer_name]
        except KeyError:
            raise LayerNotFoundError(
                layer_name,
                available=list(self.layers),
                context=create_error_context(
                    "layer_lookup", app_id=self.app_id, layer_name=layer_name
                ),
            ) from None

    def instances(self, layer_name: Optional[str] = None) -> Tuple[Instance, ...]:
        """
        Instances of a layer, or of the whole stack when no layer is given.

        Raises:
            LayerNotFoundError: If the stack has no such layer
        """
        if layer_name is None:
            return self.stack_instances
        self.layer(layer_name)
        return self.layer_instances.get(layer_name, ())

    def instances_excluding(self, layer_name: str) -> Tuple[Instance, ...]:
        """Stack instances not in ``layer_name``, in stack order.

        An unknown layer excludes nothing.
        """
        excluded = {i.instance_id for i in self.layer_instances.get(layer_name, ())}
        return tuple(i for i in self.stack_instances if i.instance_id not in excluded)


class InventoryResolver:
    """Builds ResolvedInventory snapshots from a StackInventory."""

    def __init__(self, inventory: StackInventory):
        self.inventory = inventory

    def resolve(self, app_id: str) -> ResolvedInventory:
        """
        Resolve an application into a snapshot.

        Args:
            app_id: Application identifier

        Returns:
            ResolvedInventory for the application's stack

        Raises:
            AppNotFoundError: If the application id matches zero or several apps
        """
        application = self.inventory.resolve_app(app_id)
        logger.debug("Resolved app %s to stack %s", app_id, application.stack_id)

        layers = self.inventory.list_layers(application.stack_id)
        stack_instances = tuple(self.inventory.list_instances(stack_id=application.stack_id))
        layer_instances: Dict[str, Tuple[Instance, ...]] = {}
        for name, layer in layers.items():
            layer_instances[name] = tuple(self.inventory.list_instances(layer_id=layer.layer_id))

        logger.debug(
            "Stack %s: %d layers, %d instances",
            application.stack_id,
            len(layers),
            len(stack_instances),
        )
        return ResolvedInventory(
            application=application,
            layers=layers,
            stack_instances=stack_instances,
            layer_instances=layer_instances,
        )
