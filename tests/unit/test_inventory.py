#!/usr/bin/env python3
"""
Unit tests for inventory resolution.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import pytest

from opsdeploy.core.errors import AppNotFoundError, LayerNotFoundError
from opsdeploy.inventory import InventoryResolver


@pytest.mark.unit
class TestResolvedInventory:
    """Snapshot lookups."""

    def test_resolve_builds_snapshot(self, resolved_inventory):
        assert resolved_inventory.app_id == "42"
        assert resolved_inventory.stack_id == "stack-1"
        assert set(resolved_inventory.layers) == {"web", "worker", "empty"}
        assert resolved_inventory.layer("web").load_balancer == "elb-1"
        assert [i.instance_id for i in resolved_inventory.instances()] == ["i1", "i2", "i3"]

    def test_layer_instances(self, resolved_inventory):
        assert [i.instance_id for i in resolved_inventory.instances("web")] == ["i1", "i2"]
        assert resolved_inventory.instances("empty") == ()

    def test_unknown_layer_lists_available(self, resolved_inventory):
        with pytest.raises(LayerNotFoundError) as exc_info:
            resolved_inventory.instances("db")

        error = exc_info.value
        assert error.layer_name == "db"
        assert error.available == ["empty", "web", "worker"]
        assert error.suggestions == ["Available layers: empty, web, worker"]

    def test_instances_excluding_keeps_stack_order(self, resolved_inventory):
        remaining = resolved_inventory.instances_excluding("worker")
        assert [i.instance_id for i in remaining] == ["i1", "i2"]

    def test_instances_excluding_unknown_layer_excludes_nothing(self, resolved_inventory):
        assert resolved_inventory.instances_excluding("db") == resolved_inventory.instances()

    def test_has_layer(self, resolved_inventory):
        assert resolved_inventory.has_layer("web")
        assert not resolved_inventory.has_layer("db")


@pytest.mark.unit
class TestInventoryResolver:
    """Resolution against a StackInventory."""

    def test_lists_each_layer_by_id(self, stack_inventory):
        InventoryResolver(stack_inventory).resolve("42")

        layer_calls = [c for c in stack_inventory.calls if c[0] == "list_instances" and c[2]]
        assert {c[2] for c in layer_calls} == {"layer-web", "layer-worker", "layer-empty"}

    def test_unknown_app_propagates(self, stack_inventory):
        with pytest.raises(AppNotFoundError):
            InventoryResolver(stack_inventory).resolve("7")
        assert [c[0] for c in stack_inventory.calls] == ["resolve_app"]
