#!/usr/bin/env python3
"""
Unit tests for the Deployer entry points.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from unittest.mock import patch

import pytest

from opsdeploy.config_loader import DeployerSettings
from opsdeploy.core.errors import AppNotFoundError, EmptyTargetError, LayerNotFoundError
from opsdeploy.deployment.base import DeploymentCommand, DeploymentStatus
from opsdeploy.orchestration.deployer import Deployer
from tests.fixtures.fakes import FakeStackInventory, make_instance


@pytest.mark.unit
class TestDeployTargets:
    """Target instance selection for each entry point."""

    def test_deploy_without_layer_targets_whole_stack(self, deployer, deployment_service):
        result = deployer.deploy()

        assert result
        assert len(deployment_service.created) == 1
        assert deployment_service.created[0]["instance_ids"] is None
        assert deployment_service.created[0]["comment"] == "Git Sha: abc123"

    def test_deploy_all_matches_deploy_without_layer(self, deployer, deployment_service):
        deployer.deploy_all()
        assert deployment_service.created[0]["instance_ids"] is None

    def test_deploy_layer_targets_layer_instances(self, deployer, deployment_service):
        deployer.deploy("web")
        assert deployment_service.created[0]["instance_ids"] == ("i1", "i2")

    def test_deploy_unknown_layer_raises(self, deployer, deployment_service):
        with pytest.raises(LayerNotFoundError) as exc_info:
            deployer.deploy("db")
        assert "Layer db not found." in str(exc_info.value)
        assert deployment_service.created == []

    def test_deploy_blank_layer_name_is_not_whole_stack(self, deployer, deployment_service):
        with pytest.raises(LayerNotFoundError):
            deployer.deploy("")
        assert deployment_service.created == []

    def test_deploy_empty_layer_raises(self, deployer, deployment_service):
        with pytest.raises(EmptyTargetError):
            deployer.deploy("empty")
        assert deployment_service.created == []

    def test_deploy_excluding_uses_set_difference(self, deployer, deployment_service):
        deployer.deploy_excluding("web")
        assert deployment_service.created[0]["instance_ids"] == ("i3",)

    @pytest.mark.parametrize("layer", ["empty", "does-not-exist"])
    def test_deploy_excluding_missing_or_empty_layer_targets_all(
        self, deployer, deployment_service, layer
    ):
        deployer.deploy_excluding(layer)
        assert deployment_service.created[0]["instance_ids"] == ("i1", "i2", "i3")

    def test_deploy_excluding_only_layer_raises(self, application, deployment_service, sleep):
        stack = FakeStackInventory(application, layers=[], unlayered=[])
        deployer = Deployer(
            "42", stack, deployment_service, None, revision="abc123", sleep=sleep
        )
        with pytest.raises(EmptyTargetError):
            deployer.deploy_excluding("web")
        assert deployment_service.created == []

    def test_update_cookbooks_targets_stack_with_cookbook_command(
        self, deployer, deployment_service
    ):
        deployment_service.default = DeploymentStatus.RUNNING
        result = deployer.update_cookbooks()

        created = deployment_service.created[0]
        assert created["command"] == DeploymentCommand.UPDATE_CUSTOM_COOKBOOKS
        assert created["instance_ids"] is None
        assert result.attempts == 15

    def test_explicit_timeout_overrides_settings(self, deployer, deployment_service):
        deployment_service.default = DeploymentStatus.RUNNING
        result = deployer.deploy(timeout=30)
        assert result.attempts == 3

    def test_settings_drive_default_timeouts(
        self, stack_inventory, deployment_service, load_balancer_service, sleep
    ):
        deployment_service.default = DeploymentStatus.RUNNING
        deployer = Deployer(
            "42",
            stack_inventory,
            deployment_service,
            load_balancer_service,
            settings=DeployerSettings(deploy_timeout=40),
            revision="abc123",
            sleep=sleep,
        )
        assert deployer.deploy().attempts == 4


@pytest.mark.unit
class TestInventoryResolution:
    """Lookup failures and snapshot reuse."""

    def test_unknown_app_raises_before_any_deployment(
        self, stack_inventory, deployment_service, load_balancer_service, sleep
    ):
        deployer = Deployer(
            "missing", stack_inventory, deployment_service, load_balancer_service,
            revision="abc123", sleep=sleep,
        )
        with pytest.raises(AppNotFoundError) as exc_info:
            deployer.deploy()

        assert str(exc_info.value) == "App missing not found."
        assert deployment_service.created == []

    def test_inventory_resolved_once(self, deployer, stack_inventory):
        deployer.deploy("web")
        deployer.deploy_excluding("web")
        deployer.roll_layer("worker")

        assert [c for c in stack_inventory.calls if c[0] == "resolve_app"] == [("resolve_app", "42")]

    def test_refresh_drops_snapshot(self, deployer, stack_inventory):
        deployer.deploy()
        stack_inventory.layer_instances["worker"].append(make_instance("i4"))
        deployer.refresh()
        deployer.deploy("worker")

        resolves = [c for c in stack_inventory.calls if c[0] == "resolve_app"]
        assert len(resolves) == 2
        assert deployer.inventory.instances("worker")[-1].instance_id == "i4"

    def test_revision_read_from_git_when_not_given(
        self, stack_inventory, deployment_service, load_balancer_service, sleep
    ):
        deployer = Deployer(
            "42", stack_inventory, deployment_service, load_balancer_service, sleep=sleep
        )
        with patch(
            "opsdeploy.orchestration.deployer.current_revision", return_value="feedbeef"
        ) as mock_revision:
            deployer.deploy()
            deployer.deploy()

        mock_revision.assert_called_once()
        assert deployment_service.created[1]["comment"] == "Git Sha: feedbeef"


@pytest.mark.unit
class TestRollingAndHealth:
    """Rolling deploys and health reports through the Deployer."""

    def test_roll_layer_uses_rolling_timeout(self, deployer, deployment_service):
        deployment_service.default = DeploymentStatus.RUNNING
        result = deployer.roll_layer("web")

        assert not result
        assert result.attempts[0].deployment.attempts == 60
        assert result.skipped_instances == 1

    def test_controller_cached_per_load_balancer(self, deployer, load_balancer_service):
        deployer.roll_layer("web")
        deployer.roll_layer("web")

        assert deployer.controller("elb-1") is deployer.controller("elb-1")
        assert load_balancer_service.operations().count("describe_attributes") == 1

    def test_instance_health_pairs(self, deployer):
        pairs = deployer.instance_health("web")

        assert [instance.instance_id for instance, _ in pairs] == ["i1", "i2"]
        assert all(health.in_service for _, health in pairs)

    def test_instance_health_without_load_balancer(self, deployer, load_balancer_service):
        assert deployer.instance_health("worker") == []
        assert load_balancer_service.calls == []

    def test_instance_health_unknown_layer(self, deployer):
        with pytest.raises(LayerNotFoundError):
            deployer.instance_health("db")
