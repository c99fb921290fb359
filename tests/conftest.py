"""
Pytest configuration and shared fixtures for opsdeploy tests.

Provides an in-memory stack (application "42" with a load-balanced "web"
layer and a plain "worker" layer), fake services and a recording sleep.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import pytest

from opsdeploy.config_loader import DeployerSettings
from opsdeploy.core.errors import set_error_handler
from opsdeploy.inventory import InventoryResolver
from opsdeploy.models import Application, Layer
from opsdeploy.orchestration.deployer import Deployer
from tests.fixtures.fakes import (
    FakeDeploymentService,
    FakeLoadBalancerService,
    FakeStackInventory,
    RecordingSleep,
    make_instance,
)


# ============================================================================
# Stack Fixtures
# ============================================================================

@pytest.fixture
def application():
    return Application(app_id="42", stack_id="stack-1", name="shop")


@pytest.fixture
def web_instances():
    """Instances of the load-balanced web layer."""
    return [make_instance("i1"), make_instance("i2")]


@pytest.fixture
def worker_instances():
    return [make_instance("i3")]


@pytest.fixture
def stack_inventory(application, web_instances, worker_instances):
    """Stack with "web" behind elb-1 and "worker" with no load balancer."""
    return FakeStackInventory(
        application,
        layers=[
            Layer(name="web", layer_id="layer-web", load_balancer="elb-1"),
            Layer(name="worker", layer_id="layer-worker"),
            Layer(name="empty", layer_id="layer-empty"),
        ],
        layer_instances={"web": web_instances, "worker": worker_instances},
    )


@pytest.fixture
def resolved_inventory(stack_inventory, application):
    return InventoryResolver(stack_inventory).resolve(application.app_id)


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def deployment_service():
    return FakeDeploymentService()


@pytest.fixture
def load_balancer_service():
    """elb-1 with draining enabled (30s) and both web instances attached."""
    return FakeLoadBalancerService(members=["ec2-i1", "ec2-i2"])


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def settings():
    return DeployerSettings()


@pytest.fixture
def deployer(stack_inventory, deployment_service, load_balancer_service, settings, sleep):
    """Deployer for app "42" wired to the fakes."""
    return Deployer(
        "42",
        inventory=stack_inventory,
        deployments=deployment_service,
        load_balancers=load_balancer_service,
        settings=settings,
        revision="abc123",
        sleep=sleep,
    )


@pytest.fixture(autouse=True)
def reset_error_handler():
    """Keep the process-wide error handler from leaking between tests."""
    yield
    set_error_handler(None)
