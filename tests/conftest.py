"""
Shared fixtures: the ten-thruster reference vehicle.
"""
import os
import pytest
from thruster_controller.dynamics_model import DynamicsModel
from thruster_controller.vehicle_config import load_vehicle_from_yaml

REFERENCE_YAML = os.path.join(
    os.path.dirname(__file__), '..', 'config', 'reference_vehicle.yaml'
)


@pytest.fixture
def reference_config():
    """Reference vehicle loaded from the shipped YAML file."""
    return load_vehicle_from_yaml(REFERENCE_YAML)


@pytest.fixture
def reference_model(reference_config):
    """Dynamics model of the reference vehicle."""
    return DynamicsModel(reference_config)
