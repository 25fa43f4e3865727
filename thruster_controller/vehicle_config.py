"""
Vehicle configuration: mass properties and thruster geometry.

Loaded once at startup from YAML and never changed afterwards.
Body frame follows REP-103: x forward, y port, z up.
"""
import math
import os
from dataclasses import dataclass, field, replace
from typing import Dict, List, Mapping, Sequence, Tuple

import numpy as np
import yaml


def _vector3(value, label: str) -> Tuple[float, float, float]:
    """Coerce a 3-element sequence to a tuple of finite floats."""
    try:
        vec = tuple(float(v) for v in value)
    except (TypeError, ValueError):
        raise ValueError(f"{label} must be a sequence of 3 numbers")
    if len(vec) != 3:
        raise ValueError(f"{label} must have exactly 3 components")
    if not all(math.isfinite(v) for v in vec):
        raise ValueError(f"{label} must be finite")
    return vec


def _positive(value, label: str) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{label} must be a number")
    if not math.isfinite(value) or value <= 0.0:
        raise ValueError(f"{label} must be positive")
    return value


@dataclass(frozen=True)
class ThrusterSpec:
    """
    One fixed thruster.

    Attributes:
        name: Thruster identity (matches its TF frame without the _link suffix)
        position: Mounting point relative to the center of mass [m]
        direction: Unit thrust direction in the body frame
        min_force: Lower force bound [N], <= 0
        max_force: Upper force bound [N], >= 0
    """
    name: str
    position: Tuple[float, float, float]
    direction: Tuple[float, float, float]
    min_force: float
    max_force: float

    def __post_init__(self):
        if not self.name:
            raise ValueError("Thruster name must be non-empty")
        position = _vector3(self.position, f"Thruster '{self.name}' position")
        direction = np.asarray(_vector3(self.direction, f"Thruster '{self.name}' direction"))
        norm = float(np.linalg.norm(direction))
        if norm < 1e-9:
            raise ValueError(f"Thruster '{self.name}' direction must be non-zero")
        min_force = float(self.min_force)
        max_force = float(self.max_force)
        if not (math.isfinite(min_force) and math.isfinite(max_force)):
            raise ValueError(f"Thruster '{self.name}' bounds must be finite")
        if not (min_force <= 0.0 <= max_force):
            raise ValueError(
                f"Thruster '{self.name}' bounds must satisfy min_force <= 0 <= max_force"
            )
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, 'position', position)
        object.__setattr__(self, 'direction', tuple(float(v) for v in direction / norm))
        object.__setattr__(self, 'min_force', min_force)
        object.__setattr__(self, 'max_force', max_force)


@dataclass(frozen=True)
class VehicleParameters:
    """Rigid-body mass properties. Products of inertia are neglected."""
    mass: float
    ixx: float
    iyy: float
    izz: float
    imu_offset: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    def __post_init__(self):
        object.__setattr__(self, 'mass', _positive(self.mass, "mass"))
        object.__setattr__(self, 'ixx', _positive(self.ixx, "ixx"))
        object.__setattr__(self, 'iyy', _positive(self.iyy, "iyy"))
        object.__setattr__(self, 'izz', _positive(self.izz, "izz"))
        object.__setattr__(self, 'imu_offset', _vector3(self.imu_offset, "imu_offset"))

    @property
    def inertia(self) -> np.ndarray:
        """Principal moments [Ixx, Iyy, Izz]."""
        return np.array([self.ixx, self.iyy, self.izz], dtype=float)


@dataclass(frozen=True)
class VehicleConfig:
    """Everything the dynamics model needs, validated as a whole."""
    parameters: VehicleParameters
    thrusters: Tuple[ThrusterSpec, ...] = field(default_factory=tuple)

    def __post_init__(self):
        thrusters = tuple(self.thrusters)
        if not thrusters:
            raise ValueError("At least one thruster is required")
        names = [t.name for t in thrusters]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate thruster names: {duplicates}")
        object.__setattr__(self, 'thrusters', thrusters)

    @property
    def thruster_names(self) -> List[str]:
        return [t.name for t in self.thrusters]

    def with_positions(self, positions: Mapping[str, Sequence[float]]) -> "VehicleConfig":
        """Return a copy with thruster positions replaced by name."""
        missing = [name for name in self.thruster_names if name not in positions]
        if missing:
            raise ValueError(f"No position given for thrusters: {missing}")
        thrusters = tuple(
            replace(t, position=_vector3(positions[t.name], f"Thruster '{t.name}' position"))
            for t in self.thrusters
        )
        return VehicleConfig(self.parameters, thrusters)


def vehicle_config_from_dict(data: Mapping) -> VehicleConfig:
    """
    Build a VehicleConfig from a parsed configuration mapping.

    Args:
        data: Mapping with 'vehicle' and 'thrusters' sections

    Returns:
        Validated VehicleConfig

    Raises:
        ValueError: If any field is missing or invalid
    """
    if not isinstance(data, Mapping):
        raise ValueError("Vehicle configuration must be a mapping")

    try:
        vehicle = data['vehicle']
        inertia = vehicle['inertia']
        parameters = VehicleParameters(
            mass=vehicle['mass'],
            ixx=inertia['ixx'],
            iyy=inertia['iyy'],
            izz=inertia['izz'],
            imu_offset=vehicle.get('imu_offset', (0.0, 0.0, 0.0)),
        )
        max_thrust = _positive(vehicle['max_thrust'], "max_thrust")
        thruster_entries = data['thrusters']
    except (KeyError, TypeError) as e:
        raise ValueError(f"Missing required vehicle configuration field: {e}")

    if not thruster_entries:
        raise ValueError("No thrusters defined in vehicle configuration")

    thrusters = []
    for entry in thruster_entries:
        try:
            thrusters.append(ThrusterSpec(
                name=str(entry['name']),
                position=entry['position'],
                direction=entry['direction'],
                min_force=entry.get('min_force', -max_thrust),
                max_force=entry.get('max_force', max_thrust),
            ))
        except (KeyError, TypeError) as e:
            raise ValueError(f"Missing required thruster field: {e}")

    return VehicleConfig(parameters, tuple(thrusters))


def load_vehicle_from_yaml(yaml_path: str) -> VehicleConfig:
    """
    Load vehicle mass properties and thruster geometry from a YAML file.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        Validated VehicleConfig
    """
    if not os.path.isfile(yaml_path):
        raise FileNotFoundError(f"Vehicle file not found: {yaml_path}")

    with open(yaml_path, 'r') as f:
        config = yaml.safe_load(f)

    return vehicle_config_from_dict(config)


def thruster_table(config: VehicleConfig) -> Dict[str, Dict[str, Tuple[float, ...]]]:
    """Geometry as a name-keyed table, for logging."""
    return {
        t.name: {'position': t.position, 'direction': t.direction,
                 'bounds': (t.min_force, t.max_force)}
        for t in config.thrusters
    }
