"""
Inertial state and acceleration command snapshots.

Both are immutable; a new event produces a new object which replaces the
previous one by reference, so readers never see a half-updated value.
"""
import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np


DOF_NAMES = ('surge', 'sway', 'heave', 'roll', 'pitch', 'yaw')

# Plausibility limits for incoming data. Anything beyond these is a sensor or
# upstream fault, and would overflow the gyroscopic products.
MAX_ANGULAR_RATE = 100.0     # rad/s
MAX_ACCELERATION = 1000.0    # m/s² and rad/s²


class InvalidInputError(ValueError):
    """Raised for malformed inertial or command data."""


def _finite_vector(values, length: int, label: str, limit: float = None) -> Tuple[float, ...]:
    try:
        vec = tuple(float(v) for v in values)
    except (TypeError, ValueError):
        raise InvalidInputError(f"{label} must be a sequence of {length} numbers")
    if len(vec) != length:
        raise InvalidInputError(f"{label} must have {length} components, got {len(vec)}")
    if not all(math.isfinite(v) for v in vec):
        raise InvalidInputError(f"{label} contains non-finite values")
    if limit is not None and any(abs(v) > limit for v in vec):
        raise InvalidInputError(f"{label} out of range (|value| > {limit})")
    return vec


@dataclass(frozen=True)
class VehicleState:
    """
    Orientation and body-frame angular velocity.

    Attributes:
        orientation: Unit quaternion (x, y, z, w), body -> reference frame
        angular_velocity: (p, q, r) [rad/s] in the body frame
    """
    orientation: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)
    angular_velocity: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    def __post_init__(self):
        q = _finite_vector(self.orientation, 4, "orientation")
        norm = math.sqrt(sum(c * c for c in q))
        if norm < 1e-9:
            raise InvalidInputError("orientation quaternion has zero norm")
        object.__setattr__(self, 'orientation', tuple(c / norm for c in q))
        object.__setattr__(
            self, 'angular_velocity',
            _finite_vector(self.angular_velocity, 3, "angular_velocity", MAX_ANGULAR_RATE),
        )

    @classmethod
    def identity(cls) -> "VehicleState":
        """Level, at rest. Used until the first IMU message arrives."""
        return cls()

    @classmethod
    def from_imu(cls, orientation: Sequence[float],
                 angular_velocity: Sequence[float]) -> "VehicleState":
        return cls(orientation=orientation, angular_velocity=angular_velocity)

    def rotation_matrix(self) -> np.ndarray:
        """Body -> reference rotation matrix (3x3)."""
        x, y, z, w = self.orientation
        return np.array([
            [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
            [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
            [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
        ], dtype=float)


@dataclass(frozen=True)
class AccelCommand:
    """Desired body-frame acceleration: linear [m/s²], angular [rad/s²]."""
    surge: float = 0.0
    sway: float = 0.0
    heave: float = 0.0
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0

    def __post_init__(self):
        values = _finite_vector(
            (self.surge, self.sway, self.heave, self.roll, self.pitch, self.yaw),
            6, "acceleration command", MAX_ACCELERATION,
        )
        for name, value in zip(DOF_NAMES, values):
            object.__setattr__(self, name, value)

    @classmethod
    def zero(cls) -> "AccelCommand":
        return cls()

    @classmethod
    def from_vectors(cls, linear: Sequence[float], angular: Sequence[float]) -> "AccelCommand":
        linear = _finite_vector(linear, 3, "linear acceleration", MAX_ACCELERATION)
        angular = _finite_vector(angular, 3, "angular acceleration", MAX_ACCELERATION)
        return cls(*linear, *angular)

    def as_array(self) -> np.ndarray:
        """[surge, sway, heave, roll, pitch, yaw]"""
        return np.array([getattr(self, name) for name in DOF_NAMES], dtype=float)
