"""
Rigid-body dynamics model for thrust allocation.

Maps a vector of thruster forces to the resulting body-frame acceleration:

    a_lin = (1/m) * sum_i f_i * d_i
    a_ang = I^-1 * (sum_i f_i * (r_i x d_i) + gyro(w))

where d_i is the unit thrust direction and r_i the mounting position of
thruster i, and gyro(w) holds the Euler cross-coupling terms

    roll:  (Iyy - Izz) * wy * wz
    pitch: (Izz - Ixx) * wx * wz
    yaw:   (Ixx - Iyy) * wx * wy

The model is affine in the forces. Its Jacobian (the allocation matrix) is
therefore constant and is obtained once with forward-mode autodiff.
"""
from typing import Tuple

import jax
import jax.numpy as jnp
import numpy as np

from thruster_controller.vehicle_config import VehicleConfig
from thruster_controller.vehicle_state import AccelCommand, VehicleState

jax.config.update("jax_enable_x64", True)


class DynamicsModel:
    """
    Closed-form 6-DOF acceleration model of a vehicle with fixed thrusters.

    Holds only immutable geometry and mass properties; the inertial state is
    passed in on every call.
    """

    def __init__(self, config: VehicleConfig):
        """
        Args:
            config: Validated vehicle configuration
        """
        self.config = config
        self.parameters = config.parameters
        self.thrusters = config.thrusters

        self._mass = float(self.parameters.mass)
        self._inertia = jnp.asarray(self.parameters.inertia, dtype=jnp.float64)

        positions = jnp.asarray([t.position for t in self.thrusters], dtype=jnp.float64)
        directions = jnp.asarray([t.direction for t in self.thrusters], dtype=jnp.float64)
        self._directions = directions                       # N x 3
        self._moment_arms = jnp.cross(positions, directions)  # N x 3, r_i x d_i

        self._lower = np.array([t.min_force for t in self.thrusters], dtype=float)
        self._upper = np.array([t.max_force for t in self.thrusters], dtype=float)

        zero = jnp.zeros(self.n_thrusters, dtype=jnp.float64)
        jacobian = jax.jacfwd(self._accelerations, argnums=0)(zero, jnp.zeros(3))
        self._allocation_matrix = np.asarray(jacobian, dtype=float)
        self._allocation_matrix.setflags(write=False)

        # Traced and compiled on first call, reused for every solve
        self._accelerations_jit = jax.jit(self._accelerations)

    @property
    def n_thrusters(self) -> int:
        return len(self.thrusters)

    @property
    def thruster_names(self):
        return [t.name for t in self.thrusters]

    @property
    def allocation_matrix(self) -> np.ndarray:
        """6 x N matrix B with accelerations = B @ forces + gyroscopic terms."""
        return self._allocation_matrix

    @property
    def thrust_limits(self) -> Tuple[np.ndarray, np.ndarray]:
        """(lower, upper) force bounds in thruster order."""
        return self._lower.copy(), self._upper.copy()

    def _accelerations(self, forces, angular_velocity):
        wx, wy, wz = angular_velocity[0], angular_velocity[1], angular_velocity[2]
        ixx, iyy, izz = self._inertia[0], self._inertia[1], self._inertia[2]

        force = forces @ self._directions
        torque = forces @ self._moment_arms
        gyro = jnp.stack([
            (iyy - izz) * wy * wz,
            (izz - ixx) * wx * wz,
            (ixx - iyy) * wx * wy,
        ])

        linear = force / self._mass
        angular = (torque + gyro) / self._inertia
        return jnp.concatenate([linear, angular])

    def accelerations(self, forces, angular_velocity=(0.0, 0.0, 0.0)) -> np.ndarray:
        """
        Body-frame acceleration produced by a set of thruster forces.

        Args:
            forces: Thruster forces [N], in configuration order
            angular_velocity: Body-frame angular velocity [rad/s]

        Returns:
            [surge, sway, heave, roll, pitch, yaw] accelerations
        """
        forces = jnp.asarray(forces, dtype=jnp.float64).reshape(self.n_thrusters)
        omega = jnp.asarray(angular_velocity, dtype=jnp.float64).reshape(3)
        return np.asarray(self._accelerations_jit(forces, omega), dtype=float)

    def gyroscopic_accelerations(self, angular_velocity) -> np.ndarray:
        """Acceleration at zero thrust, i.e. the affine offset of the model."""
        return self.accelerations(np.zeros(self.n_thrusters), angular_velocity)

    def residuals(self, forces, state: VehicleState, command: AccelCommand) -> np.ndarray:
        """Modeled minus commanded acceleration, one entry per DOF."""
        return self.accelerations(forces, state.angular_velocity) - command.as_array()
