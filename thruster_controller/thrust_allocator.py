"""
Thrust allocator for a redundantly actuated vehicle.
Maps a 6-DOF acceleration command to per-thruster forces within bounds.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Tuple

import numpy as np
from scipy.optimize import lsq_linear

from thruster_controller.dynamics_model import DynamicsModel
from thruster_controller.vehicle_state import AccelCommand, InvalidInputError, VehicleState


@dataclass(frozen=True)
class ThrustSolution:
    """
    Result of one allocation.

    Attributes:
        forces: Thruster name -> force [N], in configuration order
        stamp: Production time [s]
        residual: Modeled minus commanded acceleration per DOF
        converged: False if the bounded solve stopped before reaching optimality
        iterations: Iterations used by the bounded solve (0 if not needed)
        saturated: True if any thruster sits on one of its bounds
    """
    forces: Dict[str, float]
    stamp: float
    residual: Tuple[float, ...] = field(default=(0.0,) * 6)
    converged: bool = True
    iterations: int = 0
    saturated: bool = False

    def as_array(self) -> np.ndarray:
        return np.array(list(self.forces.values()), dtype=float)

    @property
    def residual_norm(self) -> float:
        return float(np.linalg.norm(self.residual))


class ThrustAllocator:
    """
    Allocates a body-frame acceleration command to N bounded thrusters.

    The dynamics are affine in the thruster forces f:
        a(f) = B f + g(w)
    so allocation is the box-constrained linear least-squares problem
        min ||B f - (a_cmd - g(w))||²   s.t.  f_min <= f <= f_max

    With more thrusters than DOFs the problem has many exact solutions.
    Starting from f = 0 the minimum-norm one is taken:
        f = B⁺ (a_cmd - g(w))
    If that violates a bound, a bounded-variable least-squares solve is run
    on the system augmented with a small Tikhonov term, which keeps the
    bounded optimum unique and close to minimum norm.
    """

    def __init__(
        self,
        model: DynamicsModel,
        max_iterations: int = 100,
        regularization: float = 1e-10,
        clock: Callable[[], float] = time.time,
        logger: logging.Logger = None
    ):
        """
        Initialize thrust allocator.

        Args:
            model: Dynamics model providing the allocation matrix and bounds
            max_iterations: Iteration cap for the bounded solve
            regularization: Tikhonov weight for the bounded solve (>= 0)
            clock: Time source for solution stamps [s]
            logger: Optional logger

        Raises:
            ValueError: If parameters are invalid
        """
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        if not np.isfinite(regularization) or regularization < 0.0:
            raise ValueError("regularization must be finite and non-negative")

        self.model = model
        self.max_iterations = int(max_iterations)
        self.regularization = float(regularization)
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

        self._B = model.allocation_matrix
        self._B_pinv = np.linalg.pinv(self._B)
        self._lower, self._upper = model.thrust_limits

        n = model.n_thrusters
        self._B_aug = np.vstack([self._B, np.sqrt(self.regularization) * np.eye(n)])

    def _solve_bounded(self, target: np.ndarray) -> Tuple[np.ndarray, int, int]:
        """Box-constrained least squares. Returns (forces, status, iterations)."""
        n = self.model.n_thrusters
        forces = self._lower.copy()

        # Thrusters with min == max are pinned; bvls needs strictly ordered bounds
        free = self._lower < self._upper
        if not np.any(free):
            return forces, 1, 0

        b_aug = np.concatenate([target - self._B[:, ~free] @ forces[~free], np.zeros(n)])
        result = lsq_linear(
            self._B_aug[:, free], b_aug,
            bounds=(self._lower[free], self._upper[free]),
            method='bvls',
            max_iter=self.max_iterations,
        )
        forces[free] = result.x
        return forces, int(result.status), int(result.nit)

    def allocate(self, command: AccelCommand, state: VehicleState) -> ThrustSolution:
        """
        Compute thruster forces for an acceleration command.

        Args:
            command: Desired body-frame acceleration
            state: Inertial snapshot; only the angular velocity is used

        Returns:
            ThrustSolution with every force inside its bounds

        Raises:
            InvalidInputError: If the gyroscopic offset is not finite
        """
        forces = np.zeros(self.model.n_thrusters)
        target = command.as_array() - self.model.gyroscopic_accelerations(state.angular_velocity)
        if not np.all(np.isfinite(target)):
            raise InvalidInputError("allocation target is not finite")

        # One Gauss-Newton step from zero; exact since the model is affine
        forces = forces + self._B_pinv @ (target - self._B @ forces)
        converged, iterations = True, 0

        if np.any(forces < self._lower) or np.any(forces > self._upper):
            forces, status, iterations = self._solve_bounded(target)
            # lsq_linear status: 0 iteration cap, -1 no progress, > 0 converged
            converged = status > 0
            if status == 0:
                self.logger.warning(
                    f"Bounded allocation stopped at iteration cap ({self.max_iterations}); "
                    f"using best point found"
                )
            elif status < 0:
                self.logger.warning(
                    f"Bounded allocation made no progress (status {status}); "
                    f"using best point found"
                )

        # Apply saturation limits exactly
        forces = np.clip(forces, self._lower, self._upper)

        residual = self.model.residuals(forces, state, command)
        saturated = bool(np.any(np.isclose(forces, self._lower) & (self._lower < 0.0))
                         or np.any(np.isclose(forces, self._upper) & (self._upper > 0.0)))

        self.logger.debug(
            f"Allocated cmd={np.round(command.as_array(), 3).tolist()}, "
            f"|residual|={np.linalg.norm(residual):.3e}, saturated={saturated}"
        )

        return ThrustSolution(
            forces={name: float(f) for name, f in zip(self.model.thruster_names, forces)},
            stamp=float(self.clock()),
            residual=tuple(float(r) for r in residual),
            converged=converged,
            iterations=iterations,
            saturated=saturated,
        )
