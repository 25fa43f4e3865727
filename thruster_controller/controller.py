"""
Thruster controller context.

Owns the dynamics model, the allocator and the latest inertial state,
command and solution. Event handlers are transport-agnostic; the ROS node
only converts messages and forwards them here.
"""
import logging
from typing import List, Optional, Sequence

from thruster_controller.dynamics_model import DynamicsModel
from thruster_controller.thrust_allocator import ThrustAllocator, ThrustSolution
from thruster_controller.vehicle_state import AccelCommand, InvalidInputError, VehicleState


class ThrusterController:
    """
    Event-driven wrapper around the allocator.

    The vehicle state is an immutable snapshot replaced by a single
    attribute assignment, so a solve always reads a consistent
    orientation / angular-velocity pair.
    """

    def __init__(
        self,
        model: DynamicsModel,
        allocator: ThrustAllocator = None,
        logger: logging.Logger = None
    ):
        self.model = model
        self.logger = logger or logging.getLogger(__name__)
        self.allocator = allocator or ThrustAllocator(model, logger=self.logger)

        self._state = VehicleState.identity()
        self._command = AccelCommand.zero()
        self._last_solution: Optional[ThrustSolution] = None
        self._rejected_events = 0

    @property
    def state(self) -> VehicleState:
        return self._state

    @property
    def command(self) -> AccelCommand:
        return self._command

    @property
    def last_solution(self) -> Optional[ThrustSolution]:
        return self._last_solution

    @property
    def thruster_names(self) -> List[str]:
        return self.model.thruster_names

    @property
    def rejected_events(self) -> int:
        return self._rejected_events

    def handle_imu(self, orientation: Sequence[float],
                   angular_velocity: Sequence[float]) -> bool:
        """
        Replace the vehicle state from an inertial measurement.

        Args:
            orientation: Quaternion (x, y, z, w)
            angular_velocity: Body rates [rad/s]

        Returns:
            True if accepted, False if discarded as malformed
        """
        try:
            state = VehicleState.from_imu(orientation, angular_velocity)
        except InvalidInputError as e:
            self._rejected_events += 1
            self.logger.warning(f"Discarding IMU sample: {e}")
            return False

        self._state = state
        return True

    def handle_accel_command(self, linear: Sequence[float],
                             angular: Sequence[float]) -> Optional[ThrustSolution]:
        """
        Store a new acceleration command and allocate thrust for it.

        Args:
            linear: (surge, sway, heave) [m/s²]
            angular: (roll, pitch, yaw) [rad/s²]

        Returns:
            The new ThrustSolution, or None if the command was malformed
            (the previous solution is kept)
        """
        try:
            command = AccelCommand.from_vectors(linear, angular)
        except InvalidInputError as e:
            self._rejected_events += 1
            self.logger.warning(f"Discarding acceleration command: {e}")
            return None

        try:
            solution = self.allocator.allocate(command, self._state)
        except InvalidInputError as e:
            self._rejected_events += 1
            self.logger.warning(f"Discarding acceleration command: {e}")
            return None

        self._command = command

        if solution.saturated:
            self.logger.debug(
                f"Thrust saturated, residual norm {solution.residual_norm:.3e}"
            )
        self._last_solution = solution
        return solution

    def get_state(self) -> dict:
        """Get current controller state for debugging/logging."""
        return {
            'orientation': list(self._state.orientation),
            'angular_velocity': list(self._state.angular_velocity),
            'command': self._command.as_array().tolist(),
            'forces': dict(self._last_solution.forces) if self._last_solution else None,
            'rejected_events': self._rejected_events,
        }
