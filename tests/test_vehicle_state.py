"""
Tests for VehicleState and AccelCommand snapshots.
"""
import math
import pytest
import numpy as np
from thruster_controller.vehicle_state import (
    MAX_ACCELERATION,
    MAX_ANGULAR_RATE,
    AccelCommand,
    InvalidInputError,
    VehicleState,
)


class TestVehicleState:
    """Test inertial state snapshots."""

    def test_identity(self):
        state = VehicleState.identity()
        assert state.orientation == (0.0, 0.0, 0.0, 1.0)
        assert state.angular_velocity == (0.0, 0.0, 0.0)
        assert np.allclose(state.rotation_matrix(), np.eye(3))

    def test_quaternion_is_normalized(self):
        state = VehicleState.from_imu((0.0, 0.0, 0.0, 2.0), (0.1, 0.2, 0.3))
        assert np.isclose(np.linalg.norm(state.orientation), 1.0)
        assert state.angular_velocity == (0.1, 0.2, 0.3)

    def test_yaw_rotation_matrix(self):
        """90° about z maps body x onto reference y."""
        s = math.sqrt(0.5)
        state = VehicleState.from_imu((0.0, 0.0, s, s), (0.0, 0.0, 0.0))
        R = state.rotation_matrix()
        assert np.allclose(R @ [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], atol=1e-12)
        assert np.allclose(R @ R.T, np.eye(3), atol=1e-12)

    def test_zero_quaternion_rejected(self):
        with pytest.raises(InvalidInputError, match="zero norm"):
            VehicleState.from_imu((0.0, 0.0, 0.0, 0.0), (0.0, 0.0, 0.0))

    def test_nan_rejected(self):
        with pytest.raises(InvalidInputError, match="non-finite"):
            VehicleState.from_imu((0.0, 0.0, 0.0, 1.0), (float('nan'), 0.0, 0.0))
        with pytest.raises(InvalidInputError, match="non-finite"):
            VehicleState.from_imu((0.0, float('inf'), 0.0, 1.0), (0.0, 0.0, 0.0))

    def test_wrong_length_rejected(self):
        with pytest.raises(InvalidInputError, match="3 components"):
            VehicleState.from_imu((0.0, 0.0, 0.0, 1.0), (0.0, 0.0))

    @pytest.mark.parametrize("rate", [1e200, -(MAX_ANGULAR_RATE + 1.0)])
    def test_out_of_range_rate_rejected(self, rate):
        with pytest.raises(InvalidInputError, match="out of range"):
            VehicleState.from_imu((0.0, 0.0, 0.0, 1.0), (0.0, rate, 0.0))

    def test_rate_at_limit_accepted(self):
        state = VehicleState.from_imu((0.0, 0.0, 0.0, 1.0), (MAX_ANGULAR_RATE, 0.0, 0.0))
        assert state.angular_velocity[0] == MAX_ANGULAR_RATE

    def test_invalid_input_is_value_error(self):
        with pytest.raises(ValueError):
            VehicleState.from_imu(None, (0.0, 0.0, 0.0))

    def test_immutable(self):
        state = VehicleState.identity()
        with pytest.raises(AttributeError):
            state.angular_velocity = (1.0, 0.0, 0.0)


class TestAccelCommand:
    """Test acceleration commands."""

    def test_zero(self):
        assert np.array_equal(AccelCommand.zero().as_array(), np.zeros(6))

    def test_from_vectors_order(self):
        cmd = AccelCommand.from_vectors((1.0, 2.0, 3.0), (4.0, 5.0, 6.0))
        assert cmd.surge == 1.0
        assert cmd.heave == 3.0
        assert cmd.roll == 4.0
        assert cmd.yaw == 6.0
        assert np.array_equal(cmd.as_array(), [1.0, 2.0, 3.0, 4.0, 5.0, 6.0])

    def test_nan_rejected(self):
        with pytest.raises(InvalidInputError):
            AccelCommand.from_vectors((float('nan'), 0.0, 0.0), (0.0, 0.0, 0.0))
        with pytest.raises(InvalidInputError):
            AccelCommand(yaw=float('inf'))

    def test_wrong_length_rejected(self):
        with pytest.raises(InvalidInputError, match="angular acceleration"):
            AccelCommand.from_vectors((0.0, 0.0, 0.0), (0.0, 0.0, 0.0, 0.0))

    def test_out_of_range_rejected(self):
        with pytest.raises(InvalidInputError, match="out of range"):
            AccelCommand.from_vectors((1e300, 0.0, 0.0), (0.0, 0.0, 0.0))
        with pytest.raises(InvalidInputError, match="out of range"):
            AccelCommand(pitch=-2.0 * MAX_ACCELERATION)

    def test_keyword_construction(self):
        cmd = AccelCommand(surge=1.0)
        assert np.array_equal(cmd.as_array(), [1.0, 0.0, 0.0, 0.0, 0.0, 0.0])
