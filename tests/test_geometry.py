"""
Tests for startup geometry acquisition.
"""
import pytest
from thruster_controller.geometry import GeometryTimeoutError, wait_for_positions


class FakeTransformSource:
    """Frames appear after a given number of lookups; time advances only on sleep."""

    def __init__(self, positions, available_after=0):
        self.positions = positions
        self.available_after = available_after
        self.calls = 0
        self.now = 0.0

    def lookup(self, frame):
        self.calls += 1
        if self.calls <= self.available_after or frame not in self.positions:
            raise LookupError(f"frame {frame} does not exist")
        return self.positions[frame]

    def clock(self):
        return self.now

    def sleep(self, dt):
        self.now += dt


class TestWaitForPositions:
    """Bounded wait for thruster transforms."""

    def test_immediately_available(self):
        source = FakeTransformSource({'a_link': (0.1, 0.2, 0.3), 'b_link': (-0.1, 0.0, 0.0)})
        positions = wait_for_positions(
            source.lookup, ['a_link', 'b_link'], timeout=1.0,
            clock=source.clock, sleep=source.sleep
        )
        assert positions == {'a_link': (0.1, 0.2, 0.3), 'b_link': (-0.1, 0.0, 0.0)}
        assert source.now == 0.0

    def test_retries_until_available(self):
        source = FakeTransformSource({'a_link': (1.0, 2.0, 3.0)}, available_after=3)
        positions = wait_for_positions(
            source.lookup, ['a_link'], timeout=10.0, poll_period=0.5,
            clock=source.clock, sleep=source.sleep
        )
        assert positions['a_link'] == (1.0, 2.0, 3.0)
        assert source.now == pytest.approx(1.5)

    def test_timeout_is_fatal(self):
        source = FakeTransformSource({'a_link': (1.0, 2.0, 3.0)})
        with pytest.raises(GeometryTimeoutError, match="missing_link"):
            wait_for_positions(
                source.lookup, ['a_link', 'missing_link'], timeout=2.0, poll_period=0.5,
                clock=source.clock, sleep=source.sleep
            )
        # Bounded: gave up at the deadline
        assert source.now == pytest.approx(2.0)

    def test_resolved_frames_are_not_looked_up_again(self):
        source = FakeTransformSource({'a_link': (1.0, 2.0, 3.0)})
        with pytest.raises(GeometryTimeoutError):
            wait_for_positions(
                source.lookup, ['a_link', 'missing_link'], timeout=1.0, poll_period=0.5,
                clock=source.clock, sleep=source.sleep
            )
        # a_link once, missing_link on each of the three polls (t = 0, 0.5, 1.0)
        assert source.calls == 4

    def test_invalid_arguments(self):
        with pytest.raises(ValueError, match="timeout"):
            wait_for_positions(lambda f: (0, 0, 0), ['a'], timeout=-1.0)
        with pytest.raises(ValueError, match="poll_period"):
            wait_for_positions(lambda f: (0, 0, 0), ['a'], timeout=1.0, poll_period=0.0)

    def test_feeds_vehicle_config(self, reference_config):
        """Acquired positions replace the YAML ones by thruster name."""
        frames = {f"{name}_link": name for name in reference_config.thruster_names}
        source = FakeTransformSource({frame: (0.01 * i, 0.0, 0.0)
                                      for i, frame in enumerate(frames)})
        positions = wait_for_positions(
            source.lookup, list(frames), timeout=1.0, clock=source.clock, sleep=source.sleep
        )
        config = reference_config.with_positions(
            {name: positions[frame] for frame, name in frames.items()}
        )
        assert config.thrusters[3].position == pytest.approx((0.03, 0.0, 0.0))
        assert config.thrusters[3].direction == reference_config.thrusters[3].direction
