"""
Startup acquisition of thruster mounting positions.

Positions come from an external transform source (TF on the vehicle) that
may not be publishing yet when the controller starts. The wait is bounded;
running out of time is fatal because no command may be served without a
complete dynamics model.
"""
import logging
import time
from typing import Callable, Dict, Iterable, Sequence, Tuple


class GeometryTimeoutError(RuntimeError):
    """Raised when thruster positions are not available before the deadline."""


def wait_for_positions(
    lookup: Callable[[str], Sequence[float]],
    frames: Iterable[str],
    timeout: float,
    poll_period: float = 0.1,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
    logger: logging.Logger = None
) -> Dict[str, Tuple[float, float, float]]:
    """
    Poll a transform lookup until every frame resolves or time runs out.

    Args:
        lookup: Returns the (x, y, z) offset of a frame from the body origin;
            raises (any Exception) while the frame is unavailable
        frames: Frame names to resolve
        timeout: Total time budget [s]
        poll_period: Delay between retries [s]
        clock: Monotonic time source
        sleep: Sleep function
        logger: Optional logger

    Returns:
        Frame name -> (x, y, z)

    Raises:
        GeometryTimeoutError: If any frame is still missing at the deadline
    """
    if timeout < 0.0:
        raise ValueError("timeout must be non-negative")
    if poll_period <= 0.0:
        raise ValueError("poll_period must be positive")

    logger = logger or logging.getLogger(__name__)
    pending = list(frames)
    positions: Dict[str, Tuple[float, float, float]] = {}
    deadline = clock() + timeout

    while True:
        still_pending = []
        for frame in pending:
            try:
                x, y, z = (float(v) for v in lookup(frame))
            except Exception as e:
                still_pending.append(frame)
                last_error = e
                continue
            positions[frame] = (x, y, z)
        pending = still_pending

        if not pending:
            return positions
        if clock() >= deadline:
            raise GeometryTimeoutError(
                f"Timed out after {timeout:.1f} s waiting for frames {pending}: {last_error}"
            )
        logger.debug(f"Waiting for transforms: {pending}")
        sleep(poll_period)
