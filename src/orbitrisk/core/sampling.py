"""Trajectory sampling: propagate one object over a bounded window at a
fixed cadence."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor
from dataclasses import dataclass
from datetime import datetime, timedelta

import numpy as np
from numpy.typing import NDArray

from orbitrisk.core.propagation import (
    GeodeticState,
    PropagationFailed,
    StateVector,
    as_utc,
    propagate,
    to_geodetic,
)
from orbitrisk.core.tle import ElementSet
from orbitrisk.errors import AnalysisCancelled, ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrajectorySample:
    """One successfully propagated point of a trajectory.

    Attributes:
        index: Nominal sample index, i.e. the state is at ``start + index * step``.
        state: Inertial state vector.
        geodetic: Geodetic projection of ``state``.
    """

    index: int
    state: StateVector
    geodetic: GeodeticState


@dataclass(frozen=True)
class Trajectory:
    """Time-ascending samples of one object.

    Samples that failed to propagate are absent, so ``len(trajectory)`` may
    be smaller than ``nominal_count``.
    """

    object_id: str
    start: datetime
    step: timedelta
    samples: tuple[TrajectorySample, ...]
    nominal_count: int
    failed_count: int = 0

    def __len__(self) -> int:
        return len(self.samples)

    def indices(self) -> list[int]:
        return [s.index for s in self.samples]

    def timestamps(self) -> list[datetime]:
        return [s.state.epoch for s in self.samples]

    def positions(self) -> NDArray[np.float64]:
        """Array of shape (n, 3), km."""
        if not self.samples:
            return np.empty((0, 3), dtype=np.float64)
        return np.vstack([s.state.position_km for s in self.samples])

    def velocities(self) -> NDArray[np.float64]:
        """Array of shape (n, 3), km/s."""
        if not self.samples:
            return np.empty((0, 3), dtype=np.float64)
        return np.vstack([s.state.velocity_km_s for s in self.samples])


def _as_timedelta(value: timedelta | float, label: str) -> timedelta:
    if isinstance(value, timedelta):
        delta = value
    else:
        delta = timedelta(seconds=float(value))
    if delta <= timedelta(0):
        raise ConfigurationError(f"{label} must be positive, got {delta}")
    return delta


def sample_times(
    start: datetime, window: timedelta | float, step: timedelta | float
) -> list[datetime]:
    """Sample timestamps ``start, start+step, ...`` that fall within
    ``[start, start + window]``, i.e. ``floor(window / step) + 1`` of them.

    ``window`` and ``step`` are timedeltas or seconds.

    Raises:
        ConfigurationError: If window or step is not positive.
    """
    window = _as_timedelta(window, "window")
    step = _as_timedelta(step, "step")
    start = as_utc(start)
    end = start + window

    times = []
    t = start
    while t <= end:
        times.append(t)
        t = start + len(times) * step
    return times


def sample(
    element_set: ElementSet,
    start: datetime,
    window: timedelta | float,
    step: timedelta | float,
) -> Trajectory:
    """Propagate ``element_set`` over the window.

    Failed samples are dropped and counted, never raised.
    """
    times = sample_times(start, window, step)
    samples: list[TrajectorySample] = []
    failed = 0

    for index, t in enumerate(times):
        state = propagate(element_set, t)
        if isinstance(state, PropagationFailed):
            failed += 1
            continue
        samples.append(TrajectorySample(index, state, to_geodetic(state)))

    if failed:
        logger.debug("NORAD %d: %d/%d samples failed to propagate",
                     element_set.norad_id, failed, len(times))

    return Trajectory(
        object_id=element_set.object_id,
        start=times[0],
        step=_as_timedelta(step, "step"),
        samples=tuple(samples),
        nominal_count=len(times),
        failed_count=failed,
    )


def sample_many(
    element_sets: list[ElementSet],
    start: datetime,
    window: timedelta | float,
    step: timedelta | float,
    *,
    executor: Executor | None = None,
    cancel_event: threading.Event | None = None,
) -> list[Trajectory]:
    """Sample every element set independently, preserving input order.

    Args:
        element_sets: Objects to sample.
        start: Window start.
        window: Window length (timedelta or seconds).
        step: Sampling interval (timedelta or seconds).
        executor: Optional executor used to map objects in parallel.
        cancel_event: Checked between objects; when set the run is aborted.

    Raises:
        ConfigurationError: If window or step is not positive.
        AnalysisCancelled: If ``cancel_event`` is set.
    """
    # validate before doing any work
    sample_times(start, window, step)

    def _one(es: ElementSet) -> Trajectory:
        if cancel_event is not None and cancel_event.is_set():
            raise AnalysisCancelled("trajectory sampling cancelled")
        return sample(es, start, window, step)

    if executor is None:
        trajectories = [_one(es) for es in element_sets]
    else:
        trajectories = list(executor.map(_one, element_sets))

    logger.info("Sampled %d trajectories", len(trajectories))
    return trajectories
