"""Conjunction screening: identify close approaches between sampled trajectories."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor
from dataclasses import dataclass
from datetime import datetime
from itertools import combinations

import numpy as np
from scipy.spatial import cKDTree

from orbitrisk.core.sampling import Trajectory, TrajectorySample
from orbitrisk.errors import AnalysisCancelled, ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Conjunction:
    """A predicted close approach between two objects.

    Attributes:
        object_a: Identity of the first object.
        object_b: Identity of the second object.
        miss_distance_km: Minimum separation over the aligned samples, km.
        tca: Time of closest approach (UTC), i.e. the sample time of the minimum.
        sample_index: Nominal sample index at which the minimum occurs.
        relative_velocity_km_s: Relative speed at TCA in km/s.
    """

    object_a: str
    object_b: str
    miss_distance_km: float
    tca: datetime
    sample_index: int
    relative_velocity_km_s: float


def _check_threshold(threshold_km: float) -> None:
    if not threshold_km > 0:
        raise ConfigurationError(f"threshold_km must be positive, got {threshold_km}")


def _check_cadence(a: Trajectory, b: Trajectory) -> None:
    if a.start != b.start or a.step != b.step:
        raise ConfigurationError(
            f"Trajectories {a.object_id!r} and {b.object_id!r} use different sampling "
            f"(start {a.start} vs {b.start}, step {a.step} vs {b.step})"
        )


def detect(a: Trajectory, b: Trajectory, threshold_km: float) -> Conjunction | None:
    """Find the closest approach between two trajectories.

    Samples are paired on their nominal sample index, so a sample missing
    from either side (failed propagation) simply drops that index.

    Args:
        a: First trajectory.
        b: Second trajectory, sampled with the same start and step.
        threshold_km: Report only if the minimum separation is strictly below this.

    Returns:
        The Conjunction, or None if the objects never come closer than
        ``threshold_km`` (or share no samples).

    Raises:
        ConfigurationError: If the threshold is not positive or the
            trajectories were sampled on different cadences.
    """
    _check_threshold(threshold_km)
    _check_cadence(a, b)

    b_by_index = {s.index: s for s in b.samples}
    best_dist = float("inf")
    best = None

    for sa in a.samples:
        sb = b_by_index.get(sa.index)
        if sb is None:
            continue
        distance = float(np.linalg.norm(sa.state.position_km - sb.state.position_km))
        if distance < best_dist:
            best_dist = distance
            best = (sa, sb)

    if best is None or not best_dist < threshold_km:
        return None

    sa, sb = best
    rel_vel = float(np.linalg.norm(sa.state.velocity_km_s - sb.state.velocity_km_s))
    return Conjunction(
        object_a=a.object_id,
        object_b=b.object_id,
        miss_distance_km=best_dist,
        tca=sa.state.epoch,
        sample_index=sa.index,
        relative_velocity_km_s=rel_vel,
    )


def sort_conjunctions(conjunctions: list[Conjunction]) -> list[Conjunction]:
    """Ascending miss distance; ties broken by object identities."""
    return sorted(conjunctions, key=lambda c: (c.miss_distance_km, c.object_a, c.object_b))


def screen(
    trajectories: list[Trajectory],
    threshold_km: float,
    *,
    executor: Executor | None = None,
    cancel_event: threading.Event | None = None,
) -> list[Conjunction]:
    """Screen all unordered pairs of trajectories for conjunctions.

    Every pair is an independent unit of work, O(N²·T) overall.

    Args:
        trajectories: Trajectories sampled on a common cadence.
        threshold_km: Miss distance threshold in km.
        executor: Optional executor used to map pairs in parallel.
        cancel_event: Checked between pairs; when set the run is aborted.

    Returns:
        Conjunctions sorted by miss distance.
    """
    _check_threshold(threshold_km)
    usable = [t for t in trajectories if len(t)]
    pairs = list(combinations(usable, 2))

    logger.info("Screening %d pairs from %d trajectories (%.1f km threshold)",
                len(pairs), len(usable), threshold_km)

    def _pair(pair: tuple[Trajectory, Trajectory]) -> Conjunction | None:
        if cancel_event is not None and cancel_event.is_set():
            raise AnalysisCancelled("conjunction screening cancelled")
        return detect(pair[0], pair[1], threshold_km)

    if executor is None:
        results = [_pair(p) for p in pairs]
    else:
        results = list(executor.map(_pair, pairs))

    events = sort_conjunctions([c for c in results if c is not None])
    logger.info("screen: found %d conjunctions", len(events))
    return events


def screen_catalog(trajectories: list[Trajectory], threshold_km: float) -> list[Conjunction]:
    """Screen all pairs using a KD-tree per sample index.

    Returns the same conjunctions as :func:`screen`, but only pairs that
    come within ``threshold_km`` at some sample are ever compared, which
    scales far better for large catalogs.
    """
    _check_threshold(threshold_km)
    usable = [t for t in trajectories if len(t)]
    if len(usable) < 2:
        logger.info("screen_catalog: fewer than 2 trajectories, nothing to screen")
        return []

    for other in usable[1:]:
        _check_cadence(usable[0], other)

    # index -> list of (trajectory idx, sample)
    by_index: dict[int, list[tuple[int, TrajectorySample]]] = {}
    for ti, traj in enumerate(usable):
        for s in traj.samples:
            by_index.setdefault(s.index, []).append((ti, s))

    best: dict[tuple[int, int], Conjunction] = {}

    for index in sorted(by_index):
        entries = by_index[index]
        if len(entries) < 2:
            continue

        pos = np.vstack([s.state.position_km for _, s in entries])
        tree = cKDTree(pos)
        close = tree.query_pairs(threshold_km)

        for i, j in close:
            (ti, si), (tj, sj) = entries[i], entries[j]
            if ti > tj:
                ti, tj, si, sj = tj, ti, sj, si
            dist = float(np.linalg.norm(si.state.position_km - sj.state.position_km))
            if not dist < threshold_km:
                continue
            key = (ti, tj)
            if key not in best or dist < best[key].miss_distance_km:
                rel_vel = float(np.linalg.norm(si.state.velocity_km_s - sj.state.velocity_km_s))
                best[key] = Conjunction(
                    object_a=usable[ti].object_id,
                    object_b=usable[tj].object_id,
                    miss_distance_km=dist,
                    tca=si.state.epoch,
                    sample_index=index,
                    relative_velocity_km_s=rel_vel,
                )

    events = sort_conjunctions(list(best.values()))
    logger.info("screen_catalog: found %d close pairs", len(events))
    return events
