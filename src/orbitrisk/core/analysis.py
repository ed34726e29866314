"""End-to-end analysis run: sample, detect, score.

A run is a pure function of its :class:`AnalysisRequest`. It moves through
``IDLE -> SAMPLING -> DETECTING -> SCORING -> COMPLETE`` and either returns a
complete :class:`AnalysisResult` or raises; nothing partial is surfaced.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Callable, Mapping

from orbitrisk.core.classifier import OrbitRegime, classify
from orbitrisk.core.risk import (
    RiskAssessment,
    assess_conjunction,
    assess_debris_collisions,
    assess_debris_reentry,
    assess_neo,
    sort_assessments,
)
from orbitrisk.core.sampling import Trajectory, sample_many, sample_times
from orbitrisk.core.screening import Conjunction, screen, screen_catalog
from orbitrisk.core.scoring import (
    AggregateRiskScore,
    aggregate_risk_score,
    count_risk_categories,
    critical_alerts,
    orbital_density,
)
from orbitrisk.core.tle import ElementSet
from orbitrisk.data.neo import NeoRecord
from orbitrisk.errors import AnalysisCancelled, ConfigurationError
from orbitrisk.utils.constants import (
    DEFAULT_MISS_DISTANCE_KM,
    DEFAULT_STEP_SECONDS,
    DEFAULT_WINDOW_MINUTES,
)

logger = logging.getLogger(__name__)


class AnalysisStage(Enum):
    IDLE = "idle"
    SAMPLING = "sampling"
    DETECTING = "detecting"
    SCORING = "scoring"
    COMPLETE = "complete"


@dataclass(frozen=True)
class AnalysisRequest:
    """Everything a run needs; there is no other configuration.

    Attributes:
        satellites: Active satellites to sample and screen.
        debris: Debris objects, screened alongside the satellites and scored
            for re-entry and snapshot collision risk.
        neos: Near-Earth-object close approaches to score.
        start: Window start (UTC).
        window: Window length.
        step: Sampling interval.
        threshold_km: Conjunction threshold.
        use_spatial_index: Screen with the KD-tree path instead of plain pairwise.
    """

    satellites: tuple[ElementSet, ...] = ()
    debris: tuple[ElementSet, ...] = ()
    neos: tuple[NeoRecord, ...] = ()
    start: datetime | None = None
    window: timedelta = timedelta(minutes=DEFAULT_WINDOW_MINUTES)
    step: timedelta = timedelta(seconds=DEFAULT_STEP_SECONDS)
    threshold_km: float = DEFAULT_MISS_DISTANCE_KM
    use_spatial_index: bool = False

    def validate(self) -> None:
        """Raise ConfigurationError for unusable parameters."""
        if self.start is None:
            raise ConfigurationError("start time is required")
        if not self.threshold_km > 0:
            raise ConfigurationError(f"threshold_km must be positive, got {self.threshold_km}")
        sample_times(self.start, self.window, self.step)


@dataclass(frozen=True)
class AnalysisResult:
    trajectories: tuple[Trajectory, ...] = ()
    conjunctions: tuple[Conjunction, ...] = ()
    assessments: tuple[RiskAssessment, ...] = ()
    regimes: Mapping[str, OrbitRegime] = field(default_factory=dict, hash=False)
    score: AggregateRiskScore | None = None
    alerts: tuple[str, ...] = ()
    failed_samples: int = 0
    failed_objects: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "regimes", MappingProxyType(dict(self.regimes)))


def run_analysis(
    request: AnalysisRequest,
    *,
    executor: Executor | None = None,
    cancel_event: threading.Event | None = None,
    on_stage: Callable[[AnalysisStage], None] | None = None,
) -> AnalysisResult:
    """Run the full pipeline for one request.

    Args:
        request: Objects, window and threshold.
        executor: Optional executor for the sampling and pairwise stages.
        cancel_event: When set, the run aborts before the next unit of work.
        on_stage: Called with each stage as the run enters it.

    Raises:
        ConfigurationError: Before any computation, for invalid parameters.
        AnalysisCancelled: If ``cancel_event`` is set during the run.
    """
    request.validate()

    def _enter(stage: AnalysisStage) -> None:
        if (stage is not AnalysisStage.COMPLETE
                and cancel_event is not None and cancel_event.is_set()):
            raise AnalysisCancelled(f"analysis cancelled before {stage.value}")
        logger.debug("Analysis stage: %s", stage.value)
        if on_stage is not None:
            on_stage(stage)

    _enter(AnalysisStage.IDLE)

    objects = list(request.satellites) + list(request.debris)
    debris_ids = {d.object_id for d in request.debris}
    if len({es.object_id for es in objects}) < len(objects):
        logger.warning("Duplicate element sets in request; their results share one identity")
    logger.info("Analysis run: %d satellites, %d debris, %d NEOs",
                len(request.satellites), len(request.debris), len(request.neos))

    _enter(AnalysisStage.SAMPLING)
    trajectories = sample_many(objects, request.start, request.window, request.step,
                               executor=executor, cancel_event=cancel_event)
    failed_samples = sum(t.failed_count for t in trajectories)
    failed_objects = sum(1 for t in trajectories if not len(t))
    if failed_objects:
        logger.warning("%d objects could not be propagated at any sample time", failed_objects)

    _enter(AnalysisStage.DETECTING)
    if request.use_spatial_index:
        conjunctions = screen_catalog(trajectories, request.threshold_km)
    else:
        conjunctions = screen(trajectories, request.threshold_km,
                              executor=executor, cancel_event=cancel_event)

    _enter(AnalysisStage.SCORING)
    start = trajectories[0].start if trajectories else request.start
    object_regimes = [classify(es, start) for es in objects]
    regimes = {es.object_id: regime for es, regime in zip(objects, object_regimes)}

    conjunction_risks = [
        assess_conjunction(c, involves_debris=c.object_a in debris_ids or c.object_b in debris_ids)
        for c in conjunctions
    ]
    debris_pairs = assess_debris_collisions(list(request.debris), list(request.satellites), start)
    reentry = [assess_debris_reentry(d, start) for d in request.debris]
    neo_risks = [assess_neo(n) for n in request.neos]

    counts = count_risk_categories(conjunction_risks, debris_pairs, neo_risks, reentry)
    score = aggregate_risk_score(counts)
    alerts = critical_alerts(counts, orbital_density(object_regimes))

    result = AnalysisResult(
        trajectories=tuple(trajectories),
        conjunctions=tuple(conjunctions),
        assessments=tuple(sort_assessments(conjunction_risks + debris_pairs + reentry + neo_risks)),
        regimes=regimes,
        score=score,
        alerts=tuple(alerts),
        failed_samples=failed_samples,
        failed_objects=failed_objects,
    )

    _enter(AnalysisStage.COMPLETE)
    logger.info("Analysis complete: %d conjunctions, %d assessments, score %.1f",
                len(result.conjunctions), len(result.assessments), score.score)
    return result
