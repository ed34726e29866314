"""
orbitrisk: orbital propagation and risk analysis for Python.

Parses TLE catalogs, samples SGP4 trajectories, screens them for
conjunctions, and scores satellite, debris and near-Earth-object risk
with simple, documented heuristics.
"""

from __future__ import annotations

__version__ = "0.1.0-dev"

from orbitrisk.core.tle import ElementSet, ParseResult, parse_catalog, parse_tle
from orbitrisk.core.propagation import (
    GeodeticState,
    PropagationFailed,
    StateVector,
    propagate,
    propagate_batch,
    to_geodetic,
)
from orbitrisk.core.classifier import OrbitRegime, classify, regime_counts
from orbitrisk.core.sampling import Trajectory, sample, sample_many
from orbitrisk.core.screening import Conjunction, detect, screen, screen_catalog
from orbitrisk.core.risk import (
    RiskAssessment,
    RiskKind,
    RiskLevel,
    assess_neo,
    debris_collision_probability,
    debris_reentry_risk,
    earth_impact_probability,
    impact_energy_megatons,
    risk_level,
    satellite_collision_risk,
)
from orbitrisk.core.scoring import AggregateRiskScore, RiskCounts, aggregate_risk_score
from orbitrisk.core.analysis import (
    AnalysisRequest,
    AnalysisResult,
    AnalysisStage,
    run_analysis,
)
from orbitrisk.data.neo import NeoRecord, parse_cad_payload
from orbitrisk.data.celestrak import CelestrakClient
from orbitrisk.errors import (
    AnalysisCancelled,
    ConfigurationError,
    IngestionUnavailable,
    OrbitRiskError,
)

__all__ = [
    "__version__",
    "ElementSet",
    "ParseResult",
    "parse_catalog",
    "parse_tle",
    "GeodeticState",
    "PropagationFailed",
    "StateVector",
    "propagate",
    "propagate_batch",
    "to_geodetic",
    "OrbitRegime",
    "classify",
    "regime_counts",
    "Trajectory",
    "sample",
    "sample_many",
    "Conjunction",
    "detect",
    "screen",
    "screen_catalog",
    "RiskAssessment",
    "RiskKind",
    "RiskLevel",
    "assess_neo",
    "debris_collision_probability",
    "debris_reentry_risk",
    "earth_impact_probability",
    "impact_energy_megatons",
    "risk_level",
    "satellite_collision_risk",
    "AggregateRiskScore",
    "RiskCounts",
    "aggregate_risk_score",
    "AnalysisRequest",
    "AnalysisResult",
    "AnalysisStage",
    "run_analysis",
    "NeoRecord",
    "parse_cad_payload",
    "CelestrakClient",
    "AnalysisCancelled",
    "ConfigurationError",
    "IngestionUnavailable",
    "OrbitRiskError",
]
