"""Exception types raised by orbitrisk.

Malformed TLE groups and per-sample propagation failures are not exceptions:
they are reported as counts (``ParseResult.skipped``) and as the
:class:`~orbitrisk.core.propagation.PropagationFailed` variant.
"""

from __future__ import annotations


class OrbitRiskError(Exception):
    """Base class for all orbitrisk errors."""


class ConfigurationError(OrbitRiskError, ValueError):
    """Invalid analysis parameters (non-positive window, step or threshold,
    or trajectories sampled on different cadences)."""


class AnalysisCancelled(OrbitRiskError):
    """An analysis run was aborted between units of work."""


class IngestionUnavailable(OrbitRiskError):
    """A remote catalog could not be fetched."""
