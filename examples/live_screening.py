"""orbitrisk live screening: fetch CelesTrak debris and JPL close approaches.

Requires network access.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

from orbitrisk import AnalysisRequest, CelestrakClient, IngestionUnavailable, run_analysis

logging.basicConfig(level=logging.INFO)

client = CelestrakClient()

try:
    stations = client.load_group("stations")
    neos = client.load_close_approaches()
except IngestionUnavailable as exc:
    raise SystemExit(f"Catalog unavailable: {exc}")

debris = client.load_debris()

request = AnalysisRequest(
    satellites=stations.element_sets,
    debris=debris.element_sets,
    neos=tuple(neos),
    start=datetime.now(timezone.utc),
    window=timedelta(minutes=60),
    step=timedelta(seconds=30),
    use_spatial_index=True,
)

with ThreadPoolExecutor() as pool:
    result = run_analysis(request, executor=pool, on_stage=lambda s: print(f"-> {s.value}"))

for a in result.assessments[:10]:
    other = f" vs {a.counterpart_id}" if a.counterpart_id else ""
    print(f"{a.level.name:<8} {a.kind.value:<16} {a.object_id}{other} p={a.peak_probability:.3f}")

print(f"Risk score: {result.score.score:.0f}/100 ({result.score.level.name})")
for alert in result.alerts:
    print(f"ALERT: {alert}")
