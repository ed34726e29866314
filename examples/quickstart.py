"""orbitrisk quickstart: parse TLEs, run an analysis and print the results."""

from datetime import timedelta

from orbitrisk import AnalysisRequest, parse_catalog, run_analysis

tle_text = """
ISS (ZARYA)
1 25544U 98067A   24045.54896019  .00016717  00000-0  30093-3 0  9993
2 25544  51.6412 207.4925 0004948 290.5508 178.9792 15.49583488439596
CSS (TIANHE)
1 48274U 21035A   24045.50261574  .00021540  00000-0  25163-3 0  9993
2 48274  41.4681 279.1498 0005372 149.8847 345.3740 15.62096269157018
HST
1 20580U 90037B   24045.55478014  .00001456  00000-0  73052-4 0  9994
2 20580  28.4701  41.0696 0002622 348.3544 140.2428 15.09435694872912
""".strip()

catalog = parse_catalog(tle_text)
iss = catalog.element_sets[0]

print(f"Parsed {len(catalog)} element sets ({catalog.skipped} skipped)")
print(f"Satellite: {iss.name}")
print(f"NORAD ID:  {iss.norad_id}")
print(f"Epoch:     {iss.epoch}")
print(f"Incl:      {iss.inclination_deg:.4f}°")
print(f"Ecc:       {iss.eccentricity:.7f}")
print(f"Period:    {iss.period_minutes:.1f} min")

request = AnalysisRequest(
    satellites=catalog.element_sets,
    start=iss.epoch,
    window=timedelta(hours=2),
    step=timedelta(seconds=30),
    threshold_km=50.0,
)
result = run_analysis(request)

for name, regime in result.regimes.items():
    print(f"{name:<16} {regime.value}")

for c in result.conjunctions:
    print(f"{c.tca} | {c.object_a} vs {c.object_b} | {c.miss_distance_km:.2f} km")

print(f"Risk score: {result.score.score:.0f}/100 ({result.score.level.name})")
for alert in result.alerts:
    print(f"ALERT: {alert}")
