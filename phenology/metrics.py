from __future__ import annotations

from prometheus_client import Counter, Histogram

phenology_classifications_total = Counter(
    "phenology_classifications_total",
    "Phenology classifications by current and forecast stage",
    labelnames=["now", "next"],
)

phenology_confidence = Histogram(
    "phenology_confidence",
    "Confidence of phenology classifications",
    buckets=(0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0),
)
