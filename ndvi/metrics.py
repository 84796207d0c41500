from __future__ import annotations

from prometheus_client import Counter, Histogram

ndvi_upstream_requests_total = Counter(
    "ndvi_upstream_requests_total",
    "Count of upstream NDVI engine requests",
    labelnames=["engine", "step", "outcome"],
)

ndvi_upstream_latency_seconds = Histogram(
    "ndvi_upstream_latency_seconds",
    "Latency of upstream NDVI engine requests",
    labelnames=["engine", "step"],
    buckets=(0.1, 0.3, 0.5, 1, 2, 5, 10, 20, 30, 60, 120),
)

ndvi_token_cache_hits_total = Counter(
    "ndvi_token_cache_hits_total",
    "Requests served with a cached upstream credential",
    labelnames=["engine"],
)

ndvi_token_refresh_total = Counter(
    "ndvi_token_refresh_total",
    "Upstream login attempts by outcome",
    labelnames=["engine", "outcome"],
)

ndvi_task_poll_attempts = Histogram(
    "ndvi_task_poll_attempts",
    "Status polls needed per upstream extraction task",
    labelnames=["engine", "status"],
    buckets=(1, 2, 5, 10, 20, 30, 45, 60),
)

ndvi_series_responses_total = Counter(
    "ndvi_series_responses_total",
    "Point series responses by mode",
    labelnames=["mode"],
)

ndvi_gate_rejections_total = Counter(
    "ndvi_gate_rejections_total",
    "Point series requests rejected by the concurrency gate",
)
