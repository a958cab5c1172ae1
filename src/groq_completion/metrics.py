from __future__ import annotations

from prometheus_client import Counter, Histogram

completion_requests_total = Counter(
    "completion_requests_total",
    "Total completion calls dispatched",
    labelnames=["mode", "status"],
)

completion_request_latency_seconds = Histogram(
    "completion_request_latency_seconds",
    "Completion call latency, from dispatch to result or error",
    buckets=[0.1, 0.3, 0.5, 1, 2, 5, 10, 30, 60, 120],
    labelnames=["mode"],
)

completion_stream_chunks_total = Counter(
    "completion_stream_chunks_total",
    "Stream chunks decoded and accepted",
)
