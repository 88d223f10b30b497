"""Prometheus metrics for snippet storage and retrieval.

All collectors live in the default registry and are exposed on ``/metrics``
by the instrumentator configured in ``app.main``.
"""

from prometheus_client import Counter, Histogram

__all__ = [
    "SNIPPET_CREATE_REQUESTS_TOTAL",
    "SNIPPET_FETCH_REQUESTS_TOTAL",
    "SNIPPET_CREATE_DURATION",
    "SNIPPET_FETCH_DURATION",
    "ID_COLLISIONS_TOTAL",
    "VIEW_COUNTER_WRITE_FAILURES_TOTAL",
    "STORE_OPERATIONS_TOTAL",
]


# Request metrics
SNIPPET_CREATE_REQUESTS_TOTAL = Counter(
    "snippet_bin_create_requests_total",
    "Total snippet creation requests",
    ["status"],
)
SNIPPET_FETCH_REQUESTS_TOTAL = Counter(
    "snippet_bin_fetch_requests_total",
    "Total snippet fetch requests",
    ["status"],
)

# Performance metrics
SNIPPET_CREATE_DURATION = Histogram(
    "snippet_bin_create_duration_seconds",
    "Time taken to allocate an id and persist a snippet",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)
SNIPPET_FETCH_DURATION = Histogram(
    "snippet_bin_fetch_duration_seconds",
    "Time taken to read a snippet and bump its view counter",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25],
)

# Allocation and consistency metrics
ID_COLLISIONS_TOTAL = Counter(
    "snippet_bin_id_collisions_total",
    "Candidate snippet ids rejected because they were already live",
    ["stage"],
)
VIEW_COUNTER_WRITE_FAILURES_TOTAL = Counter(
    "snippet_bin_view_counter_write_failures_total",
    "View counters that could not be initialized after the record was written",
)

# Store metrics
STORE_OPERATIONS_TOTAL = Counter(
    "snippet_bin_store_operations_total",
    "Key/value store operations issued",
    ["operation"],
)
