"""Prometheus metrics for backend calls, pagination and merchant search"""

from prometheus_client import Counter, Histogram

# Backend API metrics
backend_failure_counter = Counter(
    "issuing_backend_failures_total",
    "Failed card backend calls",
    ["operation"],
)

backend_latency_histogram = Histogram(
    "issuing_backend_latency_seconds",
    "Card backend response time",
    ["operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

# Pagination metrics
stale_response_counter = Counter(
    "issuing_stale_responses_total",
    "Responses discarded because their query was superseded",
    ["pager"],
)

# Search metrics
search_request_counter = Counter(
    "issuing_search_requests_total",
    "Debounced search requests issued",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_stale_discard(pager: str) -> None:
    stale_response_counter.labels(pager=pager).inc()


def record_backend_failure(operation: str) -> None:
    backend_failure_counter.labels(operation=operation).inc()
