"""Prometheus instrumentation of requests sent to the storage."""

from prometheus_client import Counter, Histogram


STORAGE_REQUEST_LATENCY = Histogram(
    "victoria_client_request_latency_seconds",
    "Latency of HTTP requests sent to VictoriaMetrics.",
    labelnames=("operation",),
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10),
)
STORAGE_REQUESTS = Counter(
    "victoria_client_requests_total",
    "Number of HTTP requests sent to VictoriaMetrics by outcome.",
    labelnames=("operation", "outcome"),
)


__all__ = ["STORAGE_REQUEST_LATENCY", "STORAGE_REQUESTS"]
