# metrics.py
"""Prometheus metrics exposed on ``/metrics``."""

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# 0. Global Registry
REGISTRY = CollectorRegistry()

# 1. Counters
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by route template.",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
)
BABBLE_REQUESTS = Counter(
    "babble_requests_total",
    "Babbler requests by page type.",
    ["page"],
    registry=REGISTRY,
)
BABBLE_BYTES = Counter(
    "babble_bytes_total", "Bytes of generated garbage streamed.", registry=REGISTRY
)
CLIENT_DISCONNECTS = Counter(
    "babble_client_disconnects_total",
    "Streams abandoned by the client before completion.",
    registry=REGISTRY,
)

# 2. Gauges
CORPUS_NODES = Gauge(
    "corpus_nodes",
    "Words in each loaded chain.",
    ["source"],
    registry=REGISTRY,
)

# 3. Histograms
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds by route template.",
    ["method", "endpoint"],
    registry=REGISTRY,
)


def record_request(method, endpoint, status_code):
    REQUEST_COUNT.labels(
        method=method, endpoint=endpoint, status_code=str(status_code)
    ).inc()


def get_metrics():
    return generate_latest(REGISTRY)
