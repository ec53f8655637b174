"""Prometheus metrics for HTTP requests and storage operations."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# 100 B .. 1 GB in powers of ten
RESPONSE_SIZE_BUCKETS = tuple(100.0 * 10**exponent for exponent in range(8))

HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total number of HTTP requests by method and path",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

HTTP_RESPONSE_SIZE_BYTES = Histogram(
    "http_response_size_bytes",
    "HTTP response size in bytes",
    ["method", "path"],
    buckets=RESPONSE_SIZE_BUCKETS,
)

DB_OPERATIONS_TOTAL = Counter(
    "db_operations_total",
    "Total number of database operations",
    ["operation", "status"],
)

DB_OPERATION_DURATION_SECONDS = Histogram(
    "db_operation_duration_seconds",
    "Database operation duration in seconds",
    ["operation"],
)
