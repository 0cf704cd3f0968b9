"""Application metrics using the Prometheus client library.

All metrics are defined here so there is a single inventory of what the
services measure.  Other modules import a metric and increment/observe
it at the point of action.  Each process exposes its own counters on
/metrics; Prometheus aggregates across replicas.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # SQLite point reads/writes land in the low buckets; anything past
    # 1s means the database file is contended or on slow storage.
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Credential metrics
# ---------------------------------------------------------------------------

CREDENTIALS_ISSUED = Counter(
    "credentials_issued_total",
    "Credentials successfully issued",
    ["worker"],
)

ISSUANCE_CONFLICTS = Counter(
    "credential_issuance_conflicts_total",
    "Issuance attempts rejected because the id already exists",
    ["stage"],  # "precheck" or "insert"; insert means a concurrent duplicate
)

VERIFICATIONS = Counter(
    "credential_verifications_total",
    "Verification lookups by result",
    ["result"],  # "valid" or "invalid"
)

STORE_ERRORS = Counter(
    "record_store_errors_total",
    "Record store operations that failed with a storage error",
    ["operation"],  # "init", "ping", "exists", "get", "save"
)

RATE_LIMIT_HITS = Counter(
    "rate_limit_hits_total",
    "Requests rejected by rate limiting (429s)",
    ["route"],
)
