"""Prometheus metric inventory.

All metrics are declared here; the owning modules import and update
them.  HTTP metrics are fed by MetricsMiddleware, the completion
metrics by the services in app/services/.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP
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
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Completion pipeline
# ---------------------------------------------------------------------------

ITEMS_COMPLETED = Counter(
    "completion_items_total",
    "Content items marked complete within an enrollment",
)

ENROLLMENTS_COMPLETED = Counter(
    "enrollments_completed_total",
    "Enrollments that won the COMPLETED transition",
)

CERTIFICATES_ISSUED = Counter(
    "certificates_issued_total",
    "Certificate issuance attempts by result",
    ["result"],  # issued|existing|no_template
)

VAULT_RECORDS = Counter(
    "vault_records_total",
    "Completion vault writes by action",
    ["action"],  # created|updated
)

COMPLETION_DEFERRED = Counter(
    "completion_deferred_total",
    "Completions whose certificate or vault write was deferred to backfill",
)

QUEUE_DEPTH = Gauge(
    "task_queue_depth",
    "Number of tasks waiting in a queue",
    ["queue_name"],
)
