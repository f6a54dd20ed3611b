"""Prometheus metric inventory.

Every metric the service exposes is defined here; the modules that own
the behavior import and increment them.

HTTP metrics are fed by MetricsMiddleware.  The workflow metrics answer
the two questions operators ask about this service:

  - "How often do calendar/storage calls fail?"
      rate(provisioning_operations_total{outcome="failed"}[5m])
    Provisioning failures are swallowed by design, so this counter is the
    only place a shortfall shows up before a creator notices missing
    meetings.

  - "Are payment notifications landing?"
      settlements_total{outcome="settled"} vs {outcome="not_found"}
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics
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
    # Saves and webhooks make several sequential provider round trips,
    # so the upper buckets go further than a plain CRUD API would need.
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Application metrics
# ---------------------------------------------------------------------------

RATE_LIMIT_HITS = Counter(
    "rate_limit_hits_total",
    "Requests rejected by rate limiting (429s)",
    ["key_type"],  # user|ip
)

PROVISIONING_OPERATIONS = Counter(
    "provisioning_operations_total",
    "Calendar/storage provider calls made by the workflows",
    # operation: schedule_meeting|reschedule_meeting|cancel_meeting|
    #            add_invitee|find_or_create_folder|share_folder
    ["operation", "outcome"],  # outcome: ok|failed
)

SETTLEMENTS = Counter(
    "settlements_total",
    "Payment notifications processed by the settlement webhook",
    ["outcome"],  # settled|ignored|not_found|unauthorized|error
)
