"""Prometheus metric inventory.

All metrics live here; the modules that own the behaviour import and
update them.  Values are per-process and served by GET /metrics.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by MetricsMiddleware)
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
# OAuth flow metrics
# ---------------------------------------------------------------------------

AUTH_CODES_ISSUED = Counter(
    "authorization_codes_issued_total",
    "Authorization codes minted by POST /authorize",
)

TOKEN_EXCHANGES = Counter(
    "token_exchanges_total",
    "Successful code exchanges at POST /token",
    ["outcome"],  # "access_token" or "id_token"
)

OAUTH_ERRORS = Counter(
    "oauth_errors_total",
    "Rejected OAuth requests by error kind",
    ["kind"],  # malformed_request, protocol_violation, not_found, configuration_error
)
