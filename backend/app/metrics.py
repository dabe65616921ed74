from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "daybook_requests_total",
    "Total HTTP requests processed by Daybook",
    ("method", "path", "status"),
)

REQUEST_LATENCY = Histogram(
    "daybook_request_latency_seconds",
    "HTTP request latency in seconds",
    ("method", "path"),
)

REQUEST_ERRORS = Counter(
    "daybook_request_errors_total",
    "HTTP requests resulting in server errors",
    ("method", "path", "status"),
)

USER_API_COUNTER = Counter(
    "daybook_user_api_hits_total",
    "Authenticated API hits per endpoint",
    ("endpoint",),
)

AUTH_EVENTS = Counter(
    "daybook_auth_events_total",
    "Registration, login and logout attempts",
    ("event", "result"),
)

INSIGHTS_LATENCY = Histogram(
    "daybook_insights_compute_seconds",
    "Time spent loading and aggregating journal analytics",
)

__all__ = [
    "AUTH_EVENTS",
    "INSIGHTS_LATENCY",
    "REQUEST_COUNT",
    "REQUEST_ERRORS",
    "REQUEST_LATENCY",
    "USER_API_COUNTER",
]
