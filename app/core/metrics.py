"""Prometheus metrics: HTTP traffic, lesson lifecycle, parent links, notifications."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from time import perf_counter

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

HTTP_REQUESTS_TOTAL = Counter(
    "rizq_http_requests_total",
    "HTTP requests handled by the API.",
    ["method", "path", "status_code"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "rizq_http_request_duration_seconds",
    "HTTP request latency in seconds.",
    ["method", "path"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

LESSON_TRANSITIONS_TOTAL = Counter(
    "rizq_lesson_transitions_total",
    "Lesson lifecycle transitions by event and outcome.",
    ["event", "outcome"],
)

LINK_TOKEN_REDEMPTIONS_TOTAL = Counter(
    "rizq_link_token_redemptions_total",
    "Parent link token redemption attempts by purpose and outcome.",
    ["purpose", "outcome"],
)

NOTIFICATIONS_SKIPPED_TOTAL = Counter(
    "rizq_notifications_skipped_total",
    "Tutor notifications dropped because the insert failed.",
    ["notification_type"],
)


def record_lesson_transition(event: str, outcome: str) -> None:
    LESSON_TRANSITIONS_TOTAL.labels(event=event, outcome=outcome).inc()


def record_link_token_redemption(purpose: str, outcome: str) -> None:
    LINK_TOKEN_REDEMPTIONS_TOTAL.labels(purpose=purpose, outcome=outcome).inc()


def record_notification_skipped(notification_type: str) -> None:
    NOTIFICATIONS_SKIPPED_TOTAL.labels(notification_type=notification_type).inc()


def _route_template(request: Request) -> str:
    # Route templates keep lesson ids and tokens out of label values.
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    return str(template) if template else request.url.path


async def instrument_http_request(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Count every request and observe its latency."""
    started_at = perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        path = _route_template(request)
        method = request.method.upper()
        HTTP_REQUESTS_TOTAL.labels(method=method, path=path, status_code=str(status_code)).inc()
        HTTP_REQUEST_DURATION_SECONDS.labels(method=method, path=path).observe(perf_counter() - started_at)


def build_metrics_response() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
