from __future__ import annotations

import time

from fastapi import Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.responses import Response

from babyassist.app.settings import settings

REQUEST_COUNT = Counter(
    "babyassist_http_requests_total",
    "Total HTTP requests",
    ["method", "route", "status"],
)
REQUEST_LATENCY = Histogram(
    "babyassist_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "route"],
)
CHAT_TURNS = Counter(
    "babyassist_chat_turns_total",
    "Chat turns answered",
    ["composer", "outcome"],
)
PROACTIVE_MESSAGES = Counter(
    "babyassist_proactive_messages_total",
    "Proactive messages created",
    ["kind"],
)


def _route_label(request: Request) -> str:
    # Route templates keep child ids out of label values.
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


async def metrics_middleware(request: Request, call_next):
    if not settings.metrics_enabled or request.url.path == "/metrics":
        return await call_next(request)
    start = time.monotonic()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
        return response
    finally:
        route = _route_label(request)
        REQUEST_COUNT.labels(request.method, route, str(status)).inc()
        REQUEST_LATENCY.labels(request.method, route).observe(time.monotonic() - start)


def record_chat_turn(composer: str, outcome: str) -> None:
    if settings.metrics_enabled:
        CHAT_TURNS.labels(composer, outcome).inc()


def record_proactive(kinds: list[str]) -> None:
    if not settings.metrics_enabled:
        return
    for kind in kinds:
        PROACTIVE_MESSAGES.labels(kind).inc()


def metrics_response() -> Response:
    if not settings.metrics_enabled:
        return Response(status_code=404)
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
