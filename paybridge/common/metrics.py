"""Prometheus metric definitions for the checkout bridge."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)
checkout_sessions_total = Counter(
    "checkout_sessions_total",
    "Checkout session creation attempts by outcome",
    ["service", "outcome"],
)
gateway_request_duration_seconds = Histogram(
    "gateway_request_duration_seconds",
    "Latency of outbound payment gateway calls",
    ["service", "operation"],
)
gateway_errors_total = Counter(
    "gateway_errors_total",
    "Failed payment gateway calls",
    ["service", "operation"],
)
webhook_events_total = Counter(
    "webhook_events_total",
    "Inbound gateway notifications by event type and payment status",
    ["service", "type", "status"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
