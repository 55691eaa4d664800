"""Prometheus metric definitions for the gateway."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


payment_requests_total = Counter("payment_requests_total", "Total payment requests", ["service", "flow"])
payment_success_total = Counter("payment_success_total", "Total successful payments", ["service", "flow"])
payment_failure_total = Counter("payment_failure_total", "Total failed payments", ["service", "flow"])
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
square_calls_total = Counter(
    "square_calls_total",
    "Square API call attempts by outcome",
    ["service", "operation", "outcome"],
)
square_call_latency_seconds = Histogram(
    "square_call_latency_seconds",
    "Square API call latency seconds per attempt",
    ["service", "operation"],
)
retries_total = Counter("retries_total", "Retry count", ["service", "dependency"])


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
