"""OpenTelemetry wiring: tracer provider, FastAPI spans, and spans per Square call."""

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from storepay.common.config import settings


tracer = trace.get_tracer("storepay")


def setup_tracing(service_name: str) -> None:
    """Spans are recorded always but only exported when an OTLP endpoint is set."""

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    if settings.otel_exporter_otlp_endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otel_exporter_otlp_endpoint))
        )
    trace.set_tracer_provider(provider)


@contextmanager
def square_span(operation: str) -> Iterator[trace.Span]:
    """Child span for one Square call attempt."""

    with tracer.start_as_current_span(f"square.{operation}") as span:
        span.set_attribute("square.operation", operation)
        span.set_attribute("square.environment", settings.square_environment or "auto")
        yield span


def instrument_app(app: FastAPI) -> None:
    FastAPIInstrumentor.instrument_app(app, excluded_urls="health,metrics")
