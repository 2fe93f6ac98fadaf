import os

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

log = structlog.get_logger(__name__)


def init_tracer(app_name: str = "paypal-gateway"):
    """Initialize OpenTelemetry tracer with OTLP exporter"""
    if os.getenv("DISABLE_TRACING", "").lower() in {"1", "true", "yes"}:
        # Leave the default no-op provider in place
        return

    provider = TracerProvider(resource=Resource.create({"service.name": app_name}))
    try:
        exporter = OTLPSpanExporter()
    except Exception as exc:  # pragma: no cover – only hit when no collector
        log.warning("OTLP exporter unavailable, tracing to console", error=str(exc))
        exporter = ConsoleSpanExporter()

    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)


def get_tracer(name: str):
    return trace.get_tracer(name)
