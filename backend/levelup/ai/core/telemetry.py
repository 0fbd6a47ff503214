"""
LevelUp Learning - Telemetry Module
OpenTelemetry tracing for content generation calls
"""
import logging
from contextlib import contextmanager
from typing import Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Status, StatusCode

from levelup.core.config import settings

logger = logging.getLogger(__name__)

TRACER_NAME = "levelup.ai"

_initialized = False


def init_telemetry() -> None:
    """
    Install the SDK tracer provider.
    Call this once at application startup; later calls are no-ops.
    """
    global _initialized
    if _initialized:
        return

    resource = Resource.create({
        "service.name": settings.OTEL_SERVICE_NAME,
        "service.version": settings.APP_VERSION,
        "deployment.environment": settings.ENVIRONMENT,
    })
    provider = TracerProvider(resource=resource)

    if settings.OTEL_EXPORTER_OTLP_ENDPOINT:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        provider.add_span_processor(BatchSpanProcessor(
            OTLPSpanExporter(endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT, insecure=True)
        ))
    else:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _initialized = True
    logger.info(
        "Telemetry initialized for %s (endpoint: %s)",
        settings.OTEL_SERVICE_NAME,
        settings.OTEL_EXPORTER_OTLP_ENDPOINT or "console",
    )


def get_tracer() -> trace.Tracer:
    """Tracer from the global provider (no-op until init_telemetry runs)."""
    return trace.get_tracer(TRACER_NAME, settings.APP_VERSION)


@contextmanager
def agent_span(
    name: str,
    agent_name: str,
    attributes: Optional[dict] = None
):
    """
    Context manager for spans around generator work.

    Usage:
        with agent_span("build_pool", "QuestionPoolBuilder") as span:
            span.set_attribute("levels", 5)
            result = await do_work()
    """
    with get_tracer().start_as_current_span(name) as span:
        span.set_attribute("agent.name", agent_name)
        span.set_attribute("agent.operation", name)

        if attributes:
            for key, value in attributes.items():
                span.set_attribute(key, str(value) if value is not None else "")

        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise
