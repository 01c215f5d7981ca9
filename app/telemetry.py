"""OpenTelemetry wiring for the performance workflow API.

Tracing is off unless ``OTEL_ENABLED`` is set. Without a configured
provider the trace API hands out no-op spans, so the workflow engine opens
spans unconditionally.
"""

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from app.config import settings

logger = logging.getLogger(__name__)

_TRACER_NAME = "performance_track"


def get_tracer(name: str | None = None) -> trace.Tracer:
    return trace.get_tracer(name or _TRACER_NAME)


@contextmanager
def workflow_span(
    tracer: trace.Tracer, action: str, scope: str = "goal", **attributes
) -> Iterator[trace.Span]:
    """Open a ``<scope>.<action>`` span tagged with the given ids."""
    with tracer.start_as_current_span(f"{scope}.{action.lower()}") as span:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(f"{scope}.{key}", str(value))
        yield span


def _exporter() -> OTLPSpanExporter:
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if endpoint:
        return OTLPSpanExporter(endpoint=f"{endpoint.rstrip('/')}/v1/traces")
    return OTLPSpanExporter()


def _instrument(app) -> None:
    from app.db import get_engine

    steps = (
        ("FastAPI", lambda: FastAPIInstrumentor.instrument_app(app)),
        ("SQLAlchemy", lambda: SQLAlchemyInstrumentor().instrument(engine=get_engine())),
        ("logging", lambda: LoggingInstrumentor().instrument(set_logging_format=True)),
    )
    for name, step in steps:
        try:
            step()
        except Exception:
            logger.warning("OTel: %s instrumentation failed", name, exc_info=True)
        else:
            logger.info("OTel: %s instrumented", name)


def setup_otel(app) -> None:
    if not settings.otel_enabled:
        return

    provider = TracerProvider(resource=Resource.create({"service.name": settings.otel_service_name}))
    provider.add_span_processor(BatchSpanProcessor(_exporter()))
    trace.set_tracer_provider(provider)

    _instrument(app)
    logger.info("OpenTelemetry tracing enabled (service=%s)", settings.otel_service_name)
