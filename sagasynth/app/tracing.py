"""Tracing OpenTelemetry (export OTLP gRPC).

Le pipeline ouvre des spans `pipeline.generate`, `pipeline.publish`, `pipeline.mint` et
`pipeline.history`; sans endpoint configuré, le tracer global reste le tracer no-op et ces
spans ne coûtent rien.
"""

from __future__ import annotations

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from sagasynth.core.settings import Settings

log = structlog.get_logger(__name__)


def setup_tracing(settings: Settings) -> bool:
    """Installe le provider OTLP si `OTLP_ENDPOINT` est défini.

    Retourne True si un exporteur a été installé.
    """
    if not settings.OTLP_ENDPOINT:
        return False
    resource = Resource.create(
        {"service.name": settings.APP_NAME, "deployment.environment": settings.APP_ENV}
    )
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.OTLP_ENDPOINT, insecure=True))
    )
    trace.set_tracer_provider(provider)
    log.info("tracing_enabled", endpoint=settings.OTLP_ENDPOINT)
    return True
