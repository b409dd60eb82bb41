"""
Observability setup:
  - OpenTelemetry distributed tracing → Jaeger (via OTLP gRPC)
  - Prometheus metrics: stream latency, uploads, id collisions, cascade failures

Both are initialised once at startup and injected into FastAPI via middleware.
"""
import logging

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from prometheus_client import Counter, Histogram

from app.config import settings
from app.database import engine

logger = logging.getLogger(__name__)

# ─────────────────────────── Prometheus Metrics ───────────────────────────
STREAM_LATENCY = Histogram(
    "stream_latency_seconds",
    "End-to-end latency of GET /stream",
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0],
)

STREAM_PHOTOS_RETURNED = Histogram(
    "stream_photos_returned",
    "Number of photo ids returned per stream request",
    buckets=[0, 1, 5, 10, 25, 50, 100, 250, 500],
)

PHOTO_UPLOADS_TOTAL = Counter(
    "photo_uploads_total",
    "Total number of photos uploaded",
)

ID_COLLISIONS_TOTAL = Counter(
    "id_collisions_total",
    "Random id candidates rejected because the id was already taken",
    ["table"],
)

CASCADE_FAILURES_TOTAL = Counter(
    "cascade_failures_total",
    "Photo deletions rolled back after a storage error",
)


# ─────────────────────────── OpenTelemetry Setup ──────────────────────────
def setup_tracing() -> None:
    """Configure the global OTel TracerProvider with OTLP/Jaeger export."""
    if not settings.otel_enabled:
        logger.info("OTel tracing disabled")
        return

    resource = Resource.create(
        {
            "service.name": settings.service_name,
            "deployment.environment": settings.environment,
        }
    )

    provider = TracerProvider(resource=resource)

    try:
        otlp_exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
        logger.info(
            "OTel tracing configured → %s", settings.otel_exporter_otlp_endpoint
        )
    except Exception as exc:
        logger.warning("Could not connect to OTLP exporter: %s — traces disabled", exc)

    trace.set_tracer_provider(provider)

    # Database spans show up under each request span
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


def instrument_app(app) -> None:  # noqa: ANN001
    """Call after app is created to add FastAPI request spans."""
    if settings.otel_enabled:
        FastAPIInstrumentor.instrument_app(app)
