"""OpenTelemetry configuration for the HeartSmiles API."""

import sys

from fastapi import FastAPI
from opentelemetry import metrics, trace
from opentelemetry.exporter.prometheus import PrometheusMetricReader
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from prometheus_client import start_http_server
from sqlalchemy.future import Engine

from .config import Settings
from .logging_config import get_logger

logger = get_logger(__name__)

METRICS_PORTS = (8080, 8081)


def _start_metrics_server() -> int:
    """Serve Prometheus metrics on the first free port."""
    for port in METRICS_PORTS[:-1]:
        try:
            start_http_server(port)
            return port
        except OSError:
            logger.warning("Metrics port busy, trying next", port=port)
    start_http_server(METRICS_PORTS[-1])
    return METRICS_PORTS[-1]


def setup_telemetry(app: FastAPI, settings: Settings, engine: Engine | None = None):
    """Configure OpenTelemetry tracing and metrics for the FastAPI application.

    Off unless ENABLE_TELEMETRY is set. Serverless invocations have no
    long-lived process to scrape, so the Prometheus server is skipped there.
    """
    if not settings.enable_telemetry:
        return

    # Skip telemetry setup during tests to avoid I/O issues
    if "pytest" in sys.modules:
        logger.info("Skipping OpenTelemetry setup during tests")
        return

    try:
        if not settings.is_serverless:
            prometheus_reader = PrometheusMetricReader()
            metrics.set_meter_provider(
                MeterProvider(metric_readers=[prometheus_reader])
            )
            port = _start_metrics_server()
            logger.info(f"Prometheus metrics server started on port {port}")

        tracer_provider = TracerProvider()
        tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        trace.set_tracer_provider(tracer_provider)

        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI instrumentation enabled")

        if engine is not None:
            SQLAlchemyInstrumentor().instrument(engine=engine)
            logger.info("SQLAlchemy instrumentation enabled")

        logger.info("OpenTelemetry tracing and metrics setup completed")

    except Exception as e:
        # Telemetry is optional; the API keeps serving without it
        logger.error(f"Failed to setup OpenTelemetry: {e}")
