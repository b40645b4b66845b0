"""OpenTelemetry tracing setup for the API and the index consumer.

Exports over OTLP (Jaeger is reached through its OTLP port) or to the
console. Instruments FastAPI, Redis (history and event streams), HTTPX
(source API calls) and logging.
"""

import logging
import threading

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

from tasksearch.core.config import Settings

logger = logging.getLogger(__name__)

JAEGER_OTLP_PORT = 4317


def build_exporter(
    exporter_type: str,
    otlp_endpoint: str | None = None,
    jaeger_endpoint: str | None = None,
) -> SpanExporter | None:
    """Span exporter for exporter_type; None for 'none'.

    Unknown types and otlp/jaeger without an endpoint fall back to the
    console exporter.
    """
    if exporter_type == "none":
        return None
    if exporter_type == "otlp" and otlp_endpoint:
        return OTLPSpanExporter(
            endpoint=otlp_endpoint, insecure=otlp_endpoint.startswith("http://")
        )
    if exporter_type == "jaeger" and jaeger_endpoint:
        return OTLPSpanExporter(endpoint=f"{jaeger_endpoint}:{JAEGER_OTLP_PORT}", insecure=True)
    if exporter_type != "console":
        logger.warning("Unusable exporter '%s', using console", exporter_type)
    return ConsoleSpanExporter()


class TelemetryConfig:
    """Owns the tracer provider for one process."""

    def __init__(
        self,
        service_name: str,
        service_version: str,
        environment: str = "development",
    ) -> None:
        self.service_name = service_name
        self.service_version = service_version
        self.environment = environment
        self.tracer_provider: TracerProvider | None = None

    def setup_telemetry(
        self,
        exporter: SpanExporter | None,
        sample_rate: float = 1.0,
    ) -> TracerProvider | None:
        """Install a global tracer provider. Returns None if setup failed."""
        try:
            resource = Resource(
                attributes={
                    SERVICE_NAME: self.service_name,
                    SERVICE_VERSION: self.service_version,
                    "deployment.environment": self.environment,
                }
            )
            provider = TracerProvider(resource=resource, sampler=TraceIdRatioBased(sample_rate))
            if exporter is not None:
                provider.add_span_processor(BatchSpanProcessor(exporter))
            trace.set_tracer_provider(provider)
        except Exception as e:
            logger.exception("Failed to initialize telemetry: %s", e)
            return None
        self.tracer_provider = provider
        logger.info(
            "OpenTelemetry initialized: service=%s, version=%s, exporter=%s",
            self.service_name,
            self.service_version,
            type(exporter).__name__ if exporter else "none",
        )
        return provider

    def instrument(self, app: FastAPI | None = None) -> None:
        """Instrument FastAPI (when given), Redis, HTTPX and logging.

        A failing instrumentor is logged and skipped.
        """
        if self.tracer_provider is None:
            return
        provider = self.tracer_provider
        instrumentors = [
            ("Redis", lambda: RedisInstrumentor().instrument(tracer_provider=provider)),
            ("HTTPX", lambda: HTTPXClientInstrumentor().instrument(tracer_provider=provider)),
            (
                "logging",
                lambda: LoggingInstrumentor().instrument(
                    tracer_provider=provider, set_logging_format=True
                ),
            ),
        ]
        if app is not None:
            instrumentors.insert(
                0,
                (
                    "FastAPI",
                    lambda: FastAPIInstrumentor.instrument_app(
                        app, tracer_provider=provider, excluded_urls="/api/v1/health"
                    ),
                ),
            )
        for name, instrument in instrumentors:
            try:
                instrument()
            except Exception as e:
                logger.exception("Failed to instrument %s: %s", name, e)
            else:
                logger.debug("%s instrumentation enabled", name)

    def shutdown(self) -> None:
        """Flush remaining spans and stop the provider."""
        if self.tracer_provider is None:
            return
        try:
            self.tracer_provider.shutdown()
        except Exception as e:
            logger.exception("Error during telemetry shutdown: %s", e)


_telemetry: TelemetryConfig | None = None
_telemetry_lock = threading.RLock()


def get_telemetry() -> TelemetryConfig | None:
    """Telemetry installed by setup_from_settings, if any."""
    with _telemetry_lock:
        return _telemetry


def setup_from_settings(
    settings: Settings, app: FastAPI | None = None, component: str | None = None
) -> TelemetryConfig:
    """Build, install and register telemetry from settings.

    Shared by the API lifespan and the consumer worker; component suffixes
    the service name (e.g. 'tasksearch-indexer').
    """
    global _telemetry
    service_name = f"{settings.app_name}-{component}" if component else settings.app_name
    telemetry = TelemetryConfig(service_name, settings.app_version, settings.telemetry_environment)
    telemetry.setup_telemetry(
        build_exporter(
            settings.telemetry_exporter,
            settings.telemetry_otlp_endpoint,
            settings.telemetry_jaeger_endpoint,
        ),
        settings.telemetry_sample_rate,
    )
    telemetry.instrument(app)
    with _telemetry_lock:
        _telemetry = telemetry
    return telemetry
