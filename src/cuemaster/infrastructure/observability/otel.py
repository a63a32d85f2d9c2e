from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.propagate import set_global_textmap
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

logger = logging.getLogger(__name__)

# polled by terminals and probes; spans for them are noise
EXCLUDED_URLS = "health/live,health/ready,metrics"


def build_tracer_provider(
    service_name: str | None = None,
    endpoint: str | None = None,
) -> TracerProvider:
    service_name = service_name or os.getenv("OTEL_SERVICE_NAME", "cuemaster-backend")
    endpoint = endpoint if endpoint is not None else os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")

    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))
    if endpoint:
        try:
            exporter = OTLPSpanExporter(
                endpoint=endpoint,
                insecure=endpoint.startswith("http://"),
            )
            provider.add_span_processor(BatchSpanProcessor(exporter))
        except Exception:
            logger.exception("otel_exporter_setup_failed")
    return provider


def configure_otel(app: FastAPI) -> TracerProvider:
    """Instrument ``app`` once; every app in the process shares one SDK provider.

    Checkout and background-write spans come from tracers obtained through
    the global provider, so it is installed the first time any app is built.
    """
    existing = getattr(app.state, "tracer_provider", None)
    if existing is not None:
        return existing

    current = trace.get_tracer_provider()
    if isinstance(current, TracerProvider):
        provider = current
    else:
        provider = build_tracer_provider()
        trace.set_tracer_provider(provider)
        set_global_textmap(TraceContextTextMapPropagator())

    FastAPIInstrumentor.instrument_app(
        app,
        tracer_provider=provider,
        excluded_urls=EXCLUDED_URLS,
    )
    app.state.tracer_provider = provider
    return provider


def flush_otel(app: FastAPI, timeout_millis: int = 5000) -> None:
    provider = getattr(app.state, "tracer_provider", None)
    if provider is None:
        return
    if not provider.force_flush(timeout_millis):
        logger.warning("otel_flush_timed_out", extra={"operation": "shutdown"})
