"""Tracing setup for the search API.

Everything here is optional: with ``OTEL_ENABLED`` off, or when the exporter
cannot be built, the app runs with OpenTelemetry's no-op tracer.
"""

from __future__ import annotations

import logging
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.propagate import set_global_textmap
from opentelemetry.propagators.b3 import B3MultiFormat
from opentelemetry.propagators.composite import CompositePropagator
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

logger = logging.getLogger(__name__)

SERVICE_NAMESPACE = "tgvmax"
TRACER_NAME = "tgvmax"

# W3C ``traceparent`` for the journey API, B3 for collectors that expect it.
PROPAGATOR = CompositePropagator([TraceContextTextMapPropagator(), B3MultiFormat()])


def configure_opentelemetry(
    service_name: str,
    service_version: str,
    otlp_endpoint: str,
    otlp_headers: str | None = None,
    enabled: bool = False,
) -> None:
    """Install a tracer provider exporting spans to ``otlp_endpoint``."""
    if not enabled:
        logger.info("OpenTelemetry tracing is disabled")
        return

    try:
        provider = TracerProvider(
            resource=Resource.create(
                {
                    "service.name": service_name,
                    "service.version": service_version,
                    "service.namespace": SERVICE_NAMESPACE,
                }
            )
        )
        exporter = OTLPSpanExporter(endpoint=otlp_endpoint, headers=otlp_headers)
        provider.add_span_processor(BatchSpanProcessor(exporter))
    except Exception as exc:
        logger.warning("Tracing left off, exporter setup failed: %s", exc)
        return

    set_global_textmap(PROPAGATOR)
    trace.set_tracer_provider(provider)
    logger.info("Exporting traces for %s to %s", service_name, otlp_endpoint)


def instrument_fastapi(app: Any, enabled: bool = False) -> None:
    if not enabled:
        return
    try:
        FastAPIInstrumentor.instrument_app(app)
    except Exception as exc:
        logger.warning("FastAPI tracing unavailable: %s", exc)


def instrument_httpx(enabled: bool = False) -> None:
    """Trace outbound httpx calls, which covers the journey API client."""
    if not enabled:
        return
    try:
        HTTPXClientInstrumentor().instrument()
    except Exception as exc:
        logger.warning("httpx tracing unavailable: %s", exc)


def get_tracer() -> trace.Tracer:
    return trace.get_tracer(TRACER_NAME)


def add_traceparent_header(headers: dict[str, str]) -> dict[str, str]:
    """Copy ``headers`` and add the active span's trace context to the copy."""
    carrier = dict(headers)
    PROPAGATOR.inject(carrier)
    return carrier
