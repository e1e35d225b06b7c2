"""OpenTelemetry instrumentation for document store queries.

This module provides optional, configuration-driven tracing of repository
query executions. Each query gets one span carrying its collection,
partition scope, request charge and outcome.

Usage:
    # In config or environment, enable tracing:
    config.tracing.enabled = True
    config.tracing.endpoint = "http://localhost:4318/v1/traces"

    # Initialize tracer early in application startup:
    tracer = configure_tracing(config.tracing)

    # Metrics trackers pick up the global tracer automatically.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from loguru import logger

from .. import __version__

if TYPE_CHECKING:
    from opentelemetry.trace import Span, Tracer

    from .types import QueryMetricsRecord


@dataclass
class TracingConfig:
    """Query tracing settings.

    Attributes:
        enabled: Export a span per repository query (default: False).
        endpoint: OTLP/HTTP traces endpoint.
        service_name: ``service.name`` resource attribute.
        sample_rate: Fraction of queries traced, 0.0-1.0.
    """

    enabled: bool = False
    endpoint: str = "http://localhost:4318/v1/traces"
    service_name: str = "dronescheduler"
    sample_rate: float = 1.0


_tracer: "Tracer | None" = None
_provider: Any = None


def get_tracer() -> "Tracer | None":
    """Tracer installed by ``configure_tracing``, or None when tracing is off."""
    return _tracer


def configure_tracing(config: TracingConfig) -> "Tracer | None":
    """Install an OTLP-exporting tracer provider for query spans.

    Spans are batched and exported in the background. Tracing is optional:
    when it is disabled, when the OpenTelemetry packages are missing, or
    when setup fails, queries run untraced and None is returned.
    """
    global _tracer, _provider

    _tracer = None
    if not config.enabled:
        logger.debug("Query tracing is disabled")
        return None

    try:
        from opentelemetry import trace
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
            OTLPSpanExporter,
        )
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
        from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
    except ImportError as e:
        logger.warning(
            f"Query tracing requested but OpenTelemetry is not installed ({e}); "
            "install the 'tracing' extra"
        )
        return None

    try:
        provider = TracerProvider(
            resource=Resource.create(
                {"service.name": config.service_name, "service.version": __version__}
            ),
            sampler=TraceIdRatioBased(min(max(config.sample_rate, 0.0), 1.0)),
        )
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=config.endpoint)))
        trace.set_tracer_provider(provider)
    except Exception as e:
        logger.warning(f"Failed to configure query tracing: {e}")
        return None

    _provider = provider
    _tracer = provider.get_tracer("dronescheduler.store", __version__)
    logger.info(f"Query tracing enabled: endpoint={config.endpoint}, sample_rate={config.sample_rate}")
    return _tracer


def shutdown_tracing() -> None:
    """Flush pending query spans and stop tracing."""
    global _tracer, _provider

    provider, _provider, _tracer = _provider, None, None
    if provider is None:
        return
    try:
        provider.shutdown()
    except Exception as e:
        logger.warning(f"Error shutting down query tracing: {e}")
    else:
        logger.debug("Query tracing shut down")


# =============================================================================
# Query Spans
# =============================================================================


def start_query_span(
    collection: str,
    partition_key: str | None,
    *,
    document_type: str | None = None,
    tracer: "Tracer | None" = None,
) -> "Span | None":
    """Open a span for one query execution.

    The span is not made current; it is ended by ``finish_query_span``.

    Returns:
        The started span, or None when tracing is disabled.
    """
    active_tracer = tracer or _tracer
    if active_tracer is None:
        return None

    span = active_tracer.start_span("cosmosdb.query")
    span.set_attribute("db.system", "cosmosdb")
    span.set_attribute("db.cosmosdb.collection", collection)
    span.set_attribute("db.cosmosdb.cross_partition", partition_key is None)
    if partition_key is not None:
        span.set_attribute("db.cosmosdb.partition_key", partition_key)
    if document_type:
        span.set_attribute("db.cosmosdb.document_type", document_type)
    return span


def finish_query_span(
    span: "Span | None",
    record: "QueryMetricsRecord",
    exc: BaseException | None = None,
) -> None:
    """Copy the finalized metrics onto the span and end it."""
    if span is None:
        return

    from opentelemetry.trace import Status, StatusCode

    from .types import QueryOutcome

    try:
        span.set_attribute("db.cosmosdb.request_charge", record.request_charge)
        span.set_attribute("db.cosmosdb.page_count", record.page_count)
        span.set_attribute("db.cosmosdb.item_count", record.item_count)
        span.set_attribute("query.latency_ms", record.elapsed_ms)
        if record.outcome is not None:
            span.set_attribute("query.outcome", record.outcome.value)

        if record.outcome is QueryOutcome.SUCCEEDED:
            span.set_status(Status(StatusCode.OK))
        else:
            if isinstance(exc, Exception):
                span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, record.error or "query did not complete"))
    finally:
        span.end()
