"""Per-query metrics tracking for repository reads.

A ``QueryMetricsTracker`` wraps exactly one query execution. It is used as
a context manager: entering starts the clock (and a tracing span when
tracing is configured), each fetched page adds its request charge, and
leaving the block records the terminal outcome once.

Example:
    tracker = metrics.get_query_metrics_tracker(collection, "o00042")
    with tracker:
        while query.has_more_results:
            page = await query.execute_next()
            tracker.add_page(page)
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable, Protocol

from loguru import logger

from ..core.exceptions import MetricsTrackerError
from ..core.instrumentation import finish_query_span, start_query_span
from ..core.types import FeedResponse, QueryMetricsRecord, QueryOutcome
from .sinks import LoggingMetricsSink, MetricsSink

if TYPE_CHECKING:
    from types import TracebackType

    from opentelemetry.trace import Span, Tracer


class QueryMetricsTracker:
    """Records cost and latency of one query execution.

    One tracker per query. Entering a second time or recording a second
    outcome raises ``MetricsTrackerError``. Sink and tracing failures are
    logged and never propagate into the query path.
    """

    def __init__(
        self,
        collection: str,
        partition_key: str | None,
        *,
        document_type: str | None = None,
        sinks: Iterable[MetricsSink] = (),
        tracer: "Tracer | None" = None,
    ):
        self.record = QueryMetricsRecord(
            collection=collection,
            partition_key=partition_key or None,
            document_type=document_type,
        )
        self._sinks = tuple(sinks)
        self._tracer = tracer
        self._span: "Span | None" = None
        self._started: float | None = None
        self._entered = False
        self._recorded = False

    @property
    def recorded(self) -> bool:
        """Whether the terminal outcome has been recorded."""
        return self._recorded

    def __enter__(self) -> "QueryMetricsTracker":
        if self._entered:
            raise MetricsTrackerError("A QueryMetricsTracker tracks a single query")
        self._entered = True
        self.record.started_at = datetime.now(timezone.utc)
        self._started = time.perf_counter()
        try:
            self._span = start_query_span(
                self.record.collection,
                self.record.partition_key,
                document_type=self.record.document_type,
                tracer=self._tracer,
            )
        except Exception as e:
            logger.warning(f"Failed to start query span: {e}")
            self._span = None
        return self

    def add_page(self, response: FeedResponse) -> None:
        """Accumulate the cost of one fetched page."""
        if self._recorded:
            raise MetricsTrackerError("Cannot add pages after the outcome was recorded")
        self.record.page_count += 1
        self.record.item_count += len(response.items)
        self.record.request_charge += response.request_charge
        if response.activity_id:
            self.record.activity_ids.append(response.activity_id)

    def record_outcome(
        self, outcome: QueryOutcome, error: BaseException | None = None
    ) -> QueryMetricsRecord:
        """Finalize the record and hand it to every sink.

        Raises:
            MetricsTrackerError: If the tracker was never entered or the
                outcome was already recorded.
        """
        if not self._entered:
            raise MetricsTrackerError("Enter the tracker before recording an outcome")
        if self._recorded:
            raise MetricsTrackerError("Query outcome already recorded")
        self._recorded = True

        record = self.record
        record.outcome = outcome
        if self._started is not None:
            record.elapsed_ms = (time.perf_counter() - self._started) * 1000
        if error is not None:
            record.error = f"{type(error).__name__}: {error}" if str(error) else type(error).__name__

        try:
            finish_query_span(self._span, record, error)
        except Exception as e:
            logger.warning(f"Failed to finish query span: {e}")

        for sink in self._sinks:
            try:
                sink.emit(record)
            except Exception as e:
                logger.warning(f"Metrics sink {type(sink).__name__} failed: {e}")
        return record

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: "TracebackType | None",
    ) -> bool:
        if exc_type is None:
            outcome = QueryOutcome.SUCCEEDED
        elif issubclass(exc_type, asyncio.CancelledError):
            outcome = QueryOutcome.CANCELLED
        else:
            outcome = QueryOutcome.FAILED

        if not self._recorded:
            self.record_outcome(outcome, exc)
        return False


class QueryMetricsTrackerFactory(Protocol):
    """Hands out one tracker per query execution."""

    def get_query_metrics_tracker(
        self,
        collection: str,
        partition_key: str | None,
        document_type: str | None = None,
    ) -> QueryMetricsTracker:
        ...


class CosmosDBRepositoryMetricsTracker:
    """Creates query trackers that report to a shared set of sinks.

    Holds no per-query state, so one instance is shared by every
    repository and every concurrent call.
    """

    def __init__(
        self,
        sinks: Iterable[MetricsSink] | None = None,
        *,
        tracer: "Tracer | None" = None,
    ):
        """Initialize with sinks.

        Args:
            sinks: Record destinations. Defaults to a single LoggingMetricsSink.
            tracer: Tracer for query spans (uses the global tracer if not provided).
        """
        self._sinks = tuple(sinks) if sinks is not None else (LoggingMetricsSink(),)
        self._tracer = tracer

    @property
    def sinks(self) -> tuple[MetricsSink, ...]:
        return self._sinks

    def get_query_metrics_tracker(
        self,
        collection: str,
        partition_key: str | None,
        document_type: str | None = None,
    ) -> QueryMetricsTracker:
        return QueryMetricsTracker(
            collection,
            partition_key,
            document_type=document_type,
            sinks=self._sinks,
            tracer=self._tracer,
        )
