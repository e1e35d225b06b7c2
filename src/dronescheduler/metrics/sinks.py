"""Destinations for finalized query metrics records."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from loguru import logger

from ..core.types import QueryMetricsRecord, QueryOutcome


@runtime_checkable
class MetricsSink(Protocol):
    """Receives one record per finished query."""

    def emit(self, record: QueryMetricsRecord) -> None:
        """Handle a finalized record."""
        ...


class LoggingMetricsSink:
    """Writes query metrics to the application log.

    Successful queries log at ``success_level``; failed and cancelled
    queries log at WARNING.
    """

    def __init__(self, success_level: str = "DEBUG"):
        self.success_level = success_level

    def emit(self, record: QueryMetricsRecord) -> None:
        scope = (
            "cross-partition"
            if record.partition_key is None
            else f"partition={record.partition_key!r}"
        )
        outcome = record.outcome.value if record.outcome else "unknown"
        message = (
            f"Query {outcome}: collection={record.collection}, {scope}, "
            f"type={record.document_type}, items={record.item_count}, "
            f"pages={record.page_count}, charge={record.request_charge:.2f}RU, "
            f"elapsed={record.elapsed_ms:.1f}ms"
        )
        if record.outcome is QueryOutcome.SUCCEEDED:
            logger.log(self.success_level, message)
        else:
            logger.warning(f"{message}, error={record.error}")


class InMemoryMetricsSink:
    """Keeps every record in memory for diagnostics."""

    def __init__(self) -> None:
        self.records: list[QueryMetricsRecord] = []

    def emit(self, record: QueryMetricsRecord) -> None:
        self.records.append(record)

    def by_outcome(self, outcome: QueryOutcome) -> list[QueryMetricsRecord]:
        return [r for r in self.records if r.outcome is outcome]

    @property
    def total_request_charge(self) -> float:
        return sum(r.request_charge for r in self.records)

    def clear(self) -> None:
        self.records.clear()
