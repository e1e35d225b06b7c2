"""Query metrics tracking for repository reads."""

from .sinks import InMemoryMetricsSink, LoggingMetricsSink, MetricsSink
from .tracker import (
    CosmosDBRepositoryMetricsTracker,
    QueryMetricsTracker,
    QueryMetricsTrackerFactory,
)

__all__ = [
    "CosmosDBRepositoryMetricsTracker",
    "QueryMetricsTracker",
    "QueryMetricsTrackerFactory",
    "MetricsSink",
    "LoggingMetricsSink",
    "InMemoryMetricsSink",
]
