"""Core types, configuration and errors for the drone scheduler store."""

from .config import (
    Config,
    CosmosConfig,
    CosmosDBRepositoryOptions,
    RepositoryConfig,
    build_collection_uri,
    parse_collection_uri,
)
from .exceptions import (
    ConfigurationError,
    DocumentError,
    DroneSchedulerError,
    MetricsTrackerError,
    PartitionMismatchWarning,
    QueryExecutionError,
)
from .instrumentation import TracingConfig
from .types import (
    BaseDocument,
    FeedResponse,
    InternalDroneUtilization,
    PartitionCheck,
    QueryMetricsRecord,
    QueryOptions,
    QueryOutcome,
    json_field,
)

__all__ = [
    "Config",
    "CosmosConfig",
    "RepositoryConfig",
    "TracingConfig",
    "CosmosDBRepositoryOptions",
    "build_collection_uri",
    "parse_collection_uri",
    "DroneSchedulerError",
    "ConfigurationError",
    "DocumentError",
    "QueryExecutionError",
    "MetricsTrackerError",
    "PartitionMismatchWarning",
    "BaseDocument",
    "InternalDroneUtilization",
    "json_field",
    "PartitionCheck",
    "QueryOptions",
    "FeedResponse",
    "QueryOutcome",
    "QueryMetricsRecord",
]
