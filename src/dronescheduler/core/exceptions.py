"""Custom exceptions for the drone scheduler document store."""


class DroneSchedulerError(Exception):
    """Base exception for all drone scheduler errors."""

    pass


class ConfigurationError(DroneSchedulerError):
    """Repository configuration is missing or malformed."""

    pass


class DocumentError(DroneSchedulerError):
    """Document model contract violated."""

    pass


class QueryExecutionError(DroneSchedulerError):
    """The store client failed to execute or enumerate a query."""

    def __init__(
        self,
        message: str,
        collection: str | None = None,
        partition_key: str | None = None,
    ):
        """Initialize exception with the query dimensions.

        Args:
            message: Description of the failure.
            collection: Collection URI the query targeted.
            partition_key: Partition key the query was scoped to, if any.
        """
        self.collection = collection
        self.partition_key = partition_key
        super().__init__(message)


class MetricsTrackerError(DroneSchedulerError):
    """A query metrics tracker was used more than once."""

    pass


class PartitionMismatchWarning(UserWarning):
    """A returned document does not belong to the requested partition."""

    pass
