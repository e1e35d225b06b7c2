"""Service container for dependency wiring and lifecycle management."""

from __future__ import annotations

from typing import TypeVar

from loguru import logger

from ..core.config import Config
from ..core.instrumentation import configure_tracing, shutdown_tracing
from ..core.types import BaseDocument, InternalDroneUtilization
from ..metrics.sinks import LoggingMetricsSink, MetricsSink
from ..metrics.tracker import CosmosDBRepositoryMetricsTracker
from ..store.cosmos import CosmosDocumentClient
from ..store.ports import DocumentClient
from ..store.repository import CosmosRepository
from .utilization import DroneUtilizationService

D = TypeVar("D", bound=BaseDocument)


class ServiceContainer:
    """Wires the store client, metrics tracker and repositories.

    The container builds collaborators once and shares them: one store
    client, one metrics tracker, one repository per document type. When no
    client is injected, a Cosmos DB client is created from the config and
    closed with the container.

    Usage as context manager (recommended):

        async with ServiceContainer(config) as services:
            summary = await services.utilization.get_owner_utilization(
                "o00042", 2019, 6
            )

    Usage with an injected client (tests, local runs):

        services = ServiceContainer(config, client=InMemoryDocumentClient())
        try:
            items = await services.utilization_repo.get_items()
        finally:
            await services.close()

    Attributes:
        config: Application configuration.
        metrics_tracker: Shared metrics tracker.
    """

    def __init__(
        self,
        config: Config,
        client: DocumentClient | None = None,
        *,
        sinks: list[MetricsSink] | None = None,
    ):
        """Initialize container with configuration.

        Args:
            config: Application configuration.
            client: Store client to use. Created from ``config.cosmos`` when omitted.
            sinks: Metrics sinks. Defaults to a LoggingMetricsSink.
        """
        self.config = config
        self._options = config.repository_options()
        self._client = client
        self._owns_client = client is None
        self._tracing = False

        self.metrics_tracker = CosmosDBRepositoryMetricsTracker(
            sinks if sinks is not None else [LoggingMetricsSink()]
        )

        self._repositories: dict[type[BaseDocument], CosmosRepository] = {}
        self._utilization: DroneUtilizationService | None = None

    def connect(self) -> None:
        """Create the store client and start tracing if configured."""
        if self._client is None:
            self._client = CosmosDocumentClient.from_config(self.config.cosmos)
            logger.debug(f"Connected to Cosmos DB at {self.config.cosmos.endpoint}")

        if self.config.tracing.enabled and not self._tracing:
            self._tracing = configure_tracing(self.config.tracing) is not None

    async def close(self) -> None:
        """Close the owned client and flush tracing."""
        if self._client is not None and self._owns_client:
            await self._client.close()
            self._client = None
            self._repositories.clear()
            self._utilization = None
            logger.debug("Store client closed")

        if self._tracing:
            shutdown_tracing()
            self._tracing = False

    async def __aenter__(self) -> "ServiceContainer":
        """Async context manager entry."""
        self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    @property
    def client(self) -> DocumentClient:
        """Get the store client, connecting on first use."""
        if self._client is None:
            self.connect()
        return self._client

    def repository(self, document_cls: type[D]) -> CosmosRepository[D]:
        """Get or create the repository for a document type."""
        repo = self._repositories.get(document_cls)
        if repo is None:
            repo = CosmosRepository(
                self.client, self._options, self.metrics_tracker, document_cls
            )
            self._repositories[document_cls] = repo
        return repo

    @property
    def utilization_repo(self) -> CosmosRepository[InternalDroneUtilization]:
        """Get or create the drone utilization repository."""
        return self.repository(InternalDroneUtilization)

    @property
    def utilization(self) -> DroneUtilizationService:
        """Get or create DroneUtilizationService."""
        if self._utilization is None:
            self._utilization = DroneUtilizationService(self.utilization_repo)
        return self._utilization
