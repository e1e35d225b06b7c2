"""Generic read repository over a partitioned document collection."""

from __future__ import annotations

import warnings
from typing import Generic, TypeVar

from loguru import logger

from ..core.config import CosmosDBRepositoryOptions, parse_collection_uri
from ..core.exceptions import (
    ConfigurationError,
    DroneSchedulerError,
    PartitionMismatchWarning,
    QueryExecutionError,
)
from ..core.types import BaseDocument, PartitionCheck, QueryOptions
from ..metrics.tracker import QueryMetricsTracker, QueryMetricsTrackerFactory
from .ports import DocumentClient, DocumentQuery
from .predicates import ALL, Field, Predicate

T = TypeVar("T", bound=BaseDocument)


class CosmosRepository(Generic[T]):
    """Typed query access to one collection for one document type.

    The repository is a stateless facade: it owns no data, holds no locks,
    and shares its client and metrics tracker with every other caller.
    Each ``get_items`` call issues exactly one store query, routes it to a
    single partition when a key is given or across all partitions when it
    is not, and returns a fully materialized list.

    Example:
        repo = CosmosRepository(
            client, options, metrics_tracker, InternalDroneUtilization
        )
        items = await repo.get_items(Field("year") == 2019, "o00042")
    """

    def __init__(
        self,
        client: DocumentClient,
        options: CosmosDBRepositoryOptions,
        metrics_tracker: QueryMetricsTrackerFactory,
        document_cls: type[T],
    ):
        """Initialize with injected collaborators.

        Args:
            client: Store client used for every query.
            options: Collection URI and query settings, fixed for the
                repository's lifetime.
            metrics_tracker: Source of per-query metrics trackers.
            document_cls: Concrete document type this repository returns.

        Raises:
            ConfigurationError: If the collection URI is missing or
                malformed, or the document type declares no type tag.
        """
        if options is None:
            raise ConfigurationError("Repository options are required")
        parse_collection_uri(options.collection_uri)
        if not getattr(document_cls, "DOCUMENT_TYPE", ""):
            raise ConfigurationError(
                f"{document_cls.__name__} does not declare a DOCUMENT_TYPE"
            )

        self._client = client
        self._options = options
        self._metrics_tracker = metrics_tracker
        self._document_cls = document_cls

    @property
    def collection(self) -> str:
        """Collection URI this repository reads from."""
        return self._options.collection_uri

    @property
    def document_type(self) -> str:
        return self._document_cls.DOCUMENT_TYPE

    def build_query_options(self, partition_key: str | None) -> QueryOptions:
        """Scope to ``partition_key`` when given, otherwise query all partitions."""
        return QueryOptions.for_partition(partition_key, self._options.max_item_count)

    async def get_items(
        self, predicate: Predicate = ALL, partition_key: str | None = None
    ) -> list[T]:
        """Query documents of this repository's type.

        Args:
            predicate: Filter evaluated by the store.
            partition_key: Partition to scope the query to. ``None`` or an
                empty string runs a cross-partition query.

        Returns:
            Every matching document, materialized. Order is unspecified.

        Raises:
            QueryExecutionError: If the store fails to run or page the query.
            DocumentError: If a returned document violates the model.
        """
        options = self.build_query_options(partition_key)
        scope = options.partition_key
        tracker = self._metrics_tracker.get_query_metrics_tracker(
            self.collection, scope, self.document_type
        )

        logger.debug(
            f"Querying {self.document_type} in {self.collection} "
            f"({'partition=' + repr(scope) if scope else 'cross-partition'})"
        )

        with tracker:
            try:
                raw_items = await self._execute(predicate, options, tracker)
            except DroneSchedulerError:
                raise
            except Exception as e:
                raise QueryExecutionError(
                    f"Query on {self.collection} failed: {e}",
                    collection=self.collection,
                    partition_key=scope,
                ) from e

            items = [self._document_cls.from_document(raw) for raw in raw_items]
            items = self._check_partition(items, scope)

        logger.debug(f"Query returned {len(items)} {self.document_type} documents")
        return items

    async def get_item(self, item_id: str, partition_key: str) -> T | None:
        """Look up one document by id within its partition."""
        items = await self.get_items(Field("id") == item_id, partition_key)
        return items[0] if items else None

    async def _execute(
        self,
        predicate: Predicate,
        options: QueryOptions,
        tracker: QueryMetricsTracker,
    ) -> list[dict]:
        type_filter = Field("document_type") == self.document_type
        query: DocumentQuery = self._client.create_document_query(self.collection, options)
        query = query.where(predicate & type_filter, self._document_cls)

        raw_items: list[dict] = []
        while query.has_more_results:
            response = await query.execute_next()
            tracker.add_page(response)
            raw_items.extend(response.items)
        return raw_items

    def _check_partition(self, items: list[T], partition_key: str | None) -> list[T]:
        check = self._options.partition_check
        if partition_key is None or check is PartitionCheck.OFF:
            return items

        kept: list[T] = []
        for item in items:
            if item.partition_key == partition_key:
                kept.append(item)
                continue

            message = (
                f"Document {item.id!r} has partition key {item.partition_key!r}, "
                f"expected {partition_key!r} in {self.collection}"
            )
            logger.warning(message)
            if check is PartitionCheck.WARN:
                warnings.warn(message, PartitionMismatchWarning, stacklevel=3)
                kept.append(item)
        return kept
