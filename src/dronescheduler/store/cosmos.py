"""Azure Cosmos DB implementation of DocumentClient.

Wraps the synchronous ``azure-cosmos`` SDK and runs each page fetch in a
worker thread with ``asyncio.to_thread()`` for non-blocking access. Retry
and connection policy stay with the SDK.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Mapping

from azure.cosmos import CosmosClient
from loguru import logger

from ..core.config import CosmosConfig, parse_collection_uri
from ..core.types import BaseDocument, FeedResponse, QueryOptions
from .predicates import ALL, Predicate

if TYPE_CHECKING:
    from azure.cosmos import ContainerProxy

REQUEST_CHARGE_HEADER = "x-ms-request-charge"
ACTIVITY_ID_HEADER = "x-ms-activity-id"
QUERY_METRICS_HEADER = "x-ms-documentdb-query-metrics"


def _parse_query_metrics(value: str | None) -> dict[str, Any]:
    """Split the ``key=value;key=value`` query metrics header."""
    if not value:
        return {}
    metrics: dict[str, Any] = {}
    for part in value.split(";"):
        name, sep, raw = part.partition("=")
        if not sep:
            continue
        try:
            metrics[name.strip()] = float(raw)
        except ValueError:
            metrics[name.strip()] = raw.strip()
    return metrics


class CosmosDocumentQuery:
    """Paged SQL query over one Cosmos container."""

    def __init__(
        self,
        container: "ContainerProxy",
        options: QueryOptions,
        predicate: Predicate = ALL,
        document_cls: type[BaseDocument] | None = None,
    ):
        self._container = container
        self._options = options
        self._predicate = predicate
        self._document_cls = document_cls
        self._pager: Any = None
        self._exhausted = False
        self._headers: Mapping[str, Any] = {}

    @property
    def has_more_results(self) -> bool:
        return not self._exhausted

    def where(
        self, predicate: Predicate, document_cls: type[BaseDocument]
    ) -> "CosmosDocumentQuery":
        if self._pager is not None:
            raise RuntimeError("Cannot add a filter to a query that has started executing")
        return CosmosDocumentQuery(
            self._container, self._options, self._predicate & predicate, document_cls
        )

    def build_query(self) -> tuple[str, list[dict[str, Any]]]:
        """Render the SQL text and parameters sent to the store."""
        if self._document_cls is None:
            return "SELECT * FROM c", []
        where, parameters = self._predicate.compile(self._document_cls, alias="c")
        return f"SELECT * FROM c WHERE {where}", parameters

    def _start(self) -> Any:
        query, parameters = self.build_query()
        kwargs: dict[str, Any] = {
            "query": query,
            "populate_query_metrics": True,
            "response_hook": self._capture_headers,
        }
        if parameters:
            kwargs["parameters"] = parameters
        if self._options.partition_key:
            kwargs["partition_key"] = self._options.partition_key
        else:
            kwargs["enable_cross_partition_query"] = True
        if self._options.max_item_count:
            kwargs["max_item_count"] = self._options.max_item_count

        logger.debug(f"Cosmos query on {self._container.id}: {query} ({len(parameters)} params)")
        return self._container.query_items(**kwargs).by_page()

    def _capture_headers(self, headers: Mapping[str, Any] | None, *_: Any) -> None:
        # client_connection.last_response_headers is shared by concurrent queries
        self._headers = headers or {}

    def _fetch_page(self) -> FeedResponse:
        if self._pager is None:
            self._pager = self._start()
        self._headers = {}

        page = next(self._pager, None)
        items = list(page) if page is not None else []
        if page is None or not self._pager.continuation_token:
            self._exhausted = True

        headers = self._headers
        return FeedResponse(
            items=items,
            request_charge=float(headers.get(REQUEST_CHARGE_HEADER, 0.0)),
            activity_id=headers.get(ACTIVITY_ID_HEADER),
            query_metrics=_parse_query_metrics(headers.get(QUERY_METRICS_HEADER)),
        )

    async def execute_next(self) -> FeedResponse:
        if self._exhausted:
            raise RuntimeError("Query has no more results")
        return await asyncio.to_thread(self._fetch_page)


class CosmosDocumentClient:
    """Cosmos DB NoSQL implementation of DocumentClient."""

    def __init__(self, endpoint: str, key: str, *, timeout: float = 30.0):
        """Create the SDK client.

        Args:
            endpoint: Account endpoint URL.
            key: Account key.
            timeout: Connection timeout in seconds.
        """
        self._client = CosmosClient(endpoint, credential=key, connection_timeout=int(timeout))
        self._containers: dict[str, "ContainerProxy"] = {}

    @classmethod
    def from_config(cls, config: CosmosConfig) -> "CosmosDocumentClient":
        return cls(config.endpoint, config.key, timeout=config.timeout)

    def _container(self, collection_uri: str) -> "ContainerProxy":
        container = self._containers.get(collection_uri)
        if container is None:
            database_id, collection_id = parse_collection_uri(collection_uri)
            container = self._client.get_database_client(database_id).get_container_client(
                collection_id
            )
            self._containers[collection_uri] = container
        return container

    def create_document_query(
        self, collection_uri: str, options: QueryOptions
    ) -> CosmosDocumentQuery:
        return CosmosDocumentQuery(self._container(collection_uri), options)

    async def close(self) -> None:
        self._containers.clear()
        await asyncio.to_thread(self._client.close)
