"""In-memory document client.

Holds raw JSON documents per collection and answers queries with the same
partition semantics as the real store: a scoped query only sees its own
partition, a cross-partition query sees everything. Used for local runs
and as the store behind the test suite.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from loguru import logger

from ..core.types import BaseDocument, FeedResponse, QueryOptions
from .predicates import Predicate

PARTITION_KEY_FIELD = "partitionKey"


@dataclass
class QueryCall:
    """One ``create_document_query`` invocation, kept for inspection."""

    collection_uri: str
    options: QueryOptions
    predicates: list[Predicate] = field(default_factory=list)


class InMemoryDocumentQuery:
    """Paged query over a snapshot of one in-memory collection."""

    def __init__(
        self,
        client: "InMemoryDocumentClient",
        call: QueryCall,
        filters: list[tuple[Predicate, type[BaseDocument]]] | None = None,
    ):
        self._client = client
        self._call = call
        self._filters = filters or []
        self._results: list[dict[str, Any]] | None = None
        self._cursor = 0

    @property
    def has_more_results(self) -> bool:
        if self._results is None:
            return True
        return self._cursor < len(self._results)

    def where(
        self, predicate: Predicate, document_cls: type[BaseDocument]
    ) -> "InMemoryDocumentQuery":
        if self._results is not None:
            raise RuntimeError("Cannot add a filter to a query that has started executing")
        self._call.predicates.append(predicate)
        return InMemoryDocumentQuery(
            self._client, self._call, [*self._filters, (predicate, document_cls)]
        )

    async def execute_next(self) -> FeedResponse:
        # Yield to the loop like a network round trip would
        await asyncio.sleep(0)

        if self._results is None:
            self._results = self._client._select(self._call, self._filters)
        elif self._cursor >= len(self._results):
            raise RuntimeError("Query has no more results")

        page_size = self._call.options.max_item_count or self._client.page_size
        page = self._results[self._cursor : self._cursor + page_size]
        self._cursor += len(page)

        return FeedResponse(
            items=page,
            request_charge=self._client.base_charge + self._client.charge_per_item * len(page),
            activity_id=str(uuid.uuid4()),
            query_metrics={"retrievedDocumentCount": len(page)},
        )


class InMemoryDocumentClient:
    """Document client backed by plain dictionaries.

    Example:
        client = InMemoryDocumentClient()
        client.add_documents("dbs/db/colls/utilization", [doc1, doc2])
        query = client.create_document_query(
            "dbs/db/colls/utilization", QueryOptions.for_partition("o00042")
        )
    """

    def __init__(
        self,
        page_size: int = 100,
        base_charge: float = 2.5,
        charge_per_item: float = 0.5,
    ):
        """Initialize an empty store.

        Args:
            page_size: Items per page when the query sets no page size.
            base_charge: Request charge of every page.
            charge_per_item: Additional charge per returned item.
        """
        self.page_size = page_size
        self.base_charge = base_charge
        self.charge_per_item = charge_per_item
        self.calls: list[QueryCall] = []
        self._collections: dict[str, list[dict[str, Any]]] = {}

    def create_collection(self, collection_uri: str) -> None:
        """Create an empty collection if it does not exist yet."""
        self._collections.setdefault(collection_uri.strip("/"), [])

    def add_documents(
        self,
        collection_uri: str,
        documents: Iterable[BaseDocument | Mapping[str, Any]],
    ) -> int:
        """Seed a collection with documents.

        Returns:
            Number of documents added.
        """
        collection = self._collections.setdefault(collection_uri.strip("/"), [])
        count = 0
        for document in documents:
            raw = document.to_document() if isinstance(document, BaseDocument) else dict(document)
            collection.append(raw)
            count += 1
        logger.debug(f"Seeded {count} documents into {collection_uri}")
        return count

    def create_document_query(
        self, collection_uri: str, options: QueryOptions
    ) -> InMemoryDocumentQuery:
        call = QueryCall(collection_uri=collection_uri, options=options)
        self.calls.append(call)
        return InMemoryDocumentQuery(self, call)

    async def close(self) -> None:
        pass

    def _select(
        self,
        call: QueryCall,
        filters: list[tuple[Predicate, type[BaseDocument]]],
    ) -> list[dict[str, Any]]:
        key = call.collection_uri.strip("/")
        if key not in self._collections:
            raise LookupError(f"Collection not found: {call.collection_uri}")

        partition_key = call.options.partition_key
        selected = []
        for raw in self._collections[key]:
            if partition_key and raw.get(PARTITION_KEY_FIELD) != partition_key:
                continue
            if all(predicate.matches(document_cls, raw) for predicate, document_cls in filters):
                selected.append(dict(raw))
        return selected
