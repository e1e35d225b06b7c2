"""Port definitions for the document store client.

The repository depends on these protocols rather than on a concrete SDK, so
it can run against Azure Cosmos DB, the in-memory client, or a test double.

Protocols defined:
    - DocumentQuery: A lazily executed, paged query over one collection
    - DocumentClient: Creates document queries for a collection

Usage:
    from dronescheduler.store.ports import DocumentClient

    class MyClient:
        def create_document_query(self, collection_uri, options):
            ...

    client: DocumentClient = MyClient()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..core.types import BaseDocument, FeedResponse, QueryOptions
    from .predicates import Predicate


@runtime_checkable
class DocumentQuery(Protocol):
    """Paged query produced by a single ``create_document_query`` call.

    Nothing reaches the store until ``execute_next`` is awaited. A query
    is consumed once; it cannot be restarted.
    """

    @property
    def has_more_results(self) -> bool:
        """Whether another page can be fetched."""
        ...

    def where(
        self, predicate: "Predicate", document_cls: type["BaseDocument"]
    ) -> "DocumentQuery":
        """Return a query restricted to documents matching ``predicate``.

        Args:
            predicate: Filter evaluated by the store.
            document_cls: Document class used to resolve field names.
        """
        ...

    async def execute_next(self) -> "FeedResponse":
        """Fetch the next page of results.

        Raises:
            Exception: Any transport or query failure from the store.
        """
        ...


@runtime_checkable
class DocumentClient(Protocol):
    """Store capability consumed by repositories."""

    def create_document_query(
        self, collection_uri: str, options: "QueryOptions"
    ) -> DocumentQuery:
        """Create a query over one collection.

        Args:
            collection_uri: Collection link, ``dbs/{database}/colls/{collection}``.
            options: Partition scope and paging options.
        """
        ...

    async def close(self) -> None:
        """Release network resources held by the client."""
        ...
