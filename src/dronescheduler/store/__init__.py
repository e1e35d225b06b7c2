"""Data access layer for the drone scheduler.

This package provides the read path over the document store:
- Ports: protocols the repository consumes from a store client
- Predicates: typed filters pushed down to the store
- Clients: Azure Cosmos DB and in-memory implementations
- Repository: typed, partition-aware queries with metrics tracking

Example:
    from dronescheduler.store import CosmosRepository, Field, InMemoryDocumentClient

    repo = CosmosRepository(client, options, metrics_tracker, InternalDroneUtilization)
    items = await repo.get_items(Field("month") == 6, "o00042")
"""

from .cosmos import CosmosDocumentClient, CosmosDocumentQuery
from .memory import InMemoryDocumentClient, InMemoryDocumentQuery, QueryCall
from .ports import DocumentClient, DocumentQuery
from .predicates import ALL, Field, Predicate
from .repository import CosmosRepository

__all__ = [
    "DocumentClient",
    "DocumentQuery",
    "Predicate",
    "Field",
    "ALL",
    "CosmosDocumentClient",
    "CosmosDocumentQuery",
    "InMemoryDocumentClient",
    "InMemoryDocumentQuery",
    "QueryCall",
    "CosmosRepository",
]
