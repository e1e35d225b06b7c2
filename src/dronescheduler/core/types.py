"""Type definitions for the drone scheduler document store."""

from __future__ import annotations

from dataclasses import MISSING, dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Mapping, TypeVar

from .exceptions import DocumentError

D = TypeVar("D", bound="BaseDocument")


def json_field(name: str, **kwargs: Any) -> Any:
    """Declare a dataclass field stored under a different JSON name.

    Example:
        owner_id: str = json_field("ownerId")
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata["json"] = name
    return field(metadata=metadata, **kwargs)


# =============================================================================
# Document Model
# =============================================================================


@dataclass(kw_only=True)
class BaseDocument:
    """Minimal contract every stored entity satisfies.

    Concrete variants subclass this dataclass and declare ``DOCUMENT_TYPE``,
    the tag that tells heterogeneous documents in one collection apart.

    Attributes:
        id: Unique identity within the collection.
        partition_key: Physical partition the document lives in. Stable
            for the lifetime of the document.
        document_type: Concrete entity tag. Filled from ``DOCUMENT_TYPE``
            when left empty.
    """

    DOCUMENT_TYPE: ClassVar[str] = ""

    id: str
    partition_key: str = json_field("partitionKey")
    document_type: str = json_field("documentType", default="")

    def __post_init__(self) -> None:
        if not self.DOCUMENT_TYPE:
            raise DocumentError(f"{type(self).__name__} does not declare DOCUMENT_TYPE")
        if not self.document_type:
            self.document_type = self.DOCUMENT_TYPE
        elif self.document_type != self.DOCUMENT_TYPE:
            raise DocumentError(
                f"Document {self.id!r} has type {self.document_type!r}, "
                f"expected {self.DOCUMENT_TYPE!r}"
            )

    @classmethod
    def json_name(cls, attr: str) -> str:
        """Resolve a Python attribute name to its stored JSON name."""
        for f in fields(cls):
            if f.name == attr:
                return f.metadata.get("json", f.name)
        raise DocumentError(f"{cls.__name__} has no field {attr!r}")

    @classmethod
    def from_document(cls: type[D], raw: Mapping[str, Any]) -> D:
        """Build a typed entity from a raw store document.

        Keys that do not map to a field (``_rid``, ``_etag``, ``_ts`` and
        the like) are ignored.

        Raises:
            DocumentError: If a required field is missing or the type tag
                does not match.
        """
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            key = f.metadata.get("json", f.name)
            if key in raw:
                kwargs[f.name] = raw[key]
            elif f.default is MISSING and f.default_factory is MISSING:
                raise DocumentError(
                    f"{cls.__name__} document {raw.get('id')!r} is missing {key!r}"
                )
        return cls(**kwargs)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON shape stored in the collection."""
        return {f.metadata.get("json", f.name): getattr(self, f.name) for f in fields(self)}


@dataclass(kw_only=True)
class InternalDroneUtilization(BaseDocument):
    """Monthly utilization of one drone, partitioned by its owner."""

    DOCUMENT_TYPE: ClassVar[str] = "InternalDroneUtilization"

    owner_id: str = json_field("ownerId")
    year: int
    month: int
    traveled_miles: float = json_field("traveledMiles", default=0.0)
    assigned_hours: float = json_field("assignedHours", default=0.0)


# =============================================================================
# Query Types
# =============================================================================


class PartitionCheck(Enum):
    """Client-side handling of items outside the requested partition."""

    OFF = "off"
    WARN = "warn"
    FILTER = "filter"


@dataclass(frozen=True)
class QueryOptions:
    """Per-call query options handed to the store client.

    Exactly one of ``partition_key`` and ``enable_cross_partition_query``
    is set.
    """

    partition_key: str | None = None
    enable_cross_partition_query: bool = False
    max_item_count: int | None = None

    def __post_init__(self) -> None:
        scoped = bool(self.partition_key)
        if scoped == self.enable_cross_partition_query:
            raise ValueError(
                "QueryOptions needs either a partition key or cross-partition "
                f"execution (partition_key={self.partition_key!r}, "
                f"enable_cross_partition_query={self.enable_cross_partition_query})"
            )

    @classmethod
    def for_partition(
        cls, partition_key: str | None, max_item_count: int | None = None
    ) -> "QueryOptions":
        """Scope to one partition when a key is given, otherwise fan out."""
        if partition_key:
            return cls(partition_key=partition_key, max_item_count=max_item_count)
        return cls(enable_cross_partition_query=True, max_item_count=max_item_count)


@dataclass
class FeedResponse:
    """One page of query results as returned by the store.

    Attributes:
        items: Raw JSON documents.
        request_charge: Cost of the page in request units.
        activity_id: Store-side identifier of the request.
        query_metrics: Store-reported diagnostics, passed through untouched.
    """

    items: list[dict[str, Any]] = field(default_factory=list)
    request_charge: float = 0.0
    activity_id: str | None = None
    query_metrics: dict[str, Any] = field(default_factory=dict)


class QueryOutcome(Enum):
    """Terminal state of one query execution."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class QueryMetricsRecord:
    """Cost and latency of one query execution.

    Created when a tracker is entered and finalized exactly once when the
    query completes, fails or is cancelled.
    """

    collection: str
    partition_key: str | None
    document_type: str | None = None
    outcome: QueryOutcome | None = None
    request_charge: float = 0.0
    page_count: int = 0
    item_count: int = 0
    elapsed_ms: float = 0.0
    activity_ids: list[str] = field(default_factory=list)
    error: str | None = None
    started_at: datetime | None = None

    @property
    def cross_partition(self) -> bool:
        """Whether the query fanned out across partitions."""
        return self.partition_key is None
