"""Configuration management for the drone scheduler document store."""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .exceptions import ConfigurationError
from .instrumentation import TracingConfig
from .types import PartitionCheck

_URI_SEGMENTS = ("dbs", "colls")


def build_collection_uri(database_id: str, collection_id: str) -> str:
    """Build a collection link of the form ``dbs/{database}/colls/{collection}``."""
    for label, value in (("database", database_id), ("collection", collection_id)):
        if not value or not value.strip():
            raise ConfigurationError(f"A {label} id is required to build a collection URI")
        if "/" in value:
            raise ConfigurationError(f"Invalid {label} id {value!r}: '/' is not allowed")
    return f"dbs/{database_id}/colls/{collection_id}"


def parse_collection_uri(uri: str | None) -> tuple[str, str]:
    """Split a collection link into ``(database_id, collection_id)``.

    Raises:
        ConfigurationError: If the URI is missing or not a collection link.
    """
    if not uri or not uri.strip():
        raise ConfigurationError("Collection URI is required")

    parts = uri.strip("/").split("/")
    if len(parts) != 4 or (parts[0], parts[2]) != _URI_SEGMENTS or not parts[1] or not parts[3]:
        raise ConfigurationError(
            f"Malformed collection URI {uri!r}; expected 'dbs/<database>/colls/<collection>'"
        )
    return parts[1], parts[3]


def _parse_partition_check(value: str) -> PartitionCheck:
    try:
        return PartitionCheck(value.strip().lower())
    except ValueError:
        choices = ", ".join(c.value for c in PartitionCheck)
        raise ConfigurationError(
            f"Invalid partition check {value!r}; expected one of: {choices}"
        ) from None


def _parse_positive_int(name: str, value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None
    if number <= 0:
        raise ConfigurationError(f"{name} must be positive, got {number}")
    return number


@dataclass(frozen=True)
class CosmosDBRepositoryOptions:
    """Settings a repository holds for its whole lifetime.

    Attributes:
        collection_uri: Collection link, ``dbs/{database}/colls/{collection}``.
        partition_check: What to do with items outside the requested partition.
        max_item_count: Page size hint passed to the store (None = store default).
    """

    collection_uri: str
    partition_check: PartitionCheck = PartitionCheck.OFF
    max_item_count: int | None = None

    def __post_init__(self) -> None:
        parse_collection_uri(self.collection_uri)
        if self.max_item_count is not None and self.max_item_count <= 0:
            raise ConfigurationError(
                f"max_item_count must be positive, got {self.max_item_count}"
            )


@dataclass
class CosmosConfig:
    """Cosmos DB account configuration."""

    endpoint: str = "https://localhost:8081"
    key: str = ""
    database_id: str = "dronescheduler"
    timeout: float = 30.0


@dataclass
class RepositoryConfig:
    """Repository query configuration."""

    collection_id: str = "utilization"
    partition_check: PartitionCheck = PartitionCheck.OFF
    max_item_count: int | None = None


@dataclass
class Config:
    """Main application configuration."""

    cosmos: CosmosConfig = field(default_factory=CosmosConfig)
    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)

    @property
    def collection_uri(self) -> str:
        """Collection link for the configured database and collection."""
        return build_collection_uri(self.cosmos.database_id, self.repository.collection_id)

    def repository_options(self) -> CosmosDBRepositoryOptions:
        """Build the immutable options handed to repositories."""
        return CosmosDBRepositoryOptions(
            collection_uri=self.collection_uri,
            partition_check=self.repository.partition_check,
            max_item_count=self.repository.max_item_count,
        )

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        config = cls()
        config._apply_env()
        return config

    @classmethod
    def from_file(cls, path: Path | str) -> "Config":
        """Load configuration from a TOML file, then apply env overrides."""
        path = Path(path)
        try:
            with path.open("rb") as f:
                data = tomllib.load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Config file not found: {path}") from None
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid config file {path}: {e}") from e

        config = cls()
        config._apply_mapping(data)
        config._apply_env()
        return config

    @classmethod
    def from_env_or_file(cls) -> "Config":
        """Use ``DRONESCHEDULER_CONFIG`` when set, otherwise the environment."""
        if path := os.environ.get("DRONESCHEDULER_CONFIG"):
            return cls.from_file(path)
        return cls.from_env()

    def _apply_mapping(self, data: dict[str, Any]) -> None:
        cosmos = data.get("cosmos", {})
        for key in ("endpoint", "key", "database_id"):
            if key in cosmos:
                setattr(self.cosmos, key, str(cosmos[key]))
        if "timeout" in cosmos:
            self.cosmos.timeout = float(cosmos["timeout"])

        repository = data.get("repository", {})
        if "collection_id" in repository:
            self.repository.collection_id = str(repository["collection_id"])
        if "partition_check" in repository:
            self.repository.partition_check = _parse_partition_check(
                str(repository["partition_check"])
            )
        if "max_item_count" in repository:
            self.repository.max_item_count = _parse_positive_int(
                "max_item_count", str(repository["max_item_count"])
            )

        tracing = data.get("tracing", {})
        if "enabled" in tracing:
            self.tracing.enabled = bool(tracing["enabled"])
        if "endpoint" in tracing:
            self.tracing.endpoint = str(tracing["endpoint"])
        if "sample_rate" in tracing:
            self.tracing.sample_rate = float(tracing["sample_rate"])

    def _apply_env(self) -> None:
        # Cosmos DB account
        if endpoint := os.environ.get("COSMOSDB_ENDPOINT"):
            self.cosmos.endpoint = endpoint
        if key := os.environ.get("COSMOSDB_KEY"):
            self.cosmos.key = key
        if database_id := os.environ.get("COSMOSDB_DATABASE_ID"):
            self.cosmos.database_id = database_id

        # Repository
        if collection_id := os.environ.get("COSMOSDB_COLLECTION_ID"):
            self.repository.collection_id = collection_id
        if check := os.environ.get("COSMOSDB_PARTITION_CHECK"):
            self.repository.partition_check = _parse_partition_check(check)
        if page_size := os.environ.get("COSMOSDB_MAX_ITEM_COUNT"):
            self.repository.max_item_count = _parse_positive_int(
                "COSMOSDB_MAX_ITEM_COUNT", page_size
            )

        # Tracing
        if enabled := os.environ.get("TRACING_ENABLED"):
            self.tracing.enabled = enabled.strip().lower() in {"1", "true", "yes", "on"}
        if endpoint := os.environ.get("TRACING_ENDPOINT"):
            self.tracing.endpoint = endpoint
