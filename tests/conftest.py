"""Pytest configuration and fixtures."""

import pytest
from loguru import logger

from dronescheduler.core.config import CosmosDBRepositoryOptions, build_collection_uri
from dronescheduler.core.types import InternalDroneUtilization
from dronescheduler.store.memory import InMemoryDocumentClient
from dronescheduler.store.repository import CosmosRepository
from tests.fakes import RecordingMetricsTracker, make_utilization


@pytest.fixture
def collection_uri() -> str:
    """Provide the collection link used by repository tests."""
    return build_collection_uri("fakeDb", "fakeCol")


@pytest.fixture
def repo_options(collection_uri: str) -> CosmosDBRepositoryOptions:
    """Provide default repository options."""
    return CosmosDBRepositoryOptions(collection_uri=collection_uri)


@pytest.fixture
def owner_documents() -> list[InternalDroneUtilization]:
    """Two utilization records stored under the same owner partition."""
    return [
        make_utilization("d0001", traveled_miles=10.0, assigned_hours=1.0),
        make_utilization("d0002", traveled_miles=32.0, assigned_hours=2.0),
    ]


@pytest.fixture
def other_documents() -> list[InternalDroneUtilization]:
    """Utilization records of other owners sharing the collection."""
    return [
        make_utilization("d0101", "o00043", traveled_miles=5.0, assigned_hours=0.5),
        make_utilization("d0102", "o00044", traveled_miles=7.5, assigned_hours=1.5),
        make_utilization("d0103", "o00044", month=7, traveled_miles=1.0, assigned_hours=0.1),
    ]


@pytest.fixture
def store(
    collection_uri: str,
    owner_documents: list[InternalDroneUtilization],
) -> InMemoryDocumentClient:
    """Provide an in-memory store seeded with one owner's documents."""
    client = InMemoryDocumentClient(page_size=1)
    client.add_documents(collection_uri, owner_documents)
    return client


@pytest.fixture
def metrics_tracker() -> RecordingMetricsTracker:
    """Provide a metrics tracker that records acquisitions and outcomes."""
    return RecordingMetricsTracker()


@pytest.fixture
def repository(
    store: InMemoryDocumentClient,
    repo_options: CosmosDBRepositoryOptions,
    metrics_tracker: RecordingMetricsTracker,
) -> CosmosRepository[InternalDroneUtilization]:
    """Provide a utilization repository over the in-memory store."""
    return CosmosRepository(store, repo_options, metrics_tracker, InternalDroneUtilization)


@pytest.fixture
def log_messages():
    """Capture loguru output for the duration of a test."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(str(m)), level="DEBUG", format="{level} {message}")
    yield messages
    logger.remove(handler_id)
