"""Test fakes for exercising repositories without a real store.

Example:
    from tests.fakes import FailingDocumentClient, RecordingMetricsTracker

    tracker = RecordingMetricsTracker()
    repo = CosmosRepository(FailingDocumentClient(error), options, tracker, InternalDroneUtilization)
"""

from .documents import OWNER_ID, make_utilization
from .metrics import RaisingMetricsSink, RecordingMetricsTracker
from .store import BlockingDocumentClient, FailingDocumentClient, StaticDocumentClient

__all__ = [
    "OWNER_ID",
    "make_utilization",
    "FailingDocumentClient",
    "BlockingDocumentClient",
    "StaticDocumentClient",
    "RecordingMetricsTracker",
    "RaisingMetricsSink",
]
