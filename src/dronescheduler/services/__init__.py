"""Service layer for the drone scheduler store.

Example usage:

    from dronescheduler.services import ServiceContainer

    async with ServiceContainer(config) as services:
        summary = await services.utilization.get_owner_utilization("o00042", 2019, 6)
"""

from .container import ServiceContainer
from .utilization import DroneUtilizationService, OwnerUtilization

__all__ = [
    "ServiceContainer",
    "DroneUtilizationService",
    "OwnerUtilization",
]
