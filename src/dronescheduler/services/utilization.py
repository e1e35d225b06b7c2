"""Drone utilization queries used for owner invoicing."""

from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from ..core.types import InternalDroneUtilization
from ..store.predicates import Field
from ..store.repository import CosmosRepository


@dataclass
class OwnerUtilization:
    """Utilization of all of one owner's drones for one month.

    Attributes:
        owner_id: Owner the drones belong to.
        year: Calendar year.
        month: Calendar month (1-12).
        traveled_miles: Miles flown across all drones.
        assigned_hours: Hours assigned across all drones.
        drone_ids: Ids of the utilization records included.
    """

    owner_id: str
    year: int
    month: int
    traveled_miles: float = 0.0
    assigned_hours: float = 0.0
    drone_ids: list[str] = field(default_factory=list)


def _month_filter(year: int, month: int):
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")
    return (Field("year") == year) & (Field("month") == month)


class DroneUtilizationService:
    """Aggregates drone utilization documents per owner."""

    def __init__(self, repository: CosmosRepository[InternalDroneUtilization]):
        self._repository = repository

    async def get_owner_utilization(
        self, owner_id: str, year: int, month: int
    ) -> OwnerUtilization:
        """Sum miles and hours of every drone an owner had in a month.

        The owner id is the partition key, so this is a single-partition query.
        """
        if not owner_id:
            raise ValueError("owner_id is required")

        records = await self._repository.get_items(_month_filter(year, month), owner_id)

        summary = OwnerUtilization(owner_id=owner_id, year=year, month=month)
        for record in records:
            summary.traveled_miles += record.traveled_miles
            summary.assigned_hours += record.assigned_hours
            summary.drone_ids.append(record.id)

        logger.debug(
            f"Owner {owner_id} {year}-{month:02d}: {len(records)} drones, "
            f"{summary.traveled_miles} miles, {summary.assigned_hours} hours"
        )
        return summary

    async def list_utilization(
        self, year: int, month: int
    ) -> list[InternalDroneUtilization]:
        """Every owner's utilization records for a month (cross-partition)."""
        return await self._repository.get_items(_month_filter(year, month))
