"""
Carbon reading repository.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from carbonseal.models.carbon_reading import CarbonReading
from carbonseal.repositories.base import BaseRepository


class CarbonReadingRepository(BaseRepository[CarbonReading]):
    """Repository for append-only carbon readings."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(CarbonReading, session)

    async def insert_reading(self, values: dict[str, Any]) -> bool:
        """
        Append a reading.

        Returns:
            True if inserted, False if the reading id was already mirrored
        """
        return await self.insert_ignore("id", values)

    async def list_by_farm(
        self, farm_id: int, page: int, per_page: int
    ) -> tuple[list[CarbonReading], int]:
        """Readings for a farm, newest first."""
        return await self.find_paginated(
            CarbonReading.farm_id == farm_id,
            order_by=CarbonReading.timestamp.desc(),
            page=page,
            per_page=per_page,
        )
