"""
Farm repository.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carbonseal.models.farm import Farm
from carbonseal.repositories.base import BaseRepository


class FarmRepository(BaseRepository[Farm]):
    """Repository for mirrored farms."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Farm, session)

    async def upsert_farm(self, values: dict[str, Any]) -> None:
        """Insert or overwrite a farm by id."""
        await self.upsert("id", values)

    async def get_by_farmer(self, address: str) -> Farm | None:
        """Get farm by owner address (case-insensitive)."""
        result = await self.session.execute(
            select(Farm).where(Farm.farmer == address.lower()).limit(1)
        )
        return result.scalar_one_or_none()

    async def list_recent(
        self, page: int, per_page: int
    ) -> tuple[list[Farm], int]:
        """Farms ordered by chain creation time, newest first."""
        return await self.find_paginated(
            order_by=Farm.created_at.desc(),
            page=page,
            per_page=per_page,
        )

    async def count_active(self) -> int:
        """Count active farms."""
        return await self.count(Farm.is_active.is_(True))

    async def total_carbon(self) -> int:
        """
        Sum total_carbon over all farms.

        Summed in Python: the column is a decimal string and a SQL SUM
        would go through a lossy numeric cast on some dialects.
        """
        result = await self.session.execute(select(Farm.total_carbon))
        return sum(result.scalars().all(), 0)

