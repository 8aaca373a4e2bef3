"""
Carbon credit repository.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from carbonseal.models.carbon_credit import CarbonCredit
from carbonseal.repositories.base import BaseRepository


class CarbonCreditRepository(BaseRepository[CarbonCredit]):
    """Repository for mirrored carbon credits."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(CarbonCredit, session)

    async def upsert_credit(self, values: dict[str, Any]) -> None:
        """Insert or overwrite a credit by token id."""
        await self.upsert("token_id", values)

    async def list_recent(
        self, page: int, per_page: int
    ) -> tuple[list[CarbonCredit], int]:
        """All credits, most recently minted first."""
        return await self.find_paginated(
            order_by=CarbonCredit.minted_at.desc(),
            page=page,
            per_page=per_page,
        )

    async def list_by_owner(
        self, owner: str, page: int, per_page: int
    ) -> tuple[list[CarbonCredit], int]:
        """Credits held by an address, most recently minted first."""
        return await self.find_paginated(
            CarbonCredit.farmer == owner.lower(),
            order_by=CarbonCredit.minted_at.desc(),
            page=page,
            per_page=per_page,
        )

    async def list_by_farm(
        self, farm_id: int, page: int, per_page: int
    ) -> tuple[list[CarbonCredit], int]:
        """Credits minted against a farm, most recent first."""
        return await self.find_paginated(
            CarbonCredit.farm_id == farm_id,
            order_by=CarbonCredit.minted_at.desc(),
            page=page,
            per_page=per_page,
        )
