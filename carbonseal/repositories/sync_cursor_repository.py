"""
Sync cursor repository.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carbonseal.config.constants import SYNC_CURSOR_ID
from carbonseal.models.sync_cursor import SyncCursor
from carbonseal.repositories.base import BaseRepository
from carbonseal.utils.datetime_utils import utc_now


class SyncCursorRepository(BaseRepository[SyncCursor]):
    """Repository for the singleton reconciliation cursor."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(SyncCursor, session)

    async def get_cursor(self) -> SyncCursor | None:
        """Get the cursor row, if one was ever written."""
        result = await self.session.execute(
            select(SyncCursor).where(SyncCursor.id == SYNC_CURSOR_ID)
        )
        return result.scalar_one_or_none()

    async def get_or_create_cursor(self) -> SyncCursor:
        """Get or create the cursor row."""
        cursor = await self.get_cursor()
        if cursor:
            return cursor

        cursor = SyncCursor(
            id=SYNC_CURSOR_ID,
            last_block=0,
            error_count=0,
        )
        self.session.add(cursor)
        await self.session.flush()
        return cursor

    async def set_last_block(self, block_number: int) -> None:
        """Advance the cursor after a successful pass and clear the error."""
        await self.upsert(
            "id",
            {
                "id": SYNC_CURSOR_ID,
                "last_block": block_number,
                "last_synced_at": utc_now(),
                "last_error": None,
                "error_count": 0,
            },
        )

    async def record_error(self, error: str) -> None:
        """Record a failed pass without touching last_block."""
        cursor = await self.get_or_create_cursor()
        cursor.last_error = error
        cursor.error_count += 1
        cursor.updated_at = utc_now()
        await self.session.flush()
