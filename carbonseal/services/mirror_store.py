"""
Mirror Store.

Off-chain relational cache of farms, readings, credits and the sync
cursor. Every operation runs in its own session and transaction, so
concurrent event handlers and reconciliation passes never share state.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from carbonseal.config.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from carbonseal.models import Base, CarbonCredit, CarbonReading, Farm, SyncCursor
from carbonseal.repositories.carbon_credit_repository import CarbonCreditRepository
from carbonseal.repositories.carbon_reading_repository import (
    CarbonReadingRepository,
)
from carbonseal.repositories.farm_repository import FarmRepository
from carbonseal.repositories.sync_cursor_repository import SyncCursorRepository
from carbonseal.services.chain.records import CreditRecord, FarmRecord, ReadingRecord
from carbonseal.utils.datetime_utils import from_chain_timestamp

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of a range read."""

    data: list[T]
    total: int


def farm_values(farm: FarmRecord) -> dict[str, Any]:
    """Map a decoded farm to its mirror row."""
    return {
        "id": farm.farm_id,
        "farmer": farm.farmer.lower(),
        "name": farm.name,
        "area": farm.area,
        "location": farm.location,
        "soil_type": farm.soil_type,
        "total_carbon": farm.total_carbon,
        "carbon_debt": farm.carbon_debt,
        "last_reading_timestamp": (
            from_chain_timestamp(farm.last_reading_timestamp)
            if farm.last_reading_timestamp
            else None
        ),
        "is_active": farm.is_active,
        "created_at": from_chain_timestamp(farm.created_at),
    }


def reading_values(reading: ReadingRecord) -> dict[str, Any]:
    """Map a decoded reading to its mirror row."""
    return {
        "id": reading.reading_id,
        "farm_id": reading.farm_id,
        "amount": reading.amount,
        "source": reading.source,
        "verification_hash": reading.verification_hash,
        "timestamp": from_chain_timestamp(reading.timestamp),
        "verified_by": reading.verified_by.lower(),
    }


def credit_values(credit: CreditRecord, token_uri: str) -> dict[str, Any]:
    """Map a decoded credit and its metadata URI to a mirror row."""
    return {
        "token_id": credit.token_id,
        "farm_id": credit.farm_id,
        "farmer": credit.farmer.lower(),
        "carbon_amount": credit.carbon_amount,
        "methodology": credit.methodology,
        "vintage": from_chain_timestamp(credit.vintage),
        "minted_at": from_chain_timestamp(credit.minted_at),
        "is_retired": credit.is_retired,
        "retired_at": (
            from_chain_timestamp(credit.retired_at) if credit.is_retired else None
        ),
        "retirement_reason": credit.retirement_reason if credit.is_retired else None,
        "token_uri": token_uri,
    }


def _clamp_page(page: int, limit: int) -> tuple[int, int]:
    return max(1, page), min(max(1, limit), MAX_PAGE_SIZE)


class MirrorStore:
    """
    Read and write access to the mirror database.

    Writes are idempotent by natural key: farms and credits are
    last-write-wins upserts, readings are insert-if-absent.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        """
        Initialize store.

        Args:
            session_maker: Factory for async sessions
        """
        self.session_maker = session_maker

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        async with self.session_maker() as session:
            async with session.begin():
                yield session

    @asynccontextmanager
    async def _read(self) -> AsyncIterator[AsyncSession]:
        async with self.session_maker() as session:
            yield session

    async def create_schema(self, engine: AsyncEngine) -> None:
        """Create all mirror tables (development and tests)."""
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("[MirrorStore] Schema created")

    # Writes

    async def upsert_farm(self, farm: FarmRecord) -> None:
        """Insert or overwrite a farm with its latest on-chain snapshot."""
        async with self._transaction() as session:
            await FarmRepository(session).upsert_farm(farm_values(farm))

    async def insert_reading(self, reading: ReadingRecord) -> bool:
        """
        Append a reading.

        A reading id that is already mirrored is not an error.

        Returns:
            True if inserted, False if it was a duplicate
        """
        async with self._transaction() as session:
            inserted = await CarbonReadingRepository(session).insert_reading(
                reading_values(reading)
            )
        if not inserted:
            logger.debug(
                f"[MirrorStore] Reading {reading.reading_id} already mirrored"
            )
        return inserted

    async def upsert_credit(self, credit: CreditRecord, token_uri: str = "") -> None:
        """Insert or overwrite a credit with its latest on-chain state."""
        async with self._transaction() as session:
            await CarbonCreditRepository(session).upsert_credit(
                credit_values(credit, token_uri)
            )

    # Cursor

    async def get_cursor(self) -> int:
        """Highest fully reconciled block, 0 if never reconciled."""
        async with self._read() as session:
            cursor = await SyncCursorRepository(session).get_cursor()
        return cursor.last_block if cursor else 0

    async def get_cursor_state(self) -> SyncCursor | None:
        """Full cursor row including error diagnostics."""
        async with self._read() as session:
            return await SyncCursorRepository(session).get_cursor()

    async def set_cursor(self, block_number: int) -> None:
        """Advance the cursor after a successful pass."""
        async with self._transaction() as session:
            await SyncCursorRepository(session).set_last_block(block_number)

    async def record_sync_error(self, error: str) -> None:
        """Record a failed pass; the cursor block is left unchanged."""
        async with self._transaction() as session:
            await SyncCursorRepository(session).record_error(error)

    # Reads

    async def get_farms(
        self, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
    ) -> Page[Farm]:
        """Farms, newest first."""
        page, limit = _clamp_page(page, limit)
        async with self._read() as session:
            items, total = await FarmRepository(session).list_recent(page, limit)
        return Page(items, total)

    async def get_farm_by_id(self, farm_id: int) -> Farm | None:
        """Get farm by id."""
        async with self._read() as session:
            return await FarmRepository(session).get_by_id(farm_id)

    async def get_farm_by_address(self, address: str) -> Farm | None:
        """Get farm by owner address."""
        async with self._read() as session:
            return await FarmRepository(session).get_by_farmer(address)

    async def get_readings_by_farm(
        self, farm_id: int, page: int = 1, limit: int = 50
    ) -> Page[CarbonReading]:
        """Readings of a farm, newest first."""
        page, limit = _clamp_page(page, limit)
        async with self._read() as session:
            items, total = await CarbonReadingRepository(session).list_by_farm(
                farm_id, page, limit
            )
        return Page(items, total)

    async def get_credits(
        self, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
    ) -> Page[CarbonCredit]:
        """Credits, most recently minted first."""
        page, limit = _clamp_page(page, limit)
        async with self._read() as session:
            items, total = await CarbonCreditRepository(session).list_recent(
                page, limit
            )
        return Page(items, total)

    async def get_credit_by_token_id(self, token_id: int) -> CarbonCredit | None:
        """Get credit by token id."""
        async with self._read() as session:
            return await CarbonCreditRepository(session).get_by_id(token_id)

    async def get_credits_by_owner(
        self, owner: str, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
    ) -> Page[CarbonCredit]:
        """Credits held by an address."""
        page, limit = _clamp_page(page, limit)
        async with self._read() as session:
            items, total = await CarbonCreditRepository(session).list_by_owner(
                owner, page, limit
            )
        return Page(items, total)

    async def get_credits_by_farm(
        self, farm_id: int, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
    ) -> Page[CarbonCredit]:
        """Credits minted against a farm."""
        page, limit = _clamp_page(page, limit)
        async with self._read() as session:
            items, total = await CarbonCreditRepository(session).list_by_farm(
                farm_id, page, limit
            )
        return Page(items, total)

    async def get_ecosystem_stats(self) -> dict[str, Any]:
        """
        Aggregate registry statistics from the mirror.

        Returns:
            Dict with total_farms, active_farms, total_credits and
            total_carbon_sequestered (exact int)
        """
        async with self._read() as session:
            farms = FarmRepository(session)
            credits = CarbonCreditRepository(session)
            return {
                "total_farms": await farms.count(),
                "active_farms": await farms.count_active(),
                "total_credits": await credits.count(),
                "total_carbon_sequestered": await farms.total_carbon(),
            }

    async def health_check(self) -> bool:
        """Minimal read; False if the database is unreachable."""
        try:
            async with self._read() as session:
                await session.execute(select(Farm.id).limit(1))
            return True
        except Exception as e:
            logger.warning(f"[MirrorStore] Health check failed: {e}")
            return False
