"""
Reconciler.

Keeps the mirror consistent with chain state. A pass re-pulls every
farm, its recent readings and every credit, then advances the cursor.
Interrupted passes are simply retried by the next trigger: every write
is idempotent by natural key, so replays are harmless.
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum

from loguru import logger

from carbonseal.services.chain.chain_reader import ChainReader
from carbonseal.services.chain.records import CreditRecord, FarmRecord
from carbonseal.services.mirror_store import MirrorStore
from carbonseal.utils.exceptions import (
    MissingRecordError,
    ReconciliationError,
    is_transient,
)


class SyncState(str, Enum):
    """Reconciler state machine: IDLE -> SYNCING -> SUCCESS | FAILED."""

    IDLE = "idle"
    SYNCING = "syncing"
    SUCCESS = "success"
    FAILED = "failed"


class ResultStatus(str, Enum):
    SUCCESS = "success"
    CAUGHT_UP = "caught_up"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ReconcileResult:
    """Outcome of one reconcile() call."""

    status: ResultStatus
    from_block: int = 0
    to_block: int = 0
    farms: int = 0
    readings_inserted: int = 0
    credits: int = 0
    skipped: list[tuple[str, int]] = field(default_factory=list)
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status in (ResultStatus.SUCCESS, ResultStatus.CAUGHT_UP)


class Reconciler:
    """
    Full-state reconciler with single-flight guard.

    Only one pass runs at a time. A trigger that arrives while a pass
    is in progress returns a SKIPPED result immediately; the next
    periodic tick re-runs.
    """

    def __init__(
        self,
        reader: ChainReader,
        store: MirrorStore,
        readings_limit: int = 50,
        skip_missing_ids: bool = True,
    ) -> None:
        """
        Initialize reconciler.

        Args:
            reader: Chain reader
            store: Mirror store
            readings_limit: Recent readings pulled per farm on a pass
            skip_missing_ids: Skip not-found ids instead of aborting
        """
        self.reader = reader
        self.store = store
        self.readings_limit = readings_limit
        self.skip_missing_ids = skip_missing_ids

        self.state = SyncState.IDLE
        self.last_result: ReconcileResult | None = None
        self._in_progress = False
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def is_syncing(self) -> bool:
        return self._in_progress

    async def wait_idle(self) -> None:
        """Wait until no pass is in progress."""
        await self._idle.wait()

    async def reconcile(self) -> ReconcileResult:
        """
        Run one reconciliation pass.

        Returns:
            ReconcileResult; SKIPPED if a pass was already running,
            CAUGHT_UP if the cursor is at or past the chain head

        Raises:
            ReconciliationError: If the pass aborted. The cursor is not
                advanced, so the next pass starts from the same point.
        """
        # Check-and-set with no await in between
        if self._in_progress:
            logger.debug("[Reconciler] Pass already in progress, skipping")
            return ReconcileResult(status=ResultStatus.SKIPPED)

        self._in_progress = True
        self._idle.clear()
        self.state = SyncState.SYNCING
        started = time.monotonic()
        result = ReconcileResult(status=ResultStatus.FAILED)

        try:
            last_block = await self.store.get_cursor()
            head = await self.reader.get_block_number()
            result.from_block = last_block
            result.to_block = head

            if last_block >= head:
                logger.debug(
                    f"[Reconciler] Already caught up "
                    f"(cursor={last_block}, head={head})"
                )
                result.status = ResultStatus.CAUGHT_UP
            else:
                logger.info(
                    f"[Reconciler] Syncing from blockchain: "
                    f"{last_block} -> {head}"
                )
                await self._sync_all_farms(result)
                await self._sync_all_credits(result)
                await self.store.set_cursor(head)
                result.status = ResultStatus.SUCCESS

                logger.success(
                    f"[Reconciler] Sync completed at block {head}: "
                    f"{result.farms} farms, {result.readings_inserted} new readings, "
                    f"{result.credits} credits, {len(result.skipped)} skipped"
                )

            self.state = SyncState.SUCCESS
            return result

        except Exception as e:
            self.state = SyncState.FAILED
            result.status = ResultStatus.FAILED
            if is_transient(e):
                logger.warning(f"[Reconciler] Sync aborted by transient error: {e}")
            else:
                logger.exception(f"[Reconciler] Sync failed: {e}")
            await self._record_failure(e)
            raise ReconciliationError(f"Reconciliation failed: {e}", cause=e) from e

        finally:
            result.duration = time.monotonic() - started
            self.last_result = result
            self._in_progress = False
            self._idle.set()

    async def _record_failure(self, error: Exception) -> None:
        try:
            await self.store.record_sync_error(f"{type(error).__name__}: {error}")
        except Exception as e:
            logger.warning(f"[Reconciler] Could not record sync error: {e}")

    def _handle_missing(
        self, entity: str, entity_id: int, result: ReconcileResult
    ) -> None:
        if not self.skip_missing_ids:
            raise MissingRecordError(entity, entity_id)
        logger.warning(f"[Reconciler] {entity} {entity_id} not found on chain, skipping")
        result.skipped.append((entity, entity_id))

    async def _sync_all_farms(self, result: ReconcileResult) -> None:
        total = await self.reader.get_total_farms()
        for farm_id in range(1, total + 1):
            farm = await self.sync_farm(farm_id)
            if farm is None:
                self._handle_missing("farm", farm_id, result)
                continue
            result.farms += 1
            result.readings_inserted += await self.sync_recent_readings(
                farm_id, self.readings_limit
            )

    async def _sync_all_credits(self, result: ReconcileResult) -> None:
        total = await self.reader.get_total_credits()
        for token_id in range(1, total + 1):
            credit = await self.sync_credit(token_id)
            if credit is None:
                self._handle_missing("credit", token_id, result)
                continue
            result.credits += 1

    # Single-entity sync, shared with the live listener

    async def sync_farm(self, farm_id: int) -> FarmRecord | None:
        """
        Re-fetch one farm and upsert it.

        Returns:
            The mirrored record, or None if the id is not found on chain
        """
        farm = await self.reader.get_farm(farm_id)
        if farm is None:
            return None
        await self.store.upsert_farm(farm)
        return farm

    async def sync_recent_readings(self, farm_id: int, count: int) -> int:
        """
        Insert the most recent readings of a farm.

        Returns:
            Number of readings newly inserted (duplicates not counted)
        """
        readings = await self.reader.get_recent_readings(farm_id, count)
        inserted = 0
        for reading in readings:
            if await self.store.insert_reading(reading):
                inserted += 1
        return inserted

    async def sync_latest_reading(
        self, farm_id: int, reading_id: int | None = None
    ) -> bool:
        """
        Insert the most recent reading of a farm.

        Args:
            farm_id: Farm id
            reading_id: Reading id announced by the event, if known

        Returns:
            True if a new reading was inserted
        """
        readings = await self.reader.get_recent_readings(farm_id, 1)
        if not readings:
            logger.debug(f"[Reconciler] Farm {farm_id} has no readings yet")
            return False

        latest = readings[-1]
        if reading_id is not None and latest.reading_id != reading_id:
            # A newer reading landed; the announced one arrives with the next pass
            logger.debug(
                f"[Reconciler] Farm {farm_id}: latest reading is "
                f"{latest.reading_id}, event announced {reading_id}"
            )
        return await self.store.insert_reading(latest)

    async def sync_credit(self, token_id: int) -> CreditRecord | None:
        """
        Re-fetch one credit plus its metadata URI and upsert it.

        Returns:
            The mirrored record, or None if the token does not exist
        """
        credit = await self.reader.get_credit_details(token_id)
        if credit is None:
            return None
        token_uri = await self._fetch_token_uri(token_id)
        await self.store.upsert_credit(credit, token_uri)
        return credit

    async def _fetch_token_uri(self, token_id: int) -> str:
        try:
            return await self.reader.get_token_uri(token_id)
        except Exception as e:
            logger.debug(f"[Reconciler] tokenURI({token_id}) unavailable: {e}")
            return ""
