"""
Tests for the reconciler.

Runs passes against a FakeChainReader and an in-memory mirror.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from carbonseal.services.indexer.reconciler import (
    Reconciler,
    ResultStatus,
    SyncState,
)
from carbonseal.utils.exceptions import MissingRecordError, ReconciliationError


@pytest.fixture
def reconciler(fake_reader, store):
    """Reconciler with the default (skipping) gap policy."""
    return Reconciler(fake_reader, store, readings_limit=50)


def seed_chain(reader, make_farm, make_reading, make_credit):
    """Two farms with readings and two credits."""
    reader.add_farm(make_farm(1), [make_reading(1, 1), make_reading(2, 1)])
    reader.add_farm(make_farm(2), [make_reading(3, 2)])
    reader.add_credit(make_credit(1, farm_id=1))
    reader.add_credit(make_credit(2, farm_id=2))


class TestFullPass:
    """A pass mirrors everything and advances the cursor."""

    @pytest.mark.asyncio
    async def test_mirrors_chain_state(
        self, reconciler, fake_reader, store, make_farm, make_reading, make_credit
    ):
        seed_chain(fake_reader, make_farm, make_reading, make_credit)

        result = await reconciler.reconcile()

        assert result.status is ResultStatus.SUCCESS
        assert (result.from_block, result.to_block) == (0, 100)
        assert (result.farms, result.readings_inserted, result.credits) == (2, 3, 2)
        assert result.skipped == []
        assert reconciler.state is SyncState.SUCCESS

        assert await store.get_cursor() == 100
        assert (await store.get_farms()).total == 2
        assert (await store.get_readings_by_farm(1)).total == 2
        credit = await store.get_credit_by_token_id(2)
        assert credit.token_uri == "ipfs://credit/2"

    @pytest.mark.asyncio
    async def test_readings_limit_is_forwarded(
        self, fake_reader, store, make_farm
    ):
        """Each farm pulls at most readings_limit recent readings."""
        fake_reader.add_farm(make_farm(1))
        reconciler = Reconciler(fake_reader, store, readings_limit=5)

        await reconciler.reconcile()

        assert ("get_recent_readings", 1, 5) in fake_reader.calls

    @pytest.mark.asyncio
    async def test_cursor_is_monotonic(self, reconciler, fake_reader, store, make_farm):
        """Successive passes move the cursor to each new head."""
        fake_reader.add_farm(make_farm(1))

        await reconciler.reconcile()
        assert await store.get_cursor() == 100

        fake_reader.head = 150
        result = await reconciler.reconcile()
        assert result.from_block == 100
        assert await store.get_cursor() == 150

    @pytest.mark.asyncio
    async def test_replayed_readings_are_not_counted(
        self, reconciler, fake_reader, make_farm, make_reading
    ):
        """A second pass over the same readings inserts nothing new."""
        fake_reader.add_farm(make_farm(1), [make_reading(1), make_reading(2)])
        await reconciler.reconcile()

        fake_reader.head = 101
        result = await reconciler.reconcile()

        assert result.readings_inserted == 0
        assert result.farms == 1

    @pytest.mark.asyncio
    async def test_missing_token_uri_stored_as_empty(
        self, reconciler, fake_reader, store, make_credit
    ):
        """A reverting tokenURI does not fail the pass."""
        fake_reader.add_credit(make_credit(1))
        del fake_reader.token_uris[1]

        result = await reconciler.reconcile()

        assert result.status is ResultStatus.SUCCESS
        credit = await store.get_credit_by_token_id(1)
        assert credit.token_uri == ""


class TestCaughtUp:
    """No work when the cursor is at or past the head."""

    @pytest.mark.asyncio
    async def test_short_circuit_performs_no_writes(
        self, reconciler, fake_reader, store, make_farm
    ):
        fake_reader.add_farm(make_farm(1))
        await store.set_cursor(100)
        store.upsert_farm = AsyncMock()
        store.set_cursor = AsyncMock()

        result = await reconciler.reconcile()

        assert result.status is ResultStatus.CAUGHT_UP
        assert result.ok
        assert fake_reader.count("get_total_farms") == 0
        store.upsert_farm.assert_not_awaited()
        store.set_cursor.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cursor_ahead_of_head(self, reconciler, fake_reader, store):
        """A cursor beyond the head (reorg or RPC lag) is also caught up."""
        await store.set_cursor(500)

        result = await reconciler.reconcile()

        assert result.status is ResultStatus.CAUGHT_UP
        assert await store.get_cursor() == 500


class TestMissingIds:
    """Gap policy for ids that come back as the not-found sentinel."""

    @pytest.mark.asyncio
    async def test_sparse_farm_is_skipped(self, reconciler, fake_reader, store, make_farm):
        """Farm 2 returns the sentinel, only farm 1 is mirrored."""
        fake_reader.add_farm(make_farm(1))
        fake_reader.farm_count = 2

        result = await reconciler.reconcile()

        assert result.status is ResultStatus.SUCCESS
        assert result.skipped == [("farm", 2)]
        assert await store.get_farm_by_id(1) is not None
        assert await store.get_farm_by_id(2) is None
        assert fake_reader.count("get_recent_readings") == 1
        assert await store.get_cursor() == 100

    @pytest.mark.asyncio
    async def test_sparse_credit_is_skipped(self, reconciler, fake_reader, store, make_credit):
        fake_reader.add_credit(make_credit(2))

        result = await reconciler.reconcile()

        assert result.skipped == [("credit", 1)]
        assert result.credits == 1

    @pytest.mark.asyncio
    async def test_strict_policy_aborts(self, fake_reader, store, make_farm):
        """With skipping disabled a missing id fails the pass."""
        fake_reader.add_farm(make_farm(1))
        fake_reader.farm_count = 2
        reconciler = Reconciler(fake_reader, store, skip_missing_ids=False)

        with pytest.raises(ReconciliationError) as exc_info:
            await reconciler.reconcile()

        assert isinstance(exc_info.value.cause, MissingRecordError)
        assert exc_info.value.cause.entity_id == 2
        assert await store.get_cursor() == 0


class TestFailures:
    """Aborted passes leave the cursor alone and record the error."""

    @pytest.mark.asyncio
    async def test_mid_run_error_keeps_cursor(
        self, reconciler, fake_reader, store, make_farm, make_credit
    ):
        await store.set_cursor(40)
        fake_reader.add_farm(make_farm(1))
        fake_reader.add_credit(make_credit(1))
        fake_reader.fail_on.add("get_credit_details")

        with pytest.raises(ReconciliationError) as exc_info:
            await reconciler.reconcile()

        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert reconciler.state is SyncState.FAILED
        assert reconciler.last_result.status is ResultStatus.FAILED

        state = await store.get_cursor_state()
        assert state.last_block == 40
        assert state.error_count == 1
        assert "get_credit_details failed" in state.last_error

        # Writes before the failure are kept; the next pass replays them
        assert await store.get_farm_by_id(1) is not None

    @pytest.mark.asyncio
    async def test_next_pass_recovers(self, reconciler, fake_reader, store, make_farm):
        fake_reader.add_farm(make_farm(1))
        fake_reader.fail_on.add("get_total_farms")
        with pytest.raises(ReconciliationError):
            await reconciler.reconcile()

        fake_reader.fail_on.clear()
        result = await reconciler.reconcile()

        assert result.status is ResultStatus.SUCCESS
        state = await store.get_cursor_state()
        assert state.last_block == 100
        assert state.error_count == 0

    @pytest.mark.asyncio
    async def test_error_recording_is_best_effort(self, reconciler, fake_reader, store):
        """A failing error write does not mask the original failure."""
        fake_reader.fail_on.add("get_block_number")
        store.record_sync_error = AsyncMock(side_effect=RuntimeError("db down"))

        with pytest.raises(ReconciliationError) as exc_info:
            await reconciler.reconcile()

        assert isinstance(exc_info.value.cause, ConnectionError)
        store.record_sync_error.assert_awaited_once()
        assert not reconciler.is_syncing


class TestMutualExclusion:
    """Only one pass runs at a time."""

    @pytest.mark.asyncio
    async def test_concurrent_trigger_is_skipped(self, reconciler, fake_reader, make_farm):
        fake_reader.add_farm(make_farm(1))
        fake_reader.block_gate = asyncio.Event()

        first = asyncio.create_task(reconciler.reconcile())
        await asyncio.sleep(0)
        assert reconciler.is_syncing
        assert reconciler.state is SyncState.SYNCING

        second = await reconciler.reconcile()
        assert second.status is ResultStatus.SKIPPED

        fake_reader.block_gate.set()
        result = await first

        assert result.status is ResultStatus.SUCCESS
        assert fake_reader.count("get_block_number") == 1

    @pytest.mark.asyncio
    async def test_wait_idle(self, reconciler, fake_reader):
        fake_reader.block_gate = asyncio.Event()
        task = asyncio.create_task(reconciler.reconcile())
        await asyncio.sleep(0)

        waiter = asyncio.create_task(reconciler.wait_idle())
        await asyncio.sleep(0)
        assert not waiter.done()

        fake_reader.block_gate.set()
        await task
        await asyncio.wait_for(waiter, timeout=1)


class TestSingleEntitySync:
    """Helpers shared with the live listener."""

    @pytest.mark.asyncio
    async def test_sync_farm_missing(self, reconciler, store):
        assert await reconciler.sync_farm(9) is None
        assert await store.get_farm_by_id(9) is None

    @pytest.mark.asyncio
    async def test_sync_latest_reading(self, reconciler, fake_reader, store, make_farm, make_reading):
        fake_reader.add_farm(make_farm(1), [make_reading(1), make_reading(2)])
        await store.upsert_farm(make_farm(1))

        assert await reconciler.sync_latest_reading(1, 2) is True
        assert await reconciler.sync_latest_reading(1, 2) is False

        page = await store.get_readings_by_farm(1)
        assert [r.id for r in page.data] == [2]

    @pytest.mark.asyncio
    async def test_sync_latest_reading_newer_than_event(
        self, reconciler, fake_reader, store, make_farm, make_reading
    ):
        """If a newer reading landed, the newest one is inserted."""
        fake_reader.add_farm(make_farm(1), [make_reading(1), make_reading(2)])
        await store.upsert_farm(make_farm(1))

        assert await reconciler.sync_latest_reading(1, reading_id=1) is True

        page = await store.get_readings_by_farm(1)
        assert [r.id for r in page.data] == [2]

    @pytest.mark.asyncio
    async def test_sync_latest_reading_without_readings(self, reconciler, fake_reader, make_farm):
        fake_reader.add_farm(make_farm(1))
        assert await reconciler.sync_latest_reading(1, 1) is False

    @pytest.mark.asyncio
    async def test_concurrent_mint_during_pass(
        self, reconciler, fake_reader, store, make_credit
    ):
        """An event-driven write interleaved with a pass leaves a complete row."""
        fake_reader.add_credit(make_credit(1), "ipfs://one")
        fake_reader.block_gate = asyncio.Event()

        pass_task = asyncio.create_task(reconciler.reconcile())
        await asyncio.sleep(0)

        # Token 2 is minted while the pass is running
        fake_reader.add_credit(make_credit(2, carbon_amount=75), "ipfs://two")
        await reconciler.sync_credit(2)

        fake_reader.block_gate.set()
        await pass_task

        credit = await store.get_credit_by_token_id(2)
        assert credit.carbon_amount == 75
        assert credit.token_uri == "ipfs://two"
        assert credit.methodology == "VM0042"
        assert credit.farm_id == 1
