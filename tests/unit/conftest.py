"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- In-memory SQLite mirror store
- Record factories for farms, readings and credits
- FakeChainReader standing in for the contracts
"""

import asyncio
from collections import defaultdict

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from carbonseal.config.database import create_session_maker
from carbonseal.services.chain.records import CreditRecord, FarmRecord, ReadingRecord
from carbonseal.services.mirror_store import MirrorStore

BASE_TIMESTAMP = 1_700_000_000


@pytest_asyncio.fixture
async def engine():
    """
    In-memory SQLite engine shared by all sessions of one test.

    Returns:
        AsyncEngine: Engine bound to a single static connection
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Enforce foreign keys like PostgreSQL does
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def store(engine):
    """
    Mirror store with the schema created.

    Returns:
        MirrorStore: Store over the in-memory database
    """
    store = MirrorStore(create_session_maker(engine))
    await store.create_schema(engine)
    return store


@pytest.fixture
def make_farm(farmer_address):
    """Factory for FarmRecord with sensible defaults."""

    def _make(farm_id: int = 1, **overrides) -> FarmRecord:
        values = {
            "farm_id": farm_id,
            "farmer": farmer_address,
            "name": f"Farm {farm_id}",
            "area": 120,
            "location": "Iowa, US",
            "soil_type": "loam",
            "total_carbon": 1_000,
            "carbon_debt": 250,
            "last_reading_timestamp": BASE_TIMESTAMP + farm_id * 100 + 50,
            "is_active": True,
            "created_at": BASE_TIMESTAMP + farm_id * 100,
        }
        values.update(overrides)
        return FarmRecord(**values)

    return _make


@pytest.fixture
def make_reading(oracle_signer_address):
    """Factory for ReadingRecord with sensible defaults."""

    def _make(reading_id: int = 1, farm_id: int = 1, **overrides) -> ReadingRecord:
        values = {
            "reading_id": reading_id,
            "farm_id": farm_id,
            "amount": 100 * reading_id,
            "source": "sensor",
            "verification_hash": f"0x{reading_id:064x}",
            "timestamp": BASE_TIMESTAMP + reading_id * 10,
            "verified_by": oracle_signer_address,
        }
        values.update(overrides)
        return ReadingRecord(**values)

    return _make


@pytest.fixture
def make_credit(farmer_address):
    """Factory for CreditRecord with sensible defaults."""

    def _make(token_id: int = 1, farm_id: int = 1, **overrides) -> CreditRecord:
        values = {
            "token_id": token_id,
            "farm_id": farm_id,
            "farmer": farmer_address,
            "carbon_amount": 50,
            "methodology": "VM0042",
            "vintage": BASE_TIMESTAMP,
            "minted_at": BASE_TIMESTAMP + token_id * 100,
            "is_retired": False,
            "retired_at": 0,
            "retirement_reason": "",
        }
        values.update(overrides)
        return CreditRecord(**values)

    return _make


class FakeEventStream:
    """Records start() calls made by the listener."""

    def __init__(self) -> None:
        self.started_from: list[int | None] = []
        self.closed = 0

    def start(self, from_block: int | None = None) -> None:
        self.started_from.append(from_block)


class FakeChainReader:
    """
    In-memory stand-in for ChainReader.

    Farms, readings and credits are plain dicts; ids missing from them
    behave like the contracts' not-found sentinel. Set `fail_on` to a
    method name to make that call raise ConnectionError.
    """

    def __init__(self) -> None:
        self.head = 100
        self.farm_count = 0
        self.credit_count = 0
        self.farms: dict[int, FarmRecord] = {}
        self.readings: dict[int, list[ReadingRecord]] = defaultdict(list)
        self.credits: dict[int, CreditRecord] = {}
        self.token_uris: dict[int, str] = {}
        self.connected = True
        self.fail_on: set[str] = set()
        self.calls: list[tuple] = []
        self.subscriptions: dict = defaultdict(list)
        self.events = FakeEventStream()

        # Optional gate: a reconciliation pass blocks on get_block_number
        self.block_gate: asyncio.Event | None = None

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise ConnectionError(f"{name} failed")

    def add_farm(self, farm: FarmRecord, readings: list[ReadingRecord] = ()) -> None:
        self.farms[farm.farm_id] = farm
        self.farm_count = max(self.farm_count, farm.farm_id)
        self.readings[farm.farm_id].extend(readings)

    def add_credit(self, credit: CreditRecord, token_uri: str = "") -> None:
        self.credits[credit.token_id] = credit
        self.credit_count = max(self.credit_count, credit.token_id)
        self.token_uris[credit.token_id] = token_uri or f"ipfs://credit/{credit.token_id}"

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    async def get_block_number(self) -> int:
        self._record("get_block_number")
        if self.block_gate is not None:
            await self.block_gate.wait()
        return self.head

    async def is_connected(self) -> bool:
        return self.connected

    async def get_total_farms(self) -> int:
        self._record("get_total_farms")
        return self.farm_count

    async def get_farm(self, farm_id: int) -> FarmRecord | None:
        self._record("get_farm", farm_id)
        return self.farms.get(farm_id)

    async def get_recent_readings(self, farm_id: int, count: int) -> list[ReadingRecord]:
        self._record("get_recent_readings", farm_id, count)
        return list(self.readings.get(farm_id, []))[-count:]

    async def get_total_credits(self) -> int:
        self._record("get_total_credits")
        return self.credit_count

    async def get_credit_details(self, token_id: int) -> CreditRecord | None:
        self._record("get_credit_details", token_id)
        return self.credits.get(token_id)

    async def get_token_uri(self, token_id: int) -> str:
        self._record("get_token_uri", token_id)
        if token_id not in self.token_uris:
            raise ValueError(f"execution reverted: no URI for {token_id}")
        return self.token_uris[token_id]

    def subscribe(self, event_type, handler) -> None:
        self.subscriptions[event_type].append(handler)

    async def remove_all_listeners(self) -> None:
        self.subscriptions.clear()
        self.events.closed += 1


@pytest.fixture
def fake_reader():
    """
    Create an empty FakeChainReader at head block 100.

    Returns:
        FakeChainReader: Chain stand-in for reconciler tests
    """
    return FakeChainReader()
