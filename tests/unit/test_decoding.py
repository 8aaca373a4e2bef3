"""
Tests for contract return value and event log decoding.
"""

import pytest

from carbonseal.services.chain.decoding import (
    decode_credit,
    decode_farm,
    decode_farm_stats,
    decode_reading,
    decode_readings,
)
from carbonseal.services.chain.events import (
    CarbonAdded,
    CreditRetired,
    EventType,
    decode_event,
)

FARMER = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
ZERO = "0x0000000000000000000000000000000000000000"


class TestDecodeFarm:
    """Farm struct decoding."""

    def test_decodes_all_fields(self):
        raw = (5, FARMER.lower(), "Field", 40, "Kenya", "clay", 900, 300, 1_700_000_050, True, 1_700_000_000)

        farm = decode_farm(raw)

        assert farm.farm_id == 5
        assert farm.farmer == FARMER
        assert farm.soil_type == "clay"
        assert farm.available_carbon == 600
        assert farm.is_active is True

    def test_sentinel_is_none(self):
        raw = (0, ZERO, "", 0, "", "", 0, 0, 0, False, 0)
        assert decode_farm(raw) is None

    def test_none_is_none(self):
        assert decode_farm(None) is None

    def test_wrong_arity_raises(self):
        with pytest.raises(ValueError, match="expected 11 fields"):
            decode_farm((1, FARMER, "Field"))

    def test_available_carbon_clamps_at_zero(self):
        raw = (1, FARMER, "Field", 40, "Kenya", "clay", 100, 400, 0, True, 1)
        assert decode_farm(raw).available_carbon == 0


class TestDecodeReadings:
    """Reading struct decoding."""

    def test_decode_reading(self):
        reading = decode_reading((9, 2, 2**70, "satellite", "0xfeed", 1_700_000_000, FARMER.lower()))

        assert reading.reading_id == 9
        assert reading.amount == 2**70
        assert reading.verified_by == FARMER

    def test_zeroed_slots_dropped(self):
        raw = [
            (1, 1, 10, "sensor", "0x1", 1, FARMER),
            (0, 0, 0, "", "", 0, ZERO),
        ]
        assert [r.reading_id for r in decode_readings(raw)] == [1]


class TestDecodeCredit:
    """Credit struct decoding."""

    def test_retired_credit(self):
        raw = (3, 1, FARMER, 50, "VM0042", 1_672_531_200, 1_700_000_000, True, 1_700_100_000, "Scope 1 offset")

        credit = decode_credit(raw)

        assert credit.token_id == 3
        assert credit.is_retired is True
        assert credit.retirement_reason == "Scope 1 offset"

    def test_sentinel_is_none(self):
        assert decode_credit((0, 0, ZERO, 0, "", 0, 0, False, 0, "")) is None

    def test_farm_stats(self):
        stats = decode_farm_stats((1000, 250, 750, 12, 3, 1_700_000_000))
        assert stats.available_carbon == 750
        assert stats.reading_count == 12


class TestDecodeEvent:
    """Event log decoding."""

    def test_carbon_added(self):
        log = {
            "args": {
                "farmId": 1,
                "readingId": 8,
                "amount": 120,
                "source": "drone",
                "verificationHash": "0xbeef",
            },
            "blockNumber": 77,
            "logIndex": 4,
            "transactionHash": bytes.fromhex("cd" * 32),
        }

        event = decode_event(EventType.CARBON_ADDED, log)

        assert isinstance(event, CarbonAdded)
        assert (event.block_number, event.log_index) == (77, 4)
        assert event.reading_id == 8
        assert event.tx_hash == "cd" * 32

    def test_credit_retired_checksums_address(self):
        log = {
            "args": {"tokenId": 2, "retiredBy": FARMER.lower(), "reason": "Offset"},
            "blockNumber": 80,
            "logIndex": 0,
            "transactionHash": "0x01",
        }

        event = decode_event(EventType.CREDIT_RETIRED, log)

        assert isinstance(event, CreditRetired)
        assert event.retired_by == FARMER

    def test_missing_argument_raises(self):
        log = {"args": {"tokenId": 2}, "blockNumber": 1, "logIndex": 0}
        with pytest.raises(KeyError):
            decode_event(EventType.CREDIT_MINTED, log)

    def test_event_contract(self):
        assert EventType.FARM_REGISTERED.contract == "registry"
        assert EventType.CARBON_ADDED.contract == "registry"
        assert EventType.CREDIT_MINTED.contract == "token"
        assert EventType.CREDIT_RETIRED.contract == "token"
