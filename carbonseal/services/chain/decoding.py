"""
Decoders for raw contract return values.

web3 returns structs as positional tuples in ABI order. Each decoder
maps one such tuple to a typed record; the not-found sentinel (a
zeroed struct with id 0) is an explicit check that yields None.
"""

from collections.abc import Sequence
from typing import Any

from eth_utils import to_checksum_address

from carbonseal.config.constants import NOT_FOUND_ID

from .records import CreditRecord, FarmRecord, FarmStats, ReadingRecord


FARM_FIELDS = 11
READING_FIELDS = 7
CREDIT_FIELDS = 10
FARM_STATS_FIELDS = 6


def _check_arity(raw: Sequence[Any], expected: int, kind: str) -> None:
    if len(raw) != expected:
        raise ValueError(
            f"Malformed {kind}: expected {expected} fields, got {len(raw)}"
        )


def decode_farm(raw: Sequence[Any] | None) -> FarmRecord | None:
    """
    Decode a Farm struct.

    Args:
        raw: Tuple as returned by farms(id) or getFarmByAddress(addr)

    Returns:
        FarmRecord, or None for the not-found sentinel
    """
    if raw is None:
        return None
    _check_arity(raw, FARM_FIELDS, "farm")

    farm_id = int(raw[0])
    if farm_id == NOT_FOUND_ID:
        return None

    return FarmRecord(
        farm_id=farm_id,
        farmer=to_checksum_address(raw[1]),
        name=str(raw[2]),
        area=int(raw[3]),
        location=str(raw[4]),
        soil_type=str(raw[5]),
        total_carbon=int(raw[6]),
        carbon_debt=int(raw[7]),
        last_reading_timestamp=int(raw[8]),
        is_active=bool(raw[9]),
        created_at=int(raw[10]),
    )


def decode_reading(raw: Sequence[Any]) -> ReadingRecord:
    """Decode a CarbonReading struct."""
    _check_arity(raw, READING_FIELDS, "reading")
    return ReadingRecord(
        reading_id=int(raw[0]),
        farm_id=int(raw[1]),
        amount=int(raw[2]),
        source=str(raw[3]),
        verification_hash=str(raw[4]),
        timestamp=int(raw[5]),
        verified_by=to_checksum_address(raw[6]),
    )


def decode_readings(raw: Sequence[Sequence[Any]]) -> list[ReadingRecord]:
    """Decode getRecentReadings output, dropping zeroed slots."""
    readings = [decode_reading(item) for item in raw]
    return [r for r in readings if r.reading_id != NOT_FOUND_ID]


def decode_credit(raw: Sequence[Any] | None) -> CreditRecord | None:
    """
    Decode a CarbonCredit struct.

    Returns:
        CreditRecord, or None for the not-found sentinel
    """
    if raw is None:
        return None
    _check_arity(raw, CREDIT_FIELDS, "credit")

    token_id = int(raw[0])
    if token_id == NOT_FOUND_ID:
        return None

    return CreditRecord(
        token_id=token_id,
        farm_id=int(raw[1]),
        farmer=to_checksum_address(raw[2]),
        carbon_amount=int(raw[3]),
        methodology=str(raw[4]),
        vintage=int(raw[5]),
        minted_at=int(raw[6]),
        is_retired=bool(raw[7]),
        retired_at=int(raw[8]),
        retirement_reason=str(raw[9]),
    )


def decode_farm_stats(raw: Sequence[Any]) -> FarmStats:
    """Decode getFarmStats output."""
    _check_arity(raw, FARM_STATS_FIELDS, "farm stats")
    return FarmStats(
        total_carbon=int(raw[0]),
        carbon_debt=int(raw[1]),
        available_carbon=int(raw[2]),
        reading_count=int(raw[3]),
        credit_count=int(raw[4]),
        last_update=int(raw[5]),
    )
