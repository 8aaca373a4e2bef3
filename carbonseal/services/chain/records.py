"""
Typed records decoded from contract return values.

All quantities are Python int (arbitrary precision); timestamps are
unix seconds exactly as the contracts return them.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class FarmRecord:
    farm_id: int
    farmer: str
    name: str
    area: int
    location: str
    soil_type: str
    total_carbon: int
    carbon_debt: int
    last_reading_timestamp: int
    is_active: bool
    created_at: int

    @property
    def available_carbon(self) -> int:
        """Total carbon not yet backing a credit."""
        return max(0, self.total_carbon - self.carbon_debt)


@dataclass(frozen=True)
class ReadingRecord:
    reading_id: int
    farm_id: int
    amount: int
    source: str
    verification_hash: str
    timestamp: int
    verified_by: str


@dataclass(frozen=True)
class CreditRecord:
    token_id: int
    farm_id: int
    farmer: str
    carbon_amount: int
    methodology: str
    vintage: int
    minted_at: int
    is_retired: bool
    retired_at: int
    retirement_reason: str


@dataclass(frozen=True)
class FarmStats:
    total_carbon: int
    carbon_debt: int
    available_carbon: int
    reading_count: int
    credit_count: int
    last_update: int
