"""
Chain event types and log decoding.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from eth_utils import to_checksum_address


class EventType(str, Enum):
    """Contract events the indexer subscribes to."""

    FARM_REGISTERED = "FarmRegistered"
    CARBON_ADDED = "CarbonAdded"
    CREDIT_MINTED = "CreditMinted"
    CREDIT_RETIRED = "CreditRetired"

    @property
    def contract(self) -> str:
        """Name of the emitting contract: registry or token."""
        if self in (EventType.FARM_REGISTERED, EventType.CARBON_ADDED):
            return "registry"
        return "token"


@dataclass(frozen=True)
class ChainEvent:
    """Common log position of every decoded event."""

    block_number: int
    log_index: int
    tx_hash: str


@dataclass(frozen=True)
class FarmRegistered(ChainEvent):
    farmer: str
    farm_id: int
    name: str
    area: int
    location: str


@dataclass(frozen=True)
class CarbonAdded(ChainEvent):
    farm_id: int
    reading_id: int
    amount: int
    source: str
    verification_hash: str


@dataclass(frozen=True)
class CreditMinted(ChainEvent):
    token_id: int
    farmer: str
    farm_id: int
    carbon_amount: int
    methodology: str


@dataclass(frozen=True)
class CreditRetired(ChainEvent):
    token_id: int
    retired_by: str
    reason: str


EventHandler = Callable[[ChainEvent], Awaitable[None]]


def _position(log: Any) -> dict[str, Any]:
    tx_hash = log.get("transactionHash", b"")
    return {
        "block_number": int(log.get("blockNumber", 0)),
        "log_index": int(log.get("logIndex", 0)),
        "tx_hash": tx_hash.hex() if isinstance(tx_hash, bytes) else str(tx_hash),
    }


def decode_event(event_type: EventType, log: Any) -> ChainEvent:
    """
    Decode a web3 event log into a typed event record.

    Args:
        event_type: Which event the log belongs to
        log: Log entry as returned by ContractEvent.get_logs

    Returns:
        Typed event

    Raises:
        KeyError: If the log lacks an expected argument
    """
    args = log["args"]
    position = _position(log)

    if event_type is EventType.FARM_REGISTERED:
        return FarmRegistered(
            **position,
            farmer=to_checksum_address(args["farmer"]),
            farm_id=int(args["farmId"]),
            name=str(args["name"]),
            area=int(args["area"]),
            location=str(args["location"]),
        )
    if event_type is EventType.CARBON_ADDED:
        return CarbonAdded(
            **position,
            farm_id=int(args["farmId"]),
            reading_id=int(args["readingId"]),
            amount=int(args["amount"]),
            source=str(args["source"]),
            verification_hash=str(args["verificationHash"]),
        )
    if event_type is EventType.CREDIT_MINTED:
        return CreditMinted(
            **position,
            token_id=int(args["tokenId"]),
            farmer=to_checksum_address(args["farmer"]),
            farm_id=int(args["farmId"]),
            carbon_amount=int(args["carbonAmount"]),
            methodology=str(args["methodology"]),
        )
    if event_type is EventType.CREDIT_RETIRED:
        return CreditRetired(
            **position,
            token_id=int(args["tokenId"]),
            retired_by=to_checksum_address(args["retiredBy"]),
            reason=str(args["reason"]),
        )
    raise ValueError(f"Unsupported event type: {event_type}")
