"""
Chain services module.

Read-only access to the CarbonSeal registry, token and oracle contracts
and a log-polling event subscription boundary.
"""

from .chain_reader import ChainReader
from .contract_manager import ContractManager
from .event_stream import ChainEventStream
from .events import (
    CarbonAdded,
    ChainEvent,
    CreditMinted,
    CreditRetired,
    EventHandler,
    EventType,
    FarmRegistered,
    decode_event,
)
from .records import CreditRecord, FarmRecord, FarmStats, ReadingRecord

__all__ = [
    "ChainReader",
    "ContractManager",
    "ChainEventStream",
    "ChainEvent",
    "EventHandler",
    "EventType",
    "FarmRegistered",
    "CarbonAdded",
    "CreditMinted",
    "CreditRetired",
    "decode_event",
    "FarmRecord",
    "ReadingRecord",
    "CreditRecord",
    "FarmStats",
]
