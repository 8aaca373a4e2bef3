"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from carbonseal.models.base import Base
from carbonseal.models.carbon_credit import CarbonCredit
from carbonseal.models.carbon_reading import CarbonReading
from carbonseal.models.farm import Farm
from carbonseal.models.sync_cursor import SyncCursor
from carbonseal.models.types import Uint256

__all__ = [
    "Base",
    "Farm",
    "CarbonReading",
    "CarbonCredit",
    "SyncCursor",
    "Uint256",
]
