"""
Datetime utilities.

Provides timezone-aware datetime functions.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def from_chain_timestamp(seconds: int) -> datetime:
    """
    Convert a uint256 unix timestamp from a contract to an aware datetime.

    Args:
        seconds: Seconds since epoch as returned by the contract

    Returns:
        Datetime in UTC
    """
    return datetime.fromtimestamp(int(seconds), tz=UTC)
