"""
Standard type definitions for database models.

On-chain quantities are uint256 and can exceed any native numeric
column. They are stored as decimal strings and surfaced as Python int,
so no dialect ever round-trips them through floating point.
"""

from typing import Any

from sqlalchemy import String
from sqlalchemy.types import TypeDecorator

from carbonseal.config.constants import UINT256_DIGITS


class Uint256(TypeDecorator):
    """Unsigned big integer stored as a base-10 string."""

    impl = String(UINT256_DIGITS)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> str | None:
        if value is None:
            return None
        # bool is an int subclass and float loses precision
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(
                f"Uint256 column expects int, got {type(value).__name__}"
            )
        if value < 0:
            raise ValueError(f"Uint256 column cannot store negative value {value}")
        return str(value)

    def process_result_value(self, value: Any, dialect: Any) -> int | None:
        if value is None:
            return None
        return int(value)
