"""
Indexer constants.
"""

# Contracts return a zeroed struct for unknown ids
NOT_FOUND_ID = 0

# Singleton row id of the sync cursor
SYNC_CURSOR_ID = 1

# Oracle price fallback: $50 with 8 decimals
DEFAULT_CARBON_PRICE = 5_000_000_000

# uint256 max is 78 decimal digits
UINT256_DIGITS = 78

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
