"""
Exception handling utilities.

Defines the indexer's exception types and categorizes third-party
exceptions by handling strategy.
"""

from sqlalchemy.exc import DBAPIError, OperationalError
from web3.exceptions import Web3Exception


class IndexerError(Exception):
    """Base class for indexer errors."""
    pass


class ConfigurationError(IndexerError):
    """Raised when configuration is invalid. Fatal at startup."""
    pass


class MissingRecordError(IndexerError):
    """Raised when an id is not found and gaps are not tolerated."""

    def __init__(self, entity: str, entity_id: int) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found on chain")


class ReconciliationError(IndexerError):
    """Raised when a reconciliation pass aborts."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)


# Transient I/O - retried by the next backstop tick or event
TRANSIENT = (
    OperationalError,   # Database unreachable, connection dropped
    DBAPIError,         # Driver-level failures
    Web3Exception,      # Blockchain RPC errors
    ConnectionError,
    TimeoutError,
)


def is_transient(exc: BaseException) -> bool:
    """
    Check if exception is transient I/O.

    Args:
        exc: Exception to check

    Returns:
        True if the next tick is expected to succeed
    """
    return isinstance(exc, TRANSIENT)
