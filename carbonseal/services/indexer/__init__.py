"""
Indexer services.

Reconciliation, live event handling and lifecycle control.
"""

from .lifecycle import IndexerLifecycle, LifecycleState
from .live_listener import LiveListener
from .reconciler import ReconcileResult, Reconciler, ResultStatus, SyncState

__all__ = [
    "IndexerLifecycle",
    "LifecycleState",
    "LiveListener",
    "Reconciler",
    "ReconcileResult",
    "ResultStatus",
    "SyncState",
]
