"""
Sync Cursor model.

Tracks the highest block fully reconciled into the mirror.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from carbonseal.models.base import Base


class SyncCursor(Base):
    """
    Singleton reconciliation cursor.

    Used to:
    - Short-circuit a pass when the mirror is already caught up
    - Resume after restart
    - Surface the last failure for health checks
    """

    __tablename__ = "sync_cursor"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=False
    )

    last_block: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )
    last_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Error tracking
    last_error: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )
    error_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )
