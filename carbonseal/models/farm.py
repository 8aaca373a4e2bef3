"""
Farm model.

Mirror of a farm registered in the registry contract.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from carbonseal.models.base import Base
from carbonseal.models.types import Uint256


class Farm(Base):
    """
    Registered farm.

    Fields reflect the latest on-chain snapshot and are overwritten
    on every re-sync. Rows are never deleted.
    """

    __tablename__ = "farms"

    # Natural key assigned by the registry in registration order
    id: Mapped[int] = mapped_column(
        BigInteger, primary_key=True, autoincrement=False
    )

    # Owner address (normalized to lowercase)
    farmer: Mapped[str] = mapped_column(
        String(42), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    area: Mapped[int] = mapped_column(Uint256, nullable=False)
    location: Mapped[str] = mapped_column(Text, nullable=False, default="")
    soil_type: Mapped[str] = mapped_column(
        Text, nullable=False, default=""
    )

    # Carbon accounting
    total_carbon: Mapped[int] = mapped_column(Uint256, nullable=False)
    carbon_debt: Mapped[int] = mapped_column(Uint256, nullable=False)

    last_reading_timestamp: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )

    # Chain creation time
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )

    # Mirror bookkeeping
    indexed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Farm(id={self.id}, name={self.name!r}, "
            f"total_carbon={self.total_carbon}, active={self.is_active})>"
        )

    @property
    def available_carbon(self) -> int:
        """Carbon not yet backing a credit: total minus debt."""
        return max(0, self.total_carbon - self.carbon_debt)
