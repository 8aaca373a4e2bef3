"""
Carbon Reading model.

Append-only record of a verified carbon reading.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from carbonseal.models.base import Base
from carbonseal.models.types import Uint256


class CarbonReading(Base):
    """
    Carbon reading recorded against a farm.

    Never mutated or deleted once written.
    """

    __tablename__ = "carbon_readings"

    id: Mapped[int] = mapped_column(
        BigInteger, primary_key=True, autoincrement=False
    )
    farm_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("farms.id"), nullable=False, index=True
    )

    amount: Mapped[int] = mapped_column(Uint256, nullable=False)
    source: Mapped[str] = mapped_column(
        Text, nullable=False
    )  # sensor, satellite, drone
    verification_hash: Mapped[str] = mapped_column(
        Text, nullable=False
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    verified_by: Mapped[str] = mapped_column(String(42), nullable=False)

    indexed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CarbonReading(id={self.id}, farm_id={self.farm_id}, "
            f"amount={self.amount}, source={self.source})>"
        )
