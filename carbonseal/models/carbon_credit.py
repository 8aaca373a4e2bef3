"""
Carbon Credit model.

Mirror of a carbon credit NFT minted by the token contract.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from carbonseal.models.base import Base
from carbonseal.models.types import Uint256


class CarbonCredit(Base):
    """
    Carbon credit token.

    Lifecycle: minted, then optionally retired once. Re-synced via
    upsert, so the row always holds the latest on-chain state.
    """

    __tablename__ = "carbon_credits"

    token_id: Mapped[int] = mapped_column(
        BigInteger, primary_key=True, autoincrement=False
    )
    farm_id: Mapped[int] = mapped_column(
        BigInteger, nullable=False, index=True
    )
    farmer: Mapped[str] = mapped_column(
        String(42), nullable=False, index=True
    )

    carbon_amount: Mapped[int] = mapped_column(Uint256, nullable=False)
    methodology: Mapped[str] = mapped_column(Text, nullable=False)
    vintage: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    minted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )

    # Retirement (null until retired)
    is_retired: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, index=True
    )
    retired_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    retirement_reason: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )

    # Off-chain metadata, empty when tokenURI is unavailable
    token_uri: Mapped[str] = mapped_column(
        Text, nullable=False, default=""
    )

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
            f"<CarbonCredit(token_id={self.token_id}, farm_id={self.farm_id}, "
            f"amount={self.carbon_amount}, retired={self.is_retired})>"
        )
