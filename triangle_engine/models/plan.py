"""
Plan model.

Runtime plan catalog: entry price, payout and referral bonus per tier.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from triangle_engine.models.base import Base
from triangle_engine.models.types import MoneyType


class Plan(Base):
    """Plan catalog entry for one tier."""

    __tablename__ = "plans"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Tier name: King, Queen, Bishop, Knight
    name: Mapped[str] = mapped_column(
        String(20), unique=True, index=True, nullable=False
    )

    entry_price: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    payout_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    referral_bonus_amount: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False
    )

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
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
            f"<Plan(name={self.name}, price={self.entry_price}, "
            f"payout={self.payout_amount})>"
        )
