"""
Participant model.

Represents a scheme participant: tier, upline and balances.
"""

import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from triangle_engine.models.base import Base
from triangle_engine.models.types import MoneyType


def generate_participant_id() -> str:
    """Generate a 32-char hex participant identifier."""
    return uuid.uuid4().hex


class Participant(Base):
    """Participant model - members placed into triangles."""

    __tablename__ = "participants"
    __table_args__ = (
        CheckConstraint(
            "balance >= 0", name="check_participant_balance_non_negative"
        ),
        CheckConstraint(
            "total_earned >= 0",
            name="check_participant_total_earned_non_negative",
        ),
    )

    # Primary key
    id: Mapped[str] = mapped_column(
        String(32), primary_key=True, default=generate_participant_id
    )

    # Identity
    display_name: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    referral_code: Mapped[str | None] = mapped_column(
        String(40), nullable=True, unique=True, index=True
    )

    # Plan tier (PlanType value)
    tier: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    # Referral
    upline_id: Mapped[str | None] = mapped_column(
        ForeignKey("participants.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Balances
    balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total_earned: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Status
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    funded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Timestamps
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
            f"<Participant(id={self.id}, display_name={self.display_name!r}, "
            f"tier={self.tier})>"
        )
