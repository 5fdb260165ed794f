"""
Transaction model.

Ledger entries for funding, payouts, referral bonuses and withdrawals.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from triangle_engine.models.base import Base
from triangle_engine.models.enums import TransactionStatus
from triangle_engine.models.types import MoneyType


class Transaction(Base):
    """
    Ledger entry.

    Attributes:
        id: Primary key
        participant_id: Participant credited or debited
        type: TransactionType value
        amount: Entry amount
        status: TransactionStatus value
        reference: Human-readable reference (DP.../WD.../RB...)
        description: Free text description
        details: Structured key-value payload (string values)
        confirmed_at / rejected_at / completed_at: Transition timestamps
        rejection_reason: Why the entry was rejected
    """

    __tablename__ = "transactions"
    __table_args__ = (
        Index("idx_transactions_participant_status", "participant_id", "status"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    participant_id: Mapped[str] = mapped_column(
        ForeignKey("participants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=TransactionStatus.PENDING.value,
        nullable=False,
        index=True,
    )

    reference: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[dict[str, str] | None] = mapped_column(JSON, nullable=True)

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
    confirmed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    rejected_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Transaction(id={self.id}, type={self.type}, "
            f"amount={self.amount}, status={self.status})>"
        )
