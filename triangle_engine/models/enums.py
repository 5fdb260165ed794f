"""
Ledger enumerations.
"""

from enum import Enum


class TransactionType(str, Enum):
    """Ledger entry types."""

    DEPOSIT = "deposit"  # Funding of a participant's tier entry
    PAYOUT = "payout"
    REFERRAL_BONUS = "referral_bonus"
    WITHDRAWAL = "withdrawal"


class TransactionStatus(str, Enum):
    """Ledger entry statuses."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CONSOLIDATED = "consolidated"


# Status graph: pending -> confirmed/rejected -> completed/consolidated
ALLOWED_STATUS_TRANSITIONS: dict[TransactionStatus, frozenset[TransactionStatus]] = {
    TransactionStatus.PENDING: frozenset(
        {TransactionStatus.CONFIRMED, TransactionStatus.REJECTED}
    ),
    TransactionStatus.CONFIRMED: frozenset(
        {TransactionStatus.COMPLETED, TransactionStatus.CONSOLIDATED}
    ),
    TransactionStatus.COMPLETED: frozenset({TransactionStatus.CONSOLIDATED}),
    TransactionStatus.REJECTED: frozenset(),
    TransactionStatus.CONSOLIDATED: frozenset(),
}


def can_transition(
    current: TransactionStatus | str, target: TransactionStatus | str
) -> bool:
    """Check whether a ledger entry may move from current to target status."""
    return TransactionStatus(target) in ALLOWED_STATUS_TRANSITIONS[
        TransactionStatus(current)
    ]
