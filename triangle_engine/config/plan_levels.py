"""
Single source of truth for plan (tier) defaults.

The runtime catalog is stored in the ``plans`` table; the values below are
what ``scripts/seed_plans.py`` writes and what tests seed.
"""

from decimal import Decimal
from enum import Enum
from typing import NamedTuple


class PlanType(str, Enum):
    """Plan tiers."""

    KING = "King"
    QUEEN = "Queen"
    BISHOP = "Bishop"
    KNIGHT = "Knight"


class PlanDefaults(NamedTuple):
    """Default catalog entry for a tier."""

    plan_type: PlanType
    entry_price: Decimal  # Funding amount to join
    payout_amount: Decimal  # Paid to the root occupant on completion
    referral_bonus_amount: Decimal  # Paid to the upline on funding
    description: str


PLAN_LEVELS: dict[PlanType, PlanDefaults] = {
    PlanType.KING: PlanDefaults(
        plan_type=PlanType.KING,
        entry_price=Decimal("100"),
        payout_amount=Decimal("400"),
        referral_bonus_amount=Decimal("10"),
        description="Premium plan with highest returns",
    ),
    PlanType.QUEEN: PlanDefaults(
        plan_type=PlanType.QUEEN,
        entry_price=Decimal("50"),
        payout_amount=Decimal("200"),
        referral_bonus_amount=Decimal("5"),
        description="High-tier plan",
    ),
    PlanType.BISHOP: PlanDefaults(
        plan_type=PlanType.BISHOP,
        entry_price=Decimal("25"),
        payout_amount=Decimal("100"),
        referral_bonus_amount=Decimal("2.5"),
        description="Mid-tier plan",
    ),
    PlanType.KNIGHT: PlanDefaults(
        plan_type=PlanType.KNIGHT,
        entry_price=Decimal("10"),
        payout_amount=Decimal("40"),
        referral_bonus_amount=Decimal("1"),
        description="Entry-level plan",
    ),
}


def parse_plan_type(value: str | PlanType) -> PlanType | None:
    """
    Convert a raw tier name into a PlanType.

    Args:
        value: Tier name (string or enum)

    Returns:
        PlanType or None if the name is unknown
    """
    if isinstance(value, PlanType):
        return value
    try:
        return PlanType(value)
    except ValueError:
        return None


def get_plan_defaults(value: str | PlanType) -> PlanDefaults | None:
    """Get default catalog entry for a tier, or None if unknown."""
    plan_type = parse_plan_type(value)
    if plan_type is None:
        return None
    return PLAN_LEVELS.get(plan_type)
