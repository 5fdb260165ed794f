"""
Plan repository.

Data access layer for the Plan catalog.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from triangle_engine.config.plan_levels import PLAN_LEVELS
from triangle_engine.models.plan import Plan
from triangle_engine.repositories.base import BaseRepository


class PlanRepository(BaseRepository[Plan]):
    """Plan repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize plan repository."""
        super().__init__(Plan, session)

    async def get_by_name(self, name: str) -> Plan | None:
        """
        Get plan by tier name.

        Args:
            name: Tier name (King, Queen, Bishop, Knight)

        Returns:
            Plan or None if the tier is not in the catalog
        """
        return await self.get_by(name=name)

    async def upsert_defaults(self) -> list[Plan]:
        """
        Create or update catalog rows from the configured defaults.

        Returns:
            List of stored plans
        """
        plans = []
        for plan_type, defaults in PLAN_LEVELS.items():
            values = {
                "entry_price": defaults.entry_price,
                "payout_amount": defaults.payout_amount,
                "referral_bonus_amount": defaults.referral_bonus_amount,
                "description": defaults.description,
            }
            plan = await self.get_by_name(plan_type.value)
            if plan is None:
                plan = await self.create(name=plan_type.value, **values)
            else:
                plan = await self.update(plan.id, **values)
            plans.append(plan)
        return plans
