"""
Participant repository.

Data access layer for Participant model.
"""

from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from triangle_engine.models.participant import Participant
from triangle_engine.repositories.base import BaseRepository


class ParticipantRepository(BaseRepository[Participant]):
    """Participant repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize participant repository."""
        super().__init__(Participant, session)

    async def get_by_display_name(
        self, display_name: str
    ) -> Participant | None:
        """
        Get participant by display name.

        Args:
            display_name: Exact display name

        Returns:
            Participant or None
        """
        return await self.get_by(display_name=display_name)

    async def get_by_referral_code(
        self, referral_code: str
    ) -> Participant | None:
        """
        Get participant by issued referral code.

        Args:
            referral_code: Exact referral code

        Returns:
            Participant or None
        """
        return await self.get_by(referral_code=referral_code)

    async def find_by_id_suffix(self, suffix: str) -> Participant | None:
        """
        Find the first active participant whose ID ends with suffix.

        The match is case-insensitive and scans the whole table: there is no
        index that serves a suffix match.
        Ties are broken by registration order.

        Args:
            suffix: Trailing part of a participant ID

        Returns:
            Participant or None
        """
        stmt = (
            select(Participant)
            .where(
                func.lower(Participant.id).endswith(
                    suffix.lower(), autoescape=True
                ),
                Participant.is_active.is_(True),
            )
            .order_by(Participant.created_at.asc(), Participant.id.asc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def credit(
        self, participant: Participant, amount: Decimal
    ) -> bool:
        """
        Atomically add amount to balance and lifetime earnings.

        The participant is refreshed afterwards with the stored totals.

        Args:
            participant: Participant to credit
            amount: Amount to credit

        Returns:
            True if the participant row was updated
        """
        stmt = (
            update(Participant)
            .where(Participant.id == participant.id)
            .values(
                balance=Participant.balance + amount,
                total_earned=Participant.total_earned + amount,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        credited = result.rowcount > 0
        await self.session.refresh(participant)
        return credited
