"""
Referral bonus processor.

Credits the upline of a participant whose funding was confirmed.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from triangle_engine.models.enums import TransactionStatus, TransactionType
from triangle_engine.models.transaction import Transaction
from triangle_engine.repositories.participant_repository import (
    ParticipantRepository,
)
from triangle_engine.repositories.plan_repository import PlanRepository
from triangle_engine.repositories.transaction_repository import (
    TransactionRepository,
)
from triangle_engine.utils.exceptions import ParticipantNotFound, PlanNotFound
from triangle_engine.utils.referral_codes import build_reference


class ReferralBonusProcessor:
    """
    Processor for fixed-amount referral bonuses.

    The bonus amount comes from the downline's plan; the upline receives a
    confirmed ledger entry and an immediate balance credit.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize referral bonus processor.

        Args:
            session: Async database session
        """
        self.session = session
        self.participant_repo = ParticipantRepository(session)
        self.plan_repo = PlanRepository(session)
        self.transaction_repo = TransactionRepository(session)

    async def credit_referral_bonus(
        self, participant_id: str
    ) -> Transaction | None:
        """
        Credit the participant's upline with the tier referral bonus.

        Args:
            participant_id: Downline whose funding was confirmed

        Returns:
            Bonus ledger entry, or None if the participant has no active
            upline

        Raises:
            ParticipantNotFound: Participant does not exist
            PlanNotFound: Participant's tier is missing from the catalog
        """
        participant = await self.participant_repo.get_by_id(participant_id)
        if not participant:
            raise ParticipantNotFound(participant_id)

        if not participant.upline_id:
            logger.debug(
                "No upline, referral bonus skipped",
                extra={"participant_id": participant_id},
            )
            return None

        upline = await self.participant_repo.get_by_id(participant.upline_id)
        if not upline:
            logger.warning(
                "Upline not found for referral bonus",
                extra={
                    "participant_id": participant_id,
                    "upline_id": participant.upline_id,
                },
            )
            return None

        if not upline.is_active:
            logger.warning(
                "Upline inactive, referral bonus skipped",
                extra={"participant_id": participant_id, "upline_id": upline.id},
            )
            return None

        plan = await self.plan_repo.get_by_name(participant.tier)
        if not plan:
            raise PlanNotFound(participant.tier)

        bonus = await self.transaction_repo.create(
            participant_id=upline.id,
            type=TransactionType.REFERRAL_BONUS.value,
            amount=plan.referral_bonus_amount,
            status=TransactionStatus.CONFIRMED.value,
            reference=build_reference("RB"),
            description=f"Referral bonus for {participant.display_name}",
            details={"downline_id": participant.id, "tier": participant.tier},
        )
        bonus.confirmed_at = bonus.created_at

        await self.participant_repo.credit(upline, plan.referral_bonus_amount)
        await self.session.flush()

        logger.info(
            "Referral bonus credited",
            extra={
                "upline_id": upline.id,
                "downline_id": participant.id,
                "amount": str(plan.referral_bonus_amount),
            },
        )

        return bonus
