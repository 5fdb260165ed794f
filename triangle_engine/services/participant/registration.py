"""
Participant service.

Registration and lookup of participants.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from triangle_engine.config.plan_levels import PlanType, parse_plan_type
from triangle_engine.config.settings import settings
from triangle_engine.models.participant import Participant
from triangle_engine.repositories.participant_repository import (
    ParticipantRepository,
)
from triangle_engine.repositories.plan_repository import PlanRepository
from triangle_engine.services.base_service import BaseService, transaction
from triangle_engine.services.ledger.ledger_service import LedgerService
from triangle_engine.services.referral.resolver import ReferralResolver
from triangle_engine.utils.exceptions import (
    InvalidDisplayName,
    ParticipantAlreadyExists,
    ParticipantNotFound,
    PlanNotFound,
    TierMismatch,
)
from triangle_engine.utils.referral_codes import (
    build_fallback_referral_code,
    build_referral_code,
)


class ParticipantService(BaseService):
    """Participant service handles registration."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize participant service.

        Args:
            session: Database session
        """
        super().__init__(session)
        self.participant_repo = ParticipantRepository(session)
        self.plan_repo = PlanRepository(session)
        self.resolver = ReferralResolver(session)
        self.ledger = LedgerService(session)

    @transaction
    async def register(
        self,
        display_name: str,
        tier: str | PlanType,
        referrer_identifier: str | None = None,
    ) -> Participant:
        """
        Register a participant and open their funding entry.

        Args:
            display_name: Unique display name
            tier: Plan tier
            referrer_identifier: Referrer ID, display name, referral code
                or ID suffix

        Returns:
            Registered participant

        Raises:
            InvalidDisplayName: Display name is blank
            ParticipantAlreadyExists: Display name is taken
            PlanNotFound: Tier is unknown or missing from the catalog
            TierMismatch: Referrer is on another tier
        """
        display_name = (display_name or "").strip()
        if not display_name:
            raise InvalidDisplayName(display_name)

        plan_type = parse_plan_type(tier)
        if plan_type is None or not await self.plan_repo.get_by_name(
            plan_type.value
        ):
            raise PlanNotFound(str(tier))

        if await self.participant_repo.get_by_display_name(display_name):
            raise ParticipantAlreadyExists(display_name)

        upline_id = None
        if referrer_identifier:
            referrer = await self.resolver.resolve(referrer_identifier)
            if referrer is None:
                self.logger.warning(
                    "Referrer not resolved, registering without upline",
                    extra={"display_name": display_name},
                )
            elif referrer.tier != plan_type.value:
                raise TierMismatch(plan_type.value, referrer.tier)
            else:
                upline_id = referrer.id

        participant = await self.participant_repo.create(
            display_name=display_name,
            tier=plan_type.value,
            upline_id=upline_id,
            referral_code=await self._issue_referral_code(display_name),
        )

        await self.ledger.create_funding_entry(participant.id)

        self.logger.info(
            "Participant registered",
            extra={
                "participant_id": participant.id,
                "tier": participant.tier,
                "upline_id": upline_id,
            },
        )
        return participant

    async def get(self, participant_id: str) -> Participant:
        """
        Get participant by ID.

        Raises:
            ParticipantNotFound: Participant does not exist
        """
        participant = await self.participant_repo.get_by_id(participant_id)
        if not participant:
            raise ParticipantNotFound(participant_id)
        return participant

    async def _issue_referral_code(self, display_name: str) -> str:
        for _ in range(settings.referral_code_attempts):
            code = build_referral_code(display_name)
            if not await self.participant_repo.exists(referral_code=code):
                return code

        self.logger.warning(
            "Referral code collisions, using fallback code",
            extra={"attempts": settings.referral_code_attempts},
        )
        return build_fallback_referral_code(display_name)
