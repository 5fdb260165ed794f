"""
Triangle service.

Public entry point of the matrix engine: tree creation, assignment,
participant views, referrer lookup and referral bonuses.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from triangle_engine.config.plan_levels import PlanType, parse_plan_type
from triangle_engine.config.triangle_layout import (
    TRIANGLE_SIZE,
    completion_percentage,
)
from triangle_engine.models.participant import Participant
from triangle_engine.models.transaction import Transaction
from triangle_engine.models.triangle import Triangle
from triangle_engine.repositories.participant_repository import (
    ParticipantRepository,
)
from triangle_engine.repositories.plan_repository import PlanRepository
from triangle_engine.repositories.triangle_repository import TriangleRepository
from triangle_engine.services.base_service import BaseService, transaction
from triangle_engine.services.referral.bonus_processor import (
    ReferralBonusProcessor,
)
from triangle_engine.services.referral.resolver import ReferralResolver
from triangle_engine.services.triangle.allocator import PositionAllocator
from triangle_engine.services.triangle.views import (
    ParticipantTriangleView,
    PositionView,
    ReferrerView,
    SlotView,
    TriangleView,
)
from triangle_engine.utils.exceptions import (
    InvariantViolation,
    ParticipantNotFound,
    PlanNotFound,
    TriangleNotFound,
)


class TriangleService(BaseService):
    """
    Triangle service.

    Each mutating method is one unit of work: the reservation, completion,
    payout and cycling it triggers commit together or not at all.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize triangle service.

        Args:
            session: Database session
        """
        super().__init__(session)
        self.participant_repo = ParticipantRepository(session)
        self.plan_repo = PlanRepository(session)
        self.triangle_repo = TriangleRepository(session)
        self.allocator = PositionAllocator(session)
        self.resolver = ReferralResolver(session)
        self.bonus_processor = ReferralBonusProcessor(session)

    @transaction
    async def create_tree(self, tier: str | PlanType) -> int:
        """
        Create an empty triangle.

        Args:
            tier: Plan tier

        Returns:
            New triangle ID

        Raises:
            PlanNotFound: Tier is unknown or missing from the catalog
        """
        plan_type = parse_plan_type(tier)
        if plan_type is None or not await self.plan_repo.get_by_name(
            plan_type.value
        ):
            raise PlanNotFound(str(tier))

        triangle = await self.triangle_repo.create_with_positions(plan_type.value)

        self.logger.info(
            "Triangle created",
            extra={"triangle_id": triangle.id, "plan_type": triangle.plan_type},
        )
        return triangle.id

    @transaction
    async def assign(
        self, participant_id: str, referrer_id: str | None = None
    ) -> PositionView:
        """
        Place a participant into a triangle.

        See PositionAllocator.assign for the selection rules.

        Args:
            participant_id: Participant to place
            referrer_id: Optional explicit referrer ID

        Returns:
            Reserved position
        """
        position = await self.allocator.assign(participant_id, referrer_id)
        return PositionView.from_position(position)

    async def get_participant_view(
        self, participant_id: str
    ) -> ParticipantTriangleView | None:
        """
        Get the participant's triangle with fill progress.

        Shows the open position if the participant holds one, otherwise the
        most recent one.

        Args:
            participant_id: Participant ID

        Returns:
            View or None if the participant was never placed

        Raises:
            ParticipantNotFound: Participant does not exist
        """
        if not await self.participant_repo.get_by_id(participant_id):
            raise ParticipantNotFound(participant_id)

        position = await self.triangle_repo.get_open_position_for_participant(
            participant_id
        )
        if position is None:
            position = (
                await self.triangle_repo.get_latest_position_for_participant(
                    participant_id
                )
            )
        if position is None:
            return None

        triangle = await self.triangle_repo.get_by_id(position.triangle_id)
        tree = await self._build_tree_view(triangle)
        filled = sum(1 for slot in tree.slots if slot.participant_id)

        return ParticipantTriangleView(
            triangle=tree,
            position=PositionView.from_position(position),
            completion_percentage=completion_percentage(filled),
            filled_count=filled,
        )

    async def get_tree_view(self, triangle_id: int) -> TriangleView:
        """
        Get a triangle with all of its slots.

        Raises:
            TriangleNotFound: Triangle does not exist
        """
        triangle = await self.triangle_repo.get_by_id(triangle_id)
        if not triangle:
            raise TriangleNotFound(triangle_id)
        return await self._build_tree_view(triangle)

    async def resolve_referrer(self, identifier: str) -> ReferrerView | None:
        """
        Resolve a referral identifier to a public referrer summary.

        Args:
            identifier: ID, display name, referral code or ID suffix

        Returns:
            Referrer summary or None if nothing matches
        """
        participant = await self.resolver.resolve(identifier)
        if participant is None:
            return None
        return ReferrerView(
            participant_id=participant.id,
            display_name=participant.display_name,
            tier=participant.tier,
        )

    @transaction
    async def credit_referral_bonus(
        self, participant_id: str
    ) -> Transaction | None:
        """Credit the participant's upline with the tier referral bonus."""
        return await self.bonus_processor.credit_referral_bonus(participant_id)

    async def verify_tree(self, triangle_id: int) -> int:
        """
        Check the structural invariants of a stored triangle.

        Args:
            triangle_id: Triangle ID

        Returns:
            Number of occupied slots

        Raises:
            TriangleNotFound: Triangle does not exist
            InvariantViolation: Slot count, occupancy or completion flag
                is inconsistent
        """
        triangle = await self.triangle_repo.get_by_id(triangle_id)
        if not triangle:
            raise TriangleNotFound(triangle_id)

        positions = await self.triangle_repo.get_positions(triangle_id)
        if len(positions) != TRIANGLE_SIZE:
            self._violation(
                triangle, f"has {len(positions)} slots, expected {TRIANGLE_SIZE}"
            )

        filled = sum(1 for p in positions if not p.is_open)
        if triangle.is_complete != (filled == TRIANGLE_SIZE):
            self._violation(
                triangle,
                f"is_complete={triangle.is_complete} with {filled} occupants",
            )

        occupants = [p.participant_id for p in positions if p.participant_id]
        if len(occupants) != len(set(occupants)):
            self._violation(triangle, "participant occupies more than one slot")

        return filled

    def _violation(self, triangle: Triangle, message: str) -> None:
        error = InvariantViolation(triangle.id, message)
        self.logger.critical(str(error))
        raise error

    async def _build_tree_view(self, triangle: Triangle) -> TriangleView:
        positions = await self.triangle_repo.get_positions(triangle.id)

        occupant_ids = [p.participant_id for p in positions if p.participant_id]
        names: dict[str, str] = {}
        if occupant_ids:
            result = await self.session.execute(
                select(Participant.id, Participant.display_name).where(
                    Participant.id.in_(occupant_ids)
                )
            )
            names = {row.id: row.display_name for row in result}

        return TriangleView(
            id=triangle.id,
            plan_type=triangle.plan_type,
            is_complete=triangle.is_complete,
            payout_processed=triangle.payout_processed,
            slots=[
                SlotView(
                    position_key=p.position_key,
                    level=p.level,
                    index=p.position,
                    participant_id=p.participant_id,
                    display_name=names.get(p.participant_id)
                    if p.participant_id
                    else None,
                )
                for p in positions
            ],
        )
