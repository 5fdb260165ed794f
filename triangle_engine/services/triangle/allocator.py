"""
Position allocator.

Chooses a triangle for a participant and reserves its next open slot.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from triangle_engine.config.settings import settings
from triangle_engine.models.participant import Participant
from triangle_engine.models.triangle import Triangle, TrianglePosition
from triangle_engine.repositories.participant_repository import (
    ParticipantRepository,
)
from triangle_engine.repositories.triangle_repository import TriangleRepository
from triangle_engine.services.triangle.completion import CompletionHandler
from triangle_engine.utils.exceptions import (
    AlreadyAssigned,
    InvariantViolation,
    ParticipantInactive,
    ParticipantNotFound,
    SlotReservationConflict,
    TierMismatch,
)


class PositionAllocator:
    """
    Position allocator.

    Triangle selection order:
    1. The referrer's open triangle, if it matches the participant's tier
       and still has an open slot
    2. The oldest non-complete triangle of the tier with an open slot
    3. A freshly created triangle

    Within the triangle the lowest level, then lowest index, is taken.
    A slot lost to a concurrent caller restarts selection, up to
    ``settings.slot_reservation_retries`` attempts.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize position allocator.

        Args:
            session: Async database session
        """
        self.session = session
        self.participant_repo = ParticipantRepository(session)
        self.triangle_repo = TriangleRepository(session)
        self.completion = CompletionHandler(session)
        self.logger = logger.bind(service=self.__class__.__name__)

    async def assign(
        self, participant_id: str, referrer_id: str | None = None
    ) -> TrianglePosition:
        """
        Place a participant into a triangle.

        Args:
            participant_id: Participant to place
            referrer_id: Explicit referrer ID; defaults to the stored upline

        Returns:
            Reserved position

        Raises:
            ParticipantNotFound: Participant or explicit referrer missing
            ParticipantInactive: Participant or explicit referrer deactivated
            AlreadyAssigned: Participant already holds an open position
            TierMismatch: Explicit referrer is on another tier
            SlotReservationConflict: Every attempt lost its slot
            InvariantViolation: Triangle state is corrupted
        """
        participant = await self.participant_repo.get_for_update(participant_id)
        if not participant:
            raise ParticipantNotFound(participant_id)
        if not participant.is_active:
            raise ParticipantInactive(participant.id)

        current = await self.triangle_repo.get_open_position_for_participant(
            participant.id
        )
        if current:
            raise AlreadyAssigned(participant.id, current.triangle_id)

        conflict: SlotReservationConflict | None = None
        for attempt in range(1, settings.slot_reservation_retries + 1):
            triangle = await self._select_triangle(participant, referrer_id)

            # Re-read under lock; the triangle may have filled meanwhile
            triangle = await self.triangle_repo.get_for_update(triangle.id)
            position = await self.triangle_repo.get_next_open_position(
                triangle.id
            )

            if triangle.is_complete:
                conflict = SlotReservationConflict(triangle.id)
            elif position is None:
                raise InvariantViolation(
                    triangle.id, "no open slot but not marked complete"
                )
            elif await self.triangle_repo.reserve_position(
                position, participant.id
            ):
                break
            else:
                conflict = SlotReservationConflict(
                    triangle.id, position.position_key
                )

            self.logger.warning(
                "Slot reservation conflict, retrying",
                extra={
                    "participant_id": participant.id,
                    "triangle_id": triangle.id,
                    "attempt": attempt,
                },
            )
        else:
            raise conflict

        self.logger.info(
            "Participant assigned",
            extra={
                "participant_id": participant.id,
                "triangle_id": triangle.id,
                "position_key": position.position_key,
            },
        )

        await self.completion.check(triangle)

        return position

    async def _select_triangle(
        self, participant: Participant, referrer_id: str | None
    ) -> Triangle:
        """Pick the referrer's triangle, the oldest open one, or a new one."""
        triangle = await self._referrer_triangle(participant, referrer_id)
        if triangle:
            return triangle

        triangle = await self.triangle_repo.find_oldest_open(participant.tier)
        if triangle:
            return triangle

        triangle = await self.triangle_repo.create_with_positions(
            participant.tier
        )
        self.logger.info(
            "Triangle created",
            extra={"triangle_id": triangle.id, "plan_type": triangle.plan_type},
        )
        return triangle

    async def _referrer_triangle(
        self, participant: Participant, referrer_id: str | None
    ) -> Triangle | None:
        explicit = referrer_id is not None
        referrer_id = referrer_id or participant.upline_id
        if not referrer_id:
            return None

        referrer = await self.participant_repo.get_by_id(referrer_id)
        if not referrer:
            if explicit:
                raise ParticipantNotFound(referrer_id)
            return None

        if not referrer.is_active:
            if explicit:
                raise ParticipantInactive(referrer.id)
            self.logger.warning(
                "Upline inactive, referrer triangle skipped",
                extra={"participant_id": participant.id, "upline_id": referrer.id},
            )
            return None

        if referrer.tier != participant.tier:
            if explicit:
                raise TierMismatch(participant.tier, referrer.tier)
            self.logger.warning(
                "Upline tier differs, referrer triangle skipped",
                extra={"participant_id": participant.id, "upline_id": referrer.id},
            )
            return None

        position = await self.triangle_repo.get_open_position_for_participant(
            referrer.id
        )
        if not position:
            return None

        triangle = await self.triangle_repo.get_by_id(position.triangle_id)
        if (
            triangle is None
            or triangle.is_complete
            or triangle.plan_type != participant.tier
        ):
            return None

        if await self.triangle_repo.get_next_open_position(triangle.id) is None:
            return None

        return triangle
