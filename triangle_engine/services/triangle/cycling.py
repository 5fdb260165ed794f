"""
Triangle cycling.

Splits a completed triangle into two successor triangles rooted at its
former level-2 occupants and redistributes the level 3-4 occupants.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from triangle_engine.config.triangle_layout import (
    PROMOTION_LEVEL,
    REDISTRIBUTION_MIN_LEVEL,
)
from triangle_engine.models.triangle import Triangle, TrianglePosition
from triangle_engine.repositories.triangle_repository import TriangleRepository
from triangle_engine.services.base_service import log_operation
from triangle_engine.services.triangle.views import CycleResult
from triangle_engine.utils.exceptions import SlotReservationConflict


class TriangleCycler:
    """
    Converts one completed triangle into two successors.

    Runs inside the caller's unit of work: it only flushes, so a failure
    anywhere rolls back both successors together with the payout.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize triangle cycler.

        Args:
            session: Async database session
        """
        self.session = session
        self.triangle_repo = TriangleRepository(session)
        self.logger = logger.bind(service=self.__class__.__name__)

    @log_operation
    async def cycle(self, triangle: Triangle) -> CycleResult:
        """
        Split a completed triangle.

        Args:
            triangle: Just-completed triangle

        Returns:
            CycleResult describing successors and redistributed occupants
        """
        positions = await self.triangle_repo.get_positions(triangle.id)

        promoted = [
            p.participant_id
            for p in positions
            if p.level == PROMOTION_LEVEL
        ]

        if len(promoted) != 2 or not all(promoted):
            # Unreachable for a 15/15 triangle; kept so a damaged tree is
            # closed out instead of cycled.
            self.logger.warning(
                "Level-2 occupant missing, split skipped",
                extra={"triangle_id": triangle.id},
            )
            await self.triangle_repo.mark_payout_processed(triangle)
            return CycleResult(
                source_triangle_id=triangle.id,
                successor_ids=(),
                promoted_ids=(),
            )

        first = await self.triangle_repo.create_with_positions(triangle.plan_type)
        second = await self.triangle_repo.create_with_positions(triangle.plan_type)
        successors = (first, second)

        for successor, participant_id in zip(successors, promoted):
            await self._place(successor, participant_id)

        remaining = [
            p.participant_id
            for p in positions
            if p.participant_id
            and p.level >= REDISTRIBUTION_MIN_LEVEL
            and p.participant_id not in promoted
        ]

        redistributed: dict[int, list[str]] = {first.id: [], second.id: []}
        for i, participant_id in enumerate(remaining):
            target = successors[i % 2]
            await self._place(target, participant_id)
            redistributed[target.id].append(participant_id)

        await self.triangle_repo.mark_payout_processed(triangle)

        self.logger.info(
            "Triangle cycled",
            extra={
                "triangle_id": triangle.id,
                "successor_ids": [first.id, second.id],
                "redistributed": len(remaining),
            },
        )

        return CycleResult(
            source_triangle_id=triangle.id,
            successor_ids=(first.id, second.id),
            promoted_ids=tuple(promoted),
            redistributed=redistributed,
        )

    async def _place(
        self, triangle: Triangle, participant_id: str
    ) -> TrianglePosition:
        """Reserve the next open slot of a fresh successor triangle."""
        position = await self.triangle_repo.get_next_open_position(triangle.id)
        if position is None or not await self.triangle_repo.reserve_position(
            position, participant_id
        ):
            raise SlotReservationConflict(
                triangle.id, position.position_key if position else None
            )
        return position
