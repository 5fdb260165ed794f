"""
Triangle repository.

Data access layer for Triangle and TrianglePosition models.
"""

from datetime import UTC, datetime

from sqlalchemy import and_, exists, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from triangle_engine.config.triangle_layout import TRIANGLE_STRUCTURE
from triangle_engine.models.triangle import Triangle, TrianglePosition
from triangle_engine.repositories.base import BaseRepository


class TriangleRepository(BaseRepository[Triangle]):
    """Triangle repository with slot-level queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize triangle repository."""
        super().__init__(Triangle, session)

    async def create_with_positions(self, plan_type: str) -> Triangle:
        """
        Create an empty triangle with all 15 unoccupied positions.

        Args:
            plan_type: Tier of the triangle

        Returns:
            Created triangle
        """
        triangle = await self.create(
            plan_type=plan_type,
            is_complete=False,
            payout_processed=False,
        )

        self.session.add_all(
            [
                TrianglePosition(
                    triangle_id=triangle.id,
                    level=slot.level,
                    position=slot.position,
                    position_key=slot.key,
                    participant_id=None,
                )
                for slot in TRIANGLE_STRUCTURE
            ]
        )
        await self.session.flush()

        return triangle

    async def get_positions(self, triangle_id: int) -> list[TrianglePosition]:
        """
        Get all positions of a triangle ordered by level, then index.

        Args:
            triangle_id: Triangle ID

        Returns:
            List of positions (15 for a well-formed triangle)
        """
        stmt = (
            select(TrianglePosition)
            .where(TrianglePosition.triangle_id == triangle_id)
            .order_by(TrianglePosition.level.asc(), TrianglePosition.position.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_next_open_position(
        self, triangle_id: int
    ) -> TrianglePosition | None:
        """
        Get the open position with the lowest level, then lowest index.

        Args:
            triangle_id: Triangle ID

        Returns:
            Open position or None if the triangle is full
        """
        stmt = (
            select(TrianglePosition)
            .where(
                TrianglePosition.triangle_id == triangle_id,
                TrianglePosition.participant_id.is_(None),
            )
            .order_by(TrianglePosition.level.asc(), TrianglePosition.position.asc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def reserve_position(
        self, position: TrianglePosition, participant_id: str
    ) -> bool:
        """
        Attach an occupant only if the position is still unoccupied.

        The position is refreshed afterwards, so on a lost race it shows
        the winning occupant.

        Args:
            position: Position to take
            participant_id: Participant to place

        Returns:
            True if this call took the slot, False if it was already taken
        """
        stmt = (
            update(TrianglePosition)
            .where(
                TrianglePosition.id == position.id,
                TrianglePosition.participant_id.is_(None),
            )
            .values(
                participant_id=participant_id,
                assigned_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        reserved = result.rowcount == 1
        await self.session.refresh(position)
        return reserved

    async def count_occupied(self, triangle_id: int) -> int:
        """
        Count occupied positions of a triangle.

        Args:
            triangle_id: Triangle ID

        Returns:
            Number of positions with an occupant
        """
        stmt = select(func.count(TrianglePosition.id)).where(
            TrianglePosition.triangle_id == triangle_id,
            TrianglePosition.participant_id.isnot(None),
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def find_oldest_open(self, plan_type: str) -> Triangle | None:
        """
        Find the oldest non-complete triangle of a tier with an open slot.

        Args:
            plan_type: Tier

        Returns:
            Triangle or None
        """
        has_open_slot = exists().where(
            and_(
                TrianglePosition.triangle_id == Triangle.id,
                TrianglePosition.participant_id.is_(None),
            )
        )
        stmt = (
            select(Triangle)
            .where(
                Triangle.plan_type == plan_type,
                Triangle.is_complete == False,  # noqa: E712
                has_open_slot,
            )
            .order_by(Triangle.created_at.asc(), Triangle.id.asc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_open_position_for_participant(
        self, participant_id: str
    ) -> TrianglePosition | None:
        """
        Get the participant's position in a non-complete triangle.

        Args:
            participant_id: Participant ID

        Returns:
            Position or None if the participant holds no open position
        """
        stmt = (
            select(TrianglePosition)
            .join(Triangle, Triangle.id == TrianglePosition.triangle_id)
            .where(
                TrianglePosition.participant_id == participant_id,
                Triangle.is_complete == False,  # noqa: E712
            )
            .order_by(Triangle.created_at.asc(), Triangle.id.asc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_latest_position_for_participant(
        self, participant_id: str
    ) -> TrianglePosition | None:
        """
        Get the participant's position in the most recent triangle.

        Args:
            participant_id: Participant ID

        Returns:
            Position or None if the participant was never placed
        """
        stmt = (
            select(TrianglePosition)
            .join(Triangle, Triangle.id == TrianglePosition.triangle_id)
            .where(TrianglePosition.participant_id == participant_id)
            .order_by(Triangle.created_at.desc(), Triangle.id.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_complete(self, triangle: Triangle) -> bool:
        """
        Flip a triangle to complete, only if it is not complete yet.

        Args:
            triangle: Triangle to complete (refreshed afterwards)

        Returns:
            True for exactly one caller per triangle
        """
        stmt = (
            update(Triangle)
            .where(
                Triangle.id == triangle.id,
                Triangle.is_complete == False,  # noqa: E712
            )
            .values(is_complete=True, completed_at=datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        flipped = result.rowcount == 1
        await self.session.refresh(triangle)
        return flipped

    async def mark_payout_processed(self, triangle: Triangle) -> bool:
        """
        Flag a completed triangle as paid out and cycled.

        Args:
            triangle: Triangle to flag (refreshed afterwards)

        Returns:
            True if the flag was flipped by this call
        """
        stmt = (
            update(Triangle)
            .where(
                Triangle.id == triangle.id,
                Triangle.payout_processed == False,  # noqa: E712
            )
            .values(payout_processed=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        flipped = result.rowcount == 1
        await self.session.refresh(triangle)
        return flipped
