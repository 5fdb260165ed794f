"""
Triangle models.

A Triangle is a 15-slot allocation tree for one tier; each slot is a
TrianglePosition row created together with its triangle.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from triangle_engine.models.base import Base


class Triangle(Base):
    """
    Triangle entity.

    Lifecycle:
    - Created empty with all 15 positions
    - Filled by slot reservation
    - Marked complete when the 15th slot is taken
    - Marked payout_processed once cycled into two successors
    - Never deleted

    Attributes:
        id: Primary key
        plan_type: Tier of every occupant (PlanType value)
        is_complete: True iff all 15 positions are occupied
        completed_at: When the last slot was filled
        payout_processed: Whether payout and cycling ran
        created_at: Creation time, used for oldest-first selection
    """

    __tablename__ = "triangles"
    __table_args__ = (
        Index("idx_triangles_plan_open", "plan_type", "is_complete", "created_at"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    plan_type: Mapped[str] = mapped_column(String(20), nullable=False)

    is_complete: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    payout_processed: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Triangle(id={self.id}, plan_type={self.plan_type}, "
            f"complete={self.is_complete})>"
        )


class TrianglePosition(Base):
    """One of the 15 slots of a triangle."""

    __tablename__ = "triangle_positions"
    __table_args__ = (
        UniqueConstraint(
            "triangle_id", "level", "position", name="uq_triangle_slot"
        ),
        UniqueConstraint(
            "triangle_id", "position_key", name="uq_triangle_slot_key"
        ),
        Index("idx_triangle_positions_open", "triangle_id", "participant_id"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    triangle_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("triangles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Level 1-4 and 0-based index within the level
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    position_key: Mapped[str] = mapped_column(String(8), nullable=False)

    # Occupant
    participant_id: Mapped[str | None] = mapped_column(
        ForeignKey("participants.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    assigned_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<TrianglePosition(triangle_id={self.triangle_id}, "
            f"key={self.position_key}, participant_id={self.participant_id})>"
        )

    @property
    def is_open(self) -> bool:
        """Whether the slot has no occupant."""
        return self.participant_id is None
