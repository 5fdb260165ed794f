"""
Read models returned by the triangle engine to its callers.
"""

from dataclasses import dataclass, field

from triangle_engine.models.triangle import TrianglePosition


@dataclass(frozen=True)
class PositionView:
    """Where a participant was placed."""

    position_key: str
    triangle_id: int
    level: int
    index: int

    @classmethod
    def from_position(cls, position: TrianglePosition) -> "PositionView":
        """Build a view from a stored position."""
        return cls(
            position_key=position.position_key,
            triangle_id=position.triangle_id,
            level=position.level,
            index=position.position,
        )


@dataclass(frozen=True)
class SlotView:
    """One slot of a triangle as shown to a participant."""

    position_key: str
    level: int
    index: int
    participant_id: str | None
    display_name: str | None


@dataclass(frozen=True)
class TriangleView:
    """A triangle with all of its slots."""

    id: int
    plan_type: str
    is_complete: bool
    payout_processed: bool
    slots: list[SlotView] = field(default_factory=list)


@dataclass(frozen=True)
class ParticipantTriangleView:
    """A participant's triangle, own slot and fill progress."""

    triangle: TriangleView
    position: PositionView
    completion_percentage: float
    filled_count: int


@dataclass(frozen=True)
class ReferrerView:
    """Public summary of a resolved referrer."""

    participant_id: str
    display_name: str
    tier: str


@dataclass(frozen=True)
class CycleResult:
    """Outcome of splitting a completed triangle."""

    source_triangle_id: int
    successor_ids: tuple[int, ...]
    promoted_ids: tuple[str, ...]
    redistributed: dict[int, list[str]] = field(default_factory=dict)

    @property
    def was_split(self) -> bool:
        """Whether successor triangles were created."""
        return len(self.successor_ids) == 2
