"""
Triangle geometry.

A triangle has 15 slots arranged in 4 levels of 1/2/4/8 slots. Slots are
filled in (level, position) order; each slot carries a readable key.
"""

from typing import NamedTuple


class SlotSpec(NamedTuple):
    """One slot of the triangle layout."""

    level: int
    position: int
    key: str


LEVEL_SLOTS = {1: 1, 2: 2, 3: 4, 4: 8}
TRIANGLE_SIZE = sum(LEVEL_SLOTS.values())

ROOT_LEVEL = 1
ROOT_POSITION = 0
PROMOTION_LEVEL = 2  # Direct children of the root, promoted on cycling
REDISTRIBUTION_MIN_LEVEL = 3

TRIANGLE_STRUCTURE: tuple[SlotSpec, ...] = (
    # Level 1
    SlotSpec(1, 0, "A"),
    # Level 2
    SlotSpec(2, 0, "AB1"),
    SlotSpec(2, 1, "AB2"),
    # Level 3
    SlotSpec(3, 0, "B1C1"),
    SlotSpec(3, 1, "B1C2"),
    SlotSpec(3, 2, "B2C1"),
    SlotSpec(3, 3, "B2C2"),
    # Level 4
    SlotSpec(4, 0, "C1D1"),
    SlotSpec(4, 1, "C1D2"),
    SlotSpec(4, 2, "C2D1"),
    SlotSpec(4, 3, "C2D2"),
    SlotSpec(4, 4, "C3D1"),
    SlotSpec(4, 5, "C3D2"),
    SlotSpec(4, 6, "C4D1"),
    SlotSpec(4, 7, "C4D2"),
)


def get_slot_key(level: int, position: int) -> str | None:
    """Return the readable key of a slot, or None if out of range."""
    for slot in TRIANGLE_STRUCTURE:
        if slot.level == level and slot.position == position:
            return slot.key
    return None


def completion_percentage(filled: int) -> float:
    """Share of occupied slots as a percentage."""
    return filled / TRIANGLE_SIZE * 100
