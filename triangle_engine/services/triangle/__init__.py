"""
Triangle engine package.

Allocation of participants into 15-slot triangles, completion payout and
cycling of completed triangles into two successors.
"""

from triangle_engine.services.triangle.allocator import PositionAllocator
from triangle_engine.services.triangle.completion import CompletionHandler
from triangle_engine.services.triangle.cycling import TriangleCycler
from triangle_engine.services.triangle.views import (
    CycleResult,
    ParticipantTriangleView,
    PositionView,
    ReferrerView,
    SlotView,
    TriangleView,
)

__all__ = [
    "CompletionHandler",
    "CycleResult",
    "ParticipantTriangleView",
    "PositionAllocator",
    "PositionView",
    "ReferrerView",
    "SlotView",
    "TriangleCycler",
    "TriangleView",
]
