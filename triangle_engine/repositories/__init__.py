"""
Repositories package.

Data access layer over the async SQLAlchemy session.
"""

from triangle_engine.repositories.base import BaseRepository
from triangle_engine.repositories.participant_repository import (
    ParticipantRepository,
)
from triangle_engine.repositories.plan_repository import PlanRepository
from triangle_engine.repositories.transaction_repository import (
    TransactionRepository,
)
from triangle_engine.repositories.triangle_repository import TriangleRepository


__all__ = [
    "BaseRepository",
    "ParticipantRepository",
    "PlanRepository",
    "TransactionRepository",
    "TriangleRepository",
]
