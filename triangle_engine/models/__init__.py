"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from triangle_engine.models.base import Base
from triangle_engine.models.enums import TransactionStatus, TransactionType
from triangle_engine.models.participant import Participant
from triangle_engine.models.plan import Plan
from triangle_engine.models.transaction import Transaction
from triangle_engine.models.triangle import Triangle, TrianglePosition


__all__ = [
    "Base",
    "Participant",
    "Plan",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "Triangle",
    "TrianglePosition",
]
