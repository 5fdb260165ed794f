"""
Services.

Business logic layer.
"""

from triangle_engine.services.base_service import (
    BaseService,
    log_operation,
    transaction,
)
from triangle_engine.services.ledger import FundingConfirmation, LedgerService
from triangle_engine.services.participant import ParticipantService
from triangle_engine.services.referral import (
    ReferralBonusProcessor,
    ReferralResolver,
)
from triangle_engine.services.triangle_service import TriangleService

__all__ = [
    "BaseService",
    "FundingConfirmation",
    "LedgerService",
    "ParticipantService",
    "ReferralBonusProcessor",
    "ReferralResolver",
    "TriangleService",
    "log_operation",
    "transaction",
]
