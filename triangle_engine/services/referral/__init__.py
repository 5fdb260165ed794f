"""
Referral services package.

Provides referral identifier resolution and referral bonus crediting.
"""

from triangle_engine.services.referral.bonus_processor import (
    ReferralBonusProcessor,
)
from triangle_engine.services.referral.resolver import ReferralResolver

__all__ = ["ReferralBonusProcessor", "ReferralResolver"]
