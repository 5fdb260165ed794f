"""Ledger service package."""

from triangle_engine.services.ledger.ledger_service import (
    FundingConfirmation,
    LedgerService,
)

__all__ = ["FundingConfirmation", "LedgerService"]
