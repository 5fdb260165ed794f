"""
Ledger service.

Funding, withdrawal and payout lifecycle. Confirming a funding entry is the
event that places the participant and credits their upline.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from triangle_engine.config.settings import settings
from triangle_engine.config.triangle_layout import (
    ROOT_LEVEL,
    ROOT_POSITION,
    TRIANGLE_SIZE,
)
from triangle_engine.models.enums import (
    TransactionStatus,
    TransactionType,
    can_transition,
)
from triangle_engine.models.transaction import Transaction
from triangle_engine.repositories.participant_repository import (
    ParticipantRepository,
)
from triangle_engine.repositories.plan_repository import PlanRepository
from triangle_engine.repositories.transaction_repository import (
    TransactionRepository,
)
from triangle_engine.repositories.triangle_repository import TriangleRepository
from triangle_engine.services.base_service import BaseService, transaction
from triangle_engine.services.referral.bonus_processor import (
    ReferralBonusProcessor,
)
from triangle_engine.services.triangle.allocator import PositionAllocator
from triangle_engine.services.triangle.views import PositionView
from triangle_engine.utils.exceptions import (
    InvalidStatusTransition,
    ParticipantNotFound,
    PayoutNotAllowed,
    PlanNotFound,
    TransactionNotFound,
)
from triangle_engine.utils.referral_codes import build_reference

# Entry types settled through the withdrawal workflow
OUTFLOW_TYPES = (TransactionType.WITHDRAWAL, TransactionType.PAYOUT)


@dataclass(frozen=True)
class FundingConfirmation:
    """Result of a confirmed funding entry."""

    transaction: Transaction
    position: PositionView
    referral_bonus: Transaction | None


class LedgerService(BaseService):
    """Ledger service handles status transitions of ledger entries."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize ledger service.

        Args:
            session: Database session
        """
        super().__init__(session)
        self.transaction_repo = TransactionRepository(session)
        self.participant_repo = ParticipantRepository(session)
        self.plan_repo = PlanRepository(session)
        self.triangle_repo = TriangleRepository(session)
        self.allocator = PositionAllocator(session)
        self.bonus_processor = ReferralBonusProcessor(session)

    @transaction
    async def open_funding(self, participant_id: str) -> Transaction:
        """
        Open a pending funding entry for the participant's tier.

        Returns the existing entry if one is already pending.

        Args:
            participant_id: Participant ID

        Returns:
            Pending deposit entry

        Raises:
            ParticipantNotFound: Participant does not exist
            PlanNotFound: Tier missing from the catalog
        """
        return await self.create_funding_entry(participant_id)

    async def create_funding_entry(self, participant_id: str) -> Transaction:
        """Create the pending deposit inside the caller's unit of work."""
        participant = await self.participant_repo.get_by_id(participant_id)
        if not participant:
            raise ParticipantNotFound(participant_id)

        stmt = select(Transaction).where(
            Transaction.participant_id == participant.id,
            Transaction.type == TransactionType.DEPOSIT.value,
            Transaction.status == TransactionStatus.PENDING.value,
        )
        pending = (await self.session.execute(stmt)).scalars().first()
        if pending:
            self.logger.debug(
                "Funding already pending",
                extra={"participant_id": participant.id, "transaction_id": pending.id},
            )
            return pending

        plan = await self.plan_repo.get_by_name(participant.tier)
        if not plan:
            raise PlanNotFound(participant.tier)

        deposit = await self.transaction_repo.create(
            participant_id=participant.id,
            type=TransactionType.DEPOSIT.value,
            amount=plan.entry_price,
            status=TransactionStatus.PENDING.value,
            reference=build_reference("DP"),
            description=f"{plan.name} plan funding",
            details={
                "coin": settings.deposit_coin,
                "network": settings.deposit_network,
                "wallet_address": settings.deposit_wallet_address,
            },
        )

        self.logger.info(
            "Funding opened",
            extra={
                "participant_id": participant.id,
                "transaction_id": deposit.id,
                "amount": str(deposit.amount),
            },
        )
        return deposit

    @transaction
    async def confirm_funding(self, transaction_id: int) -> FundingConfirmation:
        """
        Confirm a pending funding entry.

        Marks the participant funded, credits their upline's referral bonus
        and then places the participant, preferring the upline's triangle.
        All of it is one unit of work. Rows are locked participant first,
        then upline, then triangle.

        Args:
            transaction_id: Deposit entry ID

        Returns:
            Confirmed entry, reserved position and referral bonus entry
        """
        now = datetime.now(UTC)
        deposit = await self._transition(
            transaction_id,
            (TransactionType.DEPOSIT,),
            TransactionStatus.CONFIRMED,
            confirmed_at=now,
        )

        participant = await self.participant_repo.get_for_update(
            deposit.participant_id
        )
        if not participant:
            raise ParticipantNotFound(deposit.participant_id)
        participant.funded_at = now
        await self.session.flush()

        bonus = await self.bonus_processor.credit_referral_bonus(participant.id)
        position = await self.allocator.assign(participant.id)

        return FundingConfirmation(
            transaction=deposit,
            position=PositionView.from_position(position),
            referral_bonus=bonus,
        )

    @transaction
    async def reject_funding(
        self, transaction_id: int, reason: str | None = None
    ) -> Transaction:
        """
        Reject a pending funding entry and deactivate the participant.

        Args:
            transaction_id: Deposit entry ID
            reason: Rejection reason shown to the participant

        Returns:
            Rejected entry
        """
        deposit = await self._transition(
            transaction_id,
            (TransactionType.DEPOSIT,),
            TransactionStatus.REJECTED,
            rejected_at=datetime.now(UTC),
            rejection_reason=reason or "Payment not received or invalid amount.",
        )

        participant = await self.participant_repo.get_by_id(deposit.participant_id)
        if participant:
            participant.is_active = False
            await self.session.flush()

        return deposit

    @transaction
    async def confirm_withdrawal(self, transaction_id: int) -> Transaction:
        """Confirm a pending withdrawal or payout entry."""
        return await self._transition(
            transaction_id,
            OUTFLOW_TYPES,
            TransactionStatus.CONFIRMED,
            confirmed_at=datetime.now(UTC),
        )

    @transaction
    async def complete_withdrawal(self, transaction_id: int) -> Transaction:
        """
        Complete a confirmed withdrawal or payout.

        The participant's other settled entries are consolidated and the
        participant is deactivated. Positions stay as history.

        Args:
            transaction_id: Withdrawal entry ID

        Returns:
            Completed entry
        """
        withdrawal = await self._transition(
            transaction_id,
            OUTFLOW_TYPES,
            TransactionStatus.COMPLETED,
            completed_at=datetime.now(UTC),
        )

        consolidated = await self.transaction_repo.consolidate_for_participant(
            withdrawal.participant_id, exclude_id=withdrawal.id
        )

        participant = await self.participant_repo.get_by_id(
            withdrawal.participant_id
        )
        if participant:
            participant.is_active = False
            await self.session.flush()

        self.logger.info(
            "Withdrawal completed",
            extra={
                "transaction_id": withdrawal.id,
                "participant_id": withdrawal.participant_id,
                "consolidated": consolidated,
            },
        )
        return withdrawal

    @transaction
    async def reject_withdrawal(
        self, transaction_id: int, reason: str | None = None
    ) -> Transaction:
        """
        Reject a pending withdrawal or payout.

        Balance credited at completion time is not reversed.
        """
        withdrawal = await self._transition(
            transaction_id,
            OUTFLOW_TYPES,
            TransactionStatus.REJECTED,
            rejected_at=datetime.now(UTC),
            rejection_reason=reason,
        )

        self.logger.warning(
            "Withdrawal rejected without balance reversal",
            extra={
                "transaction_id": withdrawal.id,
                "participant_id": withdrawal.participant_id,
                "amount": str(withdrawal.amount),
            },
        )
        return withdrawal

    @transaction
    async def request_payout(
        self,
        participant_id: str,
        amount: Decimal,
        wallet_address: str | None = None,
    ) -> Transaction:
        """
        Open a pending payout request.

        Only the root occupant of a complete triangle may request a payout,
        and only up to their current balance.

        Args:
            participant_id: Requesting participant
            amount: Requested amount
            wallet_address: Destination wallet

        Returns:
            Pending payout entry

        Raises:
            ParticipantNotFound: Participant does not exist
            PayoutNotAllowed: Any eligibility rule fails
        """
        if amount <= 0:
            raise PayoutNotAllowed(participant_id, "amount must be positive")

        participant = await self.participant_repo.get_for_update(participant_id)
        if not participant:
            raise ParticipantNotFound(participant_id)

        position = await self.triangle_repo.get_latest_position_for_participant(
            participant.id
        )
        if position is None:
            raise PayoutNotAllowed(participant.id, "not placed in any triangle")
        if position.level != ROOT_LEVEL or position.position != ROOT_POSITION:
            raise PayoutNotAllowed(
                participant.id, "only the root occupant can request a payout"
            )

        filled = await self.triangle_repo.count_occupied(position.triangle_id)
        if filled != TRIANGLE_SIZE:
            raise PayoutNotAllowed(
                participant.id,
                f"triangle not complete ({filled}/{TRIANGLE_SIZE} filled)",
            )

        if participant.balance < amount:
            raise PayoutNotAllowed(participant.id, "insufficient balance")

        payout = await self.transaction_repo.create(
            participant_id=participant.id,
            type=TransactionType.PAYOUT.value,
            amount=amount,
            status=TransactionStatus.PENDING.value,
            reference=build_reference("WD"),
            description="User requested payout",
            details={
                "wallet_address": wallet_address or "",
                "triangle_id": str(position.triangle_id),
            },
        )

        self.logger.info(
            "Payout requested",
            extra={
                "participant_id": participant.id,
                "transaction_id": payout.id,
                "amount": str(amount),
            },
        )
        return payout

    async def _transition(
        self,
        transaction_id: int,
        expected_types: tuple[TransactionType, ...],
        target: TransactionStatus,
        **fields: object,
    ) -> Transaction:
        """Move an entry to target status under a row lock."""
        entry = await self.transaction_repo.get_for_update(transaction_id)
        if not entry or entry.type not in {t.value for t in expected_types}:
            raise TransactionNotFound(transaction_id)

        if not can_transition(entry.status, target):
            raise InvalidStatusTransition(entry.id, entry.status, target.value)

        previous = entry.status
        entry.status = target.value
        for key, value in fields.items():
            setattr(entry, key, value)
        await self.session.flush()

        self.logger.info(
            "Ledger entry transitioned",
            extra={
                "transaction_id": entry.id,
                "type": entry.type,
                "from_status": previous,
                "to_status": entry.status,
            },
        )
        return entry
