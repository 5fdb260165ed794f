"""
Integration tests for the ledger service.

Tests cover:
- Funding open/confirm/reject
- Participants deactivated by a rejected funding
- Withdrawal confirm/complete/reject and consolidation
- Participant payout requests
"""

from decimal import Decimal

import pytest

from triangle_engine.models import Participant, TransactionStatus, TransactionType
from triangle_engine.repositories.transaction_repository import (
    TransactionRepository,
)
from triangle_engine.repositories.triangle_repository import TriangleRepository
from triangle_engine.services.ledger import LedgerService
from triangle_engine.services.participant import ParticipantService
from triangle_engine.services.triangle_service import TriangleService
from triangle_engine.utils.exceptions import (
    AlreadyAssigned,
    InvalidStatusTransition,
    ParticipantInactive,
    ParticipantNotFound,
    PayoutNotAllowed,
    TransactionNotFound,
)


async def complete_tree(session, make_participant, seed_tree):
    """Fill a King triangle so its root holds a pending withdrawal."""
    triangle, occupants = await seed_tree(filled=14)
    await TriangleService(session).assign((await make_participant()).id)
    withdrawals = await TransactionRepository(session).get_by_participant(
        occupants[0].id, TransactionType.WITHDRAWAL
    )
    return triangle, occupants, withdrawals[0]


class TestFunding:
    """Test the funding entry lifecycle."""

    @pytest.mark.asyncio
    async def test_open_funding(self, session, make_participant):
        participant = await make_participant(tier="Queen")

        deposit = await LedgerService(session).open_funding(participant.id)

        assert deposit.type == TransactionType.DEPOSIT.value
        assert deposit.status == TransactionStatus.PENDING.value
        assert deposit.amount == Decimal("50")
        assert deposit.reference.startswith("DP")
        assert set(deposit.details) == {"coin", "network", "wallet_address"}

    @pytest.mark.asyncio
    async def test_open_funding_returns_pending(self, session, make_participant):
        participant = await make_participant()
        ledger = LedgerService(session)

        first = await ledger.open_funding(participant.id)
        second = await ledger.open_funding(participant.id)

        assert first.id == second.id

    @pytest.mark.asyncio
    async def test_open_funding_unknown_participant(self, session):
        with pytest.raises(ParticipantNotFound):
            await LedgerService(session).open_funding("0" * 32)

    @pytest.mark.asyncio
    async def test_confirm_funding(self, session, make_participant, seed_tree):
        """Test confirmation places the participant and pays the upline."""
        upline_tree, upline_occupants = await seed_tree(filled=2)
        upline_id = upline_occupants[1].id
        participant = await make_participant(upline_id=upline_id)
        ledger = LedgerService(session)
        deposit = await ledger.open_funding(participant.id)

        result = await ledger.confirm_funding(deposit.id)

        assert result.transaction.status == TransactionStatus.CONFIRMED.value
        assert result.transaction.confirmed_at is not None
        assert result.position.triangle_id == upline_tree.id
        assert result.position.position_key == "AB2"
        assert result.referral_bonus.participant_id == upline_id
        assert result.referral_bonus.amount == Decimal("10")

        funded = await session.get(Participant, participant.id, populate_existing=True)
        assert funded.funded_at is not None
        upline = await session.get(Participant, upline_id, populate_existing=True)
        assert upline.balance == Decimal("10")

    @pytest.mark.asyncio
    async def test_confirm_funding_without_upline(self, session, make_participant):
        participant = await make_participant()
        ledger = LedgerService(session)
        deposit = await ledger.open_funding(participant.id)

        result = await ledger.confirm_funding(deposit.id)

        assert result.referral_bonus is None
        assert result.position.position_key == "A"

    @pytest.mark.asyncio
    async def test_confirm_funding_twice(self, session, make_participant):
        participant = await make_participant()
        ledger = LedgerService(session)
        deposit = await ledger.open_funding(participant.id)
        deposit_id = deposit.id
        await ledger.confirm_funding(deposit_id)

        with pytest.raises(InvalidStatusTransition):
            await ledger.confirm_funding(deposit_id)

    @pytest.mark.asyncio
    async def test_confirm_funding_rolls_back_on_assign_failure(
        self, session, make_participant
    ):
        """Test a failed placement leaves the deposit pending."""
        participant = await make_participant()
        participant_id = participant.id
        ledger = LedgerService(session)
        await TriangleService(session).assign(participant_id)
        deposit = await ledger.open_funding(participant_id)
        deposit_id = deposit.id

        with pytest.raises(AlreadyAssigned):
            await ledger.confirm_funding(deposit_id)

        entry = await TransactionRepository(session).get_for_update(deposit_id)
        assert entry.status == TransactionStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_confirm_funding_credits_upline_before_placement(
        self, session, make_participant
    ):
        """Test the upline row is taken before any triangle row."""
        upline = await make_participant()
        participant = await make_participant(upline_id=upline.id)
        ledger = LedgerService(session)
        deposit = await ledger.open_funding(participant.id)

        calls = []
        credit_referral_bonus = ledger.bonus_processor.credit_referral_bonus
        assign = ledger.allocator.assign

        async def recording_bonus(participant_id):
            calls.append("bonus")
            return await credit_referral_bonus(participant_id)

        async def recording_assign(participant_id, referrer_id=None):
            calls.append("assign")
            return await assign(participant_id, referrer_id)

        ledger.bonus_processor.credit_referral_bonus = recording_bonus
        ledger.allocator.assign = recording_assign

        result = await ledger.confirm_funding(deposit.id)

        assert calls == ["bonus", "assign"]
        assert result.referral_bonus.participant_id == upline.id

    @pytest.mark.asyncio
    async def test_bonus_rolled_back_on_assign_failure(
        self, session, make_participant
    ):
        upline = await make_participant()
        upline_id = upline.id
        participant = await make_participant(upline_id=upline_id)
        participant_id = participant.id
        await TriangleService(session).assign(participant_id)
        ledger = LedgerService(session)
        deposit = await ledger.open_funding(participant_id)
        deposit_id = deposit.id

        with pytest.raises(AlreadyAssigned):
            await ledger.confirm_funding(deposit_id)

        stored = await session.get(Participant, upline_id, populate_existing=True)
        assert stored.balance == Decimal("0")
        bonuses = await TransactionRepository(session).get_by_participant(
            upline_id, TransactionType.REFERRAL_BONUS
        )
        assert bonuses == []

    @pytest.mark.asyncio
    async def test_reject_funding(self, session, make_participant):
        participant = await make_participant()
        participant_id = participant.id
        ledger = LedgerService(session)
        deposit = await ledger.open_funding(participant_id)

        rejected = await ledger.reject_funding(deposit.id, "Amount mismatch")

        assert rejected.status == TransactionStatus.REJECTED.value
        assert rejected.rejected_at is not None
        assert rejected.rejection_reason == "Amount mismatch"
        stored = await session.get(Participant, participant_id, populate_existing=True)
        assert stored.is_active is False

    @pytest.mark.asyncio
    async def test_unknown_transaction(self, session):
        with pytest.raises(TransactionNotFound):
            await LedgerService(session).confirm_funding(999)


async def register_rejected(session, display_name: str) -> str:
    """Register a participant and reject their funding."""
    participant = await ParticipantService(session).register(display_name, "King")
    participant_id = participant.id
    deposits = await TransactionRepository(session).get_by_participant(
        participant_id, TransactionType.DEPOSIT
    )
    await LedgerService(session).reject_funding(deposits[0].id)
    return participant_id


class TestDeactivatedParticipant:
    """Test a participant with rejected funding drops out of the engine."""

    @pytest.mark.asyncio
    async def test_not_resolvable_as_referrer(self, session):
        await register_rejected(session, "ghost")

        assert await TriangleService(session).resolve_referrer("ghost") is None

        newcomer = await ParticipantService(session).register(
            "newcomer", "King", referrer_identifier="ghost"
        )
        assert newcomer.upline_id is None

    @pytest.mark.asyncio
    async def test_earns_no_bonus_from_existing_downline(self, session):
        """Test a downline registered before the rejection pays no bonus."""
        ghost = await ParticipantService(session).register("ghost", "King")
        ghost_id = ghost.id
        newcomer = await ParticipantService(session).register(
            "newcomer", "King", referrer_identifier="ghost"
        )
        assert newcomer.upline_id == ghost_id
        transactions = TransactionRepository(session)
        ledger = LedgerService(session)
        ghost_deposits = await transactions.get_by_participant(
            ghost_id, TransactionType.DEPOSIT
        )
        await ledger.reject_funding(ghost_deposits[0].id)
        newcomer_deposits = await transactions.get_by_participant(
            newcomer.id, TransactionType.DEPOSIT
        )

        result = await ledger.confirm_funding(newcomer_deposits[0].id)

        assert result.referral_bonus is None
        assert result.position.position_key == "A"
        stored = await session.get(Participant, ghost_id, populate_existing=True)
        assert stored.balance == Decimal("0")

    @pytest.mark.asyncio
    async def test_cannot_be_placed(self, session):
        ghost_id = await register_rejected(session, "ghost")

        with pytest.raises(ParticipantInactive):
            await TriangleService(session).assign(ghost_id)


class TestWithdrawal:
    """Test the withdrawal lifecycle after a triangle payout."""

    @pytest.mark.asyncio
    async def test_confirm_and_complete(self, session, make_participant, seed_tree):
        triangle, occupants, withdrawal = await complete_tree(
            session, make_participant, seed_tree
        )
        root_id = occupants[0].id
        # Earlier bonus entry that completion consolidates
        downline = await make_participant(upline_id=root_id)
        await TriangleService(session).credit_referral_bonus(downline.id)
        ledger = LedgerService(session)

        confirmed = await ledger.confirm_withdrawal(withdrawal.id)
        assert confirmed.status == TransactionStatus.CONFIRMED.value

        completed = await ledger.complete_withdrawal(withdrawal.id)
        assert completed.status == TransactionStatus.COMPLETED.value
        assert completed.completed_at is not None

        entries = await TransactionRepository(session).get_by_participant(root_id)
        statuses = {e.type: e.status for e in entries}
        assert statuses == {
            TransactionType.WITHDRAWAL.value: TransactionStatus.COMPLETED.value,
            TransactionType.REFERRAL_BONUS.value: TransactionStatus.CONSOLIDATED.value,
        }

        root = await session.get(Participant, root_id, populate_existing=True)
        assert root.is_active is False
        assert await TriangleRepository(session).count_occupied(triangle.id) == 15

    @pytest.mark.asyncio
    async def test_complete_requires_confirmation(
        self, session, make_participant, seed_tree
    ):
        _, _, withdrawal = await complete_tree(session, make_participant, seed_tree)

        with pytest.raises(InvalidStatusTransition):
            await LedgerService(session).complete_withdrawal(withdrawal.id)

    @pytest.mark.asyncio
    async def test_reject_keeps_balance(self, session, make_participant, seed_tree):
        """Test rejection does not reverse the completion credit."""
        _, occupants, withdrawal = await complete_tree(
            session, make_participant, seed_tree
        )
        root_id = occupants[0].id

        rejected = await LedgerService(session).reject_withdrawal(
            withdrawal.id, "Wallet mismatch"
        )

        assert rejected.status == TransactionStatus.REJECTED.value
        assert rejected.rejection_reason == "Wallet mismatch"
        root = await session.get(Participant, root_id, populate_existing=True)
        assert root.balance == Decimal("400")

    @pytest.mark.asyncio
    async def test_deposit_is_not_a_withdrawal(self, session, make_participant):
        participant = await make_participant()
        deposit = await LedgerService(session).open_funding(participant.id)
        deposit_id = deposit.id

        with pytest.raises(TransactionNotFound):
            await LedgerService(session).confirm_withdrawal(deposit_id)


class TestPayoutRequest:
    """Test participant-initiated payout requests."""

    @pytest.mark.asyncio
    async def test_root_of_complete_tree(self, session, make_participant, seed_tree):
        triangle, occupants, _ = await complete_tree(
            session, make_participant, seed_tree
        )

        payout = await LedgerService(session).request_payout(
            occupants[0].id, Decimal("150"), wallet_address="TXYZwallet"
        )

        assert payout.type == TransactionType.PAYOUT.value
        assert payout.status == TransactionStatus.PENDING.value
        assert payout.amount == Decimal("150")
        assert payout.details == {
            "wallet_address": "TXYZwallet",
            "triangle_id": str(triangle.id),
        }

    @pytest.mark.asyncio
    async def test_payout_entry_follows_withdrawal_workflow(
        self, session, make_participant, seed_tree
    ):
        _, occupants, _ = await complete_tree(session, make_participant, seed_tree)
        ledger = LedgerService(session)
        payout = await ledger.request_payout(occupants[0].id, Decimal("100"))

        confirmed = await ledger.confirm_withdrawal(payout.id)

        assert confirmed.status == TransactionStatus.CONFIRMED.value

    @pytest.mark.asyncio
    async def test_insufficient_balance(self, session, make_participant, seed_tree):
        _, occupants, _ = await complete_tree(session, make_participant, seed_tree)
        root_id = occupants[0].id

        with pytest.raises(PayoutNotAllowed, match="insufficient balance"):
            await LedgerService(session).request_payout(root_id, Decimal("401"))

    @pytest.mark.asyncio
    async def test_non_root_rejected(self, session, make_participant, seed_tree):
        """Test a redistributed occupant cannot request a payout."""
        _, occupants, _ = await complete_tree(session, make_participant, seed_tree)
        occupant_id = occupants[5].id

        with pytest.raises(PayoutNotAllowed, match="root occupant"):
            await LedgerService(session).request_payout(occupant_id, Decimal("1"))

    @pytest.mark.asyncio
    async def test_root_of_open_tree_rejected(
        self, session, make_participant, seed_tree
    ):
        """Test a promoted root must wait for its own triangle to fill."""
        _, occupants, _ = await complete_tree(session, make_participant, seed_tree)
        promoted_id = occupants[1].id

        with pytest.raises(PayoutNotAllowed, match="7/15"):
            await LedgerService(session).request_payout(promoted_id, Decimal("1"))

    @pytest.mark.asyncio
    async def test_unplaced_participant(self, session, make_participant):
        participant = await make_participant()
        participant_id = participant.id

        with pytest.raises(PayoutNotAllowed, match="not placed"):
            await LedgerService(session).request_payout(participant_id, Decimal("1"))

    @pytest.mark.asyncio
    async def test_non_positive_amount(self, session, make_participant):
        participant = await make_participant()
        participant_id = participant.id

        with pytest.raises(PayoutNotAllowed, match="positive"):
            await LedgerService(session).request_payout(participant_id, Decimal("0"))
