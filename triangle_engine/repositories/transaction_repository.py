"""
Transaction repository.

Data access layer for ledger entries.
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from triangle_engine.models.enums import TransactionStatus, TransactionType
from triangle_engine.models.transaction import Transaction
from triangle_engine.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Transaction repository with ledger queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize transaction repository."""
        super().__init__(Transaction, session)

    async def get_by_participant(
        self,
        participant_id: str,
        tx_type: TransactionType | None = None,
    ) -> list[Transaction]:
        """
        Get ledger entries of a participant, oldest first.

        Args:
            participant_id: Participant ID
            tx_type: Optional type filter

        Returns:
            List of ledger entries
        """
        stmt = select(Transaction).where(
            Transaction.participant_id == participant_id
        )
        if tx_type is not None:
            stmt = stmt.where(Transaction.type == tx_type.value)
        stmt = stmt.order_by(Transaction.created_at.asc(), Transaction.id.asc())

        result = await self.session.execute(
            stmt.execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def consolidate_for_participant(
        self, participant_id: str, exclude_id: int
    ) -> int:
        """
        Move a participant's settled entries to consolidated.

        Only confirmed and completed entries are consolidated; pending and
        rejected entries keep their status.

        Args:
            participant_id: Participant ID
            exclude_id: Entry that triggered consolidation

        Returns:
            Number of consolidated entries
        """
        stmt = (
            update(Transaction)
            .where(
                Transaction.participant_id == participant_id,
                Transaction.id != exclude_id,
                Transaction.status.in_(
                    [
                        TransactionStatus.CONFIRMED.value,
                        TransactionStatus.COMPLETED.value,
                    ]
                ),
            )
            .values(status=TransactionStatus.CONSOLIDATED.value)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0
