"""
Completion detection and payout.

Runs after every reservation: flips a full triangle to complete exactly
once, credits its root occupant and hands the triangle to the cycler.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from triangle_engine.config.triangle_layout import (
    ROOT_LEVEL,
    ROOT_POSITION,
    TRIANGLE_SIZE,
)
from triangle_engine.models.enums import TransactionStatus, TransactionType
from triangle_engine.models.transaction import Transaction
from triangle_engine.models.triangle import Triangle
from triangle_engine.repositories.participant_repository import (
    ParticipantRepository,
)
from triangle_engine.repositories.plan_repository import PlanRepository
from triangle_engine.repositories.transaction_repository import (
    TransactionRepository,
)
from triangle_engine.repositories.triangle_repository import TriangleRepository
from triangle_engine.services.triangle.cycling import TriangleCycler
from triangle_engine.services.triangle.views import CycleResult
from triangle_engine.utils.exceptions import InvariantViolation, PlanNotFound
from triangle_engine.utils.referral_codes import build_reference


class CompletionHandler:
    """
    Completion detector and payout engine.

    Must run in the same unit of work as the reservation that filled the
    triangle.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize completion handler.

        Args:
            session: Async database session
        """
        self.session = session
        self.triangle_repo = TriangleRepository(session)
        self.participant_repo = ParticipantRepository(session)
        self.plan_repo = PlanRepository(session)
        self.transaction_repo = TransactionRepository(session)
        self.cycler = TriangleCycler(session)
        self.logger = logger.bind(service=self.__class__.__name__)

    async def check(self, triangle: Triangle) -> CycleResult | None:
        """
        Complete, pay out and cycle the triangle if all slots are filled.

        Args:
            triangle: Triangle that just received an occupant

        Returns:
            CycleResult if this call completed the triangle, else None

        Raises:
            InvariantViolation: Occupied count exceeds the triangle size or
                disagrees with the completion flag
            PlanNotFound: Triangle tier missing from the plan catalog
        """
        filled = await self.triangle_repo.count_occupied(triangle.id)

        if filled > TRIANGLE_SIZE:
            raise InvariantViolation(
                triangle.id, f"{filled} occupants exceed {TRIANGLE_SIZE} slots"
            )
        if filled < TRIANGLE_SIZE:
            if triangle.is_complete:
                raise InvariantViolation(
                    triangle.id, f"marked complete with {filled} occupants"
                )
            return None

        if triangle.is_complete or not await self.triangle_repo.mark_complete(
            triangle
        ):
            # Completed by an earlier call; payout and cycling already ran
            self.logger.debug(
                "Triangle already complete, nothing to do",
                extra={"triangle_id": triangle.id},
            )
            return None

        self.logger.info(
            "Triangle completed",
            extra={"triangle_id": triangle.id, "plan_type": triangle.plan_type},
        )

        await self.pay_root(triangle)
        return await self.cycler.cycle(triangle)

    async def pay_root(self, triangle: Triangle) -> Transaction | None:
        """
        Credit the root occupant with the tier payout.

        Records a pending withdrawal and credits balance and lifetime
        earnings immediately, before the withdrawal is confirmed.

        Args:
            triangle: Completed triangle

        Returns:
            Withdrawal entry, or None if the root slot is empty
        """
        root = next(
            (
                p
                for p in await self.triangle_repo.get_positions(triangle.id)
                if p.level == ROOT_LEVEL and p.position == ROOT_POSITION
            ),
            None,
        )
        if root is None or root.participant_id is None:
            self.logger.warning(
                "Completed triangle has no root occupant",
                extra={"triangle_id": triangle.id},
            )
            return None

        plan = await self.plan_repo.get_by_name(triangle.plan_type)
        if not plan:
            raise PlanNotFound(triangle.plan_type)

        participant = await self.participant_repo.get_by_id(root.participant_id)
        if not participant:
            raise InvariantViolation(
                triangle.id, f"root occupant {root.participant_id} does not exist"
            )

        withdrawal = await self.transaction_repo.create(
            participant_id=participant.id,
            type=TransactionType.WITHDRAWAL.value,
            amount=plan.payout_amount,
            status=TransactionStatus.PENDING.value,
            reference=build_reference("WD"),
            description="Automatic withdrawal - Triangle completion",
            details={
                "source": "triangle_completion",
                "triangle_id": str(triangle.id),
                "position_key": root.position_key,
            },
        )
        await self.participant_repo.credit(participant, plan.payout_amount)

        self.logger.info(
            "Root occupant paid",
            extra={
                "triangle_id": triangle.id,
                "participant_id": participant.id,
                "amount": str(plan.payout_amount),
                "transaction_id": withdrawal.id,
            },
        )

        return withdrawal
