"""
Exception handling utilities.

Defines typed engine errors and categorizes them by handling strategy.
"""


class TriangleEngineError(Exception):
    """Base class for engine errors."""

    pass


class ParticipantNotFound(TriangleEngineError):
    """Raised when a participant record does not exist."""

    def __init__(self, participant_id: str) -> None:
        super().__init__(f"Participant {participant_id} not found")
        self.participant_id = participant_id


class ParticipantInactive(TriangleEngineError):
    """Raised when a deactivated participant is placed or referred."""

    def __init__(self, participant_id: str) -> None:
        super().__init__(f"Participant {participant_id} is inactive")
        self.participant_id = participant_id


class InvalidDisplayName(TriangleEngineError):
    """Raised when a display name is empty."""

    def __init__(self, display_name: str) -> None:
        super().__init__(f"Display name {display_name!r} is not allowed")
        self.display_name = display_name


class ParticipantAlreadyExists(TriangleEngineError):
    """Raised when registering a display name that is taken."""

    def __init__(self, display_name: str) -> None:
        super().__init__(f"Participant {display_name!r} already exists")
        self.display_name = display_name


class AlreadyAssigned(TriangleEngineError):
    """Raised when a participant already holds an open position."""

    def __init__(self, participant_id: str, triangle_id: int) -> None:
        super().__init__(
            f"Participant {participant_id} already holds an open position "
            f"in triangle {triangle_id}"
        )
        self.participant_id = participant_id
        self.triangle_id = triangle_id


class TierMismatch(TriangleEngineError):
    """Raised when a referrer's tier differs from the participant's tier."""

    def __init__(self, participant_tier: str, referrer_tier: str) -> None:
        super().__init__(
            f"Referrer tier {referrer_tier} does not match "
            f"participant tier {participant_tier}"
        )
        self.participant_tier = participant_tier
        self.referrer_tier = referrer_tier


class PlanNotFound(TriangleEngineError):
    """Raised when a tier is missing from the plan catalog."""

    def __init__(self, tier: str) -> None:
        super().__init__(f"Plan {tier} not found in catalog")
        self.tier = tier


class TriangleNotFound(TriangleEngineError):
    """Raised when a triangle does not exist."""

    def __init__(self, triangle_id: int) -> None:
        super().__init__(f"Triangle {triangle_id} not found")
        self.triangle_id = triangle_id


class TransactionNotFound(TriangleEngineError):
    """Raised when a ledger entry does not exist or has the wrong type."""

    def __init__(self, transaction_id: int) -> None:
        super().__init__(f"Transaction {transaction_id} not found")
        self.transaction_id = transaction_id


class InvalidStatusTransition(TriangleEngineError):
    """Raised when a ledger entry cannot move to the requested status."""

    def __init__(self, transaction_id: int, current: str, target: str) -> None:
        super().__init__(
            f"Transaction {transaction_id} cannot move from {current} to {target}"
        )
        self.transaction_id = transaction_id
        self.current = current
        self.target = target


class PayoutNotAllowed(TriangleEngineError):
    """Raised when a participant may not request a payout."""

    def __init__(self, participant_id: str, reason: str) -> None:
        super().__init__(f"Payout not allowed for {participant_id}: {reason}")
        self.participant_id = participant_id
        self.reason = reason


class SlotReservationConflict(TriangleEngineError):
    """Raised when a slot was taken by a concurrent caller."""

    def __init__(self, triangle_id: int, position_key: str | None = None) -> None:
        super().__init__(
            f"Slot {position_key or '?'} in triangle {triangle_id} "
            f"was reserved concurrently"
        )
        self.triangle_id = triangle_id
        self.position_key = position_key


class InvariantViolation(TriangleEngineError):
    """Raised when stored triangle state breaks a structural invariant."""

    def __init__(self, triangle_id: int, message: str) -> None:
        super().__init__(f"Triangle {triangle_id}: {message}")
        self.triangle_id = triangle_id


# Exception categories based on handling strategy

# Validation failures returned to the caller as typed errors
VALIDATION_ERRORS = (
    ParticipantNotFound,
    ParticipantInactive,
    InvalidDisplayName,
    ParticipantAlreadyExists,
    AlreadyAssigned,
    TierMismatch,
    PlanNotFound,
    TriangleNotFound,
    TransactionNotFound,
    InvalidStatusTransition,
    PayoutNotAllowed,
)

# Fatal - log and escalate
FATAL = (
    InvariantViolation,
)


def is_validation_error(exc: Exception) -> bool:
    """
    Check if exception is an expected validation failure.

    Args:
        exc: Exception to check

    Returns:
        True if exception is a typed caller-facing failure
    """
    return isinstance(exc, VALIDATION_ERRORS)


def is_fatal(exc: Exception) -> bool:
    """
    Check if exception indicates corrupted state.

    Args:
        exc: Exception to check

    Returns:
        True if exception must be escalated
    """
    return isinstance(exc, FATAL)
