"""
Unit tests for engine exceptions and their categories.
"""

from triangle_engine.utils.exceptions import (
    AlreadyAssigned,
    InvalidDisplayName,
    InvalidStatusTransition,
    InvariantViolation,
    ParticipantInactive,
    ParticipantNotFound,
    PayoutNotAllowed,
    PlanNotFound,
    SlotReservationConflict,
    TierMismatch,
    TriangleEngineError,
    is_fatal,
    is_validation_error,
)


class TestExceptionCategories:
    """Test handling categories."""

    def test_validation_errors(self):
        """Test caller-facing failures are validation errors."""
        for exc in (
            ParticipantNotFound("p1"),
            ParticipantInactive("p1"),
            InvalidDisplayName(""),
            AlreadyAssigned("p1", 3),
            TierMismatch("King", "Queen"),
            PlanNotFound("Pawn"),
            PayoutNotAllowed("p1", "insufficient balance"),
        ):
            assert is_validation_error(exc)
            assert not is_fatal(exc)

    def test_invariant_violation_is_fatal(self):
        exc = InvariantViolation(7, "16 occupants exceed 15 slots")
        assert is_fatal(exc)
        assert not is_validation_error(exc)

    def test_conflict_is_neither(self):
        """Test reservation conflicts are internal, not caller-facing."""
        exc = SlotReservationConflict(1, "AB1")
        assert not is_fatal(exc)
        assert not is_validation_error(exc)

    def test_plain_exception(self):
        assert not is_fatal(ValueError("x"))
        assert not is_validation_error(ValueError("x"))

    def test_common_base(self):
        assert isinstance(SlotReservationConflict(1), TriangleEngineError)
        assert isinstance(InvariantViolation(1, "x"), TriangleEngineError)


class TestExceptionAttributes:
    """Test context carried by exceptions."""

    def test_tier_mismatch(self):
        exc = TierMismatch("King", "Queen")
        assert exc.participant_tier == "King"
        assert exc.referrer_tier == "Queen"
        assert "Queen" in str(exc)

    def test_invalid_transition(self):
        exc = InvalidStatusTransition(5, "rejected", "confirmed")
        assert exc.transaction_id == 5
        assert exc.current == "rejected"
        assert exc.target == "confirmed"

    def test_conflict_without_key(self):
        exc = SlotReservationConflict(9)
        assert exc.position_key is None
        assert "triangle 9" in str(exc)

    def test_participant_inactive(self):
        exc = ParticipantInactive("p1")
        assert exc.participant_id == "p1"
        assert "inactive" in str(exc)
