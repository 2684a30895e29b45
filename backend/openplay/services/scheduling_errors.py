"""
Scheduling errors raised by the doubles engine.

None of these are transient: callers surface them to an operator instead of
retrying. Every public engine operation is all-or-nothing, so when one of
these is raised nothing has been produced.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Sequence

if TYPE_CHECKING:
    from openplay.services.schedule_invariants import Violation


class SchedulingError(Exception):
    """Base class for all doubles scheduling errors"""

    code = "SCHEDULING_ERROR"


class UnsupportedParticipantCount(SchedulingError):
    """Roster size outside the supported range"""

    code = "UNSUPPORTED_PARTICIPANT_COUNT"

    def __init__(self, count: int, message: Optional[str] = None):
        self.count = count
        super().__init__(message or f"Unsupported participant count: {count} (supported: 4-12)")


class InsufficientPlayers(UnsupportedParticipantCount):
    code = "INSUFFICIENT_PLAYERS"

    def __init__(self, count: int):
        super().__init__(count, f"Need at least 4 players to generate matches, got {count}")


class TooManyPlayers(UnsupportedParticipantCount):
    code = "TOO_MANY_PLAYERS"

    def __init__(self, count: int):
        super().__init__(count, f"Maximum 12 players allowed for Open Play, got {count}")


class CannotRegenerate(SchedulingError):
    code = "CANNOT_REGENERATE"


class InsufficientEligiblePlayers(CannotRegenerate):
    """Fewer than 4 participants still have match quota left"""

    code = "CANNOT_REGENERATE_INSUFFICIENT_ELIGIBLE_PLAYERS"

    def __init__(self, eligible: Sequence[str], matches_needed: int):
        self.eligible = list(eligible)
        self.matches_needed = matches_needed
        super().__init__(
            f"Cannot build {matches_needed} more match(es): only {len(self.eligible)} "
            f"participant(s) have remaining quota ({', '.join(self.eligible) or 'none'})"
        )


class ConstraintViolation(SchedulingError):
    """A produced or supplied schedule breaks a scheduling invariant.

    ``violation`` is the first violation found; ``violations`` holds all of them
    in check order.
    """

    code = "CONSTRAINT_VIOLATION"

    def __init__(self, violations: List["Violation"]):
        if not violations:
            raise ValueError("ConstraintViolation requires at least one violation")
        self.violations = list(violations)
        self.violation = self.violations[0]
        super().__init__(self.violation.message)

    @property
    def kind(self) -> str:
        return self.violation.code

    @property
    def participant(self) -> Optional[str]:
        return self.violation.participant

    @property
    def match_numbers(self) -> List[int]:
        return list(self.violation.match_numbers)


class InternalScheduleInvariantViolation(SchedulingError):
    """A Rotation Catalog entry produced an invalid schedule. This is a defect."""

    code = "INTERNAL_SCHEDULE_INVARIANT_VIOLATION"

    def __init__(self, participant_count: int, violations: List["Violation"]):
        self.participant_count = participant_count
        self.violations = list(violations)
        details = "; ".join(v.message for v in self.violations) or "catalog entry malformed"
        super().__init__(f"Rotation table for {participant_count} players is corrupt: {details}")


class PlayerInCompletedMatch(SchedulingError):
    """Removal rejected: history cannot be rewritten"""

    code = "PLAYER_IN_COMPLETED_MATCH"

    def __init__(self, participant: str, match_numbers: Sequence[int]):
        self.participant = participant
        self.match_numbers = sorted(match_numbers)
        numbers = ", ".join(str(n) for n in self.match_numbers)
        super().__init__(
            f"{participant} already played completed match(es) {numbers} and cannot be removed from them"
        )


class UnknownParticipant(SchedulingError):
    code = "UNKNOWN_PARTICIPANT"

    def __init__(self, participant: str):
        self.participant = participant
        super().__init__(f"{participant} is not on the event roster")


class InvalidStatusTransition(SchedulingError):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, match_number: int, current: str, requested: str, reason: str):
        self.match_number = match_number
        self.current = current
        self.requested = requested
        super().__init__(f"Match {match_number}: cannot go from {current} to {requested}: {reason}")
