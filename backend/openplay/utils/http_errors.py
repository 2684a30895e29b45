"""
Translate engine and store errors into HTTP responses.

Routes call ``raise to_http_exception(e) from e`` inside their except
blocks. The response detail always carries the error ``code`` next to the
human-readable message; constraint errors also list their violations.
"""
from typing import Any, Dict

from fastapi import HTTPException

from openplay.services.open_play_service import (
    EventNotFound,
    MatchesNotGenerated,
    MatchNotFound,
    OpenPlayStoreError,
    ScheduleLockedError,
    StaleScheduleError,
)
from openplay.services.scheduling_errors import (
    ConstraintViolation,
    InternalScheduleInvariantViolation,
    PlayerInCompletedMatch,
    SchedulingError,
    UnknownParticipant,
)


def _status_for(exc: Exception) -> int:
    if isinstance(exc, (EventNotFound, MatchNotFound)):
        return 404
    if isinstance(exc, (StaleScheduleError, ScheduleLockedError, MatchesNotGenerated, PlayerInCompletedMatch)):
        return 409
    if isinstance(exc, InternalScheduleInvariantViolation):
        return 500
    if isinstance(exc, UnknownParticipant):
        return 404
    return 422


def error_detail(exc: Exception) -> Dict[str, Any]:
    detail: Dict[str, Any] = {
        "code": getattr(exc, "code", type(exc).__name__),
        "message": str(exc),
    }
    if isinstance(exc, (ConstraintViolation, InternalScheduleInvariantViolation)):
        detail["violations"] = [
            {
                "code": v.code,
                "message": v.message,
                "match_numbers": v.match_numbers,
                "participant": v.participant,
            }
            for v in exc.violations
        ]
    if isinstance(exc, PlayerInCompletedMatch):
        detail["participant"] = exc.participant
        detail["match_numbers"] = exc.match_numbers
    return detail


def to_http_exception(exc: Exception) -> HTTPException:
    if not isinstance(exc, (SchedulingError, OpenPlayStoreError)):
        raise TypeError(f"No HTTP mapping for {type(exc).__name__}")
    return HTTPException(status_code=_status_for(exc), detail=error_detail(exc))
