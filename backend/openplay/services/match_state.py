"""
Per-match state machine: scheduled → in_progress → completed.

scheduled → completed is allowed (result entered without live tracking).
completed is terminal: changing a played match is a regeneration decision,
not a transition. Functions return new Match values and never mutate.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Optional, Union

from openplay.services.match_types import Match, MatchStatus
from openplay.services.score_parser import MAX_SCORE_LENGTH, parse_score
from openplay.services.scheduling_errors import InvalidStatusTransition

ALLOWED_TRANSITIONS = {
    (MatchStatus.scheduled, MatchStatus.in_progress),
    (MatchStatus.scheduled, MatchStatus.completed),
    (MatchStatus.in_progress, MatchStatus.completed),
}


def validate_status_transition(match: Match, new: Union[MatchStatus, str]) -> MatchStatus:
    """Return the requested status as a MatchStatus, or raise InvalidStatusTransition."""
    current = match.status
    try:
        requested = MatchStatus(new)
    except ValueError:
        raise InvalidStatusTransition(match.match_number, current.value, str(new), "unknown status")

    if current == MatchStatus.completed:
        raise InvalidStatusTransition(
            match.match_number, current.value, requested.value, "completed is terminal"
        )
    if requested == MatchStatus.scheduled and current != MatchStatus.scheduled:
        raise InvalidStatusTransition(
            match.match_number, current.value, requested.value, "cannot revert to scheduled"
        )
    if (current, requested) not in ALLOWED_TRANSITIONS:
        raise InvalidStatusTransition(
            match.match_number, current.value, requested.value, "transition not allowed"
        )
    return requested


def start_match(match: Match) -> Match:
    validate_status_transition(match, MatchStatus.in_progress)
    return replace(match, status=MatchStatus.in_progress)


def complete_match(match: Match, score: str, winning_team: Optional[int] = None) -> Match:
    """
    Record a result and mark the match completed.

    When ``winning_team`` is omitted it is inferred from the score; a score
    that is unparseable or tied then makes the request invalid.
    """
    validate_status_transition(match, MatchStatus.completed)

    score = (score or "").strip()
    if not score:
        raise InvalidStatusTransition(
            match.match_number, match.status.value, MatchStatus.completed.value,
            "a completed match must carry a score",
        )
    if len(score) > MAX_SCORE_LENGTH:
        raise InvalidStatusTransition(
            match.match_number, match.status.value, MatchStatus.completed.value,
            f"score cannot exceed {MAX_SCORE_LENGTH} characters",
        )

    if winning_team is None:
        parsed = parse_score(score)
        winning_team = parsed.winning_team if parsed else None
        if winning_team is None:
            raise InvalidStatusTransition(
                match.match_number, match.status.value, MatchStatus.completed.value,
                f"winning team required: cannot infer a winner from score '{score}'",
            )
    elif winning_team not in (1, 2):
        raise InvalidStatusTransition(
            match.match_number, match.status.value, MatchStatus.completed.value,
            "winning team must be 1 or 2",
        )

    return replace(match, status=MatchStatus.completed, score=score, winning_team=winning_team)
