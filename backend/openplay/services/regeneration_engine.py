"""
Regeneration Engine: rebuild the not-yet-played tail of a doubles schedule.

Completed matches are frozen history: they keep their numbers, rosters and
results. New matches cover only the remaining quota of play:

  quota[p]       = 2 - appearances of p in completed matches
  matches needed = max_matches(len(roster)) - len(completed)

Groups are built greedily, highest remaining quota first, ties broken by
roster order, so a participant with two matches left is never stranded.
The whole result is re-validated together with the completed matches;
regeneration is all-or-nothing.

Removal is a thin layer on top: drop one participant from the roster and
regenerate over the reduced pool.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence

from openplay.services.doubles_generator import build_match
from openplay.services.match_types import (
    MAX_MATCHES_PER_PLAYER,
    PLAYERS_PER_MATCH,
    Match,
    Participant,
)
from openplay.services.rotation_catalog import MAX_MATCHES, MIN_PLAYERS, check_participant_count, max_matches
from openplay.services.schedule_invariants import (
    MATCH_NOT_COMPLETED,
    Violation,
    check_roster,
    ensure_valid_schedule,
)
from openplay.services.scheduling_errors import (
    ConstraintViolation,
    InsufficientEligiblePlayers,
    PlayerInCompletedMatch,
    UnknownParticipant,
)

logger = logging.getLogger(__name__)


@dataclass
class RemovalResult:
    completed: List[Match]
    new: List[Match]
    discarded: List[Match] = field(default_factory=list)
    roster: List[Participant] = field(default_factory=list)


def remaining_quota(
    roster: Sequence[Participant],
    completed: Sequence[Match],
) -> Dict[Participant, int]:
    """Matches each roster member may still be given, in roster order."""
    played: Dict[Participant, int] = {p: 0 for p in roster}
    for m in completed:
        for p in set(m.players):
            if p in played:
                played[p] += 1
    return {p: MAX_MATCHES_PER_PLAYER - count for p, count in played.items()}


def fill_number_gaps(completed: Sequence[Match], new: Sequence[Match]) -> List[Match]:
    """
    Renumber *new* onto the lowest numbers not used by *completed*.

    Results may be entered out of order (match 2 before match 1), so the
    completed numbers can have holes; the new matches fill those first and
    then continue upward, keeping the whole schedule at 1..k.
    """
    taken = {m.match_number for m in completed}
    free: List[int] = []
    number = 1
    while len(free) < len(new):
        if number not in taken:
            free.append(number)
        number += 1
    return [replace(m, match_number=n) for m, n in zip(new, free)]


def _check_completed_input(completed: Sequence[Match]) -> None:
    """Completed history must itself be valid; it is never repaired here."""
    not_completed = [
        Violation(
            code=MATCH_NOT_COMPLETED,
            message=f"Match {m.match_number} is {m.status.value}, not completed",
            match_numbers=[m.match_number],
        )
        for m in completed
        if not m.is_completed
    ]
    if not_completed:
        raise ConstraintViolation(not_completed)
    ensure_valid_schedule(completed)


def _build_groups(
    roster: Sequence[Participant],
    quota: Dict[Participant, int],
    matches_needed: int,
) -> List[List[Participant]]:
    order = {p: i for i, p in enumerate(roster)}
    left = dict(quota)
    groups: List[List[Participant]] = []

    for _ in range(matches_needed):
        candidates = [p for p in roster if left[p] > 0]
        if len(candidates) < PLAYERS_PER_MATCH:
            raise InsufficientEligiblePlayers(candidates, matches_needed - len(groups))
        candidates.sort(key=lambda p: (-left[p], order[p]))
        group = candidates[:PLAYERS_PER_MATCH]
        for p in group:
            left[p] -= 1
        groups.append(group)

    return groups


def regenerate_matches(
    full_roster: Sequence[Participant],
    completed: Sequence[Match],
    next_match_number: int,
    rng: Optional[random.Random] = None,
) -> List[Match]:
    """
    Compute the new matches that complete a partially played schedule.

    Returns only the new matches, numbered contiguously from
    ``next_match_number``; callers concatenate them after ``completed``.
    An empty list means the target match count is already met.

    Raises:
        InsufficientPlayers / TooManyPlayers: roster size outside 4-12
        ConstraintViolation: completed history is invalid, or the combined
            schedule would break an invariant
        InsufficientEligiblePlayers: fewer than 4 participants have quota left
    """
    roster = list(full_roster)
    check_participant_count(len(roster))
    duplicates = check_roster(roster)
    if duplicates:
        raise ConstraintViolation(duplicates)
    if next_match_number < 1:
        raise ValueError(f"next_match_number must be >= 1, got {next_match_number}")

    completed = list(completed)
    _check_completed_input(completed)

    quota = remaining_quota(roster, completed)
    logger.debug("Remaining quota before regeneration: %s", quota)

    matches_needed = max_matches(len(roster)) - len(completed)
    if matches_needed <= 0:
        logger.info(
            "No regeneration needed: %d completed matches already meet the target for %d players",
            len(completed),
            len(roster),
        )
        return []

    eligible = [p for p in roster if quota[p] > 0]
    if len(eligible) < MIN_PLAYERS:
        logger.warning(
            "Cannot regenerate %d match(es): only %d eligible participant(s)",
            matches_needed,
            len(eligible),
        )
        raise InsufficientEligiblePlayers(eligible, matches_needed)

    groups = _build_groups(roster, quota, matches_needed)
    new_matches = [
        build_match(next_match_number + i, group, rng)
        for i, group in enumerate(groups)
    ]

    ensure_valid_schedule(completed + new_matches)

    logger.info(
        "Regenerated %d match(es) (#%d-#%d) for %d players after %d completed",
        len(new_matches),
        new_matches[0].match_number,
        new_matches[-1].match_number,
        len(roster),
        len(completed),
    )
    return new_matches


def remove_player(
    full_roster: Sequence[Participant],
    completed: Sequence[Match],
    incomplete: Sequence[Match],
    player_id: Participant,
    rng: Optional[random.Random] = None,
) -> RemovalResult:
    """
    Withdraw ``player_id`` and regenerate every incomplete match without them.

    Raises:
        UnknownParticipant: player is not on the roster
        PlayerInCompletedMatch: player already appears in a completed match
        InsufficientEligiblePlayers: the reduced pool cannot fill a match
    """
    roster = list(full_roster)
    if player_id not in roster:
        raise UnknownParticipant(player_id)

    completed = list(completed)
    played = [m.match_number for m in completed if m.involves(player_id)]
    if played:
        raise PlayerInCompletedMatch(player_id, played)

    reduced = [p for p in roster if p != player_id]
    if len(reduced) < MIN_PLAYERS:
        quota = remaining_quota(reduced, completed)
        raise InsufficientEligiblePlayers(
            [p for p in reduced if quota[p] > 0],
            max(0, MAX_MATCHES.get(len(roster), 0) - len(completed)),
        )

    next_number = max((m.match_number for m in completed), default=0) + 1
    new_matches = fill_number_gaps(
        completed, regenerate_matches(reduced, completed, next_number, rng)
    )

    logger.info(
        "Removed %s: replaced %d incomplete match(es) with %d new",
        player_id,
        len(incomplete),
        len(new_matches),
    )
    return RemovalResult(
        completed=completed,
        new=new_matches,
        discarded=list(incomplete),
        roster=reduced,
    )
