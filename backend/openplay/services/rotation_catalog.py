"""
Rotation Catalog: Fairness Table and fixed player groupings (single source of truth).

For every supported roster size this module defines:
  - MAX_MATCHES: how many doubles matches the event contains
  - ROTATIONS:   which roster positions (0-indexed, caller's order) share each match

Each match uses 4 player slots and nobody may play more than 2 matches, so
the total is bounded by 4 * matches <= 2 * n. The groupings are hand-verified
designs, not a formula: supporting a new roster size means adding a new,
verified entry here.
"""

from collections import Counter
from typing import Dict, List, Tuple

from openplay.services.match_types import MAX_MATCHES_PER_PLAYER, PLAYERS_PER_MATCH
from openplay.services.scheduling_errors import (
    InsufficientPlayers,
    TooManyPlayers,
    UnsupportedParticipantCount,
)

MIN_PLAYERS = 4
MAX_PLAYERS = 12

Group = Tuple[int, int, int, int]

# =============================================================================
# Fairness Table
# =============================================================================

MAX_MATCHES: Dict[int, int] = {
    4: 2,   # everyone plays 2
    5: 2,   # 3 play 2, 2 play 1
    6: 3,   # everyone plays 2
    7: 3,   # 5 play 2, 2 play 1
    8: 4,   # everyone plays 2
    9: 4,   # 7 play 2, 2 play 1
    10: 5,  # everyone plays 2
    11: 5,  # 9 play 2, 2 play 1
    12: 6,  # everyone plays 2
}

# =============================================================================
# Rotation Catalog
# =============================================================================

ROTATIONS: Dict[int, Tuple[Group, ...]] = {
    4: (
        (0, 1, 2, 3),
        (0, 2, 1, 3),
    ),
    5: (
        (0, 1, 2, 3),
        (0, 4, 1, 2),
    ),
    6: (
        (0, 1, 2, 3),
        (4, 5, 0, 2),
        (1, 3, 4, 5),
    ),
    7: (
        (0, 1, 2, 3),
        (4, 5, 0, 2),
        (6, 1, 3, 4),
    ),
    8: (
        (0, 1, 2, 3),
        (4, 5, 6, 7),
        (0, 4, 1, 5),
        (2, 6, 3, 7),
    ),
    9: (
        (0, 1, 2, 3),
        (4, 5, 6, 7),
        (8, 0, 4, 6),
        (1, 2, 5, 7),
    ),
    10: (
        (0, 1, 2, 3),
        (4, 5, 6, 7),
        (8, 9, 0, 4),
        (1, 5, 2, 6),
        (3, 7, 8, 9),
    ),
    11: (
        (0, 1, 2, 3),
        (4, 5, 6, 7),
        (8, 9, 0, 4),
        (10, 1, 2, 5),
        (3, 6, 7, 8),
    ),
    12: (
        (0, 1, 2, 3),
        (4, 5, 6, 7),
        (8, 9, 10, 11),
        (0, 4, 8, 10),
        (1, 5, 9, 11),
        (2, 6, 3, 7),
    ),
}


def check_participant_count(n: int) -> None:
    """Raise the count error matching *n*, or return if n is supported."""
    if n < MIN_PLAYERS:
        raise InsufficientPlayers(n)
    if n > MAX_PLAYERS:
        raise TooManyPlayers(n)
    if n not in MAX_MATCHES:
        raise UnsupportedParticipantCount(n)


def max_matches(n: int) -> int:
    """Number of matches an event with *n* participants contains."""
    if n not in MAX_MATCHES:
        raise UnsupportedParticipantCount(n)
    return MAX_MATCHES[n]


def rotation_for(n: int) -> List[Group]:
    """Ordered position groups (one per match) for *n* participants."""
    if n not in ROTATIONS:
        raise UnsupportedParticipantCount(n)
    return list(ROTATIONS[n])


def verify_rotation_entry(n: int) -> List[str]:
    """
    Check one catalog entry against the Fairness Table.

    Returns a list of problems; empty means the entry is sound.
    """
    problems: List[str] = []
    groups = ROTATIONS.get(n)
    if groups is None:
        return [f"no rotation table for {n} players"]

    expected = MAX_MATCHES.get(n)
    if len(groups) != expected:
        problems.append(f"{n} players: {len(groups)} groups, expected {expected}")

    load: Counter = Counter()
    for index, group in enumerate(groups, start=1):
        if len(group) != PLAYERS_PER_MATCH or len(set(group)) != PLAYERS_PER_MATCH:
            problems.append(f"{n} players: group {index} is not 4 distinct positions: {group}")
        out_of_range = [p for p in group if not 0 <= p < n]
        if out_of_range:
            problems.append(f"{n} players: group {index} has positions out of range: {out_of_range}")
        load.update(set(group))

    for position, count in sorted(load.items()):
        if count > MAX_MATCHES_PER_PLAYER:
            problems.append(f"{n} players: position {position} appears in {count} groups")

    if n % 2 == 0:
        idle = [p for p in range(n) if load[p] != MAX_MATCHES_PER_PLAYER]
        if idle:
            problems.append(f"{n} players: positions {idle} do not play exactly 2 matches")

    # With 4 players there is only one possible foursome, so only larger tables
    # are required to use distinct groups.
    if n > PLAYERS_PER_MATCH:
        seen = set()
        for index, group in enumerate(groups, start=1):
            key = frozenset(group)
            if key in seen:
                problems.append(f"{n} players: group {index} repeats an earlier foursome")
            seen.add(key)

    return problems


def verify_catalog() -> Dict[int, List[str]]:
    """Verify every entry; returns {player_count: problems} for broken entries only."""
    broken = {}
    for n in range(MIN_PLAYERS, MAX_PLAYERS + 1):
        problems = verify_rotation_entry(n)
        if problems:
            broken[n] = problems
    return broken
