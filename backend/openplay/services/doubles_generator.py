"""
Doubles match generation for Open Play events.

Every participant plays at most 2 matches. Who shares a match is decided by
the Rotation Catalog; within each foursome the players are shuffled and split
into two teams of two, so events that reuse a roster order do not repeat the
same partnerships. The shuffle carries no fairness weight.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from openplay.services.match_types import PLAYERS_PER_MATCH, Match, Participant
from openplay.services.rotation_catalog import check_participant_count, max_matches, rotation_for
from openplay.services.schedule_invariants import check_roster, validate_schedule
from openplay.services.scheduling_errors import (
    ConstraintViolation,
    InternalScheduleInvariantViolation,
)

logger = logging.getLogger(__name__)


@dataclass
class PlayerLoad:
    match_count: int
    match_numbers: List[int]


@dataclass
class RotationAnalysis:
    matches: List[Match]
    player_stats: Dict[Participant, PlayerLoad]
    total_matches: int


def build_match(
    match_number: int,
    group: Sequence[Participant],
    rng: Optional[random.Random] = None,
) -> Match:
    """Shuffle a foursome (Fisher-Yates) and split it into team1/team2."""
    shuffled = list(group)
    (rng or random).shuffle(shuffled)
    return Match.from_group(match_number, tuple(shuffled))


def generate_matches(
    roster: Sequence[Participant],
    rng: Optional[random.Random] = None,
) -> List[Match]:
    """
    Generate the full schedule for a roster of 4-12 participants.

    Matches are numbered 1..max_matches(n) in catalog order, all scheduled on
    court 1.

    Raises:
        InsufficientPlayers / TooManyPlayers: roster size outside 4-12
        ConstraintViolation: roster lists a participant twice
        InternalScheduleInvariantViolation: the catalog entry is corrupt
    """
    roster = list(roster)
    n = len(roster)
    check_participant_count(n)

    duplicates = check_roster(roster)
    if duplicates:
        raise ConstraintViolation(duplicates)

    groups = rotation_for(n)
    if len(groups) != max_matches(n):
        raise InternalScheduleInvariantViolation(n, [])

    matches: List[Match] = []
    for index, positions in enumerate(groups, start=1):
        if len(positions) != PLAYERS_PER_MATCH or any(not 0 <= p < n for p in positions):
            raise InternalScheduleInvariantViolation(n, [])
        matches.append(build_match(index, [roster[p] for p in positions], rng))

    report = validate_schedule(matches)
    if not report.ok:
        logger.error("Rotation table for %d players failed validation: %s", n, report.to_dict())
        raise InternalScheduleInvariantViolation(n, report.violations)

    logger.info("Generated %d doubles matches for %d players", len(matches), n)
    return matches


def generate_matches_from_number(
    roster: Sequence[Participant],
    starting_match_number: int = 1,
    rng: Optional[random.Random] = None,
) -> List[Match]:
    """Generate a fresh schedule whose numbering starts at ``starting_match_number``."""
    if starting_match_number < 1:
        raise ValueError(f"starting_match_number must be >= 1, got {starting_match_number}")
    offset = starting_match_number - 1
    return [
        Match(
            match_number=m.match_number + offset,
            players=m.players,
            team1=m.team1,
            team2=m.team2,
            court=m.court,
        )
        for m in generate_matches(roster, rng)
    ]


def player_load(
    matches: Sequence[Match],
    roster: Optional[Sequence[Participant]] = None,
) -> Dict[Participant, PlayerLoad]:
    """Per-participant match count and match numbers. Roster members with no match get 0."""
    numbers: Dict[Participant, List[int]] = {p: [] for p in roster or []}
    for m in sorted(matches, key=lambda m: m.match_number):
        for p in m.players:
            numbers.setdefault(p, []).append(m.match_number)
    return {p: PlayerLoad(match_count=len(nums), match_numbers=nums) for p, nums in numbers.items()}


def analyze_rotation(
    roster: Sequence[Participant],
    rng: Optional[random.Random] = None,
) -> RotationAnalysis:
    """Generate a schedule and report how the load falls on each participant."""
    matches = generate_matches(roster, rng)
    return RotationAnalysis(
        matches=matches,
        player_stats=player_load(matches, roster),
        total_matches=len(matches),
    )
