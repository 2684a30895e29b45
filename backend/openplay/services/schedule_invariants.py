"""
Schedule Invariant Verifier
===========================
Pure checking pass over a doubles schedule, run after generation and after
every regeneration.

Checks, in order:
  1) Match shape: exactly 4 distinct players, team1/team2 split them 2/2
     with no overlap, and result fields are consistent with the status
  2) Match numbers are unique (and, for a stored schedule, run 1..k)
  3) No participant appears in more than 2 matches
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from openplay.services.match_types import (
    MAX_MATCHES_PER_PLAYER,
    PLAYERS_PER_MATCH,
    PLAYERS_PER_TEAM,
    Match,
    MatchStatus,
)
from openplay.services.scheduling_errors import ConstraintViolation

logger = logging.getLogger(__name__)

# Violation codes
WRONG_PLAYER_COUNT = "WRONG_PLAYER_COUNT"
DUPLICATE_PLAYER_IN_MATCH = "DUPLICATE_PLAYER_IN_MATCH"
WRONG_TEAM_SIZE = "WRONG_TEAM_SIZE"
TEAM_OVERLAP = "TEAM_OVERLAP"
TEAMS_DO_NOT_MATCH_PLAYERS = "TEAMS_DO_NOT_MATCH_PLAYERS"
INVALID_RESULT = "INVALID_RESULT"
DUPLICATE_MATCH_NUMBER = "DUPLICATE_MATCH_NUMBER"
PLAYER_OVER_CAP = "PLAYER_OVER_CAP"
DUPLICATE_PARTICIPANT = "DUPLICATE_PARTICIPANT"
MATCH_NOT_COMPLETED = "MATCH_NOT_COMPLETED"
MATCH_NUMBER_GAP = "MATCH_NUMBER_GAP"


# ─── Data structures ─────────────────────────────────────────────────────

@dataclass
class Violation:
    code: str
    message: str
    match_numbers: List[int] = field(default_factory=list)
    participant: Optional[str] = None
    context: Optional[Dict[str, Any]] = None


@dataclass
class InvariantStats:
    matches_checked: int = 0
    malformed_matches: int = 0
    duplicate_numbers: int = 0
    players_over_cap: int = 0


@dataclass
class InvariantReport:
    ok: bool
    violations: List[Violation] = field(default_factory=list)
    stats: InvariantStats = field(default_factory=InvariantStats)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "violations": [
                {
                    "code": v.code,
                    "message": v.message,
                    "match_numbers": v.match_numbers,
                    "participant": v.participant,
                    "context": v.context,
                }
                for v in self.violations
            ],
            "stats": {
                "matches_checked": self.stats.matches_checked,
                "malformed_matches": self.stats.malformed_matches,
                "duplicate_numbers": self.stats.duplicate_numbers,
                "players_over_cap": self.stats.players_over_cap,
            },
        }


# ─── Check 1: match shape ────────────────────────────────────────────────

def _check_match_shape(match: Match) -> List[Violation]:
    """Shape of a single match: 4 distinct players partitioned 2/2."""
    num = match.match_number
    violations: List[Violation] = []

    players = list(match.players)
    if len(players) != PLAYERS_PER_MATCH:
        violations.append(Violation(
            code=WRONG_PLAYER_COUNT,
            message=f"Match {num} has {len(players)} players (expected {PLAYERS_PER_MATCH})",
            match_numbers=[num],
            context={"players": players},
        ))

    seen = set()
    for p in players:
        if p in seen:
            violations.append(Violation(
                code=DUPLICATE_PLAYER_IN_MATCH,
                message=f"Match {num} lists {p} more than once",
                match_numbers=[num],
                participant=p,
            ))
        seen.add(p)

    for label, team in (("team1", match.team1), ("team2", match.team2)):
        if len(team) != PLAYERS_PER_TEAM or len(set(team)) != PLAYERS_PER_TEAM:
            violations.append(Violation(
                code=WRONG_TEAM_SIZE,
                message=f"Match {num} {label} has {len(set(team))} distinct players (expected {PLAYERS_PER_TEAM})",
                match_numbers=[num],
                context={label: list(team)},
            ))

    overlap = set(match.team1) & set(match.team2)
    for p in sorted(overlap):
        violations.append(Violation(
            code=TEAM_OVERLAP,
            message=f"Match {num}: {p} is on both teams",
            match_numbers=[num],
            participant=p,
        ))

    if set(match.team1) | set(match.team2) != set(players):
        violations.append(Violation(
            code=TEAMS_DO_NOT_MATCH_PLAYERS,
            message=f"Match {num}: team1 + team2 do not add up to the match players",
            match_numbers=[num],
            context={"players": players, "team1": list(match.team1), "team2": list(match.team2)},
        ))

    return violations


def _check_result_fields(match: Match) -> List[Violation]:
    """A completed match carries a score; a score carries a winning team (1 or 2)."""
    num = match.match_number
    problems = []
    if match.winning_team is not None and match.winning_team not in (1, 2):
        problems.append(f"winning_team must be 1 or 2, got {match.winning_team}")
    if match.winning_team is not None and not match.score:
        problems.append("winning_team is set without a score")
    if match.score and match.winning_team is None:
        problems.append("score is recorded without a winning team")
    if match.status == MatchStatus.completed and not match.score:
        problems.append("completed match has no score")
    if match.status != MatchStatus.completed and (match.score or match.winning_team is not None):
        problems.append(f"result recorded on a {match.status.value} match")

    return [
        Violation(code=INVALID_RESULT, message=f"Match {num}: {p}", match_numbers=[num])
        for p in problems
    ]


# ─── Check 2: unique match numbers ───────────────────────────────────────

def _check_unique_numbers(matches: Sequence[Match]) -> List[Violation]:
    counts: Dict[int, int] = defaultdict(int)
    for m in matches:
        counts[m.match_number] += 1

    return [
        Violation(
            code=DUPLICATE_MATCH_NUMBER,
            message=f"Match number {number} is used {count} times",
            match_numbers=[number],
            context={"count": count},
        )
        for number, count in sorted(counts.items())
        if count > 1
    ]


def _check_contiguous_numbers(matches: Sequence[Match]) -> List[Violation]:
    """Match numbers form 1..k with no gaps."""
    numbers = {m.match_number for m in matches}
    if not numbers:
        return []
    missing = [n for n in range(1, max(numbers) + 1) if n not in numbers]
    if not missing:
        return []
    return [Violation(
        code=MATCH_NUMBER_GAP,
        message=f"Match numbers skip {missing}",
        match_numbers=missing,
        context={"numbers": sorted(numbers)},
    )]


# ─── Check 3: per-player cap ─────────────────────────────────────────────

def _check_player_cap(
    matches: Sequence[Match],
    cap: int = MAX_MATCHES_PER_PLAYER,
) -> List[Violation]:
    """No participant (from the union of all matches) plays more than ``cap`` matches."""
    player_matches: Dict[str, List[int]] = defaultdict(list)
    for m in matches:
        for p in set(m.players):
            player_matches[p].append(m.match_number)

    violations = []
    for p, numbers in player_matches.items():
        if len(numbers) > cap:
            violations.append(Violation(
                code=PLAYER_OVER_CAP,
                message=f"{p} is in {len(numbers)} matches (cap={cap}): {sorted(numbers)}",
                match_numbers=sorted(numbers),
                participant=p,
                context={"count": len(numbers)},
            ))
    return violations


# ─── Roster check ────────────────────────────────────────────────────────

def check_roster(roster: Sequence[str]) -> List[Violation]:
    """The roster must not list anyone twice."""
    seen = set()
    violations = []
    for p in roster:
        if p in seen:
            violations.append(Violation(
                code=DUPLICATE_PARTICIPANT,
                message=f"{p} appears more than once in the roster",
                participant=p,
            ))
        seen.add(p)
    return violations


# ─── Public API ──────────────────────────────────────────────────────────

def validate_schedule(matches: Iterable[Match], require_contiguous: bool = False) -> InvariantReport:
    """Run every check over *matches* and return the full report.

    ``require_contiguous`` also checks that the numbers run 1..k; only a
    complete stored schedule is expected to satisfy it.
    """
    matches = list(matches)
    stats = InvariantStats(matches_checked=len(matches))
    violations: List[Violation] = []

    for m in matches:
        found = _check_match_shape(m) + _check_result_fields(m)
        if found:
            stats.malformed_matches += 1
        violations.extend(found)

    duplicates = _check_unique_numbers(matches)
    stats.duplicate_numbers = len(duplicates)
    violations.extend(duplicates)

    if require_contiguous:
        violations.extend(_check_contiguous_numbers(matches))

    over_cap = _check_player_cap(matches)
    stats.players_over_cap = len(over_cap)
    violations.extend(over_cap)

    return InvariantReport(ok=not violations, violations=violations, stats=stats)


def ensure_valid_schedule(matches: Iterable[Match], require_contiguous: bool = False) -> InvariantReport:
    """Like validate_schedule, but raise ConstraintViolation on the first failure."""
    report = validate_schedule(matches, require_contiguous)
    if not report.ok:
        logger.warning(
            "Schedule failed %d invariant check(s); first: %s",
            len(report.violations),
            report.violations[0].message,
        )
        raise ConstraintViolation(report.violations)
    return report
