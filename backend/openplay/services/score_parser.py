"""
Minimal score parser for recorded doubles results.

Scores are free text entered by an operator, team1 first:
  "21-19"          → 1 game, 21-19
  "6-4 6-2"        → 2 sets
  "6-4, 3-6, 10-7" → comma-separated variant

Returns None on parse failure (non-fatal); callers decide whether an
unparseable score is acceptable.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

MAX_SCORE_LENGTH = 50


@dataclass
class ParsedScore:
    sets: List[Tuple[int, int]]  # (team1, team2) per set
    team1_sets_won: int
    team2_sets_won: int
    team1_points: int
    team2_points: int

    @property
    def winning_team(self) -> Optional[int]:
        """1 or 2 when the result is decisive, else None."""
        if self.team1_sets_won > self.team2_sets_won:
            return 1
        if self.team2_sets_won > self.team1_sets_won:
            return 2
        return None


def parse_score(raw: Optional[str]) -> Optional[ParsedScore]:
    """Parse strings like '21-19', '6-4 6-2', '6-4, 3-6, 10-7'."""
    if not raw or not raw.strip():
        return None

    normalized = raw.replace(",", " ").strip()
    parts = normalized.split()

    sets: List[Tuple[int, int]] = []
    for part in parts:
        pair = part.split("-")
        if len(pair) != 2:
            return None
        try:
            a = int(pair[0])
            b = int(pair[1])
        except ValueError:
            return None
        if a < 0 or b < 0:
            return None
        sets.append((a, b))

    if not sets:
        return None

    return ParsedScore(
        sets=sets,
        team1_sets_won=sum(1 for a, b in sets if a > b),
        team2_sets_won=sum(1 for a, b in sets if b > a),
        team1_points=sum(a for a, _ in sets),
        team2_points=sum(b for _, b in sets),
    )
