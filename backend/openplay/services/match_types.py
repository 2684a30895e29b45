"""Value types shared by the doubles scheduling engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

# Opaque registrant identifier; the engine never looks inside it.
Participant = str

# The event format models a single physical court.
DEFAULT_COURT = 1

PLAYERS_PER_MATCH = 4
PLAYERS_PER_TEAM = 2
MAX_MATCHES_PER_PLAYER = 2


class MatchStatus(str, Enum):
    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"


@dataclass(frozen=True)
class Match:
    """One doubles game. ``players`` is the shuffled order; team1/team2 split it 2/2."""

    match_number: int
    players: Tuple[Participant, ...]
    team1: Tuple[Participant, ...]
    team2: Tuple[Participant, ...]
    court: int = DEFAULT_COURT
    status: MatchStatus = MatchStatus.scheduled
    score: Optional[str] = None
    winning_team: Optional[int] = None

    @classmethod
    def from_group(cls, match_number: int, shuffled: Tuple[Participant, ...]) -> "Match":
        """Build a scheduled match from four already-shuffled participants."""
        return cls(
            match_number=match_number,
            players=tuple(shuffled),
            team1=tuple(shuffled[:PLAYERS_PER_TEAM]),
            team2=tuple(shuffled[PLAYERS_PER_TEAM:]),
        )

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.completed

    def involves(self, participant: Participant) -> bool:
        return participant in self.players

    def to_dict(self) -> Dict[str, Any]:
        return {
            "court": self.court,
            "match_number": self.match_number,
            "players": list(self.players),
            "team1": list(self.team1),
            "team2": list(self.team2),
            "status": self.status.value,
            "score": self.score,
            "winning_team": self.winning_team,
        }
