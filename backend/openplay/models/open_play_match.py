from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON, UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

from openplay.services.match_types import DEFAULT_COURT, Match, MatchStatus

if TYPE_CHECKING:
    from openplay.models.open_play_event import OpenPlayEvent


class OpenPlayMatch(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("event_id", "match_number", name="uq_event_match_number"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="openplayevent.id")
    match_number: int
    court: int = Field(default=DEFAULT_COURT)

    players: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    team1: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    team2: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    status: str = Field(default=MatchStatus.scheduled.value)  # "scheduled" | "in_progress" | "completed"
    score: Optional[str] = Field(default=None, max_length=50)
    winning_team: Optional[int] = Field(default=None)  # 1 | 2
    started_at: Optional[datetime] = Field(default=None)
    completed_at: Optional[datetime] = Field(default=None)

    event: "OpenPlayEvent" = Relationship(back_populates="matches")

    def to_match(self) -> Match:
        return Match(
            match_number=self.match_number,
            players=tuple(self.players),
            team1=tuple(self.team1),
            team2=tuple(self.team2),
            court=self.court,
            status=MatchStatus(self.status),
            score=self.score,
            winning_team=self.winning_team,
        )

    @classmethod
    def from_match(cls, event_id: int, match: Match) -> "OpenPlayMatch":
        return cls(
            event_id=event_id,
            match_number=match.match_number,
            court=match.court,
            players=list(match.players),
            team1=list(match.team1),
            team2=list(match.team2),
            status=match.status.value,
            score=match.score,
            winning_team=match.winning_team,
        )
