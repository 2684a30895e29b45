from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from openplay.models.open_play_match import OpenPlayMatch


class OpenPlayEvent(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    # Confirmed registrants in the order matches are generated from
    roster: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    matches_generated: bool = Field(default=False)
    # Bumped on every schedule mutation (compare-and-set guard)
    revision: int = Field(default=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = Field(default=None)

    matches: List["OpenPlayMatch"] = Relationship(
        back_populates="event",
        sa_relationship_kwargs={"order_by": "OpenPlayMatch.match_number", "cascade": "all, delete-orphan"},
    )
