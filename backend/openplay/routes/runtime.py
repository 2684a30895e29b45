"""
Match runtime: status + results. No schedule mutation.

scheduled → in_progress → completed, or scheduled → completed directly when
the result is entered after the fact. completed is terminal.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from openplay.database import get_session
from openplay.services import open_play_service
from openplay.services.open_play_service import OpenPlayStoreError
from openplay.services.scheduling_errors import SchedulingError
from openplay.utils.http_errors import to_http_exception

router = APIRouter()


class MatchRuntimeUpdate(BaseModel):
    status: Optional[str] = None
    score: Optional[str] = None
    winning_team: Optional[int] = None
    expected_revision: Optional[int] = None


class MatchRuntimeState(BaseModel):
    event_id: int
    match_number: int
    court: int
    players: List[str]
    team1: List[str]
    team2: List[str]
    status: str
    score: Optional[str] = None
    winning_team: Optional[int] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MatchRuntimeUpdateResponse(BaseModel):
    match: MatchRuntimeState
    revision: int


@router.patch(
    "/events/{event_id}/runtime/matches/{match_number}",
    response_model=MatchRuntimeUpdateResponse,
)
def update_match_runtime(
    event_id: int,
    match_number: int,
    payload: MatchRuntimeUpdate,
    session: Session = Depends(get_session),
) -> MatchRuntimeUpdateResponse:
    """Update match status and/or record its result.
    When winning_team is omitted it is inferred from a decisive score."""
    try:
        row = open_play_service.update_match_runtime(
            session,
            event_id,
            match_number,
            status=payload.status,
            score=payload.score,
            winning_team=payload.winning_team,
            expected_revision=payload.expected_revision,
        )
        event = open_play_service.get_event(session, event_id)
    except (SchedulingError, OpenPlayStoreError) as e:
        raise to_http_exception(e) from e

    return MatchRuntimeUpdateResponse(
        match=MatchRuntimeState.model_validate(row),
        revision=event.revision,
    )
