"""
Schedule mutation endpoints: generate, regenerate, remove a participant.

Each mutation accepts ``expected_revision``; a mismatch returns 409 so the
operator reloads before deciding again.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlmodel import Session

from openplay.database import get_session
from openplay.services import open_play_service
from openplay.services.match_types import Match
from openplay.services.open_play_service import OpenPlayStoreError
from openplay.services.rotation_catalog import max_matches
from openplay.services.scheduling_errors import SchedulingError
from openplay.utils.http_errors import to_http_exception

router = APIRouter()


class ScheduleMutation(BaseModel):
    expected_revision: Optional[int] = None


class RemovePlayerRequest(BaseModel):
    player_id: str
    expected_revision: Optional[int] = None

    @field_validator("player_id")
    @classmethod
    def validate_player_id(cls, v):
        if not v or not v.strip():
            raise ValueError("player_id cannot be empty")
        return v.strip()


class MatchResponse(BaseModel):
    match_number: int
    court: int
    players: List[str]
    team1: List[str]
    team2: List[str]
    status: str
    score: Optional[str] = None
    winning_team: Optional[int] = None


class ScheduleMutationResponse(BaseModel):
    event_id: int
    revision: int
    roster: List[str]
    new_matches: List[MatchResponse]
    matches: List[MatchResponse]


class PlayerLoadResponse(BaseModel):
    match_count: int
    match_numbers: List[int]


class ScheduleAnalysisResponse(BaseModel):
    total_matches: int
    max_matches: Optional[int] = None
    player_stats: Dict[str, PlayerLoadResponse]


def _mutation_response(session: Session, event, new_matches: List[Match]) -> ScheduleMutationResponse:
    return ScheduleMutationResponse(
        event_id=event.id,
        revision=event.revision,
        roster=event.roster,
        new_matches=[MatchResponse(**m.to_dict()) for m in new_matches],
        matches=[MatchResponse(**m.to_dict()) for m in open_play_service.event_matches(session, event.id)],
    )


@router.post("/events/{event_id}/matches/generate", response_model=ScheduleMutationResponse)
def generate_matches(
    event_id: int,
    payload: Optional[ScheduleMutation] = None,
    session: Session = Depends(get_session),
):
    """Generate the full schedule from the roster. Refused once play has started."""
    payload = payload or ScheduleMutation()
    try:
        event, matches = open_play_service.generate_event_matches(
            session, event_id, expected_revision=payload.expected_revision
        )
    except (SchedulingError, OpenPlayStoreError) as e:
        raise to_http_exception(e) from e
    return _mutation_response(session, event, matches)


@router.post("/events/{event_id}/matches/regenerate", response_model=ScheduleMutationResponse)
def regenerate_matches(
    event_id: int,
    payload: Optional[ScheduleMutation] = None,
    session: Session = Depends(get_session),
):
    """Keep completed matches and rebuild everything that has not been played."""
    payload = payload or ScheduleMutation()
    try:
        event, new_matches = open_play_service.regenerate_event_matches(
            session, event_id, expected_revision=payload.expected_revision
        )
    except (SchedulingError, OpenPlayStoreError) as e:
        raise to_http_exception(e) from e
    return _mutation_response(session, event, new_matches)


@router.post("/events/{event_id}/remove-player", response_model=ScheduleMutationResponse)
def remove_player(
    event_id: int,
    payload: RemovePlayerRequest,
    session: Session = Depends(get_session),
):
    try:
        event, new_matches = open_play_service.remove_event_player(
            session, event_id, payload.player_id, expected_revision=payload.expected_revision
        )
    except (SchedulingError, OpenPlayStoreError) as e:
        raise to_http_exception(e) from e
    return _mutation_response(session, event, new_matches)


@router.get("/events/{event_id}/matches", response_model=List[MatchResponse])
def list_matches(event_id: int, session: Session = Depends(get_session)):
    try:
        matches = open_play_service.event_matches(session, event_id)
    except OpenPlayStoreError as e:
        raise to_http_exception(e) from e
    return [MatchResponse(**m.to_dict()) for m in matches]


@router.get("/events/{event_id}/matches/analysis", response_model=ScheduleAnalysisResponse)
def analyze_matches(event_id: int, session: Session = Depends(get_session)):
    """Per-participant match count and match numbers for the current schedule"""
    try:
        event = open_play_service.get_event(session, event_id)
        loads = open_play_service.event_player_load(session, event_id)
        total = len(open_play_service.event_matches(session, event_id))
    except OpenPlayStoreError as e:
        raise to_http_exception(e) from e

    try:
        target = max_matches(len(event.roster))
    except SchedulingError:
        target = None

    return ScheduleAnalysisResponse(
        total_matches=total,
        max_matches=target,
        player_stats={
            p: PlayerLoadResponse(match_count=load.match_count, match_numbers=load.match_numbers)
            for p, load in loads.items()
        },
    )


@router.get("/events/{event_id}/matches/validate")
def validate_matches(event_id: int, session: Session = Depends(get_session)) -> Dict[str, Any]:
    """Run every schedule invariant over the stored matches (read-only)"""
    try:
        report = open_play_service.validate_event_schedule(session, event_id)
    except OpenPlayStoreError as e:
        raise to_http_exception(e) from e
    return report.to_dict()
