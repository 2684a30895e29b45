from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlmodel import Session

from openplay.database import get_session
from openplay.services import open_play_service
from openplay.services.open_play_service import OpenPlayStoreError
from openplay.utils.http_errors import to_http_exception

router = APIRouter()


class EventCreate(BaseModel):
    title: str
    roster: List[str] = []

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v or not v.strip():
            raise ValueError("title cannot be empty")
        return v.strip()


class RosterUpdate(BaseModel):
    roster: List[str]
    expected_revision: Optional[int] = None


class EventResponse(BaseModel):
    id: int
    title: str
    roster: List[str]
    matches_generated: bool
    revision: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


@router.post("/events", response_model=EventResponse, status_code=201)
def create_event(event_data: EventCreate, session: Session = Depends(get_session)):
    """Create an Open Play event with its (possibly empty) roster"""
    try:
        return open_play_service.create_event(session, event_data.title, event_data.roster)
    except OpenPlayStoreError as e:
        raise to_http_exception(e) from e


@router.get("/events", response_model=List[EventResponse])
def list_events(session: Session = Depends(get_session)):
    return open_play_service.list_events(session)


@router.get("/events/{event_id}", response_model=EventResponse)
def get_event(event_id: int, session: Session = Depends(get_session)):
    try:
        return open_play_service.get_event(session, event_id)
    except OpenPlayStoreError as e:
        raise to_http_exception(e) from e


@router.put("/events/{event_id}/roster", response_model=EventResponse)
def update_roster(event_id: int, payload: RosterUpdate, session: Session = Depends(get_session)):
    """Replace the roster. Drops any generated (unstarted) matches."""
    try:
        return open_play_service.update_roster(
            session, event_id, payload.roster, expected_revision=payload.expected_revision
        )
    except OpenPlayStoreError as e:
        raise to_http_exception(e) from e
