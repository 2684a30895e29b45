"""
Open Play event store: persists engine output and match results.

Every schedule mutation is one read-decide-write unit guarded by the event
revision. The revision is bumped with a compare-and-set UPDATE, so two
writers computing from the same snapshot (e.g. a regeneration racing a
result entry) cannot both commit; the loser gets StaleScheduleError.
"""
from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import update
from sqlmodel import Session, select

from openplay.models.open_play_event import OpenPlayEvent
from openplay.models.open_play_match import OpenPlayMatch
from openplay.services.doubles_generator import PlayerLoad, generate_matches, player_load
from openplay.services.match_state import complete_match, start_match, validate_status_transition
from openplay.services.match_types import Match, MatchStatus
from openplay.services.regeneration_engine import fill_number_gaps, regenerate_matches, remove_player
from openplay.services.schedule_invariants import InvariantReport, check_roster, validate_schedule
from openplay.services.scheduling_errors import InvalidStatusTransition, UnknownParticipant

logger = logging.getLogger(__name__)


class OpenPlayStoreError(Exception):
    """Base exception for event store errors"""

    code = "OPEN_PLAY_STORE_ERROR"


class EventNotFound(OpenPlayStoreError):
    code = "EVENT_NOT_FOUND"


class MatchNotFound(OpenPlayStoreError):
    code = "MATCH_NOT_FOUND"


class StaleScheduleError(OpenPlayStoreError):
    """The event changed since the caller read it"""

    code = "STALE_SCHEDULE"


class ScheduleLockedError(OpenPlayStoreError):
    """The requested change would rewrite matches that already started"""

    code = "SCHEDULE_LOCKED"


class MatchesNotGenerated(OpenPlayStoreError):
    code = "MATCHES_NOT_GENERATED"


class InvalidRosterError(OpenPlayStoreError):
    code = "INVALID_ROSTER"


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ─── Reads ───────────────────────────────────────────────────────────────

def get_event(session: Session, event_id: int) -> OpenPlayEvent:
    event = session.get(OpenPlayEvent, event_id)
    if not event:
        raise EventNotFound(f"Open Play event {event_id} not found")
    return event


def list_events(session: Session) -> List[OpenPlayEvent]:
    return list(session.exec(select(OpenPlayEvent).order_by(OpenPlayEvent.id)).all())


def _match_rows(session: Session, event_id: int) -> List[OpenPlayMatch]:
    return list(
        session.exec(
            select(OpenPlayMatch)
            .where(OpenPlayMatch.event_id == event_id)
            .order_by(OpenPlayMatch.match_number)
        ).all()
    )


def event_matches(session: Session, event_id: int) -> List[Match]:
    get_event(session, event_id)
    return [row.to_match() for row in _match_rows(session, event_id)]


def event_player_load(session: Session, event_id: int) -> Dict[str, PlayerLoad]:
    event = get_event(session, event_id)
    return player_load(event_matches(session, event_id), event.roster)


def validate_event_schedule(session: Session, event_id: int) -> InvariantReport:
    return validate_schedule(event_matches(session, event_id), require_contiguous=True)


# ─── Revision guard ──────────────────────────────────────────────────────

def _claim_revision(session: Session, event: OpenPlayEvent, expected_revision: Optional[int]) -> int:
    """Compare-and-set the event revision; returns the new revision."""
    current = event.revision
    if expected_revision is not None and expected_revision != current:
        raise StaleScheduleError(
            f"Event {event.id} is at revision {current}, request was based on {expected_revision}"
        )

    result = session.execute(
        update(OpenPlayEvent)
        .where(OpenPlayEvent.id == event.id, OpenPlayEvent.revision == current)
        .values(revision=current + 1, updated_at=_now())
    )
    if result.rowcount != 1:
        session.rollback()
        raise StaleScheduleError(f"Event {event.id} was modified concurrently; reload and retry")
    return current + 1


def _replace_rows(session: Session, event_id: int, remove: Sequence[OpenPlayMatch], add: Sequence[Match]) -> None:
    for row in remove:
        session.delete(row)
    # Deletes must reach the database before inserts reuse their match numbers
    session.flush()
    for match in add:
        session.add(OpenPlayMatch.from_match(event_id, match))


# ─── Event lifecycle ─────────────────────────────────────────────────────

def _clean_roster(roster: Sequence[str]) -> List[str]:
    cleaned = [str(p).strip() for p in roster]
    if any(not p for p in cleaned):
        raise InvalidRosterError("Roster entries must be non-empty participant ids")
    duplicates = check_roster(cleaned)
    if duplicates:
        raise InvalidRosterError("; ".join(v.message for v in duplicates))
    return cleaned


def create_event(session: Session, title: str, roster: Sequence[str] = ()) -> OpenPlayEvent:
    event = OpenPlayEvent(title=title, roster=_clean_roster(roster))
    session.add(event)
    session.commit()
    session.refresh(event)
    logger.info("Created Open Play event %d with %d registrants", event.id, len(event.roster))
    return event


def update_roster(
    session: Session,
    event_id: int,
    roster: Sequence[str],
    expected_revision: Optional[int] = None,
) -> OpenPlayEvent:
    """Replace the roster. Existing scheduled matches are dropped; started ones block the change."""
    event = get_event(session, event_id)
    cleaned = _clean_roster(roster)
    rows = _match_rows(session, event_id)
    if any(row.status != MatchStatus.scheduled.value for row in rows):
        raise ScheduleLockedError("Cannot change the roster after matches have started")

    _claim_revision(session, event, expected_revision)
    _replace_rows(session, event_id, rows, [])
    event.roster = cleaned
    event.matches_generated = False
    session.add(event)
    session.commit()
    session.refresh(event)
    return event


# ─── Schedule operations ─────────────────────────────────────────────────

def generate_event_matches(
    session: Session,
    event_id: int,
    expected_revision: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> Tuple[OpenPlayEvent, List[Match]]:
    """Generate (or wholesale re-generate) the schedule before any match starts."""
    event = get_event(session, event_id)
    rows = _match_rows(session, event_id)
    if any(row.status != MatchStatus.scheduled.value for row in rows):
        raise ScheduleLockedError(
            "Matches already started; use regenerate to reshuffle the remaining matches"
        )

    matches = generate_matches(event.roster, rng)
    was_generated = event.matches_generated

    _claim_revision(session, event, expected_revision)
    _replace_rows(session, event_id, rows, matches)
    event.matches_generated = True
    session.add(event)
    session.commit()
    session.refresh(event)

    logger.info(
        "%s %d matches for event %d",
        "Regenerated" if was_generated else "Generated",
        len(matches),
        event_id,
    )
    return event, matches


def regenerate_event_matches(
    session: Session,
    event_id: int,
    expected_revision: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> Tuple[OpenPlayEvent, List[Match]]:
    """Keep completed matches, replace everything else. Returns the new matches only."""
    event = get_event(session, event_id)
    if not event.matches_generated:
        raise MatchesNotGenerated(f"Event {event_id} has no matches to regenerate")

    rows = _match_rows(session, event_id)
    completed = [row.to_match() for row in rows if row.status == MatchStatus.completed.value]
    incomplete_rows = [row for row in rows if row.status != MatchStatus.completed.value]
    next_number = max((m.match_number for m in completed), default=0) + 1

    new_matches = fill_number_gaps(
        completed, regenerate_matches(event.roster, completed, next_number, rng)
    )

    _claim_revision(session, event, expected_revision)
    _replace_rows(session, event_id, incomplete_rows, new_matches)
    session.commit()
    session.refresh(event)
    return event, new_matches


def remove_event_player(
    session: Session,
    event_id: int,
    player_id: str,
    expected_revision: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> Tuple[OpenPlayEvent, List[Match]]:
    """Withdraw a participant; incomplete matches are regenerated without them."""
    event = get_event(session, event_id)
    if player_id not in event.roster:
        raise UnknownParticipant(player_id)

    if not event.matches_generated:
        _claim_revision(session, event, expected_revision)
        event.roster = [p for p in event.roster if p != player_id]
        session.add(event)
        session.commit()
        session.refresh(event)
        return event, []

    rows = _match_rows(session, event_id)
    completed = [row.to_match() for row in rows if row.status == MatchStatus.completed.value]
    incomplete_rows = [row for row in rows if row.status != MatchStatus.completed.value]

    result = remove_player(
        event.roster,
        completed,
        [row.to_match() for row in incomplete_rows],
        player_id,
        rng,
    )

    _claim_revision(session, event, expected_revision)
    _replace_rows(session, event_id, incomplete_rows, result.new)
    event.roster = result.roster
    session.add(event)
    session.commit()
    session.refresh(event)
    return event, result.new


def update_match_runtime(
    session: Session,
    event_id: int,
    match_number: int,
    status: Optional[str] = None,
    score: Optional[str] = None,
    winning_team: Optional[int] = None,
    expected_revision: Optional[int] = None,
) -> OpenPlayMatch:
    """Apply a status transition and/or record a result on one match."""
    event = get_event(session, event_id)
    row = session.exec(
        select(OpenPlayMatch).where(
            OpenPlayMatch.event_id == event_id,
            OpenPlayMatch.match_number == match_number,
        )
    ).first()
    if not row:
        raise MatchNotFound(f"Match {match_number} not found in event {event_id}")

    current = row.to_match()
    records_result = score is not None or winning_team is not None
    if records_result and status not in (None, MatchStatus.completed.value):
        raise InvalidStatusTransition(
            match_number, current.status.value, status,
            "a score or winner can only be recorded when completing the match",
        )

    if records_result or status == MatchStatus.completed.value:
        updated = complete_match(current, score or "", winning_team)
    elif status is not None:
        requested = validate_status_transition(current, status)
        updated = start_match(current) if requested == MatchStatus.in_progress else current
    else:
        return row

    _claim_revision(session, event, expected_revision)
    row.status = updated.status.value
    row.score = updated.score
    row.winning_team = updated.winning_team
    if updated.status == MatchStatus.in_progress and row.started_at is None:
        row.started_at = _now()
    if updated.status == MatchStatus.completed:
        row.completed_at = _now()
    session.add(row)
    session.commit()
    session.refresh(row)

    if updated.status == MatchStatus.completed:
        logger.info(
            "Match %d of event %d completed: team %d won (%s)",
            match_number,
            event_id,
            updated.winning_team,
            updated.score,
        )
    return row
