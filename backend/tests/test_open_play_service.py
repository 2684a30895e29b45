"""Event store: read-decide-write units and the revision guard."""
import random

import pytest
from sqlalchemy import text
from sqlmodel import Session, select

from openplay.models.open_play_match import OpenPlayMatch
from openplay.services import open_play_service
from openplay.services.open_play_service import (
    EventNotFound,
    MatchNotFound,
    StaleScheduleError,
)


def _roster(n):
    return [f"P{i + 1}" for i in range(n)]


def _concurrent_bump(session: Session, event_id: int) -> None:
    """Another writer bumps the revision behind the ORM's back."""
    session.connection().execute(
        text("UPDATE openplayevent SET revision = revision + 1 WHERE id = :id"),
        {"id": event_id},
    )


class TestRevisionGuard:
    def test_each_mutation_bumps_revision(self, session: Session):
        event = open_play_service.create_event(session, "Guard", _roster(6))
        assert event.revision == 0

        event, _ = open_play_service.generate_event_matches(session, event.id, rng=random.Random(1))
        assert event.revision == 1

        open_play_service.update_match_runtime(session, event.id, 1, score="21-9")
        assert open_play_service.get_event(session, event.id).revision == 2

        event, new = open_play_service.regenerate_event_matches(session, event.id, expected_revision=2)
        assert event.revision == 3
        assert [m.match_number for m in new] == [2, 3]

    def test_concurrent_writer_wins(self, session: Session):
        event = open_play_service.create_event(session, "Race", _roster(6))
        event_id = event.id
        open_play_service.generate_event_matches(session, event_id)
        open_play_service.update_match_runtime(session, event_id, 1, score="21-9")

        # Load the snapshot, then let another writer commit first
        open_play_service.get_event(session, event_id)
        _concurrent_bump(session, event_id)

        with pytest.raises(StaleScheduleError):
            open_play_service.regenerate_event_matches(session, event_id)

        rows = session.exec(
            select(OpenPlayMatch).where(OpenPlayMatch.event_id == event_id)
        ).all()
        assert len(rows) == 3

    def test_expected_revision_mismatch(self, session: Session):
        event = open_play_service.create_event(session, "Mismatch", _roster(4))
        with pytest.raises(StaleScheduleError):
            open_play_service.generate_event_matches(session, event.id, expected_revision=5)
        assert open_play_service.get_event(session, event.id).matches_generated is False


class TestOutOfOrderResults:
    def test_regenerate_fills_the_number_left_by_an_unplayed_match(self, session: Session):
        event = open_play_service.create_event(session, "Out of order", _roster(8))
        open_play_service.generate_event_matches(session, event.id, rng=random.Random(2))
        open_play_service.update_match_runtime(session, event.id, 2, score="21-14")

        _, new = open_play_service.regenerate_event_matches(session, event.id)

        assert [m.match_number for m in new] == [1, 3, 4]
        numbers = [m.match_number for m in open_play_service.event_matches(session, event.id)]
        assert numbers == [1, 2, 3, 4]
        assert open_play_service.validate_event_schedule(session, event.id).ok

    def test_remove_player_fills_the_gap(self, session: Session):
        event = open_play_service.create_event(session, "Withdrawal", _roster(8))
        open_play_service.generate_event_matches(session, event.id)
        open_play_service.update_match_runtime(session, event.id, 2, score="21-14")

        # P1 has not played yet: matches 1 and 3 are still scheduled
        _, new = open_play_service.remove_event_player(session, event.id, "P1")

        assert [m.match_number for m in new] == [1, 3]
        numbers = [m.match_number for m in open_play_service.event_matches(session, event.id)]
        assert numbers == [1, 2, 3]
        assert open_play_service.validate_event_schedule(session, event.id).ok


class TestStoreReads:
    def test_missing_event(self, session: Session):
        with pytest.raises(EventNotFound):
            open_play_service.get_event(session, 12345)

    def test_missing_match(self, session: Session):
        event = open_play_service.create_event(session, "Reads", _roster(4))
        open_play_service.generate_event_matches(session, event.id)
        with pytest.raises(MatchNotFound):
            open_play_service.update_match_runtime(session, event.id, 9, status="in_progress")

    def test_event_matches_round_trip_values(self, session: Session):
        event = open_play_service.create_event(session, "Values", _roster(8))
        _, generated = open_play_service.generate_event_matches(session, event.id, rng=random.Random(4))
        assert open_play_service.event_matches(session, event.id) == generated

    def test_player_load_and_validation(self, session: Session):
        event = open_play_service.create_event(session, "Load", _roster(7))
        open_play_service.generate_event_matches(session, event.id)
        loads = open_play_service.event_player_load(session, event.id)
        assert sorted(load.match_count for load in loads.values()) == [1, 1, 2, 2, 2, 2, 2]
        assert open_play_service.validate_event_schedule(session, event.id).ok
