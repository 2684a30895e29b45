"""Constraint Validator: each check in isolation plus the report shape."""
import pytest

from openplay.services.match_types import Match, MatchStatus
from openplay.services.schedule_invariants import (
    DUPLICATE_MATCH_NUMBER,
    DUPLICATE_PARTICIPANT,
    DUPLICATE_PLAYER_IN_MATCH,
    INVALID_RESULT,
    MATCH_NUMBER_GAP,
    PLAYER_OVER_CAP,
    TEAM_OVERLAP,
    TEAMS_DO_NOT_MATCH_PLAYERS,
    WRONG_PLAYER_COUNT,
    WRONG_TEAM_SIZE,
    check_roster,
    ensure_valid_schedule,
    validate_schedule,
)
from openplay.services.scheduling_errors import ConstraintViolation


def _match(number, players, **kwargs):
    players = tuple(players)
    return Match(
        match_number=number,
        players=players,
        team1=kwargs.pop("team1", players[:2]),
        team2=kwargs.pop("team2", players[2:]),
        **kwargs,
    )


def _codes(report):
    return [v.code for v in report.violations]


class TestValidSchedules:
    def test_empty_schedule_is_ok(self):
        report = validate_schedule([])
        assert report.ok
        assert report.stats.matches_checked == 0

    def test_well_formed_schedule(self):
        matches = [_match(1, "ABCD"), _match(2, "ACBD")]
        report = validate_schedule(matches)
        assert report.ok
        assert report.violations == []
        assert report.stats.matches_checked == 2

    def test_completed_match_with_result(self):
        m = _match(1, "ABCD", status=MatchStatus.completed, score="21-19", winning_team=1)
        assert validate_schedule([m]).ok


class TestMatchShape:
    def test_three_players(self):
        report = validate_schedule([_match(1, "ABC", team1=("A", "B"), team2=("C",))])
        assert WRONG_PLAYER_COUNT in _codes(report)
        assert WRONG_TEAM_SIZE in _codes(report)
        assert report.stats.malformed_matches == 1

    def test_repeated_player(self):
        report = validate_schedule([_match(1, "ABCA")])
        assert DUPLICATE_PLAYER_IN_MATCH in _codes(report)

    def test_player_on_both_teams(self):
        m = _match(1, "ABCD", team1=("A", "B"), team2=("B", "C"))
        codes = _codes(validate_schedule([m]))
        assert TEAM_OVERLAP in codes
        assert TEAMS_DO_NOT_MATCH_PLAYERS in codes

    def test_teams_not_drawn_from_players(self):
        m = _match(1, "ABCD", team1=("A", "B"), team2=("C", "E"))
        assert TEAMS_DO_NOT_MATCH_PLAYERS in _codes(validate_schedule([m]))


class TestResultFields:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"status": MatchStatus.completed},
            {"status": MatchStatus.completed, "score": "21-19"},
            {"status": MatchStatus.completed, "score": "21-19", "winning_team": 3},
            {"status": MatchStatus.scheduled, "score": "21-19", "winning_team": 1},
            {"status": MatchStatus.in_progress, "winning_team": 2},
        ],
    )
    def test_inconsistent_result(self, kwargs):
        report = validate_schedule([_match(1, "ABCD", **kwargs)])
        assert not report.ok
        assert INVALID_RESULT in _codes(report)


class TestCrossMatchChecks:
    def test_duplicate_match_number(self):
        report = validate_schedule([_match(1, "ABCD"), _match(1, "EFGH")])
        assert _codes(report) == [DUPLICATE_MATCH_NUMBER]
        assert report.stats.duplicate_numbers == 1

    def test_player_in_three_matches(self):
        matches = [_match(1, "ABCD"), _match(2, "AEFG"), _match(3, "AHIJ")]
        report = validate_schedule(matches)
        assert _codes(report) == [PLAYER_OVER_CAP]
        violation = report.violations[0]
        assert violation.participant == "A"
        assert violation.match_numbers == [1, 2, 3]
        assert report.stats.players_over_cap == 1

    def test_two_matches_is_within_cap(self):
        assert validate_schedule([_match(1, "ABCD"), _match(2, "ABCD")]).ok


class TestContiguousNumbers:
    def test_gap_reported_when_required(self):
        report = validate_schedule([_match(2, "ABCD"), _match(3, "EFGH")], require_contiguous=True)
        assert _codes(report) == [MATCH_NUMBER_GAP]
        assert report.violations[0].match_numbers == [1]

    def test_gap_ignored_by_default(self):
        assert validate_schedule([_match(2, "ABCD"), _match(3, "EFGH")]).ok

    def test_one_to_k_passes(self):
        report = validate_schedule([_match(2, "ABCD"), _match(1, "EFGH")], require_contiguous=True)
        assert report.ok


class TestRoster:
    def test_duplicate_participant(self):
        violations = check_roster(["A", "B", "A"])
        assert [v.code for v in violations] == [DUPLICATE_PARTICIPANT]
        assert violations[0].participant == "A"

    def test_unique_roster(self):
        assert check_roster(["A", "B", "C"]) == []


class TestEnsureValid:
    def test_raises_first_violation(self):
        matches = [_match(1, "ABCD"), _match(2, "AEFG"), _match(3, "AHIJ")]
        with pytest.raises(ConstraintViolation) as exc_info:
            ensure_valid_schedule(matches)
        err = exc_info.value
        assert err.kind == PLAYER_OVER_CAP
        assert err.participant == "A"
        assert err.match_numbers == [1, 2, 3]
        assert len(err.violations) == 1

    def test_returns_report_when_valid(self):
        assert ensure_valid_schedule([_match(1, "ABCD")]).ok

    def test_empty_violation_list_rejected(self):
        with pytest.raises(ValueError):
            ConstraintViolation([])


def test_report_to_dict():
    report = validate_schedule([_match(1, "ABCD"), _match(1, "EFGH")])
    data = report.to_dict()
    assert data["ok"] is False
    assert data["stats"]["duplicate_numbers"] == 1
    assert data["violations"][0]["code"] == DUPLICATE_MATCH_NUMBER
    assert data["violations"][0]["match_numbers"] == [1]
