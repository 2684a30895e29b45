import pytest

from openplay.services.score_parser import parse_score


class TestParseScore:
    def test_single_game(self):
        parsed = parse_score("21-19")
        assert parsed.sets == [(21, 19)]
        assert parsed.winning_team == 1
        assert parsed.team1_points == 21
        assert parsed.team2_points == 19

    def test_space_separated_sets(self):
        parsed = parse_score("6-4 2-6 7-5")
        assert parsed.team1_sets_won == 2
        assert parsed.team2_sets_won == 1
        assert parsed.winning_team == 1

    def test_comma_separated_sets(self):
        parsed = parse_score("4-6, 3-6")
        assert parsed.sets == [(4, 6), (3, 6)]
        assert parsed.winning_team == 2

    def test_tie_has_no_winner(self):
        assert parse_score("6-4 4-6").winning_team is None

    @pytest.mark.parametrize("raw", [None, "", "   ", "abc", "21", "21-19-3", "-1-5", "21-x"])
    def test_unparseable(self, raw):
        assert parse_score(raw) is None
