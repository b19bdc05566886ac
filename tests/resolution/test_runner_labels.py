"""Tests for composite-market runner label matching."""

import pytest

from boostedge.exchange.interfaces import RunnerDescriptor
from boostedge.resolution.runner_labels import (
    AWAY,
    HOME,
    parse_yes_runner_label,
    pick_plain_yes_runner,
    pick_yes_runner,
    split_event_name,
    team_side,
)


def _runners(*names: str) -> list[RunnerDescriptor]:
    return [RunnerDescriptor(i, name, i) for i, name in enumerate(names, start=1)]


class TestParseLabels:
    """Test label parsing."""

    @pytest.mark.parametrize(
        "label,team,is_yes",
        [
            ("Arsenal/Yes", "arsenal", True),
            ("Arsenal (Yes)", "arsenal", True),
            ("Yes/Arsenal", "arsenal", True),
            ("Man Utd - Yes", "man utd", True),
            ("Arsenal/No", "arsenal no", False),
            ("Yes", "", True),
        ],
    )
    def test_parse_yes_runner_label(self, label: str, team: str, is_yes: bool):
        """Test team and yes parts are separated."""
        parsed = parse_yes_runner_label(label)
        assert parsed.team_label == team
        assert parsed.is_yes is is_yes

    @pytest.mark.parametrize(
        "event_name,expected",
        [
            ("Arsenal v Chelsea", ("Arsenal", "Chelsea")),
            ("Arsenal vs Chelsea", ("Arsenal", "Chelsea")),
            ("Inter vs. Milan", ("Inter", "Milan")),
            ("Arsenal", None),
        ],
    )
    def test_split_event_name(self, event_name: str, expected):
        """Test splitting home and away teams."""
        assert split_event_name(event_name) == expected


class TestTeamSide:
    """Test home/away detection."""

    def test_from_event_name(self, make_market):
        """Test the event name decides the side."""
        market = make_market("Arsenal", "Chelsea")
        chelsea = market.runners[1]

        assert team_side(market, market.runners[0], ["arsenal"]) == HOME
        assert team_side(market, chelsea, ["chelsea"]) == AWAY

    def test_from_runner_order(self, make_market):
        """Test runner order decides when the event name is ambiguous."""
        market = make_market("Arsenal", "Arsenal Women")
        market.event_name = "Arsenal Double Header"

        assert team_side(market, market.runners[1], ["arsenal women"]) == AWAY


class TestPickYesRunner:
    """Test picking team/Yes runners."""

    def test_literal_label(self):
        """Test a runner labelled with the team name."""
        runners = _runners("Arsenal/Yes", "Arsenal/No", "Draw/Yes", "Chelsea/Yes", "Chelsea/No")

        runner = pick_yes_runner(runners, ["chelsea"], AWAY)

        assert runner.runner_name == "Chelsea/Yes"

    def test_placeholder_label(self):
        """Test Home/Away placeholders resolve by side."""
        runners = _runners("Home/Yes", "Home/No", "Draw/Yes", "Away/Yes", "Away/No")

        assert pick_yes_runner(runners, ["chelsea"], AWAY).runner_name == "Away/Yes"
        assert pick_yes_runner(runners, ["arsenal"], HOME).runner_name == "Home/Yes"
        assert pick_yes_runner(runners, ["arsenal"], None) is None

    def test_word_contains_label(self):
        """Test a longer exchange label containing the team name."""
        runners = _runners("Manchester United FC/Yes", "Manchester United FC/No", "Chelsea/Yes")

        runner = pick_yes_runner(runners, ["manchester united"], HOME)

        assert runner.runner_name == "Manchester United FC/Yes"

    def test_no_runner(self):
        """Test None when no runner names the team."""
        runners = _runners("Arsenal/Yes", "Chelsea/Yes")
        assert pick_yes_runner(runners, ["everton"], None) is None

    def test_pick_plain_yes_runner(self):
        """Test picking a literal Yes runner."""
        assert pick_plain_yes_runner(_runners("No", "Yes")).runner_name == "Yes"
        assert pick_plain_yes_runner(_runners("Over", "Under")) is None
