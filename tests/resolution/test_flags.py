"""Tests for entity flag classification."""

import pytest

from boostedge.resolution.flags import EntityFlagClassifier, EntityFlags, should_drop


@pytest.fixture
def classifier() -> EntityFlagClassifier:
    return EntityFlagClassifier()


class TestClassify:
    """Test EntityFlagClassifier.classify."""

    @pytest.mark.parametrize(
        "name",
        ["Chelsea Women", "Arsenal Ladies", "Barcelona Femenino", "Real Madrid Fem", "Lyon (W)"],
    )
    def test_women(self, classifier: EntityFlagClassifier, name: str):
        """Test women's markers."""
        flags = classifier.classify(name)
        assert flags.is_women
        assert not flags.is_b_team

    def test_women_marker_must_be_a_whole_token(self, classifier: EntityFlagClassifier):
        """Test letters around the marker rule it out."""
        assert not classifier.classify("Fembo FC").is_women
        assert not classifier.classify("Womensfield").is_women

    @pytest.mark.parametrize(
        "name",
        ["Arsenal U21", "Chelsea u23", "Ajax Under-19", "Benfica Youth", "Sporting Academy"],
    )
    def test_youth(self, classifier: EntityFlagClassifier, name: str):
        """Test youth markers."""
        flags = classifier.classify(name)
        assert flags.is_youth
        assert flags.is_youth_or_reserve

    @pytest.mark.parametrize("name", ["Chelsea Reserves", "Liverpool Reserve", "Celtic (Res)"])
    def test_reserve(self, classifier: EntityFlagClassifier, name: str):
        """Test reserve markers."""
        flags = classifier.classify(name)
        assert flags.is_reserve
        assert flags.is_youth_or_reserve

    @pytest.mark.parametrize(
        "name",
        ["Barcelona B", "Dortmund II", "Athletic Bilbao III", "Real Madrid Castilla", "Jong Ajax"],
    )
    def test_b_team(self, classifier: EntityFlagClassifier, name: str):
        """Test second-string markers."""
        flags = classifier.classify(name)
        assert flags.is_b_team
        assert not flags.is_whitelisted_b_team

    def test_whitelisted_b_team(self, classifier: EntityFlagClassifier):
        """Test second-string sides that trade as primary teams."""
        flags = classifier.classify("Real Sociedad B")
        assert flags.is_b_team
        assert flags.is_whitelisted_b_team

    def test_extra_whitelist(self):
        """Test configured whitelist entries."""
        classifier = EntityFlagClassifier(extra_whitelist=["Barcelona B"])
        assert classifier.classify("Barcelona  B").is_whitelisted_b_team

    @pytest.mark.parametrize("name", ["Chelsea", "Bournemouth", "Club Brugge", "Inter Milan", ""])
    def test_first_teams_unflagged(self, classifier: EntityFlagClassifier, name: str):
        """Test ordinary first-team names carry no flags."""
        assert classifier.classify(name) == EntityFlags()


class TestShouldDrop:
    """Test the self-flag drop rule."""

    def test_women_dropped_unless_requested(self):
        """Test women's sides only survive an explicit request."""
        women = EntityFlags(is_women=True)
        assert should_drop(women, EntityFlags())
        assert not should_drop(women, EntityFlags(is_women=True))

    def test_youth_and_reserve_dropped_unless_requested(self):
        """Test youth or reserve sides only survive an explicit request."""
        assert should_drop(EntityFlags(is_youth=True), EntityFlags())
        assert should_drop(EntityFlags(is_reserve=True), EntityFlags())
        assert not should_drop(EntityFlags(is_reserve=True), EntityFlags(is_youth=True))

    def test_b_team_rules(self):
        """Test B sides drop unless whitelisted or requested."""
        b_team = EntityFlags(is_b_team=True)
        assert should_drop(b_team, EntityFlags())
        assert not should_drop(b_team, EntityFlags(is_b_team=True))
        assert not should_drop(
            EntityFlags(is_b_team=True, is_whitelisted_b_team=True), EntityFlags()
        )

    def test_first_team_never_dropped(self):
        """Test unflagged self runners are kept."""
        assert not should_drop(EntityFlags(), EntityFlags())
        assert not should_drop(EntityFlags(), EntityFlags(is_women=True))
