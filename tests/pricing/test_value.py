"""Tests for value rating and publication filters."""

import pytest

from boostedge.common.config import PricingConfig
from boostedge.pricing.mid_price import OfferDiagnostics
from boostedge.pricing.value import SkipReason, ValueFilter, parse_odds, value_rating

GOOD = OfferDiagnostics(min_liquidity=100.0, max_spread_pct=5.0)


class TestParseOdds:
    """Test bookmaker odds parsing."""

    @pytest.mark.parametrize(
        "odds,expected",
        [
            ("4/1", 5.0),
            ("11/4", 3.75),
            (" 5 / 2 ", 3.5),
            ("EVS", 2.0),
            ("evens", 2.0),
            ("2.75", 2.75),
            (3, 3.0),
            (2.5, 2.5),
        ],
    )
    def test_valid(self, odds, expected):
        """Test fractional, evens and decimal odds."""
        assert parse_odds(odds) == pytest.approx(expected)

    @pytest.mark.parametrize("odds", [None, "", "abc", "1/0", "1.0", 0.5, 1, True, "-2"])
    def test_invalid(self, odds):
        """Test unparseable or non-positive-value odds give None."""
        assert parse_odds(odds) is None


class TestValueRating:
    """Test value_rating."""

    def test_ratio(self):
        """Test boosted over fair."""
        assert value_rating(6.0, 5.0) == pytest.approx(1.2)

    def test_missing_inputs(self):
        """Test a missing side gives no rating."""
        assert value_rating(None, 5.0) is None
        assert value_rating(6.0, None) is None


class TestValueFilter:
    """Test ValueFilter.decide."""

    def test_publish(self):
        """Test an offer passing every check."""
        decision = ValueFilter().decide("ALL_TO_WIN", "5/1", 5.0, GOOD)

        assert decision.publish
        assert decision.rating == pytest.approx(1.2)
        assert decision.reason is None

    def test_unpriced(self):
        """Test an offer without a fair price."""
        decision = ValueFilter().decide("ALL_TO_WIN", "5/1", None, GOOD)

        assert not decision.publish
        assert decision.reason is SkipReason.UNPRICED
        assert decision.detail == "no fair price"

    def test_unparseable_boost(self):
        """Test unparseable boosted odds."""
        decision = ValueFilter().decide("ALL_TO_WIN", "boost!", 5.0, GOOD)

        assert decision.reason is SkipReason.UNPRICED
        assert "unparseable" in decision.detail

    def test_below_threshold(self):
        """Test a rating under the threshold."""
        decision = ValueFilter().decide("ALL_TO_WIN", 5.1, 5.0, GOOD)

        assert decision.reason is SkipReason.BELOW_THRESHOLD
        assert decision.rating == pytest.approx(1.02)

    def test_low_liquidity(self):
        """Test thin books are rejected after the rating check."""
        diagnostics = OfferDiagnostics(min_liquidity=5.0, max_spread_pct=50.0)

        decision = ValueFilter().decide("ALL_TO_WIN", "5/1", 5.0, diagnostics)

        assert decision.reason is SkipReason.LOW_LIQUIDITY

    def test_missing_liquidity_counts_as_zero(self):
        """Test absent liquidity fails the liquidity check."""
        diagnostics = OfferDiagnostics(min_liquidity=None, max_spread_pct=None)

        decision = ValueFilter().decide("ALL_TO_WIN", "5/1", 5.0, diagnostics)

        assert decision.reason is SkipReason.LOW_LIQUIDITY

    def test_wide_spread(self):
        """Test wide spreads are rejected."""
        diagnostics = OfferDiagnostics(min_liquidity=100.0, max_spread_pct=25.0)

        decision = ValueFilter().decide("ALL_TO_WIN", "5/1", 5.0, diagnostics)

        assert decision.reason is SkipReason.WIDE_SPREAD
        assert decision.to_dict()["reason"] == "WIDE_SPREAD"

    def test_missing_spread_passes(self):
        """Test one-sided books do not fail the spread check."""
        diagnostics = OfferDiagnostics(min_liquidity=100.0, max_spread_pct=None)

        assert ValueFilter().decide("ALL_TO_WIN", "5/1", 5.0, diagnostics).publish

    def test_per_bet_type_override(self):
        """Test per-bet-type thresholds replace the defaults."""
        value_filter = ValueFilter(
            PricingConfig(per_bet_type={"FOOTBALL_MULTI_AND": {"threshold": 1.25}})
        )

        assert value_filter.thresholds_for("FOOTBALL_MULTI_AND").threshold == 1.25
        assert value_filter.thresholds_for("FOOTBALL_MULTI_AND").min_liquidity == 20.0
        assert value_filter.thresholds_for("ALL_TO_WIN").threshold == 1.05

        decision = value_filter.decide("FOOTBALL_MULTI_AND", "5/1", 5.0, GOOD)
        assert decision.reason is SkipReason.BELOW_THRESHOLD
