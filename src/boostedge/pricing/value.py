"""Value rating and publication filters."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from boostedge.common.config import PricingConfig
from boostedge.pricing.mid_price import OfferDiagnostics

_FRACTION = re.compile(r"^(\d+)\s*[/⁄]\s*(\d+)$")
_DECIMAL = re.compile(r"^\d+(?:\.\d+)?$")


class SkipReason(str, Enum):
    """Why a priced offer is not published."""

    UNPRICED = "UNPRICED"
    BELOW_THRESHOLD = "BELOW_THRESHOLD"
    LOW_LIQUIDITY = "LOW_LIQUIDITY"
    WIDE_SPREAD = "WIDE_SPREAD"


def parse_odds(odds: str | float | int | None) -> float | None:
    """Parse bookmaker odds to decimal.

    Accepts fractional ``N/D``, ``EVS``/``EVENS`` and decimal text or numbers.

    Returns:
        Decimal odds, or None if unparseable or not greater than 1.
    """
    if odds is None or isinstance(odds, bool):
        return None
    if isinstance(odds, (int, float)):
        value = float(odds)
        return value if value > 1.0 else None

    text = odds.strip().upper()
    if text in ("EVS", "EVENS", "EVEN"):
        return 2.0

    match = _FRACTION.match(text)
    if match:
        numerator, denominator = int(match.group(1)), int(match.group(2))
        if denominator == 0:
            return None
        return 1.0 + numerator / denominator

    if _DECIMAL.match(text):
        value = float(text)
        return value if value > 1.0 else None
    return None


def value_rating(boosted_decimal: float | None, fair_decimal: float | None) -> float | None:
    """Ratio of boosted odds to fair odds; above 1.0 is positive value."""
    if not boosted_decimal or not fair_decimal:
        return None
    return boosted_decimal / fair_decimal


@dataclass(frozen=True)
class FilterThresholds:
    """Effective publication thresholds for one bet type."""

    threshold: float
    min_liquidity: float
    max_spread_pct: float


@dataclass(frozen=True)
class ValueDecision:
    """Publication decision for one offer."""

    publish: bool
    rating: float | None
    reason: SkipReason | None = None
    detail: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "publish": self.publish,
            "rating": self.rating,
            "reason": self.reason.value if self.reason else None,
            "detail": self.detail,
        }


class ValueFilter:
    """Applies rating, liquidity and spread thresholds to priced offers."""

    def __init__(self, config: PricingConfig | None = None):
        self.config = config or PricingConfig()

    def thresholds_for(self, bet_type_id: str) -> FilterThresholds:
        """Thresholds for a bet type, with per-type overrides applied."""
        overrides = self.config.per_bet_type.get(bet_type_id, {})
        return FilterThresholds(
            threshold=float(overrides.get("threshold", self.config.threshold)),
            min_liquidity=float(overrides.get("min_liquidity", self.config.min_liquidity)),
            max_spread_pct=float(overrides.get("max_spread_pct", self.config.max_spread_pct)),
        )

    def decide(
        self,
        bet_type_id: str,
        boosted_odds: str | float | None,
        fair_odds: float | None,
        diagnostics: OfferDiagnostics,
    ) -> ValueDecision:
        """Decide whether an offer should be published.

        Checks run in order: priced, rating threshold, minimum liquidity,
        maximum spread. A missing spread passes the spread check.
        """
        limits = self.thresholds_for(bet_type_id)
        rating = value_rating(parse_odds(boosted_odds), fair_odds)

        if rating is None:
            detail = "no fair price" if fair_odds is None else f"unparseable odds {boosted_odds!r}"
            return ValueDecision(False, None, SkipReason.UNPRICED, detail)

        if rating < limits.threshold:
            return ValueDecision(
                False,
                rating,
                SkipReason.BELOW_THRESHOLD,
                f"rating={rating:.4f} < {limits.threshold}",
            )

        min_liquidity = diagnostics.min_liquidity or 0.0
        if min_liquidity < limits.min_liquidity:
            return ValueDecision(
                False,
                rating,
                SkipReason.LOW_LIQUIDITY,
                f"min_liquidity={min_liquidity} < {limits.min_liquidity}",
            )

        spread = diagnostics.max_spread_pct
        if spread is not None and spread > limits.max_spread_pct:
            return ValueDecision(
                False,
                rating,
                SkipReason.WIDE_SPREAD,
                f"max_spread_pct={spread:.1f} > {limits.max_spread_pct}",
            )

        return ValueDecision(True, rating)
