"""Mid-price engine: per-leg fair prices and the composite fair price."""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from boostedge.exchange.interfaces import OrderBookSnapshot, RunnerBook
from boostedge.resolution.results import LegResolution, ResolvedLeg


@dataclass(frozen=True)
class BestPrices:
    """Top-of-book back and lay levels for one runner."""

    back_price: float | None = None
    back_size: float = 0.0
    lay_price: float | None = None
    lay_size: float = 0.0


@dataclass(frozen=True)
class MidQuote:
    """Mid, spread and liquidity derived from best prices."""

    mid_price: float | None
    spread_pct: float | None
    liquidity: float


@dataclass(frozen=True)
class PricedLeg:
    """A leg resolution with prices from its order book.

    Failed resolutions and runners missing from the book carry no prices and
    zero liquidity.
    """

    resolution: LegResolution
    back_price: float | None = None
    back_size: float = 0.0
    lay_price: float | None = None
    lay_size: float = 0.0
    mid_price: float | None = None
    spread_pct: float | None = None
    liquidity: float = 0.0
    total_matched: float | None = None

    @property
    def ok(self) -> bool:
        """True when the leg resolved and has a usable mid price."""
        return self.resolution.ok and self.mid_price is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            **self.resolution.to_dict(),
            "back_price": self.back_price,
            "back_size": self.back_size,
            "lay_price": self.lay_price,
            "lay_size": self.lay_size,
            "mid_price": self.mid_price,
            "spread_pct": self.spread_pct,
            "liquidity": self.liquidity,
            "total_matched": self.total_matched,
        }


@dataclass(frozen=True)
class OfferDiagnostics:
    """Aggregate liquidity and spread across an offer's legs."""

    min_liquidity: float | None
    max_spread_pct: float | None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"min_liquidity": self.min_liquidity, "max_spread_pct": self.max_spread_pct}


def _finite(value: float | None) -> bool:
    return value is not None and math.isfinite(value)


def best_prices(runner: RunnerBook | None) -> BestPrices:
    """Extract best back and lay levels from a runner's ladder."""
    if runner is None:
        return BestPrices()
    back = runner.best_back
    lay = runner.best_lay
    return BestPrices(
        back_price=back.price if back else None,
        back_size=back.size if back else 0.0,
        lay_price=lay.price if lay else None,
        lay_size=lay.size if lay else 0.0,
    )


def mid_from_best(prices: BestPrices) -> MidQuote:
    """Compute mid, spread and liquidity from best prices.

    - mid: average of back and lay; a lone side stands in as a weak estimate
    - spread_pct: ``(lay - back) / mid * 100``, only when both sides exist
    - liquidity: the smaller of the two best sizes
    """
    back, lay = prices.back_price, prices.lay_price
    mid: float | None = None
    if _finite(back) and _finite(lay):
        mid = (back + lay) / 2
    elif _finite(back):
        mid = back
    elif _finite(lay):
        mid = lay

    spread_pct: float | None = None
    if _finite(back) and _finite(lay) and mid and mid > 0:
        spread_pct = (lay - back) / mid * 100

    liquidity = min(
        prices.back_size if _finite(prices.back_size) else 0.0,
        prices.lay_size if _finite(prices.lay_size) else 0.0,
    )
    return MidQuote(mid_price=mid, spread_pct=spread_pct, liquidity=liquidity)


def price_leg(resolution: LegResolution, book: OrderBookSnapshot | None) -> PricedLeg:
    """Price one leg against its market's order book.

    Args:
        resolution: Leg resolution (failed resolutions get no prices).
        book: Order book for the leg's market, if fetched.

    Returns:
        PricedLeg; ``mid_price`` is None without book depth.
    """
    if not isinstance(resolution, ResolvedLeg) or book is None:
        return PricedLeg(resolution=resolution)

    prices = best_prices(book.runner(resolution.selection_id))
    quote = mid_from_best(prices)
    return PricedLeg(
        resolution=resolution,
        back_price=prices.back_price,
        back_size=prices.back_size,
        lay_price=prices.lay_price,
        lay_size=prices.lay_size,
        mid_price=quote.mid_price,
        spread_pct=quote.spread_pct,
        liquidity=quote.liquidity,
        total_matched=book.total_matched,
    )


def price_legs(
    resolutions: Sequence[LegResolution],
    books: Mapping[str, OrderBookSnapshot],
) -> list[PricedLeg]:
    """Price every leg, keeping leg order."""
    return [
        price_leg(r, books.get(r.market_id) if isinstance(r, ResolvedLeg) else None)
        for r in resolutions
    ]


def price_offer(legs: Sequence[PricedLeg]) -> float | None:
    """Multiply leg mids into a composite fair price.

    All or nothing: one leg with no mid, or a mid of 1.0 or less, voids the
    whole price.

    Returns:
        Fair decimal odds, or None if any leg is unpriced or there are no legs.
    """
    if not legs:
        return None
    fair = 1.0
    for leg in legs:
        if leg.mid_price is None or not leg.mid_price > 1.0:
            return None
        fair *= leg.mid_price
    return fair


def offer_diagnostics(legs: Sequence[PricedLeg]) -> OfferDiagnostics:
    """Minimum liquidity and maximum spread across legs.

    Computed even when the offer as a whole is unpriced.
    """
    spreads = [leg.spread_pct for leg in legs if leg.spread_pct is not None]
    return OfferDiagnostics(
        min_liquidity=min((leg.liquidity for leg in legs), default=None),
        max_spread_pct=max(spreads, default=None),
    )
