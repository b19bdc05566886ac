"""Fair pricing from exchange order books and value filters."""

from boostedge.pricing.mid_price import (
    BestPrices,
    MidQuote,
    OfferDiagnostics,
    PricedLeg,
    best_prices,
    mid_from_best,
    offer_diagnostics,
    price_leg,
    price_legs,
    price_offer,
)
from boostedge.pricing.value import SkipReason, ValueDecision, ValueFilter, parse_odds, value_rating

__all__ = [
    # Mid-price engine
    "BestPrices",
    "MidQuote",
    "OfferDiagnostics",
    "PricedLeg",
    "best_prices",
    "mid_from_best",
    "offer_diagnostics",
    "price_leg",
    "price_legs",
    "price_offer",
    # Value
    "SkipReason",
    "ValueDecision",
    "ValueFilter",
    "parse_odds",
    "value_rating",
]
