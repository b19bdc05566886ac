"""Offer pipeline: engine, batch runner, skip log and CLI."""

from boostedge.pipeline.engine import OfferEngine, OfferOutcome, select_published
from boostedge.pipeline.skiplog import (
    LEG_UNPRICED,
    OFFER_EXCEPTION,
    FailureRecord,
    SkipLog,
    SkipStage,
)

__all__ = [
    "OfferEngine",
    "OfferOutcome",
    "select_published",
    # Skip log
    "FailureRecord",
    "SkipLog",
    "SkipStage",
    "LEG_UNPRICED",
    "OFFER_EXCEPTION",
]
