"""Team and market resolution against the exchange catalogue."""

from boostedge.resolution.candidates import CandidateFetcher, CandidateSearch
from boostedge.resolution.disambiguation import Disambiguator
from boostedge.resolution.flags import EntityFlagClassifier, EntityFlags, should_drop
from boostedge.resolution.resolvers import (
    MarketTypeResolver,
    MatchResultBttsResolver,
    MatchResultResolver,
    TeamToDrawResolver,
    WinToNilResolver,
    build_resolvers,
)
from boostedge.resolution.results import (
    AnchorMatch,
    FailureReason,
    LegResolution,
    MatchType,
    ResolutionFailure,
    ResolvedLeg,
)

__all__ = [
    # Fetching and disambiguation
    "CandidateFetcher",
    "CandidateSearch",
    "Disambiguator",
    "EntityFlagClassifier",
    "EntityFlags",
    "should_drop",
    # Resolvers
    "MarketTypeResolver",
    "MatchResultResolver",
    "MatchResultBttsResolver",
    "TeamToDrawResolver",
    "WinToNilResolver",
    "build_resolvers",
    # Results
    "AnchorMatch",
    "FailureReason",
    "LegResolution",
    "MatchType",
    "ResolutionFailure",
    "ResolvedLeg",
]
