"""Leg resolution result types.

"Not found" is an ordinary outcome here: resolvers return a
``ResolutionFailure`` carrying a reason code and diagnostics rather than
raising.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from boostedge.exchange.interfaces import MarketCandidate, RunnerDescriptor
from boostedge.offers.models import AtomicKind


class FailureReason(str, Enum):
    """Machine-readable resolution failure codes."""

    # Lookup failures
    NO_CANDIDATES = "NO_CANDIDATES"
    NO_EVENT_MATCH = "NO_EVENT_MATCH"
    NO_EVENT_MATCH_AFTER_FILTER = "NO_EVENT_MATCH_AFTER_FILTER"
    NO_RUNNER_FOR_TEAM = "NO_RUNNER_FOR_TEAM"

    # Market-absence failures
    MO_BTTS_ABSENT = "MO_BTTS_ABSENT"
    NO_SGM_MARKET = "MO_BTTS_ABSENT"  # Alias of MO_BTTS_ABSENT
    NO_YES_RUNNER = "NO_YES_RUNNER"
    NO_WTN_MARKET = "NO_WTN_MARKET"
    NO_DRAW_RUNNER = "NO_DRAW_RUNNER"


class MatchType(str, Enum):
    """How the requested team was matched to a runner."""

    EXACT = "exact"
    FUZZY = "fuzzy"


@dataclass(frozen=True)
class ResolvedLeg:
    """A leg resolved to one market and selection.

    ``selection_id`` always belongs to ``market_id``'s runners as returned by
    the catalogue query that produced the market.
    """

    requested_team_text: str
    kind: AtomicKind
    market_id: str
    selection_id: int
    runner_name: str
    event_id: str
    event_name: str
    competition_name: str = ""
    kickoff_iso: str | None = None
    market_type_code: str = ""
    match_type: MatchType = MatchType.EXACT

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "ok": True,
            "requested_team_text": self.requested_team_text,
            "kind": self.kind.value,
            "market_id": self.market_id,
            "selection_id": self.selection_id,
            "runner_name": self.runner_name,
            "event_id": self.event_id,
            "event_name": self.event_name,
            "competition_name": self.competition_name,
            "kickoff_iso": self.kickoff_iso,
            "market_type_code": self.market_type_code,
            "match_type": self.match_type.value,
        }


@dataclass(frozen=True)
class ResolutionFailure:
    """A leg that could not be resolved, with operator diagnostics."""

    requested_team_text: str
    kind: AtomicKind
    reason: FailureReason
    tried_names: tuple[str, ...] = ()
    candidate_hints: tuple[str, ...] = ()
    event_id: str | None = None
    event_name: str | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "ok": False,
            "requested_team_text": self.requested_team_text,
            "kind": self.kind.value,
            "reason": self.reason.value,
            "tried_names": list(self.tried_names),
            "candidate_hints": list(self.candidate_hints),
            "event_id": self.event_id,
            "event_name": self.event_name,
            "detail": self.detail,
        }


LegResolution = ResolvedLeg | ResolutionFailure


@dataclass(frozen=True)
class AnchorMatch:
    """Candidate market and self runner chosen by disambiguation."""

    candidate: MarketCandidate
    runner: RunnerDescriptor
    match_type: MatchType
