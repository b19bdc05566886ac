"""Offer data types: classified promotions and their atomic legs."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class AtomicKind(str, Enum):
    """Single-team proposition a leg resolves to."""

    TEAM_WIN = "TEAM_WIN"
    TEAM_DRAW = "TEAM_DRAW"
    WIN_TO_NIL = "WIN_TO_NIL"
    TEAM_WIN_AND_BTTS = "TEAM_WIN_AND_BTTS"


@dataclass(frozen=True)
class AtomicLegRequest:
    """One team and the proposition to resolve for it."""

    team: str
    kind: AtomicKind

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"team": self.team, "kind": self.kind.value}


@dataclass
class ClassifiedOffer:
    """A bookmaker promotion after bet-type classification."""

    title: str
    bet_type_id: str
    legs: list[str] = field(default_factory=list)
    boosted_odds: str | float | None = None
    bookmaker: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClassifiedOffer":
        """Create from a classifier record (camelCase or snake_case keys)."""
        legs = data.get("legs") or []
        return cls(
            title=str(data.get("title", "")),
            bet_type_id=str(data.get("betTypeId") or data.get("bet_type_id") or ""),
            legs=[str(leg) for leg in legs],
            boosted_odds=data.get("boostedOdds", data.get("boosted_odds")),
            bookmaker=data.get("bookmaker") or data.get("book"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "title": self.title,
            "bet_type_id": self.bet_type_id,
            "legs": list(self.legs),
            "boosted_odds": self.boosted_odds,
            "bookmaker": self.bookmaker,
        }


@dataclass
class CompositeOffer:
    """A promotion decomposed into ordered atomic legs."""

    title: str
    legs: list[AtomicLegRequest] = field(default_factory=list)
    bet_type_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "title": self.title,
            "bet_type_id": self.bet_type_id,
            "legs": [leg.to_dict() for leg in self.legs],
        }


@dataclass
class DecompositionResult:
    """Outcome of decomposing a classified offer.

    ``skip_type`` marks offers rejected because they contain propositions
    that cannot be priced at all; other failures leave it False.
    """

    ok: bool
    offer: CompositeOffer | None = None
    skip_type: bool = False
    reason: str | None = None

    @classmethod
    def success(cls, offer: CompositeOffer) -> "DecompositionResult":
        return cls(ok=True, offer=offer)

    @classmethod
    def failure(cls, reason: str, skip_type: bool = False) -> "DecompositionResult":
        return cls(ok=False, skip_type=skip_type, reason=reason)
