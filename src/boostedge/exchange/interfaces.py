"""Exchange API interfaces and data types."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from boostedge.common.time_utils import format_iso

SOCCER_EVENT_TYPE_ID = "1"

DEFAULT_MARKET_PROJECTION = (
    "EVENT",
    "COMPETITION",
    "RUNNER_DESCRIPTION",
    "MARKET_DESCRIPTION",
    "MARKET_START_TIME",
)
DEFAULT_SORT = "FIRST_TO_START"
DEFAULT_MAX_RESULTS = 200


@dataclass(frozen=True)
class RunnerDescriptor:
    """One outcome of a market as described by the catalogue."""

    selection_id: int
    runner_name: str
    sort_priority: int = 0


@dataclass
class MarketCandidate:
    """One exchange market returned by a catalogue query."""

    market_id: str
    market_type_code: str
    event_id: str
    event_name: str
    competition_name: str = ""
    kickoff_time: datetime | None = None
    market_name: str = ""
    runners: list[RunnerDescriptor] = field(default_factory=list)
    raw_data: dict[str, Any] = field(default_factory=dict)

    @property
    def kickoff_iso(self) -> str | None:
        """Kickoff as ISO 8601 UTC string."""
        return format_iso(self.kickoff_time) if self.kickoff_time else None

    def runner_by_selection(self, selection_id: int) -> RunnerDescriptor | None:
        """Find a runner of this market by selection id."""
        for runner in self.runners:
            if runner.selection_id == selection_id:
                return runner
        return None


@dataclass
class MarketFilter:
    """Catalogue query filter.

    Either ``text_query`` or ``event_ids`` narrows the search; both may be set.
    """

    market_type_codes: list[str] = field(default_factory=list)
    kickoff_from: datetime | None = None
    kickoff_to: datetime | None = None
    text_query: str | None = None
    event_ids: list[str] = field(default_factory=list)
    event_type_ids: list[str] = field(default_factory=lambda: [SOCCER_EVENT_TYPE_ID])

    def to_params(self) -> dict[str, Any]:
        """Convert to the exchange's ``MarketFilter`` wire shape."""
        params: dict[str, Any] = {"eventTypeIds": list(self.event_type_ids)}
        if self.market_type_codes:
            params["marketTypeCodes"] = list(self.market_type_codes)
        if self.kickoff_from or self.kickoff_to:
            window: dict[str, str] = {}
            if self.kickoff_from:
                window["from"] = format_iso(self.kickoff_from)
            if self.kickoff_to:
                window["to"] = format_iso(self.kickoff_to)
            params["marketStartTime"] = window
        if self.text_query:
            params["textQuery"] = self.text_query
        if self.event_ids:
            params["eventIds"] = list(self.event_ids)
        return params


@dataclass(frozen=True)
class PriceSize:
    """Single level of an order book ladder."""

    price: float
    size: float


@dataclass
class RunnerBook:
    """Top-of-book prices for one runner."""

    selection_id: int
    status: str = "ACTIVE"
    available_to_back: list[PriceSize] = field(default_factory=list)
    available_to_lay: list[PriceSize] = field(default_factory=list)
    last_price_traded: float | None = None

    @property
    def best_back(self) -> PriceSize | None:
        """Best available back level (None if no backers)."""
        return self.available_to_back[0] if self.available_to_back else None

    @property
    def best_lay(self) -> PriceSize | None:
        """Best available lay level (None if no layers)."""
        return self.available_to_lay[0] if self.available_to_lay else None


@dataclass
class OrderBookSnapshot:
    """Order book snapshot for one market."""

    market_id: str
    status: str = "OPEN"
    runners: list[RunnerBook] = field(default_factory=list)
    total_matched: float | None = None
    raw_data: dict[str, Any] = field(default_factory=dict)

    def runner(self, selection_id: int) -> RunnerBook | None:
        """Find the book for one selection."""
        for runner in self.runners:
            if runner.selection_id == selection_id:
                return runner
        return None


class IExchangeClient(ABC):
    """Abstract interface for the exchange betting API."""

    @abstractmethod
    async def list_market_catalogue(
        self,
        market_filter: MarketFilter,
        max_results: int = DEFAULT_MAX_RESULTS,
        projection: tuple[str, ...] = DEFAULT_MARKET_PROJECTION,
        sort: str = DEFAULT_SORT,
    ) -> list[MarketCandidate]:
        """List markets matching a filter.

        Args:
            market_filter: Query filter.
            max_results: Page size.
            projection: Catalogue fields to include.
            sort: Result ordering.

        Returns:
            Matching markets in exchange order.
        """
        pass

    @abstractmethod
    async def list_market_book(self, market_ids: list[str]) -> list[OrderBookSnapshot]:
        """Fetch top-of-book prices for markets in a single request.

        Args:
            market_ids: Market ids to fetch.

        Returns:
            One snapshot per market the exchange returned.

        Raises:
            TooMuchDataError: If the request exceeds the exchange's data limit.
        """
        pass
