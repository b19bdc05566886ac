"""Market candidate fetching from the exchange catalogue."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from boostedge.aliases.index import AliasIndex
from boostedge.aliases.normalization import normalize
from boostedge.common.config import ResolutionConfig
from boostedge.common.logging import get_logger
from boostedge.common.time_utils import kickoff_window, utc_now
from boostedge.exchange.interfaces import IExchangeClient, MarketCandidate, MarketFilter

logger = get_logger(__name__)


@dataclass
class CandidateSearch:
    """Result of searching the catalogue across alias variants."""

    candidates: list[MarketCandidate] = field(default_factory=list)
    tried_names: list[str] = field(default_factory=list)
    matched_variant: str | None = None


class CandidateFetcher:
    """Queries the exchange catalogue for football markets.

    Errors from the exchange client propagate to the caller; retries are the
    transport's concern.
    """

    def __init__(
        self,
        client: IExchangeClient,
        alias_index: AliasIndex,
        config: ResolutionConfig | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize fetcher.

        Args:
            client: Exchange client.
            alias_index: Alias index used for fan-out searches.
            config: Resolution configuration. Uses defaults if not provided.
            clock: Source of the current time for kickoff windows.
        """
        self.client = client
        self.alias_index = alias_index
        self.config = config or ResolutionConfig()
        self.clock = clock
        self._cache: dict[tuple[str, str, float], list[MarketCandidate]] = {}

    def clear_cache(self) -> None:
        """Forget cached catalogue results (call between batch runs)."""
        self._cache.clear()

    async def fetch_candidates(
        self,
        name: str,
        market_type_code: str,
        horizon_hours: float | None = None,
    ) -> list[MarketCandidate]:
        """Fetch markets of one type whose text references a team name.

        Args:
            name: Team name or alias variant used as the free-text query.
            market_type_code: Exchange market type, e.g. ``MATCH_ODDS``.
            horizon_hours: Kickoff horizon; defaults to the configured one.

        Returns:
            Up to ``page_size`` markets in exchange order.
        """
        horizon = self.config.horizon_hours if horizon_hours is None else horizon_hours
        cache_key = (normalize(name), market_type_code, horizon)
        if self.config.cache_candidates and cache_key in self._cache:
            return list(self._cache[cache_key])

        kickoff_from, kickoff_to = kickoff_window(
            self.clock(), horizon, self.config.lookback_hours
        )
        market_filter = MarketFilter(
            market_type_codes=[market_type_code],
            kickoff_from=kickoff_from,
            kickoff_to=kickoff_to,
            text_query=name,
        )
        candidates = await self.client.list_market_catalogue(
            market_filter, max_results=self.config.page_size
        )
        logger.debug(
            "candidates_fetched",
            query=name,
            market_type=market_type_code,
            count=len(candidates),
        )

        if self.config.cache_candidates:
            self._cache[cache_key] = list(candidates)
        return candidates

    async def search_team(
        self,
        team: str,
        market_type_code: str,
        horizon_hours: float | None = None,
    ) -> CandidateSearch:
        """Fetch candidates trying each alias variant until one returns markets.

        Args:
            team: Requested team text.
            market_type_code: Exchange market type.
            horizon_hours: Kickoff horizon; defaults to the configured one.

        Returns:
            The first non-empty candidate list and every variant tried.
        """
        search = CandidateSearch()
        for variant in self.alias_index.query_variants(team):
            search.tried_names.append(variant)
            candidates = await self.fetch_candidates(variant, market_type_code, horizon_hours)
            if candidates:
                search.candidates = candidates
                search.matched_variant = variant
                break
        return search

    async def fetch_for_event(
        self,
        event_id: str,
        market_type_codes: Sequence[str] = (),
        text_query: str | None = None,
    ) -> list[MarketCandidate]:
        """Fetch markets scoped to one event.

        Args:
            event_id: Exchange event id.
            market_type_codes: Restrict to these market types; empty means any.
            text_query: Optional free-text filter.

        Returns:
            Markets of the event in exchange order.
        """
        market_filter = MarketFilter(
            market_type_codes=list(market_type_codes),
            event_ids=[event_id],
            text_query=text_query,
        )
        candidates = await self.client.list_market_catalogue(
            market_filter, max_results=self.config.page_size
        )
        logger.debug(
            "event_markets_fetched",
            event_id=event_id,
            market_types=list(market_type_codes),
            text_query=text_query,
            count=len(candidates),
        )
        return candidates
