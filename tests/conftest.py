"""Pytest configuration and fixtures."""

import itertools
import tempfile
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path

import pytest
import yaml

from boostedge.aliases.compiler import AliasSources, MasterRecord, compile_aliases
from boostedge.aliases.index import AliasIndex
from boostedge.aliases.normalization import word_contains
from boostedge.common.config import AppConfig, load_config
from boostedge.common.time_utils import utc_now
from boostedge.exchange.client import TooMuchDataError
from boostedge.exchange.interfaces import (
    DEFAULT_MARKET_PROJECTION,
    DEFAULT_MAX_RESULTS,
    DEFAULT_SORT,
    IExchangeClient,
    MarketCandidate,
    MarketFilter,
    OrderBookSnapshot,
    PriceSize,
    RunnerBook,
    RunnerDescriptor,
)


class FakeExchangeClient(IExchangeClient):
    """In-memory exchange serving a fixed catalogue and order books.

    Text queries match when the query's tokens appear in the event name,
    market name or a runner name, which is close enough to the exchange's
    own text search for resolution tests.
    """

    def __init__(
        self,
        markets: list[MarketCandidate] | None = None,
        books: dict[str, OrderBookSnapshot] | None = None,
        max_book_ids: int | None = None,
    ):
        self.markets = list(markets or [])
        self.books = dict(books or {})
        self.max_book_ids = max_book_ids
        self.catalogue_calls: list[MarketFilter] = []
        self.book_calls: list[list[str]] = []
        self.catalogue_error: Exception | None = None

    def add_market(self, market: MarketCandidate) -> MarketCandidate:
        self.markets.append(market)
        return market

    def add_book(self, book: OrderBookSnapshot) -> OrderBookSnapshot:
        self.books[book.market_id] = book
        return book

    async def list_market_catalogue(
        self,
        market_filter: MarketFilter,
        max_results: int = DEFAULT_MAX_RESULTS,
        projection: tuple[str, ...] = DEFAULT_MARKET_PROJECTION,
        sort: str = DEFAULT_SORT,
    ) -> list[MarketCandidate]:
        self.catalogue_calls.append(market_filter)
        if self.catalogue_error is not None:
            raise self.catalogue_error

        results = []
        for market in self.markets:
            if market_filter.market_type_codes and (
                market.market_type_code not in market_filter.market_type_codes
            ):
                continue
            if market_filter.event_ids and market.event_id not in market_filter.event_ids:
                continue
            if market.kickoff_time is not None:
                if market_filter.kickoff_from and market.kickoff_time < market_filter.kickoff_from:
                    continue
                if market_filter.kickoff_to and market.kickoff_time > market_filter.kickoff_to:
                    continue
            if market_filter.text_query:
                texts = [market.event_name, market.market_name] + [
                    r.runner_name for r in market.runners
                ]
                if not any(word_contains(t, market_filter.text_query) for t in texts):
                    continue
            results.append(market)
        return results[:max_results]

    async def list_market_book(self, market_ids: list[str]) -> list[OrderBookSnapshot]:
        self.book_calls.append(list(market_ids))
        if self.max_book_ids is not None and len(market_ids) > self.max_book_ids:
            raise TooMuchDataError("listMarketBook error: TOO_MUCH_DATA", error_code="TOO_MUCH_DATA")
        return [self.books[m] for m in market_ids if m in self.books]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def dev_config_path(temp_dir: Path) -> Path:
    """Create a temporary dev config file."""
    config_data = {
        "environment": "test",
        "exchange": {
            "betting_url": "https://exchange.test/json-rpc/v1",
            "app_key": "test_app_key",
            "session_token": "test_session",
            "timeout_seconds": 5,
            "rate_limit_per_second": 100,
            "max_retries": 2,
            "retry_backoff_base": 0.0,
            "book_chunk_size": 20,
            "book_concurrency": 2,
            "book_backoff_base_seconds": 0.0,
            "book_backoff_max_seconds": 0.0,
        },
        "resolution": {
            "horizon_hours": 72,
            "lookback_hours": 2,
        },
        "aliases": {
            "bookmaker": "williamhill",
        },
        "pricing": {
            "threshold": 1.05,
            "min_liquidity": 20,
            "max_spread_pct": 20,
            "per_bet_type": {"FOOTBALL_MULTI_AND": {"threshold": 1.10}},
        },
        "pipeline": {
            "offer_concurrency": 2,
            "skip_log_path": str(temp_dir / "logs" / "skip-{date}.jsonl"),
        },
        "logging": {
            "level": "DEBUG",
            "format": "console",
            "log_file": None,
        },
    }
    config_path = temp_dir / "test_config.yaml"
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def config(dev_config_path: Path) -> AppConfig:
    """Load test configuration."""
    return load_config(dev_config_path)


@pytest.fixture
def alias_index() -> AliasIndex:
    """Small alias index covering the clubs used across tests."""
    master = [
        MasterRecord("arsenal", "Arsenal", "team", []),
        MasterRecord("chelsea", "Chelsea", "team", []),
        MasterRecord("liverpool", "Liverpool", "team", []),
        MasterRecord("man_city", "Man City", "team", ["Manchester City"]),
        MasterRecord("man_utd", "Man Utd", "team", ["Manchester United"]),
        MasterRecord("tottenham", "Tottenham", "team", ["Spurs"]),
        MasterRecord("newcastle", "Newcastle", "team", ["Newcastle United"]),
        MasterRecord("real_madrid", "Real Madrid", "team", []),
        MasterRecord("barcelona", "Barcelona", "team", []),
        MasterRecord("inter", "Inter", "team", ["Inter Milan"]),
        MasterRecord("bodo_glimt", "Bodo/Glimt", "team", []),
    ]
    overlays = {"williamhill": {"Man United": "man_utd", "Paris SG": "psg"}}
    master.append(MasterRecord("psg", "Paris St-G", "team", []))
    report = compile_aliases(AliasSources(master=master, overlays=overlays))
    return AliasIndex(report.entries.values())


@pytest.fixture
def kickoff() -> Callable[[float], datetime]:
    """Kickoff times relative to now, inside the default search window."""
    now = utc_now().replace(microsecond=0)

    def at(hours: float) -> datetime:
        return now + timedelta(hours=hours)

    return at


@pytest.fixture
def make_market() -> Callable[..., MarketCandidate]:
    """Factory for catalogue markets with unique ids.

    ``make_market("Arsenal", "Chelsea")`` builds a match-result market with
    home, away and draw runners. Pass ``runners`` for any other market type.
    """
    counter = itertools.count(1)

    def make(
        home: str,
        away: str,
        kickoff_time: datetime | None = None,
        market_type_code: str = "MATCH_ODDS",
        market_name: str = "Match Odds",
        event_id: str | None = None,
        competition_name: str = "Test League",
        runners: list[str] | None = None,
    ) -> MarketCandidate:
        n = next(counter)
        names = runners if runners is not None else [home, away, "The Draw"]
        return MarketCandidate(
            market_id=f"1.{1000 + n}",
            market_type_code=market_type_code,
            event_id=event_id or f"{3000 + n}",
            event_name=f"{home} v {away}",
            competition_name=competition_name,
            kickoff_time=kickoff_time,
            market_name=market_name,
            runners=[
                RunnerDescriptor(selection_id=n * 100 + i, runner_name=name, sort_priority=i)
                for i, name in enumerate(names, start=1)
            ],
        )

    return make


def book_for(
    market: MarketCandidate,
    prices: dict[str, tuple[float | None, float, float | None, float]],
    total_matched: float = 10000.0,
) -> OrderBookSnapshot:
    """Order book for a market from ``{runner name: (back, size, lay, size)}``."""
    runners = []
    for runner in market.runners:
        back, back_size, lay, lay_size = prices.get(runner.runner_name, (None, 0.0, None, 0.0))
        runners.append(
            RunnerBook(
                selection_id=runner.selection_id,
                available_to_back=[PriceSize(back, back_size)] if back else [],
                available_to_lay=[PriceSize(lay, lay_size)] if lay else [],
            )
        )
    return OrderBookSnapshot(market_id=market.market_id, runners=runners, total_matched=total_matched)


@pytest.fixture
def make_book() -> Callable[..., OrderBookSnapshot]:
    """Factory for order books keyed by runner name."""
    return book_for


@pytest.fixture
def fake_client() -> FakeExchangeClient:
    """Empty in-memory exchange."""
    return FakeExchangeClient()


@pytest.fixture
def fake_exchange_factory() -> type[FakeExchangeClient]:
    """The in-memory exchange class, for tests needing custom limits."""
    return FakeExchangeClient
