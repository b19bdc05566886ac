"""Exchange API client module."""

from boostedge.exchange.book_fetcher import OrderBookFetcher
from boostedge.exchange.client import BetfairClient, ExchangeApiError, TooMuchDataError
from boostedge.exchange.interfaces import (
    IExchangeClient,
    MarketCandidate,
    MarketFilter,
    OrderBookSnapshot,
    PriceSize,
    RunnerBook,
    RunnerDescriptor,
)
from boostedge.exchange.rate_limit import RetryPolicy, RpcCallLog, SplitBackoff, TokenBucket

__all__ = [
    # Client
    "BetfairClient",
    "ExchangeApiError",
    "TooMuchDataError",
    "OrderBookFetcher",
    # Interfaces
    "IExchangeClient",
    # Data types
    "MarketCandidate",
    "MarketFilter",
    "OrderBookSnapshot",
    "PriceSize",
    "RunnerBook",
    "RunnerDescriptor",
    # Pacing and retries
    "RetryPolicy",
    "RpcCallLog",
    "TokenBucket",
    "SplitBackoff",
]
