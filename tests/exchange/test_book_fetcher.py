"""Tests for chunked order-book fetching."""

import pytest

from boostedge.common.config import ExchangeConfig
from boostedge.exchange.book_fetcher import OrderBookFetcher
from boostedge.exchange.client import TooMuchDataError
from boostedge.exchange.interfaces import OrderBookSnapshot


def _config(**overrides) -> ExchangeConfig:
    values = {
        "book_chunk_size": 4,
        "book_concurrency": 2,
        "book_backoff_base_seconds": 0.0,
        "book_backoff_max_seconds": 0.0,
    }
    values.update(overrides)
    return ExchangeConfig(**values)


@pytest.fixture
def make_client(fake_exchange_factory):
    """Exchange holding books for ids 1.0 .. 1.(count-1)."""

    def make(count: int, max_book_ids: int | None = None):
        books = {f"1.{i}": OrderBookSnapshot(market_id=f"1.{i}") for i in range(count)}
        return fake_exchange_factory(books=books, max_book_ids=max_book_ids)

    return make


class TestOrderBookFetcher:
    """Test OrderBookFetcher.fetch."""

    @pytest.mark.asyncio
    async def test_chunks_requests(self, make_client):
        """Test ids are requested in bounded chunks."""
        client = make_client(10)

        books = await OrderBookFetcher(client, _config()).fetch([f"1.{i}" for i in range(10)])

        assert set(books) == {f"1.{i}" for i in range(10)}
        assert sorted(len(call) for call in client.book_calls) == [2, 4, 4]

    @pytest.mark.asyncio
    async def test_dedupes_and_skips_empty(self, make_client):
        """Test duplicate and empty ids are requested once."""
        client = make_client(3)

        books = await OrderBookFetcher(client, _config()).fetch(["1.0", "1.1", "1.0", "", "1.2"])

        assert list(books) == ["1.0", "1.1", "1.2"]
        assert client.book_calls == [["1.0", "1.1", "1.2"]]

    @pytest.mark.asyncio
    async def test_no_ids(self, make_client):
        """Test nothing is requested for an empty list."""
        client = make_client(0)

        assert await OrderBookFetcher(client, _config()).fetch([]) == {}
        assert client.book_calls == []

    @pytest.mark.asyncio
    async def test_missing_books_absent(self, make_client):
        """Test markets the exchange does not return are left out."""
        client = make_client(2)

        books = await OrderBookFetcher(client, _config()).fetch(["1.0", "1.1", "1.9"])

        assert set(books) == {"1.0", "1.1"}

    @pytest.mark.asyncio
    async def test_splits_oversized_chunks(self, make_client):
        """Test TOO_MUCH_DATA halves the chunk until it fits."""
        client = make_client(8, max_book_ids=2)

        books = await OrderBookFetcher(client, _config(book_chunk_size=8)).fetch(
            [f"1.{i}" for i in range(8)]
        )

        assert set(books) == {f"1.{i}" for i in range(8)}
        sizes = [len(call) for call in client.book_calls]
        assert sizes[0] == 8
        assert sizes.count(4) == 2
        assert sizes.count(2) == 4

    @pytest.mark.asyncio
    async def test_single_id_rejection_propagates(self, make_client):
        """Test a single id that is still too large raises."""
        client = make_client(2, max_book_ids=0)

        with pytest.raises(TooMuchDataError):
            await OrderBookFetcher(client, _config()).fetch(["1.0", "1.1"])
