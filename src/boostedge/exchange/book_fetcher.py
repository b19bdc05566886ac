"""Chunked order-book fetching with split-on-oversize retries."""

import asyncio
from collections.abc import Iterable

from boostedge.common.config import ExchangeConfig
from boostedge.common.logging import get_logger
from boostedge.exchange.client import TooMuchDataError
from boostedge.exchange.interfaces import IExchangeClient, OrderBookSnapshot
from boostedge.exchange.rate_limit import SplitBackoff

logger = get_logger(__name__)


class OrderBookFetcher:
    """Fetches order books in bounded, concurrently-run chunks.

    A chunk rejected as oversized is split in half and each half retried
    after a growing delay, down to single market ids. A single id that is
    still rejected propagates the error.
    """

    def __init__(self, client: IExchangeClient, config: ExchangeConfig | None = None):
        """Initialize fetcher.

        Args:
            client: Exchange client.
            config: Exchange configuration. Uses defaults if not provided.
        """
        self.client = client
        self.config = config or ExchangeConfig()

    async def fetch(self, market_ids: Iterable[str]) -> dict[str, OrderBookSnapshot]:
        """Fetch order books for markets.

        Args:
            market_ids: Market ids; duplicates and empty ids are ignored.

        Returns:
            Snapshots keyed by market id. Markets the exchange did not return
            are absent.
        """
        ids = list(dict.fromkeys(m for m in market_ids if m))
        if not ids:
            return {}

        size = max(1, self.config.book_chunk_size)
        chunks = [ids[i : i + size] for i in range(0, len(ids), size)]
        semaphore = asyncio.Semaphore(max(1, self.config.book_concurrency))
        backoff = SplitBackoff(
            base=self.config.book_backoff_base_seconds,
            max_delay=self.config.book_backoff_max_seconds,
        )

        async def run(chunk: list[str]) -> list[OrderBookSnapshot]:
            async with semaphore:
                return await self._fetch_chunk(chunk, backoff)

        results = await asyncio.gather(*(run(chunk) for chunk in chunks))

        books: dict[str, OrderBookSnapshot] = {}
        for chunk_books in results:
            for book in chunk_books:
                books[book.market_id] = book

        logger.debug(
            "order_books_fetched",
            requested=len(ids),
            returned=len(books),
            chunks=len(chunks),
        )
        return books

    async def _fetch_chunk(
        self, chunk: list[str], backoff: SplitBackoff
    ) -> list[OrderBookSnapshot]:
        try:
            return await self.client.list_market_book(chunk)
        except TooMuchDataError:
            if len(chunk) <= 1:
                raise
            half = (len(chunk) + 1) // 2
            logger.warning(
                "order_book_chunk_split",
                size=len(chunk),
                delay_seconds=round(backoff.current, 3),
            )
            await backoff.wait()
            first = await self._fetch_chunk(chunk[:half], backoff)
            await backoff.wait()
            second = await self._fetch_chunk(chunk[half:], backoff)
            return first + second
