"""Betfair exchange JSON-RPC client with rate limiting and retries."""

import asyncio
from typing import Any

import httpx

from boostedge.common.config import ExchangeConfig
from boostedge.common.logging import get_logger
from boostedge.common.time_utils import parse_iso
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
from boostedge.exchange.rate_limit import RetryPolicy, RpcCallLog, TokenBucket

logger = get_logger(__name__)

RPC_PREFIX = "SportsAPING/v1.0/"
TOO_MUCH_DATA = "TOO_MUCH_DATA"
INVALID_SESSION = "INVALID_SESSION_INFORMATION"


class ExchangeApiError(Exception):
    """Exception for exchange transport and API errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: str | None = None,
        response_body: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.response_body = response_body


class TooMuchDataError(ExchangeApiError):
    """The request asked for more data than the exchange allows in one call."""


class BetfairClient(IExchangeClient):
    """Betfair betting API client.

    Session acquisition is out of scope: the client is handed an application
    key and a session token and surfaces ``INVALID_SESSION_INFORMATION`` as an
    ``ExchangeApiError``.
    """

    def __init__(
        self,
        config: ExchangeConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize client.

        Args:
            config: Exchange API configuration.
            transport: Optional HTTP transport (used by tests).
        """
        self.config = config
        self.rate_limiter = TokenBucket(config.rate_limit_per_second)
        self.retry_policy = RetryPolicy(
            max_retries=config.max_retries,
            base_delay=config.retry_backoff_base,
        )
        self.call_log = RpcCallLog()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "BetfairClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            timeout=self.config.timeout_seconds,
            transport=self._transport,
            headers={
                "X-Application": self.config.app_key,
                "X-Authentication": self.config.session_token,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("exchange_client_closed", calls=self.call_log.stats())

    @property
    def client(self) -> httpx.AsyncClient:
        """Get HTTP client, raising if not initialized."""
        if self._client is None:
            raise RuntimeError("Client not initialized. Use async context manager.")
        return self._client

    async def _rpc(self, method: str, params: dict[str, Any]) -> Any:
        """Make one JSON-RPC call with rate limiting and retries.

        Args:
            method: API operation, e.g. ``listMarketCatalogue``.
            params: Operation parameters.

        Returns:
            The ``result`` member of the RPC response.

        Raises:
            TooMuchDataError: If the exchange rejects the request size.
            ExchangeApiError: If the call fails after retries or returns an API error.
        """
        payload = [{"jsonrpc": "2.0", "method": f"{RPC_PREFIX}{method}", "params": params, "id": 1}]
        policy = self.retry_policy
        last_error: Exception | None = None
        reason = ""

        for attempt in range(policy.attempts):
            if attempt:
                delay = policy.delay(attempt - 1)
                self.call_log.retrying(method, attempt, delay, reason)
                await asyncio.sleep(delay)

            waited = await self.rate_limiter.acquire()
            if waited:
                logger.debug("rate_limit_wait", wait_seconds=round(waited, 3))

            started = self.call_log.started(method, params)
            try:
                response = await self.client.post(self.config.betting_url, json=payload)
            except httpx.RequestError as e:
                self.call_log.finished(method, 0, started, error=str(e))
                last_error, reason = e, type(e).__name__
                continue

            status = response.status_code
            self.call_log.finished(method, status, started)
            if status == 200:
                return self._unwrap(method, response)

            body = self._safe_json(response)
            last_error = ExchangeApiError(f"HTTP {status}: {body}", status_code=status, response_body=body)
            if not policy.retries_status(status):
                raise last_error
            reason = f"HTTP {status}"

        raise ExchangeApiError(
            f"{method} failed after {policy.attempts} attempts",
            status_code=getattr(last_error, "status_code", None),
        ) from last_error

    def _unwrap(self, method: str, response: httpx.Response) -> Any:
        """Extract the RPC result, raising on API errors."""
        body = self._safe_json(response)
        item = body[0] if isinstance(body, list) and body else body
        if not isinstance(item, dict):
            raise ExchangeApiError(
                f"{method}: malformed RPC response",
                status_code=response.status_code,
                response_body=body,
            )

        error = item.get("error")
        if error:
            error_code = self._error_code(error)
            message = f"{method} error: {error_code or error}"
            if error_code == TOO_MUCH_DATA:
                raise TooMuchDataError(
                    message,
                    status_code=response.status_code,
                    error_code=error_code,
                    response_body=error,
                )
            if error_code == INVALID_SESSION:
                logger.error("exchange_session_invalid", method=method)
            raise ExchangeApiError(
                message,
                status_code=response.status_code,
                error_code=error_code,
                response_body=error,
            )

        return item.get("result")

    @staticmethod
    def _error_code(error: dict[str, Any]) -> str | None:
        """Pull the APING error code out of an RPC error object."""
        data = error.get("data")
        if not isinstance(data, dict):
            data = {}
        exception = data.get("APINGException") or data
        code = exception.get("errorCode") or error.get("errorCode")
        if code:
            return str(code)
        message = str(exception.get("message") or error.get("message") or "").upper()
        if TOO_MUCH_DATA in message:
            return TOO_MUCH_DATA
        if "INVALID_SESSION" in message:
            return INVALID_SESSION
        return None

    def _safe_json(self, response: httpx.Response) -> Any:
        """Safely parse JSON response."""
        try:
            return response.json()
        except ValueError:
            return {"raw": response.text[:500]}

    # --- Catalogue ---

    async def list_market_catalogue(
        self,
        market_filter: MarketFilter,
        max_results: int = DEFAULT_MAX_RESULTS,
        projection: tuple[str, ...] = DEFAULT_MARKET_PROJECTION,
        sort: str = DEFAULT_SORT,
    ) -> list[MarketCandidate]:
        """List markets matching a filter."""
        params = {
            "filter": market_filter.to_params(),
            "marketProjection": list(projection),
            "sort": sort,
            "maxResults": max_results,
        }
        data = await self._rpc("listMarketCatalogue", params) or []
        default_code = (
            market_filter.market_type_codes[0] if len(market_filter.market_type_codes) == 1 else ""
        )
        return [self._parse_market(m, default_code) for m in data]

    def _parse_market(self, data: dict[str, Any], default_code: str = "") -> MarketCandidate:
        """Parse a catalogue entry."""
        event = data.get("event") or {}
        competition = data.get("competition") or {}
        description = data.get("description") or {}
        return MarketCandidate(
            market_id=str(data.get("marketId", "")),
            market_type_code=description.get("marketType") or default_code,
            event_id=str(event.get("id", "")),
            event_name=event.get("name", ""),
            competition_name=competition.get("name", ""),
            kickoff_time=parse_iso(data.get("marketStartTime") or event.get("openDate")),
            market_name=data.get("marketName", ""),
            runners=[
                RunnerDescriptor(
                    selection_id=int(r["selectionId"]),
                    runner_name=r.get("runnerName", ""),
                    sort_priority=r.get("sortPriority", 0),
                )
                for r in data.get("runners") or []
                if "selectionId" in r
            ],
            raw_data=data,
        )

    # --- Order books ---

    async def list_market_book(self, market_ids: list[str]) -> list[OrderBookSnapshot]:
        """Fetch best offers for markets in a single call."""
        if not market_ids:
            return []
        params = {
            "marketIds": list(market_ids),
            "priceProjection": {
                "priceData": ["EX_BEST_OFFERS"],
                "exBestOffersOverrides": {"bestPricesDepth": self.config.best_prices_depth},
                "virtualise": self.config.virtualise,
            },
        }
        data = await self._rpc("listMarketBook", params) or []
        return [self._parse_book(b) for b in data]

    def _parse_book(self, data: dict[str, Any]) -> OrderBookSnapshot:
        """Parse a market book entry."""
        return OrderBookSnapshot(
            market_id=str(data.get("marketId", "")),
            status=data.get("status", ""),
            runners=[self._parse_runner_book(r) for r in data.get("runners") or []],
            total_matched=data.get("totalMatched"),
            raw_data=data,
        )

    def _parse_runner_book(self, data: dict[str, Any]) -> RunnerBook:
        """Parse one runner's ladder."""
        ex = data.get("ex") or {}
        return RunnerBook(
            selection_id=int(data.get("selectionId", 0)),
            status=data.get("status", ""),
            available_to_back=self._parse_levels(ex.get("availableToBack")),
            available_to_lay=self._parse_levels(ex.get("availableToLay")),
            last_price_traded=data.get("lastPriceTraded"),
        )

    @staticmethod
    def _parse_levels(levels: list[dict[str, Any]] | None) -> list[PriceSize]:
        return [
            PriceSize(price=float(level["price"]), size=float(level.get("size", 0.0)))
            for level in levels or []
            if level.get("price") is not None
        ]
