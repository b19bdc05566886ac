"""Offer engine: decompose, resolve, price and filter promotions.

One OfferEngine serves one batch run. Offers are independent and share only
the read-only alias index and the per-run candidate cache, so a batch is
processed concurrently under a bounded semaphore. Legs within an offer are
resolved in order.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from boostedge.aliases.index import AliasIndex
from boostedge.common.config import AppConfig
from boostedge.common.logging import get_logger
from boostedge.exchange.book_fetcher import OrderBookFetcher
from boostedge.exchange.client import ExchangeApiError
from boostedge.exchange.interfaces import IExchangeClient
from boostedge.offers.decomposer import CompositeOfferDecomposer
from boostedge.offers.models import AtomicKind, ClassifiedOffer, CompositeOffer
from boostedge.pipeline.skiplog import (
    LEG_UNPRICED,
    OFFER_EXCEPTION,
    FailureRecord,
    SkipLog,
    SkipStage,
)
from boostedge.pricing.mid_price import (
    OfferDiagnostics,
    PricedLeg,
    offer_diagnostics,
    price_legs,
    price_offer,
)
from boostedge.pricing.value import ValueDecision, ValueFilter
from boostedge.resolution.candidates import CandidateFetcher
from boostedge.resolution.disambiguation import Disambiguator
from boostedge.resolution.flags import EntityFlagClassifier
from boostedge.resolution.resolvers import MarketTypeResolver, build_resolvers
from boostedge.resolution.results import LegResolution, ResolutionFailure, ResolvedLeg

logger = get_logger(__name__)


@dataclass
class OfferOutcome:
    """Result of running one classified offer through the engine."""

    offer: ClassifiedOffer
    composite: CompositeOffer | None = None
    legs: list[PricedLeg] = field(default_factory=list)
    fair_odds: float | None = None
    diagnostics: OfferDiagnostics | None = None
    decision: ValueDecision | None = None
    failures: list[FailureRecord] = field(default_factory=list)
    skip_type: bool = False

    @property
    def title(self) -> str:
        return self.offer.title

    @property
    def bet_type_id(self) -> str:
        return self.offer.bet_type_id

    @property
    def priced(self) -> bool:
        return self.fair_odds is not None

    @property
    def publishable(self) -> bool:
        return self.decision is not None and self.decision.publish

    def filter_failure(self) -> FailureRecord | None:
        """Failure record for an offer rejected by the publication filters.

        Returns:
            None for publishable offers and offers that never reached the
            filters (decomposition failures and exceptions).
        """
        if self.decision is None or self.decision.publish or self.decision.reason is None:
            return None
        return FailureRecord(
            stage=SkipStage.FILTER,
            title=self.title,
            bet_type_id=self.bet_type_id,
            reason_code=self.decision.reason.value,
            reason_detail=self.decision.detail,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "title": self.title,
            "bet_type_id": self.bet_type_id,
            "bookmaker": self.offer.bookmaker,
            "boosted_odds": self.offer.boosted_odds,
            "legs": [leg.to_dict() for leg in self.legs],
            "fair_odds": self.fair_odds,
            "diagnostics": self.diagnostics.to_dict() if self.diagnostics else None,
            "decision": self.decision.to_dict() if self.decision else None,
            "skip_type": self.skip_type,
            "failures": [failure.to_dict() for failure in self.failures],
        }


class OfferEngine:
    """Runs classified offers through decomposition, resolution and pricing."""

    def __init__(
        self,
        client: IExchangeClient,
        alias_index: AliasIndex,
        config: AppConfig | None = None,
        skip_log: SkipLog | None = None,
    ):
        """Initialize engine.

        Args:
            client: Exchange client shared by every offer in the batch.
            alias_index: Compiled alias index.
            config: Application configuration. Uses defaults if not provided.
            skip_log: Optional log receiving every failure record.
        """
        self.config = config or AppConfig()
        self.skip_log = skip_log

        classifier = EntityFlagClassifier(self.config.resolution.extra_b_team_whitelist)
        self.fetcher = CandidateFetcher(client, alias_index, self.config.resolution)
        self.disambiguator = Disambiguator(
            alias_index, classifier, max_hints=self.config.resolution.max_dropped_hint
        )
        self.resolvers: dict[AtomicKind, MarketTypeResolver] = build_resolvers(
            self.fetcher, self.disambiguator, self.config.resolution
        )
        self.decomposer = CompositeOfferDecomposer()
        self.book_fetcher = OrderBookFetcher(client, self.config.exchange)
        self.value_filter = ValueFilter(self.config.pricing)

    def resolver_for(self, kind: AtomicKind) -> MarketTypeResolver:
        return self.resolvers[kind]

    async def resolve_offer(self, offer: ClassifiedOffer) -> OfferOutcome:
        """Decompose, resolve and price one offer.

        Decomposition failures return before any exchange call. A failed leg
        does not stop the others: every leg is resolved and priced so the
        outcome carries full diagnostics, but the offer has no fair price.
        Exchange errors propagate.

        Args:
            offer: Classified promotion.

        Returns:
            OfferOutcome with priced legs, fair odds and failure records.
        """
        decomposition = self.decomposer.decompose(offer)
        if not decomposition.ok or decomposition.offer is None:
            reason = decomposition.reason or "UNCLASSIFIED_OFFER"
            code, _, detail = reason.partition(":")
            return OfferOutcome(
                offer=offer,
                skip_type=decomposition.skip_type,
                failures=[
                    FailureRecord(
                        stage=SkipStage.DECOMPOSE,
                        title=offer.title,
                        bet_type_id=offer.bet_type_id,
                        reason_code=code,
                        reason_detail=detail,
                    )
                ],
            )

        composite = decomposition.offer
        resolutions: list[LegResolution] = []
        for leg in composite.legs:
            resolutions.append(await self.resolver_for(leg.kind).resolve(leg))

        market_ids = [r.market_id for r in resolutions if isinstance(r, ResolvedLeg)]
        books = await self.book_fetcher.fetch(market_ids) if market_ids else {}

        legs = price_legs(resolutions, books)
        fair_odds = price_offer(legs)
        diagnostics = offer_diagnostics(legs)
        decision = self.value_filter.decide(
            offer.bet_type_id, offer.boosted_odds, fair_odds, diagnostics
        )

        outcome = OfferOutcome(
            offer=offer,
            composite=composite,
            legs=legs,
            fair_odds=fair_odds,
            diagnostics=diagnostics,
            decision=decision,
            failures=self._leg_failures(offer, legs),
        )
        logger.info(
            "offer_priced" if outcome.priced else "offer_unpriced",
            title=offer.title,
            bet_type_id=offer.bet_type_id,
            legs=len(legs),
            fair_odds=fair_odds,
            rating=decision.rating,
            min_liquidity=diagnostics.min_liquidity,
            max_spread_pct=diagnostics.max_spread_pct,
        )
        return outcome

    @staticmethod
    def _leg_failures(offer: ClassifiedOffer, legs: Sequence[PricedLeg]) -> list[FailureRecord]:
        failures: list[FailureRecord] = []
        for leg in legs:
            resolution = leg.resolution
            if isinstance(resolution, ResolutionFailure):
                failures.append(
                    FailureRecord.from_resolution(offer.title, offer.bet_type_id, resolution)
                )
            elif leg.mid_price is None or leg.mid_price <= 1.0:
                failures.append(
                    FailureRecord(
                        stage=SkipStage.PRICE,
                        title=offer.title,
                        bet_type_id=offer.bet_type_id,
                        reason_code=LEG_UNPRICED,
                        reason_detail=(
                            f"market={resolution.market_id} "
                            f"selection={resolution.selection_id} mid={leg.mid_price}"
                        ),
                        team=resolution.requested_team_text,
                    )
                )
        return failures

    async def resolve_batch(self, offers: Sequence[ClassifiedOffer]) -> list[OfferOutcome]:
        """Resolve a batch of offers concurrently.

        Concurrency is bounded by ``pipeline.offer_concurrency``. Results keep
        input order. Transport errors for one offer become an
        ``OFFER_EXCEPTION`` failure and do not affect the others; cancellation
        propagates.

        Args:
            offers: Classified promotions.

        Returns:
            One OfferOutcome per input offer.
        """
        self.fetcher.clear_cache()
        semaphore = asyncio.Semaphore(max(1, self.config.pipeline.offer_concurrency))

        async def run_one(offer: ClassifiedOffer) -> OfferOutcome:
            async with semaphore:
                with structlog.contextvars.bound_contextvars(offer=offer.title):
                    try:
                        outcome = await self.resolve_offer(offer)
                    except (ExchangeApiError, httpx.HTTPError) as e:
                        logger.error(
                            "offer_exception",
                            title=offer.title,
                            bet_type_id=offer.bet_type_id,
                            error=str(e),
                            error_type=type(e).__name__,
                        )
                        outcome = OfferOutcome(
                            offer=offer,
                            failures=[
                                FailureRecord(
                                    stage=SkipStage.OFFER,
                                    title=offer.title,
                                    bet_type_id=offer.bet_type_id,
                                    reason_code=OFFER_EXCEPTION,
                                    reason_detail=f"{type(e).__name__}: {e}",
                                )
                            ],
                        )
            if self.skip_log is not None:
                self.skip_log.write_all(outcome.failures)
            return outcome

        outcomes = await asyncio.gather(*(run_one(offer) for offer in offers))

        logger.info(
            "batch_completed",
            offers=len(outcomes),
            priced=sum(1 for o in outcomes if o.priced),
            publishable=sum(1 for o in outcomes if o.publishable),
            failures=sum(len(o.failures) for o in outcomes),
        )
        return list(outcomes)


def select_published(
    outcomes: Sequence[OfferOutcome],
    enforce: bool,
    skip_log: SkipLog | None = None,
) -> list[OfferOutcome]:
    """Select the outcomes to publish.

    Without ``enforce`` every outcome that reached the filters is kept and
    the decision is informational. With ``enforce`` only publishable
    outcomes are kept and each rejection is written to the skip log.
    """
    selected: list[OfferOutcome] = []
    for outcome in outcomes:
        if outcome.decision is None:
            continue
        if not enforce or outcome.publishable:
            selected.append(outcome)
            continue
        record = outcome.filter_failure()
        if record is not None and skip_log is not None:
            skip_log.write(record)
    return selected
