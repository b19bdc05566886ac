"""Market-type resolvers.

Every resolver first anchors the team on its match-result market so that all
propositions about one fixture resolve to the same event. The specialised
resolvers then look up their own market scoped to the anchor event id.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import replace

from boostedge.aliases.normalization import normalize, word_contains
from boostedge.common.config import ResolutionConfig
from boostedge.common.logging import get_logger
from boostedge.exchange.interfaces import MarketCandidate, RunnerDescriptor
from boostedge.offers.models import AtomicKind, AtomicLegRequest
from boostedge.resolution.candidates import CandidateFetcher
from boostedge.resolution.disambiguation import Disambiguator, is_draw_runner
from boostedge.resolution.results import (
    AnchorMatch,
    FailureReason,
    LegResolution,
    MatchType,
    ResolutionFailure,
    ResolvedLeg,
)
from boostedge.resolution.runner_labels import (
    HOME,
    pick_plain_yes_runner,
    pick_yes_runner,
    team_side,
)

logger = get_logger(__name__)

MO_BTTS_NAME = re.compile(r"^match odds (?:and|&) both teams to score$", re.IGNORECASE)
MO_BTTS_TEXT_QUERY = "Match Odds and Both Teams to Score"


def build_resolved_leg(
    leg: AtomicLegRequest,
    market: MarketCandidate,
    runner: RunnerDescriptor,
    match_type: MatchType,
) -> ResolvedLeg:
    """Build a resolved leg from a market and one of its runners."""
    return ResolvedLeg(
        requested_team_text=leg.team,
        kind=leg.kind,
        market_id=market.market_id,
        selection_id=runner.selection_id,
        runner_name=runner.runner_name,
        event_id=market.event_id,
        event_name=market.event_name,
        competition_name=market.competition_name,
        kickoff_iso=market.kickoff_iso,
        market_type_code=market.market_type_code,
        match_type=match_type,
    )


class MarketTypeResolver(ABC):
    """Resolves one kind of atomic leg to an exchange market and selection."""

    kind: AtomicKind

    async def resolve(self, leg: AtomicLegRequest) -> LegResolution:
        """Resolve a leg, logging the outcome.

        Exchange errors propagate unchanged.
        """
        result = await self._resolve(leg)
        if isinstance(result, ResolvedLeg):
            logger.info(
                "leg_resolved",
                team=leg.team,
                kind=leg.kind.value,
                market_id=result.market_id,
                selection_id=result.selection_id,
                event_name=result.event_name,
                match_type=result.match_type.value,
            )
        else:
            logger.info(
                "leg_unresolved",
                team=leg.team,
                kind=leg.kind.value,
                reason=result.reason.value,
                tried_names=list(result.tried_names),
                candidate_hints=list(result.candidate_hints),
            )
        return result

    @abstractmethod
    async def _resolve(self, leg: AtomicLegRequest) -> LegResolution:
        pass


class MatchResultResolver(MarketTypeResolver):
    """Resolves "team to win" legs on the match-result market."""

    kind = AtomicKind.TEAM_WIN

    def __init__(
        self,
        fetcher: CandidateFetcher,
        disambiguator: Disambiguator,
        config: ResolutionConfig | None = None,
    ):
        self.fetcher = fetcher
        self.disambiguator = disambiguator
        self.config = config or ResolutionConfig()

    async def anchor(
        self, team: str, kind: AtomicKind = AtomicKind.TEAM_WIN
    ) -> AnchorMatch | ResolutionFailure:
        """Find the team's match-result market and self runner.

        Args:
            team: Requested team text.
            kind: Proposition being resolved, carried into failures.

        Returns:
            AnchorMatch, or a failure carrying the alias variants tried.
        """
        search = await self.fetcher.search_team(team, self.config.match_result_code)
        tried = tuple(search.tried_names)
        if not search.candidates:
            return ResolutionFailure(
                requested_team_text=team,
                kind=kind,
                reason=FailureReason.NO_CANDIDATES,
                tried_names=tried,
            )

        result = self.disambiguator.disambiguate(team, search.candidates, team, kind)
        if isinstance(result, ResolutionFailure):
            return replace(result, tried_names=tried)
        return result

    async def _resolve(self, leg: AtomicLegRequest) -> LegResolution:
        anchor = await self.anchor(leg.team, leg.kind)
        if isinstance(anchor, ResolutionFailure):
            return anchor
        return build_resolved_leg(leg, anchor.candidate, anchor.runner, anchor.match_type)


class AnchoredResolver(MarketTypeResolver):
    """Base for resolvers that start from the match-result anchor."""

    def __init__(self, anchor_resolver: MatchResultResolver):
        self.anchor_resolver = anchor_resolver

    @property
    def fetcher(self) -> CandidateFetcher:
        return self.anchor_resolver.fetcher

    @property
    def config(self) -> ResolutionConfig:
        return self.anchor_resolver.config

    def team_variants(self, leg: AtomicLegRequest, anchor: AnchorMatch) -> list[str]:
        """Normalized names of the team, including its anchor runner name."""
        variants = self.anchor_resolver.disambiguator.team_variants(leg.team)
        runner_key = normalize(anchor.runner.runner_name)
        if runner_key and runner_key not in variants:
            variants.append(runner_key)
        return variants

    @staticmethod
    def anchored_failure(
        leg: AtomicLegRequest,
        anchor: AnchorMatch,
        reason: FailureReason,
        detail: str | None = None,
    ) -> ResolutionFailure:
        return ResolutionFailure(
            requested_team_text=leg.team,
            kind=leg.kind,
            reason=reason,
            event_id=anchor.candidate.event_id,
            event_name=anchor.candidate.event_name,
            detail=detail,
        )


class TeamToDrawResolver(AnchoredResolver):
    """Resolves "team to draw" legs to the draw runner of the anchor market."""

    kind = AtomicKind.TEAM_DRAW

    async def _resolve(self, leg: AtomicLegRequest) -> LegResolution:
        anchor = await self.anchor_resolver.anchor(leg.team, leg.kind)
        if isinstance(anchor, ResolutionFailure):
            return anchor

        for runner in anchor.candidate.runners:
            if is_draw_runner(runner.runner_name):
                return build_resolved_leg(leg, anchor.candidate, runner, anchor.match_type)

        return self.anchored_failure(
            leg,
            anchor,
            FailureReason.NO_DRAW_RUNNER,
            detail=" | ".join(r.runner_name for r in anchor.candidate.runners),
        )


class MatchResultBttsResolver(AnchoredResolver):
    """Resolves "team to win and both teams to score" legs."""

    kind = AtomicKind.TEAM_WIN_AND_BTTS

    async def _find_market(self, event_id: str) -> MarketCandidate | None:
        markets = await self.fetcher.fetch_for_event(
            event_id, [self.config.match_result_btts_code]
        )
        if not markets:
            # Some events carry the market without its type code
            markets = [
                m
                for m in await self.fetcher.fetch_for_event(
                    event_id, text_query=MO_BTTS_TEXT_QUERY
                )
                if MO_BTTS_NAME.match(m.market_name.strip())
            ]
        return markets[0] if markets else None

    async def _resolve(self, leg: AtomicLegRequest) -> LegResolution:
        anchor = await self.anchor_resolver.anchor(leg.team, leg.kind)
        if isinstance(anchor, ResolutionFailure):
            return anchor

        market = await self._find_market(anchor.candidate.event_id)
        if market is None:
            return self.anchored_failure(leg, anchor, FailureReason.MO_BTTS_ABSENT)

        variants = self.team_variants(leg, anchor)
        side = team_side(anchor.candidate, anchor.runner, variants)
        runner = pick_yes_runner(market.runners, variants, side)
        if runner is None:
            return self.anchored_failure(
                leg,
                anchor,
                FailureReason.NO_YES_RUNNER,
                detail=" | ".join(r.runner_name for r in market.runners),
            )
        return build_resolved_leg(leg, market, runner, anchor.match_type)


class WinToNilResolver(AnchoredResolver):
    """Resolves "team to win to nil" legs."""

    kind = AtomicKind.WIN_TO_NIL

    def _names_team(self, market: MarketCandidate, variants: list[str]) -> bool:
        return any(word_contains(market.market_name, f"{v} win to nil") for v in variants)

    async def _find_market(
        self, anchor: AnchorMatch, variants: list[str]
    ) -> MarketCandidate | None:
        event_id = anchor.candidate.event_id
        codes = list(self.config.win_to_nil_codes)
        markets = await self.fetcher.fetch_for_event(event_id, codes) if codes else []

        named = [m for m in markets if self._names_team(m, variants)]
        if named:
            return named[0]

        # Type codes are per side: first code for the home team, second for away
        side = team_side(anchor.candidate, anchor.runner, variants)
        if side is not None and len(codes) >= 2:
            side_code = codes[0] if side == HOME else codes[1]
            by_code = [m for m in markets if m.market_type_code == side_code]
            if by_code:
                return by_code[0]

        text_query = f"{anchor.runner.runner_name} Win To Nil"
        markets = await self.fetcher.fetch_for_event(event_id, text_query=text_query)
        named = [m for m in markets if self._names_team(m, variants)]
        return named[0] if named else None

    async def _resolve(self, leg: AtomicLegRequest) -> LegResolution:
        anchor = await self.anchor_resolver.anchor(leg.team, leg.kind)
        if isinstance(anchor, ResolutionFailure):
            return anchor

        variants = self.team_variants(leg, anchor)
        market = await self._find_market(anchor, variants)
        if market is None:
            return self.anchored_failure(leg, anchor, FailureReason.NO_WTN_MARKET)

        runner = pick_plain_yes_runner(market.runners)
        if runner is None:
            return self.anchored_failure(
                leg,
                anchor,
                FailureReason.NO_YES_RUNNER,
                detail=" | ".join(r.runner_name for r in market.runners),
            )
        return build_resolved_leg(leg, market, runner, anchor.match_type)


def build_resolvers(
    fetcher: CandidateFetcher,
    disambiguator: Disambiguator,
    config: ResolutionConfig | None = None,
) -> dict[AtomicKind, MarketTypeResolver]:
    """Build the resolver for every atomic kind.

    Returns:
        Mapping covering every ``AtomicKind`` member.
    """
    match_result = MatchResultResolver(fetcher, disambiguator, config)
    return {
        AtomicKind.TEAM_WIN: match_result,
        AtomicKind.TEAM_DRAW: TeamToDrawResolver(match_result),
        AtomicKind.TEAM_WIN_AND_BTTS: MatchResultBttsResolver(match_result),
        AtomicKind.WIN_TO_NIL: WinToNilResolver(match_result),
    }
