"""Candidate filtering and disambiguation.

Picks exactly one market and "self" runner for a requested team out of a
catalogue candidate list:

1. Keep candidates with a non-draw runner that equals or word-contains an
   alias variant of the requested team.
2. Drop candidates whose self runner is a women's, youth, reserve or
   non-whitelisted B side, unless the requested text asks for that side.
3. Prefer exact name matches over word-contains matches, then the earliest
   kickoff.
"""

from collections.abc import Sequence
from datetime import UTC, datetime

from boostedge.aliases.index import AliasIndex
from boostedge.aliases.normalization import normalize, word_contains
from boostedge.common.logging import get_logger
from boostedge.exchange.interfaces import MarketCandidate, RunnerDescriptor
from boostedge.offers.models import AtomicKind
from boostedge.resolution.flags import EntityFlagClassifier, should_drop
from boostedge.resolution.results import (
    AnchorMatch,
    FailureReason,
    MatchType,
    ResolutionFailure,
)

logger = get_logger(__name__)

DRAW_RUNNER_NAMES = frozenset({"draw", "the draw"})
MAX_HINTS = 8

_FAR_FUTURE = datetime.max.replace(tzinfo=UTC)


def is_draw_runner(runner_name: str) -> bool:
    """Check whether a runner is the draw outcome."""
    return normalize(runner_name) in DRAW_RUNNER_NAMES


def non_draw_runners(candidate: MarketCandidate) -> list[RunnerDescriptor]:
    """Runners of a market excluding the draw."""
    return [r for r in candidate.runners if not is_draw_runner(r.runner_name)]


def match_self_runner(
    candidate: MarketCandidate, variants: Sequence[str]
) -> tuple[RunnerDescriptor, MatchType] | None:
    """Find the runner representing the requested team.

    Args:
        candidate: Market to search.
        variants: Normalized alias variants of the requested team.

    Returns:
        The first exactly-matching runner, else the first word-contains
        match, else None.
    """
    runners = non_draw_runners(candidate)
    wanted = set(variants)
    for runner in runners:
        if normalize(runner.runner_name) in wanted:
            return runner, MatchType.EXACT
    for runner in runners:
        if any(word_contains(runner.runner_name, v) for v in variants):
            return runner, MatchType.FUZZY
    return None


def _kickoff_key(match: AnchorMatch) -> datetime:
    return match.candidate.kickoff_time or _FAR_FUTURE


def _event_hints(candidates: Sequence[MarketCandidate], limit: int) -> tuple[str, ...]:
    names = dict.fromkeys(c.event_name for c in candidates if c.event_name)
    return tuple(list(names)[:limit])


class Disambiguator:
    """Selects one candidate market and runner for a requested team."""

    def __init__(
        self,
        alias_index: AliasIndex,
        classifier: EntityFlagClassifier | None = None,
        max_hints: int = MAX_HINTS,
    ):
        """Initialize disambiguator.

        Args:
            alias_index: Alias index supplying name variants.
            classifier: Entity flag classifier. Uses defaults if not provided.
            max_hints: Maximum candidate event names attached to failures.
        """
        self.alias_index = alias_index
        self.classifier = classifier or EntityFlagClassifier()
        self.max_hints = max_hints

    def team_variants(self, requested_team: str, raw_text: str | None = None) -> list[str]:
        """Normalized variants of the requested team, in query order."""
        variants: list[str] = []
        for text in [*self.alias_index.query_variants(requested_team), raw_text]:
            key = normalize(text)
            if key and key not in variants:
                variants.append(key)
        return variants

    def disambiguate(
        self,
        requested_team: str,
        candidates: Sequence[MarketCandidate],
        requested_raw_text: str | None = None,
        kind: AtomicKind = AtomicKind.TEAM_WIN,
    ) -> AnchorMatch | ResolutionFailure:
        """Pick the candidate market and self runner for a team.

        Args:
            requested_team: Team name to resolve.
            candidates: Catalogue candidates to choose from.
            requested_raw_text: Team text exactly as the bookmaker wrote it;
                defaults to ``requested_team``.
            kind: Proposition being resolved, carried into failures.

        Returns:
            AnchorMatch on success, ResolutionFailure otherwise.
        """
        raw_text = requested_raw_text or requested_team
        variants = self.team_variants(requested_team, raw_text)

        matched: list[AnchorMatch] = []
        for candidate in candidates:
            hit = match_self_runner(candidate, variants)
            if hit is not None:
                runner, match_type = hit
                matched.append(AnchorMatch(candidate, runner, match_type))

        if not matched:
            return ResolutionFailure(
                requested_team_text=raw_text,
                kind=kind,
                reason=FailureReason.NO_EVENT_MATCH,
                candidate_hints=_event_hints(candidates, self.max_hints),
            )

        requested_flags = self.classifier.classify(raw_text)
        kept: list[AnchorMatch] = []
        dropped: list[MarketCandidate] = []
        for match in matched:
            self_flags = self.classifier.classify(match.runner.runner_name)
            if should_drop(self_flags, requested_flags):
                dropped.append(match.candidate)
                logger.debug(
                    "candidate_dropped",
                    team=raw_text,
                    event_name=match.candidate.event_name,
                    runner=match.runner.runner_name,
                    flags=self_flags,
                )
            else:
                kept.append(match)

        if not kept:
            return ResolutionFailure(
                requested_team_text=raw_text,
                kind=kind,
                reason=FailureReason.NO_EVENT_MATCH_AFTER_FILTER,
                candidate_hints=_event_hints(dropped, self.max_hints),
            )

        exact = sorted((m for m in kept if m.match_type is MatchType.EXACT), key=_kickoff_key)
        fuzzy = sorted((m for m in kept if m.match_type is MatchType.FUZZY), key=_kickoff_key)
        chosen = (exact or fuzzy)[0]

        if chosen.candidate.runner_by_selection(chosen.runner.selection_id) is None:
            return ResolutionFailure(
                requested_team_text=raw_text,
                kind=kind,
                reason=FailureReason.NO_RUNNER_FOR_TEAM,
                event_id=chosen.candidate.event_id,
                event_name=chosen.candidate.event_name,
            )

        logger.debug(
            "candidate_selected",
            team=raw_text,
            market_id=chosen.candidate.market_id,
            event_name=chosen.candidate.event_name,
            runner=chosen.runner.runner_name,
            match_type=chosen.match_type.value,
            exact=len(exact),
            fuzzy=len(fuzzy),
            dropped=len(dropped),
        )
        return chosen
