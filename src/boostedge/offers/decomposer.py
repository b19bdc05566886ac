"""Composite-offer decomposition.

Splits a classified promotion into ordered single-team legs, each tagged with
the proposition its resolver handles. Patterns are tried in priority order:

1. "<teams> Both/All To Win" with a scoring clause directly after it: every
   team wins and BTTS.
2. "<teams> Both/All To Win" alone: every team wins.
3. Mixed fragments split on conjunctions, each classified by its own
   trailing clause ("to draw", "win to nil", "to win & BTTS", "to win").
   A standalone "BTTS" upgrades the winners just before it; "All N Teams To
   Score" upgrades every leg and needs N to be twice the leg count.

Any unsupported proposition (player scorer, shots, corners, cards) rejects
the whole offer. A team phrase or scoring clause that cannot be attached to
a winning leg fails the offer instead of being dropped.
"""

import re
from collections.abc import Sequence

from boostedge.aliases.normalization import names_equal, word_contains
from boostedge.common.logging import get_logger
from boostedge.offers.models import (
    AtomicKind,
    AtomicLegRequest,
    ClassifiedOffer,
    CompositeOffer,
    DecompositionResult,
)

logger = get_logger(__name__)

# Bet types whose legs all share one proposition
BET_TYPE_KINDS: dict[str, AtomicKind] = {
    "FOOTBALL_TEAM_WIN": AtomicKind.TEAM_WIN,
    "ALL_TO_WIN": AtomicKind.TEAM_WIN,
    "WIN_AND_BTTS": AtomicKind.TEAM_WIN_AND_BTTS,
    "FOOTBALL_SGM_MO_BTTS": AtomicKind.TEAM_WIN_AND_BTTS,
    "FOOTBALL_TEAM_TO_DRAW": AtomicKind.TEAM_DRAW,
    "FOOTBALL_WIN_TO_NIL": AtomicKind.WIN_TO_NIL,
}

UNSUPPORTED_PROPS: list[tuple[str, re.Pattern[str]]] = [
    (
        "ANYTIME_SCORER",
        re.compile(
            r"\b(?:anytime|first|last)\s+(?:goal\s*)?scorer\b|\bgoalscorer\b|\bto\s+score\s+anytime\b",
            re.IGNORECASE,
        ),
    ),
    ("SHOTS_ON_TARGET", re.compile(r"\bshots?\s+on\s+target\b", re.IGNORECASE)),
    ("CORNERS", re.compile(r"\bcorners?\b", re.IGNORECASE)),
    ("CARDS", re.compile(r"\b(?:cards?|to\s+be\s+booked)\b", re.IGNORECASE)),
]

_MARKETING_PREFIX = re.compile(r"^\s*[^:]{2,60}:\s+(?=\S)")
_EVENT_PAREN = re.compile(r"\([^()]*\bvs?\b[^()]*\)", re.IGNORECASE)
_CONJUNCTION = re.compile(r"\s*(?:,|&|\+|\band\b)\s*", re.IGNORECASE)

_PAIR_SCORING = r"(?:btts|both\s+teams\s+to\s+score)"
_ALL_SCORING = r"(?:all\s+(?:\w+\s+)?teams\s+to\s+score)"
_SCORING = rf"(?:{_PAIR_SCORING}|{_ALL_SCORING})"
_ALL_TO_WIN = re.compile(r"\b(?:both|all(?:\s+\w+)?)\s+to\s+win\b", re.IGNORECASE)
_ALL_TO_WIN_OFFER = re.compile(
    rf"^(?P<teams>.+?)\s+\b(?:both|all(?:\s+\w+)?)\s+to\s+win"
    rf"(?:\s*(?:,|&|\+|\band\b)\s*(?P<scoring>{_SCORING}))?\s*$",
    re.IGNORECASE,
)
_ANY_CLAUSE = re.compile(rf"\bwin\b|\bto\s+draw\b|\b{_SCORING}\b", re.IGNORECASE)
_TEAM_COUNT = re.compile(r"\ball\s+(?P<count>\w+)\s+teams\b", re.IGNORECASE)
_WIN_BTTS = re.compile(rf"\bwin\s*(?:&|\band\b)\s*{_PAIR_SCORING}\b", re.IGNORECASE)

NUMBER_WORDS = {
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "ten": 10,
    "twelve": 12,
}

_WIN_BTTS_TOKEN = "winbttsclause"
_LEG_TOKEN = "legtoken{}x"

_FRAGMENT_PATTERNS: list[tuple[AtomicKind, re.Pattern[str]]] = [
    (
        AtomicKind.TEAM_WIN_AND_BTTS,
        re.compile(rf"^(?P<team>.*?)\s*(?:\bto\s+)?{_WIN_BTTS_TOKEN}$", re.IGNORECASE),
    ),
    (
        AtomicKind.WIN_TO_NIL,
        re.compile(r"^(?P<team>.*?)\s*(?:\bto\s+)?\bwin\s+to\s+nil$", re.IGNORECASE),
    ),
    (
        AtomicKind.TEAM_DRAW,
        re.compile(r"^(?P<team>.*?)\s*\bto\s+draw$", re.IGNORECASE),
    ),
    (
        AtomicKind.TEAM_WIN,
        re.compile(
            r"^(?P<team>.*?)\s*(?:\b(?:both|all(?:\s+\w+)?)\s+)?(?:\bto\s+)?\bwin$",
            re.IGNORECASE,
        ),
    ),
]
_PURE_PAIR_SCORING = re.compile(rf"^{_PAIR_SCORING}$", re.IGNORECASE)
_PURE_ALL_SCORING = re.compile(rf"^{_ALL_SCORING}$", re.IGNORECASE)


def strip_marketing_prefix(title: str) -> str:
    """Drop a leading marketing label such as ``"Road Warriors: "``."""
    return _MARKETING_PREFIX.sub("", title, count=1).strip()


def clean_team(text: str) -> str:
    """Drop event parentheticals and collapse whitespace in a team phrase."""
    return " ".join(_EVENT_PAREN.sub(" ", text).split())


def unsupported_props(title: str) -> list[str]:
    """List the unsupported proposition kinds found in a title, in order."""
    kinds: list[str] = []
    for fragment in _CONJUNCTION.split(title):
        for kind, pattern in UNSUPPORTED_PROPS:
            if pattern.search(fragment) and kind not in kinds:
                kinds.append(kind)
    return kinds


def scoring_team_count(clause: str) -> int | None:
    """Number of teams named by an "All N Teams To Score" clause, if any."""
    match = _TEAM_COUNT.search(clause)
    if match is None:
        return None
    count = match.group("count").lower()
    return int(count) if count.isdigit() else NUMBER_WORDS.get(count)


def _same_team(a: str, b: str) -> bool:
    return names_equal(a, b) or word_contains(a, b) or word_contains(b, a)


class CompositeOfferDecomposer:
    """Decomposes classified offers into ordered atomic legs."""

    def decompose(self, offer: ClassifiedOffer) -> DecompositionResult:
        """Decompose an offer.

        Args:
            offer: Classified promotion with its ordered team names.

        Returns:
            DecompositionResult holding a CompositeOffer on success.
        """
        title = clean_team(strip_marketing_prefix(offer.title))
        legs = [clean_team(leg) for leg in offer.legs if leg and leg.strip()]

        unsupported = unsupported_props(title)
        if unsupported:
            return self._fail(offer, f"UNSUPPORTED_PROP:{','.join(unsupported)}", skip_type=True)

        all_to_win = _ALL_TO_WIN_OFFER.match(title)
        if all_to_win and not _ANY_CLAUSE.search(all_to_win.group("teams")):
            scoring = all_to_win.group("scoring")
            kind = AtomicKind.TEAM_WIN_AND_BTTS if scoring else AtomicKind.TEAM_WIN
            teams = legs or self._teams_before(title, _ALL_TO_WIN)
            if not teams:
                return self._fail(offer, "NO_LEGS")
            mismatch = self._team_count_mismatch(scoring, len(teams))
            if mismatch:
                return self._fail(offer, mismatch)
            return self._ok(offer, [AtomicLegRequest(team, kind) for team in teams])

        fragments = self._classify_fragments(title, legs)
        if isinstance(fragments, str):
            return self._fail(offer, fragments)

        if fragments:
            return self._map_legs(offer, fragments, legs)

        kind = BET_TYPE_KINDS.get(offer.bet_type_id)
        if kind is not None and legs:
            return self._ok(offer, [AtomicLegRequest(team, kind) for team in legs])

        if not legs:
            return self._fail(offer, "NO_LEGS")
        return self._fail(offer, "UNCLASSIFIED_OFFER")

    def _classify_fragments(
        self, title: str, legs: Sequence[str]
    ) -> list[AtomicLegRequest] | str:
        """Classify conjunction-separated fragments.

        Returns:
            Classified fragments in title order, an empty list when the title
            has no recognisable clause, or a failure reason string.
        """
        text = _WIN_BTTS.sub(_WIN_BTTS_TOKEN, title)

        # Team names containing conjunctions ("Brighton & Hove Albion") must
        # survive the split
        protected: dict[str, str] = {}
        for i, leg in enumerate(sorted(set(legs), key=len, reverse=True)):
            if _CONJUNCTION.search(leg):
                token = _LEG_TOKEN.format(i)
                pattern = re.compile(re.escape(leg), re.IGNORECASE)
                if pattern.search(text):
                    text = pattern.sub(token, text)
                    protected[token] = leg

        def restore(fragment: str) -> str:
            for token, leg in protected.items():
                fragment = fragment.replace(token, leg)
            return fragment.strip()

        classified: list[AtomicLegRequest] = []
        pending: list[str] = []
        last_group: list[int] = []
        saw_clause = False

        for raw_fragment in _CONJUNCTION.split(text):
            fragment = raw_fragment.strip()
            if not fragment:
                continue

            all_teams = bool(_PURE_ALL_SCORING.match(fragment))
            if all_teams or _PURE_PAIR_SCORING.match(fragment):
                if not last_group or pending:
                    return "UNCLASSIFIED_LEG:scoring clause without a winning team"
                # "All N Teams To Score" covers every fixture, BTTS only the last group
                targets = range(len(classified)) if all_teams else last_group
                if any(classified[i].kind is not AtomicKind.TEAM_WIN for i in targets):
                    return f"UNCLASSIFIED_LEG:{restore(fragment)}"
                if all_teams:
                    mismatch = self._team_count_mismatch(fragment, len(classified))
                    if mismatch:
                        return mismatch
                for index in targets:
                    team = classified[index].team
                    classified[index] = AtomicLegRequest(team, AtomicKind.TEAM_WIN_AND_BTTS)
                saw_clause = True
                continue

            for kind, pattern in _FRAGMENT_PATTERNS:
                match = pattern.match(fragment)
                if match is None:
                    continue
                saw_clause = True
                team = restore(match.group("team"))
                group = [*pending, team] if team else list(pending)
                if not group:
                    return f"UNCLASSIFIED_LEG:{restore(fragment)}"
                start = len(classified)
                classified.extend(AtomicLegRequest(t, kind) for t in group)
                last_group = list(range(start, len(classified)))
                pending = []
                break
            else:
                pending.append(restore(fragment))

        if not saw_clause:
            return []
        if pending:
            return f"UNCLASSIFIED_LEG:{', '.join(pending)}"
        return classified

    def _map_legs(
        self,
        offer: ClassifiedOffer,
        fragments: list[AtomicLegRequest],
        legs: Sequence[str],
    ) -> DecompositionResult:
        """Attach supplied team names to classified fragments, in title order."""
        if not legs:
            return self._ok(offer, fragments)

        if len(legs) != len(fragments):
            return self._fail(
                offer,
                f"LEG_COUNT_MISMATCH:{len(legs)} legs, {len(fragments)} fragments",
            )

        assigned: dict[int, str] = {}
        for leg in legs:
            index = next(
                (
                    i
                    for i, fragment in enumerate(fragments)
                    if i not in assigned and _same_team(leg, fragment.team)
                ),
                None,
            )
            if index is None:
                return self._fail(offer, f"UNMAPPED_LEG:{leg}")
            assigned[index] = leg

        return self._ok(
            offer,
            [AtomicLegRequest(assigned[i], fragments[i].kind) for i in sorted(assigned)],
        )

    @staticmethod
    def _team_count_mismatch(scoring: str | None, legs: int) -> str | None:
        """Failure reason when "All N Teams To Score" disagrees with the legs."""
        count = scoring_team_count(scoring) if scoring else None
        if count is None or count == 2 * legs:
            return None
        return f"TEAM_COUNT_MISMATCH:{count} teams to score, {legs} legs"

    @staticmethod
    def _teams_before(title: str, clause: re.Pattern[str]) -> list[str]:
        match = clause.search(title)
        head = title[: match.start()] if match else title
        return [t for t in (clean_team(p) for p in _CONJUNCTION.split(head)) if t]

    @staticmethod
    def _ok(offer: ClassifiedOffer, legs: list[AtomicLegRequest]) -> DecompositionResult:
        composite = CompositeOffer(title=offer.title, legs=legs, bet_type_id=offer.bet_type_id)
        logger.debug(
            "offer_decomposed",
            title=offer.title,
            legs=[leg.to_dict() for leg in legs],
        )
        return DecompositionResult.success(composite)

    @staticmethod
    def _fail(offer: ClassifiedOffer, reason: str, skip_type: bool = False) -> DecompositionResult:
        logger.info(
            "offer_decomposition_failed",
            title=offer.title,
            bet_type_id=offer.bet_type_id,
            reason=reason,
            skip_type=skip_type,
        )
        return DecompositionResult.failure(reason, skip_type=skip_type)
