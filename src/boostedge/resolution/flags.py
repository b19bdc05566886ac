"""Entity flag classification for team names.

Flags mark women's, youth, reserve and second-string (B) sides so that a
promotion about a first team never resolves to one of those fixtures.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from boostedge.aliases.normalization import normalize

# Letters on both sides of a token rule out a match ("Femenino" is a token,
# "Fembo" is not)
_WOMEN = re.compile(r"(?<![^\W\d_])(?:women|ladies|femenino|fem)(?![^\W\d_])|\(w\)", re.IGNORECASE)
_YOUTH = re.compile(r"\bu\d{2}\b|\bunder[\s-]?\d{2}\b|\byouth\b|\bacademy\b", re.IGNORECASE)
_RESERVE = re.compile(r"\breserves?\b|\(res\)|\bres\b", re.IGNORECASE)
_B_TEAM_SUFFIX = re.compile(r"\b(?:b|ii|iii)\s*$", re.IGNORECASE)
_CASTILLA = re.compile(r"\bcastilla\b", re.IGNORECASE)
_JONG = re.compile(r"^\s*jong\s", re.IGNORECASE)

# Second-string sides that trade as primary teams on the exchange
DEFAULT_B_TEAM_WHITELIST = frozenset(
    normalize(name)
    for name in (
        "Real Sociedad B",
        "Bayern Munich II",
        "Borussia Dortmund II",
        "VfB Stuttgart II",
        "SC Freiburg II",
    )
)


@dataclass(frozen=True)
class EntityFlags:
    """Semantic markers derived from a team name."""

    is_women: bool = False
    is_youth: bool = False
    is_reserve: bool = False
    is_b_team: bool = False
    is_whitelisted_b_team: bool = False

    @property
    def is_youth_or_reserve(self) -> bool:
        return self.is_youth or self.is_reserve


class EntityFlagClassifier:
    """Derives ``EntityFlags`` from free-text names."""

    def __init__(self, extra_whitelist: Iterable[str] = ()):
        """Initialize classifier.

        Args:
            extra_whitelist: Additional B-team names exempt from exclusion.
        """
        self.whitelist = DEFAULT_B_TEAM_WHITELIST | {normalize(n) for n in extra_whitelist}

    def classify(self, name: str | None) -> EntityFlags:
        """Classify a team name.

        Args:
            name: Free-text team name.

        Returns:
            Flags for the name; all False for empty input.
        """
        if not name:
            return EntityFlags()
        text = name.strip()
        is_b_team = bool(
            _B_TEAM_SUFFIX.search(text) or _CASTILLA.search(text) or _JONG.search(text)
        )
        return EntityFlags(
            is_women=bool(_WOMEN.search(text)),
            is_youth=bool(_YOUTH.search(text)),
            is_reserve=bool(_RESERVE.search(text)),
            is_b_team=is_b_team,
            is_whitelisted_b_team=is_b_team and normalize(text) in self.whitelist,
        )


def should_drop(self_flags: EntityFlags, requested_flags: EntityFlags) -> bool:
    """Decide whether a candidate is excluded because of its self-side flags.

    Only the requested team's own runner is considered; an opponent's flags
    never exclude a fixture. An explicit marker in the requested text (e.g.
    "Fulham U21") opts into the flagged side.
    """
    if self_flags.is_women and not requested_flags.is_women:
        return True
    if self_flags.is_youth_or_reserve and not requested_flags.is_youth_or_reserve:
        return True
    if (
        self_flags.is_b_team
        and not self_flags.is_whitelisted_b_team
        and not requested_flags.is_b_team
    ):
        return True
    return False
