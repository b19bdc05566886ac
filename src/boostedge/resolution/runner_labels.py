"""Runner label parsing for composite (team/Yes) markets."""

import re
from collections.abc import Sequence
from dataclasses import dataclass

from boostedge.aliases.normalization import normalize, word_contains
from boostedge.exchange.interfaces import MarketCandidate, RunnerDescriptor
from boostedge.resolution.disambiguation import non_draw_runners

HOME = "home"
AWAY = "away"

_EVENT_SEPARATOR = re.compile(r"\s+(?:v|vs|v\.|vs\.)\s+", re.IGNORECASE)


@dataclass(frozen=True)
class YesLabel:
    """A runner label split into its team part and yes/no part."""

    team_label: str
    is_yes: bool


def parse_yes_runner_label(label: str) -> YesLabel:
    """Parse labels like ``Arsenal/Yes``, ``Arsenal (Yes)`` or ``Yes/Arsenal``.

    Returns:
        YesLabel with the normalized team part. Labels without a standalone
        "yes" come back with ``is_yes=False``.
    """
    key = normalize(label)
    if key == "yes":
        return YesLabel(team_label="", is_yes=True)
    if key.endswith(" yes"):
        return YesLabel(team_label=key[: -len(" yes")], is_yes=True)
    if key.startswith("yes "):
        return YesLabel(team_label=key[len("yes ") :], is_yes=True)
    return YesLabel(team_label=key, is_yes=False)


def split_event_name(event_name: str) -> tuple[str, str] | None:
    """Split ``Home v Away`` into its two team names."""
    parts = _EVENT_SEPARATOR.split(event_name.strip(), maxsplit=1)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    return parts[0].strip(), parts[1].strip()


def _names_team(name: str, variants: Sequence[str]) -> bool:
    key = normalize(name)
    return key in variants or any(word_contains(name, v) for v in variants)


def team_side(
    anchor: MarketCandidate,
    self_runner: RunnerDescriptor,
    variants: Sequence[str],
) -> str | None:
    """Work out whether the team plays home or away in the anchor event.

    Uses the ``Home v Away`` event name first, then the anchor market's
    runner order (home runner listed first).
    """
    teams = split_event_name(anchor.event_name)
    if teams is not None:
        home, away = teams
        names = [*variants, normalize(self_runner.runner_name)]
        home_hit = _names_team(home, names)
        away_hit = _names_team(away, names)
        if home_hit != away_hit:
            return HOME if home_hit else AWAY

    ordered = sorted(non_draw_runners(anchor), key=lambda r: r.sort_priority)
    if len(ordered) >= 2:
        if ordered[0].selection_id == self_runner.selection_id:
            return HOME
        if ordered[1].selection_id == self_runner.selection_id:
            return AWAY
    return None


def pick_yes_runner(
    runners: Sequence[RunnerDescriptor],
    variants: Sequence[str],
    side: str | None = None,
) -> RunnerDescriptor | None:
    """Pick the ``<team>/Yes`` runner of a match-result-and-BTTS market.

    Tries a literal team label first, then a ``Home``/``Away`` placeholder
    label for the team's side, then a word-contains match on the label.

    Args:
        runners: Runners of the combined market.
        variants: Normalized name variants of the team.
        side: ``home``, ``away`` or None if unknown.

    Returns:
        The matching runner, or None.
    """
    parsed = [(parse_yes_runner_label(r.runner_name), r) for r in runners]
    yes_runners = [(label, r) for label, r in parsed if label.is_yes and label.team_label]

    for label, runner in yes_runners:
        if label.team_label in variants:
            return runner

    if side is not None:
        for label, runner in yes_runners:
            if label.team_label == side:
                return runner

    for label, runner in yes_runners:
        if label.team_label in (HOME, AWAY, "draw"):
            continue
        if any(word_contains(label.team_label, v) for v in variants):
            return runner

    return None


def pick_plain_yes_runner(runners: Sequence[RunnerDescriptor]) -> RunnerDescriptor | None:
    """Pick the runner literally named ``Yes``."""
    for runner in runners:
        if normalize(runner.runner_name) == "yes":
            return runner
    return None
