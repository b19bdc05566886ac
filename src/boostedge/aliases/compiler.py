"""Alias source loading, compilation and lint.

Sources, from highest to lowest priority:

- bookmaker overlays: ``{raw alias: canonical id}`` per bookmaker file
- master list: ``[{id, name, kind?, aliases?}]``
- synonyms (opt-in): ``{canonical id: [variants...]}``

A higher tier shadows a lower one on the same key. Two different ids for the
same key and kind within one tier is a conflict, and overlay or synonym
entries pointing at ids absent from the master list are orphans. Either
fails the build.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from boostedge.aliases.normalization import normalize
from boostedge.common.logging import get_logger

logger = get_logger(__name__)

# Path: src/boostedge/aliases/compiler.py -> configs/aliases/
DEFAULT_ALIASES_DIR = Path(__file__).parent.parent.parent.parent / "configs" / "aliases"
DEFAULT_MASTER_PATH = DEFAULT_ALIASES_DIR / "master.yaml"
DEFAULT_OVERLAY_DIR = DEFAULT_ALIASES_DIR / "bookmakers"
DEFAULT_SYNONYMS_PATH = DEFAULT_ALIASES_DIR / "synonyms.yaml"

TIER_OVERLAY = "overlay"
TIER_MASTER = "master"
TIER_SYNONYM = "synonym"

TIER_PRIORITY = {
    TIER_OVERLAY: 100,
    TIER_MASTER: 70,
    TIER_SYNONYM: 40,
}

# Raw alias names never indexed: women's, youth and second-string sides
DEFAULT_EXCLUDE_PATTERNS = [
    re.compile(r"\bwomen\b", re.IGNORECASE),
    re.compile(r"\bladies\b", re.IGNORECASE),
    re.compile(r"\bu-?(?:18|19|20|21|23)\b", re.IGNORECASE),
    re.compile(r"\b(?:b|ii|iii)\s*team\b", re.IGNORECASE),
    re.compile(r"\b(?:b|ii|iii)\s*$", re.IGNORECASE),
    re.compile(r"\(w\)", re.IGNORECASE),
]


class AliasConflictError(Exception):
    """Alias sources failed lint; carries the full compile report."""

    def __init__(self, report: "AliasCompileReport"):
        self.report = report
        super().__init__(
            f"Alias lint failed: {len(report.conflicts)} conflicts, "
            f"{len(report.orphans)} orphans"
        )


@dataclass(frozen=True)
class TeamAliasEntry:
    """One canonical team and every alias key that resolves to it."""

    canonical_id: str
    display_name: str
    alias_keys: frozenset[str]
    kind: str = "team"


@dataclass
class MasterRecord:
    """A row of the canonical master list."""

    id: str
    name: str
    kind: str = "team"
    aliases: list[str] = field(default_factory=list)


@dataclass
class AliasSources:
    """Raw alias data as read from disk."""

    master: list[MasterRecord] = field(default_factory=list)
    overlays: dict[str, dict[str, str]] = field(default_factory=dict)
    synonyms: dict[str, list[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class AliasConflict:
    """Same normalized key mapped to several ids of one kind in one tier."""

    key: str
    kind: str
    tier: str
    ids: tuple[str, ...]


@dataclass(frozen=True)
class OrphanAlias:
    """Alias pointing at an id that the master list does not define."""

    source: str
    alias: str
    canonical_id: str


@dataclass(frozen=True)
class BannedAlias:
    """Alias skipped because it matches an exclusion pattern."""

    source: str
    alias: str


@dataclass
class AliasCompileReport:
    """Outcome of compiling alias sources."""

    entries: dict[str, TeamAliasEntry] = field(default_factory=dict)
    conflicts: list[AliasConflict] = field(default_factory=list)
    orphans: list[OrphanAlias] = field(default_factory=list)
    banned: list[BannedAlias] = field(default_factory=list)
    shadowed: int = 0

    @property
    def ok(self) -> bool:
        """True when the sources pass lint."""
        return not self.conflicts and not self.orphans

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "entries": len(self.entries),
            "conflicts": [
                {"key": c.key, "kind": c.kind, "tier": c.tier, "ids": list(c.ids)}
                for c in self.conflicts
            ],
            "orphans": [
                {"source": o.source, "alias": o.alias, "id": o.canonical_id}
                for o in self.orphans
            ],
            "banned": [{"source": b.source, "alias": b.alias} for b in self.banned],
            "shadowed": self.shadowed,
        }


def is_excluded_name(raw: str) -> bool:
    """Check whether a raw alias matches a default exclusion pattern."""
    return any(pattern.search(raw) for pattern in DEFAULT_EXCLUDE_PATTERNS)


def _read_yaml(path: Path) -> Any:
    with open(path) as f:
        return yaml.safe_load(f)


def load_master(path: Path | str) -> list[MasterRecord]:
    """Load the canonical master list.

    Raises:
        FileNotFoundError: If the master file doesn't exist.
        ValueError: If the file is not a list of records.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Alias master file not found: {path}")

    data = _read_yaml(path) or []
    if not isinstance(data, list):
        raise ValueError(f"Alias master file must contain a list: {path}")

    records = []
    for row in data:
        if not isinstance(row, dict) or not row.get("id") or not row.get("name"):
            logger.warning("alias_master_row_skipped", path=str(path), row=row)
            continue
        records.append(
            MasterRecord(
                id=str(row["id"]),
                name=str(row["name"]),
                kind=str(row.get("kind") or "team"),
                aliases=[str(a) for a in row.get("aliases") or []],
            )
        )
    return records


def load_overlays(overlay_dir: Path | str, bookmaker: str | None = None) -> dict[str, dict[str, str]]:
    """Load per-bookmaker overlay files (``<bookmaker>.yaml``).

    Args:
        overlay_dir: Directory holding overlay files.
        bookmaker: Load only this bookmaker's overlay; None loads all.

    Returns:
        Mapping of bookmaker name to ``{raw alias: canonical id}``.
    """
    overlay_dir = Path(overlay_dir)
    if not overlay_dir.is_dir():
        logger.warning("alias_overlay_dir_not_found", path=str(overlay_dir))
        return {}

    overlays: dict[str, dict[str, str]] = {}
    for path in sorted(overlay_dir.glob("*.yaml")):
        name = path.stem
        if bookmaker and name != bookmaker:
            continue
        data = _read_yaml(path) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Alias overlay must be a mapping: {path}")
        overlays[name] = {str(k): str(v) for k, v in data.items()}

    if bookmaker and bookmaker not in overlays:
        logger.warning("alias_overlay_not_found", bookmaker=bookmaker, path=str(overlay_dir))
    return overlays


def load_synonyms(path: Path | str) -> dict[str, list[str]]:
    """Load the observed-synonyms file; a missing file yields no synonyms."""
    path = Path(path)
    if not path.exists():
        return {}
    data = _read_yaml(path) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Synonyms file must be a mapping: {path}")
    return {str(k): [str(v) for v in values or []] for k, values in data.items()}


def load_sources(
    master_path: Path | str = DEFAULT_MASTER_PATH,
    overlay_dir: Path | str | None = DEFAULT_OVERLAY_DIR,
    synonyms_path: Path | str | None = None,
    bookmaker: str | None = None,
) -> AliasSources:
    """Read every alias source from disk."""
    return AliasSources(
        master=load_master(master_path),
        overlays=load_overlays(overlay_dir, bookmaker) if overlay_dir else {},
        synonyms=load_synonyms(synonyms_path) if synonyms_path else {},
    )


def compile_aliases(sources: AliasSources, include_synonyms: bool = False) -> AliasCompileReport:
    """Compile alias sources into index entries and a lint report.

    Args:
        sources: Raw alias data.
        include_synonyms: Whether to index the synonyms tier.

    Returns:
        Compile report. Callers decide whether a failing report is fatal.
    """
    report = AliasCompileReport()
    masters = {record.id: record for record in sources.master}

    # key -> kind -> tier -> set of ids
    claims: dict[str, dict[str, dict[str, set[str]]]] = {}

    def claim(raw: str, canonical_id: str, tier: str, source: str) -> None:
        record = masters.get(canonical_id)
        if record is None:
            report.orphans.append(OrphanAlias(source=source, alias=raw, canonical_id=canonical_id))
            return
        if tier != TIER_MASTER or raw != record.name:
            if is_excluded_name(raw):
                report.banned.append(BannedAlias(source=source, alias=raw))
                return
        key = normalize(raw)
        if not key:
            return
        tiers = claims.setdefault(key, {}).setdefault(record.kind, {})
        tiers.setdefault(tier, set()).add(canonical_id)

    for record in sources.master:
        claim(record.name, record.id, TIER_MASTER, "master")
        for alias in record.aliases:
            claim(alias, record.id, TIER_MASTER, "master")

    for bookmaker, overlay in sorted(sources.overlays.items()):
        for raw, canonical_id in overlay.items():
            claim(raw, canonical_id, TIER_OVERLAY, f"overlay:{bookmaker}")

    if include_synonyms:
        for canonical_id, variants in sources.synonyms.items():
            for raw in variants:
                claim(raw, canonical_id, TIER_SYNONYM, "synonyms")

    keys_by_id: dict[str, set[str]] = {record_id: set() for record_id in masters}
    for key in sorted(claims):
        for kind, tiers in sorted(claims[key].items()):
            ranked = sorted(tiers.items(), key=lambda item: -TIER_PRIORITY[item[0]])
            for tier, ids in ranked:
                if len(ids) > 1:
                    report.conflicts.append(
                        AliasConflict(key=key, kind=kind, tier=tier, ids=tuple(sorted(ids)))
                    )
            _, top_ids = ranked[0]
            if len(top_ids) == 1:
                keys_by_id[next(iter(top_ids))].add(key)
            report.shadowed += sum(1 for _, ids in ranked[1:] if ids != top_ids)

    for record_id, record in masters.items():
        report.entries[record_id] = TeamAliasEntry(
            canonical_id=record_id,
            display_name=record.name,
            alias_keys=frozenset(keys_by_id[record_id]),
            kind=record.kind,
        )

    logger.info(
        "aliases_compiled",
        entries=len(report.entries),
        keys=sum(len(keys) for keys in keys_by_id.values()),
        conflicts=len(report.conflicts),
        orphans=len(report.orphans),
        banned=len(report.banned),
        shadowed=report.shadowed,
    )
    return report
