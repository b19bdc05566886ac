"""Read-only team alias index.

Built once at startup and passed to every component that needs team-name
lookups. There is no mutation API; refreshing aliases means building a new
index.
"""

from collections.abc import Iterable
from pathlib import Path

from boostedge.aliases.compiler import (
    DEFAULT_MASTER_PATH,
    DEFAULT_OVERLAY_DIR,
    DEFAULT_SYNONYMS_PATH,
    AliasCompileReport,
    AliasConflict,
    AliasConflictError,
    TeamAliasEntry,
    compile_aliases,
    load_sources,
)
from boostedge.aliases.normalization import normalize
from boostedge.common.config import AliasConfig
from boostedge.common.logging import get_logger

logger = get_logger(__name__)


class AliasIndex:
    """Maps free-text team spellings to canonical team ids."""

    def __init__(self, entries: Iterable[TeamAliasEntry] = ()):
        """Initialize index.

        Args:
            entries: Compiled alias entries. Only ``team`` entries are indexed.

        Raises:
            AliasConflictError: If two entries claim the same key.
        """
        self._entries: dict[str, TeamAliasEntry] = {}
        self._by_key: dict[str, str] = {}

        report = AliasCompileReport()
        for entry in entries:
            if entry.kind != "team":
                continue
            self._entries[entry.canonical_id] = entry
            for key in entry.alias_keys:
                existing = self._by_key.get(key)
                if existing is not None and existing != entry.canonical_id:
                    report.conflicts.append(
                        AliasConflict(
                            key=key,
                            kind="team",
                            tier="index",
                            ids=tuple(sorted((existing, entry.canonical_id))),
                        )
                    )
                    continue
                self._by_key[key] = entry.canonical_id

        if report.conflicts:
            raise AliasConflictError(report)

    @classmethod
    def from_sources(
        cls,
        master_path: Path | str = DEFAULT_MASTER_PATH,
        overlay_dir: Path | str | None = DEFAULT_OVERLAY_DIR,
        synonyms_path: Path | str | None = None,
        bookmaker: str | None = None,
        include_synonyms: bool = False,
    ) -> "AliasIndex":
        """Compile alias source files into an index.

        Raises:
            AliasConflictError: If the sources fail lint.
            FileNotFoundError: If the master file doesn't exist.
        """
        sources = load_sources(master_path, overlay_dir, synonyms_path, bookmaker)
        report = compile_aliases(sources, include_synonyms=include_synonyms)
        if not report.ok:
            logger.error(
                "alias_lint_failed",
                conflicts=len(report.conflicts),
                orphans=len(report.orphans),
            )
            raise AliasConflictError(report)
        return cls(report.entries.values())

    @classmethod
    def from_config(cls, config: AliasConfig) -> "AliasIndex":
        """Build the index from alias configuration."""
        synonyms_path: Path | str | None = None
        if config.include_synonyms:
            synonyms_path = config.synonyms_path or DEFAULT_SYNONYMS_PATH
        return cls.from_sources(
            master_path=config.master_path or DEFAULT_MASTER_PATH,
            overlay_dir=config.overlay_dir or DEFAULT_OVERLAY_DIR,
            synonyms_path=synonyms_path,
            bookmaker=config.bookmaker,
            include_synonyms=config.include_synonyms,
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, raw_name: object) -> bool:
        return isinstance(raw_name, str) and self.lookup_canonical(raw_name) is not None

    def lookup_canonical(self, raw_name: str) -> str | None:
        """Look up the canonical id for a raw team name.

        Args:
            raw_name: Free-text team name.

        Returns:
            Canonical id, or None if the name is not a known alias.
        """
        return self._by_key.get(normalize(raw_name))

    def alias_keys_for_canonical(self, canonical_id: str) -> list[str]:
        """Get every alias key for a canonical id, sorted."""
        entry = self._entries.get(canonical_id)
        return sorted(entry.alias_keys) if entry else []

    def display_name(self, canonical_id: str) -> str | None:
        """Get the master display name for a canonical id."""
        entry = self._entries.get(canonical_id)
        return entry.display_name if entry else None

    def query_variants(self, raw_name: str) -> list[str]:
        """Get the ordered spellings to try against the exchange text search.

        Order: the raw text, the display name, then the remaining alias keys
        longest first. Variants are de-duplicated by normalized form.

        Args:
            raw_name: Free-text team name as written by the bookmaker.

        Returns:
            Non-empty list when ``raw_name`` has any content.
        """
        variants: list[str] = []
        seen: set[str] = set()

        def add(text: str | None) -> None:
            if not text:
                return
            key = normalize(text)
            if key and key not in seen:
                seen.add(key)
                variants.append(text.strip())

        add(raw_name)
        canonical_id = self.lookup_canonical(raw_name)
        if canonical_id is not None:
            add(self.display_name(canonical_id))
            keys = self.alias_keys_for_canonical(canonical_id)
            for key in sorted(keys, key=lambda k: (-len(k), k)):
                add(key)
        return variants
