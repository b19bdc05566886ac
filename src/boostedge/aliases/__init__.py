"""Team alias normalization, compilation and lookup."""

from boostedge.aliases.compiler import (
    AliasCompileReport,
    AliasConflictError,
    AliasSources,
    TeamAliasEntry,
    compile_aliases,
    load_sources,
)
from boostedge.aliases.index import AliasIndex
from boostedge.aliases.normalization import names_equal, normalize, tokens, word_contains

__all__ = [
    "AliasIndex",
    "AliasCompileReport",
    "AliasConflictError",
    "AliasSources",
    "TeamAliasEntry",
    "compile_aliases",
    "load_sources",
    "normalize",
    "tokens",
    "word_contains",
    "names_equal",
]
