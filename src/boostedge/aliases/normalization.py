"""Team-name normalization and token matching.

The same ``normalize`` function is applied when the alias index is built and
when names are looked up, so two spellings that normalize identically always
share one canonical id.
"""

import re
import unicodedata

_NON_ALNUM = re.compile(r"[\W_]+")


def normalize(name: str | None) -> str:
    """Normalize a free-text name to a lookup key.

    - Lowercase
    - Decompose (NFD) and remove combining marks
    - Collapse runs of non-alphanumeric characters to one space
    - Trim

    Letters without a decomposition (``ø``, ``ı``, ``ß``) are kept as-is.

    Args:
        name: Raw name text.

    Returns:
        Normalized key; empty string for empty input.
    """
    if not name:
        return ""
    result = unicodedata.normalize("NFD", name.lower())
    result = "".join(c for c in result if not unicodedata.category(c).startswith("M"))
    return _NON_ALNUM.sub(" ", result).strip()


def tokens(name: str | None) -> list[str]:
    """Split a name into normalized tokens."""
    key = normalize(name)
    return key.split(" ") if key else []


def word_contains(haystack: str | None, needle: str | None) -> bool:
    """Check whether the needle's tokens appear contiguously in the haystack.

    ``"Inter"`` word-contains in ``"FC Inter Milan"`` but ``"Inter M"`` does
    not word-contain in ``"Inter Milan"``.

    Args:
        haystack: Text to search in.
        needle: Text to search for.

    Returns:
        True if the needle's token sequence is a contiguous run of the
        haystack's token sequence.
    """
    hay = tokens(haystack)
    ndl = tokens(needle)
    if not ndl or len(ndl) > len(hay):
        return False
    width = len(ndl)
    return any(hay[i : i + width] == ndl for i in range(len(hay) - width + 1))


def names_equal(a: str | None, b: str | None) -> bool:
    """Check whether two names normalize to the same non-empty key."""
    key = normalize(a)
    return bool(key) and key == normalize(b)
