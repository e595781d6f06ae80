"""Artist-name normalization shared by the resolver, search and batch tiers.

Every layer keys its caches and result maps by the *lowercased, trimmed*
artist name, while upstream APIs receive the caller's original casing.
These helpers keep that convention in one place.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from typing import TypeVar

_T = TypeVar("_T")

_WHITESPACE_RE = re.compile(r"\s+")

# SQL LIKE wildcards plus PostgREST's ``*`` alias for ``%``.  Names are matched exactly
# (case-insensitively), so these must not leak into ilike patterns.
_LIKE_WILDCARDS_RE = re.compile(r"[%_*]")


def name_key(name: str) -> str:
    """Return the cache/result key for an artist name.

    Trims, collapses internal whitespace, and lowercases, so
    ``"  Bic  Runga "`` and ``"bic runga"`` share one key.
    """
    return _WHITESPACE_RE.sub(" ", name.strip()).lower()


def search_key(term: str) -> str:
    """Return the search-cache key for a search term (trimmed, lowercased)."""
    return term.strip().lower()


def dedupe_names(names: Iterable[str]) -> list[str]:
    """Trim names, drop blanks, and dedupe case-insensitively.

    The first spelling seen for each key is kept so upstream calls use the
    caller's casing.

    >>> dedupe_names(["Bicep", " bicep", "Bonobo", ""])
    ['Bicep', 'Bonobo']
    """
    seen: set[str] = set()
    unique: list[str] = []
    for raw in names:
        if not isinstance(raw, str):
            continue
        trimmed = raw.strip()
        if not trimmed:
            continue
        key = name_key(trimmed)
        if key in seen:
            continue
        seen.add(key)
        unique.append(trimmed)
    return unique


def strip_like_wildcards(name: str) -> str:
    """Remove ``%``, ``_`` and ``*`` so a name can be used as an exact ilike pattern."""
    return _LIKE_WILDCARDS_RE.sub("", name)


def chunked(items: list[_T], size: int) -> Iterator[list[_T]]:
    """Yield consecutive slices of *items* holding at most *size* elements."""
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield items[start : start + size]
