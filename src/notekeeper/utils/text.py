from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

__all__ = ("contains_folded", "unique")


def contains_folded(haystack: str, needle: str) -> bool:
    """Case-insensitive substring test.

    Parameters
    ----------
    haystack : str
        The text to search in.
    needle : str
        The text to search for. It is expected to be casefolded already,
        so callers searching many notes fold it only once.

    Returns
    -------
    bool
        True if ``needle`` occurs anywhere in ``haystack``.
    """
    return needle in haystack.casefold()


def unique(values: Iterable[str]) -> list[str]:
    """Drop duplicate strings, keeping the first occurrence of each."""
    return list(dict.fromkeys(values))
