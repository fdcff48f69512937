"""Title matching and sort-key normalization."""

from __future__ import annotations

import re

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F]")
_WHITESPACE = re.compile(r"\s+")


def normalize_title(text: str) -> str:
    """Return a case-folded sort key for a title.

    Args:
        text: Raw title.

    Returns:
        str: Text with control characters removed, whitespace collapsed to
        single spaces, surrounding whitespace stripped, and case folded.
    """

    sanitized = _CONTROL_CHARS.sub(" ", text)
    return _WHITESPACE.sub(" ", sanitized).strip().casefold()


def title_matches(title: str, query: str) -> bool:
    """Return whether ``query`` occurs verbatim in ``title`` ignoring case.

    Only the empty query matches every title; whitespace in ``query`` is
    significant.
    """

    if not query:
        return True
    return query.casefold() in title.casefold()


__all__ = ["normalize_title", "title_matches"]
