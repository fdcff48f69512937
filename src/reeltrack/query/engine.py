"""Pure filter/sort evaluation over library entries."""

from __future__ import annotations

from typing import Callable, Iterable, Sequence

from reeltrack.domain import LibraryEntry

from .filters import LibraryFilters, SortDirection, SortKey
from .text import normalize_title, title_matches

Predicate = Callable[[LibraryFilters, LibraryEntry], bool]


def _matches_text(filters: LibraryFilters, entry: LibraryEntry) -> bool:
    return title_matches(entry.title, filters.search_text)


def _matches_status(filters: LibraryFilters, entry: LibraryEntry) -> bool:
    return filters.status.matches(entry.watch_status)


def _matches_tags(filters: LibraryFilters, entry: LibraryEntry) -> bool:
    if not filters.tag_ids:
        return True
    return not entry.tags.isdisjoint(filters.tag_ids)


def _matches_rating(filters: LibraryFilters, entry: LibraryEntry) -> bool:
    if filters.min_rating is None:
        return True
    if entry.personal_rating is None:
        return False
    return entry.personal_rating >= filters.min_rating


# Evaluated in order; the first failing predicate short-circuits.
PREDICATES: tuple[Predicate, ...] = (
    _matches_text,
    _matches_status,
    _matches_tags,
    _matches_rating,
)


def matches_filters(filters: LibraryFilters, entry: LibraryEntry) -> bool:
    """Return whether ``entry`` satisfies every active predicate."""
    return all(predicate(filters, entry) for predicate in PREDICATES)


def _sort_value(key: SortKey, entry: LibraryEntry):
    if key is SortKey.DATE_ADDED:
        return entry.date_added.timestamp()
    if key is SortKey.TITLE:
        return normalize_title(entry.title)
    if key is SortKey.YEAR:
        return entry.year or 0
    return entry.personal_rating or 0


def sort_entries(
    entries: Iterable[LibraryEntry],
    key: SortKey,
    direction: SortDirection,
) -> list[LibraryEntry]:
    """Stable sort by ``key``; descending reverses the sorted sequence.

    Reversing the fully sorted list (rather than flipping the comparator)
    means tied entries appear in reverse input order when descending.
    """
    ordered = sorted(entries, key=lambda entry: _sort_value(key, entry))
    if direction is SortDirection.DESCENDING:
        ordered.reverse()
    return ordered


def apply_filters(filters: LibraryFilters, entries: Sequence[LibraryEntry]) -> list[LibraryEntry]:
    """Return the visible, ordered subset of ``entries``.

    Args:
        filters: Filter and sort settings.
        entries: Library entries in service order.

    Returns:
        list[LibraryEntry]: Entries passing all predicates, sorted.
    """
    visible = [entry for entry in entries if matches_filters(filters, entry)]
    return sort_entries(visible, filters.sort_key, filters.direction)


__all__ = ["PREDICATES", "apply_filters", "matches_filters", "sort_entries"]
