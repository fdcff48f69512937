"""Library query engine."""

from .engine import apply_filters, matches_filters, sort_entries
from .filters import LibraryFilters, SortDirection, SortKey, StatusFilter
from .text import normalize_title, title_matches

__all__ = [
    "LibraryFilters",
    "SortDirection",
    "SortKey",
    "StatusFilter",
    "apply_filters",
    "matches_filters",
    "normalize_title",
    "sort_entries",
    "title_matches",
]
