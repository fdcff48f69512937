"""Filter and sort settings for the library view."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import FrozenSet, Optional

from reeltrack.domain import Abandoned, Completed, InProgress, NotStarted, TagId, WatchStatus


class StatusFilter(str, Enum):
    """Watch-status filter choices, including the catch-all."""

    ALL = "all"
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"

    def matches(self, status: WatchStatus) -> bool:
        """Return whether ``status`` passes this filter."""
        if self is StatusFilter.ALL:
            return True
        return isinstance(status, _STATUS_TYPES[self])


_STATUS_TYPES = {
    StatusFilter.NOT_STARTED: NotStarted,
    StatusFilter.IN_PROGRESS: InProgress,
    StatusFilter.COMPLETED: Completed,
    StatusFilter.ABANDONED: Abandoned,
}


class SortKey(str, Enum):
    """Primary sort key of the library view."""

    DATE_ADDED = "date_added"
    TITLE = "title"
    YEAR = "year"
    RATING = "rating"


class SortDirection(str, Enum):
    """Direction applied after sorting."""

    ASCENDING = "asc"
    DESCENDING = "desc"

    def flipped(self) -> "SortDirection":
        if self is SortDirection.ASCENDING:
            return SortDirection.DESCENDING
        return SortDirection.ASCENDING


@dataclass(frozen=True, slots=True)
class LibraryFilters:
    """Mutable-by-replacement UI filter configuration.

    Attributes:
        search_text: Case-insensitive substring matched against titles.
        status: Watch-status filter.
        tag_ids: Selected tags; an entry matches when it holds any of them.
        min_rating: Minimum personal rating; unrated entries never pass.
        sort_key: Primary sort key.
        direction: Sort direction.
    """

    search_text: str = ""
    status: StatusFilter = StatusFilter.ALL
    tag_ids: FrozenSet[TagId] = frozenset()
    min_rating: Optional[int] = None
    sort_key: SortKey = SortKey.DATE_ADDED
    direction: SortDirection = SortDirection.DESCENDING

    def with_search_text(self, text: str) -> "LibraryFilters":
        return replace(self, search_text=text)

    def with_status(self, status: StatusFilter) -> "LibraryFilters":
        return replace(self, status=status)

    def toggle_tag(self, tag_id: TagId) -> "LibraryFilters":
        if tag_id in self.tag_ids:
            return replace(self, tag_ids=self.tag_ids - {tag_id})
        return replace(self, tag_ids=self.tag_ids | {tag_id})

    def without_tag(self, tag_id: TagId) -> "LibraryFilters":
        return replace(self, tag_ids=self.tag_ids - {tag_id})

    def with_min_rating(self, rating: Optional[int]) -> "LibraryFilters":
        if rating is not None and not 1 <= rating <= 5:
            raise ValueError(f"Minimum rating must be between 1 and 5, got {rating}")
        return replace(self, min_rating=rating)

    def with_sort_key(self, key: SortKey) -> "LibraryFilters":
        return replace(self, sort_key=key)

    def toggle_direction(self) -> "LibraryFilters":
        return replace(self, direction=self.direction.flipped())


__all__ = ["StatusFilter", "SortKey", "SortDirection", "LibraryFilters"]
