"""Root application state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from reeltrack.config import LibrarySettings, ReeltrackConfig
from reeltrack.domain import (
    EntryId,
    EpisodeProgress,
    Friend,
    HealthStatus,
    LibraryEntry,
    SearchResult,
    Tag,
)
from reeltrack.progress import WatchAction, available_actions
from reeltrack.query import LibraryFilters, SortDirection, SortKey, apply_filters
from reeltrack.remote import RemoteResource
from reeltrack.workflow import NoWorkflow, Workflow


@dataclass(frozen=True, slots=True)
class HomePage:
    pass


@dataclass(frozen=True, slots=True)
class LibraryPage:
    pass


@dataclass(frozen=True, slots=True)
class FriendsPage:
    pass


@dataclass(frozen=True, slots=True)
class TagsPage:
    pass


@dataclass(frozen=True, slots=True)
class EntryDetailPage:
    entry_id: EntryId


@dataclass(frozen=True, slots=True)
class NotFoundPage:
    path: str = ""


Page = Union[HomePage, LibraryPage, FriendsPage, TagsPage, EntryDetailPage, NotFoundPage]


@dataclass(frozen=True, slots=True)
class Notification:
    """Transient message shown to the user.

    Attributes:
        id: Monotonic identifier; auto-clear timers only clear their own id.
        message: Text to display.
        is_success: ``False`` renders the message as an error.
    """

    id: int
    message: str
    is_success: bool = True


def default_filters(settings: LibrarySettings) -> LibraryFilters:
    """Return the filter configuration applied on startup and on reset."""
    return LibraryFilters(
        sort_key=SortKey(settings.default_sort),
        direction=SortDirection(settings.default_direction),
    )


@dataclass(frozen=True, slots=True)
class AppState:
    """Single owned snapshot of everything the UI renders.

    Replaced wholesale by the reducer for every processed intent; never
    mutated in place.
    """

    page: Page = field(default_factory=HomePage)
    health: RemoteResource[HealthStatus] = field(default_factory=RemoteResource)
    library: RemoteResource[Tuple[LibraryEntry, ...]] = field(default_factory=RemoteResource)
    friends: RemoteResource[Tuple[Friend, ...]] = field(default_factory=RemoteResource)
    tags: RemoteResource[Tuple[Tag, ...]] = field(default_factory=RemoteResource)
    search_results: RemoteResource[Tuple[SearchResult, ...]] = field(
        default_factory=RemoteResource
    )
    detail: RemoteResource[LibraryEntry] = field(default_factory=RemoteResource)
    episodes: RemoteResource[Tuple[EpisodeProgress, ...]] = field(default_factory=RemoteResource)
    filters: LibraryFilters = field(default_factory=LibraryFilters)
    workflow: Workflow = field(default_factory=NoWorkflow)
    notification: Optional[Notification] = None
    notification_seq: int = 0

    @classmethod
    def initial(cls, config: Optional[ReeltrackConfig] = None) -> "AppState":
        settings = (config or ReeltrackConfig()).library
        return cls(filters=default_filters(settings))

    def visible_entries(self) -> list[LibraryEntry]:
        """Return the filtered, ordered library; empty until it has loaded."""
        return apply_filters(self.filters, self.library.get_or_default(()))

    def find_entry(self, entry_id: EntryId) -> Optional[LibraryEntry]:
        """Return the freshest known copy of ``entry_id``.

        The detail resource wins over the library list since it is fetched
        more recently when both are present.
        """
        detail = self.detail.value_or_none()
        if detail is not None and detail.id == entry_id:
            return detail
        for entry in self.library.get_or_default(()):
            if entry.id == entry_id:
                return entry
        return None

    def episodes_for(self, entry_id: EntryId) -> Tuple[EpisodeProgress, ...]:
        """Return loaded episode records for ``entry_id`` (empty when not loaded)."""
        if self.episodes.key != entry_id:
            return ()
        return self.episodes.get_or_default(())

    def friend_choices(self) -> Tuple[Friend, ...]:
        return self.friends.get_or_default(())

    def tag_choices(self) -> Tuple[Tag, ...]:
        return self.tags.get_or_default(())

    def detail_actions(self) -> frozenset[WatchAction]:
        """Return the watch actions offered for the entry on the detail page."""
        entry = self.detail.value_or_none()
        if entry is None:
            return frozenset()
        return available_actions(entry, self.episodes_for(entry.id))


__all__ = [
    "AppState",
    "EntryDetailPage",
    "FriendsPage",
    "HomePage",
    "LibraryPage",
    "NotFoundPage",
    "Notification",
    "Page",
    "TagsPage",
    "default_filters",
]
