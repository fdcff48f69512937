"""Closed set of intents accepted by the reducer.

User actions and service completions are both expressed as intents. Result
intents carry the sequence number captured when the request was issued so
stale completions can be recognised.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union, get_args

from reeltrack.domain import (
    EntryId,
    EpisodeProgress,
    Friend,
    FriendId,
    HealthStatus,
    LibraryEntry,
    SearchResult,
    Tag,
    TagId,
)
from reeltrack.query import SortKey, StatusFilter
from reeltrack.workflow import DeleteTarget

from .effects import ServiceResult
from .state import Page

# Startup & navigation -------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Init:
    """Request every resource needed by the landing page."""


@dataclass(frozen=True, slots=True)
class Navigate:
    page: Page


# Resource loads -------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CheckHealth:
    pass


@dataclass(frozen=True, slots=True)
class HealthLoaded:
    seq: int
    result: ServiceResult[HealthStatus]


@dataclass(frozen=True, slots=True)
class LoadLibrary:
    pass


@dataclass(frozen=True, slots=True)
class LibraryLoaded:
    seq: int
    result: ServiceResult[Tuple[LibraryEntry, ...]]


@dataclass(frozen=True, slots=True)
class LoadFriends:
    pass


@dataclass(frozen=True, slots=True)
class FriendsLoaded:
    seq: int
    result: ServiceResult[Tuple[Friend, ...]]


@dataclass(frozen=True, slots=True)
class LoadTags:
    pass


@dataclass(frozen=True, slots=True)
class TagsLoaded:
    seq: int
    result: ServiceResult[Tuple[Tag, ...]]


@dataclass(frozen=True, slots=True)
class LoadEntryDetail:
    entry_id: EntryId


@dataclass(frozen=True, slots=True)
class EntryDetailLoaded:
    seq: int
    result: ServiceResult[LibraryEntry]


@dataclass(frozen=True, slots=True)
class LoadEpisodes:
    entry_id: EntryId


@dataclass(frozen=True, slots=True)
class EpisodesLoaded:
    seq: int
    result: ServiceResult[Tuple[EpisodeProgress, ...]]


# Search & quick add ---------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OpenSearch:
    pass


@dataclass(frozen=True, slots=True)
class SearchQueryChanged:
    query: str


@dataclass(frozen=True, slots=True)
class SearchDebounced:
    """Fired by the debounce timer; only the latest ``token`` may search."""

    token: int


@dataclass(frozen=True, slots=True)
class SearchLoaded:
    seq: int
    result: ServiceResult[Tuple[SearchResult, ...]]


@dataclass(frozen=True, slots=True)
class OpenQuickAdd:
    item: SearchResult


@dataclass(frozen=True, slots=True)
class QuickAddNoteChanged:
    note: str


@dataclass(frozen=True, slots=True)
class ToggleQuickAddTag:
    tag_id: TagId


@dataclass(frozen=True, slots=True)
class ToggleQuickAddFriend:
    friend_id: FriendId


@dataclass(frozen=True, slots=True)
class SubmitQuickAdd:
    pass


@dataclass(frozen=True, slots=True)
class QuickAddSaved:
    result: ServiceResult[LibraryEntry]


# Friend & tag forms ---------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OpenFriendForm:
    """Open the friend form; ``friend`` selects edit mode."""

    friend: Optional[Friend] = None


@dataclass(frozen=True, slots=True)
class FriendNameChanged:
    name: str


@dataclass(frozen=True, slots=True)
class FriendNicknameChanged:
    nickname: str


@dataclass(frozen=True, slots=True)
class SubmitFriendForm:
    pass


@dataclass(frozen=True, slots=True)
class FriendSaved:
    result: ServiceResult[Friend]


@dataclass(frozen=True, slots=True)
class OpenTagForm:
    tag: Optional[Tag] = None


@dataclass(frozen=True, slots=True)
class TagNameChanged:
    name: str


@dataclass(frozen=True, slots=True)
class TagColorChanged:
    color: str


@dataclass(frozen=True, slots=True)
class TagDescriptionChanged:
    description: str


@dataclass(frozen=True, slots=True)
class SubmitTagForm:
    pass


@dataclass(frozen=True, slots=True)
class TagSaved:
    result: ServiceResult[Tag]


# Abandon --------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OpenAbandon:
    entry_id: EntryId


@dataclass(frozen=True, slots=True)
class AbandonReasonChanged:
    reason: str


@dataclass(frozen=True, slots=True)
class AbandonSeasonChanged:
    season: Optional[int]


@dataclass(frozen=True, slots=True)
class AbandonEpisodeChanged:
    episode: Optional[int]


@dataclass(frozen=True, slots=True)
class SubmitAbandon:
    pass


@dataclass(frozen=True, slots=True)
class AbandonSaved:
    result: ServiceResult[LibraryEntry]


# Delete confirmation --------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OpenConfirmDelete:
    target: DeleteTarget


@dataclass(frozen=True, slots=True)
class ConfirmDelete:
    pass


@dataclass(frozen=True, slots=True)
class DeleteCompleted:
    target: DeleteTarget
    result: ServiceResult[None]


@dataclass(frozen=True, slots=True)
class CloseWorkflow:
    pass


# Entry actions --------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MarkCompleted:
    entry_id: EntryId


@dataclass(frozen=True, slots=True)
class MarkUnwatched:
    entry_id: EntryId


@dataclass(frozen=True, slots=True)
class ResumeEntry:
    entry_id: EntryId


@dataclass(frozen=True, slots=True)
class ToggleEntryTag:
    entry_id: EntryId
    tag_id: TagId


@dataclass(frozen=True, slots=True)
class ToggleEntryFriend:
    entry_id: EntryId
    friend_id: FriendId


@dataclass(frozen=True, slots=True)
class ToggleFavorite:
    entry_id: EntryId


@dataclass(frozen=True, slots=True)
class SetRating:
    entry_id: EntryId
    rating: Optional[int]


@dataclass(frozen=True, slots=True)
class SaveNotes:
    entry_id: EntryId
    notes: str


@dataclass(frozen=True, slots=True)
class EntryUpdated:
    """Completion of a mutation that returns the updated entry."""

    result: ServiceResult[LibraryEntry]
    success_message: Optional[str] = None


# Episode actions ------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ToggleEpisode:
    entry_id: EntryId
    season: int
    episode: int
    watched: bool


@dataclass(frozen=True, slots=True)
class MarkSeasonWatched:
    entry_id: EntryId
    season: int


@dataclass(frozen=True, slots=True)
class MarkEpisodesUpTo:
    entry_id: EntryId
    season: int
    episode: int
    watched: bool = True


@dataclass(frozen=True, slots=True)
class EpisodesUpdated:
    entry_id: EntryId
    result: ServiceResult[Tuple[EpisodeProgress, ...]]


# Library filters ------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SetLibrarySearch:
    text: str


@dataclass(frozen=True, slots=True)
class SetStatusFilter:
    status: StatusFilter


@dataclass(frozen=True, slots=True)
class ToggleTagFilter:
    tag_id: TagId


@dataclass(frozen=True, slots=True)
class SetMinRating:
    rating: Optional[int]


@dataclass(frozen=True, slots=True)
class SetSortKey:
    key: SortKey


@dataclass(frozen=True, slots=True)
class ToggleSortDirection:
    pass


@dataclass(frozen=True, slots=True)
class ClearFilters:
    pass


# Notifications --------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ShowNotification:
    message: str
    is_success: bool = True


@dataclass(frozen=True, slots=True)
class ClearNotification:
    notification_id: int


Intent = Union[
    Init,
    Navigate,
    CheckHealth,
    HealthLoaded,
    LoadLibrary,
    LibraryLoaded,
    LoadFriends,
    FriendsLoaded,
    LoadTags,
    TagsLoaded,
    LoadEntryDetail,
    EntryDetailLoaded,
    LoadEpisodes,
    EpisodesLoaded,
    OpenSearch,
    SearchQueryChanged,
    SearchDebounced,
    SearchLoaded,
    OpenQuickAdd,
    QuickAddNoteChanged,
    ToggleQuickAddTag,
    ToggleQuickAddFriend,
    SubmitQuickAdd,
    QuickAddSaved,
    OpenFriendForm,
    FriendNameChanged,
    FriendNicknameChanged,
    SubmitFriendForm,
    FriendSaved,
    OpenTagForm,
    TagNameChanged,
    TagColorChanged,
    TagDescriptionChanged,
    SubmitTagForm,
    TagSaved,
    OpenAbandon,
    AbandonReasonChanged,
    AbandonSeasonChanged,
    AbandonEpisodeChanged,
    SubmitAbandon,
    AbandonSaved,
    OpenConfirmDelete,
    ConfirmDelete,
    DeleteCompleted,
    CloseWorkflow,
    MarkCompleted,
    MarkUnwatched,
    ResumeEntry,
    ToggleEntryTag,
    ToggleEntryFriend,
    ToggleFavorite,
    SetRating,
    SaveNotes,
    EntryUpdated,
    ToggleEpisode,
    MarkSeasonWatched,
    MarkEpisodesUpTo,
    EpisodesUpdated,
    SetLibrarySearch,
    SetStatusFilter,
    ToggleTagFilter,
    SetMinRating,
    SetSortKey,
    ToggleSortDirection,
    ClearFilters,
    ShowNotification,
    ClearNotification,
]

INTENT_TYPES: tuple[type[Any], ...] = get_args(Intent)


__all__ = [
    "INTENT_TYPES",
    "Intent",
    "Init",
    "Navigate",
    "CheckHealth",
    "HealthLoaded",
    "LoadLibrary",
    "LibraryLoaded",
    "LoadFriends",
    "FriendsLoaded",
    "LoadTags",
    "TagsLoaded",
    "LoadEntryDetail",
    "EntryDetailLoaded",
    "LoadEpisodes",
    "EpisodesLoaded",
    "OpenSearch",
    "SearchQueryChanged",
    "SearchDebounced",
    "SearchLoaded",
    "OpenQuickAdd",
    "QuickAddNoteChanged",
    "ToggleQuickAddTag",
    "ToggleQuickAddFriend",
    "SubmitQuickAdd",
    "QuickAddSaved",
    "OpenFriendForm",
    "FriendNameChanged",
    "FriendNicknameChanged",
    "SubmitFriendForm",
    "FriendSaved",
    "OpenTagForm",
    "TagNameChanged",
    "TagColorChanged",
    "TagDescriptionChanged",
    "SubmitTagForm",
    "TagSaved",
    "OpenAbandon",
    "AbandonReasonChanged",
    "AbandonSeasonChanged",
    "AbandonEpisodeChanged",
    "SubmitAbandon",
    "AbandonSaved",
    "OpenConfirmDelete",
    "ConfirmDelete",
    "DeleteCompleted",
    "CloseWorkflow",
    "MarkCompleted",
    "MarkUnwatched",
    "ResumeEntry",
    "ToggleEntryTag",
    "ToggleEntryFriend",
    "ToggleFavorite",
    "SetRating",
    "SaveNotes",
    "EntryUpdated",
    "ToggleEpisode",
    "MarkSeasonWatched",
    "MarkEpisodesUpTo",
    "EpisodesUpdated",
    "SetLibrarySearch",
    "SetStatusFilter",
    "ToggleTagFilter",
    "SetMinRating",
    "SetSortKey",
    "ToggleSortDirection",
    "ClearFilters",
    "ShowNotification",
    "ClearNotification",
]
