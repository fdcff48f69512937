"""Domain entities for Reeltrack."""

from .models import (
    Abandoned,
    Completed,
    EntryId,
    EntryUpdate,
    EpisodeProgress,
    Friend,
    FriendId,
    HealthStatus,
    InProgress,
    LibraryEntry,
    Media,
    MediaKind,
    Movie,
    NotStarted,
    SearchResult,
    SeasonSummary,
    Series,
    Tag,
    TagId,
    WatchStatus,
    WhyAdded,
)

__all__ = [
    "Abandoned",
    "Completed",
    "EntryId",
    "EntryUpdate",
    "EpisodeProgress",
    "Friend",
    "FriendId",
    "HealthStatus",
    "InProgress",
    "LibraryEntry",
    "Media",
    "MediaKind",
    "Movie",
    "NotStarted",
    "SearchResult",
    "SeasonSummary",
    "Series",
    "Tag",
    "TagId",
    "WatchStatus",
    "WhyAdded",
]
