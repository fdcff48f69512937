"""Entity models exchanged with the library service."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Annotated, FrozenSet, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

EntryId = int
FriendId = int
TagId = int


class ReeltrackModel(BaseModel):
    """Shared configuration for immutable Reeltrack entities."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class MediaKind(str, Enum):
    """Discriminates between movies and series."""

    MOVIE = "movie"
    SERIES = "series"


# Watch status ---------------------------------------------------------------


class NotStarted(ReeltrackModel):
    """The entry has not been watched yet."""

    kind: Literal["not_started"] = "not_started"


class InProgress(ReeltrackModel):
    """The entry is being watched.

    Attributes:
        current_season: Season the viewer is currently on, when known.
        current_episode: Episode the viewer is currently on, when known.
    """

    kind: Literal["in_progress"] = "in_progress"
    current_season: Optional[int] = None
    current_episode: Optional[int] = None


class Completed(ReeltrackModel):
    """The entry has been watched to the end."""

    kind: Literal["completed"] = "completed"


class Abandoned(ReeltrackModel):
    """The viewer stopped watching the entry.

    Attributes:
        reason: Optional free-text reason.
        stopped_season: Season where watching stopped.
        stopped_episode: Episode where watching stopped.
    """

    kind: Literal["abandoned"] = "abandoned"
    reason: Optional[str] = None
    stopped_season: Optional[int] = None
    stopped_episode: Optional[int] = None


WatchStatus = Annotated[
    Union[NotStarted, InProgress, Completed, Abandoned],
    Field(discriminator="kind"),
]


# Media payloads -------------------------------------------------------------


class SeasonSummary(ReeltrackModel):
    """Per-season metadata delivered with series details."""

    season_number: int
    episode_count: int = Field(ge=0)
    name: Optional[str] = None


class Movie(ReeltrackModel):
    """Movie payload of a library entry."""

    kind: Literal["movie"] = "movie"
    title: str
    catalog_id: Optional[int] = None
    overview: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    release_date: Optional[date] = None
    genres: Tuple[str, ...] = ()
    vote_average: Optional[float] = None
    runtime_minutes: Optional[int] = None

    @property
    def year(self) -> Optional[int]:
        return self.release_date.year if self.release_date else None


class Series(ReeltrackModel):
    """Series payload of a library entry.

    Attributes:
        number_of_seasons: Season count reported by the catalog.
        number_of_episodes: Total episode count across all seasons.
        seasons: Exact per-season summaries when the catalog provided them.
    """

    kind: Literal["series"] = "series"
    title: str
    catalog_id: Optional[int] = None
    overview: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    first_air_date: Optional[date] = None
    genres: Tuple[str, ...] = ()
    vote_average: Optional[float] = None
    number_of_seasons: int = Field(default=0, ge=0)
    number_of_episodes: int = Field(default=0, ge=0)
    episode_runtime_minutes: Optional[int] = None
    seasons: Tuple[SeasonSummary, ...] = ()

    @property
    def year(self) -> Optional[int]:
        return self.first_air_date.year if self.first_air_date else None


Media = Annotated[Union[Movie, Series], Field(discriminator="kind")]


# Library --------------------------------------------------------------------


class WhyAdded(ReeltrackModel):
    """Attribution describing why an entry was added."""

    recommended_by: Optional[FriendId] = None
    recommended_by_name: Optional[str] = None
    source: Optional[str] = None
    context: Optional[str] = None
    date_recommended: Optional[date] = None


class LibraryEntry(ReeltrackModel):
    """A personal library entry wrapping a movie or a series."""

    id: EntryId
    media: Media
    watch_status: WatchStatus = Field(default_factory=NotStarted)
    personal_rating: Optional[int] = Field(default=None, ge=1, le=5)
    tags: FrozenSet[TagId] = frozenset()
    friends: FrozenSet[FriendId] = frozenset()
    date_added: datetime
    date_first_watched: Optional[datetime] = None
    date_last_watched: Optional[datetime] = None
    is_favorite: bool = False
    notes: Optional[str] = None
    why_added: Optional[WhyAdded] = None

    @property
    def title(self) -> str:
        return self.media.title

    @property
    def year(self) -> Optional[int]:
        return self.media.year

    @property
    def media_kind(self) -> MediaKind:
        return MediaKind(self.media.kind)

    @property
    def is_series(self) -> bool:
        return isinstance(self.media, Series)


class EntryUpdate(ReeltrackModel):
    """Partial update of an entry's personal fields.

    Only fields explicitly set on the instance are applied, so
    ``EntryUpdate(personal_rating=None)`` clears the rating while
    ``EntryUpdate()`` changes nothing.
    """

    personal_rating: Optional[int] = Field(default=None, ge=1, le=5)
    is_favorite: Optional[bool] = None
    notes: Optional[str] = None
    tags: Optional[FrozenSet[TagId]] = None
    friends: Optional[FrozenSet[FriendId]] = None


class EpisodeProgress(ReeltrackModel):
    """Watched flag for a single episode of a series entry."""

    entry_id: EntryId
    season_number: int = Field(ge=0)
    episode_number: int = Field(ge=1)
    is_watched: bool = False
    watched_date: Optional[datetime] = None

    @property
    def key(self) -> tuple[int, int]:
        return (self.season_number, self.episode_number)


# People & organization ------------------------------------------------------


class Friend(ReeltrackModel):
    """A person the viewer watches things with."""

    id: FriendId
    name: str
    nickname: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        return f"{self.name} ({self.nickname})" if self.nickname else self.name


class Tag(ReeltrackModel):
    """A user-defined label attached to entries."""

    id: TagId
    name: str
    color: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None


# Catalog --------------------------------------------------------------------


class SearchResult(ReeltrackModel):
    """A title returned by catalog search, selectable for quick add."""

    catalog_id: int
    media_kind: MediaKind
    title: str
    release_date: Optional[date] = None
    poster_path: Optional[str] = None
    overview: Optional[str] = None
    vote_average: Optional[float] = None

    @property
    def year(self) -> Optional[int]:
        return self.release_date.year if self.release_date else None


class HealthStatus(ReeltrackModel):
    """Service health report."""

    status: str
    version: str


__all__ = [
    "EntryId",
    "FriendId",
    "TagId",
    "ReeltrackModel",
    "MediaKind",
    "NotStarted",
    "InProgress",
    "Completed",
    "Abandoned",
    "WatchStatus",
    "SeasonSummary",
    "Movie",
    "Series",
    "Media",
    "WhyAdded",
    "LibraryEntry",
    "EntryUpdate",
    "EpisodeProgress",
    "Friend",
    "Tag",
    "SearchResult",
    "HealthStatus",
]
