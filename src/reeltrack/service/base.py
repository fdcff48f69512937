"""Contract between the core and the library backend."""

from __future__ import annotations

from typing import AbstractSet, Optional, Protocol, Sequence, runtime_checkable

from reeltrack.domain import (
    EntryId,
    EntryUpdate,
    EpisodeProgress,
    Friend,
    FriendId,
    HealthStatus,
    LibraryEntry,
    SearchResult,
    Tag,
    TagId,
    WatchStatus,
)


@runtime_checkable
class LibraryService(Protocol):
    """Asynchronous request/response surface consumed by the runtime.

    Implementations raise :class:`~reeltrack.errors.ServiceError` subclasses
    on failure; every other outcome is a success payload.
    """

    async def health(self) -> HealthStatus: ...

    async def fetch_library(self) -> Sequence[LibraryEntry]: ...

    async def fetch_friends(self) -> Sequence[Friend]: ...

    async def fetch_tags(self) -> Sequence[Tag]: ...

    async def search_titles(self, query: str) -> Sequence[SearchResult]: ...

    async def fetch_entry_detail(self, entry_id: EntryId) -> LibraryEntry: ...

    async def fetch_episode_progress(self, entry_id: EntryId) -> Sequence[EpisodeProgress]: ...

    async def add_entry(
        self,
        selection: SearchResult,
        note: Optional[str],
        tag_ids: AbstractSet[TagId],
        friend_ids: AbstractSet[FriendId],
    ) -> LibraryEntry: ...

    async def update_entry(self, entry_id: EntryId, update: EntryUpdate) -> LibraryEntry: ...

    async def set_watch_status(self, entry_id: EntryId, status: WatchStatus) -> LibraryEntry: ...

    async def toggle_episode(
        self, entry_id: EntryId, season: int, episode: int, watched: bool
    ) -> Sequence[EpisodeProgress]: ...

    async def mark_season(self, entry_id: EntryId, season: int) -> Sequence[EpisodeProgress]: ...

    async def mark_episodes_up_to(
        self, entry_id: EntryId, season: int, episode: int, watched: bool
    ) -> Sequence[EpisodeProgress]: ...

    async def delete_entry(self, entry_id: EntryId) -> None: ...

    async def add_friend(self, name: str, nickname: Optional[str]) -> Friend: ...

    async def edit_friend(
        self, friend_id: FriendId, name: str, nickname: Optional[str]
    ) -> Friend: ...

    async def delete_friend(self, friend_id: FriendId) -> None: ...

    async def add_tag(self, name: str, color: Optional[str], description: Optional[str]) -> Tag: ...

    async def edit_tag(
        self,
        tag_id: TagId,
        name: str,
        color: Optional[str],
        description: Optional[str],
    ) -> Tag: ...

    async def delete_tag(self, tag_id: TagId) -> None: ...


__all__ = ["LibraryService"]
