"""Library service backed by a local JSON document."""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import AbstractSet, Any, Callable, Iterable, Optional, Sequence, TypeVar

import reeltrack
from reeltrack.domain import (
    Completed,
    EntryId,
    EntryUpdate,
    EpisodeProgress,
    Friend,
    FriendId,
    HealthStatus,
    InProgress,
    LibraryEntry,
    MediaKind,
    Movie,
    SearchResult,
    Series,
    Tag,
    TagId,
    WatchStatus,
    WhyAdded,
)
from reeltrack.errors import ServerError
from reeltrack.progress import (
    mark_episodes_up_to,
    mark_season_watched,
    season_episode_counts,
    toggle_episode,
)
from reeltrack.query import title_matches

from .store import LibraryDocument, LibraryStore

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], datetime]
R = TypeVar("R")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _search_result(media: Movie | Series) -> SearchResult:
    return SearchResult(
        catalog_id=media.catalog_id or 0,
        media_kind=MediaKind(media.kind),
        title=media.title,
        release_date=media.release_date if isinstance(media, Movie) else media.first_air_date,
        poster_path=media.poster_path,
        overview=media.overview,
        vote_average=media.vote_average,
    )


def _media_from_selection(selection: SearchResult) -> Movie | Series:
    if selection.media_kind is MediaKind.SERIES:
        return Series(
            title=selection.title,
            catalog_id=selection.catalog_id,
            overview=selection.overview,
            poster_path=selection.poster_path,
            first_air_date=selection.release_date,
            vote_average=selection.vote_average,
        )
    return Movie(
        title=selection.title,
        catalog_id=selection.catalog_id,
        overview=selection.overview,
        poster_path=selection.poster_path,
        release_date=selection.release_date,
        vote_average=selection.vote_average,
    )


class LocalLibraryService:
    """Implement :class:`~reeltrack.service.LibraryService` over ``library.json``.

    Every call reads the document, applies the change and writes it back, so
    several processes sharing the file observe each other's changes. File I/O
    runs in a worker thread and calls on one instance are serialized.

    Args:
        path: Location of the JSON document.
        clock: Source of timestamps; defaults to the current UTC time.
    """

    def __init__(self, path: Path, *, clock: Optional[Clock] = None) -> None:
        self._store = LibraryStore(path)
        self._clock = clock or _utcnow
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._store.path

    async def _run(self, operation: Callable[..., R], *args: Any) -> R:
        return await asyncio.to_thread(self._locked, operation, *args)

    def _locked(self, operation: Callable[..., R], *args: Any) -> R:
        with self._lock:
            return operation(*args)

    # Reads ------------------------------------------------------------------

    async def health(self) -> HealthStatus:
        await self._run(self._store.load)
        return HealthStatus(status="ok", version=reeltrack.__version__)

    async def fetch_library(self) -> tuple[LibraryEntry, ...]:
        document = await self._run(self._store.load)
        return tuple(document.entries)

    async def fetch_friends(self) -> tuple[Friend, ...]:
        document = await self._run(self._store.load)
        return tuple(sorted(document.friends, key=lambda friend: friend.name.casefold()))

    async def fetch_tags(self) -> tuple[Tag, ...]:
        document = await self._run(self._store.load)
        return tuple(sorted(document.tags, key=lambda tag: tag.name.casefold()))

    async def search_titles(self, query: str) -> tuple[SearchResult, ...]:
        document = await self._run(self._store.load)
        return tuple(
            _search_result(media)
            for media in document.catalog
            if media.catalog_id is not None and title_matches(media.title, query)
        )

    async def fetch_entry_detail(self, entry_id: EntryId) -> LibraryEntry:
        document = await self._run(self._store.load)
        return self._entry(document, entry_id)

    async def fetch_episode_progress(self, entry_id: EntryId) -> tuple[EpisodeProgress, ...]:
        document = await self._run(self._store.load)
        entry = self._entry(document, entry_id)
        if not entry.is_series:
            return ()
        return self._progress(document, entry_id)

    # Entries ----------------------------------------------------------------

    async def add_entry(
        self,
        selection: SearchResult,
        note: Optional[str],
        tag_ids: AbstractSet[TagId],
        friend_ids: AbstractSet[FriendId],
    ) -> LibraryEntry:
        return await self._run(self._add_entry, selection, note, tag_ids, friend_ids)

    def _add_entry(
        self,
        selection: SearchResult,
        note: Optional[str],
        tag_ids: AbstractSet[TagId],
        friend_ids: AbstractSet[FriendId],
    ) -> LibraryEntry:
        document = self._store.load()
        for entry in document.entries:
            if (
                entry.media.catalog_id == selection.catalog_id
                and entry.media_kind is selection.media_kind
            ):
                raise ServerError(f'duplicate: "{entry.title}" is already in your library')
        self._require_tags(document, tag_ids)
        self._require_friends(document, friend_ids)

        media = next(
            (
                item
                for item in document.catalog
                if item.catalog_id == selection.catalog_id and item.kind == selection.media_kind.value
            ),
            None,
        )
        entry = LibraryEntry(
            id=document.allocate("entry"),
            media=media or _media_from_selection(selection),
            tags=frozenset(tag_ids),
            friends=frozenset(friend_ids),
            date_added=self._clock(),
            why_added=WhyAdded(context=note) if note else None,
        )
        document.entries.append(entry)
        self._store.save(document)
        LOGGER.info("Added entry %s (%s)", entry.id, entry.title)
        return entry

    async def update_entry(self, entry_id: EntryId, update: EntryUpdate) -> LibraryEntry:
        return await self._run(self._update_entry, entry_id, update)

    def _update_entry(self, entry_id: EntryId, update: EntryUpdate) -> LibraryEntry:
        document = self._store.load()
        entry = self._entry(document, entry_id)
        changes = update.model_dump(exclude_unset=True)
        if "tags" in changes:
            changes["tags"] = frozenset(changes["tags"] or ())
            self._require_tags(document, changes["tags"])
        if "friends" in changes:
            changes["friends"] = frozenset(changes["friends"] or ())
            self._require_friends(document, changes["friends"])
        if "is_favorite" in changes and changes["is_favorite"] is None:
            changes.pop("is_favorite")
        updated = entry.model_copy(update=changes)
        return self._replace_entry(document, updated)

    async def set_watch_status(self, entry_id: EntryId, status: WatchStatus) -> LibraryEntry:
        return await self._run(self._set_watch_status, entry_id, status)

    def _set_watch_status(self, entry_id: EntryId, status: WatchStatus) -> LibraryEntry:
        document = self._store.load()
        entry = self._entry(document, entry_id)
        changes: dict[str, object] = {"watch_status": status}
        if isinstance(status, (Completed, InProgress)):
            now = self._clock()
            changes["date_last_watched"] = now
            if entry.date_first_watched is None:
                changes["date_first_watched"] = now
        return self._replace_entry(document, entry.model_copy(update=changes))

    async def delete_entry(self, entry_id: EntryId) -> None:
        await self._run(self._delete_entry, entry_id)

    def _delete_entry(self, entry_id: EntryId) -> None:
        document = self._store.load()
        self._entry(document, entry_id)
        document.entries = [entry for entry in document.entries if entry.id != entry_id]
        document.episodes = [record for record in document.episodes if record.entry_id != entry_id]
        self._store.save(document)
        LOGGER.info("Deleted entry %s", entry_id)

    # Episodes ---------------------------------------------------------------

    async def toggle_episode(
        self, entry_id: EntryId, season: int, episode: int, watched: bool
    ) -> tuple[EpisodeProgress, ...]:
        return await self._run(self._toggle_episode, entry_id, season, episode, watched)

    def _toggle_episode(
        self, entry_id: EntryId, season: int, episode: int, watched: bool
    ) -> tuple[EpisodeProgress, ...]:
        document = self._store.load()
        self._series(document, entry_id)
        progress = toggle_episode(
            self._progress(document, entry_id), entry_id, season, episode, watched, now=self._clock()
        )
        return self._replace_progress(document, entry_id, progress)

    async def mark_season(self, entry_id: EntryId, season: int) -> tuple[EpisodeProgress, ...]:
        return await self._run(self._mark_season, entry_id, season)

    def _mark_season(self, entry_id: EntryId, season: int) -> tuple[EpisodeProgress, ...]:
        document = self._store.load()
        series = self._series(document, entry_id)
        episode_count = season_episode_counts(series).get(season)
        if not episode_count:
            raise ServerError(f"Season {season} not found for {series.title}")
        progress = mark_season_watched(
            self._progress(document, entry_id), entry_id, season, episode_count, now=self._clock()
        )
        return self._replace_progress(document, entry_id, progress)

    async def mark_episodes_up_to(
        self, entry_id: EntryId, season: int, episode: int, watched: bool
    ) -> tuple[EpisodeProgress, ...]:
        return await self._run(self._mark_episodes_up_to, entry_id, season, episode, watched)

    def _mark_episodes_up_to(
        self, entry_id: EntryId, season: int, episode: int, watched: bool
    ) -> tuple[EpisodeProgress, ...]:
        document = self._store.load()
        self._series(document, entry_id)
        progress = mark_episodes_up_to(
            self._progress(document, entry_id), entry_id, season, episode, watched, now=self._clock()
        )
        return self._replace_progress(document, entry_id, progress)

    # Friends ----------------------------------------------------------------

    async def add_friend(self, name: str, nickname: Optional[str]) -> Friend:
        return await self._run(self._add_friend, name, nickname)

    def _add_friend(self, name: str, nickname: Optional[str]) -> Friend:
        document = self._store.load()
        self._reject_duplicate_name(document.friends, name, "friend")
        friend = Friend(
            id=document.allocate("friend"), name=name, nickname=nickname, created_at=self._clock()
        )
        document.friends.append(friend)
        self._store.save(document)
        return friend

    async def edit_friend(self, friend_id: FriendId, name: str, nickname: Optional[str]) -> Friend:
        return await self._run(self._edit_friend, friend_id, name, nickname)

    def _edit_friend(self, friend_id: FriendId, name: str, nickname: Optional[str]) -> Friend:
        document = self._store.load()
        friend = self._find(document.friends, friend_id, "Friend")
        self._reject_duplicate_name(document.friends, name, "friend", exclude=friend_id)
        updated = friend.model_copy(update={"name": name, "nickname": nickname})
        document.friends = [updated if item.id == friend_id else item for item in document.friends]
        self._store.save(document)
        return updated

    async def delete_friend(self, friend_id: FriendId) -> None:
        await self._run(self._delete_friend, friend_id)

    def _delete_friend(self, friend_id: FriendId) -> None:
        document = self._store.load()
        self._find(document.friends, friend_id, "Friend")
        document.friends = [item for item in document.friends if item.id != friend_id]
        document.entries = [
            entry.model_copy(update={"friends": entry.friends - {friend_id}})
            if friend_id in entry.friends
            else entry
            for entry in document.entries
        ]
        self._store.save(document)

    # Tags -------------------------------------------------------------------

    async def add_tag(self, name: str, color: Optional[str], description: Optional[str]) -> Tag:
        return await self._run(self._add_tag, name, color, description)

    def _add_tag(self, name: str, color: Optional[str], description: Optional[str]) -> Tag:
        document = self._store.load()
        self._reject_duplicate_name(document.tags, name, "tag")
        tag = Tag(
            id=document.allocate("tag"),
            name=name,
            color=color,
            description=description,
            created_at=self._clock(),
        )
        document.tags.append(tag)
        self._store.save(document)
        return tag

    async def edit_tag(
        self,
        tag_id: TagId,
        name: str,
        color: Optional[str],
        description: Optional[str],
    ) -> Tag:
        return await self._run(self._edit_tag, tag_id, name, color, description)

    def _edit_tag(
        self,
        tag_id: TagId,
        name: str,
        color: Optional[str],
        description: Optional[str],
    ) -> Tag:
        document = self._store.load()
        tag = self._find(document.tags, tag_id, "Tag")
        self._reject_duplicate_name(document.tags, name, "tag", exclude=tag_id)
        updated = tag.model_copy(update={"name": name, "color": color, "description": description})
        document.tags = [updated if item.id == tag_id else item for item in document.tags]
        self._store.save(document)
        return updated

    async def delete_tag(self, tag_id: TagId) -> None:
        await self._run(self._delete_tag, tag_id)

    def _delete_tag(self, tag_id: TagId) -> None:
        document = self._store.load()
        self._find(document.tags, tag_id, "Tag")
        document.tags = [item for item in document.tags if item.id != tag_id]
        document.entries = [
            entry.model_copy(update={"tags": entry.tags - {tag_id}})
            if tag_id in entry.tags
            else entry
            for entry in document.entries
        ]
        self._store.save(document)

    # Catalog ----------------------------------------------------------------

    def seed_catalog(self, titles: Iterable[Movie | Series]) -> int:
        """Add ``titles`` to the searchable catalog, skipping known ids.

        Returns:
            int: Number of titles added.
        """
        with self._lock:
            document = self._store.load()
            known = {(media.kind, media.catalog_id) for media in document.catalog}
            added = 0
            for media in titles:
                if media.catalog_id is None or (media.kind, media.catalog_id) in known:
                    continue
                document.catalog.append(media)
                known.add((media.kind, media.catalog_id))
                added += 1
            if added:
                self._store.save(document)
        return added

    # Helpers ----------------------------------------------------------------

    @staticmethod
    def _entry(document: LibraryDocument, entry_id: EntryId) -> LibraryEntry:
        for entry in document.entries:
            if entry.id == entry_id:
                return entry
        raise ServerError(f"Entry {entry_id} not found")

    def _series(self, document: LibraryDocument, entry_id: EntryId) -> Series:
        entry = self._entry(document, entry_id)
        if not isinstance(entry.media, Series):
            raise ServerError(f'"{entry.title}" is a movie and has no episodes')
        return entry.media

    @staticmethod
    def _find(items: Sequence[Friend] | Sequence[Tag], item_id: int, label: str):
        for item in items:
            if item.id == item_id:
                return item
        raise ServerError(f"{label} {item_id} not found")

    @staticmethod
    def _reject_duplicate_name(
        items: Sequence[Friend] | Sequence[Tag],
        name: str,
        label: str,
        *,
        exclude: Optional[int] = None,
    ) -> None:
        wanted = name.strip().casefold()
        for item in items:
            if item.id != exclude and item.name.strip().casefold() == wanted:
                raise ServerError(f'A {label} named "{name}" already exists')

    @staticmethod
    def _require_tags(document: LibraryDocument, tag_ids: Iterable[TagId]) -> None:
        known = {tag.id for tag in document.tags}
        missing = sorted(set(tag_ids) - known)
        if missing:
            raise ServerError(f"Tag {missing[0]} not found")

    @staticmethod
    def _require_friends(document: LibraryDocument, friend_ids: Iterable[FriendId]) -> None:
        known = {friend.id for friend in document.friends}
        missing = sorted(set(friend_ids) - known)
        if missing:
            raise ServerError(f"Friend {missing[0]} not found")

    @staticmethod
    def _progress(document: LibraryDocument, entry_id: EntryId) -> tuple[EpisodeProgress, ...]:
        return tuple(
            sorted(
                (record for record in document.episodes if record.entry_id == entry_id),
                key=lambda record: record.key,
            )
        )

    def _replace_progress(
        self,
        document: LibraryDocument,
        entry_id: EntryId,
        progress: Sequence[EpisodeProgress],
    ) -> tuple[EpisodeProgress, ...]:
        others = [record for record in document.episodes if record.entry_id != entry_id]
        document.episodes = [*others, *progress]
        self._store.save(document)
        return tuple(progress)

    def _replace_entry(self, document: LibraryDocument, entry: LibraryEntry) -> LibraryEntry:
        document.entries = [entry if item.id == entry.id else item for item in document.entries]
        self._store.save(document)
        return entry


__all__ = ["LocalLibraryService"]
