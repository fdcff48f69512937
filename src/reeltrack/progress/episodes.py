"""Episode-level progress helpers for series entries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Sequence

from reeltrack.domain import EntryId, EpisodeProgress, LibraryEntry, Series


@dataclass(frozen=True, slots=True)
class SeasonProgress:
    """Watched/total aggregate for one season.

    Attributes:
        season_number: Season the aggregate describes.
        watched: Number of watched episodes in the season.
        total: Episode count of the season (exact or estimated).
        estimated: Whether ``total`` came from the even-division heuristic.
    """

    season_number: int
    watched: int
    total: int
    estimated: bool = False

    @property
    def is_complete(self) -> bool:
        return self.total > 0 and self.watched >= self.total


def watched_episode_count(progress: Iterable[EpisodeProgress]) -> int:
    """Return how many records in ``progress`` are flagged as watched."""
    return sum(1 for record in progress if record.is_watched)


def watched_keys(progress: Iterable[EpisodeProgress]) -> frozenset[tuple[int, int]]:
    return frozenset(record.key for record in progress if record.is_watched)


def season_episode_counts(series: Series) -> dict[int, int]:
    """Return the episode count per season.

    Exact counts from the series payload win. Seasons without a summary fall
    back to dividing the remaining episodes evenly across them, giving the
    remainder to the earliest seasons. The fallback is an estimate: real
    seasons rarely have equal lengths.
    """
    exact = {season.season_number: season.episode_count for season in series.seasons}
    missing = [
        number for number in range(1, series.number_of_seasons + 1) if number not in exact
    ]
    if not missing:
        return exact

    remaining = max(0, series.number_of_episodes - sum(exact.values()))
    base, remainder = divmod(remaining, len(missing))
    counts = dict(exact)
    for index, number in enumerate(missing):
        counts[number] = base + (1 if index < remainder else 0)
    return dict(sorted(counts.items()))


def season_progress(series: Series, progress: Iterable[EpisodeProgress]) -> list[SeasonProgress]:
    """Return watched/total aggregates for every season of ``series``."""
    watched = watched_keys(progress)
    exact = {season.season_number for season in series.seasons}
    summaries: list[SeasonProgress] = []
    for number, total in season_episode_counts(series).items():
        watched_in_season = sum(1 for season, _ in watched if season == number)
        summaries.append(
            SeasonProgress(
                season_number=number,
                watched=watched_in_season,
                total=total,
                estimated=number not in exact,
            )
        )
    return summaries


def _upsert(
    progress: Sequence[EpisodeProgress],
    updates: dict[tuple[int, int], EpisodeProgress],
) -> tuple[EpisodeProgress, ...]:
    merged = {record.key: record for record in progress}
    merged.update(updates)
    return tuple(merged[key] for key in sorted(merged))


def _record(
    entry_id: EntryId,
    season: int,
    episode: int,
    watched: bool,
    now: Optional[datetime],
) -> EpisodeProgress:
    return EpisodeProgress(
        entry_id=entry_id,
        season_number=season,
        episode_number=episode,
        is_watched=watched,
        watched_date=now if watched else None,
    )


def toggle_episode(
    progress: Sequence[EpisodeProgress],
    entry_id: EntryId,
    season: int,
    episode: int,
    watched: bool,
    *,
    now: Optional[datetime] = None,
) -> tuple[EpisodeProgress, ...]:
    """Set a single episode's watched flag. Never touches watch status."""
    return _upsert(progress, {(season, episode): _record(entry_id, season, episode, watched, now)})


def mark_season_watched(
    progress: Sequence[EpisodeProgress],
    entry_id: EntryId,
    season: int,
    episode_count: int,
    *,
    now: Optional[datetime] = None,
) -> tuple[EpisodeProgress, ...]:
    """Flag every episode of ``season`` as watched in one batch."""
    updates = {
        (season, number): _record(entry_id, season, number, True, now)
        for number in range(1, episode_count + 1)
    }
    return _upsert(progress, updates)


def mark_episodes_up_to(
    progress: Sequence[EpisodeProgress],
    entry_id: EntryId,
    season: int,
    episode: int,
    watched: bool,
    *,
    now: Optional[datetime] = None,
) -> tuple[EpisodeProgress, ...]:
    """Set episodes ``1..episode`` of ``season`` to ``watched``."""
    updates = {
        (season, number): _record(entry_id, season, number, watched, now)
        for number in range(1, episode + 1)
    }
    return _upsert(progress, updates)


def progress_for(entry: LibraryEntry, progress: Iterable[EpisodeProgress]) -> tuple[EpisodeProgress, ...]:
    """Return the records belonging to ``entry``; movies never have any."""
    if not entry.is_series:
        return ()
    return tuple(record for record in progress if record.entry_id == entry.id)


__all__ = [
    "SeasonProgress",
    "mark_episodes_up_to",
    "mark_season_watched",
    "progress_for",
    "season_episode_counts",
    "season_progress",
    "toggle_episode",
    "watched_episode_count",
    "watched_keys",
]
