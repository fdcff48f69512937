"""Watch-status state machine.

Transitions::

    NotStarted | InProgress  --mark_completed-->  Completed
    Completed                --mark_unwatched-->  NotStarted     (movies only)
    NotStarted | InProgress  --abandon-------->   Abandoned
    Abandoned                --resume--------->   InProgress
    Abandoned                --mark_completed-->  Completed

Series may only be completed once every episode is flagged as watched.
Checking the last episode never completes a series on its own.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Optional

from reeltrack.domain import (
    Abandoned,
    Completed,
    EpisodeProgress,
    InProgress,
    LibraryEntry,
    NotStarted,
    Series,
    WatchStatus,
)
from reeltrack.errors import InvalidTransitionError

from .episodes import progress_for, watched_episode_count

LOGGER = logging.getLogger(__name__)


class WatchAction(str, Enum):
    """User-triggered watch-status actions."""

    MARK_COMPLETED = "mark_completed"
    MARK_UNWATCHED = "mark_unwatched"
    ABANDON = "abandon"
    RESUME = "resume"


_SOURCES: dict[WatchAction, tuple[type, ...]] = {
    WatchAction.MARK_COMPLETED: (NotStarted, InProgress, Abandoned),
    WatchAction.MARK_UNWATCHED: (Completed,),
    WatchAction.ABANDON: (NotStarted, InProgress),
    WatchAction.RESUME: (Abandoned,),
}


def describe_status(status: WatchStatus) -> str:
    """Return a short human-readable label for ``status``."""
    if isinstance(status, InProgress):
        if status.current_season is not None and status.current_episode is not None:
            return f"in progress (S{status.current_season:02d}E{status.current_episode:02d})"
        return "in progress"
    if isinstance(status, Abandoned):
        return f"abandoned ({status.reason})" if status.reason else "abandoned"
    if isinstance(status, Completed):
        return "completed"
    return "not started"


def is_completion_eligible(entry: LibraryEntry, progress: Iterable[EpisodeProgress] = ()) -> bool:
    """Return whether ``entry`` has enough watched episodes to be completed.

    Movies are always eligible. Series need ``watched >= number_of_episodes``.
    """
    if not isinstance(entry.media, Series):
        return True
    watched = watched_episode_count(progress_for(entry, progress))
    return watched >= entry.media.number_of_episodes


def _rejection(
    entry: LibraryEntry,
    action: WatchAction,
    progress: Iterable[EpisodeProgress],
) -> Optional[str]:
    """Return why ``action`` is invalid for ``entry``, or ``None`` when valid."""
    if not isinstance(entry.watch_status, _SOURCES[action]):
        return "not allowed from this state"
    if action is WatchAction.MARK_UNWATCHED and entry.is_series:
        return "only movies can be marked unwatched"
    if action is WatchAction.MARK_COMPLETED and not is_completion_eligible(entry, progress):
        assert isinstance(entry.media, Series)
        watched = watched_episode_count(progress_for(entry, progress))
        return f"{watched} of {entry.media.number_of_episodes} episodes watched"
    return None


def available_actions(
    entry: LibraryEntry,
    progress: Iterable[EpisodeProgress] = (),
) -> frozenset[WatchAction]:
    """Return every action that is currently valid for ``entry``."""
    records = tuple(progress)
    return frozenset(
        action for action in WatchAction if _rejection(entry, action, records) is None
    )


def transition(
    entry: LibraryEntry,
    action: WatchAction,
    progress: Iterable[EpisodeProgress] = (),
    *,
    reason: Optional[str] = None,
    season: Optional[int] = None,
    episode: Optional[int] = None,
) -> WatchStatus:
    """Return the status ``entry`` moves to when ``action`` is applied.

    Args:
        entry: Entry whose current status is the source state.
        action: Action requested by the user.
        progress: Episode records for series completion checks.
        reason: Abandonment reason; blank text is stored as ``None``.
        season: Season where watching stopped (series only).
        episode: Episode where watching stopped (series only).

    Returns:
        WatchStatus: The target status.

    Raises:
        InvalidTransitionError: If ``action`` is not valid for ``entry``.
    """
    records = tuple(progress)
    problem = _rejection(entry, action, records)
    if problem is not None:
        raise InvalidTransitionError(describe_status(entry.watch_status), action.value, problem)

    if action is WatchAction.MARK_COMPLETED:
        return Completed()
    if action is WatchAction.MARK_UNWATCHED:
        return NotStarted()
    if action is WatchAction.RESUME:
        return InProgress()

    cleaned = reason.strip() if reason else ""
    if not entry.is_series:
        season = episode = None
    return Abandoned(
        reason=cleaned or None,
        stopped_season=season,
        stopped_episode=episode,
    )


def try_transition(
    entry: LibraryEntry,
    action: WatchAction,
    progress: Iterable[EpisodeProgress] = (),
    *,
    reason: Optional[str] = None,
    season: Optional[int] = None,
    episode: Optional[int] = None,
) -> WatchStatus:
    """Like :func:`transition` but return the current status when rejected."""
    try:
        return transition(
            entry, action, progress, reason=reason, season=season, episode=episode
        )
    except InvalidTransitionError as exc:
        LOGGER.debug("Rejected %s for entry %s: %s", action.value, entry.id, exc)
        return entry.watch_status


__all__ = [
    "WatchAction",
    "available_actions",
    "describe_status",
    "is_completion_eligible",
    "transition",
    "try_transition",
]
