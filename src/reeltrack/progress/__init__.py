"""Watch-status state machine and episode progress aggregation."""

from .episodes import (
    SeasonProgress,
    mark_episodes_up_to,
    mark_season_watched,
    progress_for,
    season_episode_counts,
    season_progress,
    toggle_episode,
    watched_episode_count,
    watched_keys,
)
from .machine import (
    WatchAction,
    available_actions,
    describe_status,
    is_completion_eligible,
    transition,
    try_transition,
)

__all__ = [
    "SeasonProgress",
    "WatchAction",
    "available_actions",
    "describe_status",
    "is_completion_eligible",
    "mark_episodes_up_to",
    "mark_season_watched",
    "progress_for",
    "season_episode_counts",
    "season_progress",
    "toggle_episode",
    "transition",
    "try_transition",
    "watched_episode_count",
    "watched_keys",
]
