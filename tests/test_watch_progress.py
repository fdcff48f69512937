"""Watch-status state machine tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from reeltrack.domain import (
    Abandoned,
    Completed,
    EpisodeProgress,
    InProgress,
    LibraryEntry,
    Movie,
    NotStarted,
    Series,
)
from reeltrack.errors import InvalidTransitionError
from reeltrack.progress import (
    WatchAction,
    available_actions,
    describe_status,
    is_completion_eligible,
    transition,
    try_transition,
)

ADDED = datetime(2024, 3, 1, tzinfo=timezone.utc)


def _movie(status=None) -> LibraryEntry:
    return LibraryEntry(
        id=1,
        media=Movie(title="Heat"),
        watch_status=status or NotStarted(),
        date_added=ADDED,
    )


def _series(status=None, episodes: int = 10) -> LibraryEntry:
    return LibraryEntry(
        id=2,
        media=Series(title="Dark", number_of_seasons=1, number_of_episodes=episodes),
        watch_status=status or NotStarted(),
        date_added=ADDED,
    )


def _watched(count: int, entry_id: int = 2) -> list[EpisodeProgress]:
    return [
        EpisodeProgress(entry_id=entry_id, season_number=1, episode_number=n, is_watched=True)
        for n in range(1, count + 1)
    ]


@pytest.mark.parametrize(
    ("status", "action", "expected"),
    [
        (NotStarted(), WatchAction.MARK_COMPLETED, Completed()),
        (InProgress(current_season=1, current_episode=3), WatchAction.MARK_COMPLETED, Completed()),
        (Completed(), WatchAction.MARK_UNWATCHED, NotStarted()),
        (Abandoned(reason="boring"), WatchAction.RESUME, InProgress()),
        (Abandoned(), WatchAction.MARK_COMPLETED, Completed()),
        (NotStarted(), WatchAction.ABANDON, Abandoned()),
    ],
)
def test_valid_movie_transitions(status, action: WatchAction, expected) -> None:
    assert transition(_movie(status), action) == expected


@pytest.mark.parametrize(
    ("status", "action"),
    [
        (Completed(), WatchAction.MARK_COMPLETED),
        (Completed(), WatchAction.ABANDON),
        (Completed(), WatchAction.RESUME),
        (NotStarted(), WatchAction.MARK_UNWATCHED),
        (NotStarted(), WatchAction.RESUME),
        (Abandoned(), WatchAction.ABANDON),
    ],
)
def test_invalid_transitions_raise(status, action: WatchAction) -> None:
    with pytest.raises(InvalidTransitionError):
        transition(_movie(status), action)


def test_abandon_records_trimmed_reason_and_position() -> None:
    status = transition(
        _series(InProgress()), WatchAction.ABANDON, reason="  lost interest ", season=1, episode=4
    )

    assert status == Abandoned(reason="lost interest", stopped_season=1, stopped_episode=4)


def test_abandon_movie_drops_position_and_blank_reason() -> None:
    status = transition(_movie(), WatchAction.ABANDON, reason="   ", season=2, episode=5)

    assert status == Abandoned()


def test_series_cannot_be_marked_unwatched() -> None:
    with pytest.raises(InvalidTransitionError, match="only movies"):
        transition(_series(Completed()), WatchAction.MARK_UNWATCHED)


def test_series_completion_requires_every_episode() -> None:
    entry = _series(InProgress())

    with pytest.raises(InvalidTransitionError, match="9 of 10 episodes watched"):
        transition(entry, WatchAction.MARK_COMPLETED, _watched(9))

    assert transition(entry, WatchAction.MARK_COMPLETED, _watched(10)) == Completed()


def test_completion_gate_ignores_other_entries_and_unwatched_records() -> None:
    entry = _series(episodes=2)
    progress = [
        *_watched(2, entry_id=99),
        EpisodeProgress(entry_id=2, season_number=1, episode_number=1, is_watched=True),
        EpisodeProgress(entry_id=2, season_number=1, episode_number=2, is_watched=False),
    ]

    assert not is_completion_eligible(entry, progress)


def test_series_without_episodes_is_completion_eligible() -> None:
    assert is_completion_eligible(_series(episodes=0))
    assert is_completion_eligible(_movie())


def test_available_actions_reflect_gate() -> None:
    entry = _series(InProgress(), episodes=3)

    assert available_actions(entry, _watched(2)) == {WatchAction.ABANDON}
    assert available_actions(entry, _watched(3)) == {
        WatchAction.ABANDON,
        WatchAction.MARK_COMPLETED,
    }
    assert available_actions(_movie(Completed())) == {WatchAction.MARK_UNWATCHED}


def test_abandon_and_resume_round_trip() -> None:
    abandoned = transition(_movie(), WatchAction.ABANDON, reason="bored")
    assert abandoned == Abandoned(reason="bored")

    resumed = transition(_movie(abandoned), WatchAction.RESUME)
    assert resumed == InProgress(current_season=None, current_episode=None)


def test_ten_episode_series_offers_completion_after_last_episode() -> None:
    entry = _series(InProgress(), episodes=10)

    assert WatchAction.MARK_COMPLETED not in available_actions(entry, _watched(9))
    assert WatchAction.MARK_COMPLETED in available_actions(entry, _watched(10))


def test_try_transition_returns_current_status_when_rejected() -> None:
    entry = _movie(Completed())

    assert try_transition(entry, WatchAction.ABANDON) == Completed()
    assert try_transition(entry, WatchAction.RESUME) == Completed()


def test_describe_status_labels() -> None:
    assert describe_status(NotStarted()) == "not started"
    assert describe_status(InProgress(current_season=2, current_episode=7)) == "in progress (S02E07)"
    assert describe_status(Abandoned(reason="slow")) == "abandoned (slow)"
    assert describe_status(Completed()) == "completed"
