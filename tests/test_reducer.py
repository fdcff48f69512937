"""Reducer transition tests."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from reeltrack.app import (
    INTENT_TYPES,
    NOTIFICATION_TIMER,
    SEARCH_TIMER,
    AppState,
    CallService,
    CancelTimer,
    EntryDetailPage,
    LibraryPage,
    Reducer,
    ServiceResult,
    StartTimer,
    reduce,
)
from reeltrack.app import intents as i
from reeltrack.config import ReeltrackConfig
from reeltrack.domain import (
    Completed,
    EpisodeProgress,
    Friend,
    InProgress,
    LibraryEntry,
    MediaKind,
    Movie,
    SearchResult,
    Series,
    Tag,
)
from reeltrack.errors import ErrorInfo, ErrorKind
from reeltrack.query import SortKey
from reeltrack.workflow import (
    AbandonWorkflow,
    DeleteEntry,
    DeleteTag,
    FriendFormWorkflow,
    NoWorkflow,
    QuickAddWorkflow,
    SearchWorkflow,
)

ADDED = datetime(2024, 2, 1, tzinfo=timezone.utc)
MOVIE = LibraryEntry(id=1, media=Movie(title="Heat", catalog_id=949), date_added=ADDED)
SERIES = LibraryEntry(
    id=2,
    media=Series(title="Dark", catalog_id=70523, number_of_seasons=1, number_of_episodes=2),
    watch_status=InProgress(),
    date_added=ADDED,
)
ITEM = SearchResult(catalog_id=603, media_kind=MediaKind.MOVIE, title="The Matrix")


def _loaded(**overrides) -> AppState:
    """Return a state whose library, friends, and tags have loaded."""
    state = AppState.initial()
    state = replace(
        state,
        library=state.library.with_value((MOVIE, SERIES)),
        friends=state.friends.with_value((Friend(id=1, name="Sam"),)),
        tags=state.tags.with_value((Tag(id=1, name="Noir"),)),
    )
    return replace(state, **overrides)


def _call(effects) -> CallService:
    calls = [effect for effect in effects if isinstance(effect, CallService)]
    assert len(calls) == 1, effects
    return calls[0]


def _complete(state: AppState, effect: CallService, result: ServiceResult, reducer=None):
    reducer = reducer or Reducer()
    return reducer.reduce(state, effect.on_result(result))


def test_every_intent_has_a_handler() -> None:
    assert Reducer().handled_types == set(INTENT_TYPES)


def test_unknown_intent_raises_type_error() -> None:
    with pytest.raises(TypeError):
        Reducer().reduce(AppState(), object())  # type: ignore[arg-type]


def test_init_requests_startup_resources() -> None:
    state, effects = reduce(AppState(), i.Init())

    assert [effect.operation for effect in effects] == [
        "health",
        "fetch_friends",
        "fetch_tags",
        "fetch_library",
    ]
    assert state.library.is_loading and state.health.is_loading


def test_duplicate_load_is_skipped() -> None:
    state, first = reduce(AppState(), i.LoadLibrary())
    again, second = reduce(state, i.LoadLibrary())

    assert len(first) == 1
    assert second == []
    assert again is state


def test_stale_detail_response_is_ignored() -> None:
    state, first = reduce(AppState(), i.Navigate(EntryDetailPage(1)))
    state, second = reduce(state, i.Navigate(EntryDetailPage(2)))

    stale, effects = _complete(state, _call(first), ServiceResult.success(MOVIE))
    assert stale.detail.is_loading
    assert effects == []

    fresh, effects = _complete(state, _call(second), ServiceResult.success(SERIES))
    assert fresh.detail.value_or_none() == SERIES
    assert _call(effects).operation == "fetch_episode_progress"
    assert _call(effects).args == (2,)


def test_movie_detail_clears_episode_progress() -> None:
    state = _loaded()
    state = replace(state, episodes=state.episodes.with_value((), key=2))
    state, effects = reduce(state, i.Navigate(EntryDetailPage(1)))

    state, follow_up = _complete(state, _call(effects), ServiceResult.success(MOVIE))

    assert follow_up == []
    assert state.episodes.is_not_requested


def test_failed_load_records_error() -> None:
    state, effects = reduce(AppState(), i.LoadFriends())
    error = ErrorInfo("offline", ErrorKind.NETWORK)

    state, _ = _complete(state, _call(effects), ServiceResult.failure(error))

    assert state.friends.error == error
    assert state.friend_choices() == ()


def test_navigate_only_loads_missing_resources() -> None:
    state, effects = reduce(_loaded(), i.Navigate(LibraryPage()))

    assert effects == []
    assert state.page == LibraryPage()


# Search ----------------------------------------------------------------------


def test_search_query_change_debounces_latest_token() -> None:
    state, effects = reduce(AppState(), i.SearchQueryChanged("ma"))
    assert effects == [StartTimer(SEARCH_TIMER, 0.3, i.SearchDebounced(1))]

    state, effects = reduce(state, i.SearchQueryChanged("mat"))
    assert effects == [StartTimer(SEARCH_TIMER, 0.3, i.SearchDebounced(2))]

    ignored, effects = reduce(state, i.SearchDebounced(1))
    assert effects == []
    assert ignored is state

    state, effects = reduce(state, i.SearchDebounced(2))
    call = _call(effects)
    assert (call.operation, call.args) == ("search_titles", ("mat",))
    assert state.search_results.is_loading


def test_short_query_cancels_pending_search() -> None:
    state, _ = reduce(AppState(), i.SearchQueryChanged("ma"))

    state, effects = reduce(state, i.SearchQueryChanged("m"))

    assert effects == [CancelTimer(SEARCH_TIMER)]
    assert state.search_results.is_not_requested
    assert isinstance(state.workflow, SearchWorkflow)
    assert state.workflow.query == "m"


def test_search_results_are_truncated() -> None:
    config = ReeltrackConfig.model_validate({"search": {"max_results": 2}})
    reducer = Reducer(config)
    state, _ = reducer.reduce(AppState(), i.SearchQueryChanged("the"))
    state, effects = reducer.reduce(state, i.SearchDebounced(1))
    results = tuple(
        SearchResult(catalog_id=n, media_kind=MediaKind.MOVIE, title=f"The {n}") for n in range(5)
    )

    state, _ = _complete(state, _call(effects), ServiceResult.success(results), reducer)

    assert state.search_results.value_or_none() == results[:2]


def test_closing_search_cancels_timer() -> None:
    state, _ = reduce(AppState(), i.SearchQueryChanged("heat"))

    state, effects = reduce(state, i.CloseWorkflow())

    assert state.workflow == NoWorkflow()
    assert effects == [CancelTimer(SEARCH_TIMER)]


# Quick add -------------------------------------------------------------------


def _submitted_quick_add() -> tuple[AppState, CallService]:
    state, _ = reduce(_loaded(), i.OpenQuickAdd(ITEM))
    state, _ = reduce(state, i.QuickAddNoteChanged("  Sam insisted  "))
    state, _ = reduce(state, i.ToggleQuickAddTag(1))
    state, _ = reduce(state, i.ToggleQuickAddFriend(1))
    state, effects = reduce(state, i.SubmitQuickAdd())
    return state, _call(effects)


def test_quick_add_submits_selection() -> None:
    state, call = _submitted_quick_add()

    assert call.operation == "add_entry"
    assert call.args == (ITEM, "Sam insisted", frozenset({1}), frozenset({1}))
    assert state.workflow.submitting

    again, effects = reduce(state, i.SubmitQuickAdd())
    assert effects == [] and again is state


def test_quick_add_duplicate_keeps_form_open() -> None:
    state, call = _submitted_quick_add()
    error = ErrorInfo('duplicate: "The Matrix" is already in your library')

    state, effects = _complete(state, call, ServiceResult.failure(error))

    workflow = state.workflow
    assert isinstance(workflow, QuickAddWorkflow)
    assert not workflow.submitting
    assert workflow.error == error
    assert workflow.note == "  Sam insisted  "
    assert effects == []


def test_quick_add_success_refreshes_library_and_notifies() -> None:
    state, call = _submitted_quick_add()
    added = LibraryEntry(id=3, media=Movie(title="The Matrix", catalog_id=603), date_added=ADDED)

    state, effects = _complete(state, call, ServiceResult.success(added))

    assert state.workflow == NoWorkflow()
    assert state.notification is not None
    assert state.notification.message == 'Added "The Matrix" to your library!'
    assert [type(effect) for effect in effects] == [CallService, StartTimer]
    assert effects[0].operation == "fetch_library"
    assert effects[1] == StartTimer(NOTIFICATION_TIMER, 4.0, i.ClearNotification(1))


def test_editing_is_blocked_while_submitting() -> None:
    state, _ = _submitted_quick_add()

    after, _ = reduce(state, i.QuickAddNoteChanged("changed"))
    opened, _ = reduce(state, i.OpenFriendForm())

    assert after is state
    assert opened.workflow is state.workflow


# Friend and tag forms --------------------------------------------------------


def test_blank_friend_name_is_rejected_locally() -> None:
    state, _ = reduce(_loaded(), i.OpenFriendForm())
    state, _ = reduce(state, i.FriendNameChanged("   "))

    state, effects = reduce(state, i.SubmitFriendForm())

    assert effects == []
    assert state.workflow == FriendFormWorkflow(
        name="   ", error=ErrorInfo.validation("Name is required")
    )


def test_edit_friend_replaces_list_entry() -> None:
    sam = Friend(id=1, name="Sam")
    state, _ = reduce(_loaded(), i.OpenFriendForm(sam))
    state, _ = reduce(state, i.FriendNicknameChanged("Sammy"))
    state, effects = reduce(state, i.SubmitFriendForm())
    call = _call(effects)
    assert call.args == (1, "Sam", "Sammy")

    updated = Friend(id=1, name="Sam", nickname="Sammy")
    state, _ = _complete(state, call, ServiceResult.success(updated))

    assert state.friend_choices() == (updated,)
    assert state.notification is not None
    assert state.notification.message == 'Updated friend "Sam"'


def test_create_tag_appends_to_list() -> None:
    state, _ = reduce(_loaded(), i.OpenTagForm())
    state, _ = reduce(state, i.TagNameChanged(" Comfort "))
    state, _ = reduce(state, i.TagColorChanged(""))
    state, effects = reduce(state, i.SubmitTagForm())
    call = _call(effects)
    assert (call.operation, call.args) == ("add_tag", ("Comfort", None, None))

    state, _ = _complete(state, call, ServiceResult.success(Tag(id=2, name="Comfort")))

    assert [tag.name for tag in state.tag_choices()] == ["Noir", "Comfort"]


def test_deleting_tag_drops_it_from_filters() -> None:
    noir = Tag(id=1, name="Noir")
    state, _ = reduce(_loaded(), i.ToggleTagFilter(1))
    state, _ = reduce(state, i.OpenConfirmDelete(DeleteTag(noir)))
    state, effects = reduce(state, i.ConfirmDelete())
    call = _call(effects)
    assert (call.operation, call.args) == ("delete_tag", (1,))

    state, effects = _complete(state, call, ServiceResult.success(None))

    assert state.tag_choices() == ()
    assert state.filters.tag_ids == frozenset()
    assert state.notification is not None
    assert state.notification.message == "Deleted tag Noir"


# Entry actions ---------------------------------------------------------------


def test_mark_completed_is_pessimistic() -> None:
    state, effects = reduce(_loaded(), i.MarkCompleted(1))
    call = _call(effects)
    assert call.args == (1, Completed())
    assert state.find_entry(1) == MOVIE

    completed = MOVIE.model_copy(update={"watch_status": Completed()})
    state, effects = _complete(state, call, ServiceResult.success(completed))

    assert state.find_entry(1) == completed
    assert state.notification is not None
    assert state.notification.message == 'Marked "Heat" as completed'


def test_series_completion_rejected_until_all_episodes_watched() -> None:
    state, effects = reduce(_loaded(), i.MarkCompleted(2))

    assert effects == [StartTimer(NOTIFICATION_TIMER, 4.0, i.ClearNotification(1))]
    assert state.notification is not None
    assert not state.notification.is_success
    assert "0 of 2 episodes watched" in state.notification.message

    records = tuple(
        EpisodeProgress(entry_id=2, season_number=1, episode_number=n, is_watched=True)
        for n in (1, 2)
    )
    state = replace(_loaded(), episodes=AppState().episodes.with_value(records, key=2))
    _, effects = reduce(state, i.MarkCompleted(2))
    assert _call(effects).operation == "set_watch_status"


def test_failed_status_update_keeps_entry() -> None:
    state, effects = reduce(_loaded(), i.MarkCompleted(1))

    state, _ = _complete(state, _call(effects), ServiceResult.failure(ErrorInfo("boom")))

    assert state.find_entry(1) == MOVIE
    assert state.notification is not None
    assert state.notification.message == "boom"


def test_abandon_workflow_submits_status() -> None:
    state, _ = reduce(_loaded(), i.OpenAbandon(2))
    state, _ = reduce(state, i.AbandonReasonChanged("too dark"))
    state, _ = reduce(state, i.AbandonSeasonChanged(1))
    state, _ = reduce(state, i.AbandonEpisodeChanged(1))
    state, effects = reduce(state, i.SubmitAbandon())

    call = _call(effects)
    status = call.args[1]
    assert (status.reason, status.stopped_season, status.stopped_episode) == ("too dark", 1, 1)

    abandoned = SERIES.model_copy(update={"watch_status": status})
    state, _ = _complete(state, call, ServiceResult.success(abandoned))
    assert state.workflow == NoWorkflow()
    assert state.find_entry(2) == abandoned


def test_abandon_invalid_state_is_rejected() -> None:
    completed = MOVIE.model_copy(update={"watch_status": Completed()})
    state = replace(_loaded(), library=AppState().library.with_value((completed,)))
    state, _ = reduce(state, i.OpenAbandon(1))

    state, effects = reduce(state, i.SubmitAbandon())

    assert effects == []
    assert isinstance(state.workflow, AbandonWorkflow)
    assert state.workflow.error is not None
    assert state.workflow.error.kind is ErrorKind.VALIDATION


def test_rating_outside_range_fails_without_call() -> None:
    state, effects = reduce(_loaded(), i.SetRating(1, 7))

    assert not any(isinstance(effect, CallService) for effect in effects)
    assert state.notification is not None and not state.notification.is_success


def test_toggle_entry_tag_sends_new_selection() -> None:
    _, effects = reduce(_loaded(), i.ToggleEntryTag(1, 1))

    call = _call(effects)
    assert call.operation == "update_entry"
    assert call.args[1].tags == frozenset({1})


def test_episode_actions_reject_movies() -> None:
    state, effects = reduce(_loaded(), i.ToggleEpisode(1, 1, 1, True))

    assert not any(isinstance(effect, CallService) for effect in effects)
    assert state.notification is not None
    assert "movie" in state.notification.message


def test_episode_update_installs_records_for_entry() -> None:
    state, effects = reduce(_loaded(), i.MarkSeasonWatched(2, 1))
    records = (EpisodeProgress(entry_id=2, season_number=1, episode_number=1, is_watched=True),)

    state, _ = _complete(state, _call(effects), ServiceResult.success(list(records)))

    assert state.episodes_for(2) == records
    assert state.episodes_for(1) == ()


def test_deleting_viewed_entry_returns_to_library() -> None:
    state = _loaded(page=EntryDetailPage(1))
    state = replace(state, detail=state.detail.with_value(MOVIE, key=1))
    state, _ = reduce(state, i.OpenConfirmDelete(DeleteEntry(1, "Heat")))
    state, effects = reduce(state, i.ConfirmDelete())

    state, effects = _complete(state, _call(effects), ServiceResult.success(None))

    assert state.page == LibraryPage()
    assert state.detail.is_not_requested
    assert state.library.is_loading
    assert _call(effects).operation == "fetch_library"
    assert state.notification is not None
    assert state.notification.message == 'Deleted "Heat"'


def test_delete_supersedes_library_fetch_in_flight() -> None:
    state = _loaded()
    state, effects = reduce(state, i.LoadLibrary())
    before = _call(effects)
    state, _ = reduce(state, i.OpenConfirmDelete(DeleteEntry(1, "Heat")))
    state, effects = reduce(state, i.ConfirmDelete())

    state, effects = _complete(state, _call(effects), ServiceResult.success(None))
    refresh = _call(effects)
    assert refresh.operation == "fetch_library"

    state, _ = _complete(state, before, ServiceResult.success((MOVIE, SERIES)))
    assert state.library.is_loading

    state, _ = _complete(state, refresh, ServiceResult.success((SERIES,)))
    assert [entry.id for entry in state.library.value_or_none()] == [2]


def test_quick_add_supersedes_library_fetch_in_flight() -> None:
    state, call = _submitted_quick_add()
    state, effects = reduce(state, i.LoadLibrary())
    before = _call(effects)
    added = LibraryEntry(id=3, media=Movie(title="The Matrix", catalog_id=603), date_added=ADDED)

    state, effects = _complete(state, call, ServiceResult.success(added))
    refresh = _call(effects)

    state, _ = _complete(state, before, ServiceResult.success((MOVIE,)))
    assert state.library.is_loading
    state, _ = _complete(state, refresh, ServiceResult.success((MOVIE, added)))
    assert [entry.id for entry in state.library.value_or_none()] == [1, 3]


# Filters and notifications ---------------------------------------------------


def test_clear_filters_restores_configured_defaults() -> None:
    config = ReeltrackConfig.model_validate({"library": {"default_sort": "title"}})
    reducer = Reducer(config)
    state = AppState.initial(config)
    state, _ = reducer.reduce(state, i.SetSortKey(SortKey.RATING))
    state, _ = reducer.reduce(state, i.SetLibrarySearch("heat"))

    state, _ = reducer.reduce(state, i.ClearFilters())

    assert state.filters.sort_key is SortKey.TITLE
    assert state.filters.search_text == ""


def test_stale_clear_notification_is_ignored() -> None:
    state, _ = reduce(AppState(), i.ShowNotification("first"))
    state, _ = reduce(state, i.ShowNotification("second"))

    kept, _ = reduce(state, i.ClearNotification(1))
    cleared, _ = reduce(state, i.ClearNotification(2))

    assert kept.notification is not None and kept.notification.message == "second"
    assert cleared.notification is None


def test_zero_timeout_disables_auto_clear() -> None:
    config = ReeltrackConfig.model_validate({"notifications": {"timeout_seconds": 0}})

    state, effects = Reducer(config).reduce(AppState(), i.ShowNotification("hi"))

    assert effects == []
    assert state.notification is not None
