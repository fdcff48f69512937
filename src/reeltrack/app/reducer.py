"""Pure reducer mapping ``(AppState, Intent)`` to ``(AppState, effects)``."""

from __future__ import annotations

import logging
from dataclasses import replace
from functools import partial
from typing import Any, Callable, Optional

from reeltrack.config import ReeltrackConfig
from reeltrack.domain import EntryId, EntryUpdate, LibraryEntry
from reeltrack.errors import ErrorInfo, InvalidTransitionError
from reeltrack.progress import WatchAction, transition
from reeltrack.query import SortKey
from reeltrack.workflow import (
    AbandonWorkflow,
    ConfirmDeleteWorkflow,
    DeleteEntry,
    DeleteFriend,
    DeleteTag,
    FriendFormWorkflow,
    NoWorkflow,
    QuickAddWorkflow,
    SearchWorkflow,
    TagFormWorkflow,
    begin_submit,
    close_workflow,
    open_workflow,
    optional_text,
    reject,
    submit_failed,
    toggle_member,
    validate_name,
)

from . import intents as i
from .effects import (
    NOTIFICATION_TIMER,
    SEARCH_TIMER,
    CallService,
    CancelTimer,
    Effect,
    ServiceResult,
    StartTimer,
)
from .state import (
    AppState,
    EntryDetailPage,
    FriendsPage,
    HomePage,
    LibraryPage,
    Notification,
    TagsPage,
    default_filters,
)

LOGGER = logging.getLogger(__name__)

Transition = tuple[AppState, list[Effect]]
Handler = Callable[[AppState, Any], Transition]

_WATCH_MESSAGES = {
    WatchAction.MARK_COMPLETED: 'Marked "{title}" as completed',
    WatchAction.MARK_UNWATCHED: 'Marked "{title}" as unwatched',
    WatchAction.RESUME: 'Resumed "{title}"',
}


def _unchanged(state: AppState) -> Transition:
    return state, []


class Reducer:
    """Dispatch table from intent type to handler.

    Handlers never mutate their input: every transition returns a new
    :class:`AppState` plus the effects the runtime must execute.
    """

    def __init__(self, config: Optional[ReeltrackConfig] = None) -> None:
        self._config = config or ReeltrackConfig()
        self._handlers: dict[type, Handler] = {
            i.Init: self._init,
            i.Navigate: self._navigate,
            i.CheckHealth: lambda state, _: self._request_health(state),
            i.HealthLoaded: partial(self._resolve, "health"),
            i.LoadLibrary: lambda state, _: self._request_library(state),
            i.LibraryLoaded: partial(self._resolve, "library"),
            i.LoadFriends: lambda state, _: self._request_friends(state),
            i.FriendsLoaded: partial(self._resolve, "friends"),
            i.LoadTags: lambda state, _: self._request_tags(state),
            i.TagsLoaded: partial(self._resolve, "tags"),
            i.LoadEntryDetail: lambda state, intent: self._request_detail(state, intent.entry_id),
            i.EntryDetailLoaded: self._detail_loaded,
            i.LoadEpisodes: lambda state, intent: self._request_episodes(state, intent.entry_id),
            i.EpisodesLoaded: partial(self._resolve, "episodes"),
            i.OpenSearch: self._open_search,
            i.SearchQueryChanged: self._search_query_changed,
            i.SearchDebounced: self._search_debounced,
            i.SearchLoaded: self._search_loaded,
            i.OpenQuickAdd: self._open_quick_add,
            i.QuickAddNoteChanged: self._quick_add_note,
            i.ToggleQuickAddTag: self._quick_add_tag,
            i.ToggleQuickAddFriend: self._quick_add_friend,
            i.SubmitQuickAdd: self._submit_quick_add,
            i.QuickAddSaved: self._quick_add_saved,
            i.OpenFriendForm: self._open_friend_form,
            i.FriendNameChanged: self._friend_name,
            i.FriendNicknameChanged: self._friend_nickname,
            i.SubmitFriendForm: self._submit_friend_form,
            i.FriendSaved: self._friend_saved,
            i.OpenTagForm: self._open_tag_form,
            i.TagNameChanged: self._tag_name,
            i.TagColorChanged: self._tag_color,
            i.TagDescriptionChanged: self._tag_description,
            i.SubmitTagForm: self._submit_tag_form,
            i.TagSaved: self._tag_saved,
            i.OpenAbandon: self._open_abandon,
            i.AbandonReasonChanged: self._abandon_reason,
            i.AbandonSeasonChanged: self._abandon_season,
            i.AbandonEpisodeChanged: self._abandon_episode,
            i.SubmitAbandon: self._submit_abandon,
            i.AbandonSaved: self._abandon_saved,
            i.OpenConfirmDelete: self._open_confirm_delete,
            i.ConfirmDelete: self._confirm_delete,
            i.DeleteCompleted: self._delete_completed,
            i.CloseWorkflow: self._close_workflow,
            i.MarkCompleted: partial(self._watch_action, WatchAction.MARK_COMPLETED),
            i.MarkUnwatched: partial(self._watch_action, WatchAction.MARK_UNWATCHED),
            i.ResumeEntry: partial(self._watch_action, WatchAction.RESUME),
            i.ToggleEntryTag: self._toggle_entry_tag,
            i.ToggleEntryFriend: self._toggle_entry_friend,
            i.ToggleFavorite: self._toggle_favorite,
            i.SetRating: self._set_rating,
            i.SaveNotes: self._save_notes,
            i.EntryUpdated: self._entry_updated,
            i.ToggleEpisode: self._toggle_episode,
            i.MarkSeasonWatched: self._mark_season,
            i.MarkEpisodesUpTo: self._mark_episodes_up_to,
            i.EpisodesUpdated: self._episodes_updated,
            i.SetLibrarySearch: self._set_library_search,
            i.SetStatusFilter: self._set_status_filter,
            i.ToggleTagFilter: self._toggle_tag_filter,
            i.SetMinRating: self._set_min_rating,
            i.SetSortKey: self._set_sort_key,
            i.ToggleSortDirection: self._toggle_sort_direction,
            i.ClearFilters: self._clear_filters,
            i.ShowNotification: self._show_notification,
            i.ClearNotification: self._clear_notification,
        }

    @property
    def config(self) -> ReeltrackConfig:
        return self._config

    @property
    def handled_types(self) -> frozenset[type]:
        return frozenset(self._handlers)

    def reduce(self, state: AppState, intent: i.Intent) -> Transition:
        """Apply ``intent`` to ``state``.

        Args:
            state: Current snapshot.
            intent: Intent to process.

        Returns:
            Transition: The next snapshot and the effects to execute.

        Raises:
            TypeError: If ``intent`` is not part of the closed intent set.
        """
        handler = self._handlers.get(type(intent))
        if handler is None:
            raise TypeError(f"Unsupported intent: {type(intent).__name__}")
        return handler(state, intent)

    # Resource requests ------------------------------------------------------

    def _request(
        self,
        state: AppState,
        slot: str,
        operation: str,
        result_type: type,
        args: tuple[Any, ...] = (),
        key: Any = None,
        force: bool = False,
    ) -> Transition:
        resource, seq = getattr(state, slot).request(key, force=force)
        if seq is None:
            LOGGER.debug("Skipping duplicate %s request for key %r", slot, key)
            return _unchanged(state)
        effect = CallService(operation, args, partial(result_type, seq))
        return replace(state, **{slot: resource}), [effect]

    def _request_health(self, state: AppState) -> Transition:
        return self._request(state, "health", "health", i.HealthLoaded)

    def _request_library(self, state: AppState) -> Transition:
        return self._request(state, "library", "fetch_library", i.LibraryLoaded)

    def _refresh_library(self, state: AppState) -> Transition:
        """Re-request the library after a mutation, superseding any fetch in flight."""
        return self._request(state, "library", "fetch_library", i.LibraryLoaded, force=True)

    def _request_friends(self, state: AppState) -> Transition:
        return self._request(state, "friends", "fetch_friends", i.FriendsLoaded)

    def _request_tags(self, state: AppState) -> Transition:
        return self._request(state, "tags", "fetch_tags", i.TagsLoaded)

    def _request_detail(self, state: AppState, entry_id: EntryId) -> Transition:
        return self._request(
            state, "detail", "fetch_entry_detail", i.EntryDetailLoaded, (entry_id,), entry_id
        )

    def _request_episodes(self, state: AppState, entry_id: EntryId) -> Transition:
        return self._request(
            state, "episodes", "fetch_episode_progress", i.EpisodesLoaded, (entry_id,), entry_id
        )

    def _resolve(self, slot: str, state: AppState, intent: Any) -> Transition:
        resource = getattr(state, slot)
        if not resource.accepts(intent.seq):
            LOGGER.debug(
                "Discarding stale %s response (seq %s, latest %s)",
                slot,
                intent.seq,
                resource.latest_seq,
            )
            return _unchanged(state)
        result: ServiceResult[Any] = intent.result
        if result.ok:
            value = result.value
            if isinstance(value, list):
                value = tuple(value)
            resource = resource.resolve_success(intent.seq, value)
        else:
            assert result.error is not None
            resource = resource.resolve_failure(intent.seq, result.error)
        return replace(state, **{slot: resource}), []

    def _chain(self, state: AppState, *steps: Callable[[AppState], Transition]) -> Transition:
        effects: list[Effect] = []
        for step in steps:
            state, produced = step(state)
            effects.extend(produced)
        return state, effects

    # Startup & navigation ---------------------------------------------------

    def _init(self, state: AppState, _: i.Init) -> Transition:
        return self._chain(
            state,
            self._request_health,
            self._request_friends,
            self._request_tags,
            self._request_library,
        )

    def _navigate(self, state: AppState, intent: i.Navigate) -> Transition:
        state = replace(state, page=intent.page)
        page = intent.page
        if isinstance(page, EntryDetailPage):
            return self._request_detail(state, page.entry_id)
        if isinstance(page, (HomePage, LibraryPage)) and state.library.is_not_requested:
            return self._request_library(state)
        if isinstance(page, FriendsPage) and state.friends.is_not_requested:
            return self._request_friends(state)
        if isinstance(page, TagsPage) and state.tags.is_not_requested:
            return self._request_tags(state)
        return _unchanged(state)

    def _detail_loaded(self, state: AppState, intent: i.EntryDetailLoaded) -> Transition:
        accepted = state.detail.accepts(intent.seq)
        state, _ = self._resolve("detail", state, intent)
        entry = state.detail.value_or_none()
        if not accepted or entry is None:
            return _unchanged(state)
        if entry.is_series:
            return self._request_episodes(state, entry.id)
        return replace(state, episodes=state.episodes.reset()), []

    # Notifications ----------------------------------------------------------

    def _notify(self, state: AppState, message: str, *, success: bool = True) -> Transition:
        seq = state.notification_seq + 1
        notification = Notification(id=seq, message=message, is_success=success)
        state = replace(state, notification=notification, notification_seq=seq)
        timeout = self._config.notifications.timeout_seconds
        if timeout <= 0:
            return state, []
        return state, [StartTimer(NOTIFICATION_TIMER, timeout, i.ClearNotification(seq))]

    def _show_notification(self, state: AppState, intent: i.ShowNotification) -> Transition:
        return self._notify(state, intent.message, success=intent.is_success)

    def _clear_notification(self, state: AppState, intent: i.ClearNotification) -> Transition:
        current = state.notification
        if current is None or current.id != intent.notification_id:
            return _unchanged(state)
        return replace(state, notification=None), []

    def _fail(self, state: AppState, error: ErrorInfo | str) -> Transition:
        message = error if isinstance(error, str) else error.message
        return self._notify(state, message, success=False)

    # Search -----------------------------------------------------------------

    def _open_search(self, state: AppState, _: i.OpenSearch) -> Transition:
        if isinstance(state.workflow, SearchWorkflow):
            return _unchanged(state)
        return replace(state, workflow=open_workflow(state.workflow, SearchWorkflow())), []

    def _search_query_changed(self, state: AppState, intent: i.SearchQueryChanged) -> Transition:
        workflow = state.workflow
        if not isinstance(workflow, SearchWorkflow):
            workflow = open_workflow(workflow, SearchWorkflow())
            if not isinstance(workflow, SearchWorkflow):
                return _unchanged(state)
        token = workflow.debounce_token + 1
        state = replace(state, workflow=SearchWorkflow(query=intent.query, debounce_token=token))
        if len(intent.query.strip()) < self._config.search.min_query_length:
            return replace(state, search_results=state.search_results.reset()), [
                CancelTimer(SEARCH_TIMER)
            ]
        delay = self._config.search.debounce_seconds
        return state, [StartTimer(SEARCH_TIMER, delay, i.SearchDebounced(token))]

    def _search_debounced(self, state: AppState, intent: i.SearchDebounced) -> Transition:
        workflow = state.workflow
        if not isinstance(workflow, SearchWorkflow) or workflow.debounce_token != intent.token:
            LOGGER.debug("Ignoring superseded search timer %s", intent.token)
            return _unchanged(state)
        query = workflow.query.strip()
        if len(query) < self._config.search.min_query_length:
            return _unchanged(state)
        return self._request(
            state, "search_results", "search_titles", i.SearchLoaded, (query,), query
        )

    def _search_loaded(self, state: AppState, intent: i.SearchLoaded) -> Transition:
        result = intent.result
        if result.ok and result.value is not None:
            limited = tuple(result.value)[: self._config.search.max_results]
            intent = i.SearchLoaded(intent.seq, ServiceResult.success(limited))
        return self._resolve("search_results", state, intent)

    # Quick add --------------------------------------------------------------

    def _open_quick_add(self, state: AppState, intent: i.OpenQuickAdd) -> Transition:
        workflow = open_workflow(state.workflow, QuickAddWorkflow(selected_item=intent.item))
        return replace(state, workflow=workflow), []

    def _update_quick_add(self, state: AppState, **changes: Any) -> Transition:
        workflow = state.workflow
        if not isinstance(workflow, QuickAddWorkflow) or workflow.submitting:
            return _unchanged(state)
        return replace(state, workflow=replace(workflow, **changes)), []

    def _quick_add_note(self, state: AppState, intent: i.QuickAddNoteChanged) -> Transition:
        return self._update_quick_add(state, note=intent.note)

    def _quick_add_tag(self, state: AppState, intent: i.ToggleQuickAddTag) -> Transition:
        workflow = state.workflow
        if not isinstance(workflow, QuickAddWorkflow):
            return _unchanged(state)
        selected = toggle_member(workflow.selected_tags, intent.tag_id)
        return self._update_quick_add(state, selected_tags=selected)

    def _quick_add_friend(self, state: AppState, intent: i.ToggleQuickAddFriend) -> Transition:
        workflow = state.workflow
        if not isinstance(workflow, QuickAddWorkflow):
            return _unchanged(state)
        selected = toggle_member(workflow.selected_friends, intent.friend_id)
        return self._update_quick_add(state, selected_friends=selected)

    def _submit_quick_add(self, state: AppState, _: i.SubmitQuickAdd) -> Transition:
        workflow = state.workflow
        if not isinstance(workflow, QuickAddWorkflow) or workflow.submitting:
            return _unchanged(state)
        effect = CallService(
            "add_entry",
            (
                workflow.selected_item,
                optional_text(workflow.note),
                workflow.selected_tags,
                workflow.selected_friends,
            ),
            i.QuickAddSaved,
        )
        return replace(state, workflow=begin_submit(workflow)), [effect]

    def _quick_add_saved(self, state: AppState, intent: i.QuickAddSaved) -> Transition:
        workflow = state.workflow
        if not isinstance(workflow, QuickAddWorkflow) or not workflow.submitting:
            return _unchanged(state)
        if not intent.result.ok:
            assert intent.result.error is not None
            return replace(state, workflow=submit_failed(workflow, intent.result.error)), []
        title = intent.result.value.title if intent.result.value else workflow.selected_item.title
        state = replace(
            state,
            workflow=NoWorkflow(),
            search_results=state.search_results.reset(),
        )
        return self._chain(
            state,
            self._refresh_library,
            lambda current: self._notify(current, f'Added "{title}" to your library!'),
        )

    # Friend form ------------------------------------------------------------

    def _open_friend_form(self, state: AppState, intent: i.OpenFriendForm) -> Transition:
        workflow = open_workflow(state.workflow, FriendFormWorkflow.for_friend(intent.friend))
        return replace(state, workflow=workflow), []

    def _update_friend_form(self, state: AppState, **changes: Any) -> Transition:
        workflow = state.workflow
        if not isinstance(workflow, FriendFormWorkflow) or workflow.submitting:
            return _unchanged(state)
        return replace(state, workflow=replace(workflow, **changes)), []

    def _friend_name(self, state: AppState, intent: i.FriendNameChanged) -> Transition:
        return self._update_friend_form(state, name=intent.name)

    def _friend_nickname(self, state: AppState, intent: i.FriendNicknameChanged) -> Transition:
        return self._update_friend_form(state, nickname=intent.nickname)

    def _submit_friend_form(self, state: AppState, _: i.SubmitFriendForm) -> Transition:
        workflow = state.workflow
        if not isinstance(workflow, FriendFormWorkflow) or workflow.submitting:
            return _unchanged(state)
        problem = validate_name(workflow.name, label="Name")
        if problem is not None:
            return replace(state, workflow=reject(workflow, problem)), []
        name = workflow.name.strip()
        nickname = optional_text(workflow.nickname)
        if workflow.editing is None:
            effect = CallService("add_friend", (name, nickname), i.FriendSaved)
        else:
            effect = CallService(
                "edit_friend", (workflow.editing.id, name, nickname), i.FriendSaved
            )
        return replace(state, workflow=begin_submit(workflow)), [effect]

    def _friend_saved(self, state: AppState, intent: i.FriendSaved) -> Transition:
        workflow = state.workflow
        if not isinstance(workflow, FriendFormWorkflow) or not workflow.submitting:
            return _unchanged(state)
        if not intent.result.ok:
            assert intent.result.error is not None
            return replace(state, workflow=submit_failed(workflow, intent.result.error)), []
        friend = intent.result.value
        assert friend is not None
        friends = state.friends.get_or_default(())
        if workflow.editing is None:
            updated = (*friends, friend)
            message = f'Added friend "{friend.name}"'
        else:
            updated = tuple(friend if known.id == friend.id else known for known in friends)
            message = f'Updated friend "{friend.name}"'
        state = replace(state, workflow=NoWorkflow(), friends=state.friends.with_value(updated))
        return self._notify(state, message)

    # Tag form ---------------------------------------------------------------

    def _open_tag_form(self, state: AppState, intent: i.OpenTagForm) -> Transition:
        workflow = open_workflow(state.workflow, TagFormWorkflow.for_tag(intent.tag))
        return replace(state, workflow=workflow), []

    def _update_tag_form(self, state: AppState, **changes: Any) -> Transition:
        workflow = state.workflow
        if not isinstance(workflow, TagFormWorkflow) or workflow.submitting:
            return _unchanged(state)
        return replace(state, workflow=replace(workflow, **changes)), []

    def _tag_name(self, state: AppState, intent: i.TagNameChanged) -> Transition:
        return self._update_tag_form(state, name=intent.name)

    def _tag_color(self, state: AppState, intent: i.TagColorChanged) -> Transition:
        return self._update_tag_form(state, color=intent.color)

    def _tag_description(self, state: AppState, intent: i.TagDescriptionChanged) -> Transition:
        return self._update_tag_form(state, description=intent.description)

    def _submit_tag_form(self, state: AppState, _: i.SubmitTagForm) -> Transition:
        workflow = state.workflow
        if not isinstance(workflow, TagFormWorkflow) or workflow.submitting:
            return _unchanged(state)
        problem = validate_name(workflow.name, label="Tag name")
        if problem is not None:
            return replace(state, workflow=reject(workflow, problem)), []
        fields = (
            workflow.name.strip(),
            optional_text(workflow.color),
            optional_text(workflow.description),
        )
        if workflow.editing is None:
            effect = CallService("add_tag", fields, i.TagSaved)
        else:
            effect = CallService("edit_tag", (workflow.editing.id, *fields), i.TagSaved)
        return replace(state, workflow=begin_submit(workflow)), [effect]

    def _tag_saved(self, state: AppState, intent: i.TagSaved) -> Transition:
        workflow = state.workflow
        if not isinstance(workflow, TagFormWorkflow) or not workflow.submitting:
            return _unchanged(state)
        if not intent.result.ok:
            assert intent.result.error is not None
            return replace(state, workflow=submit_failed(workflow, intent.result.error)), []
        tag = intent.result.value
        assert tag is not None
        tags = state.tags.get_or_default(())
        if workflow.editing is None:
            updated = (*tags, tag)
            message = f'Created tag "{tag.name}"'
        else:
            updated = tuple(tag if known.id == tag.id else known for known in tags)
            message = f'Updated tag "{tag.name}"'
        state = replace(state, workflow=NoWorkflow(), tags=state.tags.with_value(updated))
        return self._notify(state, message)

    # Abandon ----------------------------------------------------------------

    def _open_abandon(self, state: AppState, intent: i.OpenAbandon) -> Transition:
        workflow = open_workflow(state.workflow, AbandonWorkflow(entry_id=intent.entry_id))
        return replace(state, workflow=workflow), []

    def _update_abandon(self, state: AppState, **changes: Any) -> Transition:
        workflow = state.workflow
        if not isinstance(workflow, AbandonWorkflow) or workflow.submitting:
            return _unchanged(state)
        return replace(state, workflow=replace(workflow, **changes)), []

    def _abandon_reason(self, state: AppState, intent: i.AbandonReasonChanged) -> Transition:
        return self._update_abandon(state, reason=intent.reason)

    def _abandon_season(self, state: AppState, intent: i.AbandonSeasonChanged) -> Transition:
        return self._update_abandon(state, stop_season=intent.season)

    def _abandon_episode(self, state: AppState, intent: i.AbandonEpisodeChanged) -> Transition:
        return self._update_abandon(state, stop_episode=intent.episode)

    def _submit_abandon(self, state: AppState, _: i.SubmitAbandon) -> Transition:
        workflow = state.workflow
        if not isinstance(workflow, AbandonWorkflow) or workflow.submitting:
            return _unchanged(state)
        entry = state.find_entry(workflow.entry_id)
        if entry is None:
            problem = ErrorInfo.validation(f"Entry {workflow.entry_id} is not loaded")
            return replace(state, workflow=reject(workflow, problem)), []
        try:
            status = transition(
                entry,
                WatchAction.ABANDON,
                state.episodes_for(entry.id),
                reason=workflow.reason,
                season=workflow.stop_season,
                episode=workflow.stop_episode,
            )
        except InvalidTransitionError as exc:
            LOGGER.debug("Rejected abandon for entry %s: %s", entry.id, exc)
            return replace(state, workflow=reject(workflow, ErrorInfo.validation(str(exc)))), []
        effect = CallService("set_watch_status", (entry.id, status), i.AbandonSaved)
        return replace(state, workflow=begin_submit(workflow)), [effect]

    def _abandon_saved(self, state: AppState, intent: i.AbandonSaved) -> Transition:
        workflow = state.workflow
        if not isinstance(workflow, AbandonWorkflow) or not workflow.submitting:
            return _unchanged(state)
        if not intent.result.ok:
            assert intent.result.error is not None
            return replace(state, workflow=submit_failed(workflow, intent.result.error)), []
        entry = intent.result.value
        assert entry is not None
        state = _store_entry(replace(state, workflow=NoWorkflow()), entry)
        return self._notify(state, f'Abandoned "{entry.title}"')

    # Delete confirmation ----------------------------------------------------

    def _open_confirm_delete(self, state: AppState, intent: i.OpenConfirmDelete) -> Transition:
        workflow = open_workflow(state.workflow, ConfirmDeleteWorkflow(target=intent.target))
        return replace(state, workflow=workflow), []

    def _confirm_delete(self, state: AppState, _: i.ConfirmDelete) -> Transition:
        workflow = state.workflow
        if not isinstance(workflow, ConfirmDeleteWorkflow) or workflow.submitting:
            return _unchanged(state)
        target = workflow.target
        if isinstance(target, DeleteFriend):
            operation, args = "delete_friend", (target.friend.id,)
        elif isinstance(target, DeleteTag):
            operation, args = "delete_tag", (target.tag.id,)
        else:
            operation, args = "delete_entry", (target.entry_id,)
        effect = CallService(operation, args, partial(i.DeleteCompleted, target))
        return replace(state, workflow=begin_submit(workflow)), [effect]

    def _delete_completed(self, state: AppState, intent: i.DeleteCompleted) -> Transition:
        workflow = state.workflow
        if (
            not isinstance(workflow, ConfirmDeleteWorkflow)
            or not workflow.submitting
            or workflow.target != intent.target
        ):
            return _unchanged(state)
        if not intent.result.ok:
            assert intent.result.error is not None
            return replace(state, workflow=submit_failed(workflow, intent.result.error)), []

        target = intent.target
        state = replace(state, workflow=NoWorkflow())
        if isinstance(target, DeleteFriend):
            friend_id = target.friend.id
            state = replace(
                state,
                friends=state.friends.map(
                    lambda friends: tuple(f for f in friends if f.id != friend_id)
                ),
            )
        elif isinstance(target, DeleteTag):
            tag_id = target.tag.id
            state = replace(
                state,
                tags=state.tags.map(lambda tags: tuple(t for t in tags if t.id != tag_id)),
                filters=state.filters.without_tag(tag_id),
            )
        else:
            state = _forget_entry(state, target)
        return self._chain(
            state,
            self._refresh_library,
            lambda current: self._notify(current, f"Deleted {target.label}"),
        )

    def _close_workflow(self, state: AppState, _: i.CloseWorkflow) -> Transition:
        workflow = close_workflow(state.workflow)
        if workflow is state.workflow:
            return _unchanged(state)
        effects: list[Effect] = []
        if isinstance(state.workflow, SearchWorkflow):
            effects.append(CancelTimer(SEARCH_TIMER))
        return replace(state, workflow=workflow), effects

    # Entry actions ----------------------------------------------------------

    def _watch_action(self, action: WatchAction, state: AppState, intent: Any) -> Transition:
        entry = state.find_entry(intent.entry_id)
        if entry is None:
            return self._fail(state, f"Entry {intent.entry_id} is not loaded")
        try:
            status = transition(entry, action, state.episodes_for(entry.id))
        except InvalidTransitionError as exc:
            LOGGER.debug("Rejected %s for entry %s: %s", action.value, entry.id, exc)
            return self._fail(state, str(exc))
        message = _WATCH_MESSAGES[action].format(title=entry.title)
        effect = CallService(
            "set_watch_status",
            (entry.id, status),
            partial(i.EntryUpdated, success_message=message),
        )
        return state, [effect]

    def _update_entry(
        self,
        state: AppState,
        entry_id: EntryId,
        build: Callable[[LibraryEntry], EntryUpdate],
        message: Optional[str] = None,
    ) -> Transition:
        entry = state.find_entry(entry_id)
        if entry is None:
            return self._fail(state, f"Entry {entry_id} is not loaded")
        effect = CallService(
            "update_entry",
            (entry_id, build(entry)),
            partial(i.EntryUpdated, success_message=message),
        )
        return state, [effect]

    def _toggle_entry_tag(self, state: AppState, intent: i.ToggleEntryTag) -> Transition:
        return self._update_entry(
            state,
            intent.entry_id,
            lambda entry: EntryUpdate(tags=toggle_member(entry.tags, intent.tag_id)),
        )

    def _toggle_entry_friend(self, state: AppState, intent: i.ToggleEntryFriend) -> Transition:
        return self._update_entry(
            state,
            intent.entry_id,
            lambda entry: EntryUpdate(friends=toggle_member(entry.friends, intent.friend_id)),
        )

    def _toggle_favorite(self, state: AppState, intent: i.ToggleFavorite) -> Transition:
        return self._update_entry(
            state,
            intent.entry_id,
            lambda entry: EntryUpdate(is_favorite=not entry.is_favorite),
        )

    def _set_rating(self, state: AppState, intent: i.SetRating) -> Transition:
        rating = intent.rating
        if rating is not None and not 1 <= rating <= 5:
            return self._fail(state, f"Rating must be between 1 and 5, got {rating}")
        return self._update_entry(
            state,
            intent.entry_id,
            lambda _: EntryUpdate(personal_rating=rating),
            "Rating cleared" if rating is None else f"Rated {rating}/5",
        )

    def _save_notes(self, state: AppState, intent: i.SaveNotes) -> Transition:
        return self._update_entry(
            state,
            intent.entry_id,
            lambda _: EntryUpdate(notes=optional_text(intent.notes)),
            "Notes saved",
        )

    def _entry_updated(self, state: AppState, intent: i.EntryUpdated) -> Transition:
        if not intent.result.ok:
            assert intent.result.error is not None
            return self._fail(state, intent.result.error)
        entry = intent.result.value
        assert entry is not None
        state = _store_entry(state, entry)
        if intent.success_message:
            return self._notify(state, intent.success_message)
        return _unchanged(state)

    # Episode actions --------------------------------------------------------

    def _episode_call(
        self, state: AppState, entry_id: EntryId, operation: str, args: tuple[Any, ...]
    ) -> Transition:
        entry = state.find_entry(entry_id)
        if entry is not None and not entry.is_series:
            return self._fail(state, f'"{entry.title}" is a movie and has no episodes')
        effect = CallService(
            operation, (entry_id, *args), partial(i.EpisodesUpdated, entry_id)
        )
        return state, [effect]

    def _toggle_episode(self, state: AppState, intent: i.ToggleEpisode) -> Transition:
        return self._episode_call(
            state,
            intent.entry_id,
            "toggle_episode",
            (intent.season, intent.episode, intent.watched),
        )

    def _mark_season(self, state: AppState, intent: i.MarkSeasonWatched) -> Transition:
        return self._episode_call(state, intent.entry_id, "mark_season", (intent.season,))

    def _mark_episodes_up_to(self, state: AppState, intent: i.MarkEpisodesUpTo) -> Transition:
        return self._episode_call(
            state,
            intent.entry_id,
            "mark_episodes_up_to",
            (intent.season, intent.episode, intent.watched),
        )

    def _episodes_updated(self, state: AppState, intent: i.EpisodesUpdated) -> Transition:
        if not intent.result.ok:
            assert intent.result.error is not None
            return self._fail(state, intent.result.error)
        records = tuple(intent.result.value or ())
        episodes = state.episodes.with_value(records, key=intent.entry_id)
        return replace(state, episodes=episodes), []

    # Filters ----------------------------------------------------------------

    def _set_library_search(self, state: AppState, intent: i.SetLibrarySearch) -> Transition:
        return replace(state, filters=state.filters.with_search_text(intent.text)), []

    def _set_status_filter(self, state: AppState, intent: i.SetStatusFilter) -> Transition:
        return replace(state, filters=state.filters.with_status(intent.status)), []

    def _toggle_tag_filter(self, state: AppState, intent: i.ToggleTagFilter) -> Transition:
        return replace(state, filters=state.filters.toggle_tag(intent.tag_id)), []

    def _set_min_rating(self, state: AppState, intent: i.SetMinRating) -> Transition:
        try:
            filters = state.filters.with_min_rating(intent.rating)
        except ValueError as exc:
            return self._fail(state, str(exc))
        return replace(state, filters=filters), []

    def _set_sort_key(self, state: AppState, intent: i.SetSortKey) -> Transition:
        return replace(state, filters=state.filters.with_sort_key(SortKey(intent.key))), []

    def _toggle_sort_direction(self, state: AppState, _: i.ToggleSortDirection) -> Transition:
        return replace(state, filters=state.filters.toggle_direction()), []

    def _clear_filters(self, state: AppState, _: i.ClearFilters) -> Transition:
        return replace(state, filters=default_filters(self._config.library)), []


def _store_entry(state: AppState, entry: LibraryEntry) -> AppState:
    """Install a server-confirmed ``entry`` into the library and detail slots."""
    library = state.library.map(
        lambda entries: tuple(entry if known.id == entry.id else known for known in entries)
    )
    detail = state.detail
    current = detail.value_or_none()
    if current is not None and current.id == entry.id:
        detail = detail.with_value(entry, key=entry.id)
    return replace(state, library=library, detail=detail)


def _forget_entry(state: AppState, target: DeleteEntry) -> AppState:
    entry_id = target.entry_id
    state = replace(
        state,
        library=state.library.map(
            lambda entries: tuple(entry for entry in entries if entry.id != entry_id)
        ),
    )
    if state.detail.key == entry_id:
        state = replace(state, detail=state.detail.reset())
    if state.episodes.key == entry_id:
        state = replace(state, episodes=state.episodes.reset())
    if isinstance(state.page, EntryDetailPage) and state.page.entry_id == entry_id:
        state = replace(state, page=LibraryPage())
    return state


def reduce(
    state: AppState,
    intent: i.Intent,
    config: Optional[ReeltrackConfig] = None,
) -> Transition:
    """Functional entry point equivalent to ``Reducer(config).reduce(state, intent)``."""
    return Reducer(config).reduce(state, intent)


__all__ = ["Handler", "Reducer", "Transition", "reduce"]
