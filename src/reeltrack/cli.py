"""Command line interface for Reeltrack."""

from __future__ import annotations

import asyncio
import difflib
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable, Iterator, Optional, Sequence, TypeVar

import click
import yaml
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from reeltrack.app import (
    NOTIFICATION_TIMER,
    AppState,
    EntryDetailPage,
    Store,
)
from reeltrack.app import intents as i
from reeltrack.config import ConfigError, ConfigManager, ReeltrackConfig, resolve_with_precedence
from reeltrack.config.resolver import assign_path
from reeltrack.domain import Friend, LibraryEntry, SearchResult, Series, Tag
from reeltrack.logging_config import configure_logging
from reeltrack.progress import describe_status, season_progress
from reeltrack.query import SortDirection, SortKey, StatusFilter
from reeltrack.remote import RemoteResource
from reeltrack.service import LocalLibraryService, StoreError
from reeltrack.workflow import DeleteEntry, DeleteFriend, DeleteTag

console = Console()

T = TypeVar("T")
Script = Callable[["_Session"], Awaitable[T]]


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


@contextmanager
def _reported_errors(*, json_output: bool, action: str) -> Iterator[None]:
    """Translate exceptions raised inside a command into CLI errors."""
    try:
        yield
    except click.Abort:
        raise
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except StoreError as exc:
        _handle_cli_error(str(exc), code="store_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(
            exc.format_message(), code="cli_error", json_output=json_output, original=exc
        )
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while {action}: {exc}",
            code="internal_error",
            json_output=json_output,
            details={"exception": type(exc).__name__},
            original=exc,
        )


def _emit(message: Any, *, quiet: bool) -> None:
    if not quiet:
        console.print(message)


class _Session:
    """Feed intents to a :class:`Store` and wait for the results."""

    def __init__(self, store: Store) -> None:
        self.store = store

    async def send(self, *intents: i.Intent) -> AppState:
        for intent in intents:
            self.store.dispatch(intent)
        return await self.store.settle(ignore_timers=(NOTIFICATION_TIMER,))

    async def open_entry(self, entry_id: int) -> LibraryEntry:
        state = await self.send(i.Navigate(EntryDetailPage(entry_id)))
        _require_loaded(state.detail, "entry")
        entry = state.detail.value_or_none()
        assert entry is not None
        return entry

    def raise_on_failure(self) -> AppState:
        state = self.store.state
        notification = state.notification
        if notification is not None and not notification.is_success:
            raise click.ClickException(notification.message)
        error = getattr(state.workflow, "error", None)
        if error is not None:
            raise click.ClickException(error.message)
        return state


def _load_config(ctx: click.Context) -> ReeltrackConfig:
    obj = ctx.find_root().obj or {}
    manager = ConfigManager()
    manager.ensure_exists()
    config = manager.load(cli_overrides=obj.get("overrides") or None)
    configure_logging(config.logging, verbose=bool(obj.get("verbose")))
    return config


def _run(config: ReeltrackConfig, script: Script[T]) -> T:
    """Execute ``script`` against a fresh store over the configured library."""
    service = LocalLibraryService(Path(config.library.store_path))

    async def _main() -> T:
        store = Store(service, config=config)
        return await script(_Session(store))

    return asyncio.run(_main())


def _require_loaded(resource: RemoteResource[Any], label: str) -> None:
    if resource.is_failure:
        error = resource.error
        assert error is not None
        hint = f" ({error.retry_hint})" if error.retry_hint else ""
        raise click.ClickException(f"Unable to load {label}: {error.message}{hint}")
    if not resource.is_success:
        raise click.ClickException(f"Unable to load {label}.")


def _parse_overrides(values: Sequence[str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for item in values:
        key, separator, raw = item.partition("=")
        if not separator or not key.strip():
            raise click.BadParameter(f"Expected KEY=VALUE, got {item!r}", param_hint="--set")
        try:
            value = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise click.BadParameter(f"Unable to parse value for {key}: {exc}") from exc
        overrides[key.strip()] = value
    return overrides


def _resolve_names(
    names: Iterable[str],
    known: Sequence[Friend] | Sequence[Tag],
    label: str,
) -> list[int]:
    """Map user-entered names (or numeric ids) to ids."""
    by_name = {item.name.casefold(): item.id for item in known}
    by_id = {item.id for item in known}
    resolved: list[int] = []
    for name in names:
        key = name.strip()
        if key.isdigit() and int(key) in by_id:
            resolved.append(int(key))
        elif key.casefold() in by_name:
            resolved.append(by_name[key.casefold()])
        else:
            raise click.ClickException(f"Unknown {label}: {name}")
    return resolved


def _names_for(ids: Iterable[int], known: Sequence[Friend] | Sequence[Tag]) -> list[str]:
    lookup = {item.id: item.name for item in known}
    return sorted(lookup.get(item_id, f"#{item_id}") for item_id in ids)


def _entry_payload(entry: LibraryEntry, state: AppState) -> dict[str, Any]:
    payload = entry.model_dump(mode="json")
    payload["status_label"] = describe_status(entry.watch_status)
    payload["tag_names"] = _names_for(entry.tags, state.tag_choices())
    payload["friend_names"] = _names_for(entry.friends, state.friend_choices())
    return payload


def _library_table(entries: Sequence[LibraryEntry], state: AppState) -> Table:
    table = Table(title=f"Library ({len(entries)} entries)")
    table.add_column("ID", justify="right")
    table.add_column("Title")
    table.add_column("Year", justify="right")
    table.add_column("Kind")
    table.add_column("Status")
    table.add_column("Rating", justify="right")
    table.add_column("Tags")
    for entry in entries:
        title = f"★ {entry.title}" if entry.is_favorite else entry.title
        table.add_row(
            str(entry.id),
            title,
            str(entry.year or ""),
            entry.media_kind.value,
            describe_status(entry.watch_status),
            str(entry.personal_rating or ""),
            ", ".join(_names_for(entry.tags, state.tag_choices())),
        )
    return table


def _search_table(results: Sequence[SearchResult]) -> Table:
    table = Table(title=f"Search results ({len(results)})")
    table.add_column("Catalog ID", justify="right")
    table.add_column("Kind")
    table.add_column("Title")
    table.add_column("Year", justify="right")
    for result in results:
        table.add_row(
            str(result.catalog_id), result.media_kind.value, result.title, str(result.year or "")
        )
    return table


def _emit_entry(entry: LibraryEntry, state: AppState) -> None:
    year = f" ({entry.year})" if entry.year else ""
    console.print(f"[bold]{entry.title}{year}[/bold] [dim]#{entry.id} {entry.media_kind.value}[/dim]")
    console.print(f"Status: {describe_status(entry.watch_status)}")
    if entry.personal_rating:
        console.print(f"Rating: {entry.personal_rating}/5")
    if entry.is_favorite:
        console.print("Favorite: yes")
    if entry.tags:
        console.print(f"Tags: {', '.join(_names_for(entry.tags, state.tag_choices()))}")
    if entry.friends:
        console.print(f"Friends: {', '.join(_names_for(entry.friends, state.friend_choices()))}")
    if entry.why_added and entry.why_added.context:
        console.print(f"Why added: {entry.why_added.context}")
    if entry.notes:
        console.print(f"Notes: {entry.notes}")

    if isinstance(entry.media, Series):
        table = Table(title="Seasons")
        table.add_column("Season", justify="right")
        table.add_column("Watched", justify="right")
        table.add_column("Episodes", justify="right")
        for season in season_progress(entry.media, state.episodes_for(entry.id)):
            total = f"~{season.total}" if season.estimated else str(season.total)
            marker = " ✓" if season.is_complete else ""
            table.add_row(str(season.season_number), f"{season.watched}{marker}", total)
        console.print(table)

    actions = sorted(action.value.replace("_", " ") for action in state.detail_actions())
    if actions:
        console.print(f"[dim]Available: {', '.join(actions)}[/dim]")


def _emit_notification(state: AppState, *, quiet: bool) -> None:
    if state.notification is not None and state.notification.is_success:
        _emit(f"[green]{state.notification.message}[/green]", quiet=quiet)


# Root group -----------------------------------------------------------------


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="reeltrack")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "--set",
    "overrides",
    multiple=True,
    metavar="KEY=VALUE",
    help="Override a configuration value for this invocation (dotted KEY).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, overrides: tuple[str, ...]) -> None:
    """Reeltrack keeps track of the movies and series you watch."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["overrides"] = _parse_overrides(overrides)


# Library --------------------------------------------------------------------


@cli.command()
@click.option("--search", "search_text", default="", help="Case-insensitive title filter.")
@click.option(
    "--status",
    type=click.Choice([choice.value for choice in StatusFilter]),
    default=StatusFilter.ALL.value,
    show_default=True,
    help="Only show entries with this watch status.",
)
@click.option("--tag", "tag_names", multiple=True, help="Show entries holding any of these tags.")
@click.option("--min-rating", type=click.IntRange(1, 5), help="Minimum personal rating.")
@click.option(
    "--sort",
    "sort_key",
    type=click.Choice([choice.value for choice in SortKey]),
    help="Sort key (defaults to configuration).",
)
@click.option("--asc/--desc", "ascending", default=None, help="Sort direction.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON instead of a table.")
@click.pass_context
def library(
    ctx: click.Context,
    search_text: str,
    status: str,
    tag_names: tuple[str, ...],
    min_rating: Optional[int],
    sort_key: Optional[str],
    ascending: Optional[bool],
    json_output: bool,
) -> None:
    """List library entries with optional filters."""
    with _reported_errors(json_output=json_output, action="listing the library"):
        config = _load_config(ctx)

        async def script(session: _Session) -> tuple[AppState, list[LibraryEntry]]:
            state = await session.send(i.Init())
            _require_loaded(state.library, "library")
            intents: list[i.Intent] = [
                i.SetLibrarySearch(search_text),
                i.SetStatusFilter(StatusFilter(status)),
                i.SetMinRating(min_rating),
            ]
            for tag_id in _resolve_names(tag_names, state.tag_choices(), "tag"):
                intents.append(i.ToggleTagFilter(tag_id))
            if sort_key is not None:
                intents.append(i.SetSortKey(SortKey(sort_key)))
            if ascending is not None:
                wanted = SortDirection.ASCENDING if ascending else SortDirection.DESCENDING
                if state.filters.direction is not wanted:
                    intents.append(i.ToggleSortDirection())
            state = await session.send(*intents)
            return state, state.visible_entries()

        state, entries = _run(config, script)
        if json_output:
            console.print_json(data={"entries": [_entry_payload(e, state) for e in entries]})
            return
        if not entries:
            console.print("[yellow]No entries match the current filters.[/yellow]")
            return
        console.print(_library_table(entries, state))


@cli.command()
@click.argument("entry_id", type=int)
@click.option("--json", "json_output", is_flag=True, help="Emit JSON instead of text.")
@click.pass_context
def show(ctx: click.Context, entry_id: int, json_output: bool) -> None:
    """Show details and episode progress for ENTRY_ID."""
    with _reported_errors(json_output=json_output, action="loading the entry"):
        config = _load_config(ctx)

        async def script(session: _Session) -> AppState:
            await session.send(i.LoadFriends(), i.LoadTags())
            await session.open_entry(entry_id)
            return session.store.state

        state = _run(config, script)
        entry = state.detail.value_or_none()
        assert entry is not None
        if json_output:
            payload = _entry_payload(entry, state)
            payload["episodes"] = [
                record.model_dump(mode="json") for record in state.episodes_for(entry.id)
            ]
            payload["available_actions"] = sorted(a.value for a in state.detail_actions())
            console.print_json(data=payload)
            return
        _emit_entry(entry, state)


@cli.command()
@click.argument("query")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON instead of a table.")
@click.pass_context
def search(ctx: click.Context, query: str, json_output: bool) -> None:
    """Search the title catalog for QUERY."""
    with _reported_errors(json_output=json_output, action="searching"):
        config = _load_config(ctx)
        minimum = config.search.min_query_length
        if len(query.strip()) < minimum:
            raise click.ClickException(f"Search queries need at least {minimum} characters.")

        async def script(session: _Session) -> AppState:
            return await session.send(i.SearchQueryChanged(query))

        state = _run(config, script)
        _require_loaded(state.search_results, "search results")
        results = state.search_results.get_or_default(())
        if json_output:
            console.print_json(data={"results": [r.model_dump(mode="json") for r in results]})
            return
        if not results:
            console.print(f"[yellow]No titles match {query!r}.[/yellow]")
            return
        console.print(_search_table(results))


@cli.command()
@click.argument("query")
@click.option("--id", "catalog_id", type=int, help="Catalog id to pick among the matches.")
@click.option("--note", default="", help="Why you are adding this title.")
@click.option("--tag", "tag_names", multiple=True, help="Tag to attach (name or id).")
@click.option("--friend", "friend_names", multiple=True, help="Friend to attach (name or id).")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def add(
    ctx: click.Context,
    query: str,
    catalog_id: Optional[int],
    note: str,
    tag_names: tuple[str, ...],
    friend_names: tuple[str, ...],
    quiet: bool,
) -> None:
    """Search for QUERY and add the matching title to the library."""
    with _reported_errors(json_output=False, action="adding the title"):
        config = _load_config(ctx)
        quiet = quiet or config.cli.quiet_default

        async def script(session: _Session) -> AppState:
            state = await session.send(i.LoadFriends(), i.LoadTags())
            tag_ids = _resolve_names(tag_names, state.tag_choices(), "tag")
            friend_ids = _resolve_names(friend_names, state.friend_choices(), "friend")

            state = await session.send(i.SearchQueryChanged(query))
            _require_loaded(state.search_results, "search results")
            results = state.search_results.get_or_default(())
            if catalog_id is not None:
                matches = [r for r in results if r.catalog_id == catalog_id]
            else:
                matches = list(results)
            if not matches:
                raise click.ClickException(f"No titles match {query!r}.")
            if len(matches) > 1:
                console.print(_search_table(matches))
                raise click.ClickException("Several titles match; rerun with --id CATALOG_ID.")

            intents: list[i.Intent] = [i.OpenQuickAdd(matches[0]), i.QuickAddNoteChanged(note)]
            intents.extend(i.ToggleQuickAddTag(tag_id) for tag_id in tag_ids)
            intents.extend(i.ToggleQuickAddFriend(friend_id) for friend_id in friend_ids)
            intents.append(i.SubmitQuickAdd())
            await session.send(*intents)
            return session.raise_on_failure()

        state = _run(config, script)
        _emit_notification(state, quiet=quiet)


# Watch status ---------------------------------------------------------------


def _entry_action(
    ctx: click.Context,
    entry_id: int,
    build: Callable[[LibraryEntry], Sequence[i.Intent]],
    *,
    quiet: bool,
) -> AppState:
    config = _load_config(ctx)
    quiet = quiet or config.cli.quiet_default

    async def script(session: _Session) -> AppState:
        entry = await session.open_entry(entry_id)
        await session.send(*build(entry))
        return session.raise_on_failure()

    state = _run(config, script)
    _emit_notification(state, quiet=quiet)
    return state


@cli.command()
@click.argument("entry_id", type=int)
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def watched(ctx: click.Context, entry_id: int, quiet: bool) -> None:
    """Mark ENTRY_ID as completed."""
    with _reported_errors(json_output=False, action="updating the entry"):
        _entry_action(ctx, entry_id, lambda e: [i.MarkCompleted(e.id)], quiet=quiet)


@cli.command()
@click.argument("entry_id", type=int)
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def unwatched(ctx: click.Context, entry_id: int, quiet: bool) -> None:
    """Mark the movie ENTRY_ID as not watched."""
    with _reported_errors(json_output=False, action="updating the entry"):
        _entry_action(ctx, entry_id, lambda e: [i.MarkUnwatched(e.id)], quiet=quiet)


@cli.command()
@click.argument("entry_id", type=int)
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def resume(ctx: click.Context, entry_id: int, quiet: bool) -> None:
    """Resume watching the abandoned ENTRY_ID."""
    with _reported_errors(json_output=False, action="updating the entry"):
        _entry_action(ctx, entry_id, lambda e: [i.ResumeEntry(e.id)], quiet=quiet)


@cli.command()
@click.argument("entry_id", type=int)
@click.option("--reason", default="", help="Why you stopped watching.")
@click.option("--season", type=click.IntRange(min=0), help="Season where you stopped (series).")
@click.option("--episode", type=click.IntRange(min=1), help="Episode where you stopped (series).")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def abandon(
    ctx: click.Context,
    entry_id: int,
    reason: str,
    season: Optional[int],
    episode: Optional[int],
    quiet: bool,
) -> None:
    """Stop watching ENTRY_ID, optionally recording why and where."""
    with _reported_errors(json_output=False, action="abandoning the entry"):
        _entry_action(
            ctx,
            entry_id,
            lambda e: [
                i.OpenAbandon(e.id),
                i.AbandonReasonChanged(reason),
                i.AbandonSeasonChanged(season),
                i.AbandonEpisodeChanged(episode),
                i.SubmitAbandon(),
            ],
            quiet=quiet,
        )


# Personal fields ------------------------------------------------------------


@cli.command()
@click.argument("entry_id", type=int)
@click.argument("rating", type=click.IntRange(0, 5))
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def rate(ctx: click.Context, entry_id: int, rating: int, quiet: bool) -> None:
    """Rate ENTRY_ID from 1 to 5 (0 clears the rating)."""
    with _reported_errors(json_output=False, action="rating the entry"):
        _entry_action(
            ctx,
            entry_id,
            lambda e: [i.SetRating(e.id, rating or None)],
            quiet=quiet,
        )


@cli.command()
@click.argument("entry_id", type=int)
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def favorite(ctx: click.Context, entry_id: int, quiet: bool) -> None:
    """Toggle the favorite flag of ENTRY_ID."""
    with _reported_errors(json_output=False, action="updating the entry"):
        state = _entry_action(
            ctx, entry_id, lambda e: [i.ToggleFavorite(e.id)], quiet=quiet
        )
        entry = state.find_entry(entry_id)
        if entry is not None:
            label = "now a favorite" if entry.is_favorite else "no longer a favorite"
            _emit(f'[green]"{entry.title}" is {label}.[/green]', quiet=quiet)


@cli.command()
@click.argument("entry_id", type=int)
@click.argument("text")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def notes(ctx: click.Context, entry_id: int, text: str, quiet: bool) -> None:
    """Replace the notes of ENTRY_ID with TEXT (empty text clears them)."""
    with _reported_errors(json_output=False, action="saving notes"):
        _entry_action(ctx, entry_id, lambda e: [i.SaveNotes(e.id, text)], quiet=quiet)


@cli.command("toggle-tag")
@click.argument("entry_id", type=int)
@click.argument("tag")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def toggle_tag(ctx: click.Context, entry_id: int, tag: str, quiet: bool) -> None:
    """Attach TAG to ENTRY_ID, or detach it when already attached."""
    with _reported_errors(json_output=False, action="updating tags"):
        config = _load_config(ctx)

        async def script(session: _Session) -> AppState:
            state = await session.send(i.LoadTags())
            _require_loaded(state.tags, "tags")
            (tag_id,) = _resolve_names([tag], state.tag_choices(), "tag")
            entry = await session.open_entry(entry_id)
            await session.send(i.ToggleEntryTag(entry.id, tag_id))
            return session.raise_on_failure()

        state = _run(config, script)
        entry = state.find_entry(entry_id)
        if entry is not None:
            names = ", ".join(_names_for(entry.tags, state.tag_choices())) or "none"
            _emit(f"[green]Tags for \"{entry.title}\": {names}[/green]", quiet=quiet)


@cli.command("toggle-friend")
@click.argument("entry_id", type=int)
@click.argument("friend")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def toggle_friend(ctx: click.Context, entry_id: int, friend: str, quiet: bool) -> None:
    """Link FRIEND to ENTRY_ID, or unlink them when already linked."""
    with _reported_errors(json_output=False, action="updating friends"):
        config = _load_config(ctx)

        async def script(session: _Session) -> AppState:
            state = await session.send(i.LoadFriends())
            _require_loaded(state.friends, "friends")
            (friend_id,) = _resolve_names([friend], state.friend_choices(), "friend")
            entry = await session.open_entry(entry_id)
            await session.send(i.ToggleEntryFriend(entry.id, friend_id))
            return session.raise_on_failure()

        state = _run(config, script)
        entry = state.find_entry(entry_id)
        if entry is not None:
            names = ", ".join(_names_for(entry.friends, state.friend_choices())) or "none"
            _emit(f"[green]Friends for \"{entry.title}\": {names}[/green]", quiet=quiet)


# Episodes -------------------------------------------------------------------


def _emit_season(state: AppState, entry_id: int, season_number: int, *, quiet: bool) -> None:
    entry = state.find_entry(entry_id)
    if entry is None or not isinstance(entry.media, Series):
        return
    for season in season_progress(entry.media, state.episodes_for(entry_id)):
        if season.season_number == season_number:
            _emit(
                f"[green]Season {season_number}: {season.watched}/{season.total} watched.[/green]",
                quiet=quiet,
            )


@cli.command()
@click.argument("entry_id", type=int)
@click.argument("season", type=click.IntRange(min=0))
@click.argument("episode", type=click.IntRange(min=1))
@click.option("--unwatched", is_flag=True, help="Clear the watched flag instead of setting it.")
@click.option("--up-to", "up_to", is_flag=True, help="Apply to every episode up to EPISODE.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def episode(
    ctx: click.Context,
    entry_id: int,
    season: int,
    episode: int,
    unwatched: bool,
    up_to: bool,
    quiet: bool,
) -> None:
    """Set the watched flag of one episode of the series ENTRY_ID."""
    with _reported_errors(json_output=False, action="updating episodes"):
        intent_type = i.MarkEpisodesUpTo if up_to else i.ToggleEpisode
        state = _entry_action(
            ctx,
            entry_id,
            lambda e: [intent_type(e.id, season, episode, not unwatched)],
            quiet=quiet,
        )
        _emit_season(state, entry_id, season, quiet=quiet)


@cli.command()
@click.argument("entry_id", type=int)
@click.argument("season_number", metavar="SEASON", type=click.IntRange(min=0))
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def season(ctx: click.Context, entry_id: int, season_number: int, quiet: bool) -> None:
    """Mark every episode of SEASON of the series ENTRY_ID as watched."""
    with _reported_errors(json_output=False, action="updating episodes"):
        state = _entry_action(
            ctx,
            entry_id,
            lambda e: [i.MarkSeasonWatched(e.id, season_number)],
            quiet=quiet,
        )
        _emit_season(state, entry_id, season_number, quiet=quiet)


@cli.command()
@click.argument("entry_id", type=int)
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def delete(ctx: click.Context, entry_id: int, yes: bool, quiet: bool) -> None:
    """Remove ENTRY_ID and its episode progress from the library."""
    with _reported_errors(json_output=False, action="deleting the entry"):

        def build(entry: LibraryEntry) -> list[i.Intent]:
            if not yes:
                click.confirm(f'Delete "{entry.title}" from your library?', abort=True)
            return [i.OpenConfirmDelete(DeleteEntry(entry.id, entry.title)), i.ConfirmDelete()]

        _entry_action(ctx, entry_id, build, quiet=quiet)


# Friends --------------------------------------------------------------------


def _resource_script(
    load: i.Intent,
    resource: Callable[[AppState], RemoteResource[Any]],
    label: str,
    steps: Callable[[AppState], Sequence[i.Intent]],
) -> Script[AppState]:
    async def script(session: _Session) -> AppState:
        state = await session.send(load)
        _require_loaded(resource(state), label)
        await session.send(*steps(state))
        return session.raise_on_failure()

    return script


def _find_by_id(items: Sequence[Any], item_id: int, label: str) -> Any:
    for item in items:
        if item.id == item_id:
            return item
    raise click.ClickException(f"{label} {item_id} not found")


@cli.group()
def friends() -> None:
    """Manage the friends you watch with."""


@friends.command("list")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON instead of a table.")
@click.pass_context
def friends_list(ctx: click.Context, json_output: bool) -> None:
    """List friends."""
    with _reported_errors(json_output=json_output, action="listing friends"):
        config = _load_config(ctx)
        state = _run(config, _resource_script(i.LoadFriends(), lambda s: s.friends, "friends", lambda _: []))
        people = state.friend_choices()
        if json_output:
            console.print_json(data={"friends": [f.model_dump(mode="json") for f in people]})
            return
        if not people:
            console.print("[yellow]No friends yet. Add one with `reeltrack friends add`.[/yellow]")
            return
        table = Table(title="Friends")
        table.add_column("ID", justify="right")
        table.add_column("Name")
        table.add_column("Nickname")
        for person in people:
            table.add_row(str(person.id), person.name, person.nickname or "")
        console.print(table)


@friends.command("add")
@click.argument("name")
@click.option("--nickname", default="", help="Optional nickname.")
@click.pass_context
def friends_add(ctx: click.Context, name: str, nickname: str) -> None:
    """Add a friend called NAME."""
    with _reported_errors(json_output=False, action="adding the friend"):
        config = _load_config(ctx)
        state = _run(
            config,
            _resource_script(
                i.LoadFriends(),
                lambda s: s.friends,
                "friends",
                lambda _: [
                    i.OpenFriendForm(),
                    i.FriendNameChanged(name),
                    i.FriendNicknameChanged(nickname),
                    i.SubmitFriendForm(),
                ],
            ),
        )
        _emit_notification(state, quiet=config.cli.quiet_default)


@friends.command("edit")
@click.argument("friend_id", type=int)
@click.option("--name", help="New name.")
@click.option("--nickname", help="New nickname (empty clears it).")
@click.pass_context
def friends_edit(
    ctx: click.Context, friend_id: int, name: Optional[str], nickname: Optional[str]
) -> None:
    """Rename FRIEND_ID or change their nickname."""
    with _reported_errors(json_output=False, action="editing the friend"):
        config = _load_config(ctx)

        def steps(state: AppState) -> list[i.Intent]:
            friend = _find_by_id(state.friend_choices(), friend_id, "Friend")
            intents: list[i.Intent] = [i.OpenFriendForm(friend)]
            if name is not None:
                intents.append(i.FriendNameChanged(name))
            if nickname is not None:
                intents.append(i.FriendNicknameChanged(nickname))
            intents.append(i.SubmitFriendForm())
            return intents

        state = _run(config, _resource_script(i.LoadFriends(), lambda s: s.friends, "friends", steps))
        _emit_notification(state, quiet=config.cli.quiet_default)


@friends.command("rm")
@click.argument("friend_id", type=int)
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_context
def friends_rm(ctx: click.Context, friend_id: int, yes: bool) -> None:
    """Delete FRIEND_ID and unlink them from every entry."""
    with _reported_errors(json_output=False, action="deleting the friend"):
        config = _load_config(ctx)

        def steps(state: AppState) -> list[i.Intent]:
            friend = _find_by_id(state.friend_choices(), friend_id, "Friend")
            if not yes:
                click.confirm(f"Delete friend {friend.name}?", abort=True)
            return [i.OpenConfirmDelete(DeleteFriend(friend)), i.ConfirmDelete()]

        state = _run(config, _resource_script(i.LoadFriends(), lambda s: s.friends, "friends", steps))
        _emit_notification(state, quiet=config.cli.quiet_default)


# Tags -----------------------------------------------------------------------


@cli.group()
def tags() -> None:
    """Manage tags used to organize the library."""


@tags.command("list")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON instead of a table.")
@click.pass_context
def tags_list(ctx: click.Context, json_output: bool) -> None:
    """List tags."""
    with _reported_errors(json_output=json_output, action="listing tags"):
        config = _load_config(ctx)
        state = _run(config, _resource_script(i.LoadTags(), lambda s: s.tags, "tags", lambda _: []))
        labels = state.tag_choices()
        if json_output:
            console.print_json(data={"tags": [t.model_dump(mode="json") for t in labels]})
            return
        if not labels:
            console.print("[yellow]No tags yet. Create one with `reeltrack tags add`.[/yellow]")
            return
        table = Table(title="Tags")
        table.add_column("ID", justify="right")
        table.add_column("Name")
        table.add_column("Color")
        table.add_column("Description")
        for label in labels:
            table.add_row(str(label.id), label.name, label.color or "", label.description or "")
        console.print(table)


@tags.command("add")
@click.argument("name")
@click.option("--color", default="", help="Optional display color.")
@click.option("--description", default="", help="Optional description.")
@click.pass_context
def tags_add(ctx: click.Context, name: str, color: str, description: str) -> None:
    """Create a tag called NAME."""
    with _reported_errors(json_output=False, action="creating the tag"):
        config = _load_config(ctx)
        state = _run(
            config,
            _resource_script(
                i.LoadTags(),
                lambda s: s.tags,
                "tags",
                lambda _: [
                    i.OpenTagForm(),
                    i.TagNameChanged(name),
                    i.TagColorChanged(color),
                    i.TagDescriptionChanged(description),
                    i.SubmitTagForm(),
                ],
            ),
        )
        _emit_notification(state, quiet=config.cli.quiet_default)


@tags.command("edit")
@click.argument("tag_id", type=int)
@click.option("--name", help="New name.")
@click.option("--color", help="New color (empty clears it).")
@click.option("--description", help="New description (empty clears it).")
@click.pass_context
def tags_edit(
    ctx: click.Context,
    tag_id: int,
    name: Optional[str],
    color: Optional[str],
    description: Optional[str],
) -> None:
    """Edit TAG_ID."""
    with _reported_errors(json_output=False, action="editing the tag"):
        config = _load_config(ctx)

        def steps(state: AppState) -> list[i.Intent]:
            tag = _find_by_id(state.tag_choices(), tag_id, "Tag")
            intents: list[i.Intent] = [i.OpenTagForm(tag)]
            if name is not None:
                intents.append(i.TagNameChanged(name))
            if color is not None:
                intents.append(i.TagColorChanged(color))
            if description is not None:
                intents.append(i.TagDescriptionChanged(description))
            intents.append(i.SubmitTagForm())
            return intents

        state = _run(config, _resource_script(i.LoadTags(), lambda s: s.tags, "tags", steps))
        _emit_notification(state, quiet=config.cli.quiet_default)


@tags.command("rm")
@click.argument("tag_id", type=int)
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_context
def tags_rm(ctx: click.Context, tag_id: int, yes: bool) -> None:
    """Delete TAG_ID and remove it from every entry."""
    with _reported_errors(json_output=False, action="deleting the tag"):
        config = _load_config(ctx)

        def steps(state: AppState) -> list[i.Intent]:
            tag = _find_by_id(state.tag_choices(), tag_id, "Tag")
            if not yes:
                click.confirm(f"Delete tag {tag.name}?", abort=True)
            return [i.OpenConfirmDelete(DeleteTag(tag)), i.ConfirmDelete()]

        state = _run(config, _resource_script(i.LoadTags(), lambda s: s.tags, "tags", steps))
        _emit_notification(state, quiet=config.cli.quiet_default)


# Configuration --------------------------------------------------------------


@cli.group()
def config() -> None:
    """Manage Reeltrack configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        effective = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(effective.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


def _save_config(manager: ConfigManager, file_data: dict[str, Any]) -> list[str]:
    """Validate ``file_data`` against the model, persist it and diff the file.

    Returns:
        list[str]: Unified diff of ``config.yaml``, ignoring the timestamp header.

    Raises:
        click.ClickException: If the data does not resolve to a valid configuration.
    """
    try:
        resolve_with_precedence(defaults=ReeltrackConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    def _body() -> list[str]:
        return [
            line
            for line in manager.read_text().splitlines()
            if not line.startswith("# Last updated")
        ]

    before = _body()
    manager.save(file_data)
    return list(
        difflib.unified_diff(
            before,
            _body(),
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY."""
    manager = ConfigManager()
    manager.ensure_exists()

    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must be a dotted path such as 'search.debounce_ms'.")
    try:
        file_data = manager.load_file_overrides()
        assign_path(file_data, segments, yaml.safe_load(value), source_name="file")
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    diff = _save_config(manager, file_data)
    if not diff:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open ``config.yaml`` in $EDITOR and save it once it validates."""
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")
    if edited is None or edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc
    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    diff = _save_config(manager, parsed)
    if diff:
        console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
