"""CLI workflow tests over a seeded local library."""

from __future__ import annotations

import json
import os
from datetime import date
from pathlib import Path
from typing import Any

from click.testing import CliRunner

from reeltrack.cli import cli
from reeltrack.domain import Movie, Series
from reeltrack.service import LocalLibraryService

CATALOG = [
    Movie(title="Heat", catalog_id=949, release_date=date(1995, 12, 15)),
    Movie(title="The Matrix", catalog_id=603, release_date=date(1999, 3, 31)),
    Movie(title="The Matrix Reloaded", catalog_id=604, release_date=date(2003, 5, 15)),
    Series(title="Dark", catalog_id=70523, number_of_seasons=1, number_of_episodes=2),
]


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env = {key: value for key, value in os.environ.items() if not key.startswith("REELTRACK__")}
    env["HOME"] = str(tmp_path)
    env["REELTRACK__SEARCH__DEBOUNCE_MS"] = "0"
    return env


def _library_path(tmp_path: Path) -> Path:
    return tmp_path / ".reeltrack" / "library.json"


def _seed(tmp_path: Path) -> Path:
    path = _library_path(tmp_path)
    LocalLibraryService(path).seed_catalog(CATALOG)
    return path


def _entries(tmp_path: Path) -> list[dict[str, Any]]:
    data = json.loads(_library_path(tmp_path).read_text(encoding="utf-8"))
    return data["entries"]


def test_cli_help_displays_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "Reeltrack keeps track" in result.output
    for command in ("library", "add", "watched", "friends", "tags", "config"):
        assert command in result.output


def test_add_then_list_library(tmp_path: Path) -> None:
    _seed(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    added = runner.invoke(cli, ["add", "heat", "--note", "Sam's pick"], env=env)

    assert added.exit_code == 0, added.output
    assert 'Added "Heat" to your library!' in added.output
    (entry,) = _entries(tmp_path)
    assert entry["why_added"]["context"] == "Sam's pick"

    listed = runner.invoke(cli, ["library", "--json"], env=env)
    assert listed.exit_code == 0, listed.output
    assert '"title": "Heat"' in listed.output
    assert '"status_label": "not started"' in listed.output


def test_add_requires_disambiguation(tmp_path: Path) -> None:
    _seed(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    ambiguous = runner.invoke(cli, ["add", "matrix"], env=env)
    assert ambiguous.exit_code != 0
    assert "rerun with --id" in ambiguous.output

    picked = runner.invoke(cli, ["add", "matrix", "--id", "604", "--quiet"], env=env)
    assert picked.exit_code == 0, picked.output
    assert picked.output.strip() == ""
    assert [entry["media"]["title"] for entry in _entries(tmp_path)] == ["The Matrix Reloaded"]


def test_adding_twice_reports_duplicate(tmp_path: Path) -> None:
    _seed(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    runner.invoke(cli, ["add", "heat"], env=env)
    again = runner.invoke(cli, ["add", "heat"], env=env)

    assert again.exit_code != 0
    assert "already in your library" in again.output


def test_watch_status_commands(tmp_path: Path) -> None:
    _seed(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    runner.invoke(cli, ["add", "heat"], env=env)

    watched = runner.invoke(cli, ["watched", "1"], env=env)
    assert watched.exit_code == 0, watched.output
    assert 'Marked "Heat" as completed' in watched.output
    assert _entries(tmp_path)[0]["watch_status"]["kind"] == "completed"

    rejected = runner.invoke(cli, ["resume", "1"], env=env)
    assert rejected.exit_code != 0
    assert "Cannot resume" in rejected.output

    unwatched = runner.invoke(cli, ["unwatched", "1"], env=env)
    assert unwatched.exit_code == 0, unwatched.output
    assert _entries(tmp_path)[0]["watch_status"]["kind"] == "not_started"


def test_series_completion_follows_episodes(tmp_path: Path) -> None:
    _seed(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    runner.invoke(cli, ["add", "dark"], env=env)

    blocked = runner.invoke(cli, ["watched", "1"], env=env)
    assert blocked.exit_code != 0
    assert "0 of 2 episodes watched" in blocked.output

    season = runner.invoke(cli, ["season", "1", "1"], env=env)
    assert season.exit_code == 0, season.output
    assert "Season 1: 2/2 watched." in season.output

    completed = runner.invoke(cli, ["watched", "1"], env=env)
    assert completed.exit_code == 0, completed.output


def test_abandon_with_reason(tmp_path: Path) -> None:
    _seed(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    runner.invoke(cli, ["add", "dark"], env=env)

    result = runner.invoke(
        cli, ["abandon", "1", "--reason", "too bleak", "--season", "1", "--episode", "1"], env=env
    )

    assert result.exit_code == 0, result.output
    status = _entries(tmp_path)[0]["watch_status"]
    assert status == {
        "kind": "abandoned",
        "reason": "too bleak",
        "stopped_season": 1,
        "stopped_episode": 1,
    }


def test_friends_tags_and_rating(tmp_path: Path) -> None:
    _seed(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    assert runner.invoke(cli, ["friends", "add", "Sam"], env=env).exit_code == 0
    assert runner.invoke(cli, ["tags", "add", "Noir", "--color", "#101010"], env=env).exit_code == 0
    added = runner.invoke(cli, ["add", "heat", "--tag", "noir", "--friend", "Sam"], env=env)
    assert added.exit_code == 0, added.output

    rated = runner.invoke(cli, ["rate", "1", "5"], env=env)
    assert "Rated 5/5" in rated.output

    tags = runner.invoke(cli, ["tags", "list", "--json"], env=env)
    assert '"name": "Noir"' in tags.output

    filtered = runner.invoke(cli, ["library", "--tag", "Noir", "--min-rating", "4"], env=env)
    assert filtered.exit_code == 0, filtered.output
    assert "Heat" in filtered.output

    removed = runner.invoke(cli, ["tags", "rm", "1", "--yes"], env=env)
    assert removed.exit_code == 0, removed.output
    (entry,) = _entries(tmp_path)
    assert entry["tags"] == []
    assert entry["friends"] == [1]
    assert entry["personal_rating"] == 5


def test_delete_asks_for_confirmation(tmp_path: Path) -> None:
    _seed(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    runner.invoke(cli, ["add", "heat"], env=env)

    declined = runner.invoke(cli, ["delete", "1"], env=env, input="n\n")
    assert declined.exit_code != 0
    assert len(_entries(tmp_path)) == 1

    accepted = runner.invoke(cli, ["delete", "1"], env=env, input="y\n")
    assert accepted.exit_code == 0, accepted.output
    assert _entries(tmp_path) == []


def test_missing_entry_reports_error_as_json(tmp_path: Path) -> None:
    _seed(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["show", "42", "--json"], env=env)

    assert result.exit_code == 1
    assert '"code": "cli_error"' in result.output
    assert "Entry 42 not found" in result.output


def test_set_option_overrides_configuration(tmp_path: Path) -> None:
    _seed(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["--set", "search.min_query_length=5", "search", "heat"], env=env)

    assert result.exit_code != 0
    assert "at least 5 characters" in result.output
