"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from reeltrack.config import (
    ConfigError,
    ConfigManager,
    ReeltrackConfig,
    flatten_for_env,
    parse_env,
    resolve_with_precedence,
)


def _fresh_manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    return ConfigManager()


def test_ensure_exists_creates_default_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path == tmp_path / ".reeltrack" / "config.yaml"
    text = path.read_text(encoding="utf-8")
    assert "Reeltrack configuration file" in text
    assert "Last updated:" in text

    config = manager.load(include_env=False)
    assert isinstance(config, ReeltrackConfig)
    assert config.search.debounce_ms == 300


def test_resolve_with_precedence_respects_order(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.save({"search": {"debounce_ms": 150, "max_results": 5}})

    env = {
        "REELTRACK__SEARCH__DEBOUNCE_MS": "250",
        "REELTRACK__NOTIFICATIONS__TIMEOUT_SECONDS": "2.5",
    }
    cli = {"search.debounce_ms": 75}

    config = manager.load(cli_overrides=cli, env_overrides=env)

    assert config.search.max_results == 5
    assert config.notifications.timeout_seconds == pytest.approx(2.5)
    # CLI overrides take precedence over environment
    assert config.search.debounce_ms == 75


def test_environment_is_ignored_when_disabled(tmp_path: Path) -> None:
    env = {"REELTRACK__LIBRARY__DEFAULT_SORT": "title"}
    manager = ConfigManager(tmp_path / "config.yaml", env=env)

    assert manager.load().library.default_sort == "title"
    assert manager.load(include_env=False).library.default_sort == "date_added"


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_flatten_for_env_round_trips_defaults() -> None:
    flat = flatten_for_env(ReeltrackConfig())

    assert flat["REELTRACK__SEARCH__DEBOUNCE_MS"] == "300"
    assert flat["REELTRACK__LIBRARY__DEFAULT_DIRECTION"] == "desc"
    assert flat["REELTRACK__LOGGING__FILE"] == "null"

    parsed = parse_env(flat)
    assert resolve_with_precedence(defaults=ReeltrackConfig(), env_overrides=parsed) == ReeltrackConfig()


def test_resolve_with_precedence_invalid_value_raises() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=ReeltrackConfig(),
            file_overrides={"search": {"debounce_ms": "not-an-int"}},
        )


def test_unknown_section_is_rejected() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(defaults=ReeltrackConfig(), cli_overrides={"llm.model": "x"})
