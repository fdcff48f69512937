"""Configuration management for Reeltrack."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .exceptions import ConfigError
from .models import (
    CLIOptions,
    LibrarySettings,
    LoggingSettings,
    NotificationSettings,
    ReeltrackConfig,
    SearchSettings,
)
from .resolver import flatten_for_env, parse_env, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.reeltrack/config.yaml")
_CONFIG_HEADER = textwrap.dedent(
    """\
    # Reeltrack configuration file
    # Manage with `reeltrack config set` or edit by hand.
    # Environment variables named REELTRACK__SECTION__KEY override these values.
    """
)


class ConfigManager:
    """Read and write ``config.yaml`` and resolve the effective configuration."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        *,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Optional[Mapping[str, Any]] = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Optional[Mapping[str, str]] = None,
    ) -> ReeltrackConfig:
        """Return the effective configuration.

        Args:
            cli_overrides: Dotted-key overrides supplied on the command line.
            include_env: Whether ``REELTRACK__*`` variables are applied.
            ensure_file: Whether to create a default file when none exists.
            env_overrides: Variables to read instead of the process environment.

        Raises:
            ConfigError: If the file or an override is invalid.
        """
        if ensure_file:
            self.ensure_exists()

        env_data: Optional[Mapping[str, str]] = None
        if include_env:
            env_data = env_overrides if env_overrides is not None else self._env

        return resolve_with_precedence(
            defaults=ReeltrackConfig(),
            file_overrides=self.load_file_overrides(),
            env_overrides=parse_env(env_data) if env_data else None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the raw mapping stored on disk (empty when absent)."""
        if not self._config_path.exists():
            return {}
        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return raw

    def save(self, config: ReeltrackConfig | Mapping[str, Any]) -> None:
        """Persist ``config`` with a header and timestamp."""
        if isinstance(config, ReeltrackConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        body = yaml.safe_dump(data, sort_keys=False)
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{body}", encoding="utf-8"
        )

    def ensure_exists(self) -> Path:
        """Write a default configuration file if none exists yet."""
        if not self._config_path.exists():
            self.save(ReeltrackConfig())
        return self._config_path

    def read_text(self) -> str:
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")


__all__ = [
    "CLIOptions",
    "ConfigError",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "LibrarySettings",
    "LoggingSettings",
    "NotificationSettings",
    "ReeltrackConfig",
    "SearchSettings",
    "flatten_for_env",
    "parse_env",
    "resolve_with_precedence",
]
