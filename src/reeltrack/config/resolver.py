"""Layered configuration resolution."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Iterable, Mapping, Optional

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import ReeltrackConfig

ENV_PREFIX = "REELTRACK__"


def resolve_with_precedence(
    *,
    defaults: ReeltrackConfig,
    file_overrides: Optional[Mapping[str, Any]] = None,
    env_overrides: Optional[Mapping[str, Any]] = None,
    cli_overrides: Optional[Mapping[str, Any]] = None,
) -> ReeltrackConfig:
    """Merge sources in the order defaults < file < environment < CLI.

    Args:
        defaults: Baseline configuration.
        file_overrides: Nested mapping read from ``config.yaml``.
        env_overrides: Nested mapping parsed from ``REELTRACK__*`` variables.
        cli_overrides: Mapping whose keys may use dotted paths.

    Returns:
        ReeltrackConfig: Validated configuration.

    Raises:
        ConfigError: If an override is malformed or fails validation.
    """
    layers: Iterable[tuple[str, Optional[Mapping[str, Any]]]] = (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    )
    merged = defaults.model_dump(mode="python")
    for source_name, layer in layers:
        if layer is None:
            continue
        merged = merge_nested(merged, expand_dotted(layer, source_name=source_name))

    try:
        return ReeltrackConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: ReeltrackConfig) -> Dict[str, str]:
    """Render ``config`` as ``REELTRACK__SECTION__KEY`` variables."""
    flat: Dict[str, str] = {}

    def _walk(path: list[str], value: Any) -> None:
        if isinstance(value, dict):
            for key, child in value.items():
                _walk([*path, str(key)], child)
            return
        name = ENV_PREFIX + "__".join(segment.upper() for segment in path)
        if isinstance(value, list):
            flat[name] = yaml.safe_dump(value, default_flow_style=True).strip()
        elif value is None:
            flat[name] = "null"
        else:
            flat[name] = str(value)

    _walk([], config.model_dump(mode="python"))
    return flat


def parse_env(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``REELTRACK__*`` variables into a nested override mapping.

    Values are parsed as YAML scalars so ``"0.5"`` becomes a float and
    ``"true"`` a bool; unparsable values are kept verbatim.
    """
    overrides: dict[str, Any] = {}
    for name, raw in env.items():
        if not name.startswith(ENV_PREFIX):
            continue
        path = [segment.lower() for segment in name[len(ENV_PREFIX) :].split("__") if segment]
        if not path:
            continue
        try:
            value = yaml.safe_load(raw)
        except yaml.YAMLError:
            value = raw
        assign_path(overrides, path, value, source_name="environment")
    return overrides


def expand_dotted(source: Mapping[str, Any], *, source_name: str) -> dict[str, Any]:
    """Expand ``{"a.b": 1}`` style keys into nested dictionaries."""
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")

    expanded: dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        if isinstance(value, MappingABC):
            value = expand_dotted(value, source_name=source_name)
        assign_path(expanded, key.split("."), value, source_name=source_name)
    return expanded


def assign_path(target: dict[str, Any], path: list[str], value: Any, *, source_name: str) -> None:
    """Set ``value`` at ``path`` inside ``target``, creating mappings on the way."""
    node = target
    for segment in path[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise ConfigError(
                f"{source_name.capitalize()} override for {'.'.join(path)} "
                "conflicts with an existing value."
            )
        node = child
    leaf = path[-1]
    if isinstance(value, dict) and isinstance(node.get(leaf), dict):
        node[leaf] = merge_nested(node[leaf], value)
    else:
        node[leaf] = value


def merge_nested(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` deep-merged with ``overrides`` without mutating either."""
    merged = deepcopy(dict(base))
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, MappingABC) and isinstance(current, MappingABC):
            merged[key] = merge_nested(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = [
    "ENV_PREFIX",
    "assign_path",
    "expand_dotted",
    "flatten_for_env",
    "merge_nested",
    "parse_env",
    "resolve_with_precedence",
]
