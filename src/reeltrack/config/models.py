"""Configuration models describing Reeltrack settings."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ReeltrackBaseModel(BaseModel):
    """Shared configuration for Reeltrack settings models."""

    model_config = ConfigDict(extra="forbid")


class SearchSettings(ReeltrackBaseModel):
    """Catalog search behavior.

    Attributes:
        debounce_ms: Quiet period after the last keystroke before searching.
        min_query_length: Queries shorter than this are never sent.
        max_results: Maximum number of results kept from a search response.
    """

    debounce_ms: int = Field(default=300, ge=0)
    min_query_length: int = Field(default=2, ge=1)
    max_results: int = Field(default=20, ge=1)

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000


class NotificationSettings(ReeltrackBaseModel):
    """Transient notification behavior.

    Attributes:
        timeout_seconds: Delay before a notification clears itself.
    """

    timeout_seconds: float = Field(default=4.0, ge=0)


class LibrarySettings(ReeltrackBaseModel):
    """Library store location and default view.

    Attributes:
        store_path: JSON document backing the local library service.
        default_sort: Sort key applied on startup and when filters are cleared.
        default_direction: Sort direction applied on startup.
    """

    store_path: str = "~/.reeltrack/library.json"
    default_sort: Literal["date_added", "title", "year", "rating"] = "date_added"
    default_direction: Literal["asc", "desc"] = "desc"


class LoggingSettings(ReeltrackBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        file: Optional log file; rotated when it grows past ``max_size_mb``.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    file: Optional[str] = None
    max_size_mb: int = 10
    backup_count: int = 5


class CLIOptions(ReeltrackBaseModel):
    """CLI presentation defaults.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        json_default: Whether commands emit JSON by default.
    """

    quiet_default: bool = False
    json_default: bool = False


class ReeltrackConfig(ReeltrackBaseModel):
    """Top-level configuration for Reeltrack."""

    search: SearchSettings = Field(default_factory=SearchSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    library: LibrarySettings = Field(default_factory=LibrarySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "ReeltrackBaseModel",
    "SearchSettings",
    "NotificationSettings",
    "LibrarySettings",
    "LoggingSettings",
    "CLIOptions",
    "ReeltrackConfig",
]
