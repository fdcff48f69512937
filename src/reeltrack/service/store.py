"""JSON persistence for the local library service."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from reeltrack.domain import EpisodeProgress, Friend, LibraryEntry, Media, Tag
from reeltrack.errors import ReeltrackError

DOCUMENT_VERSION = 1


class StoreError(ReeltrackError):
    """Raised when the library document cannot be read."""


class IdCounters(BaseModel):
    """Next identifier to hand out per entity kind."""

    model_config = ConfigDict(extra="forbid")

    entry: int = 1
    friend: int = 1
    tag: int = 1


class LibraryDocument(BaseModel):
    """On-disk representation of a personal library.

    Attributes:
        version: Document format version.
        next_ids: Identifier counters; ids are never reused after deletion.
        entries: Library entries.
        friends: Known friends.
        tags: User-defined tags.
        episodes: Episode progress records for series entries.
        catalog: Titles available to ``search_titles`` and ``add_entry``.
        updated_at: Timestamp of the last save.
    """

    model_config = ConfigDict(extra="forbid")

    version: int = DOCUMENT_VERSION
    next_ids: IdCounters = Field(default_factory=IdCounters)
    entries: List[LibraryEntry] = Field(default_factory=list)
    friends: List[Friend] = Field(default_factory=list)
    tags: List[Tag] = Field(default_factory=list)
    episodes: List[EpisodeProgress] = Field(default_factory=list)
    catalog: List[Media] = Field(default_factory=list)
    updated_at: Optional[datetime] = None

    def allocate(self, kind: str) -> int:
        """Return the next identifier for ``kind`` and advance the counter."""
        value = getattr(self.next_ids, kind)
        setattr(self.next_ids, kind, value + 1)
        return value


class LibraryStore:
    """Load and save a :class:`LibraryDocument` at ``path``."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> LibraryDocument:
        """Return the stored document, or an empty one when the file is absent.

        Raises:
            StoreError: If the file exists but cannot be parsed.
        """
        if not self._path.exists():
            return LibraryDocument()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise StoreError(f"Invalid library data in {self._path}: {exc}") from exc
        try:
            return LibraryDocument.model_validate(data)
        except ValidationError as exc:
            raise StoreError(f"Invalid library data in {self._path}: {exc}") from exc

    def save(self, document: LibraryDocument) -> None:
        """Persist ``document`` atomically."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        document.updated_at = datetime.now(timezone.utc)
        payload = document.model_dump(mode="json")
        temp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        temp_path.write_text(json.dumps(payload, indent=2, sort_keys=False), encoding="utf-8")
        temp_path.replace(self._path)


__all__ = ["DOCUMENT_VERSION", "IdCounters", "LibraryDocument", "LibraryStore", "StoreError"]
