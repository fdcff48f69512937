"""Workflow variants: at most one multi-step interaction is active."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, FrozenSet, Optional, Union

from reeltrack.domain import EntryId, Friend, FriendId, SearchResult, Tag, TagId
from reeltrack.errors import ErrorInfo


@dataclass(frozen=True, slots=True)
class NoWorkflow:
    """Nothing is open."""

    submitting: ClassVar[bool] = False


@dataclass(frozen=True, slots=True)
class SearchWorkflow:
    """Catalog search box with a debounced query.

    Attributes:
        query: Current text of the search box.
        debounce_token: Token of the most recently scheduled debounce timer.
    """

    query: str = ""
    debounce_token: int = 0

    submitting: ClassVar[bool] = False


@dataclass(frozen=True, slots=True)
class QuickAddWorkflow:
    """Add a search result to the library with optional attribution."""

    selected_item: SearchResult
    note: str = ""
    selected_tags: FrozenSet[TagId] = frozenset()
    selected_friends: FrozenSet[FriendId] = frozenset()
    submitting: bool = False
    error: Optional[ErrorInfo] = None


@dataclass(frozen=True, slots=True)
class FriendFormWorkflow:
    """Create a friend (``editing is None``) or edit an existing one."""

    editing: Optional[Friend] = None
    name: str = ""
    nickname: str = ""
    submitting: bool = False
    error: Optional[ErrorInfo] = None

    @classmethod
    def for_friend(cls, friend: Optional[Friend]) -> "FriendFormWorkflow":
        if friend is None:
            return cls()
        return cls(editing=friend, name=friend.name, nickname=friend.nickname or "")


@dataclass(frozen=True, slots=True)
class TagFormWorkflow:
    """Create a tag (``editing is None``) or edit an existing one."""

    editing: Optional[Tag] = None
    name: str = ""
    color: str = ""
    description: str = ""
    submitting: bool = False
    error: Optional[ErrorInfo] = None

    @classmethod
    def for_tag(cls, tag: Optional[Tag]) -> "TagFormWorkflow":
        if tag is None:
            return cls()
        return cls(
            editing=tag,
            name=tag.name,
            color=tag.color or "",
            description=tag.description or "",
        )


@dataclass(frozen=True, slots=True)
class AbandonWorkflow:
    """Collect a reason and stopping point before abandoning an entry."""

    entry_id: EntryId
    reason: str = ""
    stop_season: Optional[int] = None
    stop_episode: Optional[int] = None
    submitting: bool = False
    error: Optional[ErrorInfo] = None


@dataclass(frozen=True, slots=True)
class DeleteFriend:
    friend: Friend

    @property
    def label(self) -> str:
        return f"friend {self.friend.name}"


@dataclass(frozen=True, slots=True)
class DeleteTag:
    tag: Tag

    @property
    def label(self) -> str:
        return f"tag {self.tag.name}"


@dataclass(frozen=True, slots=True)
class DeleteEntry:
    entry_id: EntryId
    title: str = ""

    @property
    def label(self) -> str:
        return f'"{self.title}"' if self.title else f"entry {self.entry_id}"


DeleteTarget = Union[DeleteFriend, DeleteTag, DeleteEntry]


@dataclass(frozen=True, slots=True)
class ConfirmDeleteWorkflow:
    """Ask for confirmation before deleting ``target``."""

    target: DeleteTarget
    submitting: bool = False
    error: Optional[ErrorInfo] = None


Workflow = Union[
    NoWorkflow,
    SearchWorkflow,
    QuickAddWorkflow,
    FriendFormWorkflow,
    TagFormWorkflow,
    AbandonWorkflow,
    ConfirmDeleteWorkflow,
]

SubmittableWorkflow = Union[
    QuickAddWorkflow,
    FriendFormWorkflow,
    TagFormWorkflow,
    AbandonWorkflow,
    ConfirmDeleteWorkflow,
]


__all__ = [
    "NoWorkflow",
    "SearchWorkflow",
    "QuickAddWorkflow",
    "FriendFormWorkflow",
    "TagFormWorkflow",
    "AbandonWorkflow",
    "DeleteFriend",
    "DeleteTag",
    "DeleteEntry",
    "DeleteTarget",
    "ConfirmDeleteWorkflow",
    "Workflow",
    "SubmittableWorkflow",
]
