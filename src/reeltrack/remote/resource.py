"""Four-state wrapper for every server-backed value.

A resource moves ``NotRequested -> Loading -> Success | Failure`` and re-enters
``Loading`` on a fresh fetch. Every request is stamped with a sequence number
that grows monotonically per resource slot; completions carrying anything but
the latest sequence are stale and leave the resource untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Generic, Hashable, Optional, TypeVar, Union

from reeltrack.errors import ErrorInfo

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class NotRequested:
    """No fetch has been issued yet."""


@dataclass(frozen=True, slots=True)
class Loading:
    """A fetch stamped with ``seq`` is in flight."""

    seq: int


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    """The fetch stamped with ``seq`` delivered ``value``."""

    value: T
    seq: int


@dataclass(frozen=True, slots=True)
class Failure:
    """The fetch stamped with ``seq`` failed with ``error``."""

    error: ErrorInfo
    seq: int


ResourceState = Union[NotRequested, Loading, Success[T], Failure]


@dataclass(frozen=True, slots=True)
class RemoteResource(Generic[T]):
    """Immutable resource slot.

    Attributes:
        state: Current state of the resource.
        latest_seq: Sequence number of the most recently issued request.
        key: Argument of the most recent request (query, entry id, ...).
    """

    state: ResourceState = field(default_factory=NotRequested)
    latest_seq: int = 0
    key: Hashable = None

    # Transitions --------------------------------------------------------

    def request(
        self, key: Hashable = None, *, force: bool = False
    ) -> tuple["RemoteResource[T]", Optional[int]]:
        """Enter ``Loading`` and return the sequence the fetch must carry.

        Args:
            key: Argument of the fetch. A request while already loading the
                same key is a duplicate.
            force: Always issue a fresh sequence, superseding any fetch still
                in flight. Used when a mutation has made that fetch outdated.

        Returns:
            tuple[RemoteResource, Optional[int]]: The updated resource and the
            sequence to schedule, or ``None`` when the request is a duplicate
            and no fetch should be issued.
        """
        if not force and isinstance(self.state, Loading) and self.key == key:
            return self, None
        seq = self.latest_seq + 1
        return RemoteResource(state=Loading(seq), latest_seq=seq, key=key), seq

    def accepts(self, seq: int) -> bool:
        """Return whether a completion stamped with ``seq`` is current."""
        return isinstance(self.state, Loading) and seq == self.latest_seq

    def resolve_success(self, seq: int, value: T) -> "RemoteResource[T]":
        if not self.accepts(seq):
            return self
        return RemoteResource(state=Success(value, seq), latest_seq=seq, key=self.key)

    def resolve_failure(self, seq: int, error: ErrorInfo) -> "RemoteResource[T]":
        if not self.accepts(seq):
            return self
        return RemoteResource(state=Failure(error, seq), latest_seq=seq, key=self.key)

    def with_value(self, value: T, key: Hashable = None) -> "RemoteResource[T]":
        """Install a value delivered by a mutation response.

        The sequence is bumped so a fetch still in flight cannot overwrite the
        fresher value when it completes.
        """
        seq = self.latest_seq + 1
        resolved_key = self.key if key is None else key
        return RemoteResource(state=Success(value, seq), latest_seq=seq, key=resolved_key)

    def reset(self) -> "RemoteResource[T]":
        """Return to ``NotRequested`` while keeping the sequence counter."""
        return RemoteResource(state=NotRequested(), latest_seq=self.latest_seq, key=None)

    # Read helpers -------------------------------------------------------

    @property
    def is_not_requested(self) -> bool:
        return isinstance(self.state, NotRequested)

    @property
    def is_loading(self) -> bool:
        return isinstance(self.state, Loading)

    @property
    def is_success(self) -> bool:
        return isinstance(self.state, Success)

    @property
    def is_failure(self) -> bool:
        return isinstance(self.state, Failure)

    @property
    def error(self) -> Optional[ErrorInfo]:
        return self.state.error if isinstance(self.state, Failure) else None

    def value_or_none(self) -> Optional[T]:
        return self.state.value if isinstance(self.state, Success) else None

    def get_or_default(self, fallback: T) -> T:
        return self.state.value if isinstance(self.state, Success) else fallback

    def map(self, fn: Callable[[T], U]) -> "RemoteResource[U]":
        """Apply ``fn`` to a successful value, leaving other states untouched."""
        if isinstance(self.state, Success):
            mapped = Success(fn(self.state.value), self.state.seq)
            return RemoteResource(state=mapped, latest_seq=self.latest_seq, key=self.key)
        return self  # type: ignore[return-value]

    def describe(self) -> str:
        """Return a short label for logs and CLI output."""
        if isinstance(self.state, Failure):
            return f"failure ({self.state.error.message})"
        return {
            NotRequested: "not requested",
            Loading: "loading",
            Success: "loaded",
        }[type(self.state)]


__all__ = [
    "NotRequested",
    "Loading",
    "Success",
    "Failure",
    "ResourceState",
    "RemoteResource",
]
