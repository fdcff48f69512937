"""Effects emitted by the reducer and executed by the runtime."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Generic, Optional, TypeVar, Union

from reeltrack.errors import ErrorInfo

if TYPE_CHECKING:
    from .intents import Intent

T = TypeVar("T")

SEARCH_TIMER = "search"
NOTIFICATION_TIMER = "notification"


@dataclass(frozen=True, slots=True)
class ServiceResult(Generic[T]):
    """Outcome of a service call, re-injected into the reducer.

    Exactly one of ``value`` and ``error`` is meaningful: ``error`` is set on
    failure and ``value`` otherwise (``None`` is a valid success value).
    """

    value: Optional[T] = None
    error: Optional[ErrorInfo] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "ServiceResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ErrorInfo) -> "ServiceResult[T]":
        return cls(error=error)


@dataclass(frozen=True, slots=True)
class CallService:
    """Invoke ``operation`` on the library service with ``args``.

    Attributes:
        operation: Name of the :class:`~reeltrack.service.LibraryService` coroutine.
        args: Positional arguments for the call.
        on_result: Builds the follow-up intent from the call outcome.
    """

    operation: str
    args: tuple[Any, ...]
    on_result: Callable[[ServiceResult[Any]], "Intent"]


@dataclass(frozen=True, slots=True)
class StartTimer:
    """Dispatch ``intent`` after ``delay`` seconds, replacing any timer named ``name``."""

    name: str
    delay: float
    intent: "Intent"


@dataclass(frozen=True, slots=True)
class CancelTimer:
    name: str


Effect = Union[CallService, StartTimer, CancelTimer]


__all__ = [
    "CallService",
    "CancelTimer",
    "Effect",
    "NOTIFICATION_TIMER",
    "SEARCH_TIMER",
    "ServiceResult",
    "StartTimer",
]
