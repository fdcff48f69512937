"""Error taxonomy shared by the Reeltrack core."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Classification attached to every surfaced failure."""

    NETWORK = "network"
    VALIDATION = "validation"
    SERVER = "server"
    STALE = "stale"


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    """User-presentable description of a failure.

    Attributes:
        message: Human-readable message rendered inline by the UI.
        kind: Classification of the failure.
        retry_hint: Optional suggestion describing how to recover.
    """

    message: str
    kind: ErrorKind = ErrorKind.SERVER
    retry_hint: Optional[str] = None

    @classmethod
    def validation(cls, message: str) -> "ErrorInfo":
        """Return a validation error that never reached the service."""
        return cls(message=message, kind=ErrorKind.VALIDATION)

    @property
    def is_retryable(self) -> bool:
        return self.kind in {ErrorKind.NETWORK, ErrorKind.SERVER}


class ReeltrackError(Exception):
    """Base exception for Reeltrack."""


class ServiceError(ReeltrackError):
    """Raised by a library service when a request cannot be fulfilled."""

    kind: ErrorKind = ErrorKind.SERVER
    default_retry_hint: Optional[str] = None

    def __init__(self, message: str, *, retry_hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.retry_hint = retry_hint if retry_hint is not None else self.default_retry_hint

    def to_error_info(self) -> ErrorInfo:
        """Convert the exception into the value stored in state."""
        return ErrorInfo(message=self.message, kind=self.kind, retry_hint=self.retry_hint)


class NetworkError(ServiceError):
    """Raised when the transport failed before a response was received."""

    kind = ErrorKind.NETWORK
    default_retry_hint = "Check the connection and try again."


class ServerError(ServiceError):
    """Raised when the service answered with an error message."""

    kind = ErrorKind.SERVER


class InvalidTransitionError(ReeltrackError):
    """Raised when a watch-status action is not valid for the current state."""

    def __init__(self, status_label: str, action: str, reason: Optional[str] = None) -> None:
        message = f"Cannot {action.replace('_', ' ')} an entry that is {status_label}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.status_label = status_label
        self.action = action


__all__ = [
    "ErrorKind",
    "ErrorInfo",
    "ReeltrackError",
    "ServiceError",
    "NetworkError",
    "ServerError",
    "InvalidTransitionError",
]
