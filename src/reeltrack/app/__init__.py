"""Application state, intents, reducer and runtime."""

from .effects import (
    NOTIFICATION_TIMER,
    SEARCH_TIMER,
    CallService,
    CancelTimer,
    Effect,
    ServiceResult,
    StartTimer,
)
from .intents import INTENT_TYPES, Intent
from .reducer import Reducer, Transition, reduce
from .runtime import Store, TimerRegistry
from .state import (
    AppState,
    EntryDetailPage,
    FriendsPage,
    HomePage,
    LibraryPage,
    NotFoundPage,
    Notification,
    Page,
    TagsPage,
    default_filters,
)

__all__ = [
    "AppState",
    "CallService",
    "CancelTimer",
    "Effect",
    "EntryDetailPage",
    "FriendsPage",
    "HomePage",
    "INTENT_TYPES",
    "Intent",
    "LibraryPage",
    "NOTIFICATION_TIMER",
    "NotFoundPage",
    "Notification",
    "Page",
    "Reducer",
    "SEARCH_TIMER",
    "ServiceResult",
    "StartTimer",
    "Store",
    "TagsPage",
    "TimerRegistry",
    "Transition",
    "default_filters",
    "reduce",
]
