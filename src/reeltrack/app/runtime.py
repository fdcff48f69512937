"""Asyncio runtime owning the application state."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Collection, Optional

from reeltrack.config import ReeltrackConfig
from reeltrack.errors import ErrorInfo, ErrorKind, ServiceError
from reeltrack.service import LibraryService

from .effects import CallService, CancelTimer, Effect, ServiceResult, StartTimer
from .intents import Intent
from .reducer import Reducer
from .state import AppState

LOGGER = logging.getLogger(__name__)

Subscriber = Callable[[AppState, Intent], None]

_STOP = object()


class TimerRegistry:
    """Named, cancellable one-shot timers.

    Starting a timer under a name that is already scheduled cancels the
    earlier one, so only the most recent timer per name can fire.
    """

    def __init__(self, fire: Callable[[Intent], None]) -> None:
        self._fire = fire
        self._handles: dict[str, asyncio.TimerHandle] = {}

    def start(self, name: str, delay: float, intent: Intent) -> None:
        self.cancel(name)
        loop = asyncio.get_running_loop()
        self._handles[name] = loop.call_later(max(0.0, delay), self._expire, name, intent)

    def cancel(self, name: str) -> None:
        handle = self._handles.pop(name, None)
        if handle is not None:
            handle.cancel()

    def cancel_all(self) -> None:
        for name in list(self._handles):
            self.cancel(name)

    def pending(self, *, ignore: Collection[str] = ()) -> list[str]:
        return [name for name in self._handles if name not in ignore]

    def seconds_until(self, name: str) -> float:
        handle = self._handles[name]
        return max(0.0, handle.when() - asyncio.get_running_loop().time())

    def __contains__(self, name: object) -> bool:
        return name in self._handles

    def _expire(self, name: str, intent: Intent) -> None:
        self._handles.pop(name, None)
        self._fire(intent)


class Store:
    """Serial intent processor backed by an :class:`asyncio.Queue`.

    Intents are reduced one at a time; effects run as tasks whose outcomes
    are dispatched back as intents. Nothing else writes to the state.

    Args:
        service: Library service executing :class:`CallService` effects.
        config: Effective configuration; defaults apply when omitted.
        state: Initial snapshot; derived from ``config`` when omitted.
    """

    def __init__(
        self,
        service: LibraryService,
        *,
        config: Optional[ReeltrackConfig] = None,
        state: Optional[AppState] = None,
    ) -> None:
        self._config = config or ReeltrackConfig()
        self._service = service
        self._reducer = Reducer(self._config)
        self._state = state or AppState.initial(self._config)
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._tasks: set[asyncio.Task[None]] = set()
        self._timers = TimerRegistry(self.dispatch)
        self._subscribers: list[Subscriber] = []
        self._running = False

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def timers(self) -> TimerRegistry:
        return self._timers

    def dispatch(self, intent: Intent) -> None:
        """Enqueue ``intent`` for processing."""
        self._queue.put_nowait(intent)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` to run after every processed intent.

        Returns:
            Callable[[], None]: Function removing the subscription.
        """
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    async def settle(self, *, ignore_timers: Collection[str] = ()) -> AppState:
        """Process intents until no intent, service call or timer is pending.

        Args:
            ignore_timers: Timer names that should not be waited for (for
                example notification auto-clear timers in a one-shot CLI).

        Returns:
            AppState: The settled snapshot.
        """
        while True:
            self._drain()
            if self._tasks:
                await asyncio.wait(set(self._tasks))
                continue
            pending = self._timers.pending(ignore=ignore_timers)
            if pending:
                delay = min(self._timers.seconds_until(name) for name in pending)
                await asyncio.sleep(delay)
                continue
            if self._queue.empty():
                return self._state

    async def run(self) -> None:
        """Process intents until :meth:`stop` is called."""
        self._running = True
        while self._running:
            item = await self._queue.get()
            if item is _STOP:
                break
            self._process(item)  # type: ignore[arg-type]
        self._running = False

    def stop(self) -> None:
        """Stop :meth:`run` and cancel every pending timer."""
        self._timers.cancel_all()
        self._running = False
        self._queue.put_nowait(_STOP)

    # Internals ----------------------------------------------------------

    def _drain(self) -> None:
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is _STOP:
                continue
            self._process(item)  # type: ignore[arg-type]

    def _process(self, intent: Intent) -> None:
        self._state, effects = self._reducer.reduce(self._state, intent)
        for effect in effects:
            self._execute(effect)
        for callback in list(self._subscribers):
            callback(self._state, intent)

    def _execute(self, effect: Effect) -> None:
        if isinstance(effect, CallService):
            task = asyncio.get_running_loop().create_task(self._call(effect))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        elif isinstance(effect, StartTimer):
            self._timers.start(effect.name, effect.delay, effect.intent)
        elif isinstance(effect, CancelTimer):
            self._timers.cancel(effect.name)
        else:
            raise TypeError(f"Unsupported effect: {type(effect).__name__}")

    async def _call(self, effect: CallService) -> None:
        operation = getattr(self._service, effect.operation)
        try:
            value = await operation(*effect.args)
        except ServiceError as exc:
            LOGGER.warning("Service call %s failed: %s", effect.operation, exc.message)
            result: ServiceResult[object] = ServiceResult.failure(exc.to_error_info())
        except Exception as exc:  # pragma: no cover - defensive
            LOGGER.exception("Unexpected error during service call %s", effect.operation)
            result = ServiceResult.failure(
                ErrorInfo(
                    message=str(exc) or type(exc).__name__,
                    kind=ErrorKind.NETWORK,
                    retry_hint="Try again.",
                )
            )
        else:
            LOGGER.debug("Service call %s succeeded", effect.operation)
            result = ServiceResult.success(value)
        self.dispatch(effect.on_result(result))


__all__ = ["Store", "Subscriber", "TimerRegistry"]
