"""
Event Bus - In-process publish/subscribe for task lifecycle events.

The bus is a plain object owned by whoever composes the application
(see EventSystem); nothing here is global. Dispatch is synchronous and
in subscription order. Subscribers that want to do slow work hand it to
an executor and return the Future, which ``emit_and_collect`` gives back
to callers that need to wait.
"""

from __future__ import annotations

import logging
import os
import threading
from collections import deque
from collections.abc import Callable
from concurrent.futures import Future
from typing import Any

from taskmaster.core.domain.entities import format_timestamp, utc_now
from taskmaster.core.domain.enums import EventType
from taskmaster.core.domain.events import TaskEvent


Subscriber = Callable[[TaskEvent], Any]
Unsubscribe = Callable[[], None]

MAX_HISTORY = 100
DEBUG_ENV_VARS = ("TASKMASTER_DEBUG_EVENTS", "DEBUG_EVENTS")


def debug_events_enabled(environ: Any = None) -> bool:
    env = os.environ if environ is None else environ
    return any(str(env.get(name, "")).lower() in ("1", "true", "yes") for name in DEBUG_ENV_VARS)


class EventBus:
    """
    Routes TaskEvents to the callbacks subscribed to their EventType.

    A callback that raises is logged and skipped; the remaining callbacks
    still run. The last ``MAX_HISTORY`` emissions are kept for diagnostics.
    """

    def __init__(self, history_size: int = MAX_HISTORY, debug: bool | None = None):
        self._subscribers: dict[EventType, list[Subscriber]] = {}
        self._history: deque[dict[str, Any]] = deque(maxlen=history_size)
        self._lock = threading.Lock()
        self._debug = debug_events_enabled() if debug is None else debug
        self.logger = logging.getLogger("EventBus")

    def _trace(self, message: str) -> None:
        self.logger.log(logging.INFO if self._debug else logging.DEBUG, message)

    # -------------------------------------------------------------------------
    # Subscription
    # -------------------------------------------------------------------------

    def subscribe(self, event_type: EventType | str, callback: Subscriber) -> Unsubscribe:
        """
        Register ``callback`` for ``event_type``.

        Returns:
            Function removing exactly this registration. Calling it again
            does nothing.
        """
        event_type = EventType(event_type)
        with self._lock:
            self._subscribers.setdefault(event_type, []).append(callback)
            count = len(self._subscribers[event_type])
        self._trace(f"Subscribed to {event_type} ({count} subscribers)")

        removed = False

        def unsubscribe() -> None:
            nonlocal removed
            with self._lock:
                if removed:
                    return
                removed = True
                callbacks = self._subscribers.get(event_type)
                if callbacks is None:
                    return
                # Identity match: the same function may be subscribed twice
                for index, existing in enumerate(callbacks):
                    if existing is callback:
                        del callbacks[index]
                        break
                if not callbacks:
                    del self._subscribers[event_type]
            self._trace(f"Unsubscribed from {event_type}")

        return unsubscribe

    def clear(self) -> None:
        """Remove every subscriber and forget the history."""
        with self._lock:
            self._subscribers.clear()
            self._history.clear()

    # -------------------------------------------------------------------------
    # Emission
    # -------------------------------------------------------------------------

    def emit(self, event_type: EventType | str, payload: TaskEvent) -> bool:
        """
        Deliver ``payload`` to every subscriber of ``event_type``.

        Returns:
            True if at least one subscriber was registered.
        """
        return bool(self._dispatch(EventType(event_type), payload)[0])

    def emit_and_collect(self, event_type: EventType | str, payload: TaskEvent) -> list[Future[Any]]:
        """
        Like ``emit``, but return the Futures subscribers handed back.

        Callers that must observe full propagation wait on the result, for
        example with ``concurrent.futures.wait``.
        """
        return self._dispatch(EventType(event_type), payload)[1]

    def _dispatch(self, event_type: EventType, payload: TaskEvent) -> tuple[int, list[Future[Any]]]:
        with self._lock:
            # Snapshot: callbacks may (un)subscribe while we iterate
            callbacks = list(self._subscribers.get(event_type, ()))
            self._history.append(
                {
                    "timestamp": format_timestamp(utc_now()),
                    "eventType": event_type.value,
                    "subscriberCount": len(callbacks),
                    "dataSnapshot": payload.snapshot() if isinstance(payload, TaskEvent) else None,
                }
            )

        self._trace(f"Emitting {event_type} to {len(callbacks)} subscribers")

        futures: list[Future[Any]] = []
        for callback in callbacks:
            try:
                result = callback(payload)
            except Exception as e:
                self.logger.error(f"Error in {event_type} subscriber: {e}", exc_info=True)
                continue
            if isinstance(result, Future):
                futures.append(result)
        return len(callbacks), futures

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def get_subscribers_map(self) -> dict[EventType, list[Subscriber]]:
        """Copy of the current subscriptions."""
        with self._lock:
            return {event_type: list(callbacks) for event_type, callbacks in self._subscribers.items()}

    def subscriber_counts(self) -> dict[str, int]:
        with self._lock:
            return {event_type.value: len(callbacks) for event_type, callbacks in self._subscribers.items()}

    def has_subscribers(self, event_type: EventType | str) -> bool:
        with self._lock:
            return bool(self._subscribers.get(EventType(event_type)))

    def get_emitted_events(self) -> list[dict[str, Any]]:
        """Recent emissions, oldest first."""
        with self._lock:
            return list(self._history)
