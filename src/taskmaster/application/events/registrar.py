"""
Ticketing subscriber registration.

Connects each TicketingEventHandlers method to its EventType on a bus.
With a ``submit`` function the handler bodies run off the emitting thread
and the subscriber returns their Future.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import Future
from typing import Any

from taskmaster.core.domain.events import TaskEvent
from taskmaster.core.ports.config_provider import AppConfig
from taskmaster.core.services import is_ticketing_enabled

from .bus import EventBus, Unsubscribe
from .handlers import Handler, TicketingEventHandlers


Submit = Callable[[Handler, TaskEvent], "Future[Any]"]

logger = logging.getLogger("TicketingRegistrar")


def _noop() -> None:
    return None


def _make_subscriber(handler: Handler, submit: Submit | None) -> Callable[[TaskEvent], Future[Any] | None]:
    def subscriber(event: TaskEvent) -> Future[Any] | None:
        if submit is None:
            handler(event)
            return None
        return submit(handler, event)

    subscriber.__name__ = getattr(handler, "__name__", "ticketing_subscriber")
    return subscriber


def register_ticketing_subscribers(
    bus: EventBus,
    handlers: TicketingEventHandlers,
    config: AppConfig,
    submit: Submit | None = None,
) -> Unsubscribe:
    """
    Subscribe the ticketing handlers to every lifecycle event.

    Args:
        bus: Bus to subscribe on
        handlers: Bound handler set
        config: Loaded configuration; nothing is registered when ticketing is disabled
        submit: Runs a handler asynchronously and returns its Future. Handlers
            run inline on the emitting thread when omitted.

    Returns:
        Function removing every subscription made here
    """
    if not is_ticketing_enabled(config):
        logger.info("Ticketing integration disabled, no subscribers registered")
        return _noop

    unsubscribers = [
        bus.subscribe(event_type, _make_subscriber(handler, submit))
        for event_type, handler in handlers.routes().items()
    ]
    logger.debug(f"Registered {len(unsubscribers)} ticketing subscribers")

    def unsubscribe_all() -> None:
        for unsubscribe in unsubscribers:
            unsubscribe()

    return unsubscribe_all
