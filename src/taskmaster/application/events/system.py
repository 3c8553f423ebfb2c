"""
Event System - lifecycle of the bus, the handler pool, and the subscriptions.

One EventSystem per process (or per test) plays the role of the composition
root: it loads configuration, builds the provider factory and handlers, and
owns the thread pool handler bodies run on.
"""

from __future__ import annotations

import logging
import threading
from concurrent import futures
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from taskmaster.core.domain.enums import EventType
from taskmaster.core.domain.events import TaskEvent
from taskmaster.core.exceptions import TaskMasterError
from taskmaster.core.ports.config_provider import ConfigProviderPort
from taskmaster.core.ports.task_store import TaskStorePort
from taskmaster.core.services import TicketingProviderFactory, is_ticketing_enabled

from .bus import EventBus, Unsubscribe
from .handlers import Handler, TicketingEventHandlers
from .registrar import register_ticketing_subscribers


class EventSystem:
    """
    Owns the event bus and the ticketing subscriptions.

    ``initialize`` and ``shutdown`` may be called any number of times; only
    the first call of each (per cycle) does work.
    """

    def __init__(
        self,
        config_provider: ConfigProviderPort,
        store: TaskStorePort,
        bus: EventBus | None = None,
        asynchronous: bool = True,
    ):
        """
        Args:
            config_provider: Source of the ticketing configuration
            store: Task store the handlers persist through
            bus: Bus to subscribe on (a new one by default)
            asynchronous: Run handler bodies on a thread pool instead of
                on the emitting thread
        """
        self.config_provider = config_provider
        self.store = store
        self.bus = bus or EventBus()
        self.asynchronous = asynchronous
        self.factory: TicketingProviderFactory | None = None
        self.handlers: TicketingEventHandlers | None = None

        self._initialized = False
        self._lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None
        self._unsubscribe: Unsubscribe | None = None
        self._pending: set[Future[Any]] = set()
        self.logger = logging.getLogger("EventSystem")

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> bool:
        """
        Load configuration and register the ticketing subscribers.

        Returns:
            True once the system is initialized, False if configuration
            could not be loaded
        """
        with self._lock:
            if self._initialized:
                self.logger.debug("Event system already initialized")
                return True

            try:
                config = self.config_provider.load()
            except (TaskMasterError, ValueError, TypeError) as e:
                self.logger.error(f"Failed to initialize event system: {e}")
                return False

            self.factory = TicketingProviderFactory(config)
            self.handlers = TicketingEventHandlers(self.factory, self.store)

            submit = None
            if self.asynchronous:
                self._executor = ThreadPoolExecutor(
                    max_workers=max(1, config.sync.max_workers),
                    thread_name_prefix="ticketing",
                )
                submit = self._submit

            self._unsubscribe = register_ticketing_subscribers(self.bus, self.handlers, config, submit=submit)
            self._initialized = True

        self.logger.info(
            f"Event system initialized (ticketing {'enabled' if is_ticketing_enabled(config) else 'disabled'})"
        )
        return True

    def shutdown(self, wait: bool = True) -> None:
        """Remove the subscriptions and stop the handler pool."""
        with self._lock:
            if not self._initialized:
                return
            if self._unsubscribe is not None:
                self._unsubscribe()
                self._unsubscribe = None
            executor, self._executor = self._executor, None
            self.factory = None
            self.handlers = None
            self._initialized = False

        # Outside the lock: finishing handlers call _discard
        if executor is not None:
            executor.shutdown(wait=wait)
        with self._lock:
            self._pending.clear()
        self.logger.info("Event system shut down")

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def _submit(self, handler: Handler, event: TaskEvent) -> Future[Any]:
        executor = self._executor
        if executor is None:
            raise RuntimeError("Event system is not initialized")
        future = executor.submit(handler, event)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._discard)
        return future

    def _discard(self, future: Future[Any]) -> None:
        with self._lock:
            self._pending.discard(future)

    def emit_and_wait(self, event_type: EventType, event: TaskEvent, timeout: float | None = None) -> bool:
        """
        Emit ``event`` and block until every handler it started has finished.

        Returns:
            True if all handlers finished within ``timeout``
        """
        started = self.bus.emit_and_collect(event_type, event)
        if not started:
            return True
        _, not_done = futures.wait(started, timeout=timeout)
        return not not_done

    def wait_for_pending(self, timeout: float | None = None) -> bool:
        """
        Wait for every handler still running.

        Returns:
            True if nothing is left pending
        """
        with self._lock:
            pending = list(self._pending)
        if not pending:
            return True
        self.logger.debug(f"Waiting for {len(pending)} pending ticketing handlers")
        _, not_done = futures.wait(pending, timeout=timeout)
        if not_done:
            self.logger.warning(f"{len(not_done)} ticketing handlers still running after {timeout}s")
        return not not_done

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def check_ticketing_status(self) -> dict[str, Any]:
        """Snapshot of the integration state for status displays."""
        status: dict[str, Any] = {
            "ticketingEnabled": False,
            "projectRoot": None,
            "eventSubscribers": self.bus.subscriber_counts(),
        }
        try:
            config = self.config_provider.load()
        except (TaskMasterError, ValueError, TypeError) as e:
            status["error"] = str(e)
            return status

        status["ticketingEnabled"] = is_ticketing_enabled(config)
        status["projectRoot"] = config.project_root
        return status
