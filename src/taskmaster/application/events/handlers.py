"""
Ticketing Event Handlers - mirror task lifecycle events into the ticketing system.

One handler per EventType. Every handler resolves its task from the event,
asks the factory for a provider (none means nothing to do), and calls the
provider. Metadata the provider hands back (ticket keys, reference IDs) is
merged into the task store under its transaction lock and mirrored onto
the event's ``data``.

Handlers never raise: failures are logged and the next event is handled
normally.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any

from taskmaster.core.domain.entities import REF_ID, Subtask, Task
from taskmaster.core.domain.enums import EventType, TaskStatus
from taskmaster.core.domain.events import TaskEvent
from taskmaster.core.domain.ref_ids import ensure_ref_id
from taskmaster.core.ports.task_store import TaskStorePort
from taskmaster.core.ports.ticketing import TicketingProviderPort
from taskmaster.core.services import TicketingProviderFactory


Handler = Callable[[TaskEvent], None]


def swallow_errors(func: Callable[[TicketingEventHandlers, TaskEvent], None]) -> Handler:
    """Log and discard anything a handler raises."""

    @functools.wraps(func)
    def wrapper(self: TicketingEventHandlers, event: TaskEvent) -> None:
        try:
            func(self, event)
        except Exception as e:
            self.logger.error(f"Error in {func.__name__} for task {event.task_id}: {e}", exc_info=True)

    return wrapper


class TicketingEventHandlers:
    """
    The eight lifecycle handlers, bound to one provider factory and task store.
    """

    def __init__(self, factory: TicketingProviderFactory, store: TaskStorePort):
        self.factory = factory
        self.store = store
        self.logger = logging.getLogger("TicketingEventHandlers")

    def routes(self) -> dict[EventType, Handler]:
        """Which handler serves which event type."""
        return {
            EventType.TASK_CREATED: self.on_task_created,
            EventType.TASK_UPDATED: self.on_task_updated,
            EventType.TASK_STATUS_CHANGED: self.on_task_status_changed,
            EventType.TASK_DELETED: self.on_task_deleted,
            EventType.SUBTASK_CREATED: self.on_subtask_created,
            EventType.SUBTASK_UPDATED: self.on_subtask_updated,
            EventType.SUBTASK_STATUS_CHANGED: self.on_subtask_status_changed,
            EventType.SUBTASK_DELETED: self.on_subtask_deleted,
        }

    # -------------------------------------------------------------------------
    # Resolution helpers
    # -------------------------------------------------------------------------

    def _provider(self, event: TaskEvent) -> TicketingProviderPort | None:
        provider = self.factory.get_instance()
        if provider is None:
            self.logger.info(f"No ticketing provider available, skipping {event.event_type} for {event.task_id}")
        return provider

    def _resolve_task(self, event: TaskEvent) -> Task | None:
        task = event.task or event.data.find_task(event.task_id)
        if task is None:
            self.logger.warning(f"Task {event.task_id} not found, skipping {event.event_type}")
        return task

    def _resolve_subtask(self, event: TaskEvent) -> tuple[Task | None, Subtask | None]:
        found = event.data.find_subtask(event.task_id)
        if found is not None:
            return found
        if event.subtask is not None:
            return event.task, event.subtask
        self.logger.warning(f"Subtask {event.task_id} not found, skipping {event.event_type}")
        return None, None

    def _persist_metadata(self, event: TaskEvent, item: Task | Subtask, changes: dict[str, Any]) -> None:
        """Merge ``changes`` into the stored copy of ``item`` and into the event's data."""
        with self.store.transaction(event.tasks_path) as data:
            if isinstance(item, Subtask):
                found = data.find_subtask(item.compound_id)
                stored: Task | Subtask | None = found[1] if found else None
            else:
                stored = data.find_task(item.id)
            if stored is None:
                self.logger.warning(f"Task {item.compound_id} is no longer in {event.tasks_path}")
            else:
                stored.metadata.update(changes)
        item.metadata.update(changes)

    def _persist_if_rekeyed(
        self,
        event: TaskEvent,
        provider: TicketingProviderPort,
        item: Task | Subtask,
        old_key: str,
    ) -> None:
        # Providers may recreate a vanished ticket during a status update
        new_key = provider.get_ticket_id(item)
        if new_key and new_key != old_key:
            self.logger.info(f"Ticket for {item.compound_id} was recreated as {new_key}")
            changes = {provider.metadata_key: new_key}
            if item.ref_id:
                changes[REF_ID] = item.ref_id
            self._persist_metadata(event, item, changes)

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    @swallow_errors
    def on_task_created(self, event: TaskEvent) -> None:
        task = self._resolve_task(event)
        if task is None:
            return
        provider = self._provider(event)
        if provider is None:
            return

        existing = provider.get_ticket_id(task)
        if existing:
            self.logger.info(f"Task {task.id} already has {provider.name} ticket {existing}")
            return

        ref_id = ensure_ref_id(task)
        created = provider.create_story(task)
        if created is None:
            self.logger.warning(f"Could not create {provider.name} ticket for task {task.id}")
            return

        self._persist_metadata(event, task, {REF_ID: ref_id, provider.metadata_key: created.key})
        self.logger.info(f"Created {provider.name} ticket {created.key} for task {task.id}")

    @swallow_errors
    def on_task_updated(self, event: TaskEvent) -> None:
        task = self._resolve_task(event)
        if task is None:
            return
        provider = self._provider(event)
        if provider is None:
            return

        ticket_id = provider.get_ticket_id(task)
        if not ticket_id:
            self.logger.info(f"Task {task.id} has no {provider.name} ticket, nothing to update")
            return

        if provider.update_ticket_details(ticket_id, task, event.previous_task):
            self.logger.info(f"Updated {provider.name} ticket {ticket_id} for task {task.id}")
        else:
            self.logger.warning(f"Failed to update {provider.name} ticket {ticket_id} for task {task.id}")

    @swallow_errors
    def on_task_status_changed(self, event: TaskEvent) -> None:
        task = self._resolve_task(event)
        if task is None:
            return
        provider = self._provider(event)
        if provider is None:
            return

        ticket_id = provider.get_ticket_id(task)
        if not ticket_id:
            self.logger.info(f"Task {task.id} has no {provider.name} ticket, skipping status update")
            return

        status = event.new_status or task.status
        if provider.update_ticket_status(ticket_id, status, task):
            self.logger.info(f"Updated {provider.name} ticket {ticket_id} to {status}")
            self._persist_if_rekeyed(event, provider, task, ticket_id)
        else:
            self.logger.warning(f"Failed to update {provider.name} ticket {ticket_id} to {status}")

        # Subtasks follow the parent's status as-is
        for subtask in task.subtasks:
            subtask_ticket = provider.get_ticket_id(subtask, parent_task=task)
            if not subtask_ticket:
                continue
            if provider.update_ticket_status(subtask_ticket, status, subtask):
                self.logger.info(f"Updated {provider.name} ticket {subtask_ticket} (subtask {subtask.compound_id})")
            else:
                self.logger.warning(f"Failed to update {provider.name} ticket {subtask_ticket} to {status}")

    @swallow_errors
    def on_task_deleted(self, event: TaskEvent) -> None:
        task = event.task or event.previous_task
        if task is None:
            self.logger.warning(f"Deleted task {event.task_id} not included in event, skipping")
            return
        provider = self._provider(event)
        if provider is None:
            return

        # Subtask tickets are kept as cancelled, only the task's own ticket is deleted
        for subtask in task.subtasks:
            subtask_ticket = provider.get_ticket_id(subtask, parent_task=task)
            if not subtask_ticket:
                continue
            if provider.update_ticket_status(subtask_ticket, TaskStatus.CANCELLED):
                self.logger.info(f"Cancelled {provider.name} ticket {subtask_ticket} (subtask {subtask.compound_id})")
            else:
                self.logger.warning(f"Failed to cancel {provider.name} ticket {subtask_ticket}")

        ticket_id = provider.get_ticket_id(task)
        if not ticket_id:
            self.logger.info(f"Task {task.id} has no {provider.name} ticket to delete")
            return
        if provider.delete_ticket(ticket_id):
            self.logger.info(f"Deleted {provider.name} ticket {ticket_id} for task {task.id}")
        else:
            self.logger.warning(f"Failed to delete {provider.name} ticket {ticket_id}")

    # -------------------------------------------------------------------------
    # Subtasks
    # -------------------------------------------------------------------------

    @swallow_errors
    def on_subtask_created(self, event: TaskEvent) -> None:
        parent, subtask = self._resolve_subtask(event)
        if subtask is None:
            return
        if parent is None:
            self.logger.warning(f"Parent task for subtask {event.task_id} not found")
            return
        provider = self._provider(event)
        if provider is None:
            return

        existing = provider.get_ticket_id(subtask, parent_task=parent)
        if existing:
            self.logger.info(f"Subtask {subtask.compound_id} already has {provider.name} ticket {existing}")
            return

        parent_ticket = provider.get_ticket_id(parent)
        if not parent_ticket:
            self.logger.warning(
                f"Parent task {parent.id} has no {provider.name} ticket, "
                f"cannot create ticket for subtask {subtask.compound_id}"
            )
            return

        ref_id = ensure_ref_id(subtask)
        created = provider.create_task(subtask, parent_ticket)
        if created is None:
            self.logger.warning(f"Could not create {provider.name} ticket for subtask {subtask.compound_id}")
            return

        self._persist_metadata(event, subtask, {REF_ID: ref_id, provider.metadata_key: created.key})
        self.logger.info(f"Created {provider.name} ticket {created.key} for subtask {subtask.compound_id}")

    @swallow_errors
    def on_subtask_updated(self, event: TaskEvent) -> None:
        parent, subtask = self._resolve_subtask(event)
        if subtask is None:
            return
        provider = self._provider(event)
        if provider is None:
            return

        ticket_id = provider.get_ticket_id(subtask, parent_task=parent)
        if not ticket_id:
            self.logger.info(f"Subtask {subtask.compound_id} has no {provider.name} ticket, nothing to update")
            return

        if provider.update_ticket_details(ticket_id, subtask, event.previous_subtask):
            self.logger.info(f"Updated {provider.name} ticket {ticket_id} for subtask {subtask.compound_id}")
        else:
            self.logger.warning(f"Failed to update {provider.name} ticket {ticket_id}")

    @swallow_errors
    def on_subtask_status_changed(self, event: TaskEvent) -> None:
        parent, subtask = self._resolve_subtask(event)
        if subtask is None:
            return
        provider = self._provider(event)
        if provider is None:
            return

        ticket_id = provider.get_ticket_id(subtask, parent_task=parent)
        if not ticket_id:
            self.logger.info(f"Subtask {subtask.compound_id} has no {provider.name} ticket, skipping status update")
            return

        status = event.new_status or subtask.status
        if provider.update_ticket_status(ticket_id, status, subtask):
            self.logger.info(f"Updated {provider.name} ticket {ticket_id} to {status}")
        else:
            self.logger.warning(f"Failed to update {provider.name} ticket {ticket_id} to {status}")

    @swallow_errors
    def on_subtask_deleted(self, event: TaskEvent) -> None:
        subtask = event.subtask or event.previous_subtask
        if subtask is None:
            self.logger.warning(f"Deleted subtask {event.task_id} not included in event, skipping")
            return
        provider = self._provider(event)
        if provider is None:
            return

        ticket_id = provider.get_ticket_id(subtask, parent_task=event.task)
        if not ticket_id:
            self.logger.info(f"Subtask {subtask.compound_id} has no {provider.name} ticket to delete")
            return
        if provider.delete_ticket(ticket_id):
            self.logger.info(f"Deleted {provider.name} ticket {ticket_id} for subtask {subtask.compound_id}")
        else:
            self.logger.warning(f"Failed to delete {provider.name} ticket {ticket_id}")
