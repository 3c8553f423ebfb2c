"""
Batch ticket synchronization - bring every task in a tasks file in line with
the ticketing system in one pass.

Unlike the event handlers, this walks the whole file: missing tickets are
found by reference ID or created, vanished tickets are recreated, and
every linked pair goes through the StatusReconciler. The file is written
once at the end, and not at all in dry-run mode.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from taskmaster.core.domain.entities import Subtask, Task
from taskmaster.core.domain.enums import TaskStatus
from taskmaster.core.domain.ref_ids import ensure_ref_id
from taskmaster.core.exceptions import TaskStoreError
from taskmaster.core.ports.config_provider import AppConfig
from taskmaster.core.ports.task_store import TaskStorePort
from taskmaster.core.ports.ticketing import TicketingProviderPort
from taskmaster.core.services import TicketingProviderFactory, is_ticketing_enabled

from .reconciler import StatusReconciler, SyncStats


# Ticket existence could not be determined
UNREACHABLE = object()


@dataclass
class SyncTicketsResult:
    """Outcome of ``TicketSynchronizer.sync_tickets``."""

    success: bool
    message: str
    stats: SyncStats = field(default_factory=SyncStats)
    dry_run: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "stats": self.stats.to_dict(),
            "dryRun": self.dry_run,
        }


def summary_message(stats: SyncStats) -> str:
    return (
        f"Synchronization complete: {stats.tasks_created} tasks created, "
        f"{stats.subtasks_created} subtasks created, {stats.tasks_updated} tasks updated, "
        f"{stats.subtasks_updated} subtasks updated, {stats.errors} errors"
    )


class TicketSynchronizer:
    """
    Full-file synchronization between a tasks file and the ticketing system.
    """

    def __init__(
        self,
        config: AppConfig,
        store: TaskStorePort,
        factory: TicketingProviderFactory | None = None,
        reconciler: StatusReconciler | None = None,
    ):
        self.config = config
        self.store = store
        self.factory = factory or TicketingProviderFactory(config)
        self.reconciler = reconciler or StatusReconciler()
        self.logger = logging.getLogger("TicketSynchronizer")
        self._debug = False

    def _trace(self, message: str) -> None:
        self.logger.log(logging.INFO if self._debug else logging.DEBUG, message)

    def sync_tickets(
        self,
        tasks_path: str | None = None,
        force: bool = False,
        debug: bool = False,
    ) -> SyncTicketsResult:
        """
        Synchronize every task and subtask in ``tasks_path``.

        Args:
            tasks_path: Tasks file (defaults to the configured one)
            force: Run even when the integration is disabled in config
            debug: Log each item's handling at INFO level

        Returns:
            SyncTicketsResult with counters and a summary message
        """
        self._debug = debug
        path = tasks_path or self.config.tasks_path
        if not path:
            return SyncTicketsResult(success=False, message="No tasks file configured")

        if not is_ticketing_enabled(self.config) and not force:
            return SyncTicketsResult(
                success=False,
                message="Ticketing integration is not enabled (use force to sync anyway)",
            )

        provider = self.factory.get_instance(self.config.ticketing.system if force else None)
        if provider is None:
            return SyncTicketsResult(
                success=False,
                message=f"No ticketing provider available for system '{self.config.ticketing.system}'",
            )

        stats = SyncStats()
        self.logger.info(f"Synchronizing {path} with {provider.name}")
        try:
            if provider.dry_run:
                # Previews run on a copy; the tasks file is never written
                for task in self.store.read(path).tasks:
                    self._sync_task(provider, task, stats)
                self.logger.info(f"[DRY-RUN] {path} left unchanged")
            else:
                with self.store.transaction(path) as data:
                    for task in data.tasks:
                        self._sync_task(provider, task, stats)
        except TaskStoreError as e:
            self.logger.error(f"Ticket synchronization failed: {e}")
            return SyncTicketsResult(success=False, message=str(e), stats=stats, dry_run=provider.dry_run)

        message = summary_message(stats)
        self.logger.info(message)
        return SyncTicketsResult(success=True, message=message, stats=stats, dry_run=provider.dry_run)

    # -------------------------------------------------------------------------
    # Per item
    # -------------------------------------------------------------------------

    def _sync_task(self, provider: TicketingProviderPort, task: Task, stats: SyncStats) -> None:
        ref_id = ensure_ref_id(task)
        self._trace(f"Task {task.id} ({ref_id}): {task.title}")

        ticket_id = self._existing_ticket(provider, task)
        if ticket_id is UNREACHABLE:
            stats.errors += 1
            ticket_id = None
        elif ticket_id is None:
            ticket_id = provider.find_ticket_by_ref_id(ref_id)
            if ticket_id:
                provider.store_ticket_id(task, ticket_id)
                stats.tasks_updated += 1
                self.logger.info(f"Linked task {task.id} to existing ticket {ticket_id}")
            else:
                created = provider.create_story(task)
                if created is not None:
                    provider.store_ticket_id(task, created.key)
                    stats.tasks_created += 1
                    self.logger.info(f"Created ticket {created.key} for task {task.id}")
                    self._push_initial_status(provider, created.key, task, stats)
                elif not provider.dry_run:
                    self.logger.error(f"Failed to create ticket for task {task.id}")
                    stats.errors += 1
                ticket_id = None
        if ticket_id:
            self.reconciler.synchronize(task, ticket_id, provider, stats)

        for subtask in task.subtasks:
            self._sync_subtask(provider, task, subtask, stats)

    def _sync_subtask(
        self,
        provider: TicketingProviderPort,
        parent: Task,
        subtask: Subtask,
        stats: SyncStats,
    ) -> None:
        ref_id = ensure_ref_id(subtask)
        self._trace(f"Subtask {subtask.compound_id} ({ref_id}): {subtask.title}")

        ticket_id = self._existing_ticket(provider, subtask)
        if ticket_id is UNREACHABLE:
            stats.errors += 1
            return
        if ticket_id is None:
            ticket_id = provider.find_ticket_by_ref_id(ref_id)
            if ticket_id:
                provider.store_ticket_id(subtask, ticket_id)
                stats.subtasks_updated += 1
                self.logger.info(f"Linked subtask {subtask.compound_id} to existing ticket {ticket_id}")
            else:
                parent_ticket = provider.get_ticket_id(parent)
                if not parent_ticket:
                    if not provider.dry_run:
                        self.logger.warning(
                            f"Parent task {parent.id} has no ticket, skipping subtask {subtask.compound_id}"
                        )
                        stats.errors += 1
                    return
                created = provider.create_task(subtask, parent_ticket)
                if created is not None:
                    provider.store_ticket_id(subtask, created.key)
                    stats.subtasks_created += 1
                    self.logger.info(f"Created ticket {created.key} for subtask {subtask.compound_id}")
                    self._push_initial_status(provider, created.key, subtask, stats)
                elif not provider.dry_run:
                    self.logger.error(f"Failed to create ticket for subtask {subtask.compound_id}")
                    stats.errors += 1
                return
        self.reconciler.synchronize(subtask, ticket_id, provider, stats)

    def _existing_ticket(self, provider: TicketingProviderPort, item: Task | Subtask) -> str | object | None:
        """
        Stored ticket id, if the remote ticket still exists.

        Returns None (clearing the stored id) only when the ticketing system
        reports the ticket gone, and UNREACHABLE (keeping the id) when it
        could not be asked.
        """
        ticket_id = provider.get_ticket_id(item)
        if not ticket_id:
            return None
        exists = provider.ticket_exists(ticket_id)
        if exists:
            return ticket_id
        if exists is None:
            self.logger.error(f"Could not check ticket {ticket_id} for {item.compound_id}, leaving it as is")
            return UNREACHABLE
        self.logger.warning(f"Ticket {ticket_id} for {item.compound_id} no longer exists, recreating")
        provider.clear_ticket_id(item)
        return None

    def _push_initial_status(
        self,
        provider: TicketingProviderPort,
        ticket_id: str,
        item: Task | Subtask,
        stats: SyncStats,
    ) -> None:
        # New tickets start in the workflow's initial state
        if item.status == TaskStatus.PENDING:
            return
        if provider.update_ticket_status(ticket_id, item.status):
            stats.tickets_updated += 1
        else:
            self.logger.warning(f"Could not set initial status {item.status} on {ticket_id}")
        if not item.last_status_update:
            item.touch_status()
            stats.timestamps_initialized += 1
