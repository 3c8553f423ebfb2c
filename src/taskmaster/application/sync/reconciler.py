"""
Status Reconciler - decides which side wins when local and remote status differ.

Last write wins, by timestamp:
- local ``lastStatusUpdate`` at or after the remote ``updated`` (or no
  remote timestamp): the local status is pushed to the ticket
- remote strictly newer: the mapped remote status replaces the local one

An item that has never recorded ``lastStatusUpdate`` is stamped "now"
first, so a first sync pushes rather than pulls.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum

from taskmaster.core.domain.entities import Subtask, Task, parse_timestamp, utc_now
from taskmaster.core.ports.ticketing import TicketingProviderPort


@dataclass
class SyncStats:
    """Counters accumulated over one synchronization run."""

    tasks_created: int = 0
    subtasks_created: int = 0
    tasks_updated: int = 0
    subtasks_updated: int = 0
    tickets_updated: int = 0
    timestamps_initialized: int = 0
    errors: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)

    def count_updated(self, item: Task | Subtask) -> None:
        if isinstance(item, Subtask):
            self.subtasks_updated += 1
        else:
            self.tasks_updated += 1


class ReconcileOutcome(Enum):
    """What ``StatusReconciler.synchronize`` did."""

    UNAVAILABLE = "unavailable"
    IN_SYNC = "in_sync"
    PUSHED = "pushed"
    PUSH_FAILED = "push_failed"
    PULLED = "pulled"


class StatusReconciler:
    """
    Resolve a status mismatch between one work item and its ticket.

    The item is changed in place; persisting it is the caller's job
    (``PULLED`` and a freshly initialized timestamp both leave it dirty).
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock
        self.logger = logging.getLogger("StatusReconciler")

    def synchronize(
        self,
        item: Task | Subtask,
        ticket_id: str,
        provider: TicketingProviderPort,
        stats: SyncStats | None = None,
    ) -> ReconcileOutcome:
        stats = stats if stats is not None else SyncStats()
        label = f"{'subtask' if isinstance(item, Subtask) else 'task'} {item.compound_id}"

        remote = provider.get_ticket_status(ticket_id)
        if remote is None:
            self.logger.debug(f"No status available for {ticket_id}, skipping {label}")
            return ReconcileOutcome.UNAVAILABLE

        remote_status = provider.map_ticket_status_to_taskmaster(remote.status)

        if not item.last_status_update:
            item.touch_status(self._clock())
            stats.timestamps_initialized += 1
            self.logger.debug(f"Initialized lastStatusUpdate for {label}")

        if item.status == remote_status:
            return ReconcileOutcome.IN_SYNC

        local_time = parse_timestamp(item.last_status_update)
        remote_time = parse_timestamp(remote.updated)

        if self._local_wins(local_time, remote_time):
            self.logger.info(
                f"Local status of {label} ({item.status}) is newer, updating {ticket_id} (was {remote.status})"
            )
            if provider.update_ticket_status(ticket_id, item.status, item):
                stats.tickets_updated += 1
                return ReconcileOutcome.PUSHED
            self.logger.error(f"Failed to update {ticket_id} to {item.status}, local status kept")
            stats.errors += 1
            return ReconcileOutcome.PUSH_FAILED

        self.logger.info(f"Remote status of {ticket_id} ({remote.status}) is newer, updating {label} to {remote_status}")
        item.status = remote_status
        item.touch_status(self._clock())
        stats.count_updated(item)
        return ReconcileOutcome.PULLED

    @staticmethod
    def _local_wins(local_time: datetime | None, remote_time: datetime | None) -> bool:
        if remote_time is None:
            return True
        if local_time is None:
            return False
        return local_time >= remote_time
