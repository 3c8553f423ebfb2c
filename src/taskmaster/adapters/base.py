"""
Base Ticketing Provider - behaviour shared by every concrete provider.

Subclasses declare their metadata key, status/priority tables and title
format as class attributes and implement the remote operations.
"""

import logging
from typing import ClassVar

from taskmaster.core.domain.entities import Subtask, Task
from taskmaster.core.domain.enums import TaskPriority, TaskStatus
from taskmaster.core.domain.ref_ids import get_ref_id
from taskmaster.core.ports.ticketing import TicketingProviderPort


class BaseTicketingProvider(TicketingProviderPort):
    """
    Table-driven mapping and metadata handling for ticketing providers.
    """

    METADATA_KEY: ClassVar[str] = ""
    TITLE_FORMAT: ClassVar[str] = "{ref_id}-{title}"

    STATUS_TO_TICKET: ClassVar[dict[TaskStatus, str]] = {}
    DEFAULT_TICKET_STATUS: ClassVar[str] = ""
    # Keys are lowercase provider status names
    TICKET_TO_STATUS: ClassVar[dict[str, TaskStatus]] = {}
    DEFAULT_TASK_STATUS: ClassVar[TaskStatus] = TaskStatus.PENDING

    PRIORITY_TO_TICKET: ClassVar[dict[TaskPriority, str]] = {}
    DEFAULT_TICKET_PRIORITY: ClassVar[str] = ""
    TICKET_TO_PRIORITY: ClassVar[dict[str, TaskPriority]] = {}
    DEFAULT_TASK_PRIORITY: ClassVar[TaskPriority] = TaskPriority.MEDIUM

    def __init__(self, dry_run: bool = False):
        self._dry_run = dry_run
        self.logger = logging.getLogger(type(self).__name__)

    @property
    def metadata_key(self) -> str:
        return self.METADATA_KEY

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    # -------------------------------------------------------------------------
    # Ticket identifiers
    # -------------------------------------------------------------------------

    def get_ticket_id(self, item: Task | Subtask, parent_task: Task | None = None) -> str | None:
        if item is None:
            return None
        value = item.metadata.get(self.METADATA_KEY)
        if value:
            return str(value)
        return None

    def store_ticket_id(self, item: Task | Subtask, ticket_id: str) -> Task | Subtask:
        if item is not None and ticket_id:
            item.metadata[self.METADATA_KEY] = ticket_id
        return item

    # -------------------------------------------------------------------------
    # Mapping tables
    # -------------------------------------------------------------------------

    def map_status_to_ticket(self, status: TaskStatus | str) -> str:
        if not isinstance(status, TaskStatus):
            normalized = str(status or "").strip().lower()
            status = next((s for s in TaskStatus if s.value == normalized), None)
        if status is None:
            return self.DEFAULT_TICKET_STATUS
        return self.STATUS_TO_TICKET.get(status, self.DEFAULT_TICKET_STATUS)

    def map_ticket_status_to_taskmaster(self, ticket_status: str | None) -> TaskStatus:
        if not ticket_status:
            return self.DEFAULT_TASK_STATUS
        return self.TICKET_TO_STATUS.get(ticket_status.strip().lower(), self.DEFAULT_TASK_STATUS)

    def map_priority_to_ticket(self, priority: TaskPriority | str | None) -> str:
        if not isinstance(priority, TaskPriority):
            normalized = str(priority or "").strip().lower()
            priority = next((p for p in TaskPriority if p.value == normalized), None)
        if priority is None:
            return self.DEFAULT_TICKET_PRIORITY
        return self.PRIORITY_TO_TICKET.get(priority, self.DEFAULT_TICKET_PRIORITY)

    def map_ticket_priority_to_taskmaster(self, ticket_priority: str | None) -> TaskPriority:
        if not ticket_priority:
            return self.DEFAULT_TASK_PRIORITY
        return self.TICKET_TO_PRIORITY.get(ticket_priority.strip().lower(), self.DEFAULT_TASK_PRIORITY)

    # -------------------------------------------------------------------------
    # Titles
    # -------------------------------------------------------------------------

    def format_title_for_ticket(self, item: Task | Subtask) -> str:
        if item is None or not item.title:
            return ""
        ref_id = get_ref_id(item)
        if not ref_id:
            return item.title
        return self.TITLE_FORMAT.format(ref_id=ref_id, title=item.title)


class PlaceholderTicketingProvider(BaseTicketingProvider):
    """
    Provider whose remote operations are not implemented yet.

    Mapping, metadata, and title formatting work; every remote call logs a
    warning and reports failure so handlers skip it like any other miss.
    """

    def _not_implemented(self, operation: str) -> None:
        self.logger.warning(f"{self.name} {operation} is not yet implemented")

    def create_story(self, task: Task) -> None:
        self._not_implemented("create_story")
        return None

    def create_task(self, subtask: Subtask, parent_ticket_id: str) -> None:
        self._not_implemented("create_task")
        return None

    def find_ticket_by_ref_id(self, ref_id: str) -> None:
        self._not_implemented("find_ticket_by_ref_id")
        return None

    def ticket_exists(self, ticket_id: str) -> None:
        self._not_implemented("ticket_exists")
        return None

    def get_ticket_status(self, ticket_id: str) -> None:
        self._not_implemented("get_ticket_status")
        return None

    def update_ticket_status(
        self,
        ticket_id: str,
        status: TaskStatus,
        task_data: Task | Subtask | None = None,
    ) -> bool:
        self._not_implemented("update_ticket_status")
        return False

    def update_ticket_details(
        self,
        ticket_id: str,
        new_data: Task | Subtask,
        previous_data: Task | Subtask | None = None,
    ) -> bool:
        self._not_implemented("update_ticket_details")
        return False

    def delete_ticket(self, ticket_id: str) -> bool:
        self._not_implemented("delete_ticket")
        return False
