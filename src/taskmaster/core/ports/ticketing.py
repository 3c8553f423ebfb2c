"""
Ticketing Provider Port - Abstract interface for remote issue trackers.

Implementations:
- JiraTicketingProvider: Atlassian Jira Cloud (REST API v3)
- AzureDevOpsTicketingProvider: Azure DevOps Boards (placeholder)
- GitHubProjectsTicketingProvider: GitHub Projects (placeholder)

Failure policy: implementations never raise across this interface.
Network, auth, and HTTP failures are logged and surface as ``None`` or
``False`` so callers can treat "no result" uniformly.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from taskmaster.core.domain.entities import Subtask, Task
from taskmaster.core.domain.enums import TaskPriority, TaskStatus


@dataclass
class CreatedTicket:
    """Result of creating a remote ticket."""

    key: str
    id: str | None = None
    url: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class RemoteTicketStatus:
    """Status of a remote ticket together with its last-modified timestamp."""

    status: str
    updated: str | None = None


class TicketingProviderPort(ABC):
    """
    Abstract interface for ticketing systems.

    A provider is bound to one project configuration at construction time.
    """

    # -------------------------------------------------------------------------
    # Identity and configuration
    # -------------------------------------------------------------------------

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name (e.g. "Jira")."""
        ...

    @property
    @abstractmethod
    def metadata_key(self) -> str:
        """Key under which the ticket identifier is stored in task metadata."""
        ...

    @property
    def dry_run(self) -> bool:
        """Whether mutating remote calls are only logged."""
        return False

    @abstractmethod
    def is_configured(self) -> bool:
        """Check whether every required credential is present."""
        ...

    @abstractmethod
    def validate_config(self) -> Any | None:
        """
        Validate configuration, logging each problem found.

        Returns:
            The provider config object, or None if invalid
        """
        ...

    # -------------------------------------------------------------------------
    # Remote operations
    # -------------------------------------------------------------------------

    @abstractmethod
    def create_story(self, task: Task) -> CreatedTicket | None:
        """Create the remote ticket mirroring a top-level task."""
        ...

    @abstractmethod
    def create_task(self, subtask: Subtask, parent_ticket_id: str) -> CreatedTicket | None:
        """
        Create the remote ticket mirroring a subtask.

        Args:
            subtask: The local subtask
            parent_ticket_id: Ticket of the parent task; must exist remotely

        Returns:
            The created ticket, or None if the parent is missing or the call failed
        """
        ...

    @abstractmethod
    def find_ticket_by_ref_id(self, ref_id: str) -> str | None:
        """Find a ticket whose title carries ``ref_id``."""
        ...

    @abstractmethod
    def ticket_exists(self, ticket_id: str) -> bool | None:
        """
        Check whether a ticket exists remotely.

        Returns:
            True if it exists, False only when the remote system says it is
            gone, None when that could not be determined (network, auth, 5xx)
        """
        ...

    @abstractmethod
    def get_ticket_status(self, ticket_id: str) -> RemoteTicketStatus | None:
        ...

    @abstractmethod
    def update_ticket_status(
        self,
        ticket_id: str,
        status: TaskStatus,
        task_data: Task | Subtask | None = None,
    ) -> bool:
        """
        Move a ticket to the provider status matching ``status``.

        If the ticket no longer exists and ``task_data`` is given, the
        provider recreates it first.
        """
        ...

    @abstractmethod
    def update_ticket_details(
        self,
        ticket_id: str,
        new_data: Task | Subtask,
        previous_data: Task | Subtask | None = None,
    ) -> bool:
        """Send only the fields that differ between ``previous_data`` and ``new_data``."""
        ...

    @abstractmethod
    def delete_ticket(self, ticket_id: str) -> bool:
        ...

    # -------------------------------------------------------------------------
    # Local helpers
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_ticket_id(self, item: Task | Subtask, parent_task: Task | None = None) -> str | None:
        """
        Read the ticket identifier from an item's metadata.

        Subtasks never inherit their parent's ticket; ``parent_task`` is
        accepted for symmetry only.
        """
        ...

    @abstractmethod
    def store_ticket_id(self, item: Task | Subtask, ticket_id: str) -> Task | Subtask:
        ...

    def clear_ticket_id(self, item: Task | Subtask) -> None:
        """Forget the stored ticket identifier (the remote ticket is gone)."""
        item.metadata.pop(self.metadata_key, None)

    @abstractmethod
    def map_status_to_ticket(self, status: TaskStatus | str) -> str:
        ...

    @abstractmethod
    def map_ticket_status_to_taskmaster(self, ticket_status: str | None) -> TaskStatus:
        ...

    @abstractmethod
    def map_priority_to_ticket(self, priority: TaskPriority | str | None) -> str:
        ...

    @abstractmethod
    def map_ticket_priority_to_taskmaster(self, ticket_priority: str | None) -> TaskPriority:
        ...

    @abstractmethod
    def format_title_for_ticket(self, item: Task | Subtask) -> str:
        ...
