"""
Azure DevOps Ticketing Provider - placeholder for Azure Boards work items.

Configuration, mapping tables, and title format are in place; remote
operations are not implemented yet and report failure.
"""

from taskmaster.core.domain.enums import TaskPriority, TaskStatus
from taskmaster.core.ports.config_provider import AzureDevOpsConfig

from ..base import PlaceholderTicketingProvider


class AzureDevOpsTicketingProvider(PlaceholderTicketingProvider):
    """Azure DevOps implementation of the TicketingProviderPort (placeholder)."""

    METADATA_KEY = "azureWorkItemId"
    TITLE_FORMAT = "{ref_id}: {title}"

    STATUS_TO_TICKET = {
        TaskStatus.PENDING: "To Do",
        TaskStatus.IN_PROGRESS: "Doing",
        TaskStatus.REVIEW: "Review",
        TaskStatus.DONE: "Done",
        TaskStatus.CANCELLED: "Removed",
        TaskStatus.DEFERRED: "To Do",
        TaskStatus.BLOCKED: "Doing",
    }
    DEFAULT_TICKET_STATUS = "To Do"
    TICKET_TO_STATUS = {
        "to do": TaskStatus.PENDING,
        "new": TaskStatus.PENDING,
        "doing": TaskStatus.IN_PROGRESS,
        "active": TaskStatus.IN_PROGRESS,
        "review": TaskStatus.REVIEW,
        "done": TaskStatus.DONE,
        "closed": TaskStatus.DONE,
        "removed": TaskStatus.CANCELLED,
    }

    # Azure priorities are numeric, 1 highest
    PRIORITY_TO_TICKET = {
        TaskPriority.HIGH: "1",
        TaskPriority.MEDIUM: "2",
        TaskPriority.LOW: "3",
    }
    DEFAULT_TICKET_PRIORITY = "2"
    TICKET_TO_PRIORITY = {
        "1": TaskPriority.HIGH,
        "2": TaskPriority.MEDIUM,
        "3": TaskPriority.LOW,
        "4": TaskPriority.LOW,
    }

    def __init__(self, config: AzureDevOpsConfig, dry_run: bool = False):
        super().__init__(dry_run=dry_run)
        self.config = config
        self.logger.warning("Azure DevOps ticketing system is a placeholder and not yet fully implemented")

    @property
    def name(self) -> str:
        return "Azure DevOps"

    def is_configured(self) -> bool:
        return self.config.is_valid()

    def validate_config(self) -> AzureDevOpsConfig | None:
        if not self.is_configured():
            self.logger.warning("Azure DevOps is not properly configured")
            return None
        return self.config
