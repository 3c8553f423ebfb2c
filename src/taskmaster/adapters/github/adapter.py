"""
GitHub Projects Ticketing Provider - placeholder for GitHub issues on a project board.
"""

from taskmaster.core.domain.enums import TaskPriority, TaskStatus
from taskmaster.core.ports.config_provider import GitHubConfig

from ..base import PlaceholderTicketingProvider


class GitHubProjectsTicketingProvider(PlaceholderTicketingProvider):
    """GitHub Projects implementation of the TicketingProviderPort (placeholder)."""

    METADATA_KEY = "githubIssueId"
    TITLE_FORMAT = "[{ref_id}] {title}"

    # GitHub issues only know open/closed
    STATUS_TO_TICKET = {
        TaskStatus.PENDING: "open",
        TaskStatus.IN_PROGRESS: "open",
        TaskStatus.REVIEW: "open",
        TaskStatus.DEFERRED: "open",
        TaskStatus.BLOCKED: "open",
        TaskStatus.DONE: "closed",
        TaskStatus.CANCELLED: "closed",
    }
    DEFAULT_TICKET_STATUS = "open"
    TICKET_TO_STATUS = {
        "open": TaskStatus.PENDING,
        "closed": TaskStatus.DONE,
    }

    PRIORITY_TO_TICKET = {
        TaskPriority.HIGH: "priority:high",
        TaskPriority.MEDIUM: "priority:medium",
        TaskPriority.LOW: "priority:low",
    }
    DEFAULT_TICKET_PRIORITY = "priority:medium"
    TICKET_TO_PRIORITY = {
        "priority:high": TaskPriority.HIGH,
        "priority:medium": TaskPriority.MEDIUM,
        "priority:low": TaskPriority.LOW,
    }

    def __init__(self, config: GitHubConfig, dry_run: bool = False):
        super().__init__(dry_run=dry_run)
        self.config = config
        self.logger.warning("GitHub Projects ticketing system is a placeholder and not yet fully implemented")

    @property
    def name(self) -> str:
        return "GitHub Projects"

    def is_configured(self) -> bool:
        return bool(self.config.token and self.config.owner and (self.config.repo or self.config.project_number))

    def validate_config(self) -> GitHubConfig | None:
        if not self.is_configured():
            self.logger.warning("GitHub Projects is not properly configured")
            return None
        return self.config
