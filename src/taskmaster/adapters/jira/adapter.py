"""
Jira Ticketing Provider - Implements TicketingProviderPort for Atlassian Jira.

Tasks become Stories and subtasks become Sub-tasks linked to their parent
story. The ticket key is kept in task metadata under ``jiraKey``.
"""

import re
from typing import Any

from taskmaster.core.domain.entities import Subtask, Task
from taskmaster.core.domain.enums import TaskPriority, TaskStatus
from taskmaster.core.domain.ref_ids import extract_ref_id_from_title
from taskmaster.core.exceptions import NotFoundError, TicketingError
from taskmaster.core.ports.config_provider import JiraConfig, is_placeholder
from taskmaster.core.ports.ticketing import CreatedTicket, RemoteTicketStatus

from ..base import BaseTicketingProvider
from .client import JiraApiClient


# Jira answers 400 "... has sub-tasks ..." when deleting a parent issue
SUBTASK_REFUSAL = re.compile(r"sub-?tasks?", re.IGNORECASE)


def text_to_adf(*paragraphs: str) -> dict[str, Any]:
    """Wrap plain text paragraphs in an Atlassian Document Format document."""
    content = [
        {"type": "paragraph", "content": [{"type": "text", "text": text}]} for text in paragraphs if text
    ]
    if not content:
        content = [{"type": "paragraph", "content": []}]
    return {"type": "doc", "version": 1, "content": content}


class JiraTicketingProvider(BaseTicketingProvider):
    """
    Jira implementation of the TicketingProviderPort.

    Translates between tasks and Jira issues. All client exceptions are
    caught here and reported as None/False.
    """

    METADATA_KEY = "jiraKey"
    TITLE_FORMAT = "{ref_id}-{title}"

    STATUS_TO_TICKET = {
        TaskStatus.PENDING: "To Do",
        TaskStatus.IN_PROGRESS: "In Progress",
        TaskStatus.REVIEW: "In Review",
        TaskStatus.DONE: "Done",
        TaskStatus.CANCELLED: "Cancelled",
        TaskStatus.DEFERRED: "To Do",
        TaskStatus.BLOCKED: "Blocked",
    }
    DEFAULT_TICKET_STATUS = "To Do"
    TICKET_TO_STATUS = {
        "to do": TaskStatus.PENDING,
        "todo": TaskStatus.PENDING,
        "open": TaskStatus.PENDING,
        "backlog": TaskStatus.PENDING,
        "in progress": TaskStatus.IN_PROGRESS,
        "in review": TaskStatus.REVIEW,
        "review": TaskStatus.REVIEW,
        "done": TaskStatus.DONE,
        "closed": TaskStatus.DONE,
        "resolved": TaskStatus.DONE,
        "cancelled": TaskStatus.CANCELLED,
        "canceled": TaskStatus.CANCELLED,
        "blocked": TaskStatus.BLOCKED,
    }

    PRIORITY_TO_TICKET = {
        TaskPriority.HIGH: "High",
        TaskPriority.MEDIUM: "Medium",
        TaskPriority.LOW: "Low",
    }
    DEFAULT_TICKET_PRIORITY = "Medium"
    TICKET_TO_PRIORITY = {
        "highest": TaskPriority.HIGH,
        "high": TaskPriority.HIGH,
        "critical": TaskPriority.HIGH,
        "blocker": TaskPriority.HIGH,
        "medium": TaskPriority.MEDIUM,
        "low": TaskPriority.LOW,
        "lowest": TaskPriority.LOW,
        "minor": TaskPriority.LOW,
        "trivial": TaskPriority.LOW,
    }

    def __init__(
        self,
        config: JiraConfig,
        dry_run: bool = False,
        timeout: float = JiraApiClient.DEFAULT_TIMEOUT,
    ):
        """
        Initialize the Jira provider.

        Args:
            config: Jira credentials and project
            dry_run: If True, log mutations instead of sending them
            timeout: Per-request timeout in seconds
        """
        super().__init__(dry_run=dry_run)
        self.config = config
        self._client = JiraApiClient(
            base_url=config.url,
            email=config.email,
            api_token=config.api_token,
            dry_run=dry_run,
            timeout=timeout,
        )

    # -------------------------------------------------------------------------
    # Properties and configuration
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return "Jira"

    @property
    def is_connected(self) -> bool:
        return self._client.is_connected

    def test_connection(self) -> bool:
        return self._client.test_connection()

    def is_configured(self) -> bool:
        return self.config.is_valid()

    def validate_config(self) -> JiraConfig | None:
        required = (
            ("project key", "project_key", "JIRA_PROJECT_KEY"),
            ("base URL", "url", "JIRA_URL"),
            ("email", "email", "JIRA_EMAIL"),
            ("API token", "api_token", "JIRA_API_TOKEN"),
        )
        for label, attr, env_var in required:
            if not getattr(self.config, attr):
                self.logger.error(f"Jira {label} is not configured. Set {env_var} or jira.{attr} in your config file.")
                return None

        for label, attr in (("base URL", "url"), ("email", "email"), ("API token", "api_token")):
            if is_placeholder(getattr(self.config, attr)):
                self.logger.error(f"Jira {label} contains placeholder values. Please update your configuration.")
                return None

        return self.config

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create_story(self, task: Task) -> CreatedTicket | None:
        if self.validate_config() is None:
            return None
        if task is None or not task.title:
            self.logger.error("Missing required task data for creating Jira story")
            return None

        fields: dict[str, Any] = {
            "project": {"key": self.config.project_key},
            "summary": self.format_title_for_ticket(task)[:255],
            "description": text_to_adf(task.description, task.details),
            "issuetype": {"name": self.config.story_issue_type},
        }
        priority = self.map_priority_to_ticket(task.priority)
        if priority:
            fields["priority"] = {"name": priority}

        return self._create_issue(fields)

    def create_task(self, subtask: Subtask, parent_ticket_id: str) -> CreatedTicket | None:
        if self.validate_config() is None:
            return None
        if not parent_ticket_id:
            self.logger.error(f"Cannot create Jira sub-task for {subtask.compound_id}: no parent ticket")
            return None
        parent_exists = self.ticket_exists(parent_ticket_id)
        if parent_exists is False:
            self.logger.error(f"Parent ticket {parent_ticket_id} does not exist in Jira")
            return None
        if parent_exists is None:
            return None

        fields: dict[str, Any] = {
            "project": {"key": self.config.project_key},
            "parent": {"key": parent_ticket_id},
            "summary": self.format_title_for_ticket(subtask)[:255],
            "description": text_to_adf(subtask.description, subtask.details),
            "issuetype": {"name": self.config.subtask_issue_type},
        }
        if subtask.priority is not None:
            fields["priority"] = {"name": self.map_priority_to_ticket(subtask.priority)}

        return self._create_issue(fields)

    def _create_issue(self, fields: dict[str, Any]) -> CreatedTicket | None:
        """POST an issue, retrying once without priority if Jira rejects that field."""
        if self._dry_run:
            self.logger.info(
                f"[DRY-RUN] Would create {fields['issuetype']['name']} '{fields['summary'][:50]}'"
            )
            return None

        try:
            result = self._client.create_issue(fields)
        except TicketingError as e:
            if "priority" in fields and "priority" in str(e).lower():
                self.logger.warning("Jira rejected the priority field, retrying without priority")
                fields = {k: v for k, v in fields.items() if k != "priority"}
                return self._create_issue(fields)
            self.logger.error(f"Error creating Jira issue: {e}")
            return None

        key = result.get("key")
        if not key:
            self.logger.error("Jira did not return a key for the created issue")
            return None

        self.logger.info(f"Created Jira issue {key}")
        return CreatedTicket(
            key=key,
            id=result.get("id"),
            url=f"{self._client.base_url}/browse/{key}",
            raw=result,
        )

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def find_ticket_by_ref_id(self, ref_id: str) -> str | None:
        if not ref_id or self.validate_config() is None:
            return None

        jql = f'project = "{self.config.project_key}" AND summary ~ "{ref_id}" ORDER BY created DESC'
        try:
            issues = self._client.search_jql(jql, ["summary"])
        except TicketingError as e:
            self.logger.error(f"Error searching Jira for {ref_id}: {e}")
            return None

        for issue in issues:
            summary = issue.get("fields", {}).get("summary", "")
            if extract_ref_id_from_title(summary) == ref_id:
                return issue.get("key")
        return None

    def ticket_exists(self, ticket_id: str) -> bool | None:
        """True or False from Jira itself; None when Jira could not be asked."""
        if not ticket_id or self.validate_config() is None:
            return None
        try:
            self._client.get_issue(ticket_id, ["summary"])
        except NotFoundError:
            return False
        except TicketingError as e:
            self.logger.error(f"Could not check whether {ticket_id} exists: {e}")
            return None
        return True

    def get_ticket_status(self, ticket_id: str) -> RemoteTicketStatus | None:
        if not ticket_id or self.validate_config() is None:
            return None
        try:
            data = self._client.get_issue(ticket_id, ["status", "updated"])
        except TicketingError as e:
            self.logger.error(f"Error fetching Jira ticket status for {ticket_id}: {e}")
            return None

        fields = data.get("fields") or {}
        status = (fields.get("status") or {}).get("name")
        if not status:
            return None
        return RemoteTicketStatus(status=status, updated=fields.get("updated"))

    # -------------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------------

    def update_ticket_status(
        self,
        ticket_id: str,
        status: TaskStatus,
        task_data: Task | Subtask | None = None,
    ) -> bool:
        if not ticket_id or self.validate_config() is None:
            return False

        jira_status = self.map_status_to_ticket(status)

        # Only a confirmed 404 recreates; an unreachable Jira keeps the key
        if task_data is not None and self.ticket_exists(ticket_id) is False:
            recreated = self._recreate(ticket_id, task_data)
            if recreated is None:
                return False
            ticket_id = recreated

        if self._dry_run:
            self.logger.info(f"[DRY-RUN] Would transition {ticket_id} to {jira_status}")
            return True

        try:
            transitions = self._client.get_transitions(ticket_id)
            target = jira_status.lower()
            transition = next(
                (
                    t
                    for t in transitions
                    if (t.get("to") or {}).get("name", "").lower() == target or t.get("name", "").lower() == target
                ),
                None,
            )

            if transition is None:
                current = self.get_ticket_status(ticket_id)
                if current is not None and current.status.lower() == target:
                    self.logger.debug(f"{ticket_id} is already in status {jira_status}")
                    return True
                available = ", ".join(t.get("name", "") for t in transitions)
                self.logger.error(f"No transition found for status: {jira_status} (available: {available})")
                return False

            self._client.transition_issue(ticket_id, transition["id"])
        except TicketingError as e:
            self.logger.error(f"Error updating Jira status for {ticket_id}: {e}")
            return False

        self.logger.info(f"Updated Jira ticket {ticket_id} to status: {jira_status}")
        return True

    def _recreate(self, missing_ticket_id: str, task_data: Task | Subtask) -> str | None:
        """Recreate a ticket that vanished remotely. Only top-level tasks can be recreated here."""
        if isinstance(task_data, Subtask):
            self.logger.warning(
                f"Ticket {missing_ticket_id} for subtask {task_data.compound_id} no longer exists; "
                f"run sync-tickets to recreate it under its parent"
            )
            return None

        self.logger.info(f"Ticket {missing_ticket_id} not found in Jira, recreating")
        created = self.create_story(task_data)
        if created is None:
            return None
        self.store_ticket_id(task_data, created.key)
        return created.key

    def update_ticket_details(
        self,
        ticket_id: str,
        new_data: Task | Subtask,
        previous_data: Task | Subtask | None = None,
    ) -> bool:
        if not ticket_id or self.validate_config() is None:
            return False

        fields: dict[str, Any] = {}
        if previous_data is None or new_data.title != previous_data.title:
            fields["summary"] = self.format_title_for_ticket(new_data)[:255]
        if (
            previous_data is None
            or new_data.description != previous_data.description
            or new_data.details != previous_data.details
        ):
            fields["description"] = text_to_adf(new_data.description, new_data.details)
        if new_data.priority is not None and (previous_data is None or new_data.priority != previous_data.priority):
            fields["priority"] = {"name": self.map_priority_to_ticket(new_data.priority)}

        if not fields:
            self.logger.debug(f"No detail changes to send for {ticket_id}")
            return True

        if self._dry_run:
            self.logger.info(f"[DRY-RUN] Would update {', '.join(sorted(fields))} on {ticket_id}")
            return True

        try:
            self._client.update_issue(ticket_id, fields)
        except TicketingError as e:
            self.logger.error(f"Error updating Jira ticket {ticket_id}: {e}")
            return False

        self.logger.info(f"Updated {', '.join(sorted(fields))} on Jira ticket {ticket_id}")
        return True

    def delete_ticket(self, ticket_id: str) -> bool:
        if not ticket_id or self.validate_config() is None:
            return False

        if self._dry_run:
            self.logger.info(f"[DRY-RUN] Would delete {ticket_id}")
            return True

        try:
            self._client.delete_issue(ticket_id)
        except NotFoundError:
            self.logger.warning(f"Jira ticket {ticket_id} was already deleted")
            return True
        except TicketingError as e:
            if SUBTASK_REFUSAL.search(str(e)):
                self.logger.warning(
                    f"Jira refused to delete {ticket_id} because it still has sub-tasks; "
                    f"{ticket_id} is kept and its sub-task tickets stay cancelled"
                )
            else:
                self.logger.error(f"Error deleting Jira ticket {ticket_id}: {e}")
            return False

        self.logger.info(f"Deleted Jira ticket {ticket_id}")
        return True
