"""
Shared pytest fixtures for the taskmaster test suite.

Fixture Categories:
- Environment: keep real credentials out of tests
- Domain: sample task collections
- Configuration: AppConfig with ticketing on or off
- Providers: in-memory ticketing provider and a factory returning it
- Stores: in-memory and file-backed task stores
"""

from __future__ import annotations

import json
import threading
from unittest.mock import MagicMock

import pytest

from taskmaster.adapters.base import BaseTicketingProvider
from taskmaster.adapters.config.environment import ENV_KEYS
from taskmaster.adapters.jira import JiraTicketingProvider
from taskmaster.adapters.task_store import InMemoryTaskStore
from taskmaster.core.domain.entities import Subtask, Task, TasksData
from taskmaster.core.domain.enums import TaskStatus
from taskmaster.core.domain.ref_ids import extract_ref_id_from_title
from taskmaster.core.ports.config_provider import AppConfig, JiraConfig, SyncConfig, TicketingConfig
from taskmaster.core.ports.ticketing import CreatedTicket, RemoteTicketStatus
from taskmaster.core.services import TicketingProviderFactory


TASKS_PATH = "tasks/tasks.json"


# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove taskmaster and tracker variables from the process environment."""
    for name in list(ENV_KEYS) + ["TASKMASTER_DEBUG_EVENTS", "DEBUG_EVENTS"]:
        monkeypatch.delenv(name, raising=False)


# =============================================================================
# Domain
# =============================================================================


def make_tasks_data() -> TasksData:
    return TasksData(
        tasks=[
            Task(
                id=1,
                title="Login page",
                status=TaskStatus.IN_PROGRESS,
                subtasks=[
                    Subtask(id=1, title="Form layout", parent_id=1),
                    Subtask(id=2, title="Validation", parent_id=1),
                ],
            ),
            Task(id=2, title="Password reset"),
        ]
    )


@pytest.fixture
def tasks_data() -> TasksData:
    """Two tasks, the first with two subtasks, no ticket metadata."""
    return make_tasks_data()


@pytest.fixture
def tasks_file(tmp_path):
    """A tasks.json on disk holding the sample tasks."""
    path = tmp_path / "tasks" / "tasks.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps(make_tasks_data().to_dict(), indent=2))
    return path


# =============================================================================
# Configuration
# =============================================================================


@pytest.fixture
def jira_config() -> JiraConfig:
    return JiraConfig(
        url="https://test.atlassian.net",
        email="test@example.com",
        api_token="test_token_123",
        project_key="PROJ",
    )


@pytest.fixture
def app_config(jira_config) -> AppConfig:
    """Ticketing enabled, Jira selected."""
    return AppConfig(
        ticketing=TicketingConfig(enabled=True, system="jira", jira=jira_config),
        sync=SyncConfig(dry_run=False, max_workers=2),
        project_root="/project",
        tasks_path=TASKS_PATH,
    )


@pytest.fixture
def disabled_config() -> AppConfig:
    return AppConfig(tasks_path=TASKS_PATH)


# =============================================================================
# Providers
# =============================================================================


class FakeTicketingProvider(BaseTicketingProvider):
    """
    In-memory ticketing system using Jira's key, title format and tables.

    ``tickets`` maps key -> {"status", "updated", "summary", "parent"}.
    ``calls`` records every remote operation in order.
    """

    METADATA_KEY = JiraTicketingProvider.METADATA_KEY
    TITLE_FORMAT = JiraTicketingProvider.TITLE_FORMAT
    STATUS_TO_TICKET = JiraTicketingProvider.STATUS_TO_TICKET
    DEFAULT_TICKET_STATUS = JiraTicketingProvider.DEFAULT_TICKET_STATUS
    TICKET_TO_STATUS = JiraTicketingProvider.TICKET_TO_STATUS
    PRIORITY_TO_TICKET = JiraTicketingProvider.PRIORITY_TO_TICKET
    DEFAULT_TICKET_PRIORITY = JiraTicketingProvider.DEFAULT_TICKET_PRIORITY
    TICKET_TO_PRIORITY = JiraTicketingProvider.TICKET_TO_PRIORITY

    def __init__(self, dry_run: bool = False):
        super().__init__(dry_run=dry_run)
        self.tickets: dict[str, dict] = {}
        self.calls: list[tuple] = []
        self.fail_status_updates = False
        # Keys whose existence check cannot reach the remote system
        self.unreachable: set[str] = set()
        self._counter = 0
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "Fake"

    def is_configured(self) -> bool:
        return True

    def validate_config(self):
        return {}

    def add_ticket(self, status: str = "To Do", updated: str | None = None, summary: str = "", parent=None) -> str:
        with self._lock:
            self._counter += 1
            key = f"PROJ-{self._counter}"
            self.tickets[key] = {"status": status, "updated": updated, "summary": summary, "parent": parent}
        return key

    def create_story(self, task):
        self.calls.append(("create_story", task.id))
        if self.dry_run:
            return None
        return CreatedTicket(key=self.add_ticket(summary=self.format_title_for_ticket(task)))

    def create_task(self, subtask, parent_ticket_id):
        self.calls.append(("create_task", subtask.compound_id, parent_ticket_id))
        if self.dry_run or parent_ticket_id not in self.tickets:
            return None
        key = self.add_ticket(summary=self.format_title_for_ticket(subtask), parent=parent_ticket_id)
        return CreatedTicket(key=key)

    def find_ticket_by_ref_id(self, ref_id):
        self.calls.append(("find_ticket_by_ref_id", ref_id))
        for key, ticket in self.tickets.items():
            if extract_ref_id_from_title(ticket["summary"]) == ref_id:
                return key
        return None

    def ticket_exists(self, ticket_id):
        if ticket_id in self.unreachable:
            return None
        return ticket_id in self.tickets

    def get_ticket_status(self, ticket_id):
        ticket = self.tickets.get(ticket_id)
        if ticket is None:
            return None
        return RemoteTicketStatus(status=ticket["status"], updated=ticket["updated"])

    def update_ticket_status(self, ticket_id, status, task_data=None):
        self.calls.append(("update_ticket_status", ticket_id, status))
        if self.fail_status_updates or ticket_id not in self.tickets:
            return False
        self.tickets[ticket_id]["status"] = self.map_status_to_ticket(status)
        return True

    def update_ticket_details(self, ticket_id, new_data, previous_data=None):
        self.calls.append(("update_ticket_details", ticket_id, new_data.title))
        return ticket_id in self.tickets

    def delete_ticket(self, ticket_id):
        self.calls.append(("delete_ticket", ticket_id))
        self.tickets.pop(ticket_id, None)
        return True

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_provider() -> FakeTicketingProvider:
    return FakeTicketingProvider()


@pytest.fixture
def make_provider():
    """Builds fresh providers, for tests that need more than one."""
    return FakeTicketingProvider


@pytest.fixture
def factory(fake_provider):
    """A provider factory that always returns ``fake_provider``."""
    mock_factory = MagicMock(spec=TicketingProviderFactory)
    mock_factory.get_instance.return_value = fake_provider
    return mock_factory


@pytest.fixture
def empty_factory():
    """A provider factory with nothing configured."""
    mock_factory = MagicMock(spec=TicketingProviderFactory)
    mock_factory.get_instance.return_value = None
    return mock_factory


# =============================================================================
# Stores
# =============================================================================


@pytest.fixture
def store(tasks_data) -> InMemoryTaskStore:
    """In-memory store holding the sample tasks under TASKS_PATH."""
    return InMemoryTaskStore({TASKS_PATH: tasks_data})
