"""
Tests for JiraTicketingProvider with a mocked API client.
"""

import logging
from unittest.mock import MagicMock, patch

import pytest

from taskmaster.adapters.jira import JiraTicketingProvider, text_to_adf
from taskmaster.core.domain.entities import Subtask, Task
from taskmaster.core.domain.enums import TaskPriority, TaskStatus
from taskmaster.core.exceptions import (
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    TicketingError,
    TransientError,
)
from taskmaster.core.ports.config_provider import JiraConfig


@pytest.fixture
def mock_client():
    with patch("taskmaster.adapters.jira.adapter.JiraApiClient") as client_class:
        client = MagicMock()
        client.base_url = "https://test.atlassian.net"
        client_class.return_value = client
        yield client


@pytest.fixture
def provider(jira_config, mock_client):
    return JiraTicketingProvider(config=jira_config)


@pytest.fixture
def task():
    return Task(
        id=1,
        title="Login page",
        description="Build it",
        details="With OAuth",
        priority=TaskPriority.HIGH,
        metadata={"refId": "US001"},
    )


@pytest.fixture
def subtask():
    return Subtask(id=2, title="Validation", parent_id=1, metadata={"refId": "T001-02"})


# =============================================================================
# Mapping and identity
# =============================================================================


class TestMapping:
    """Tests for the status, priority and title tables."""

    def test_name_and_key(self, provider):
        assert provider.name == "Jira"
        assert provider.metadata_key == "jiraKey"

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (TaskStatus.PENDING, "To Do"),
            (TaskStatus.IN_PROGRESS, "In Progress"),
            (TaskStatus.REVIEW, "In Review"),
            (TaskStatus.DONE, "Done"),
            (TaskStatus.DEFERRED, "To Do"),
            ("in-progress", "In Progress"),
            ("nonsense", "To Do"),
        ],
    )
    def test_status_to_ticket(self, provider, status, expected):
        assert provider.map_status_to_ticket(status) == expected

    @pytest.mark.parametrize(
        ("ticket_status", "expected"),
        [
            ("To Do", TaskStatus.PENDING),
            ("IN PROGRESS", TaskStatus.IN_PROGRESS),
            ("Closed", TaskStatus.DONE),
            ("Resolved", TaskStatus.DONE),
            ("Weird", TaskStatus.PENDING),
            (None, TaskStatus.PENDING),
        ],
    )
    def test_ticket_status_to_local(self, provider, ticket_status, expected):
        assert provider.map_ticket_status_to_taskmaster(ticket_status) == expected

    def test_priority(self, provider):
        assert provider.map_priority_to_ticket(TaskPriority.HIGH) == "High"
        assert provider.map_priority_to_ticket(None) == "Medium"
        assert provider.map_ticket_priority_to_taskmaster("Highest") == TaskPriority.HIGH
        assert provider.map_ticket_priority_to_taskmaster("trivial") == TaskPriority.LOW

    def test_title_format(self, provider, task):
        assert provider.format_title_for_ticket(task) == "US001-Login page"
        assert provider.format_title_for_ticket(Task(id=3, title="No ref")) == "No ref"

    def test_ticket_id_helpers(self, provider, task):
        assert provider.get_ticket_id(task) is None
        provider.store_ticket_id(task, "PROJ-1")
        assert provider.get_ticket_id(task) == "PROJ-1"
        provider.clear_ticket_id(task)
        assert "jiraKey" not in task.metadata

    def test_subtask_does_not_inherit_parent_key(self, provider, task, subtask):
        task.metadata["jiraKey"] = "PROJ-1"
        assert provider.get_ticket_id(subtask, parent_task=task) is None

    def test_text_to_adf(self):
        doc = text_to_adf("one", "", "two")
        assert doc["type"] == "doc"
        assert [p["content"][0]["text"] for p in doc["content"]] == ["one", "two"]
        assert text_to_adf()["content"] == [{"type": "paragraph", "content": []}]


class TestValidateConfig:
    def test_valid(self, provider, jira_config):
        assert provider.validate_config() is jira_config
        assert provider.is_configured()

    def test_missing_field(self, mock_client):
        provider = JiraTicketingProvider(config=JiraConfig(url="https://x.atlassian.net"))
        assert provider.validate_config() is None
        assert provider.create_story(Task(id=1, title="T")) is None
        mock_client.create_issue.assert_not_called()

    def test_placeholder(self, jira_config, mock_client):
        jira_config.api_token = "{{JIRA_API_TOKEN}}"
        assert JiraTicketingProvider(config=jira_config).validate_config() is None


# =============================================================================
# Creation
# =============================================================================


class TestCreate:
    """Tests for create_story and create_task."""

    def test_create_story_payload(self, provider, mock_client, task):
        mock_client.create_issue.return_value = {"key": "PROJ-9", "id": "10009"}

        created = provider.create_story(task)

        assert created.key == "PROJ-9"
        assert created.id == "10009"
        assert created.url == "https://test.atlassian.net/browse/PROJ-9"
        fields = mock_client.create_issue.call_args.args[0]
        assert fields["project"] == {"key": "PROJ"}
        assert fields["summary"] == "US001-Login page"
        assert fields["issuetype"] == {"name": "Story"}
        assert fields["priority"] == {"name": "High"}
        assert fields["description"]["content"][1]["content"][0]["text"] == "With OAuth"

    def test_create_story_requires_title(self, provider, mock_client):
        assert provider.create_story(Task(id=1)) is None
        mock_client.create_issue.assert_not_called()

    def test_priority_rejected_is_retried_without_it(self, provider, mock_client, task):
        mock_client.create_issue.side_effect = [
            TicketingError("Jira API error 400: Field 'priority' cannot be set"),
            {"key": "PROJ-10"},
        ]

        created = provider.create_story(task)

        assert created.key == "PROJ-10"
        assert "priority" not in mock_client.create_issue.call_args.args[0]

    def test_other_errors_give_none(self, provider, mock_client, task):
        mock_client.create_issue.side_effect = TicketingError("Jira API error 500")
        assert provider.create_story(task) is None
        assert mock_client.create_issue.call_count == 1

    def test_missing_key_gives_none(self, provider, mock_client, task):
        mock_client.create_issue.return_value = {}
        assert provider.create_story(task) is None

    def test_dry_run_creates_nothing(self, jira_config, mock_client, task):
        provider = JiraTicketingProvider(config=jira_config, dry_run=True)
        assert provider.create_story(task) is None
        mock_client.create_issue.assert_not_called()

    def test_create_task_links_parent(self, provider, mock_client, subtask):
        mock_client.get_issue.return_value = {"key": "PROJ-1"}
        mock_client.create_issue.return_value = {"key": "PROJ-11"}

        created = provider.create_task(subtask, "PROJ-1")

        fields = mock_client.create_issue.call_args.args[0]
        assert created.key == "PROJ-11"
        assert fields["parent"] == {"key": "PROJ-1"}
        assert fields["issuetype"] == {"name": "Sub-task"}
        assert fields["summary"] == "T001-02-Validation"
        assert "priority" not in fields

    def test_create_task_missing_parent(self, provider, mock_client, subtask):
        mock_client.get_issue.side_effect = NotFoundError("Not found")
        assert provider.create_task(subtask, "PROJ-404") is None
        mock_client.create_issue.assert_not_called()

    def test_create_task_parent_unreachable(self, provider, mock_client, subtask):
        mock_client.get_issue.side_effect = TransientError("Server error 503")
        assert provider.create_task(subtask, "PROJ-1") is None
        mock_client.create_issue.assert_not_called()

    def test_create_task_without_parent_key(self, provider, mock_client, subtask):
        assert provider.create_task(subtask, "") is None
        mock_client.get_issue.assert_not_called()


# =============================================================================
# Lookup
# =============================================================================


class TestLookup:
    def test_find_ticket_by_ref_id_matches_prefix_exactly(self, provider, mock_client):
        mock_client.search_jql.return_value = [
            {"key": "PROJ-3", "fields": {"summary": "Mentions US001-Login elsewhere"}},
            {"key": "PROJ-2", "fields": {"summary": "US001-Login page"}},
        ]

        assert provider.find_ticket_by_ref_id("US001") == "PROJ-2"
        jql = mock_client.search_jql.call_args.args[0]
        assert 'project = "PROJ"' in jql
        assert 'summary ~ "US001"' in jql

    def test_find_ticket_by_ref_id_miss(self, provider, mock_client):
        mock_client.search_jql.return_value = []
        assert provider.find_ticket_by_ref_id("US001") is None

    def test_find_ticket_by_ref_id_error(self, provider, mock_client):
        mock_client.search_jql.side_effect = TicketingError("down")
        assert provider.find_ticket_by_ref_id("US001") is None

    def test_ticket_exists(self, provider, mock_client):
        mock_client.get_issue.return_value = {"key": "PROJ-1"}
        assert provider.ticket_exists("PROJ-1") is True
        mock_client.get_issue.assert_called_with("PROJ-1", ["summary"])

    def test_ticket_exists_not_found(self, provider, mock_client):
        mock_client.get_issue.side_effect = NotFoundError("gone")
        assert provider.ticket_exists("PROJ-1") is False

    @pytest.mark.parametrize(
        "error",
        [
            TransientError("Server error 503"),
            RateLimitError("throttled", retry_after=30),
            AuthenticationError("bad token"),
            TicketingError("Connection error"),
        ],
    )
    def test_ticket_exists_unknown_on_other_errors(self, provider, mock_client, error):
        mock_client.get_issue.side_effect = error
        assert provider.ticket_exists("PROJ-1") is None

    def test_get_ticket_status(self, provider, mock_client):
        mock_client.get_issue.return_value = {
            "fields": {"status": {"name": "In Progress"}, "updated": "2024-06-01T00:00:00.000+0000"}
        }

        remote = provider.get_ticket_status("PROJ-1")

        assert remote.status == "In Progress"
        assert remote.updated == "2024-06-01T00:00:00.000+0000"
        mock_client.get_issue.assert_called_with("PROJ-1", ["status", "updated"])

    def test_get_ticket_status_failure(self, provider, mock_client):
        mock_client.get_issue.side_effect = TicketingError("down")
        assert provider.get_ticket_status("PROJ-1") is None


# =============================================================================
# Updates
# =============================================================================


class TestUpdateStatus:
    """Tests for update_ticket_status."""

    TRANSITIONS = [
        {"id": "11", "name": "Start", "to": {"name": "In Progress"}},
        {"id": "31", "name": "Done", "to": {"name": "Done"}},
    ]

    def test_transition_by_target_name(self, provider, mock_client):
        mock_client.get_transitions.return_value = self.TRANSITIONS

        assert provider.update_ticket_status("PROJ-1", TaskStatus.IN_PROGRESS) is True

        mock_client.get_transitions.assert_called_once_with("PROJ-1")
        mock_client.transition_issue.assert_called_once_with("PROJ-1", "11")

    def test_already_in_target_status(self, provider, mock_client):
        mock_client.get_transitions.return_value = self.TRANSITIONS
        mock_client.get_issue.return_value = {"fields": {"status": {"name": "In Review"}}}

        assert provider.update_ticket_status("PROJ-1", TaskStatus.REVIEW) is True
        mock_client.transition_issue.assert_not_called()

    def test_no_transition(self, provider, mock_client):
        mock_client.get_transitions.return_value = self.TRANSITIONS
        mock_client.get_issue.return_value = {"fields": {"status": {"name": "To Do"}}}

        assert provider.update_ticket_status("PROJ-1", TaskStatus.BLOCKED) is False

    def test_client_error(self, provider, mock_client):
        mock_client.get_transitions.side_effect = TicketingError("down")
        assert provider.update_ticket_status("PROJ-1", TaskStatus.DONE) is False

    def test_recreates_vanished_task_ticket(self, provider, mock_client, task):
        task.metadata["jiraKey"] = "PROJ-1"
        mock_client.get_issue.side_effect = NotFoundError("gone")
        mock_client.create_issue.return_value = {"key": "PROJ-20"}
        mock_client.get_transitions.return_value = self.TRANSITIONS

        assert provider.update_ticket_status("PROJ-1", TaskStatus.DONE, task) is True

        assert task.metadata["jiraKey"] == "PROJ-20"
        mock_client.transition_issue.assert_called_once_with("PROJ-20", "31")

    def test_unreachable_ticket_is_not_recreated(self, provider, mock_client, task):
        task.metadata["jiraKey"] = "PROJ-1"
        mock_client.get_issue.side_effect = TransientError("Server error 503")
        mock_client.get_transitions.side_effect = TransientError("Server error 503")

        assert provider.update_ticket_status("PROJ-1", TaskStatus.DONE, task) is False

        assert task.metadata["jiraKey"] == "PROJ-1"
        mock_client.create_issue.assert_not_called()

    def test_vanished_subtask_ticket_is_not_recreated(self, provider, mock_client, subtask):
        mock_client.get_issue.side_effect = NotFoundError("gone")
        assert provider.update_ticket_status("PROJ-5", TaskStatus.DONE, subtask) is False
        mock_client.create_issue.assert_not_called()
        mock_client.transition_issue.assert_not_called()

    def test_dry_run(self, jira_config, mock_client):
        provider = JiraTicketingProvider(config=jira_config, dry_run=True)
        assert provider.update_ticket_status("PROJ-1", TaskStatus.DONE) is True
        mock_client.get_transitions.assert_not_called()


class TestUpdateDetails:
    """Only changed fields are sent."""

    def test_only_title_changed(self, provider, mock_client, task):
        previous = Task(**{**task.__dict__, "title": "Old title"})

        assert provider.update_ticket_details("PROJ-1", task, previous) is True

        mock_client.update_issue.assert_called_once_with("PROJ-1", {"summary": "US001-Login page"})

    def test_no_previous_sends_everything(self, provider, mock_client, task):
        provider.update_ticket_details("PROJ-1", task)
        fields = mock_client.update_issue.call_args.args[1]
        assert set(fields) == {"summary", "description", "priority"}

    def test_nothing_changed(self, provider, mock_client, task):
        assert provider.update_ticket_details("PROJ-1", task, task) is True
        mock_client.update_issue.assert_not_called()

    def test_error(self, provider, mock_client, task):
        mock_client.update_issue.side_effect = TicketingError("down")
        assert provider.update_ticket_details("PROJ-1", task) is False


class TestDelete:
    def test_delete(self, provider, mock_client):
        assert provider.delete_ticket("PROJ-1") is True
        mock_client.delete_issue.assert_called_once_with("PROJ-1")

    def test_already_deleted(self, provider, mock_client):
        mock_client.delete_issue.side_effect = NotFoundError("gone")
        assert provider.delete_ticket("PROJ-1") is True

    def test_parent_with_subtasks_is_refused(self, provider, mock_client, caplog):
        mock_client.delete_issue.side_effect = TicketingError(
            "Jira API error 400: Issue PROJ-1 has sub-tasks. Set deleteSubtasks to delete them."
        )

        with caplog.at_level(logging.WARNING, logger="JiraTicketingProvider"):
            assert provider.delete_ticket("PROJ-1") is False

        assert "Jira refused to delete PROJ-1 because it still has sub-tasks" in caplog.text

    def test_other_delete_error(self, provider, mock_client, caplog):
        mock_client.delete_issue.side_effect = TicketingError("Jira API error 500")

        with caplog.at_level(logging.ERROR, logger="JiraTicketingProvider"):
            assert provider.delete_ticket("PROJ-1") is False

        assert "Error deleting Jira ticket PROJ-1" in caplog.text
        assert "sub-tasks" not in caplog.text

    def test_empty_id(self, provider, mock_client):
        assert provider.delete_ticket("") is False
        mock_client.delete_issue.assert_not_called()
