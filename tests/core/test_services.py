"""
Tests for provider resolution and configuration validation.
"""

import logging
from unittest.mock import patch

import pytest

from taskmaster.adapters.azure_devops import AzureDevOpsTicketingProvider
from taskmaster.adapters.github import GitHubProjectsTicketingProvider
from taskmaster.adapters.jira import JiraTicketingProvider
from taskmaster.core.ports.config_provider import AppConfig, TicketingConfig, TicketingSystemType, is_placeholder
from taskmaster.core.services import (
    TicketingProviderFactory,
    create_ticketing_provider,
    get_ticketing_system_type,
    is_ticketing_enabled,
)


# =============================================================================
# Config accessors
# =============================================================================


class TestTicketingSystemType:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("jira", TicketingSystemType.JIRA),
            ("JIRA", TicketingSystemType.JIRA),
            ("azure-devops", TicketingSystemType.AZURE),
            ("GitHub Projects", TicketingSystemType.GITHUB),
            ("none", TicketingSystemType.NONE),
            ("", TicketingSystemType.NONE),
            (None, TicketingSystemType.NONE),
            ("trello", None),
        ],
    )
    def test_from_string(self, raw, expected):
        assert TicketingSystemType.from_string(raw) == expected


class TestConfigAccessors:
    def test_enabled_flag(self, app_config, disabled_config):
        assert is_ticketing_enabled(app_config)
        assert not is_ticketing_enabled(disabled_config)

    def test_system_type_normalized(self):
        config = AppConfig(ticketing=TicketingConfig(system="Azure_DevOps"))
        assert get_ticketing_system_type(config) == "azure"

    def test_unknown_system_type_reported_raw(self):
        config = AppConfig(ticketing=TicketingConfig(system=" Trello "))
        assert get_ticketing_system_type(config) == "trello"


class TestAppConfigValidate:
    """Tests for AppConfig.validate."""

    def test_disabled_is_always_valid(self):
        assert AppConfig().validate() == []

    def test_complete_jira_is_valid(self, app_config):
        assert app_config.validate() == []

    def test_missing_jira_fields(self):
        config = AppConfig(ticketing=TicketingConfig(enabled=True, system="jira"))
        errors = config.validate()
        assert len(errors) == 4
        assert any("JIRA_URL" in e for e in errors)

    def test_placeholders_are_errors(self, app_config):
        app_config.ticketing.jira.email = "{{JIRA_EMAIL}}"
        assert app_config.validate() == ["Jira email contains placeholder values"]

    def test_unknown_system(self):
        config = AppConfig(ticketing=TicketingConfig(enabled=True, system="trello"))
        assert config.validate() == ["Unknown ticketing system: trello"]

    def test_is_placeholder(self):
        assert is_placeholder("{{TOKEN}}")
        assert not is_placeholder("token")
        assert not is_placeholder(None)


# =============================================================================
# Factory
# =============================================================================


class TestCreateTicketingProvider:
    def test_none_gives_none(self, app_config):
        assert create_ticketing_provider(TicketingSystemType.NONE, app_config) is None

    def test_jira_gets_dry_run_and_timeout(self, app_config):
        app_config.sync.dry_run = True
        app_config.sync.request_timeout = 30.0

        provider = create_ticketing_provider(TicketingSystemType.JIRA, app_config)

        assert isinstance(provider, JiraTicketingProvider)
        assert provider.dry_run is True
        assert provider._client.timeout == 30.0

    def test_placeholder_systems(self, app_config):
        assert isinstance(
            create_ticketing_provider(TicketingSystemType.AZURE, app_config), AzureDevOpsTicketingProvider
        )
        assert isinstance(
            create_ticketing_provider(TicketingSystemType.GITHUB, app_config), GitHubProjectsTicketingProvider
        )


class TestTicketingProviderFactory:
    """Tests for TicketingProviderFactory.get_instance."""

    def test_disabled_returns_none(self, disabled_config):
        assert TicketingProviderFactory(disabled_config).get_instance() is None

    def test_configured_system(self, app_config):
        provider = TicketingProviderFactory(app_config).get_instance()
        assert isinstance(provider, JiraTicketingProvider)

    def test_instance_is_cached(self, app_config):
        factory = TicketingProviderFactory(app_config)
        assert factory.get_instance() is factory.get_instance()

    def test_reset_drops_cache(self, app_config):
        factory = TicketingProviderFactory(app_config)
        first = factory.get_instance()
        factory.reset()
        assert factory.get_instance() is not first

    def test_explicit_type_bypasses_enabled_flag(self, disabled_config):
        provider = TicketingProviderFactory(disabled_config).get_instance("github")
        assert isinstance(provider, GitHubProjectsTicketingProvider)

    def test_unknown_type_warns(self, app_config, caplog):
        app_config.ticketing.system = "trello"

        with caplog.at_level(logging.WARNING, logger="Services"):
            assert TicketingProviderFactory(app_config).get_instance() is None

        assert "Unknown ticketing system type: trello" in caplog.text

    def test_none_system(self, app_config):
        app_config.ticketing.system = "none"
        assert TicketingProviderFactory(app_config).get_instance() is None

    def test_constructor_failure_returns_none(self, app_config):
        with patch(
            "taskmaster.core.services.create_ticketing_provider",
            side_effect=RuntimeError("boom"),
        ):
            assert TicketingProviderFactory(app_config).get_instance() is None
