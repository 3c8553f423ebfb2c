"""
Configuration Provider Port - Abstract interface for configuration.

Implementations:
- FileConfigProvider: Load from .taskmaster.yaml/.toml, pyproject.toml, or .taskmasterconfig
- EnvironmentConfigProvider: Layer env vars and .env on top of the file config
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


PLACEHOLDER_MARKERS = ("{{", "}}")


def is_placeholder(value: str | None) -> bool:
    """Check for unfilled template values such as ``{{JIRA_EMAIL}}``."""
    return bool(value) and any(marker in value for marker in PLACEHOLDER_MARKERS)


class TicketingSystemType(Enum):
    """Supported ticketing systems."""

    NONE = "none"
    JIRA = "jira"
    AZURE = "azure"
    GITHUB = "github"

    @classmethod
    def from_string(cls, value: str | None) -> "TicketingSystemType | None":
        """
        Normalize a configured system name.

        Returns None for names that are not recognized.
        """
        if not value:
            return cls.NONE
        normalized = value.strip().lower().replace("-", "").replace("_", "").replace(" ", "")
        aliases = {
            "none": cls.NONE,
            "jira": cls.JIRA,
            "azure": cls.AZURE,
            "azuredevops": cls.AZURE,
            "github": cls.GITHUB,
            "githubprojects": cls.GITHUB,
        }
        return aliases.get(normalized)


@dataclass
class JiraConfig:
    """Configuration for Jira Cloud."""

    url: str = ""
    email: str = ""
    api_token: str = ""
    project_key: str = ""

    story_issue_type: str = "Story"
    subtask_issue_type: str = "Sub-task"

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return bool(self.url and self.email and self.api_token and self.project_key)


@dataclass
class AzureDevOpsConfig:
    """Configuration for Azure DevOps Boards."""

    organization: str = ""
    project: str = ""
    pat: str = ""  # Personal Access Token
    base_url: str = "https://dev.azure.com"

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return bool(self.organization and self.project and self.pat)


@dataclass
class GitHubConfig:
    """Configuration for GitHub Projects."""

    token: str = ""
    owner: str = ""
    repo: str = ""
    project_number: int | None = None
    base_url: str = "https://api.github.com"

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return bool(self.token and self.owner and self.repo)


@dataclass
class TicketingConfig:
    """Which ticketing system to mirror tasks into, and its credentials."""

    enabled: bool = False
    system: str = TicketingSystemType.NONE.value
    jira: JiraConfig = field(default_factory=JiraConfig)
    azure: AzureDevOpsConfig = field(default_factory=AzureDevOpsConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)

    @property
    def system_type(self) -> TicketingSystemType | None:
        return TicketingSystemType.from_string(self.system)


@dataclass
class SyncConfig:
    """Configuration for remote operations."""

    dry_run: bool = False
    max_workers: int = 4
    request_timeout: float = 120.0  # seconds, per HTTP request


@dataclass
class AppConfig:
    """Complete application configuration."""

    ticketing: TicketingConfig = field(default_factory=TicketingConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)

    # Paths
    project_root: str | None = None
    tasks_path: str | None = None

    def validate(self) -> list[str]:
        """
        Validate configuration.

        Only the selected ticketing system is checked, and only when
        integration is enabled.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []
        if not self.ticketing.enabled:
            return errors

        system = self.ticketing.system_type
        if system is None:
            errors.append(f"Unknown ticketing system: {self.ticketing.system}")
            return errors

        if system == TicketingSystemType.JIRA:
            jira = self.ticketing.jira
            if not jira.url:
                errors.append("Missing Jira URL (JIRA_URL)")
            if not jira.email:
                errors.append("Missing Jira email (JIRA_EMAIL)")
            if not jira.api_token:
                errors.append("Missing Jira API token (JIRA_API_TOKEN)")
            if not jira.project_key:
                errors.append("Missing Jira project key (JIRA_PROJECT_KEY)")
            for label, value in (
                ("Jira URL", jira.url),
                ("Jira email", jira.email),
                ("Jira API token", jira.api_token),
            ):
                if is_placeholder(value):
                    errors.append(f"{label} contains placeholder values")
        elif system == TicketingSystemType.AZURE:
            if not self.ticketing.azure.is_valid():
                errors.append(
                    "Azure DevOps requires organization, project and PAT "
                    "(AZURE_DEVOPS_ORG, AZURE_DEVOPS_PROJECT, AZURE_DEVOPS_PAT)"
                )
        elif system == TicketingSystemType.GITHUB:
            if not self.ticketing.github.is_valid():
                errors.append("GitHub requires token, owner and repo (GITHUB_TOKEN, GITHUB_OWNER, GITHUB_REPO)")

        return errors


class ConfigProviderPort(ABC):
    """
    Abstract interface for configuration providers.

    Configuration can come from various sources:
    - YAML/TOML/JSON config files
    - .env files
    - Environment variables
    - Command line arguments
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the provider name."""
        ...

    @abstractmethod
    def load(self) -> AppConfig:
        """
        Load configuration from source.

        Returns:
            Complete application configuration
        """
        ...

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a specific configuration value.

        Args:
            key: Configuration key (dot notation supported)
            default: Default value if not found

        Returns:
            Configuration value
        """
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            key: Configuration key
            value: Value to set
        """
        ...

    @abstractmethod
    def validate(self) -> list[str]:
        """
        Validate loaded configuration.

        Returns:
            List of validation errors
        """
        ...
