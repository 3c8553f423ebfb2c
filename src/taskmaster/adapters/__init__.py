"""
Adapters - concrete implementations of the core ports.
"""

from .azure_devops import AzureDevOpsTicketingProvider
from .base import BaseTicketingProvider, PlaceholderTicketingProvider
from .config import EnvironmentConfigProvider, FileConfigProvider
from .github import GitHubProjectsTicketingProvider
from .jira import JiraApiClient, JiraTicketingProvider
from .task_store import InMemoryTaskStore, JsonTaskStore


__all__ = [
    "AzureDevOpsTicketingProvider",
    "BaseTicketingProvider",
    "EnvironmentConfigProvider",
    "FileConfigProvider",
    "GitHubProjectsTicketingProvider",
    "InMemoryTaskStore",
    "JiraApiClient",
    "JiraTicketingProvider",
    "JsonTaskStore",
    "PlaceholderTicketingProvider",
]
