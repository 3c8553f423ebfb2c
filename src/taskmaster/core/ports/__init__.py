"""
Ports - abstract interfaces the application layer depends on.
"""

from .config_provider import (
    AppConfig,
    AzureDevOpsConfig,
    ConfigProviderPort,
    GitHubConfig,
    JiraConfig,
    SyncConfig,
    TicketingConfig,
    TicketingSystemType,
    is_placeholder,
)
from .task_store import TaskStorePort
from .ticketing import CreatedTicket, RemoteTicketStatus, TicketingProviderPort


__all__ = [
    "AppConfig",
    "AzureDevOpsConfig",
    "ConfigProviderPort",
    "CreatedTicket",
    "GitHubConfig",
    "JiraConfig",
    "RemoteTicketStatus",
    "SyncConfig",
    "TaskStorePort",
    "TicketingConfig",
    "TicketingProviderPort",
    "TicketingSystemType",
    "is_placeholder",
]
