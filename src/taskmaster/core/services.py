"""
Service construction - resolves the ticketing provider for a project.

Usage:
    factory = TicketingProviderFactory(config)
    provider = factory.get_instance()          # configured system, or None
    provider = factory.get_instance("github")  # explicit override

The factory never raises: a disabled integration, an unknown system name,
or a provider constructor that fails all come back as ``None`` with a log
line saying why.
"""

import logging
import threading

from .ports.config_provider import AppConfig, TicketingSystemType
from .ports.ticketing import TicketingProviderPort


logger = logging.getLogger("Services")


# =============================================================================
# Config store accessors
# =============================================================================


def is_ticketing_enabled(config: AppConfig) -> bool:
    return bool(config.ticketing.enabled)


def get_ticketing_system_type(config: AppConfig) -> str:
    """
    Normalized configured system name.

    Returns the raw lowercase name when it is not a known system so the
    caller can report it.
    """
    system = TicketingSystemType.from_string(config.ticketing.system)
    if system is None:
        return (config.ticketing.system or "").strip().lower()
    return system.value


# =============================================================================
# Factory Functions
# =============================================================================


def create_ticketing_provider(
    system_type: TicketingSystemType,
    config: AppConfig,
) -> TicketingProviderPort | None:
    """
    Instantiate the provider class for ``system_type``.

    Args:
        system_type: Resolved ticketing system
        config: Application configuration holding credentials

    Returns:
        Provider instance, or None for TicketingSystemType.NONE

    Raises:
        ValueError: For system types with no provider
    """
    dry_run = config.sync.dry_run

    if system_type == TicketingSystemType.NONE:
        return None
    if system_type == TicketingSystemType.JIRA:
        from taskmaster.adapters.jira import JiraTicketingProvider

        return JiraTicketingProvider(
            config=config.ticketing.jira,
            dry_run=dry_run,
            timeout=config.sync.request_timeout,
        )
    if system_type == TicketingSystemType.AZURE:
        from taskmaster.adapters.azure_devops import AzureDevOpsTicketingProvider

        return AzureDevOpsTicketingProvider(config=config.ticketing.azure, dry_run=dry_run)
    if system_type == TicketingSystemType.GITHUB:
        from taskmaster.adapters.github import GitHubProjectsTicketingProvider

        return GitHubProjectsTicketingProvider(config=config.ticketing.github, dry_run=dry_run)
    raise ValueError(f"Unknown ticketing system: {system_type}")


class TicketingProviderFactory:
    """
    Resolves (and caches) the ticketing provider for one project configuration.
    """

    def __init__(self, config: AppConfig):
        self.config = config
        self._instances: dict[TicketingSystemType, TicketingProviderPort] = {}
        self._lock = threading.Lock()

    def get_instance(self, explicit_type: str | None = None) -> TicketingProviderPort | None:
        """
        Get the provider for the configured (or explicitly requested) system.

        Args:
            explicit_type: System name overriding the configured one. Also
                bypasses the integration-enabled flag.

        Returns:
            Provider instance, or None if disabled, unconfigured, or unknown
        """
        if explicit_type is None and not is_ticketing_enabled(self.config):
            logger.debug("Ticketing integration is disabled")
            return None

        requested = explicit_type if explicit_type is not None else self.config.ticketing.system
        system_type = TicketingSystemType.from_string(requested)
        if system_type is None:
            logger.warning(f"Unknown ticketing system type: {requested}")
            return None
        if system_type == TicketingSystemType.NONE:
            logger.debug("No ticketing system configured")
            return None

        with self._lock:
            cached = self._instances.get(system_type)
            if cached is not None:
                return cached
            try:
                provider = create_ticketing_provider(system_type, self.config)
            except Exception as e:
                logger.error(f"Failed to create {system_type.value} ticketing provider: {e}")
                return None
            if provider is not None:
                self._instances[system_type] = provider
            return provider

    def reset(self) -> None:
        """Drop cached providers (after a config reload)."""
        with self._lock:
            self._instances.clear()
