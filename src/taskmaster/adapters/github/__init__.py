"""
GitHub Adapter - placeholder ticketing provider for GitHub Projects.
"""

from .adapter import GitHubProjectsTicketingProvider


__all__ = ["GitHubProjectsTicketingProvider"]
