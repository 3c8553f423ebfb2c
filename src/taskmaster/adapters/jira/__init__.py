"""
Jira Adapter - ticketing provider for Atlassian Jira Cloud.
"""

from .adapter import JiraTicketingProvider, text_to_adf
from .client import JiraApiClient, RateLimiter


__all__ = [
    "JiraApiClient",
    "JiraTicketingProvider",
    "RateLimiter",
    "text_to_adf",
]
