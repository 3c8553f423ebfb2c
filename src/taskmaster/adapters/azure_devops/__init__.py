"""
Azure DevOps Adapter - placeholder ticketing provider.
"""

from .adapter import AzureDevOpsTicketingProvider


__all__ = ["AzureDevOpsTicketingProvider"]
