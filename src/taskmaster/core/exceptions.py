"""
Centralized exception hierarchy for taskmaster.

All errors raised inside the package derive from TaskMasterError so the
CLI can map them to exit codes in one place. The ticketing family mirrors
HTTP failure classes returned by remote issue trackers.
"""

from __future__ import annotations


class TaskMasterError(Exception):
    """Base class for all taskmaster errors."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message} (caused by: {self.cause})"
        return self.message


# =============================================================================
# Local errors
# =============================================================================


class ConfigError(TaskMasterError):
    """Configuration is missing, malformed, or contains placeholders."""


class TaskStoreError(TaskMasterError):
    """The task store could not be read or written."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.path = path


class TaskNotFoundError(TaskMasterError):
    """A task or subtask id did not resolve in the loaded task data."""

    def __init__(self, task_id: str | int):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


# =============================================================================
# Ticketing errors
# =============================================================================


class TicketingError(TaskMasterError):
    """Error reported by (or while talking to) a remote ticketing system."""

    def __init__(
        self,
        message: str,
        ticket_key: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.ticket_key = ticket_key


class AuthenticationError(TicketingError):
    """Credentials were rejected (HTTP 401)."""


class PermissionError(TicketingError):  # noqa: A001
    """Credentials lack access to the resource (HTTP 403)."""


class NotFoundError(TicketingError):
    """The remote resource does not exist (HTTP 404)."""


class TransientError(TicketingError):
    """Server-side failure that may succeed on retry (HTTP 5xx)."""


class RateLimitError(TransientError):
    """The remote system throttled us (HTTP 429)."""

    def __init__(
        self,
        message: str,
        retry_after: int | None = None,
        ticket_key: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, ticket_key=ticket_key, cause=cause)
        self.retry_after = retry_after


__all__ = [
    "AuthenticationError",
    "ConfigError",
    "NotFoundError",
    "PermissionError",
    "RateLimitError",
    "TaskMasterError",
    "TaskNotFoundError",
    "TaskStoreError",
    "TicketingError",
    "TransientError",
]
