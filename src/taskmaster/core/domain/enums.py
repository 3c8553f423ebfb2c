"""
Domain enums - task status, priority, and lifecycle event types.
"""

from __future__ import annotations

from enum import Enum


class TaskStatus(Enum):
    """Status of a task or subtask, using the task store's vocabulary."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    DONE = "done"
    CANCELLED = "cancelled"
    DEFERRED = "deferred"
    BLOCKED = "blocked"

    @classmethod
    def from_string(cls, value: str | TaskStatus | None) -> TaskStatus:
        """
        Parse status from the spellings found in task files and CLI input.

        Unknown values fall back to PENDING.
        """
        if isinstance(value, TaskStatus):
            return value
        if not value:
            return cls.PENDING

        normalized = value.strip().lower().replace("_", "-").replace(" ", "-")
        aliases = {
            "todo": cls.PENDING,
            "to-do": cls.PENDING,
            "open": cls.PENDING,
            "inprogress": cls.IN_PROGRESS,
            "in-review": cls.REVIEW,
            "completed": cls.DONE,
            "complete": cls.DONE,
            "canceled": cls.CANCELLED,
        }
        if normalized in aliases:
            return aliases[normalized]

        for status in cls:
            if status.value == normalized:
                return status
        return cls.PENDING

    @classmethod
    def choices(cls) -> list[str]:
        """Valid status strings, for CLI argument validation."""
        return [status.value for status in cls]

    def is_complete(self) -> bool:
        """Check if this represents a finished state."""
        return self in (TaskStatus.DONE, TaskStatus.CANCELLED)

    def __str__(self) -> str:
        return self.value


class TaskPriority(Enum):
    """Priority of a task."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_string(cls, value: str | TaskPriority | None) -> TaskPriority:
        """Parse priority from string, defaulting to MEDIUM."""
        if isinstance(value, TaskPriority):
            return value
        if not value:
            return cls.MEDIUM

        value = value.strip().lower()
        for priority in cls:
            if priority.value == value:
                return priority
        return cls.MEDIUM

    def __str__(self) -> str:
        return self.value


class EventType(Enum):
    """Lifecycle events published on the event bus."""

    TASK_CREATED = "task:created"
    TASK_UPDATED = "task:updated"
    TASK_STATUS_CHANGED = "task:status:changed"
    TASK_DELETED = "task:deleted"
    SUBTASK_CREATED = "subtask:created"
    SUBTASK_UPDATED = "subtask:updated"
    SUBTASK_STATUS_CHANGED = "subtask:status:changed"
    SUBTASK_DELETED = "subtask:deleted"

    @property
    def is_subtask_event(self) -> bool:
        return self.value.startswith("subtask:")

    def __str__(self) -> str:
        return self.value
