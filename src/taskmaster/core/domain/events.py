"""
Event envelope passed from task mutations to event bus subscribers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .entities import Subtask, Task, TasksData
from .enums import EventType, TaskStatus


@dataclass
class TaskEvent:
    """
    Payload of a lifecycle event.

    ``data`` is the task collection as it stood right after the mutation.
    It is shared, not cloned: handlers that persist write their changes
    through the task store and mirror them onto this object.
    """

    event_type: EventType
    task_id: str
    tasks_path: str
    data: TasksData
    task: Task | None = None
    subtask: Subtask | None = None
    previous_task: Task | None = None
    previous_subtask: Subtask | None = None
    new_status: TaskStatus | None = None
    project_root: str | None = None

    def snapshot(self) -> dict[str, Any]:
        """Small, JSON-friendly summary kept in the bus history."""
        result: dict[str, Any] = {
            "taskId": self.task_id,
            "tasksPath": self.tasks_path,
        }
        if self.new_status is not None:
            result["newStatus"] = self.new_status.value
        if self.task is not None:
            result["title"] = self.task.title
        elif self.subtask is not None:
            result["title"] = self.subtask.title
        return result
