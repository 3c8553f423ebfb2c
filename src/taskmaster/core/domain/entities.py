"""
Domain Entities - Tasks, subtasks, and the task collection.

Entities are mutable dataclasses that round-trip the task store's JSON
document. Keys this package does not model are kept in ``extra`` so a
read/write cycle never drops user data.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .enums import TaskPriority, TaskStatus


LAST_STATUS_UPDATE = "lastStatusUpdate"
REF_ID = "refId"

_TASK_KEYS = frozenset(
    {"id", "title", "description", "details", "status", "priority", "dependencies", "subtasks", "metadata"}
)
_SUBTASK_KEYS = _TASK_KEYS - {"subtasks"}

_OFFSET_WITHOUT_COLON = re.compile(r"([+-]\d{2})(\d{2})$")


# =============================================================================
# Timestamps
# =============================================================================


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with millisecond precision and ``Z``."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """
    Parse a timestamp from the task store or a tracker response.

    Accepts ``Z`` suffixes and Jira's ``+0000`` offsets. Naive values are
    treated as UTC. Returns None for empty or unparseable input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        text = _OFFSET_WITHOUT_COLON.sub(r"\1:\2", text)
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_compound_id(compound_id: str) -> tuple[int, int]:
    """
    Split a ``"<parentId>.<subtaskId>"`` identifier.

    Raises:
        ValueError: If the identifier is not two integers joined by a dot.
    """
    parts = str(compound_id).strip().split(".")
    if len(parts) != 2:
        raise ValueError(f"Invalid subtask id '{compound_id}', expected '<parentId>.<subtaskId>'")
    try:
        return int(parts[0]), int(parts[1])
    except ValueError as e:
        raise ValueError(f"Invalid subtask id '{compound_id}'") from e


# =============================================================================
# Entities
# =============================================================================


@dataclass
class Subtask:
    """
    A unit of work owned by exactly one Task.

    Addressed from outside by its compound id ``"<parentId>.<id>"``.
    """

    id: int
    title: str = ""
    description: str = ""
    details: str = ""
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority | None = None
    dependencies: list[Any] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    parent_id: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def compound_id(self) -> str:
        return f"{self.parent_id}.{self.id}"

    @property
    def is_subtask(self) -> bool:
        return True

    @property
    def ref_id(self) -> str | None:
        return self.metadata.get(REF_ID) or None

    @property
    def last_status_update(self) -> str | None:
        return self.metadata.get(LAST_STATUS_UPDATE) or None

    def touch_status(self, when: datetime | None = None) -> None:
        """Record that the status was just changed locally."""
        self.metadata[LAST_STATUS_UPDATE] = format_timestamp(when or utc_now())

    @classmethod
    def from_dict(cls, data: dict[str, Any], parent_id: int | None = None) -> Subtask:
        priority = data.get("priority")
        return cls(
            id=int(data["id"]),
            title=data.get("title", ""),
            description=data.get("description", ""),
            details=data.get("details", ""),
            status=TaskStatus.from_string(data.get("status")),
            priority=TaskPriority.from_string(priority) if priority else None,
            dependencies=list(data.get("dependencies", [])),
            metadata=dict(data.get("metadata") or {}),
            parent_id=parent_id,
            extra={k: v for k, v in data.items() if k not in _SUBTASK_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "details": self.details,
            "status": self.status.value,
            "dependencies": list(self.dependencies),
        }
        if self.priority is not None:
            result["priority"] = self.priority.value
        if self.metadata:
            result["metadata"] = dict(self.metadata)
        result.update(self.extra)
        return result


@dataclass
class Task:
    """A root unit of work. Owns its subtasks; deleting it deletes them."""

    id: int
    title: str = ""
    description: str = ""
    details: str = ""
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    dependencies: list[Any] = field(default_factory=list)
    subtasks: list[Subtask] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def compound_id(self) -> str:
        return str(self.id)

    @property
    def is_subtask(self) -> bool:
        return False

    @property
    def ref_id(self) -> str | None:
        return self.metadata.get(REF_ID) or None

    @property
    def last_status_update(self) -> str | None:
        return self.metadata.get(LAST_STATUS_UPDATE) or None

    def touch_status(self, when: datetime | None = None) -> None:
        """Record that the status was just changed locally."""
        self.metadata[LAST_STATUS_UPDATE] = format_timestamp(when or utc_now())

    def find_subtask(self, subtask_id: int) -> Subtask | None:
        for subtask in self.subtasks:
            if subtask.id == subtask_id:
                return subtask
        return None

    def next_subtask_id(self) -> int:
        return max((s.id for s in self.subtasks), default=0) + 1

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        task_id = int(data["id"])
        return cls(
            id=task_id,
            title=data.get("title", ""),
            description=data.get("description", ""),
            details=data.get("details", ""),
            status=TaskStatus.from_string(data.get("status")),
            priority=TaskPriority.from_string(data.get("priority")),
            dependencies=list(data.get("dependencies", [])),
            subtasks=[Subtask.from_dict(s, parent_id=task_id) for s in data.get("subtasks") or []],
            metadata=dict(data.get("metadata") or {}),
            extra={k: v for k, v in data.items() if k not in _TASK_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "details": self.details,
            "status": self.status.value,
            "priority": self.priority.value,
            "dependencies": list(self.dependencies),
            "subtasks": [s.to_dict() for s in self.subtasks],
        }
        if self.metadata:
            result["metadata"] = dict(self.metadata)
        result.update(self.extra)
        return result


WorkItem = Task | Subtask


@dataclass
class TasksData:
    """The whole task collection as stored in ``tasks.json``."""

    tasks: list[Task] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TasksData:
        return cls(
            tasks=[Task.from_dict(t) for t in data.get("tasks") or []],
            extra={k: v for k, v in data.items() if k != "tasks"},
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"tasks": [t.to_dict() for t in self.tasks]}
        result.update(self.extra)
        return result

    def copy(self) -> TasksData:
        return copy.deepcopy(self)

    def find_task(self, task_id: int | str) -> Task | None:
        try:
            wanted = int(task_id)
        except (TypeError, ValueError):
            return None
        for task in self.tasks:
            if task.id == wanted:
                return task
        return None

    def find_subtask(self, compound_id: str) -> tuple[Task, Subtask] | None:
        """Resolve ``"<parentId>.<subtaskId>"`` to its (parent, subtask) pair."""
        try:
            parent_id, subtask_id = parse_compound_id(compound_id)
        except ValueError:
            return None
        parent = self.find_task(parent_id)
        if parent is None:
            return None
        subtask = parent.find_subtask(subtask_id)
        if subtask is None:
            return None
        return parent, subtask

    def replace_task(self, task: Task) -> bool:
        """Swap the task with the same id for ``task``. Returns False if absent."""
        for index, existing in enumerate(self.tasks):
            if existing.id == task.id:
                self.tasks[index] = task
                return True
        return False

    def remove_task(self, task_id: int) -> Task | None:
        for index, existing in enumerate(self.tasks):
            if existing.id == task_id:
                return self.tasks.pop(index)
        return None

    def next_task_id(self) -> int:
        return max((t.id for t in self.tasks), default=0) + 1
