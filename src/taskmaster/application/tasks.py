"""
Task Service - local task mutations that announce themselves on the event bus.

Each mutation runs inside a task store transaction; the matching event is
emitted after the file has been written, carrying the post-mutation data.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from taskmaster.core.domain.entities import Subtask, Task, TasksData, parse_compound_id
from taskmaster.core.domain.enums import EventType, TaskPriority, TaskStatus
from taskmaster.core.domain.events import TaskEvent
from taskmaster.core.exceptions import TaskNotFoundError
from taskmaster.core.ports.task_store import TaskStorePort

from .events.bus import EventBus


EDITABLE_FIELDS = ("title", "description", "details", "priority", "dependencies")


class TaskService:
    """
    Creates, edits, re-statuses and removes tasks and subtasks.
    """

    def __init__(self, store: TaskStorePort, bus: EventBus, project_root: str | None = None):
        self.store = store
        self.bus = bus
        self.project_root = project_root
        self.logger = logging.getLogger("TaskService")

    def _emit(self, event_type: EventType, tasks_path: str, data: TasksData, task_id: str, **fields: Any) -> None:
        event = TaskEvent(
            event_type=event_type,
            task_id=task_id,
            tasks_path=tasks_path,
            data=data,
            project_root=self.project_root,
            **fields,
        )
        self.bus.emit(event_type, event)

    def list_tasks(self, tasks_path: str) -> TasksData:
        return self.store.read(tasks_path)

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    def add_task(
        self,
        tasks_path: str,
        title: str,
        description: str = "",
        details: str = "",
        priority: TaskPriority | str | None = None,
        dependencies: list[Any] | None = None,
    ) -> Task:
        with self.store.transaction(tasks_path) as data:
            task = Task(
                id=data.next_task_id(),
                title=title,
                description=description,
                details=details,
                priority=TaskPriority.from_string(priority),
                dependencies=list(dependencies or []),
            )
            data.tasks.append(task)

        self.logger.info(f"Added task {task.id}: {title}")
        self._emit(EventType.TASK_CREATED, tasks_path, data, str(task.id), task=task)
        return task

    def update_task(self, tasks_path: str, task_id: int | str, **changes: Any) -> Task:
        """Change any of title, description, details, priority, dependencies."""
        with self.store.transaction(tasks_path) as data:
            task = data.find_task(task_id)
            if task is None:
                raise TaskNotFoundError(task_id)
            previous = copy.deepcopy(task)
            _apply_changes(task, changes)

        self._emit(EventType.TASK_UPDATED, tasks_path, data, str(task.id), task=task, previous_task=previous)
        return task

    def remove_task(self, tasks_path: str, task_id: int | str) -> Task:
        """Remove a task together with its subtasks."""
        with self.store.transaction(tasks_path) as data:
            task = data.find_task(task_id)
            if task is None:
                raise TaskNotFoundError(task_id)
            data.remove_task(task.id)

        self.logger.info(f"Removed task {task.id} and {len(task.subtasks)} subtasks")
        self._emit(EventType.TASK_DELETED, tasks_path, data, str(task.id), task=task)
        return task

    def set_task_status(self, tasks_path: str, task_ids: str, status: TaskStatus | str) -> list[str]:
        """
        Set the status of one or more tasks or subtasks.

        Args:
            tasks_path: Tasks file
            task_ids: Comma separated ids; ``"3"`` is a task, ``"3.2"`` a subtask
            status: New status

        Returns:
            The ids whose status actually changed

        Raises:
            TaskNotFoundError: If any id does not resolve (nothing is written)
        """
        new_status = TaskStatus.from_string(status)
        ids = [part.strip() for part in str(task_ids).split(",") if part.strip()]
        changed: list[tuple[EventType, str, Task, Subtask | None]] = []

        with self.store.transaction(tasks_path) as data:
            for item_id in ids:
                if "." in item_id:
                    found = data.find_subtask(item_id)
                    if found is None:
                        raise TaskNotFoundError(item_id)
                    parent, subtask = found
                    if subtask.status != new_status:
                        subtask.status = new_status
                        subtask.touch_status()
                        changed.append((EventType.SUBTASK_STATUS_CHANGED, item_id, parent, subtask))
                    continue

                task = data.find_task(item_id)
                if task is None:
                    raise TaskNotFoundError(item_id)
                if task.status != new_status:
                    task.status = new_status
                    task.touch_status()
                    changed.append((EventType.TASK_STATUS_CHANGED, str(task.id), task, None))
                if new_status == TaskStatus.DONE:
                    for subtask in task.subtasks:
                        if subtask.status != TaskStatus.DONE:
                            subtask.status = TaskStatus.DONE
                            subtask.touch_status()

        for event_type, item_id, task, subtask in changed:
            self.logger.info(f"Status of {item_id} set to {new_status}")
            self._emit(event_type, tasks_path, data, item_id, task=task, subtask=subtask, new_status=new_status)
        return [item_id for _, item_id, _, _ in changed]

    # -------------------------------------------------------------------------
    # Subtasks
    # -------------------------------------------------------------------------

    def add_subtask(
        self,
        tasks_path: str,
        parent_id: int | str,
        title: str,
        description: str = "",
        details: str = "",
        dependencies: list[Any] | None = None,
    ) -> Subtask:
        with self.store.transaction(tasks_path) as data:
            parent = data.find_task(parent_id)
            if parent is None:
                raise TaskNotFoundError(parent_id)
            subtask = Subtask(
                id=parent.next_subtask_id(),
                title=title,
                description=description,
                details=details,
                dependencies=list(dependencies or []),
                parent_id=parent.id,
            )
            parent.subtasks.append(subtask)

        self.logger.info(f"Added subtask {subtask.compound_id}: {title}")
        self._emit(EventType.SUBTASK_CREATED, tasks_path, data, subtask.compound_id, task=parent, subtask=subtask)
        return subtask

    def update_subtask(self, tasks_path: str, compound_id: str, **changes: Any) -> Subtask:
        parse_compound_id(compound_id)
        with self.store.transaction(tasks_path) as data:
            found = data.find_subtask(compound_id)
            if found is None:
                raise TaskNotFoundError(compound_id)
            parent, subtask = found
            previous = copy.deepcopy(subtask)
            _apply_changes(subtask, changes)

        self._emit(
            EventType.SUBTASK_UPDATED,
            tasks_path,
            data,
            subtask.compound_id,
            task=parent,
            subtask=subtask,
            previous_subtask=previous,
        )
        return subtask

    def remove_subtask(self, tasks_path: str, compound_id: str) -> Subtask:
        parse_compound_id(compound_id)
        with self.store.transaction(tasks_path) as data:
            found = data.find_subtask(compound_id)
            if found is None:
                raise TaskNotFoundError(compound_id)
            parent, subtask = found
            parent.subtasks.remove(subtask)

        self.logger.info(f"Removed subtask {compound_id}")
        self._emit(EventType.SUBTASK_DELETED, tasks_path, data, compound_id, task=parent, subtask=subtask)
        return subtask


def _apply_changes(item: Task | Subtask, changes: dict[str, Any]) -> None:
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
    for name, value in changes.items():
        if value is None:
            continue
        if name == "priority":
            value = TaskPriority.from_string(value)
        elif name == "dependencies":
            value = list(value)
        setattr(item, name, value)
