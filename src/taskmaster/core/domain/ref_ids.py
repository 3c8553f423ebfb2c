"""
Reference IDs - stable, human-readable cross references embedded in ticket titles.

Tasks get ``US###`` and subtasks ``T###-##``. Once stored in metadata a
reference ID never changes, so a ticket can be found again after its key
is lost or the remote issue is recreated.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from .entities import REF_ID, Subtask, Task


USER_STORY_PREFIX = "US"
TASK_PREFIX = "T"

REF_ID_PATTERN = re.compile(r"^((?:US\d{3})|(?:T\d{3}-\d{2}))-")


def generate_task_ref_id(task_id: int) -> str:
    """``5 -> "US005"``"""
    return f"{USER_STORY_PREFIX}{int(task_id):03d}"


def generate_subtask_ref_id(parent_id: int, subtask_id: int) -> str:
    """``(1, 2) -> "T001-02"``"""
    return f"{TASK_PREFIX}{int(parent_id):03d}-{int(subtask_id):02d}"


def generate_ref_id(item: Task | Subtask) -> str:
    if isinstance(item, Subtask):
        return generate_subtask_ref_id(item.parent_id or 0, item.id)
    return generate_task_ref_id(item.id)


def extract_ref_id_from_title(title: str | None) -> str | None:
    """Pull a leading ``US001-`` or ``T001-01-`` reference out of a ticket title."""
    if not title:
        return None
    match = REF_ID_PATTERN.match(title)
    return match.group(1) if match else None


def get_ref_id(item: Task | Subtask | None) -> str | None:
    if item is None:
        return None
    return item.metadata.get(REF_ID) or None


def store_ref_id(item: Task | Subtask, ref_id: str) -> Task | Subtask:
    """Store ``ref_id`` unless the item already has one."""
    if ref_id and not item.metadata.get(REF_ID):
        item.metadata[REF_ID] = ref_id
    return item


def ensure_ref_id(item: Task | Subtask) -> str:
    """Return the item's reference ID, assigning the generated one if missing."""
    existing = get_ref_id(item)
    if existing:
        return existing
    ref_id = generate_ref_id(item)
    store_ref_id(item, ref_id)
    return ref_id


def find_task_by_ref_id(tasks: Iterable[Task], ref_id: str) -> Task | Subtask | None:
    """Search tasks and their subtasks for a stored reference ID."""
    if not ref_id:
        return None
    for task in tasks:
        if get_ref_id(task) == ref_id:
            return task
        for subtask in task.subtasks:
            if get_ref_id(subtask) == ref_id:
                return subtask
    return None
