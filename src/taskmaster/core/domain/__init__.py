"""
Domain layer - entities, enums, events, and reference IDs.
"""

from .entities import (
    LAST_STATUS_UPDATE,
    REF_ID,
    Subtask,
    Task,
    TasksData,
    WorkItem,
    format_timestamp,
    parse_compound_id,
    parse_timestamp,
    utc_now,
)
from .enums import EventType, TaskPriority, TaskStatus
from .events import TaskEvent
from .ref_ids import (
    ensure_ref_id,
    extract_ref_id_from_title,
    find_task_by_ref_id,
    generate_ref_id,
    generate_subtask_ref_id,
    generate_task_ref_id,
    get_ref_id,
    store_ref_id,
)


__all__ = [
    "LAST_STATUS_UPDATE",
    "REF_ID",
    "EventType",
    "Subtask",
    "Task",
    "TaskEvent",
    "TaskPriority",
    "TaskStatus",
    "TasksData",
    "WorkItem",
    "ensure_ref_id",
    "extract_ref_id_from_title",
    "find_task_by_ref_id",
    "format_timestamp",
    "generate_ref_id",
    "generate_subtask_ref_id",
    "generate_task_ref_id",
    "get_ref_id",
    "parse_compound_id",
    "parse_timestamp",
    "store_ref_id",
    "utc_now",
]
