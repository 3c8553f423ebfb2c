"""
CLI Commands Package - Command handlers for the taskmaster CLI.
"""

from .tasks import (
    run_add_subtask,
    run_add_task,
    run_list,
    run_remove_subtask,
    run_remove_task,
    run_set_status,
)
from .tickets import run_sync_tickets, run_ticketing_status


__all__ = [
    # Task commands
    "run_list",
    "run_add_task",
    "run_add_subtask",
    "run_set_status",
    "run_remove_task",
    "run_remove_subtask",
    # Ticket commands
    "run_sync_tickets",
    "run_ticketing_status",
]
