"""
Task commands - list and mutate local tasks.

Mutations run with the event system initialized so the ticketing handlers
see them; the command waits for the handlers before returning.
"""

import logging
from collections.abc import Callable
from typing import Any

from taskmaster.core.domain.enums import TaskStatus
from taskmaster.core.services import TicketingProviderFactory

from ..context import CliContext
from ..exit_codes import ExitCode
from ..output import Console


logger = logging.getLogger("cli.tasks")


def _with_events(context: CliContext, action: Callable[[], Any]) -> Any:
    context.events.initialize()
    try:
        return action()
    finally:
        if not context.events.wait_for_pending(timeout=context.config.sync.request_timeout):
            logger.warning("Some ticketing updates did not finish in time")
        context.events.shutdown()


def run_list(console: Console, args, context: CliContext) -> int:
    data = context.tasks.list_tasks(context.tasks_path)
    if getattr(args, "status", None):
        wanted = TaskStatus.from_string(args.status)
        data.tasks = [task for task in data.tasks if task.status == wanted]

    provider = TicketingProviderFactory(context.config).get_instance()
    console.section(f"Tasks in {context.tasks_path}")
    console.tasks(data, ticket_key=provider.metadata_key if provider else None)
    return ExitCode.SUCCESS


def run_add_task(console: Console, args, context: CliContext) -> int:
    task = _with_events(
        context,
        lambda: context.tasks.add_task(
            context.tasks_path,
            title=args.title,
            description=args.description or "",
            details=args.details or "",
            priority=args.priority,
        ),
    )
    console.success(f"Added task {task.id}: {task.title}")
    console.json_output({"success": True, "task": task.to_dict()})
    return ExitCode.SUCCESS


def run_add_subtask(console: Console, args, context: CliContext) -> int:
    subtask = _with_events(
        context,
        lambda: context.tasks.add_subtask(
            context.tasks_path,
            parent_id=args.parent,
            title=args.title,
            description=args.description or "",
            details=args.details or "",
        ),
    )
    console.success(f"Added subtask {subtask.compound_id}: {subtask.title}")
    console.json_output({"success": True, "subtask": subtask.to_dict()})
    return ExitCode.SUCCESS


def run_set_status(console: Console, args, context: CliContext) -> int:
    changed = _with_events(
        context,
        lambda: context.tasks.set_task_status(context.tasks_path, args.id, args.status),
    )
    if changed:
        console.success(f"Set status of {', '.join(changed)} to {args.status}")
    else:
        console.info(f"Nothing to change, already {args.status}")
    console.json_output({"success": True, "changed": changed, "status": args.status})
    return ExitCode.SUCCESS


def run_remove_task(console: Console, args, context: CliContext) -> int:
    task = _with_events(context, lambda: context.tasks.remove_task(context.tasks_path, args.id))
    console.success(f"Removed task {task.id} ({len(task.subtasks)} subtasks)")
    console.json_output({"success": True, "removed": task.to_dict()})
    return ExitCode.SUCCESS


def run_remove_subtask(console: Console, args, context: CliContext) -> int:
    subtask = _with_events(context, lambda: context.tasks.remove_subtask(context.tasks_path, args.id))
    console.success(f"Removed subtask {subtask.compound_id}")
    console.json_output({"success": True, "removed": subtask.to_dict()})
    return ExitCode.SUCCESS
