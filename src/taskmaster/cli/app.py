"""
CLI App - Main entry point for the taskmaster command line tool.
"""

import argparse
import logging
import sys

from taskmaster.core.domain.enums import TaskPriority, TaskStatus
from taskmaster.core.exceptions import TaskNotFoundError, TaskStoreError

from .commands import (
    run_add_subtask,
    run_add_task,
    run_list,
    run_remove_subtask,
    run_remove_task,
    run_set_status,
    run_sync_tickets,
    run_ticketing_status,
)
from .context import build_context
from .exit_codes import ExitCode
from .logging import setup_logging
from .output import Console


COMMANDS = {
    "list": run_list,
    "add-task": run_add_task,
    "add-subtask": run_add_subtask,
    "set-status": run_set_status,
    "remove-task": run_remove_task,
    "remove-subtask": run_remove_subtask,
    "sync-tickets": run_sync_tickets,
    "ticketing-status": run_ticketing_status,
}


def create_parser() -> argparse.ArgumentParser:
    """
    Create the command-line argument parser for taskmaster.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="taskmaster",
        description="Manage local tasks and keep them in sync with Jira",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show tasks with their ticket keys
  taskmaster list

  # Add a task (a ticket is created when ticketing is enabled)
  taskmaster add-task --title "Login page" --priority high

  # Mark task 3 and subtask 4.1 done
  taskmaster set-status --id 3,4.1 --status done

  # Preview a full sync, then run it
  taskmaster sync-tickets
  taskmaster sync-tickets --execute

  # Inspect the integration
  taskmaster ticketing-status --json
        """,
    )

    parser.add_argument("--config", "-c", type=str, help="Path to config file (.taskmaster.yaml, .toml, ...)")
    parser.add_argument("--tasks-file", "-t", type=str, help="Path to tasks.json (default: tasks/tasks.json)")
    parser.add_argument("--project-root", type=str, help="Project directory (default: current directory)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--quiet", "-q", action="store_true", help="Only print errors and the final summary")
    parser.add_argument("--log-format", choices=["text", "json"], default="text", help="Log output format")
    parser.add_argument("--log-file", type=str, help="Also write logs to this file")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    list_parser = subparsers.add_parser("list", help="List tasks and subtasks")
    list_parser.add_argument("--status", "-s", choices=TaskStatus.choices(), help="Only tasks with this status")

    add_task = subparsers.add_parser("add-task", help="Add a task")
    add_task.add_argument("--title", required=True)
    add_task.add_argument("--description", "-d", default="")
    add_task.add_argument("--details", default="")
    add_task.add_argument("--priority", "-p", choices=[p.value for p in TaskPriority], default=None)

    add_subtask = subparsers.add_parser("add-subtask", help="Add a subtask to a task")
    add_subtask.add_argument("--parent", required=True, help="Parent task id")
    add_subtask.add_argument("--title", required=True)
    add_subtask.add_argument("--description", "-d", default="")
    add_subtask.add_argument("--details", default="")

    set_status = subparsers.add_parser("set-status", help="Set task or subtask status")
    set_status.add_argument("--id", "-i", required=True, help="Comma separated ids, e.g. 3,4.1")
    set_status.add_argument("--status", "-s", required=True, choices=TaskStatus.choices())

    remove_task = subparsers.add_parser("remove-task", help="Remove a task and its subtasks")
    remove_task.add_argument("--id", "-i", required=True)

    remove_subtask = subparsers.add_parser("remove-subtask", help="Remove a subtask")
    remove_subtask.add_argument("--id", "-i", required=True, help="Subtask id, e.g. 4.1")

    sync_tickets = subparsers.add_parser("sync-tickets", help="Synchronize every task with the ticketing system")
    sync_tickets.add_argument("--force", action="store_true", help="Sync even if ticketing is disabled in config")
    sync_tickets.add_argument(
        "--execute", "-x", action="store_true", help="Make changes in the ticketing system (default is dry-run)"
    )

    subparsers.add_parser("ticketing-status", help="Show ticketing integration status")

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the taskmaster CLI.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return ExitCode.ERROR

    if args.verbose:
        log_level = logging.DEBUG
    elif args.quiet or args.json:
        log_level = logging.WARNING
    else:
        log_level = logging.INFO
    setup_logging(
        level=log_level,
        log_format=args.log_format,
        log_file=args.log_file,
        use_colors=False if args.no_color else None,
    )

    console = Console(
        color=not args.no_color,
        verbose=args.verbose,
        quiet=args.quiet,
        json_mode=args.json,
    )

    try:
        context = build_context(args)
        return COMMANDS[args.command](console, args, context)

    except KeyboardInterrupt:
        console.print()
        console.warning("Interrupted by user")
        return ExitCode.INTERRUPTED

    except TaskStoreError as e:
        console.error(str(e))
        console.json_output({"success": False})
        return ExitCode.from_exception(e)

    except (TaskNotFoundError, ValueError) as e:
        console.error(str(e))
        console.json_output({"success": False})
        return ExitCode.VALIDATION_ERROR

    except Exception as e:
        console.error(str(e))
        console.json_output({"success": False})
        if args.verbose:
            import traceback

            traceback.print_exc()
        return ExitCode.from_exception(e)


def run() -> None:
    """
    Entry point for the console script.

    Calls main() and exits with its return code.
    """
    sys.exit(main())


if __name__ == "__main__":
    run()
