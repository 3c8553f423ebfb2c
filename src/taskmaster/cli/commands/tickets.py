"""
Ticket commands - batch synchronization and integration diagnostics.
"""

from taskmaster.application.sync import TicketSynchronizer
from taskmaster.core.services import get_ticketing_system_type

from ..context import CliContext
from ..exit_codes import ExitCode
from ..output import Console


def run_sync_tickets(console: Console, args, context: CliContext) -> int:
    config = context.config
    errors = context.config_provider.validate()
    if errors:
        console.config_errors(errors)
        return ExitCode.CONFIG_ERROR

    # Remote writes need --execute
    config.sync.dry_run = config.sync.dry_run or not args.execute

    console.header("Task Master ticket sync")
    console.info(f"Tasks: {context.tasks_path}")
    console.info(f"System: {get_ticketing_system_type(config)}")
    if config.sync.dry_run:
        console.dry_run_banner()

    synchronizer = TicketSynchronizer(config, context.store)
    result = synchronizer.sync_tickets(context.tasks_path, force=args.force, debug=args.verbose)
    console.sync_result(result)

    if not result.success:
        return ExitCode.ERROR
    return ExitCode.SUCCESS


def run_ticketing_status(console: Console, args, context: CliContext) -> int:
    context.events.initialize()
    try:
        status = context.events.check_ticketing_status()
    finally:
        context.events.shutdown()

    status["system"] = get_ticketing_system_type(context.config)
    errors = context.config_provider.validate()
    if errors:
        status["configErrors"] = errors

    console.ticketing_status(status)
    if errors and not console.json_mode:
        console.config_errors(errors)
    return ExitCode.SUCCESS
