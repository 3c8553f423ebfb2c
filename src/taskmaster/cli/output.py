"""
Output - Console output formatting for the taskmaster CLI.
"""

import json
import sys
from typing import Any

from taskmaster.application.sync import SyncTicketsResult
from taskmaster.core.domain.entities import TasksData
from taskmaster.core.domain.enums import TaskStatus


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"

    BG_YELLOW = "\033[43m"


class Symbols:
    """Unicode symbols for terminal output."""

    CHECK = "✓"
    CROSS = "✗"
    ARROW = "→"
    DOT = "•"
    WARN = "⚠"
    INFO = "ℹ"
    GEAR = "⚙"
    BOX_H = "─"


STATUS_COLORS = {
    TaskStatus.DONE: Colors.GREEN,
    TaskStatus.IN_PROGRESS: Colors.BLUE,
    TaskStatus.REVIEW: Colors.MAGENTA,
    TaskStatus.BLOCKED: Colors.RED,
    TaskStatus.CANCELLED: Colors.DIM,
    TaskStatus.DEFERRED: Colors.DIM,
}


class Console:
    """
    Console output helper with colors and formatting.

    Attributes:
        color: Whether to use ANSI color codes.
        verbose: Whether to print debug messages.
        quiet: Whether to suppress most output (for CI/scripting).
        json_mode: Whether to output JSON format for programmatic use.
    """

    def __init__(
        self,
        color: bool = True,
        verbose: bool = False,
        quiet: bool = False,
        json_mode: bool = False,
    ):
        """
        Initialize the console output helper.

        Args:
            color: Enable colored output. Automatically disabled if stdout is not a TTY.
            verbose: Enable verbose debug output.
            quiet: Suppress most output, only show errors and final summary.
            json_mode: Output JSON format instead of text.
        """
        self.json_mode = json_mode
        self.color = color and sys.stdout.isatty() and not json_mode
        self.verbose = verbose
        self.quiet = quiet or json_mode  # JSON mode implies quiet for intermediate output

        self._json_errors: list[str] = []

        if self.quiet:
            self.verbose = False

    def _c(self, text: str, *codes: str) -> str:
        if not self.color:
            return text
        return "".join(codes) + text + Colors.RESET

    def print(self, text: str = "", force: bool = False) -> None:
        if self.quiet and not force:
            return
        print(text)

    def header(self, text: str) -> None:
        if self.quiet:
            return
        width = max(len(text) + 4, 50)
        border = self._c(Symbols.BOX_H * width, Colors.CYAN) if self.color else "-" * width

        self.print()
        self.print(border)
        self.print(self._c(f"  {text}", Colors.BOLD, Colors.CYAN))
        self.print(border)
        self.print()

    def section(self, text: str) -> None:
        if self.quiet:
            return
        self.print()
        self.print(self._c(f"{Symbols.ARROW} {text}", Colors.BOLD, Colors.BLUE))

    def success(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"  {Symbols.CHECK} {text}", Colors.GREEN))

    def error(self, text: str) -> None:
        """
        Print an error message with cross symbol.

        Always prints, even in quiet mode. Collected in JSON mode.
        """
        if self.json_mode:
            self._json_errors.append(text)
            return
        print(self._c(f"  {Symbols.CROSS} {text}", Colors.RED), file=sys.stderr)

    def config_errors(self, errors: list[str]) -> None:
        if self.json_mode:
            self._json_errors.extend(errors)
            return
        self.error("Configuration errors:")
        for error in errors:
            print(self._c(f"    {Symbols.DOT} {error}", Colors.RED), file=sys.stderr)

    def warning(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"  {Symbols.WARN} {text}", Colors.YELLOW))

    def info(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"  {Symbols.INFO} {text}", Colors.CYAN))

    def detail(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"    {text}", Colors.DIM))

    def debug(self, text: str) -> None:
        """Print debug message (only visible in verbose mode)."""
        if self.verbose:
            self.print(self._c(f"  [DEBUG] {text}", Colors.DIM))

    def table(self, headers: list[str], rows: list[list[str]]) -> None:
        """
        Print a formatted table with headers.

        Column widths follow the widest cell.
        """
        if self.quiet:
            return
        widths = [len(h) for h in headers]
        for row in rows:
            for i, cell in enumerate(row):
                if i < len(widths):
                    widths[i] = max(widths[i], len(str(cell)))

        header_line = "  " + "  ".join(self._c(h.ljust(widths[i]), Colors.BOLD) for i, h in enumerate(headers))
        self.print(header_line)
        self.print("  " + "  ".join("-" * w for w in widths))

        for row in rows:
            row_line = "  " + "  ".join(
                str(cell).ljust(widths[i]) if i < len(widths) else str(cell) for i, cell in enumerate(row)
            )
            self.print(row_line)

    def dry_run_banner(self) -> None:
        if self.quiet:
            return
        self.print()
        banner = f"  {Symbols.GEAR} DRY-RUN MODE - No changes will be made in the ticketing system"
        if self.color:
            self.print(f"{Colors.BG_YELLOW}{Colors.BOLD}{banner}{Colors.RESET}")
        else:
            self.print(f"*** {banner} ***")
        self.print()

    # -------------------------------------------------------------------------
    # Structured results
    # -------------------------------------------------------------------------

    def json_output(self, payload: dict[str, Any]) -> None:
        """Print the final JSON document (JSON mode only)."""
        if not self.json_mode:
            return
        if self._json_errors:
            payload = {**payload, "errors": list(self._json_errors)}
        print(json.dumps(payload, indent=2, default=str))

    def tasks(self, data: TasksData, ticket_key: str | None = None) -> None:
        """Print tasks and subtasks as a table."""
        if self.json_mode:
            self.json_output(data.to_dict())
            return
        headers = ["ID", "Status", "Title"]
        if ticket_key:
            headers.append("Ticket")
        rows: list[list[str]] = []
        for task in data.tasks:
            items = [(str(task.id), task)] + [(f"  {s.compound_id}", s) for s in task.subtasks]
            for label, item in items:
                row = [label, self._status(item.status), item.title]
                if ticket_key:
                    row.append(str(item.metadata.get(ticket_key, "")))
                rows.append(row)
        if not rows:
            self.info("No tasks found")
            return
        self.table(headers, rows)

    def _status(self, status: TaskStatus) -> str:
        color = STATUS_COLORS.get(status)
        # Pad before coloring so the table stays aligned
        text = status.value.ljust(11)
        return self._c(text, color) if color else text

    def sync_result(self, result: SyncTicketsResult) -> None:
        """
        Print a ticket synchronization summary.

        In JSON mode, outputs a structured JSON object. In quiet mode,
        prints a single summary line suitable for CI/scripting.
        """
        if self.json_mode:
            self.json_output(result.to_dict())
            return

        if self.quiet:
            status = "OK" if result.success else "FAILED"
            print(f"{status}: {result.message}")
            return

        stats = result.stats
        self.section("Summary")
        self.table(
            ["Metric", "Count"],
            [
                ["Tasks created", str(stats.tasks_created)],
                ["Subtasks created", str(stats.subtasks_created)],
                ["Tasks updated", str(stats.tasks_updated)],
                ["Subtasks updated", str(stats.subtasks_updated)],
                ["Tickets updated", str(stats.tickets_updated)],
                ["Timestamps initialized", str(stats.timestamps_initialized)],
                ["Errors", str(stats.errors)],
            ],
        )
        self.print()
        if not result.success:
            self.error(result.message)
        elif stats.errors:
            self.warning(result.message)
        else:
            self.success(result.message)

    def ticketing_status(self, status: dict[str, Any]) -> None:
        if self.json_mode:
            self.json_output(status)
            return
        self.section("Ticketing integration")
        enabled = status.get("ticketingEnabled", False)
        if enabled:
            self.success("Enabled")
        else:
            self.warning("Disabled")
        self.detail(f"Project root: {status.get('projectRoot') or '-'}")
        if status.get("system"):
            self.detail(f"System: {status['system']}")
        if "error" in status:
            self.error(str(status["error"]))

        subscribers = status.get("eventSubscribers") or {}
        self.section("Event subscribers")
        if not subscribers:
            self.info("No subscribers registered")
            return
        self.table(["Event", "Subscribers"], [[name, str(count)] for name, count in sorted(subscribers.items())])
