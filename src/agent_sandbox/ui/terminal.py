"""Rich-powered terminal output for records, status and tool listings."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from agent_sandbox.types.execution import ExecutionRecord, ExecutionStatus, SandboxStatus
from agent_sandbox.types.permissions import PermissionLevel, ToolPermission
from agent_sandbox.ui.diff import render_file_changes

# ── Palette ──────────────────────────────────────────────────────────────────

STATUS_STYLES: dict[ExecutionStatus, str] = {
    ExecutionStatus.SUCCESS: "bold #34d399",
    ExecutionStatus.FAILED: "bold #f87171",
    ExecutionStatus.BLOCKED: "bold #f87171",
    ExecutionStatus.SIMULATED: "bold #a78bfa",
    ExecutionStatus.PENDING_APPROVAL: "bold #fbbf24",
}

LEVEL_STYLES: dict[PermissionLevel, str] = {
    PermissionLevel.DENIED: "#f87171",
    PermissionLevel.READ_ONLY: "#94a3b8",
    PermissionLevel.EXECUTE: "#e2e8f0",
    PermissionLevel.FULL: "#34d399",
}

STYLE_LABEL = "bold #94a3b8"
STYLE_VALUE = "#e2e8f0"
STYLE_DIM = "dim #7c7c8a"
STYLE_ERROR = "#f87171"


class RecordPrinter:
    """Prints execution records and session information to a console."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    @property
    def console(self) -> Console:
        return self._console

    def print_record(self, record: ExecutionRecord, *, show_diff: bool = False) -> None:
        header = Text()
        header.append("Command  ", style=STYLE_LABEL)
        header.append(record.command + "\n", style=STYLE_VALUE)
        header.append("Status   ", style=STYLE_LABEL)
        header.append(record.status.value, style=STATUS_STYLES[record.status])
        header.append("\nMode     ", style=STYLE_LABEL)
        header.append(record.mode.value, style=STYLE_VALUE)
        header.append("\nLevel    ", style=STYLE_LABEL)
        header.append(record.permission_level.value, style=LEVEL_STYLES[record.permission_level])
        if record.exit_code is not None:
            header.append("\nExit     ", style=STYLE_LABEL)
            header.append(str(record.exit_code), style=STYLE_VALUE)
        header.append("\nID       ", style=STYLE_LABEL)
        header.append(record.id, style=STYLE_DIM)

        self._console.print(Panel(header, title=record.tool, expand=False, padding=(0, 1)))

        if record.stdout:
            self._console.print(Text("STDOUT", style=STYLE_LABEL))
            self._console.print(Text(record.stdout.rstrip("\n")))
        if record.stderr:
            self._console.print(Text("STDERR", style=STYLE_LABEL))
            self._console.print(Text(record.stderr.rstrip("\n"), style=STYLE_ERROR))

        if record.diff_summary is not None:
            summary = record.diff_summary
            self._console.print(Text(f"Diff summary: +{summary.added} -{summary.deleted}"))

        if record.file_changes:
            self._console.print(Text("File changes", style=STYLE_LABEL))
            for change in record.file_changes:
                self._console.print(f"  {change.path}: {change.operation.value}")
            if show_diff:
                render_file_changes(record.file_changes, console=self._console)

        if record.status is ExecutionStatus.PENDING_APPROVAL:
            self._console.print(Text(
                "This command requires approval: re-run with --approve, "
                f"or use /approve {record.id} in the shell",
                style=STATUS_STYLES[record.status],
            ))

    def print_status(self, status: SandboxStatus) -> None:
        table = Table(title="Sandbox status", show_header=False, expand=False)
        table.add_column("key", style=STYLE_LABEL)
        table.add_column("value", style=STYLE_VALUE)
        table.add_row("ID", status.id)
        table.add_row("Mode", status.mode.value)
        table.add_row("Working directory", status.working_dir)
        table.add_row("Files", str(status.file_count))
        table.add_row("Executions", str(status.execution_count))
        table.add_row("Pending approvals", str(status.pending_approval_count))
        self._console.print(table)

    def print_tools(self, tools: Sequence[ToolPermission]) -> None:
        table = Table(title="Registered tools")
        table.add_column("Tool", style="bold")
        table.add_column("Level")
        table.add_column("Approval")
        table.add_column("Allowed args", style=STYLE_DIM)
        table.add_column("Paths", style=STYLE_DIM)
        for perm in tools:
            paths = ", ".join([*perm.allowed_paths, *(f"!{p}" for p in perm.denied_paths)])
            table.add_row(
                perm.name,
                Text(perm.level.value, style=LEVEL_STYLES[perm.level]),
                "yes" if perm.requires_approval else "no",
                ", ".join(perm.allowed_args),
                paths,
            )
        self._console.print(table)

    def print_history(self, records: Sequence[ExecutionRecord]) -> None:
        if not records:
            self._console.print("No executions yet.")
            return
        table = Table(title="Execution history")
        table.add_column("#", justify="right")
        table.add_column("Command")
        table.add_column("Status")
        table.add_column("Mode")
        table.add_column("Exit", justify="right")
        for i, record in enumerate(records, start=1):
            table.add_row(
                str(i),
                record.command,
                Text(record.status.value, style=STATUS_STYLES[record.status]),
                record.mode.value,
                "" if record.exit_code is None else str(record.exit_code),
            )
        self._console.print(table)
