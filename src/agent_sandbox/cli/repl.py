"""Interactive shell over one long-lived sandbox session."""

from __future__ import annotations

from collections.abc import Callable

from rich.console import Console

from agent_sandbox.core.engine import Sandbox
from agent_sandbox.errors import SandboxError
from agent_sandbox.types.execution import ExecutionMode
from agent_sandbox.ui.terminal import RecordPrinter

_MODES = {
    "live": ExecutionMode.LIVE,
    "sim": ExecutionMode.SIMULATION,
    "simulation": ExecutionMode.SIMULATION,
    "diff": ExecutionMode.DIFF,
}


class Shell:
    """Read-mediate-print loop.

    Plain lines are submitted to the sandbox. Lines starting with ``/`` are
    slash commands that inspect or steer the session.
    """

    # Order they appear in /help
    SLASH_COMMANDS = {
        "/mode": "Show or switch mode (/mode live|sim|diff)",
        "/status": "Show session status",
        "/history": "Show live executions",
        "/records": "Show every record, previews and pending included",
        "/pending": "Show records waiting for approval",
        "/approve": "Run a pending record (/approve ID)",
        "/reject": "Drop a pending record (/reject ID)",
        "/tools": "List registered tools",
        "/reset": "Discard shadow changes, history and the queue",
        "/help": "Show available commands",
        "/exit": "Leave the shell (or press Ctrl+D)",
    }

    def __init__(self, sandbox: Sandbox, console: Console | None = None) -> None:
        self._sandbox = sandbox
        self._console = console or Console()
        self._printer = RecordPrinter(self._console)

    def run(self) -> None:
        """Main loop."""
        self._console.print(
            f"agent-sandbox {self._sandbox.id} in {self._sandbox.working_dir}. "
            "Type /help for commands.",
            highlight=False,
        )
        while True:
            try:
                line = self._console.input(f"{self._sandbox.mode.value} > ").strip()
            except EOFError:
                self._console.print("\nGoodbye!")
                break
            except KeyboardInterrupt:
                self._console.print()
                continue

            if not line:
                continue
            if line.startswith("/"):
                if not self.handle_slash_command(line):
                    break
                continue
            self._submit(line)

    def _submit(self, command: str) -> None:
        try:
            record = self._sandbox.submit(command)
        except SandboxError as exc:
            self._console.print(f"[bold red]Error:[/bold red] {exc}", highlight=False)
            return
        self._printer.print_record(record, show_diff=self._sandbox.mode is ExecutionMode.DIFF)

    def handle_slash_command(self, cmd: str) -> bool:
        """Handle a slash command. Returns False when the shell should exit."""
        parts = cmd.strip().split(maxsplit=1)
        base = parts[0].lower()
        arg = parts[1].strip() if len(parts) > 1 else ""

        if base == "/exit":
            self._console.print("Goodbye!")
            return False

        handlers: dict[str, Callable[[], None]] = {
            "/mode": lambda: self._handle_mode(arg),
            "/status": lambda: self._printer.print_status(self._sandbox.status()),
            "/history": lambda: self._printer.print_history(self._sandbox.history()),
            "/records": lambda: self._printer.print_history(self._sandbox.records()),
            "/pending": lambda: self._printer.print_history(
                list(self._sandbox.pending_approvals().values())
            ),
            "/approve": lambda: self._handle_approve(arg),
            "/reject": lambda: self._handle_reject(arg),
            "/tools": lambda: self._printer.print_tools(self._sandbox.list_tools()),
            "/reset": self._handle_reset,
            "/help": self._handle_help,
        }
        handler = handlers.get(base)
        if handler is None:
            matches = [c for c in self.SLASH_COMMANDS if c.startswith(base)]
            if matches:
                self._console.print(f"  Unknown command: {base}. Did you mean: {', '.join(matches)}?")
            else:
                self._console.print(f"  Unknown command: {base}. Type /help to see all commands.")
            return True

        try:
            handler()
        except SandboxError as exc:
            self._console.print(f"[bold red]Error:[/bold red] {exc}", highlight=False)
        return True

    def _handle_mode(self, arg: str) -> None:
        if not arg:
            self._console.print(f"Mode: {self._sandbox.mode.value}")
            return
        mode = _MODES.get(arg.lower())
        if mode is None:
            self._console.print(f"  Unknown mode: {arg}. Choose live, sim or diff.")
            return
        self._sandbox.set_mode(mode)
        self._console.print(f"Mode: {mode.value}")

    def _handle_approve(self, arg: str) -> None:
        if not arg:
            self._console.print("  Usage: /approve ID")
            return
        self._printer.print_record(self._sandbox.approve(arg))

    def _handle_reject(self, arg: str) -> None:
        if not arg:
            self._console.print("  Usage: /reject ID")
            return
        record = self._sandbox.reject(arg)
        self._console.print(f"Rejected {record.id}: {record.command}", highlight=False)

    def _handle_reset(self) -> None:
        self._sandbox.reset()
        self._console.print("Session reset.")

    def _handle_help(self) -> None:
        for name, desc in self.SLASH_COMMANDS.items():
            self._console.print(f"  {name:<12} {desc}", highlight=False)
