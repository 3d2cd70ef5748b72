"""Rich-formatted approval prompt for pending records."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from agent_sandbox.types.execution import ExecutionRecord


class RichApprovalCallback:
    """Rich-formatted interactive approval prompt."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True)

    def request_approval(self, record: ExecutionRecord, description: str) -> bool:
        """Show a styled approval prompt and wait for y/n."""
        title = Text(f" ◆ {record.tool} ", style="bold #fbbf24")
        body = Text(f"{description}\nid: {record.id}", style="#94a3b8")

        self._console.print()
        self._console.print(Panel(
            body,
            title=title,
            border_style="#fbbf24",
            expand=False,
            padding=(0, 1),
        ))

        prompt_text = "[bold #fbbf24]Allow?[/bold #fbbf24] [#7c7c8a](y/n)[/#7c7c8a] › "
        try:
            answer = self._console.input(prompt_text)
        except (EOFError, KeyboardInterrupt):
            self._console.print()
            return False
        return answer.strip().lower() in ("y", "yes")
