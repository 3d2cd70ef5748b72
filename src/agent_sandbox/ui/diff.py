"""Colored diff rendering."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.text import Text

from agent_sandbox.diff.engine import format_unified_diff, unified_diff
from agent_sandbox.types.files import FileDiff


def render_diff(
    old: str,
    new: str,
    filename: str = "",
    *,
    console: Console | None = None,
) -> str:
    """Render a unified diff between old and new content.

    Returns the diff as a string. If a console is provided,
    also prints it with color highlighting.
    """
    diff = unified_diff(old, new, filename or "file")
    if not diff.hunks:
        return "(no changes)"

    diff_text = format_unified_diff(diff).rstrip("\n")

    if console is not None:
        _print_colored_diff(console, diff_text.split("\n"))

    return diff_text


def render_file_changes(
    changes: Sequence[FileDiff], *, console: Console | None = None,
) -> str:
    """Render every predicted change as a unified diff against its old content."""
    rendered = [
        render_diff(change.old_content or "", change.new_content or "", change.path, console=console)
        for change in changes
    ]
    return "\n".join(rendered)


_LINE_STYLES = (
    ("+++", "bold"),
    ("---", "bold"),
    ("@@", "cyan"),
    ("+", "green"),
    ("-", "red"),
)


def _line_style(line: str) -> str:
    for prefix, style in _LINE_STYLES:
        if line.startswith(prefix):
            return style
    return "dim"


def _print_colored_diff(console: Console, lines: list[str]) -> None:
    for line in lines:
        console.print(Text(line, style=_line_style(line)))
