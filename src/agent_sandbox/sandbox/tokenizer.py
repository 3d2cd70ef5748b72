"""Command-string tokenizer."""

from __future__ import annotations

import shlex

from agent_sandbox.errors import InvalidCommand


def split_command(command: str) -> tuple[str, list[str]]:
    """Split *command* into ``(tool, args)`` with POSIX quoting rules.

    Raises InvalidCommand on an empty command or an unterminated quote.
    """
    try:
        parts = shlex.split(command)
    except ValueError as exc:
        raise InvalidCommand(f"Cannot parse command: {exc}") from exc
    if not parts:
        raise InvalidCommand("Empty command")
    return parts[0], parts[1:]
