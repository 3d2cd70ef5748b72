"""Approval policy and interactive approval callbacks."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from agent_sandbox.permissions.gate import PermissionGate
from agent_sandbox.types.config import ApprovalPolicy
from agent_sandbox.types.execution import ExecutionMode, ExecutionRecord


def needs_approval(
    gate: PermissionGate,
    tool: str,
    mode: ExecutionMode,
    *,
    policy: ApprovalPolicy = ApprovalPolicy.BEFORE_MODE,
    allow_all: bool = False,
) -> bool:
    """Decide whether a cleared command must stop at the approval queue.

    With ``BEFORE_MODE`` an approval-gated tool stops regardless of *mode*,
    so it cannot even be previewed. ``LIVE_ONLY`` lets previews through.
    """
    if allow_all or not gate.requires_approval(tool):
        return False
    match policy:
        case ApprovalPolicy.BEFORE_MODE:
            return True
        case ApprovalPolicy.LIVE_ONLY:
            return mode is ExecutionMode.LIVE
        case _:
            return True


@runtime_checkable
class ApprovalCallback(Protocol):
    """Protocol for asking an external actor to confirm a pending record."""

    def request_approval(self, record: ExecutionRecord, description: str) -> bool:
        """Return True to approve the record, False to leave it queued."""
        ...


_DESTRUCTIVE_HINTS = {
    "rm": "Delete files",
    "chmod": "Change file permissions",
    "chown": "Change file ownership",
}


def describe_command(tool: str, args: tuple[str, ...] | list[str]) -> str:
    """Build a human-readable one-line description of a command."""
    joined = " ".join(args)
    if tool in _DESTRUCTIVE_HINTS:
        return f"{_DESTRUCTIVE_HINTS[tool]}: {tool} {joined}".rstrip()
    if tool == "git" and args:
        return f"Git {args[0]}: {joined}"
    if len(joined) > 80:
        joined = joined[:77] + "..."
    return f"Run command: {tool} {joined}".rstrip()


class StdinApprovalCallback:
    """Plain-text approval prompt using stdin/stdout."""

    def request_approval(self, record: ExecutionRecord, description: str) -> bool:
        prompt = f"\nAllow {record.tool}? {description}\n[y/n] > "
        try:
            answer = input(prompt)
        except (EOFError, KeyboardInterrupt):
            return False
        return answer.strip().lower() in ("y", "yes")
