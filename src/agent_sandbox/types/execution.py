"""Execution record and session status types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from agent_sandbox.types.diff import DiffSummary
from agent_sandbox.types.files import FileDiff
from agent_sandbox.types.permissions import PermissionLevel


class ExecutionMode(Enum):
    """How a cleared command is dispatched."""

    LIVE = "live"  # Run the real process
    SIMULATION = "simulation"  # Narrate the predicted effect only
    DIFF = "diff"  # Report predicted file changes only


class ExecutionStatus(Enum):
    """Lifecycle outcome of a mediated command."""

    SUCCESS = "success"
    FAILED = "failed"
    BLOCKED = "blocked"
    SIMULATED = "simulated"
    PENDING_APPROVAL = "pending_approval"


@dataclass(frozen=True, slots=True)
class ExecutionRecord:
    """Immutable record of one mediated command.

    Approving a pending record produces a new record whose ``source_id``
    points back at the pending one.
    """

    id: str
    command: str
    tool: str
    args: tuple[str, ...]
    mode: ExecutionMode
    status: ExecutionStatus
    permission_level: PermissionLevel
    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None
    file_changes: tuple[FileDiff, ...] = ()
    diff_summary: DiffSummary | None = None
    approved: bool = False
    executed_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    source_id: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not ExecutionStatus.PENDING_APPROVAL


@dataclass(frozen=True, slots=True)
class SandboxStatus:
    """Snapshot of a session's counters."""

    id: str
    mode: ExecutionMode
    file_count: int
    execution_count: int
    pending_approval_count: int
    working_dir: str
