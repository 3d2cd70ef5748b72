"""Sandbox — the execution mediation engine.

A command moves through:

    Submitted -> Blocked | PendingApproval | Dispatched
    Dispatched -> Success | Failed | Simulated
    PendingApproval -(approve)-> Dispatched (always Live)

Permission rejection raises :class:`PermissionDenied` unless the session
was built with ``record_blocked=True``, in which case a BLOCKED record is
produced instead. A session is single-threaded: history and the approval
queue are plain containers with no locking.
"""

from __future__ import annotations

import logging
import os
import shlex
import uuid
from collections.abc import Sequence
from pathlib import Path

from agent_sandbox.core.prediction import (
    describe_simulation,
    predict_file_changes,
    redirect_targets,
)
from agent_sandbox.errors import FileSystemError, InvalidCommand, PermissionDenied
from agent_sandbox.permissions.approval import needs_approval
from agent_sandbox.permissions.defaults import default_gate
from agent_sandbox.permissions.gate import PermissionGate
from agent_sandbox.sandbox.executor import ProcessExecutor, SubprocessExecutor
from agent_sandbox.sandbox.tokenizer import split_command
from agent_sandbox.types.config import ApprovalPolicy
from agent_sandbox.types.diff import DiffSummary
from agent_sandbox.types.execution import (
    ExecutionMode,
    ExecutionRecord,
    ExecutionStatus,
    SandboxStatus,
)
from agent_sandbox.types.files import FileDiff
from agent_sandbox.types.permissions import PermissionLevel, ToolPermission
from agent_sandbox.vfs.shadow import FilesystemShadow

logger = logging.getLogger(__name__)


def new_record_id() -> str:
    return uuid.uuid4().hex


def _line_count(text: str | None) -> int:
    return len(text.splitlines()) if text else 0


class Sandbox:
    """One mediation session: gate, shadow, executor, history and queue."""

    def __init__(
        self,
        *,
        gate: PermissionGate | None = None,
        shadow: FilesystemShadow | None = None,
        executor: ProcessExecutor | None = None,
        working_dir: str | Path | None = None,
        mode: ExecutionMode = ExecutionMode.LIVE,
        approval_policy: ApprovalPolicy = ApprovalPolicy.BEFORE_MODE,
        record_blocked: bool = False,
        allow_all: bool = False,
    ) -> None:
        self.id = uuid.uuid4().hex[:12]
        self._gate = gate if gate is not None else default_gate()
        self._shadow = shadow if shadow is not None else FilesystemShadow()
        self._executor = executor if executor is not None else SubprocessExecutor()
        self._working_dir = str(Path(working_dir).resolve() if working_dir else Path.cwd())
        self._mode = mode
        self._approval_policy = approval_policy
        self._record_blocked = record_blocked
        self._allow_all = allow_all

        self._records: list[ExecutionRecord] = []
        self._history: list[ExecutionRecord] = []
        self._pending: dict[str, ExecutionRecord] = {}

    @classmethod
    def with_working_dir(cls, path: str | Path, **kwargs: object) -> Sandbox:
        """Create a session rooted at *path*, mounting it into the shadow."""
        path = Path(path).resolve()
        shadow = FilesystemShadow()
        if path.is_dir():
            shadow.mount(path)
        elif path.exists():
            raise FileSystemError(f"Not a directory: {path}")
        return cls(shadow=shadow, working_dir=path, **kwargs)  # type: ignore[arg-type]

    # -- Properties -------------------------------------------------------

    @property
    def gate(self) -> PermissionGate:
        return self._gate

    @property
    def shadow(self) -> FilesystemShadow:
        return self._shadow

    @property
    def mode(self) -> ExecutionMode:
        return self._mode

    @property
    def working_dir(self) -> str:
        return self._working_dir

    @property
    def approval_policy(self) -> ApprovalPolicy:
        return self._approval_policy

    @property
    def allows_all(self) -> bool:
        return self._allow_all

    def set_mode(self, mode: ExecutionMode) -> None:
        self._mode = mode

    def allow_all(self, enabled: bool = True) -> None:
        """Bypass permission and approval checks."""
        self._allow_all = enabled

    # -- Submission -------------------------------------------------------

    def submit(self, command: str) -> ExecutionRecord:
        """Mediate a raw command string."""
        tool, args = split_command(command)
        return self._mediate(command, tool, args)

    def execute_tool(self, tool: str, args: Sequence[str] = ()) -> ExecutionRecord:
        """Mediate an already tokenized command."""
        if not tool:
            raise InvalidCommand("Empty command")
        return self._mediate(shlex.join([tool, *args]), tool, list(args))

    def _mediate(self, command: str, tool: str, args: list[str]) -> ExecutionRecord:
        try:
            level = self._evaluate(tool, args)
        except PermissionDenied as exc:
            if not self._record_blocked:
                logger.warning("Rejected %r: %s", command, exc)
                raise
            record = ExecutionRecord(
                id=new_record_id(),
                command=command,
                tool=tool,
                args=tuple(args),
                mode=self._mode,
                status=ExecutionStatus.BLOCKED,
                permission_level=PermissionLevel.DENIED,
                stderr=str(exc),
            )
            logger.warning("Blocked %r: %s", command, exc)
            self._records.append(record)
            return record

        if needs_approval(
            self._gate, tool, self._mode,
            policy=self._approval_policy, allow_all=self._allow_all,
        ):
            record = ExecutionRecord(
                id=new_record_id(),
                command=command,
                tool=tool,
                args=tuple(args),
                mode=self._mode,
                status=ExecutionStatus.PENDING_APPROVAL,
                permission_level=level,
                approved=False,
            )
            self._pending[record.id] = record
            self._records.append(record)
            logger.info("Queued %r for approval as %s", command, record.id)
            return record

        logger.debug("Dispatching %r in %s mode", command, self._mode.value)
        match self._mode:
            case ExecutionMode.SIMULATION:
                record = self._simulate(command, tool, args, level)
            case ExecutionMode.DIFF:
                record = self._diff(command, tool, args, level)
            case _:
                return self._live(command, tool, args, level)
        self._records.append(record)
        return record

    def _evaluate(self, tool: str, args: list[str]) -> PermissionLevel:
        """Permission check for the tool, its arguments and any paths it names."""
        if self._allow_all:
            return PermissionLevel.FULL
        level = self._gate.evaluate(tool, args)
        permission = self._gate.get_permission(tool)
        if permission is not None and permission.is_path_scoped:
            for path in self._path_arguments(args):
                if not self._gate.evaluate_path(tool, path):
                    raise PermissionDenied(
                        f"Path '{path}' not allowed for tool '{tool}'", tool=tool,
                    )
        return level

    def _path_arguments(self, args: list[str]) -> list[str]:
        """Resolve non-option arguments and redirect targets to absolute paths."""
        candidates = [a for a in args if a and not a.startswith(("-", ">"))]
        candidates.extend(redirect_targets(args))
        return [
            os.path.normpath(os.path.join(self._working_dir, os.path.expanduser(c)))
            for c in candidates
        ]

    # -- Dispatch ---------------------------------------------------------

    def _live(
        self,
        command: str,
        tool: str,
        args: Sequence[str],
        level: PermissionLevel,
        *,
        source_id: str | None = None,
    ) -> ExecutionRecord:
        logger.info("Executing %r in %s", command, self._working_dir)
        try:
            output = self._executor.run(tool, list(args), self._working_dir)
        except OSError as exc:
            logger.warning("Failed to spawn %s: %s", tool, exc)
            status, stdout, stderr, exit_code = ExecutionStatus.FAILED, "", str(exc), -1
        else:
            status = ExecutionStatus.SUCCESS if output.success else ExecutionStatus.FAILED
            stdout, stderr, exit_code = output.stdout, output.stderr, output.exit_code

        record = ExecutionRecord(
            id=new_record_id(),
            command=command,
            tool=tool,
            args=tuple(args),
            mode=ExecutionMode.LIVE,
            status=status,
            permission_level=level,
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
            approved=True,
            source_id=source_id,
        )
        self._history.append(record)
        self._records.append(record)
        return record

    def _simulate(
        self, command: str, tool: str, args: Sequence[str], level: PermissionLevel,
    ) -> ExecutionRecord:
        changes = predict_file_changes(tool, args, self._shadow)
        narrative = describe_simulation(tool, args, changes, self._gate.get_permission(tool))
        return ExecutionRecord(
            id=new_record_id(),
            command=command,
            tool=tool,
            args=tuple(args),
            mode=ExecutionMode.SIMULATION,
            status=ExecutionStatus.SIMULATED,
            permission_level=level,
            stdout=narrative,
            approved=True,
        )

    def _diff(
        self, command: str, tool: str, args: Sequence[str], level: PermissionLevel,
    ) -> ExecutionRecord:
        changes = predict_file_changes(tool, args, self._shadow)
        return ExecutionRecord(
            id=new_record_id(),
            command=command,
            tool=tool,
            args=tuple(args),
            mode=ExecutionMode.DIFF,
            status=ExecutionStatus.SIMULATED,
            permission_level=level,
            stderr=f"Diff preview for {len(changes)} file(s)",
            file_changes=tuple(changes),
            diff_summary=summarize_changes(changes),
            approved=True,
        )

    # -- Approval queue ---------------------------------------------------

    def approve(self, record_id: str) -> ExecutionRecord:
        """Dequeue *record_id* and run it live, whatever mode it was submitted in."""
        pending = self._pending.pop(record_id, None)
        if pending is None:
            raise InvalidCommand(f"Execution not found: {record_id}")
        logger.info("Approved %s: %r", record_id, pending.command)
        return self._live(
            pending.command, pending.tool, pending.args, pending.permission_level,
            source_id=pending.id,
        )

    def reject(self, record_id: str) -> ExecutionRecord:
        """Drop *record_id* from the queue without running it."""
        pending = self._pending.pop(record_id, None)
        if pending is None:
            raise InvalidCommand(f"Execution not found: {record_id}")
        logger.info("Rejected %s: %r", record_id, pending.command)
        return pending

    def pending_approvals(self) -> dict[str, ExecutionRecord]:
        return dict(self._pending)

    # -- Introspection ----------------------------------------------------

    def history(self) -> list[ExecutionRecord]:
        """Live executions, in order."""
        return list(self._history)

    def records(self) -> list[ExecutionRecord]:
        """Every record produced this session, previews and pending included."""
        return list(self._records)

    def list_tools(self) -> list[ToolPermission]:
        return [
            permission
            for name in self._gate.list_tools()
            if (permission := self._gate.get_permission(name)) is not None
        ]

    def status(self) -> SandboxStatus:
        return SandboxStatus(
            id=self.id,
            mode=self._mode,
            file_count=len(self._shadow.list_files()),
            execution_count=len(self._history),
            pending_approval_count=len(self._pending),
            working_dir=self._working_dir,
        )

    def reset(self) -> None:
        """Restore the shadow baseline and clear history and the queue."""
        self._shadow.reset()
        self._history.clear()
        self._pending.clear()
        self._records.clear()
        logger.info("Sandbox %s reset", self.id)


def summarize_changes(changes: Sequence[FileDiff]) -> DiffSummary:
    """Tally predicted changes: new-content lines as added, old-content lines as deleted."""
    return DiffSummary(
        added=sum(_line_count(c.new_content) for c in changes),
        deleted=sum(_line_count(c.old_content) for c in changes),
        unchanged=0,
    )
