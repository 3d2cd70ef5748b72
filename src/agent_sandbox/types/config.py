"""Configuration types for agent_sandbox."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from agent_sandbox.types.execution import ExecutionMode
from agent_sandbox.types.permissions import PermissionLevel


class ApprovalPolicy(Enum):
    """Where the approval gate sits relative to the execution mode."""

    BEFORE_MODE = "before_mode"  # Gated tools stop before any dispatch, previews included
    LIVE_ONLY = "live_only"  # Gated tools may be previewed; only Live stops


@dataclass(frozen=True, slots=True)
class SandboxConfig:
    """Configuration for a single sandbox session."""

    working_dir: str = "."
    mode: ExecutionMode = ExecutionMode.LIVE
    allow_all: bool = False
    allow_unknown: bool = False
    default_level: PermissionLevel = PermissionLevel.EXECUTE
    approval_policy: ApprovalPolicy = ApprovalPolicy.BEFORE_MODE
    record_blocked: bool = False
    permission_files: tuple[str, ...] = ()
    timeout_sec: float | None = None
    mount: bool = True
