"""Type definitions for agent_sandbox."""

from agent_sandbox.types.config import ApprovalPolicy, SandboxConfig
from agent_sandbox.types.diff import ChangeTag, DiffChange, DiffHunk, DiffSummary, UnifiedDiff
from agent_sandbox.types.execution import (
    ExecutionMode,
    ExecutionRecord,
    ExecutionStatus,
    SandboxStatus,
)
from agent_sandbox.types.files import DiffOperation, FileDiff, VirtualFile, content_hash
from agent_sandbox.types.permissions import PermissionLevel, ToolPermission, path_has_prefix

__all__ = [
    "ApprovalPolicy",
    "ChangeTag",
    "DiffChange",
    "DiffHunk",
    "DiffOperation",
    "DiffSummary",
    "ExecutionMode",
    "ExecutionRecord",
    "ExecutionStatus",
    "FileDiff",
    "PermissionLevel",
    "SandboxConfig",
    "SandboxStatus",
    "ToolPermission",
    "UnifiedDiff",
    "VirtualFile",
    "content_hash",
    "path_has_prefix",
]
