"""agent_sandbox — execution mediation for agent-issued commands.

Usage:
    from agent_sandbox import ExecutionMode, Sandbox

    sandbox = Sandbox.with_working_dir(".")
    sandbox.set_mode(ExecutionMode.DIFF)
    record = sandbox.submit("git commit -m 'fix: bug'")
    print(record.status, record.diff_summary)
"""

from agent_sandbox.core.engine import Sandbox
from agent_sandbox.errors import (
    ConfigError,
    FileSystemError,
    InvalidCommand,
    PermissionDenied,
    SandboxError,
    VirtualFileNotFound,
)
from agent_sandbox.permissions.defaults import default_gate
from agent_sandbox.permissions.gate import PermissionGate
from agent_sandbox.types.config import ApprovalPolicy, SandboxConfig
from agent_sandbox.types.diff import DiffSummary
from agent_sandbox.types.execution import (
    ExecutionMode,
    ExecutionRecord,
    ExecutionStatus,
    SandboxStatus,
)
from agent_sandbox.types.files import DiffOperation, FileDiff, VirtualFile
from agent_sandbox.types.permissions import PermissionLevel, ToolPermission
from agent_sandbox.vfs.shadow import FilesystemShadow

__version__ = "0.1.0"

__all__ = [
    # Engine
    "Sandbox",
    "FilesystemShadow",
    "PermissionGate",
    "default_gate",
    # Records
    "ExecutionMode",
    "ExecutionRecord",
    "ExecutionStatus",
    "SandboxStatus",
    "DiffOperation",
    "DiffSummary",
    "FileDiff",
    "VirtualFile",
    # Configuration
    "ApprovalPolicy",
    "PermissionLevel",
    "SandboxConfig",
    "ToolPermission",
    # Errors
    "ConfigError",
    "FileSystemError",
    "InvalidCommand",
    "PermissionDenied",
    "SandboxError",
    "VirtualFileNotFound",
]
