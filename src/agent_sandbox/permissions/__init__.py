"""Tool permission gating."""

from agent_sandbox.permissions.approval import (
    ApprovalCallback,
    StdinApprovalCallback,
    describe_command,
    needs_approval,
)
from agent_sandbox.permissions.defaults import DEFAULT_PERMISSIONS, default_gate
from agent_sandbox.permissions.gate import PermissionGate
from agent_sandbox.permissions.policy import PermissionFileLoader, apply_permission_files

__all__ = [
    "DEFAULT_PERMISSIONS",
    "ApprovalCallback",
    "PermissionFileLoader",
    "PermissionGate",
    "StdinApprovalCallback",
    "apply_permission_files",
    "default_gate",
    "describe_command",
    "needs_approval",
]
