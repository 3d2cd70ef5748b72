"""Default permission registry seeded for well-known tools."""

from __future__ import annotations

from agent_sandbox.permissions.gate import PermissionGate
from agent_sandbox.types.permissions import PermissionLevel, ToolPermission

# Arguments the package managers may be invoked with
PACKAGE_MANAGER_ARGS = ("install", "run", "test", "build")

# Version-control subcommands considered routine
GIT_ARGS = ("status", "diff", "log", "add", "commit", "push", "pull")

DEFAULT_PERMISSIONS: tuple[ToolPermission, ...] = (
    ToolPermission("git", PermissionLevel.FULL, allowed_paths=("/",), allowed_args=GIT_ARGS),
    ToolPermission(
        "npm", PermissionLevel.EXECUTE, allowed_paths=("/",),
        allowed_args=PACKAGE_MANAGER_ARGS,
    ),
    ToolPermission(
        "yarn", PermissionLevel.EXECUTE, allowed_paths=("/",),
        allowed_args=PACKAGE_MANAGER_ARGS,
    ),
    ToolPermission("file_read", PermissionLevel.READ_ONLY, allowed_paths=("/",)),
    ToolPermission("file_write", PermissionLevel.EXECUTE, allowed_paths=("/",)),
    ToolPermission("curl", PermissionLevel.READ_ONLY, allowed_args=("-X GET", "-X HEAD")),
    ToolPermission("echo", PermissionLevel.EXECUTE),
    ToolPermission("cat", PermissionLevel.READ_ONLY),
    ToolPermission("ls", PermissionLevel.READ_ONLY),
    ToolPermission("pwd", PermissionLevel.READ_ONLY),
    ToolPermission("tee", PermissionLevel.EXECUTE),
    # Dangerous commands
    ToolPermission(
        "rm", PermissionLevel.EXECUTE, allowed_paths=("/tmp",), requires_approval=True,
    ),
    ToolPermission("chmod", PermissionLevel.EXECUTE, requires_approval=True),
    ToolPermission("chown", PermissionLevel.EXECUTE, requires_approval=True),
    ToolPermission("sudo", PermissionLevel.DENIED),
    ToolPermission("su", PermissionLevel.DENIED),
    ToolPermission("doas", PermissionLevel.DENIED),
)


def default_gate(
    *,
    default_level: PermissionLevel = PermissionLevel.EXECUTE,
    allow_unknown: bool = False,
) -> PermissionGate:
    """Create a gate pre-populated with :data:`DEFAULT_PERMISSIONS`."""
    return PermissionGate(
        DEFAULT_PERMISSIONS, default_level=default_level, allow_unknown=allow_unknown,
    )
