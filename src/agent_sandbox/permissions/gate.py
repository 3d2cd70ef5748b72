"""Permission gate — tool registry and evaluation.

Evaluation order for ``evaluate(tool, args)``:
1. Unregistered tool: default level if unknown tools are allowed, else deny
2. Registered at level DENIED: deny
3. Non-empty ``allowed_args`` with no matching argument: deny
4. Otherwise: the registered level

Path checks (``evaluate_path``) are separate: denied prefixes first, then
allowed prefixes, with an empty allow list meaning "anywhere".
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Iterable

from agent_sandbox.errors import PermissionDenied
from agent_sandbox.types.permissions import PermissionLevel, ToolPermission

logger = logging.getLogger(__name__)


class PermissionGate:
    """Explicit mapping from tool name to an immutable :class:`ToolPermission`."""

    def __init__(
        self,
        permissions: Iterable[ToolPermission] = (),
        *,
        default_level: PermissionLevel = PermissionLevel.EXECUTE,
        allow_unknown: bool = False,
    ) -> None:
        self._permissions: dict[str, ToolPermission] = {}
        self._default_level = default_level
        self._allow_unknown = allow_unknown
        for permission in permissions:
            self.register(permission)

    @property
    def default_level(self) -> PermissionLevel:
        return self._default_level

    @property
    def allows_unknown(self) -> bool:
        return self._allow_unknown

    # -- Registration -----------------------------------------------------

    def register(self, permission: ToolPermission) -> None:
        """Register *permission*, replacing any record under the same name."""
        if permission.name in self._permissions:
            logger.debug("Replacing permission record for '%s'", permission.name)
        self._permissions[permission.name] = permission

    def set_default_level(self, level: PermissionLevel) -> None:
        self._default_level = level

    def allow_unknown(self, allow: bool = True) -> None:
        self._allow_unknown = allow

    # -- Lookup -----------------------------------------------------------

    def get_permission(self, tool: str) -> ToolPermission | None:
        return self._permissions.get(tool)

    def list_tools(self) -> list[str]:
        return sorted(self._permissions)

    def __contains__(self, tool: object) -> bool:
        return tool in self._permissions

    def __len__(self) -> int:
        return len(self._permissions)

    # -- Evaluation -------------------------------------------------------

    def check_tool(self, tool: str) -> PermissionLevel:
        """Resolve the level for *tool* without looking at arguments."""
        permission = self._permissions.get(tool)
        if permission is None:
            if self._allow_unknown:
                return self._default_level
            raise PermissionDenied(
                f"Tool '{tool}' is not registered in the permission gate", tool=tool,
            )
        if permission.level is PermissionLevel.DENIED:
            raise PermissionDenied(f"Tool '{tool}' is denied", tool=tool)
        return permission.level

    def evaluate(self, tool: str, args: list[str] | tuple[str, ...] = ()) -> PermissionLevel:
        """Return the granted level for *tool* with *args* or raise PermissionDenied."""
        level = self.check_tool(tool)
        permission = self._permissions.get(tool)
        if permission is not None and not permission.check_args(args):
            raise PermissionDenied(f"Arguments not allowed for tool '{tool}'", tool=tool)
        return level

    def evaluate_path(self, tool: str, path: str | PurePosixPath) -> bool:
        """True if *tool* may touch *path*. Unknown disallowed tools are never allowed."""
        permission = self._permissions.get(tool)
        if permission is None:
            return self._allow_unknown and self._default_level is not PermissionLevel.DENIED
        if permission.level is PermissionLevel.DENIED:
            return False
        return permission.check_path(path)

    def requires_approval(self, tool: str) -> bool:
        permission = self._permissions.get(tool)
        return permission.requires_approval if permission is not None else False
