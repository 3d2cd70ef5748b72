"""Permission record types."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import PurePosixPath


class PermissionLevel(Enum):
    """Access level granted to a tool."""

    DENIED = "denied"
    READ_ONLY = "read_only"
    EXECUTE = "execute"
    FULL = "full"


def path_has_prefix(path: str | PurePosixPath, prefix: str | PurePosixPath) -> bool:
    """Component-wise prefix test: ``/tmp/x`` is under ``/tmp`` but ``/tmpx`` is not."""
    p = PurePosixPath(path)
    pre = PurePosixPath(prefix)
    return p == pre or pre in p.parents


@dataclass(frozen=True, slots=True)
class ToolPermission:
    """Permission record for a single tool.

    Empty ``allowed_paths`` / ``allowed_args`` mean "no restriction".
    ``denied_paths`` always wins over ``allowed_paths``.
    """

    name: str
    level: PermissionLevel = PermissionLevel.DENIED
    allowed_paths: tuple[str, ...] = ()
    denied_paths: tuple[str, ...] = ()
    allowed_args: tuple[str, ...] = ()
    requires_approval: bool = False

    # -- Builders (each returns a new record) -----------------------------

    def with_level(self, level: PermissionLevel) -> ToolPermission:
        return replace(self, level=level)

    def allow_path(self, path: str) -> ToolPermission:
        return replace(self, allowed_paths=(*self.allowed_paths, str(path)))

    def deny_path(self, path: str) -> ToolPermission:
        return replace(self, denied_paths=(*self.denied_paths, str(path)))

    def allow_arg(self, *args: str) -> ToolPermission:
        return replace(self, allowed_args=(*self.allowed_args, *args))

    def with_approval(self, required: bool = True) -> ToolPermission:
        return replace(self, requires_approval=required)

    # -- Predicates -------------------------------------------------------

    @property
    def is_path_scoped(self) -> bool:
        return bool(self.allowed_paths or self.denied_paths)

    def check_args(self, args: list[str] | tuple[str, ...]) -> bool:
        """True if any argument equals or contains an allowed entry."""
        if not self.allowed_args:
            return True
        return any(
            arg == allowed or allowed in arg
            for arg in args
            for allowed in self.allowed_args
        )

    def check_path(self, path: str | PurePosixPath) -> bool:
        for denied in self.denied_paths:
            if path_has_prefix(path, denied):
                return False
        if not self.allowed_paths:
            return True
        return any(path_has_prefix(path, allowed) for allowed in self.allowed_paths)
