"""Exception taxonomy for the sandbox."""

from __future__ import annotations


class SandboxError(Exception):
    """Base class for every error raised by agent_sandbox."""


class PermissionDenied(SandboxError):
    """A tool, argument list or path was rejected by the permission gate."""

    def __init__(self, message: str, *, tool: str | None = None) -> None:
        super().__init__(message)
        self.tool = tool


class InvalidCommand(SandboxError):
    """A command string could not be tokenized or an approval id is unknown."""


class VirtualFileNotFound(SandboxError):
    """A path is not present in the filesystem shadow."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Virtual file not found: {path}")
        self.path = path


class FileSystemError(SandboxError):
    """The real filesystem could not be mounted."""


class ConfigError(SandboxError):
    """Configuration or permission file contents are invalid."""
