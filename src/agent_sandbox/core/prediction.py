"""Heuristic side-effect prediction for preview modes.

This is not an interpreter: a handful of tool/argument patterns are mapped
to the file changes they usually cause. Anything unrecognised predicts no
changes.
"""

from __future__ import annotations

from collections.abc import Sequence

from agent_sandbox.types.files import DiffOperation, FileDiff
from agent_sandbox.types.permissions import ToolPermission
from agent_sandbox.vfs.shadow import FilesystemShadow

VCS_TOOLS = frozenset({"git"})
VCS_STAGE_ARGS = frozenset({"add", "commit"})

PACKAGE_MANAGERS: dict[str, tuple[str, str]] = {
    # tool -> (lockfile, dependency directory)
    "npm": ("package-lock.json", "node_modules/"),
    "yarn": ("yarn.lock", "node_modules/"),
    "pnpm": ("pnpm-lock.yaml", "node_modules/"),
}
INSTALL_ARGS = frozenset({"install", "add", "i"})

REDIRECT_TOOLS = frozenset({"echo", "tee", "cat", "printf"})


def redirect_targets(args: Sequence[str]) -> list[str]:
    """Paths named by ``>path``, ``>>path`` or a bare ``>`` followed by a path."""
    targets: list[str] = []
    pending = False
    for arg in args:
        if pending:
            targets.append(arg)
            pending = False
            continue
        if arg.startswith(">"):
            target = arg.lstrip(">").strip()
            if target:
                targets.append(target)
            else:
                pending = True
    return targets


def predict_file_changes(
    tool: str, args: Sequence[str], shadow: FilesystemShadow,
) -> list[FileDiff]:
    """Predict which files *tool* with *args* would change."""
    changes: list[FileDiff] = []

    if tool in VCS_TOOLS and any(a in VCS_STAGE_ARGS for a in args):
        changes.extend(
            FileDiff(path=path, operation=DiffOperation.MODIFIED, new_content="(staged)")
            for path in shadow.list_files()
        )

    if tool in PACKAGE_MANAGERS and any(a in INSTALL_ARGS for a in args):
        lockfile, deps_dir = PACKAGE_MANAGERS[tool]
        changes.append(FileDiff(
            path=lockfile, operation=DiffOperation.MODIFIED, new_content="(would be updated)",
        ))
        changes.append(FileDiff(
            path=deps_dir, operation=DiffOperation.MODIFIED, new_content="(would be populated)",
        ))

    if tool in REDIRECT_TOOLS:
        changes.extend(
            FileDiff(path=target, operation=DiffOperation.MODIFIED, new_content="(would be written)")
            for target in redirect_targets(args)
        )

    return changes


def describe_simulation(
    tool: str,
    args: Sequence[str],
    changes: Sequence[FileDiff],
    permission: ToolPermission | None,
) -> str:
    """Human-readable narrative of what a command would do."""
    lines = [f"[SIMULATION] Would execute: {' '.join([tool, *args])}", ""]

    if not changes:
        lines.append("No file changes detected.")
    else:
        lines.append(f"Would affect {len(changes)} file(s):")
        lines.extend(f"  - {change.path}" for change in changes)

    if permission is not None:
        lines.append("")
        lines.append(f"Permission level: {permission.level.value}")
        if permission.requires_approval:
            lines.append("Requires approval: YES")

    return "\n".join(lines) + "\n"
