"""Hunk and summary computation on top of :mod:`difflib`."""

from __future__ import annotations

import difflib
from collections.abc import Iterator, Sequence
from pathlib import Path

from agent_sandbox.types.diff import ChangeTag, DiffChange, DiffHunk, DiffSummary, UnifiedDiff

_PREFIX = {
    ChangeTag.EQUAL: " ",
    ChangeTag.INSERT: "+",
    ChangeTag.DELETE: "-",
}


def line_diff(old: Sequence[str], new: Sequence[str]) -> Iterator[tuple[ChangeTag, str]]:
    """Tagged change stream between two line sequences.

    Replacements are emitted as all deletions followed by all insertions.
    """
    matcher = difflib.SequenceMatcher(a=old, b=new, autojunk=False)
    for op, i1, i2, j1, j2 in matcher.get_opcodes():
        if op == "equal":
            for line in old[i1:i2]:
                yield ChangeTag.EQUAL, line
            continue
        if op in ("replace", "delete"):
            for line in old[i1:i2]:
                yield ChangeTag.DELETE, line
        if op in ("replace", "insert"):
            for line in new[j1:j2]:
                yield ChangeTag.INSERT, line


def compute_hunks(old: Sequence[str], new: Sequence[str]) -> list[DiffHunk]:
    """Group consecutive inserts/deletes into hunks with 1-based start lines."""
    hunks: list[DiffHunk] = []
    current: DiffHunk | None = None
    old_line = 0
    new_line = 0

    for tag, text in line_diff(old, new):
        if tag is ChangeTag.EQUAL:
            if current is not None:
                hunks.append(current)
                current = None
            old_line += 1
            new_line += 1
            continue

        if current is None:
            current = DiffHunk(old_start=old_line + 1, new_start=new_line + 1)

        if tag is ChangeTag.DELETE:
            current.old_lines += 1
            current.changes.append(DiffChange(old_line, text, tag))
            old_line += 1
        else:
            current.new_lines += 1
            current.changes.append(DiffChange(new_line, text, tag))
            new_line += 1

    if current is not None:
        hunks.append(current)
    return hunks


def unified_diff(old: str, new: str, old_path: str = "file", new_path: str | None = None) -> UnifiedDiff:
    """Compute a :class:`UnifiedDiff` between two texts."""
    hunks = compute_hunks(old.splitlines(keepends=True), new.splitlines(keepends=True))
    return UnifiedDiff(
        old_path=old_path,
        new_path=new_path if new_path is not None else old_path,
        hunks=tuple(hunks),
    )


def format_unified_diff(diff: UnifiedDiff) -> str:
    """Render *diff* with ``---``/``+++`` headers and ``@@`` hunk markers."""
    out = [f"--- a/{diff.old_path}\n", f"+++ b/{diff.new_path}\n"]
    for hunk in diff.hunks:
        out.append(
            f"@@ -{hunk.old_start},{hunk.old_lines} +{hunk.new_start},{hunk.new_lines} @@\n"
        )
        for change in hunk.changes:
            line = change.content if change.content.endswith("\n") else change.content + "\n"
            out.append(_PREFIX[change.tag] + line)
    return "".join(out)


def diff_summary(old: str, new: str) -> DiffSummary:
    """Count inserted, deleted and unchanged lines."""
    counts = {tag: 0 for tag in ChangeTag}
    for tag, _ in line_diff(old.splitlines(keepends=True), new.splitlines(keepends=True)):
        counts[tag] += 1
    return DiffSummary(
        added=counts[ChangeTag.INSERT],
        deleted=counts[ChangeTag.DELETE],
        unchanged=counts[ChangeTag.EQUAL],
    )


def compute_file_diff(old_path: str | Path, new_path: str | Path) -> UnifiedDiff:
    """Diff two files on disk. A missing file counts as empty."""
    old_path, new_path = Path(old_path), Path(new_path)
    old = old_path.read_text() if old_path.exists() else ""
    new = new_path.read_text() if new_path.exists() else ""
    return unified_diff(old, new, str(old_path), str(new_path))


_COLUMN = 35


def side_by_side_diff(old: str, new: str) -> str:
    """Two-column box-drawn view of the change stream."""
    bar = "─" * (_COLUMN + 2)
    out = [
        f"┌{bar}┬{bar}┐\n",
        f"│ {'OLD':<{_COLUMN}} │ {'NEW':<{_COLUMN}} │\n",
        f"├{bar}┼{bar}┤\n",
    ]
    for tag, text in line_diff(old.splitlines(keepends=True), new.splitlines(keepends=True)):
        line = text.rstrip()
        left = line if tag is not ChangeTag.INSERT else ""
        right = line if tag is not ChangeTag.DELETE else ""
        out.append(f"│{_PREFIX[tag]}{left:<{_COLUMN}} │ {right:<{_COLUMN}} │\n")
    out.append(f"└{bar}┴{bar}┘\n")
    return "".join(out)
