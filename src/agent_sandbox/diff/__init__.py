"""Line diffs: hunks, unified rendering and summaries."""

from agent_sandbox.diff.engine import (
    compute_file_diff,
    compute_hunks,
    diff_summary,
    format_unified_diff,
    line_diff,
    side_by_side_diff,
    unified_diff,
)

__all__ = [
    "compute_file_diff",
    "compute_hunks",
    "diff_summary",
    "format_unified_diff",
    "line_diff",
    "side_by_side_diff",
    "unified_diff",
]
