"""
Tab-separated checkpoint files.
"""

from .codec import (
    format_line,
    format_lines,
    parse_line,
    read_snapshot_lines,
    read_snapshot_file,
    write_snapshot,
    write_snapshot_file,
)

__all__ = [
    "format_line",
    "format_lines",
    "parse_line",
    "read_snapshot_lines",
    "read_snapshot_file",
    "write_snapshot",
    "write_snapshot_file",
]
