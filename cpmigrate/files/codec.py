r"""
Checkpoint file format.

One line per task:
    <json(TaskKey)>\t<json(TaskSnapshot)>\n

JSON never emits a literal tab, so the tab is an unambiguous separator.
The file is operator-supplied input: any bad line aborts the whole read.
"""

import os
from typing import BinaryIO, Iterable, Iterator, TextIO, Tuple

from ..core.errors import MalformedRecord, PersistFailure, ReadFailure
from ..core.model import (
    Snapshot,
    TaskKey,
    TaskSnapshot,
    decode_task_key,
    decode_task_snapshot,
    encode_task_key,
    encode_task_snapshot,
)

FIELD_SEPARATOR = "\t"


def format_line(key: TaskKey, streams: TaskSnapshot) -> str:
    """Format one task as a file line (without trailing newline)."""
    return f"{encode_task_key(key)}{FIELD_SEPARATOR}{encode_task_snapshot(streams)}"


def format_lines(snapshot: Snapshot) -> Iterator[str]:
    """Yield one line per task, in snapshot order."""
    for key, streams in snapshot.items():
        yield format_line(key, streams)


def parse_line(line: str, line_no: int = 0) -> Tuple[TaskKey, TaskSnapshot]:
    """
    Parse one file line into (TaskKey, TaskSnapshot).

    Raises:
        MalformedRecord: If the line does not hold exactly two tab-separated
            fields or either field does not decode
    """
    fields = line.rstrip("\r\n").split(FIELD_SEPARATOR)
    if len(fields) != 2:
        raise MalformedRecord(f"line {line_no}: expected 2 tab-separated fields, got {len(fields)}")

    try:
        key = decode_task_key(fields[0])
    except MalformedRecord as ex:
        raise MalformedRecord(f"line {line_no}: unexpected key '{fields[0]}': {ex}") from ex

    try:
        streams = decode_task_snapshot(fields[1])
    except MalformedRecord as ex:
        raise MalformedRecord(f"line {line_no}: unexpected streams '{fields[1]}': {ex}") from ex

    return key, streams


def read_snapshot_lines(lines: Iterable[str]) -> Snapshot:
    """
    Build a snapshot from file lines.

    Blank lines are ignored. A key repeated on a later line overwrites the
    earlier one.
    """
    snapshot: Snapshot = {}
    for line_no, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        key, streams = parse_line(line, line_no)
        snapshot[key] = streams
    return snapshot


def _decoded_lines(f: BinaryIO) -> Iterator[str]:
    for line_no, raw in enumerate(f, start=1):
        try:
            yield raw.decode("utf-8")
        except UnicodeDecodeError as ex:
            raise MalformedRecord(f"line {line_no}: invalid UTF-8: {ex}") from ex


def read_snapshot_file(path: str) -> Snapshot:
    """
    Read a checkpoint file.

    Args:
        path: File path

    Returns:
        Snapshot

    Raises:
        FileNotFoundError: If path does not exist
        MalformedRecord: On the first bad line, including invalid UTF-8
        ReadFailure: If path exists but cannot be read
    """
    try:
        with open(path, "rb") as f:
            return read_snapshot_lines(_decoded_lines(f))
    except FileNotFoundError:
        raise
    except OSError as ex:
        raise ReadFailure(f"Unable to read {path}: {ex}") from ex


def write_snapshot(snapshot: Snapshot, out: TextIO) -> int:
    """Write snapshot lines to an open text stream. Returns lines written."""
    written = 0
    for line in format_lines(snapshot):
        out.write(line + "\n")
        written += 1
    return written


def write_snapshot_file(snapshot: Snapshot, path: str) -> int:
    """
    Create or truncate path and write snapshot to it.

    Args:
        snapshot: Checkpoints to write
        path: Target file

    Returns:
        Number of lines written

    Raises:
        PersistFailure: If the file cannot be written
    """
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            written = write_snapshot(snapshot, f)
            f.flush()
            os.fsync(f.fileno())
    except OSError as ex:
        raise PersistFailure(f"Unable to write {path}: {ex}") from ex
    return written
