"""
Tests for the tab-separated checkpoints file.
"""

import io
import os
import tempfile

import pytest

from cpmigrate.core.errors import MalformedRecord, PersistFailure, ReadFailure
from cpmigrate.core.model import CheckpointValue, TaskKey
from cpmigrate.files.codec import (
    format_line,
    parse_line,
    read_snapshot_file,
    read_snapshot_lines,
    write_snapshot,
    write_snapshot_file,
)

GROUPER = "org.apache.samza.container.grouper.stream.GroupByPartitionFactory"


def make_snapshot():
    return {
        TaskKey(GROUPER, "Partition 0"): {
            "SystemStreamPartition [kafka, clicks, 0]": CheckpointValue("kafka", "0", "100", "clicks"),
            "SystemStreamPartition [kafka, views, 0]": CheckpointValue("kafka", "0", "200", "views"),
        },
        TaskKey(GROUPER, "Partition 1"): {
            "SystemStreamPartition [kafka, clicks, 1]": CheckpointValue("kafka", "1", "300", "clicks"),
        },
        TaskKey(GROUPER, "Partition 2"): {},
    }


def test_line_format():
    key = TaskKey(GROUPER, "Partition 1")
    streams = {"ssp": CheckpointValue("kafka", "1", "5", "clicks")}

    line = format_line(key, streams)

    assert line.count("\t") == 1
    head, tail = line.split("\t")
    assert head.startswith('{"systemstreampartition-grouper-factory"')
    assert tail == '{"ssp":{"system":"kafka","partition":"1","offset":"5","stream":"clicks"}}'


def test_file_roundtrip():
    snapshot = make_snapshot()

    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "checkpoints.tsv")
        written = write_snapshot_file(snapshot, path)

        with open(path, "r", encoding="utf-8") as f:
            lines = f.readlines()

        assert written == 3
        assert len(lines) == 3
        assert all(line.endswith("\n") for line in lines)
        assert read_snapshot_file(path) == snapshot


def test_write_truncates_existing_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "checkpoints.tsv")
        with open(path, "w") as f:
            f.write("garbage\n" * 10)

        write_snapshot_file({}, path)

        assert os.path.getsize(path) == 0
        assert read_snapshot_file(path) == {}


def test_write_creates_parent_directory():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "nested", "dir", "cp.tsv")

        write_snapshot_file(make_snapshot(), path)

        assert os.path.exists(path)


def test_write_failure_raises_persist_failure():
    with tempfile.TemporaryDirectory() as tmpdir:
        # A directory cannot be opened for writing
        with pytest.raises(PersistFailure):
            write_snapshot_file(make_snapshot(), tmpdir)


def test_write_to_stream():
    out = io.StringIO()

    assert write_snapshot(make_snapshot(), out) == 3
    assert read_snapshot_lines(io.StringIO(out.getvalue())) == make_snapshot()


def test_blank_lines_ignored_and_crlf_accepted():
    key = TaskKey(GROUPER, "Partition 0")
    line = format_line(key, {"ssp": CheckpointValue("kafka", "0", "1", "s")})

    snapshot = read_snapshot_lines(["\n", line + "\r\n", "   \n"])

    assert list(snapshot) == [key]


def test_duplicate_key_last_line_wins():
    key = TaskKey(GROUPER, "Partition 0")
    first = format_line(key, {"ssp": CheckpointValue("kafka", "0", "1", "s")})
    second = format_line(key, {"ssp": CheckpointValue("kafka", "0", "2", "s")})

    snapshot = read_snapshot_lines([first, second])

    assert snapshot[key]["ssp"].offset == "2"


@pytest.mark.parametrize(
    "line",
    [
        "no tab here",
        "a\tb\tc",
        '{"systemstreampartition-grouper-factory":"g","taskName":"t","type":"checkpoint"}\tnot json',
        'not json\t{}',
        '{"taskName":"t","type":"checkpoint"}\t{}',
    ],
)
def test_bad_line_raises(line):
    with pytest.raises(MalformedRecord):
        parse_line(line, 1)


def test_bad_line_aborts_whole_read():
    """Unlike a topic drain, a corrupt file line is fatal."""
    good = format_line(TaskKey(GROUPER, "Partition 0"), {})

    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "cp.tsv")
        with open(path, "w", encoding="utf-8") as f:
            f.write(good + "\n")
            f.write("broken line\n")
            f.write(good + "\n")

        with pytest.raises(MalformedRecord) as exc_info:
            read_snapshot_file(path)

    assert "line 2" in str(exc_info.value)


def test_missing_file_raises_file_not_found():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(FileNotFoundError):
            read_snapshot_file(os.path.join(tmpdir, "missing.tsv"))


def test_invalid_utf8_is_malformed_record(tmp_path):
    """Undecodable bytes are a bad line, reported with its number."""
    good = format_line(TaskKey(GROUPER, "Partition 0"), {}).encode("utf-8")
    path = tmp_path / "cp.tsv"
    path.write_bytes(
        good + b"\n"
        + b'{"systemstreampartition-grouper-factory":"g","taskName":"\xff","type":"checkpoint"}\t{}\n'
    )

    with pytest.raises(MalformedRecord) as exc_info:
        read_snapshot_file(str(path))

    assert "line 2" in str(exc_info.value)


def test_lone_surrogate_escape_is_malformed_record(tmp_path):
    """A JSON escape that decodes to a lone surrogate could never be written back."""
    path = tmp_path / "cp.tsv"
    path.write_text(
        '{"systemstreampartition-grouper-factory":"g","taskName":"\\ud800","type":"checkpoint"}\t{}\n',
        encoding="utf-8",
    )

    with pytest.raises(MalformedRecord, match="line 1"):
        read_snapshot_file(str(path))


def test_unreadable_path_raises_read_failure(tmp_path):
    with pytest.raises(ReadFailure):
        read_snapshot_file(str(tmp_path))
