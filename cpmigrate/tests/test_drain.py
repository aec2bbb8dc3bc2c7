"""
Tests for bounded topic drain.

Critical tests:
1. Last record per key wins
2. Empty partition: no consume, empty snapshot
3. Undecodable records are skipped and counted
4. Scan stops at the high-water-mark captured at start
5. Topology is checked before consuming
"""

import pytest

from cpmigrate.broker.client import checkpoint_topic, validate_checkpoint_topic
from cpmigrate.broker.drain import drain_topic
from cpmigrate.core.errors import TopologyMismatch
from cpmigrate.core.model import CheckpointValue, TaskKey, encode_record

from .fake_broker import FakeBrokerClient

TOPIC = checkpoint_topic("page-views")
GROUPER = "org.apache.samza.container.grouper.stream.GroupByPartitionFactory"


def record(task: str, offset: str):
    key = TaskKey(GROUPER, task)
    streams = {f"ssp {task}": CheckpointValue("kafka", "0", offset, "clicks")}
    return encode_record(key, streams)


def make_client(*records):
    client = FakeBrokerClient()
    client.add_topic(TOPIC)
    for key, value in records:
        client.append(TOPIC, key, value)
    return client


def test_checkpoint_topic_name():
    assert checkpoint_topic("page-views") == "__checkpoint_ver_1_for_page-views_1"
    with pytest.raises(ValueError):
        checkpoint_topic("")


def test_last_write_wins():
    """Offsets 0,1,2 with offset 1 repeating offset 0's key."""
    client = make_client(record("Partition 0", "10"), record("Partition 0", "11"), record("Partition 1", "20"))

    result = drain_topic(client, TOPIC)

    assert result.high_water_mark == 3
    assert result.consumed == 3
    assert result.skipped == 0
    assert len(result.snapshot) == 2
    assert result.snapshot[TaskKey(GROUPER, "Partition 0")]["ssp Partition 0"].offset == "11"


def test_empty_partition():
    client = make_client()

    result = drain_topic(client, TOPIC)

    assert result.snapshot == {}
    assert result.consumed == 0
    assert result.high_water_mark == 0
    assert client.consume_calls == []


def test_malformed_records_skipped():
    good_key, good_value = record("Partition 0", "10")
    client = make_client(
        (b"not json", good_value),
        (good_key, b"{broken"),
        (None, None),
        (good_key, good_value),
    )

    result = drain_topic(client, TOPIC)

    assert result.consumed == 4
    assert result.skipped == 3
    assert list(result.snapshot) == [TaskKey(GROUPER, "Partition 0")]


def test_malformed_last_record_still_terminates():
    client = make_client(record("Partition 0", "10"), (b"junk", b"junk"))

    result = drain_topic(client, TOPIC)

    assert result.consumed == 2
    assert result.skipped == 1
    assert len(result.snapshot) == 1


def test_lone_surrogate_key_skipped():
    """A key that could not be re-encoded is skipped like any other bad record."""
    client = make_client(
        (b'{"systemstreampartition-grouper-factory":"g","taskName":"\\ud800","type":"checkpoint"}', b"{}"),
    )

    result = drain_topic(client, TOPIC)

    assert result.consumed == 1
    assert result.skipped == 1
    assert result.snapshot == {}


def test_stops_at_start_high_water_mark():
    """Records published during the scan are not read."""
    client = make_client(record("Partition 0", "10"), record("Partition 1", "20"))
    late_key, late_value = record("Partition 2", "30")

    def progress(offset, hwm):
        client.append(TOPIC, late_key, late_value)

    result = drain_topic(client, TOPIC, progress=progress)

    assert result.high_water_mark == 2
    assert result.consumed == 2
    assert TaskKey(GROUPER, "Partition 2") not in result.snapshot


def test_progress_reports_offsets():
    client = make_client(record("Partition 0", "1"), record("Partition 1", "2"), record("Partition 2", "3"))
    seen = []

    drain_topic(client, TOPIC, progress=lambda offset, hwm: seen.append((offset, hwm)))

    assert seen == [(0, 3), (1, 3), (2, 3)]


def test_consumes_from_offset_zero():
    client = make_client(record("Partition 0", "1"))

    drain_topic(client, TOPIC)

    assert client.consume_calls == [(TOPIC, 0, 0)]


def test_missing_topic_fails_before_consuming():
    client = FakeBrokerClient()

    with pytest.raises(TopologyMismatch):
        drain_topic(client, TOPIC)
    assert client.consume_calls == []


def test_multi_partition_topic_rejected():
    client = make_client(record("Partition 0", "1"))
    client.add_topic(TOPIC, partitions=3)

    with pytest.raises(TopologyMismatch) as exc_info:
        validate_checkpoint_topic(client, TOPIC)
    assert "expected 1, got 3" in str(exc_info.value)

    with pytest.raises(TopologyMismatch):
        drain_topic(client, TOPIC)
    assert client.consume_calls == []
