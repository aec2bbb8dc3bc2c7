"""
Checkpoint record model.

A checkpoint topic holds one live record per task:
- key: TaskKey (grouper factory, task name, record type)
- value: TaskSnapshot (stream-partition label -> CheckpointValue)

Field names below are wire constants shared with the stream-processing
framework that owns the topic.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Tuple, Union

from .canonical import compact_json_bytes, compact_json_str
from .errors import MalformedRecord

CHECKPOINT_TYPE = "checkpoint"

GROUPER_FACTORY_FIELD = "systemstreampartition-grouper-factory"
TASK_NAME_FIELD = "taskName"
TYPE_FIELD = "type"

SYSTEM_FIELD = "system"
PARTITION_FIELD = "partition"
OFFSET_FIELD = "offset"
STREAM_FIELD = "stream"


@dataclass(frozen=True)
class TaskKey:
    """
    Identity of a task's checkpoint record.

    Fields:
        grouper_factory: Stream-partition grouping strategy class name
        task_name: Task name (e.g. "Partition 3")
        type: Record kind marker, "checkpoint" for checkpoint records
    """
    grouper_factory: str
    task_name: str
    type: str = CHECKPOINT_TYPE

    def to_dict(self) -> Dict[str, str]:
        return {
            GROUPER_FACTORY_FIELD: self.grouper_factory,
            TASK_NAME_FIELD: self.task_name,
            TYPE_FIELD: self.type,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "TaskKey":
        """Build from a decoded JSON object, ignoring unknown fields."""
        obj = _require_object(data, "task key")
        return cls(
            grouper_factory=_require_str(obj, GROUPER_FACTORY_FIELD),
            task_name=_require_str(obj, TASK_NAME_FIELD),
            type=_require_str(obj, TYPE_FIELD),
        )


@dataclass(frozen=True)
class CheckpointValue:
    """
    Committed position of one stream-partition.

    Partition and offset are kept as decimal text, the way the framework
    writes them.
    """
    system: str
    partition: str
    offset: str
    stream: str

    def to_dict(self) -> Dict[str, str]:
        return {
            SYSTEM_FIELD: self.system,
            PARTITION_FIELD: self.partition,
            OFFSET_FIELD: self.offset,
            STREAM_FIELD: self.stream,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "CheckpointValue":
        obj = _require_object(data, "checkpoint")
        return cls(
            system=_require_str(obj, SYSTEM_FIELD),
            partition=_require_str(obj, PARTITION_FIELD),
            offset=_require_str(obj, OFFSET_FIELD),
            stream=_require_str(obj, STREAM_FIELD),
        )


# Stream-partition label -> checkpoint, e.g. "SystemStreamPartition [kafka, events, 3]"
TaskSnapshot = Dict[str, CheckpointValue]

# Full checkpoint state of a job
Snapshot = Dict[TaskKey, TaskSnapshot]


def _require_object(data: Any, what: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise MalformedRecord(f"{what} must be a JSON object, got {type(data).__name__}")
    return data


def _require_str(obj: Dict[str, Any], name: str) -> str:
    if name not in obj:
        raise MalformedRecord(f"missing field '{name}'")
    value = obj[name]
    if not isinstance(value, str):
        raise MalformedRecord(f"field '{name}' must be a string, got {type(value).__name__}")
    return _require_utf8(value, f"field '{name}'")


def _require_utf8(value: str, what: str) -> str:
    # JSON \uXXXX escapes can decode to lone surrogates, which UTF-8 cannot encode
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as ex:
        raise MalformedRecord(f"{what} is not valid UTF-8 text: {ex}") from ex
    return value


def _load_json(raw: Union[bytes, str, None], what: str) -> Any:
    if raw is None:
        raise MalformedRecord(f"{what} is empty")
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return json.loads(raw)
    except (UnicodeDecodeError, ValueError) as ex:
        raise MalformedRecord(f"{what} is not valid JSON: {ex}") from ex


def task_snapshot_to_dict(streams: TaskSnapshot) -> Dict[str, Dict[str, str]]:
    """Stream-partition labels in sorted order, so encoding is stable."""
    return {label: streams[label].to_dict() for label in sorted(streams)}


def task_snapshot_from_dict(data: Any) -> TaskSnapshot:
    obj = _require_object(data, "task snapshot")
    return {
        _require_utf8(label, "stream-partition label"): CheckpointValue.from_dict(value)
        for label, value in obj.items()
    }


def encode_task_key(key: TaskKey) -> str:
    return compact_json_str(key.to_dict())


def encode_task_snapshot(streams: TaskSnapshot) -> str:
    return compact_json_str(task_snapshot_to_dict(streams))


def encode_record(key: TaskKey, streams: TaskSnapshot) -> Tuple[bytes, bytes]:
    """
    Encode a task's checkpoint as (key bytes, value bytes) for the topic.
    """
    return compact_json_bytes(key.to_dict()), compact_json_bytes(task_snapshot_to_dict(streams))


def decode_task_key(raw: Union[bytes, str, None]) -> TaskKey:
    """
    Decode a TaskKey from JSON text or bytes.

    Raises:
        MalformedRecord: If the JSON is invalid or a field is absent
    """
    return TaskKey.from_dict(_load_json(raw, "task key"))


def decode_task_snapshot(raw: Union[bytes, str, None]) -> TaskSnapshot:
    """
    Decode a TaskSnapshot from JSON text or bytes.

    Raises:
        MalformedRecord: If the JSON is invalid or any checkpoint is incomplete
    """
    return task_snapshot_from_dict(_load_json(raw, "task snapshot"))
