"""
Checkpoint data model and snapshot transforms.

This module provides:
- TaskKey / CheckpointValue: checkpoint record shapes
- Snapshot / TaskSnapshot: in-memory checkpoint state
- Encoding and decoding of keys and values
- clone / filter / merge of snapshots
- Error taxonomy
"""

from .model import (
    CHECKPOINT_TYPE,
    TaskKey,
    CheckpointValue,
    TaskSnapshot,
    Snapshot,
    encode_task_key,
    encode_task_snapshot,
    encode_record,
    decode_task_key,
    decode_task_snapshot,
)
from .snapshot import clone_snapshot, filter_snapshot, merge_snapshots, count_checkpoints
from .errors import (
    CheckpointToolError,
    MalformedRecord,
    TopologyMismatch,
    PersistFailure,
    TransportFailure,
    ConfigError,
    ReadFailure,
)

__all__ = [
    "CHECKPOINT_TYPE",
    "TaskKey",
    "CheckpointValue",
    "TaskSnapshot",
    "Snapshot",
    "encode_task_key",
    "encode_task_snapshot",
    "encode_record",
    "decode_task_key",
    "decode_task_snapshot",
    "clone_snapshot",
    "filter_snapshot",
    "merge_snapshots",
    "count_checkpoints",
    "CheckpointToolError",
    "MalformedRecord",
    "TopologyMismatch",
    "PersistFailure",
    "TransportFailure",
    "ConfigError",
    "ReadFailure",
]
