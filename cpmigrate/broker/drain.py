"""
Topic drain: reconstruct checkpoint state from a compacted topic.

Drain is bounded: the high-water-mark is read once before consuming, and the
scan stops at the record just below it. Records published after the scan
started are not waited for.

The whole snapshot is held in memory. A checkpoint topic carries one live
record per task, so memory grows with the job's task count.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ..core.errors import MalformedRecord
from ..core.model import Snapshot, decode_task_key, decode_task_snapshot
from .client import CHECKPOINT_PARTITION, BrokerClient, validate_checkpoint_topic

logger = logging.getLogger(__name__)

# progress(offset, high_water_mark)
ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class DrainResult:
    """
    Result of a drain.

    Fields:
        snapshot: Compacted state (last record per task key)
        consumed: Records read from the topic
        skipped: Records that failed to decode and were ignored
        high_water_mark: Partition end offset captured at scan start
    """
    snapshot: Snapshot
    consumed: int
    skipped: int
    high_water_mark: int


def drain_topic(
    client: BrokerClient,
    topic: str,
    progress: Optional[ProgressCallback] = None,
) -> DrainResult:
    """
    Read a single-partition checkpoint topic from offset 0 to its end.

    Records whose key or value does not decode are skipped; other traffic may
    share the topic. Later records overwrite earlier ones with the same key.

    Args:
        client: Broker client
        topic: Checkpoint topic
        progress: Called with (offset, high_water_mark) for each record

    Returns:
        DrainResult

    Raises:
        TopologyMismatch: If topic is missing or not single-partition
        TransportFailure: On broker errors
    """
    validate_checkpoint_topic(client, topic)

    hwm = client.high_water_mark(topic, CHECKPOINT_PARTITION)
    snapshot: Snapshot = {}
    consumed = 0
    skipped = 0

    if hwm <= 0:
        logger.info("Topic %s is empty", topic)
        return DrainResult(snapshot=snapshot, consumed=0, skipped=0, high_water_mark=0)

    logger.info("Restoring from %s (%d records)", topic, hwm)

    records = client.consume(topic, CHECKPOINT_PARTITION, 0)
    try:
        for record in records:
            consumed += 1
            if progress is not None:
                progress(record.offset, hwm)

            try:
                key = decode_task_key(record.key)
                streams = decode_task_snapshot(record.value)
            except MalformedRecord as ex:
                skipped += 1
                logger.debug("Skipping record at offset %d: %s", record.offset, ex)
            else:
                snapshot[key] = streams

            if record.offset + 1 >= hwm:
                break
    finally:
        close = getattr(records, "close", None)
        if close is not None:
            close()

    return DrainResult(snapshot=snapshot, consumed=consumed, skipped=skipped, high_water_mark=hwm)
