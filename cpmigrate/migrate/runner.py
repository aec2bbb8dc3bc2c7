"""
Migration runner: extract, replace or patch a job's checkpoint topic.

The runner only raises typed errors; deciding on exit codes is left to the
caller.
"""

import logging
from dataclasses import dataclass
from typing import Optional, TextIO

from ..broker.client import BrokerClient, validate_checkpoint_topic
from ..broker.drain import DrainResult, ProgressCallback, drain_topic
from ..broker.writer import publish_snapshot
from ..core.model import Snapshot
from ..core.snapshot import count_checkpoints, filter_snapshot, merge_snapshots
from ..files.codec import read_snapshot_file, write_snapshot, write_snapshot_file
from .config import MigrationConfig, Mode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MigrationResult:
    """
    Result of a migration run.

    Fields:
        mode: Mode that ran
        snapshot: Final snapshot (written, published or printed)
        persisted: True if written to file/topic, False for a test run
        written: Lines written or messages published (0 for a test run)
        skipped: Topic records ignored because they did not decode
    """
    mode: Mode
    snapshot: Snapshot
    persisted: bool
    written: int = 0
    skipped: int = 0


def _drain(client: BrokerClient, config: MigrationConfig, progress: Optional[ProgressCallback]) -> DrainResult:
    result = drain_topic(client, config.topic, progress=progress)
    tasks, checkpoints = count_checkpoints(result.snapshot)
    logger.info(
        "Read %d tasks (%d checkpoints) from %s, %d records consumed",
        tasks,
        checkpoints,
        config.topic,
        result.consumed,
    )
    if result.skipped:
        logger.warning("Skipped %d records that are not checkpoints in %s", result.skipped, config.topic)
    return result


def _read_file(config: MigrationConfig) -> Snapshot:
    snapshot = read_snapshot_file(config.file_path)
    tasks, checkpoints = count_checkpoints(snapshot)
    logger.info("Read %d tasks (%d checkpoints) from %s", tasks, checkpoints, config.file_path)
    return snapshot


def run_migration(
    config: MigrationConfig,
    client: BrokerClient,
    out: TextIO,
    progress: Optional[ProgressCallback] = None,
) -> MigrationResult:
    """
    Run one migration.

    - extract: topic -> filter -> file
    - replace: file -> filter -> topic
    - patch: topic + filter(file) merged -> topic

    Without config.commit the resulting snapshot is printed to out in file
    format and nothing is persisted.

    Args:
        config: Run configuration
        client: Broker client (owned by the caller)
        out: Stream for test-run output
        progress: Drain progress callback

    Returns:
        MigrationResult

    Raises:
        TopologyMismatch: If the checkpoint topic is missing or multi-partition
        MalformedRecord: If the checkpoints file has a bad line
        ReadFailure: If the checkpoints file exists but cannot be read
        PersistFailure: If writing the file or topic fails
        TransportFailure: On broker errors
    """
    topic = config.topic
    logger.info("Validating topic: %s", topic)
    validate_checkpoint_topic(client, topic)

    skipped = 0
    if config.mode is Mode.EXTRACT:
        drained = _drain(client, config, progress)
        skipped = drained.skipped
        result = filter_snapshot(drained.snapshot, config.include, config.exclude)
    elif config.mode is Mode.REPLACE:
        result = filter_snapshot(_read_file(config), config.include, config.exclude)
    elif config.mode is Mode.PATCH:
        drained = _drain(client, config, progress)
        skipped = drained.skipped
        patch = filter_snapshot(_read_file(config), config.include, config.exclude)
        result = merge_snapshots(drained.snapshot, patch)
    else:
        raise ValueError(f"unknown mode: {config.mode}")

    if not config.commit:
        write_snapshot(result, out)
        return MigrationResult(mode=config.mode, snapshot=result, persisted=False, skipped=skipped)

    if config.mode is Mode.EXTRACT:
        written = write_snapshot_file(result, config.file_path)
        logger.info("Successfully extracted %s to %s", topic, config.file_path)
    else:
        written = publish_snapshot(client, result, topic)
        verb = "replaced" if config.mode is Mode.REPLACE else "patched"
        logger.info("Successfully %s %s with %s", verb, topic, config.file_path)

    return MigrationResult(
        mode=config.mode,
        snapshot=result,
        persisted=True,
        written=written,
        skipped=skipped,
    )
