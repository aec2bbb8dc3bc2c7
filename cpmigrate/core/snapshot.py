"""
Snapshot transforms: clone, filter, merge.

All transforms are pure. They never mutate their inputs and the result never
shares a TaskSnapshot dict with an input.
"""

from typing import AbstractSet, Iterable, Tuple

from .model import Snapshot, TaskKey, TaskSnapshot


def has(stream: str, names: AbstractSet[str]) -> bool:
    """Case-sensitive membership."""
    return stream in names


def has_or_empty(stream: str, names: AbstractSet[str]) -> bool:
    """True when names is empty (no restriction) or contains stream."""
    return len(names) == 0 or has(stream, names)


def has_no_or_empty(stream: str, names: AbstractSet[str]) -> bool:
    """True when names is empty (no restriction) or does not contain stream."""
    return len(names) == 0 or not has(stream, names)


def clone_snapshot(snapshot: Snapshot) -> Snapshot:
    """
    Copy a snapshot down to its TaskSnapshot dicts.

    CheckpointValue and TaskKey are frozen, so they are shared.
    """
    return {key: dict(streams) for key, streams in snapshot.items()}


def filter_snapshot(
    snapshot: Snapshot,
    include: AbstractSet[str] = frozenset(),
    exclude: AbstractSet[str] = frozenset(),
) -> Snapshot:
    """
    Narrow every task to checkpoints of the selected streams.

    A checkpoint is kept when its stream passes
    (include is empty OR stream in include) AND (exclude is empty OR stream not in exclude).

    Every TaskKey of the input is kept, even if all its checkpoints are filtered
    out, so the result has the same task set.

    Args:
        snapshot: Source snapshot
        include: Stream names to keep (empty = all)
        exclude: Stream names to drop (empty = none)

    Returns:
        New snapshot
    """
    filtered: Snapshot = {}
    for key, streams in snapshot.items():
        filtered[key] = {
            label: checkpoint
            for label, checkpoint in streams.items()
            if has_or_empty(checkpoint.stream, include) and has_no_or_empty(checkpoint.stream, exclude)
        }
    return filtered


def merge_snapshots(base: Snapshot, patch: Snapshot) -> Snapshot:
    """
    Overlay patch onto a copy of base.

    Per task:
    - patch task with no checkpoints: ignored, base task left as is
    - task in both: per stream-partition upsert, patch wins, base-only entries stay
    - task only in patch: inserted (copied)

    Args:
        base: Current state (e.g. drained from topic)
        patch: Changes to apply (e.g. read from file)

    Returns:
        New merged snapshot
    """
    merged = clone_snapshot(base)

    for key, patch_streams in patch.items():
        if not patch_streams:
            continue

        if key in merged:
            merged[key].update(patch_streams)
        else:
            merged[key] = dict(patch_streams)

    return merged


def count_checkpoints(snapshot: Snapshot) -> Tuple[int, int]:
    """Return (task count, checkpoint count)."""
    return len(snapshot), sum(len(streams) for streams in snapshot.values())


def streams_of(snapshot: Snapshot) -> Iterable[str]:
    """Distinct stream names in the snapshot, sorted."""
    return sorted({cp.stream for streams in snapshot.values() for cp in streams.values()})


def sorted_tasks(snapshot: Snapshot) -> Iterable[Tuple[TaskKey, TaskSnapshot]]:
    """
    Yield (key, streams) ordered by task name.

    Used for stable display only; snapshot order carries no meaning.
    """
    for key in sorted(snapshot, key=lambda k: (k.task_name, k.grouper_factory, k.type)):
        yield key, snapshot[key]
