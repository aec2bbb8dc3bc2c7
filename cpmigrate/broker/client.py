"""
BrokerClient abstract interface.

Defines the contract the migration needs from a message broker.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional

from ..core.errors import TopologyMismatch

CHECKPOINT_PARTITION = 0


@dataclass(frozen=True)
class BrokerRecord:
    """
    One record read from a topic partition.

    key and value are raw bytes (None for null key/value).
    """

    key: Optional[bytes]
    value: Optional[bytes]
    offset: int


class BrokerClient(ABC):
    """
    Abstract broker interface.

    Implementations must guarantee:
    - consume() yields records in ascending offset order
    - publish() returns only once the leader acknowledged the write
    - close() releases every connection and is safe to call twice
    """

    @abstractmethod
    def partition_count(self, topic: str) -> int:
        """
        Number of partitions of topic (0 if the topic does not exist).

        Raises:
            TransportFailure: If metadata cannot be fetched
        """
        ...

    @abstractmethod
    def high_water_mark(self, topic: str, partition: int) -> int:
        """
        Offset one past the last record currently in the partition.

        Raises:
            TransportFailure: If the offset cannot be fetched
        """
        ...

    @abstractmethod
    def consume(self, topic: str, partition: int, offset: int) -> Iterator[BrokerRecord]:
        """
        Read records from partition starting at offset (inclusive).

        The iterator blocks waiting for records; callers decide when to stop.

        Raises:
            TransportFailure: On broker errors
        """
        ...

    @abstractmethod
    def publish(self, topic: str, key: bytes, value: bytes) -> None:
        """
        Publish one message and wait for leader acknowledgement.

        Raises:
            TransportFailure: If the message was not acknowledged
        """
        ...

    def close(self) -> None:
        """Release connections. Default does nothing."""
        return None

    def __enter__(self) -> "BrokerClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def checkpoint_topic(job_name: str) -> str:
    """
    Checkpoint topic name for a job.

    Raises:
        ValueError: If job_name is empty
    """
    if not job_name:
        raise ValueError("job name is required")
    return f"__checkpoint_ver_1_for_{job_name}_1"


def validate_checkpoint_topic(client: BrokerClient, topic: str) -> None:
    """
    Ensure topic exists with exactly one partition.

    Raises:
        TopologyMismatch: If the topic is missing or has more partitions
    """
    count = client.partition_count(topic)
    if count == 0:
        raise TopologyMismatch(f"Topic {topic} does not exist")
    if count != 1:
        raise TopologyMismatch(f"Invalid partitions count for {topic}, expected 1, got {count}")
