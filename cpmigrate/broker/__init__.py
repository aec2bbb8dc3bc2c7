"""
Broker access for checkpoint topics.

This module provides:
- BrokerClient: Abstract broker interface
- checkpoint_topic / validate_checkpoint_topic: topic naming and topology check
- drain_topic: Bounded read of a compacted checkpoint topic
- publish_snapshot: One message per task, leader acknowledged

KafkaBrokerClient lives in .kafka_client and is imported on demand so that the
core does not require librdkafka.
"""

from .client import (
    CHECKPOINT_PARTITION,
    BrokerClient,
    BrokerRecord,
    checkpoint_topic,
    validate_checkpoint_topic,
)
from .drain import DrainResult, drain_topic
from .writer import publish_snapshot

__all__ = [
    "CHECKPOINT_PARTITION",
    "BrokerClient",
    "BrokerRecord",
    "checkpoint_topic",
    "validate_checkpoint_topic",
    "DrainResult",
    "drain_topic",
    "publish_snapshot",
]
