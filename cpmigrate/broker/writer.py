"""
Topic writer: publish a snapshot as one message per task.
"""

import logging

from ..core.errors import PersistFailure, TransportFailure
from ..core.model import Snapshot, encode_record
from .client import BrokerClient

logger = logging.getLogger(__name__)


def publish_snapshot(client: BrokerClient, snapshot: Snapshot, topic: str) -> int:
    """
    Publish every task of snapshot to topic.

    Each message is acknowledged before the next is sent. There is no batch
    or transaction: when message N fails, messages before it stay in the log.

    Args:
        client: Broker client
        snapshot: Checkpoints to publish
        topic: Target checkpoint topic

    Returns:
        Number of messages published

    Raises:
        PersistFailure: On the first failed publish (no retry)
    """
    published = 0
    for key, streams in snapshot.items():
        raw_key, raw_value = encode_record(key, streams)
        logger.debug("Producing %s: %s", raw_key.decode("utf-8"), raw_value.decode("utf-8"))

        try:
            client.publish(topic, raw_key, raw_value)
        except TransportFailure as ex:
            raise PersistFailure(
                f"Unable to produce to {topic} after {published} messages: {ex}",
                written=published,
            ) from ex
        published += 1

    logger.info("Published %d checkpoint records to %s", published, topic)
    return published
