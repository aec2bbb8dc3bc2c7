"""
Kafka broker client on confluent-kafka.

One producer and one consumer share the broker list:
- producer: acks=1 (leader), no compression, no lingering, one message in flight
- consumer: manual partition assignment, no offset commits

The consumer never joins a consumer group rebalance (assign, not subscribe),
so draining a checkpoint topic leaves no committed offsets behind.
"""

import logging
from typing import Iterator, List, Optional, Sequence

from confluent_kafka import Consumer, KafkaError, KafkaException, Producer, TopicPartition

from ..core.errors import TransportFailure
from .client import BrokerClient, BrokerRecord

logger = logging.getLogger(__name__)

KAFKA_LOGGER_NAME = "cpmigrate.kafka"


class KafkaBrokerClient(BrokerClient):
    """
    BrokerClient backed by librdkafka.

    Usage:
        with KafkaBrokerClient(["kafka-1:9092"]) as client:
            client.partition_count("__checkpoint_ver_1_for_job_1")
    """

    def __init__(
        self,
        brokers: Sequence[str],
        verbose: bool = False,
        timeout: float = 30.0,
        poll_interval: float = 1.0,
        group_id: str = "cpmigrate",
    ) -> None:
        """
        Connect producer and consumer.

        Args:
            brokers: Bootstrap servers (host:port)
            verbose: Route librdkafka debug output to the cpmigrate.kafka logger
            timeout: Seconds to wait for metadata, offsets and acknowledgements
            poll_interval: Seconds per consumer poll

        Raises:
            TransportFailure: If the clients cannot be created
        """
        if not brokers:
            raise TransportFailure("no brokers given")

        self.brokers = list(brokers)
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._closed = False

        common = {"bootstrap.servers": ",".join(self.brokers)}
        if verbose:
            common["debug"] = "broker,topic,msg"
            common["logger"] = logging.getLogger(KAFKA_LOGGER_NAME)

        producer_conf = dict(common)
        producer_conf.update(
            {
                "acks": "1",
                "compression.type": "none",
                "linger.ms": 0,
                "max.in.flight.requests.per.connection": 1,
            }
        )
        consumer_conf = dict(common)
        consumer_conf.update(
            {
                "group.id": group_id,
                "enable.auto.commit": False,
                "enable.auto.offset.store": False,
                "auto.offset.reset": "earliest",
                "enable.partition.eof": False,
            }
        )

        servers = common["bootstrap.servers"]
        try:
            self._producer = Producer(producer_conf)
        except KafkaException as ex:
            raise TransportFailure(f"Unable to connect to {servers}: {ex}") from ex
        try:
            self._consumer = Consumer(consumer_conf)
        except KafkaException as ex:
            # Producer has no close(); flush and drop it so its handle is released
            self._producer.flush(0)
            self._producer = None
            raise TransportFailure(f"Unable to connect to {servers}: {ex}") from ex

        logger.info("Connected to %s", servers)

    def partition_count(self, topic: str) -> int:
        try:
            metadata = self._producer.list_topics(topic=topic, timeout=self.timeout)
        except KafkaException as ex:
            raise TransportFailure(f"Unable to get info for topic {topic}: {ex}") from ex

        topic_meta = metadata.topics.get(topic)
        if topic_meta is None:
            return 0
        if topic_meta.error is not None:
            if topic_meta.error.code() == KafkaError.UNKNOWN_TOPIC_OR_PART:
                return 0
            raise TransportFailure(f"Unable to get info for topic {topic}: {topic_meta.error}")
        return len(topic_meta.partitions)

    def high_water_mark(self, topic: str, partition: int) -> int:
        try:
            offsets = self._consumer.get_watermark_offsets(
                TopicPartition(topic, partition), timeout=self.timeout, cached=False
            )
        except KafkaException as ex:
            raise TransportFailure(f"Unable to get offsets for {topic}/{partition}: {ex}") from ex
        if offsets is None:
            raise TransportFailure(f"Timed out getting offsets for {topic}/{partition}")
        _, high = offsets
        return high

    def consume(self, topic: str, partition: int, offset: int) -> Iterator[BrokerRecord]:
        try:
            self._consumer.assign([TopicPartition(topic, partition, offset)])
        except KafkaException as ex:
            raise TransportFailure(f"Unable to consume {topic}/{partition}: {ex}") from ex

        try:
            while True:
                msg = self._consumer.poll(self.poll_interval)
                if msg is None:
                    continue
                err = msg.error()
                if err is not None:
                    if err.code() == KafkaError._PARTITION_EOF:
                        continue
                    raise TransportFailure(f"Error consuming {topic}/{partition}: {err}")
                yield BrokerRecord(key=msg.key(), value=msg.value(), offset=msg.offset())
        finally:
            self._consumer.unassign()

    def publish(self, topic: str, key: bytes, value: bytes) -> None:
        errors: List[KafkaError] = []

        def on_delivery(err: Optional[KafkaError], msg) -> None:
            if err is not None:
                errors.append(err)

        try:
            self._producer.produce(topic, key=key, value=value, on_delivery=on_delivery)
        except (KafkaException, BufferError) as ex:
            raise TransportFailure(f"Unable to produce to {topic}: {ex}") from ex

        remaining = self._producer.flush(self.timeout)
        if remaining:
            raise TransportFailure(f"Unable to produce to {topic}: not acknowledged within {self.timeout}s")
        if errors:
            raise TransportFailure(f"Unable to produce to {topic}: {errors[0]}")

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._producer.flush(self.timeout)
        finally:
            self._consumer.close()
