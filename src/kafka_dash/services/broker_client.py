"""Kafka broker client.

The session controller talks to a cluster only through the BrokerClient
protocol. KafkaBrokerClient implements it on top of confluent-kafka's
AdminClient and Consumer. Every method blocks, so callers run them inside
commands on a worker thread. Failures are raised as BrokerError.
"""

from __future__ import annotations

import itertools
import logging
import queue
import threading
import uuid
from typing import Any, Callable, Iterator, Protocol

from confluent_kafka import (
    Consumer as KafkaConsumer,
)
from confluent_kafka import (
    ConsumerGroupTopicPartitions,
    KafkaError,
    KafkaException,
    TopicPartition,
)
from confluent_kafka.admin import AdminClient, ConfigResource, NewTopic, ResourceType

from kafka_dash.models import (
    Connection,
    Consumer,
    ConsumerTopicPartition,
    Topic,
    TopicConfig,
    TopicRecord,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0
POLL_INTERVAL = 1.0
MAX_BUFFERED_RECORDS = 1000
MAX_BATCH = 100


class BrokerError(Exception):
    """Base exception for broker errors."""

    pass


class BrokerConnectionError(BrokerError):
    """Raised when the cluster cannot be reached."""

    pass


class BrokerClosedError(BrokerError):
    """Raised when a closed client is used."""

    pass


class BrokerClient(Protocol):
    """Operations the session controller needs from a cluster."""

    def list_topics(self) -> list[Topic]: ...

    def get_topic_config(self, name: str) -> TopicConfig: ...

    def create_topic(self, name: str, partitions: int, replication_factor: int) -> Topic: ...

    def list_consumer_groups(self) -> list[str]: ...

    def list_consumers(self, group_ids: list[str]) -> list[Consumer]: ...

    def reset_consumer_offsets(self, group: str, topic: str, offset: int) -> None: ...

    def subscribe(self, topic: str) -> Subscription: ...

    def close(self) -> None: ...


def _decode(raw: bytes | str | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    return raw.decode("utf-8", errors="replace")


class Subscription:
    """A live tail of one topic.

    A background thread polls the consumer and buffers records until the
    subscription is cancelled; the thread then closes the consumer. Records
    are read with poll() or by iterating the subscription.
    """

    _ids = itertools.count(1)

    def __init__(
        self,
        consumer: Any,
        topic: str,
        poll_interval: float = POLL_INTERVAL,
        max_buffered: int = MAX_BUFFERED_RECORDS,
    ) -> None:
        self.id = next(Subscription._ids)
        self.topic = topic
        self._consumer = consumer
        self._poll_interval = poll_interval
        self._records: queue.Queue[TopicRecord] = queue.Queue(maxsize=max_buffered)
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name=f"subscription-{self.id}-{topic}", daemon=True
        )

    def start(self) -> None:
        self._consumer.subscribe([self.topic])
        self._thread.start()

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def cancel(self) -> None:
        """Signal the worker to stop. Does not wait for it."""
        if not self._stop.is_set():
            logger.debug("Cancelling subscription %d on %s", self.id, self.topic)
        self._stop.set()

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    def _run(self) -> None:
        try:
            while not self._stop.is_set():
                msg = self._consumer.poll(self._poll_interval)
                if msg is None:
                    continue
                err = msg.error()
                if err is not None:
                    # Partition EOF is informational, everything else is retried by librdkafka
                    if err.code() != KafkaError._PARTITION_EOF:
                        logger.warning("Consumer error on %s: %s", self.topic, err)
                    continue
                record = TopicRecord(
                    partition=msg.partition(),
                    offset=msg.offset(),
                    key=_decode(msg.key()),
                    value=_decode(msg.value()),
                )
                try:
                    self._records.put(record, timeout=self._poll_interval)
                except queue.Full:
                    logger.debug("Dropping record %s on %s, buffer full", record.offset, self.topic)
        except Exception:
            logger.exception("Subscription %d on %s stopped unexpectedly", self.id, self.topic)
        finally:
            self._stop.set()
            try:
                self._consumer.close()
            except Exception:
                logger.exception("Failed to close consumer for %s", self.topic)

    def poll(self, timeout: float = POLL_INTERVAL) -> tuple[TopicRecord, ...] | None:
        """Wait up to timeout for records.

        Returns:
            The buffered records (possibly empty), or None once cancelled.
        """
        if self.cancelled:
            return None
        try:
            first = self._records.get(timeout=timeout)
        except queue.Empty:
            return None if self.cancelled else ()

        records = [first]
        while len(records) < MAX_BATCH:
            try:
                records.append(self._records.get_nowait())
            except queue.Empty:
                break
        return tuple(records)

    def __iter__(self) -> Iterator[TopicRecord]:
        while True:
            batch = self.poll()
            if batch is None:
                return
            yield from batch


class KafkaBrokerClient:
    """BrokerClient backed by confluent-kafka.

    Example:
        client = KafkaBrokerClient.connect(Connection("local", "localhost:9092"))
        try:
            topics = client.list_topics()
        finally:
            client.close()
    """

    def __init__(
        self,
        connection: Connection,
        timeout: float = DEFAULT_TIMEOUT,
        admin_factory: Callable[[dict[str, Any]], Any] = AdminClient,
        consumer_factory: Callable[[dict[str, Any]], Any] = KafkaConsumer,
    ) -> None:
        """Initialize the client.

        Args:
            connection: Cluster to talk to.
            timeout: Request timeout in seconds for admin calls.
            admin_factory: Builds the admin client from a librdkafka config.
            consumer_factory: Builds consumers for subscriptions.
        """
        self.connection = connection
        self.timeout = timeout
        self._consumer_factory = consumer_factory
        self._subscriptions: list[Subscription] = []
        self._closed = False
        try:
            self._admin = admin_factory({"bootstrap.servers": connection.bootstrap_server})
        except KafkaException as e:
            raise BrokerConnectionError(f"Failed to initialise kafka admin client: {e}") from e

    @classmethod
    def connect(
        cls, connection: Connection, timeout: float = DEFAULT_TIMEOUT, **kwargs: Any
    ) -> KafkaBrokerClient:
        """Create a client and check that the cluster answers a metadata request.

        Extra keyword arguments are passed to the constructor.

        Raises:
            BrokerConnectionError: If the cluster is unreachable.
        """
        client = cls(connection, timeout=timeout, **kwargs)
        try:
            client._admin.list_topics(timeout=timeout)
        except KafkaException as e:
            client.close()
            raise BrokerConnectionError(
                f"Cannot connect to '{connection.name}' at {connection.bootstrap_server}: {e}"
            ) from e
        logger.info("Connected to %s (%s)", connection.name, connection.bootstrap_server)
        return client

    def _ensure_open(self) -> None:
        if self._closed:
            raise BrokerClosedError(f"Client for '{self.connection.name}' is closed")

    def _open_admin(self) -> Any:
        """The admin client, or BrokerClosedError once close() has run.

        close() may run on another thread between two requests of one call,
        so every request goes through here.
        """
        admin = self._admin
        if self._closed or admin is None:
            raise BrokerClosedError(f"Client for '{self.connection.name}' is closed")
        return admin

    def close(self) -> None:
        """Cancel all subscriptions and release the admin client."""
        if self._closed:
            return
        self._closed = True
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()
        self._admin = None
        logger.info("Closed client for %s", self.connection.name)

    def list_topics(self) -> list[Topic]:
        """List all topics sorted by name."""
        try:
            admin = self._open_admin()
            metadata = admin.list_topics(timeout=self.timeout)
        except KafkaException as e:
            raise BrokerError(f"Failed to fetch meta data: {e}") from e

        topics = [
            Topic(name=name, partition_count=len(topic.partitions))
            for name, topic in metadata.topics.items()
        ]
        return sorted(topics, key=lambda t: t.name)

    def get_topic_config(self, name: str) -> TopicConfig:
        resource = ConfigResource(ResourceType.TOPIC, name)
        try:
            admin = self._open_admin()
            futures = admin.describe_configs([resource], request_timeout=self.timeout)
            entries = next(iter(futures.values())).result()
        except KafkaException as e:
            raise BrokerError(f"Failed to get config of topic '{name}': {e}") from e

        settings = {
            key: "" if entry.value is None else str(entry.value) for key, entry in entries.items()
        }
        return TopicConfig(name=name, settings=settings)

    def create_topic(self, name: str, partitions: int, replication_factor: int) -> Topic:
        try:
            admin = self._open_admin()
            new_topic = NewTopic(
                name, num_partitions=partitions, replication_factor=replication_factor
            )
            futures = admin.create_topics([new_topic], request_timeout=self.timeout)
            for future in futures.values():
                future.result()
        except (KafkaException, ValueError, OverflowError) as e:
            raise BrokerError(f"Failed to create new topic '{name}': {e}") from e

        logger.info("Created topic %s (%d partitions, rf=%d)", name, partitions, replication_factor)
        return Topic(name=name, partition_count=partitions)

    def list_consumer_groups(self) -> list[str]:
        """List consumer group ids sorted alphabetically."""
        try:
            admin = self._open_admin()
            result = admin.list_consumer_groups(request_timeout=self.timeout).result()
        except KafkaException as e:
            raise BrokerError(f"Failed to list consumer groups: {e}") from e

        return sorted(group.group_id for group in result.valid)

    def list_consumers(self, group_ids: list[str]) -> list[Consumer]:
        """Describe the given groups, one Consumer per member.

        Groups without members are reported as a single Consumer with an
        empty consumer id so they stay visible.
        """
        self._ensure_open()
        if not group_ids:
            return []
        try:
            admin = self._open_admin()
            futures = admin.describe_consumer_groups(group_ids, request_timeout=self.timeout)
            descriptions = [future.result() for future in futures.values()]
        except KafkaException as e:
            raise BrokerError(f"Failed to describe consumer groups: {e}") from e

        # Descriptions fetched while the client was being closed are stale
        self._ensure_open()

        consumers: list[Consumer] = []
        for description in descriptions:
            state = getattr(description.state, "name", str(description.state))
            committed = self._committed_offsets(description.group_id) if description.members else {}
            if not description.members:
                consumers.append(Consumer(description.group_id, "", state))
                continue
            for member in description.members:
                partitions = tuple(
                    ConsumerTopicPartition(
                        topic_name=tp.topic,
                        partition=tp.partition,
                        offset=committed.get((tp.topic, tp.partition), tp.offset),
                    )
                    for tp in member.assignment.topic_partitions
                )
                consumers.append(
                    Consumer(
                        group_id=description.group_id,
                        consumer_id=member.member_id,
                        state=state,
                        topic_partitions=partitions,
                    )
                )

        return sorted(consumers, key=lambda c: (c.consumer_id, c.group_id))

    def _committed_offsets(self, group_id: str) -> dict[tuple[str, int], int]:
        request = ConsumerGroupTopicPartitions(group_id)
        try:
            admin = self._open_admin()
            futures = admin.list_consumer_group_offsets([request], request_timeout=self.timeout)
            result = next(iter(futures.values())).result()
        except KafkaException as e:
            raise BrokerError(f"Failed to list offsets of group '{group_id}': {e}") from e
        return {(tp.topic, tp.partition): tp.offset for tp in result.topic_partitions}

    def reset_consumer_offsets(self, group: str, topic: str, offset: int) -> None:
        """Set the committed offset of every partition of topic for group."""
        try:
            admin = self._open_admin()
            metadata = admin.list_topics(topic=topic, timeout=self.timeout)
        except KafkaException as e:
            raise BrokerError(f"Failed to get metadata of topic '{topic}': {e}") from e

        topic_metadata = metadata.topics.get(topic)
        if topic_metadata is None or topic_metadata.error is not None:
            raise BrokerError(f"Topic '{topic}' does not exist")

        partitions = [
            TopicPartition(topic, partition_id, offset)
            for partition_id in sorted(topic_metadata.partitions)
        ]
        request = ConsumerGroupTopicPartitions(group, partitions)
        try:
            admin = self._open_admin()
            futures = admin.alter_consumer_group_offsets([request], request_timeout=self.timeout)
            results = [future.result() for future in futures.values()]
        except KafkaException as e:
            raise BrokerError(f"Failed to alter consumer group offset: {e}") from e

        for result in results:
            for tp in result.topic_partitions:
                if tp.error is not None:
                    raise BrokerError(
                        f"Failed to alter consumer group offset for partition '{tp.partition}': "
                        f"{tp.error}"
                    )
        logger.info("Reset offsets of %s on %s to %d", group, topic, offset)

    def subscribe(self, topic: str) -> Subscription:
        """Start tailing topic with a throwaway consumer group."""
        self._ensure_open()
        try:
            consumer = self._consumer_factory(
                {
                    "bootstrap.servers": self.connection.bootstrap_server,
                    "group.id": f"kafka-dash-{uuid.uuid4().hex[:12]}",
                    "auto.offset.reset": "latest",
                    "enable.auto.commit": False,
                }
            )
            subscription = Subscription(consumer, topic)
            subscription.start()
        except KafkaException as e:
            raise BrokerError(f"Failed to subscribe to topic '{topic}': {e}") from e

        self._subscriptions = [s for s in self._subscriptions if not s.cancelled]
        self._subscriptions.append(subscription)
        return subscription
