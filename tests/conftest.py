"""Pytest configuration for kafka-dash tests."""

from __future__ import annotations

import itertools
from collections import deque
from typing import Callable, Iterable

import pytest

from kafka_dash.config import ConnectionsConfig
from kafka_dash.messages import Command, KeyPressed, QuitRequested, SessionMessage, run_command
from kafka_dash.models import Connection, Consumer, ConsumerTopicPartition, Topic, TopicConfig
from kafka_dash.services.broker_client import BrokerClosedError, BrokerConnectionError, BrokerError
from kafka_dash.session import SessionController

_subscription_ids = itertools.count(1000)


class FakeSubscription:
    """Hands out prepared batches, then reports itself finished."""

    def __init__(self, topic: str, batches: Iterable[Iterable] = ()) -> None:
        self.id = next(_subscription_ids)
        self.topic = topic
        self._batches = [tuple(batch) for batch in batches]
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def poll(self, timeout: float = 0.0):
        if self.cancelled or not self._batches:
            return None
        return self._batches.pop(0)


class FakeCluster:
    """In-memory cluster shared by every client the factory opens.

    Every client call is appended to `log` as (connection name, operation)
    so tests can assert on ordering across connections.
    """

    def __init__(self) -> None:
        self.log: list[tuple[str, str]] = []
        self.topics: list[Topic] = [
            Topic("payments", 2),
            Topic("orders", 3),
            Topic("audit", 1),
        ]
        self.configs: dict[str, dict[str, str]] = {
            "audit": {"retention.ms": "604800000", "cleanup.policy": "delete"},
            "orders": {"cleanup.policy": "compact"},
            "payments": {},
        }
        self.groups: list[str] = ["billing"]
        self.consumers: list[Consumer] = [
            Consumer(
                group_id="billing",
                consumer_id="consumer-b",
                state="Stable",
                topic_partitions=(
                    ConsumerTopicPartition("orders", 1, 40),
                    ConsumerTopicPartition("audit", 0, 7),
                    ConsumerTopicPartition("orders", 0, 12),
                ),
            ),
            Consumer(group_id="billing", consumer_id="consumer-a", state="Stable"),
        ]
        self.batches: list[list] = []
        self.unreachable: set[str] = set()
        self.failing: dict[str, str] = {}
        self.clients: list[FakeBrokerClient] = []

    def factory(self, connection: Connection) -> FakeBrokerClient:
        self.log.append((connection.name, "open"))
        if connection.name in self.unreachable:
            raise BrokerConnectionError(f"Cannot connect to '{connection.name}'")
        client = FakeBrokerClient(self, connection)
        self.clients.append(client)
        return client

    def client_for(self, name: str) -> FakeBrokerClient:
        return [client for client in self.clients if client.connection.name == name][-1]


class FakeBrokerClient:
    def __init__(self, cluster: FakeCluster, connection: Connection) -> None:
        self.cluster = cluster
        self.connection = connection
        self.closed = False
        self.subscriptions: list[FakeSubscription] = []

    def _call(self, operation: str) -> None:
        self.cluster.log.append((self.connection.name, operation))
        if self.closed:
            raise BrokerClosedError(f"Client for '{self.connection.name}' is closed")
        if operation in self.cluster.failing:
            raise BrokerError(self.cluster.failing[operation])

    def list_topics(self) -> list[Topic]:
        self._call("list_topics")
        return sorted(self.cluster.topics, key=lambda t: t.name)

    def get_topic_config(self, name: str) -> TopicConfig:
        self._call("get_topic_config")
        return TopicConfig(name, dict(self.cluster.configs.get(name, {})))

    def create_topic(self, name: str, partitions: int, replication_factor: int) -> Topic:
        self._call("create_topic")
        topic = Topic(name, partitions)
        self.cluster.topics.append(topic)
        return topic

    def list_consumer_groups(self) -> list[str]:
        self._call("list_consumer_groups")
        return list(self.cluster.groups)

    def list_consumers(self, group_ids: list[str]) -> list[Consumer]:
        self._call("list_consumers")
        consumers = [c for c in self.cluster.consumers if c.group_id in group_ids]
        return sorted(consumers, key=lambda c: (c.consumer_id, c.group_id))

    def reset_consumer_offsets(self, group: str, topic: str, offset: int) -> None:
        self._call("reset_consumer_offsets")

    def subscribe(self, topic: str) -> FakeSubscription:
        self._call("subscribe")
        subscription = FakeSubscription(topic, self.cluster.batches)
        self.subscriptions.append(subscription)
        return subscription

    def close(self) -> None:
        self.cluster.log.append((self.connection.name, "close"))
        self.closed = True
        for subscription in self.subscriptions:
            subscription.cancel()


def drain(
    controller: SessionController, commands: list[Command], limit: int = 500
) -> list[SessionMessage]:
    """Run commands breadth-first, feeding each message back into the controller.

    Returns every message produced, in delivery order. QuitRequested is
    recorded but not delivered, the host handles it.
    """
    delivered: list[SessionMessage] = []
    pending = deque(commands)
    while pending and limit > 0:
        limit -= 1
        message = run_command(pending.popleft())
        if message is None:
            continue
        delivered.append(message)
        if isinstance(message, QuitRequested):
            continue
        pending.extend(controller.update(message))
    return delivered


@pytest.fixture
def cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture
def connections() -> ConnectionsConfig:
    return ConnectionsConfig(
        connections=(
            Connection("prod", "prod-kafka:9092"),
            Connection("staging", "staging-kafka:9092"),
        )
    )


@pytest.fixture
def controller(connections: ConnectionsConfig, cluster: FakeCluster) -> SessionController:
    """A controller that has not been started yet."""
    return SessionController(connections, cluster.factory, startup_delay=lambda: 0)


@pytest.fixture
def started(controller: SessionController) -> SessionController:
    """A controller after startup: connected to prod, topics listed."""
    drain(controller, controller.init())
    return controller


@pytest.fixture
def press(controller: SessionController) -> Callable[..., list[SessionMessage]]:
    """Send keys to the controller and run the resulting commands."""

    def _press(*keys: str) -> list[SessionMessage]:
        delivered: list[SessionMessage] = []
        for key in keys:
            character = key if len(key) == 1 else None
            delivered.extend(drain(controller, controller.update(KeyPressed(key, character))))
        return delivered

    return _press


@pytest.fixture
def run(controller: SessionController) -> Callable[[list[Command]], list[SessionMessage]]:
    """Run commands against the controller until nothing is left to do."""

    def _run(commands: list[Command]) -> list[SessionMessage]:
        return drain(controller, commands)

    return _run
