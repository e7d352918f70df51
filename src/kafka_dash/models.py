"""Immutable records describing the cluster as seen by the dashboard."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping


@dataclass(frozen=True)
class Connection:
    """A named cluster entry from the connections file."""

    name: str
    bootstrap_server: str

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Connection:
        name = data.get("name")
        server = data.get("bootstrapServer")
        if not isinstance(name, str) or not name:
            raise ValueError("connection entry needs a non-empty 'name'")
        if not isinstance(server, str) or not server:
            raise ValueError(f"connection '{name}' needs a non-empty 'bootstrapServer'")
        return cls(name=name, bootstrap_server=server)


@dataclass(frozen=True)
class Topic:
    name: str
    partition_count: int


@dataclass(frozen=True)
class TopicConfig:
    name: str
    settings: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ConsumerTopicPartition:
    topic_name: str
    partition: int
    offset: int


@dataclass(frozen=True)
class Consumer:
    """One member of a consumer group with its partition assignments."""

    group_id: str
    consumer_id: str
    state: str
    topic_partitions: tuple[ConsumerTopicPartition, ...] = ()


@dataclass(frozen=True)
class TopicRecord:
    """A single message read from a topic subscription."""

    partition: int
    offset: int
    key: str
    value: str
