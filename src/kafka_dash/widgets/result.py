"""Result pane: the topics or consumers of the active connection."""

from __future__ import annotations

import logging
from typing import Iterable

from kafka_dash.messages import (
    Command,
    ConsumerSelected,
    ConsumersLoaded,
    SessionMessage,
    TopicSelected,
    TopicsLoaded,
    emit,
)
from kafka_dash.models import Consumer, Topic
from kafka_dash.widgets.table import Column, TablePanel

logger = logging.getLogger(__name__)

TOPIC_COLUMNS = [Column("Topics", 30), Column("# of Partitions", 30)]
CONSUMER_COLUMNS = [Column("ConsumerId", 30), Column("GroupId", 20), Column("State", 10)]

TOPICS_MODE = "topics"
CONSUMERS_MODE = "consumers"


def consumer_key(consumer: Consumer) -> str:
    """Display key of a consumer row. Groups without members show their group id."""
    return consumer.consumer_id or f"({consumer.group_id})"


class ResultPanel(TablePanel):
    """Lists whichever collection was loaded last.

    The highlighted row drives the details pane: loading a collection selects
    row 0 and every later selection change emits the matching *Selected
    message.
    """

    name = "result"

    def __init__(self) -> None:
        super().__init__([Column("Result", 60)])
        self.mode: str | None = None
        self._topics: dict[str, Topic] = {}
        self._consumers: dict[str, Consumer] = {}

    def show_topics(self) -> None:
        self._switch(TOPICS_MODE)

    def show_consumers(self) -> None:
        self._switch(CONSUMERS_MODE)

    def _switch(self, mode: str) -> None:
        self.mode = mode
        self.set_columns(TOPIC_COLUMNS if mode == TOPICS_MODE else CONSUMER_COLUMNS)
        self.set_rows([])
        self._topics = {}
        self._consumers = {}

    def selected_topic(self) -> Topic | None:
        if self.mode != TOPICS_MODE:
            return None
        return self._topics.get(self.selected_key() or "")

    def selected_consumer(self) -> Consumer | None:
        if self.mode != CONSUMERS_MODE:
            return None
        return self._consumers.get(self.selected_key() or "")

    def update(self, message: SessionMessage) -> list[Command]:
        commands = super().update(message)
        if isinstance(message, TopicsLoaded):
            self._load_topics(message.topics)
            commands.extend(self._select_current())
        elif isinstance(message, ConsumersLoaded):
            self._load_consumers(message.consumers)
            commands.extend(self._select_current())
        elif self.selection_changed:
            commands.extend(self._select_current())
        return commands

    def _load_topics(self, topics: Iterable[Topic]) -> None:
        self._switch(TOPICS_MODE)
        self._topics = {topic.name: topic for topic in topics}
        self.set_rows(
            [(name, str(self._topics[name].partition_count)) for name in sorted(self._topics)]
        )
        logger.debug("Showing %d topics", len(self._topics))

    def _load_consumers(self, consumers: Iterable[Consumer]) -> None:
        self._switch(CONSUMERS_MODE)
        self._consumers = {consumer_key(consumer): consumer for consumer in consumers}
        self.set_rows(
            [
                (key, consumer.group_id, consumer.state)
                for key, consumer in sorted(self._consumers.items())
            ]
        )
        logger.debug("Showing %d consumers", len(self._consumers))

    def _select_current(self) -> list[Command]:
        topic = self.selected_topic()
        if topic is not None:
            return [emit(TopicSelected(topic))]
        consumer = self.selected_consumer()
        if consumer is not None:
            return [emit(ConsumerSelected(consumer))]
        return []
