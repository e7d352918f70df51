"""Details pane: topic configuration, consumer assignments or tailed messages."""

from __future__ import annotations

from typing import Iterable

from kafka_dash.messages import (
    Command,
    ConsumerSelected,
    SessionMessage,
    TopicConfigLoaded,
)
from kafka_dash.models import Consumer, ConsumerTopicPartition, TopicConfig, TopicRecord
from kafka_dash.widgets.table import Column, TablePanel

MAX_RECORDS = 200

CONFIG_COLUMNS = [Column("Key", 30), Column("Value", 30)]
CONSUMER_COLUMNS = [Column("Topic Name", 30), Column("Offset", 20), Column("Partition", 10)]
MESSAGE_COLUMNS = [Column("Partition", 10), Column("Offset", 12), Column("Key", 20), Column("Value", 40)]

CONFIG_MODE = "config"
CONSUMER_MODE = "consumer"
MESSAGES_MODE = "messages"


class DetailsPanel(TablePanel):
    name = "details"

    def __init__(self) -> None:
        super().__init__([Column("Details", 60)])
        self.mode: str | None = None
        self.topic_name: str | None = None
        self._assignments: list[ConsumerTopicPartition] = []
        self._records: list[TopicRecord] = []

    def clear(self) -> None:
        self.mode = None
        self.topic_name = None
        self.set_columns([Column("Details", 60)])
        self._reset_rows()

    def _reset_rows(self) -> None:
        self._assignments = []
        self._records = []
        self.set_rows([])

    # Topic configuration

    def show_topic_config(self, topic_name: str) -> None:
        """Empty the pane and wait for the configuration of topic_name."""
        self.mode = CONFIG_MODE
        self.topic_name = topic_name
        self.set_columns(CONFIG_COLUMNS)
        self._reset_rows()

    def set_topic_config(self, config: TopicConfig) -> None:
        self.show_topic_config(config.name)
        self.set_rows([(key, config.settings[key]) for key in sorted(config.settings)])

    # Consumer assignments

    def show_consumer(self, consumer: Consumer) -> None:
        self.mode = CONSUMER_MODE
        self.topic_name = None
        self.set_columns(CONSUMER_COLUMNS)
        self._reset_rows()
        self._assignments = sorted(
            consumer.topic_partitions, key=lambda tp: (tp.topic_name, tp.partition)
        )
        self.set_rows(
            [(tp.topic_name, str(tp.offset), str(tp.partition)) for tp in self._assignments]
        )

    def selected_assignment(self) -> ConsumerTopicPartition | None:
        if self.mode != CONSUMER_MODE or self.cursor is None:
            return None
        return self._assignments[self.cursor]

    # Tailed messages

    def show_messages(self, topic_name: str) -> None:
        self.mode = MESSAGES_MODE
        self.topic_name = topic_name
        self.set_columns(MESSAGE_COLUMNS)
        self._reset_rows()

    def append_records(self, records: Iterable[TopicRecord]) -> None:
        """Add tailed records, keeping the newest MAX_RECORDS and following the tail."""
        if self.mode != MESSAGES_MODE:
            return
        follow = self.cursor is None or self.cursor == len(self._records) - 1
        previous = self.cursor
        self._records.extend(records)
        dropped = max(0, len(self._records) - MAX_RECORDS)
        del self._records[:dropped]
        self.set_rows(
            [
                (str(record.partition), str(record.offset), record.key, record.value)
                for record in self._records
            ]
        )
        if follow:
            self.set_cursor(len(self._records) - 1)
        elif previous is not None:
            self.set_cursor(previous - dropped)

    def update(self, message: SessionMessage) -> list[Command]:
        commands = super().update(message)
        if isinstance(message, TopicConfigLoaded):
            # Late answers for a topic that is no longer selected are dropped
            if self.mode == CONFIG_MODE and message.config.name == self.topic_name:
                self.set_topic_config(message.config)
        elif isinstance(message, ConsumerSelected):
            self.show_consumer(message.consumer)
        return commands
