"""Messages and commands flowing through the session controller.

Every event the controller reacts to is one of the frozen dataclasses below.
They are created either by the host (keys, resizes) or by a completed
command. A command is a zero-argument callable that produces at most one
message; the host runs it off the render loop and feeds the result back in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

from kafka_dash.models import Connection, Consumer, Topic, TopicConfig, TopicRecord

if TYPE_CHECKING:
    from kafka_dash.services.broker_client import BrokerClient, Subscription

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionMessage:
    """Base class of every message the controller can receive."""


# Input


@dataclass(frozen=True)
class KeyPressed(SessionMessage):
    """A key press, named the way Textual names keys (``tab``, ``ctrl+c``, ``question_mark``)."""

    key: str
    character: str | None = None

    @property
    def is_printable(self) -> bool:
        character = self.character
        return character is not None and len(character) == 1 and character.isprintable()


@dataclass(frozen=True)
class Resized(SessionMessage):
    width: int
    height: int


@dataclass(frozen=True)
class Tick(SessionMessage):
    pass


# Connection


@dataclass(frozen=True)
class ConnectionChanged(SessionMessage):
    connection: Connection


@dataclass(frozen=True)
class ClientConnected(SessionMessage):
    connection: Connection
    client: BrokerClient


# Menu


@dataclass(frozen=True)
class TopicsSelected(SessionMessage):
    pass


@dataclass(frozen=True)
class ConsumersSelected(SessionMessage):
    pass


@dataclass(frozen=True)
class InfoSelected(SessionMessage):
    pass


# Topics


@dataclass(frozen=True)
class TopicsLoaded(SessionMessage):
    topics: tuple[Topic, ...]


@dataclass(frozen=True)
class TopicSelected(SessionMessage):
    topic: Topic


@dataclass(frozen=True)
class TopicConfigLoaded(SessionMessage):
    config: TopicConfig


@dataclass(frozen=True)
class TopicCreated(SessionMessage):
    topic: Topic


@dataclass(frozen=True)
class SubscriptionStarted(SessionMessage):
    topic: Topic
    subscription: Subscription


@dataclass(frozen=True)
class TopicMessagesReceived(SessionMessage):
    subscription_id: int
    records: tuple[TopicRecord, ...]


# Consumers


@dataclass(frozen=True)
class ConsumersLoaded(SessionMessage):
    consumers: tuple[Consumer, ...]


@dataclass(frozen=True)
class ConsumerSelected(SessionMessage):
    consumer: Consumer


@dataclass(frozen=True)
class OffsetsReset(SessionMessage):
    group_id: str
    topic_name: str
    offset: int


# Forms


@dataclass(frozen=True)
class AddTopicSubmitted(SessionMessage):
    name: str
    partitions: int
    replication_factor: int


@dataclass(frozen=True)
class ResetOffsetSubmitted(SessionMessage):
    group_id: str
    topic_name: str
    offset: int


@dataclass(frozen=True)
class FormCancelled(SessionMessage):
    form: str


# Control


@dataclass(frozen=True)
class ErrorOccurred(SessionMessage):
    text: str


@dataclass(frozen=True)
class Reset(SessionMessage):
    """Issued after an error is dismissed so panels drop stale selection flags."""


@dataclass(frozen=True)
class QuitRequested(SessionMessage):
    pass


Command = Callable[[], Optional[SessionMessage]]


def emit(message: SessionMessage) -> Command:
    """Wrap an already known message in a command."""

    def command() -> SessionMessage:
        return message

    return command


def error(text: str) -> Command:
    return emit(ErrorOccurred(text))


def run_command(command: Command) -> SessionMessage | None:
    """Execute a command on a worker.

    Commands report failures as ErrorOccurred themselves; anything that still
    escapes is logged and turned into an ErrorOccurred so the loop keeps going.
    """
    try:
        return command()
    except Exception as e:
        logger.exception("Command %r failed", command)
        return ErrorOccurred(f"Unexpected error: {e}")
