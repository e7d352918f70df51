"""Session controller: the state machine behind the dashboard.

The controller owns every panel and the single live broker client. The host
feeds it messages through update(); it mutates its state, routes the message
to the right panels and returns the commands the host must run. Commands do
the blocking broker work and report back with another message.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional

from rich.console import Group, RenderableType
from rich.table import Table

from kafka_dash.config import ConnectionsConfig
from kafka_dash.keys import (
    ESC,
    HELP,
    LEFT_KEYS,
    NEW_TOPIC,
    QUIT_KEYS,
    RESET_OFFSET,
    RIGHT_KEYS,
    SHIFT_TAB,
    TAB,
    TAIL_MESSAGES,
)
from kafka_dash.messages import (
    AddTopicSubmitted,
    ClientConnected,
    Command,
    ConnectionChanged,
    ConsumerSelected,
    ConsumersLoaded,
    ConsumersSelected,
    ErrorOccurred,
    FormCancelled,
    InfoSelected,
    KeyPressed,
    OffsetsReset,
    QuitRequested,
    Reset,
    ResetOffsetSubmitted,
    Resized,
    SessionMessage,
    SubscriptionStarted,
    TopicConfigLoaded,
    TopicCreated,
    TopicMessagesReceived,
    TopicSelected,
    TopicsLoaded,
    TopicsSelected,
    emit,
    error,
)
from kafka_dash.models import Connection, Topic
from kafka_dash.services.broker_client import (
    BrokerClient,
    BrokerClosedError,
    BrokerError,
    Subscription,
)
from kafka_dash.themes import PanelStyle
from kafka_dash.widgets import (
    AddTopicPrompt,
    ConnectionPanel,
    DetailsPanel,
    ErrorPanel,
    FormPanel,
    HelpPanel,
    InfoPanel,
    MenuPanel,
    Panel,
    ResetOffsetPrompt,
    ResultPanel,
    StartupPanel,
    TablePanel,
)
from kafka_dash.widgets.startup import random_delay

logger = logging.getLogger(__name__)

NOT_CONNECTED = "Not connected to a cluster"
MIN_TABLE_HEIGHT = 3

ClientFactory = Callable[[Connection], BrokerClient]


class SessionState(Enum):
    """Which pane, form or overlay owns the keyboard."""

    CONNECTING = "connection"
    MENU = "menu"
    RESULT = "result"
    DETAILS = "details"
    ERROR = "error"
    ADD_TOPIC = "add_topic"
    RESET_OFFSET = "reset_offset"


# Tab order of the browsing states
BROWSING_STATES = [
    SessionState.MENU,
    SessionState.RESULT,
    SessionState.DETAILS,
    SessionState.CONNECTING,
]

FORM_STATES = frozenset({SessionState.ADD_TOPIC, SessionState.RESET_OFFSET})

_FORM_STATE_BY_NAME = {
    AddTopicPrompt.name: SessionState.ADD_TOPIC,
    ResetOffsetPrompt.name: SessionState.RESET_OFFSET,
}


class SessionController:
    """Root state machine coordinating the panels.

    Example:
        controller = SessionController(connections, KafkaBrokerClient.connect)
        commands = controller.init()
        # run each command off the UI thread, feed its message to update()
    """

    def __init__(
        self,
        connections: ConnectionsConfig,
        client_factory: ClientFactory,
        *,
        startup_delay: Optional[Callable[[], float]] = None,
    ) -> None:
        """Initialize the controller.

        Args:
            connections: Clusters the user can pick from; the first is opened on init().
            client_factory: Opens a broker client for a connection. Called inside a command.
            startup_delay: Seconds to wait between splash ticks. Defaults to a random delay.
        """
        self.connections = connections
        self._client_factory = client_factory

        self.state = SessionState.CONNECTING
        self._state_stack: list[SessionState] = []

        self._client: BrokerClient | None = None
        self._active_connection: Connection | None = None
        self._connected_once = False
        self._subscription: Subscription | None = None
        self._tail_topic: str | None = None
        self.selected_topic: Topic | None = None

        self.connection_panel = ConnectionPanel(connections)
        self.menu_panel = MenuPanel()
        self.result_panel = ResultPanel()
        self.details_panel = DetailsPanel()
        self.error_panel = ErrorPanel()
        self.help_panel = HelpPanel()
        self.info_panel = InfoPanel()
        self.startup_panel = StartupPanel(startup_delay or random_delay)
        self.add_topic_prompt: AddTopicPrompt | None = None
        self.reset_offset_prompt: ResetOffsetPrompt | None = None

        self._sync_focus()

    # Accessors

    @property
    def client(self) -> BrokerClient | None:
        return self._client

    @property
    def active_connection(self) -> Connection | None:
        return self._active_connection

    @property
    def subscription(self) -> Subscription | None:
        return self._subscription

    @property
    def state_stack(self) -> list[SessionState]:
        return list(self._state_stack)

    @property
    def browsing_panels(self) -> dict[SessionState, TablePanel]:
        return {
            SessionState.CONNECTING: self.connection_panel,
            SessionState.MENU: self.menu_panel,
            SessionState.RESULT: self.result_panel,
            SessionState.DETAILS: self.details_panel,
        }

    def _panels(self) -> list[Panel]:
        """Panels that receive every non-key message."""
        return [
            self.connection_panel,
            self.menu_panel,
            self.result_panel,
            self.details_panel,
            self.error_panel,
            self.help_panel,
            self.info_panel,
            self.startup_panel,
        ]

    def focused_panel(self) -> str | None:
        """Name of the pane, form or overlay that receives keys."""
        return self.state.value

    def active_form(self) -> FormPanel | None:
        if self.state is SessionState.ADD_TOPIC:
            return self.add_topic_prompt
        if self.state is SessionState.RESET_OFFSET:
            return self.reset_offset_prompt
        return None

    # Lifecycle

    def init(self) -> list[Command]:
        """Open the default connection and start the splash."""
        return [
            emit(ConnectionChanged(self.connections.default)),
            self.startup_panel.start(),
        ]

    def shutdown(self) -> None:
        """Stop the message tail and close the client."""
        self._stop_tail()
        self._close_client()

    # Update

    def update(self, message: SessionMessage) -> list[Command]:
        self._sync_focus()
        try:
            if isinstance(message, KeyPressed):
                commands = self._handle_key(message)
            else:
                commands = self._handle_message(message)
        except Exception as e:
            logger.exception("Failed to handle %s", type(message).__name__)
            self._show_error(f"Internal error: {e}")
            commands = []
        self._sync_focus()
        return commands

    def _dispatch(self, panel: Panel, message: SessionMessage) -> list[Command]:
        """Hand a message to one panel; a failing panel shows the error overlay."""
        try:
            return panel.update(message)
        except Exception as e:
            logger.exception("Panel %s failed on %s", panel.name, type(message).__name__)
            self._show_error(f"Internal error in the {panel.name} pane: {e}")
            return []

    def _sync_focus(self) -> None:
        for state, panel in self.browsing_panels.items():
            if state is self.state:
                panel.focus()
            else:
                panel.blur()

    def _handle_key(self, message: KeyPressed) -> list[Command]:
        key = message.key

        if self.state is SessionState.ERROR:
            if key in QUIT_KEYS:
                return [emit(QuitRequested())]
            self._pop_state()
            logger.debug("Error dismissed, back to %s", self.state.name)
            return [emit(Reset())]

        if self.state in FORM_STATES:
            form = self.active_form()
            return self._dispatch(form, message) if form is not None else []

        if key in QUIT_KEYS:
            return [emit(QuitRequested())]
        if key == TAB or key in RIGHT_KEYS:
            self._cycle(1)
            return []
        if key == SHIFT_TAB or key in LEFT_KEYS:
            self._cycle(-1)
            return []
        if key == ESC:
            if self.state is SessionState.MENU:
                self.state = SessionState.RESULT
            else:
                self.state = SessionState.MENU
            return []
        if key == HELP:
            self.help_panel.toggle()
            return []
        if key == NEW_TOPIC:
            return self._open_add_topic()
        if key == RESET_OFFSET:
            return self._open_reset_offset()
        if key == TAIL_MESSAGES:
            return self._start_tail()

        return self._dispatch(self.browsing_panels[self.state], message)

    def _resize(self, message: Resized) -> None:
        # Two stacked tables per column plus borders, headers and the help bar
        height = max(MIN_TABLE_HEIGHT, (message.height - 12) // 2)
        for panel in self.browsing_panels.values():
            panel.set_height(height)

    def _cycle(self, step: int) -> None:
        index = BROWSING_STATES.index(self.state)
        self.state = BROWSING_STATES[(index + step) % len(BROWSING_STATES)]

    def _handle_message(self, message: SessionMessage) -> list[Command]:
        if isinstance(message, ErrorOccurred):
            self._show_error(message.text)
            return []

        # Form results are for the controller only
        if isinstance(message, AddTopicSubmitted):
            self._close_form(AddTopicPrompt.name)
            return [self._create_topic(message)]
        if isinstance(message, ResetOffsetSubmitted):
            self._close_form(ResetOffsetPrompt.name)
            return [self._reset_offsets(message)]
        if isinstance(message, FormCancelled):
            self._close_form(message.form)
            return []

        if isinstance(message, ClientConnected) and not self._accept_client(message):
            return []

        commands: list[Command] = []
        if isinstance(message, ConnectionChanged):
            commands.extend(self._change_connection(message.connection))
        elif isinstance(message, TopicsSelected):
            self._stop_tail()
            self.result_panel.show_topics()
            self.details_panel.clear()
            commands.append(self._load_topics())
        elif isinstance(message, ConsumersSelected):
            self._stop_tail()
            self.result_panel.show_consumers()
            self.details_panel.clear()
            commands.append(self._load_consumers())
        elif isinstance(message, InfoSelected):
            self._stop_tail()
        elif isinstance(message, TopicSelected):
            self._stop_tail()
            self.selected_topic = message.topic
            self.details_panel.show_topic_config(message.topic.name)
            commands.append(self._load_topic_config(message.topic.name))
        elif isinstance(message, ConsumerSelected):
            self._stop_tail()
        elif isinstance(message, TopicCreated):
            if self.menu_panel.is_topics_selected():
                self.result_panel.show_topics()
                commands.append(self._load_topics())
        elif isinstance(message, OffsetsReset):
            if self.menu_panel.is_consumers_selected():
                self.result_panel.show_consumers()
                commands.append(self._load_consumers())
        elif isinstance(message, SubscriptionStarted):
            commands.extend(self._accept_subscription(message))
        elif isinstance(message, TopicMessagesReceived):
            commands.extend(self._receive_records(message))
        elif isinstance(message, Reset):
            commands.extend(self._retry_connection())
        elif isinstance(message, Resized):
            self._resize(message)

        for panel in self._panels():
            commands.extend(self._dispatch(panel, message))
        return commands

    # State stack

    def _push_state(self, state: SessionState) -> None:
        self._state_stack.append(self.state)
        self.state = state

    def _pop_state(self) -> None:
        self.state = self._state_stack.pop() if self._state_stack else SessionState.MENU

    def _show_error(self, text: str) -> None:
        logger.warning("Error shown: %s", text)
        self.error_panel.set_message(text)
        if self.state is not SessionState.ERROR:
            self._push_state(SessionState.ERROR)

    def _close_form(self, form: str) -> None:
        state = _FORM_STATE_BY_NAME.get(form)
        if state is None:
            logger.warning("Unknown form %r closed", form)
            return
        if self.state is state:
            self._pop_state()
        elif state in self._state_stack:
            # The form sits under an error overlay; drop it so dismissal skips it
            index = len(self._state_stack) - 1 - self._state_stack[::-1].index(state)
            del self._state_stack[index]
        if state is SessionState.ADD_TOPIC:
            self.add_topic_prompt = None
        else:
            self.reset_offset_prompt = None

    # Forms

    def _open_add_topic(self) -> list[Command]:
        self.add_topic_prompt = AddTopicPrompt()
        self._push_state(SessionState.ADD_TOPIC)
        return []

    def _open_reset_offset(self) -> list[Command]:
        consumer = self.result_panel.selected_consumer()
        if consumer is None:
            return [error("Select a consumer in the consumer groups view to reset its offset")]

        assignment = self.details_panel.selected_assignment()
        if assignment is not None:
            topic_name = assignment.topic_name
        elif self.selected_topic is not None:
            topic_name = self.selected_topic.name
        else:
            return [error(f"Select a topic of consumer group '{consumer.group_id}' to reset")]

        self.reset_offset_prompt = ResetOffsetPrompt(consumer.group_id, topic_name)
        self._push_state(SessionState.RESET_OFFSET)
        return []

    # Connection

    def _change_connection(self, connection: Connection) -> list[Command]:
        self._stop_tail()
        self._close_client()
        self._active_connection = connection
        logger.info("Connecting to %s (%s)", connection.name, connection.bootstrap_server)
        return [self._open_client(connection)]

    def _close_client(self) -> None:
        if self._client is None:
            return
        try:
            self._client.close()
        except BrokerError as e:
            logger.warning("Failed to close client: %s", e)
        self._client = None

    def _open_client(self, connection: Connection) -> Command:
        factory = self._client_factory

        def open_client() -> SessionMessage:
            try:
                client = factory(connection)
            except BrokerError as e:
                logger.warning("Failed to connect to %s: %s", connection.name, e)
                return ErrorOccurred(f"Failed to connect to '{connection.name}': {e}")
            return ClientConnected(connection, client)

        return open_client

    def _accept_client(self, message: ClientConnected) -> bool:
        if message.connection != self._active_connection or self._client is not None:
            logger.info("Discarding stale client for %s", message.connection.name)
            message.client.close()
            return False

        self._client = message.client
        if not self._connected_once and self.state is SessionState.CONNECTING:
            self.state = SessionState.MENU
        self._connected_once = True
        logger.info("Client ready for %s", message.connection.name)
        return True

    def _retry_connection(self) -> list[Command]:
        if self._client is not None:
            return []
        connection = self.connection_panel.selected_connection() or self._active_connection
        if connection is None:
            return []
        logger.info("Retrying connection to %s", connection.name)
        return [emit(ConnectionChanged(connection))]

    # Broker commands

    def _broker_command(
        self, action: str, call: Callable[[BrokerClient], SessionMessage]
    ) -> Command:
        """Wrap a broker call on the current client in a command."""
        client = self._client

        def command() -> SessionMessage | None:
            if client is None:
                return ErrorOccurred(NOT_CONNECTED)
            try:
                return call(client)
            except BrokerClosedError:
                # The connection was switched while the call was queued
                logger.debug("Dropping %s on a closed client", action)
                return None
            except BrokerError as e:
                logger.warning("%s failed: %s", action, e)
                return ErrorOccurred(str(e))

        return command

    def _load_topics(self) -> Command:
        return self._broker_command(
            "list topics", lambda client: TopicsLoaded(tuple(client.list_topics()))
        )

    def _load_topic_config(self, name: str) -> Command:
        return self._broker_command(
            "get topic config", lambda client: TopicConfigLoaded(client.get_topic_config(name))
        )

    def _load_consumers(self) -> Command:
        def load(client: BrokerClient) -> ConsumersLoaded:
            groups = client.list_consumer_groups()
            return ConsumersLoaded(tuple(client.list_consumers(groups)))

        return self._broker_command("list consumers", load)

    def _create_topic(self, message: AddTopicSubmitted) -> Command:
        return self._broker_command(
            "create topic",
            lambda client: TopicCreated(
                client.create_topic(message.name, message.partitions, message.replication_factor)
            ),
        )

    def _reset_offsets(self, message: ResetOffsetSubmitted) -> Command:
        def reset(client: BrokerClient) -> OffsetsReset:
            client.reset_consumer_offsets(message.group_id, message.topic_name, message.offset)
            return OffsetsReset(message.group_id, message.topic_name, message.offset)

        return self._broker_command("reset offsets", reset)

    # Message tail

    def _start_tail(self) -> list[Command]:
        topic = self.result_panel.selected_topic()
        if topic is None:
            return [error("Select a topic in the topics view to tail its messages")]
        self._stop_tail()
        self._tail_topic = topic.name
        return [
            self._broker_command(
                "subscribe", lambda client: SubscriptionStarted(topic, client.subscribe(topic.name))
            )
        ]

    def _stop_tail(self) -> None:
        self._tail_topic = None
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def _accept_subscription(self, message: SubscriptionStarted) -> list[Command]:
        if self._tail_topic != message.topic.name or self._subscription is not None:
            message.subscription.cancel()
            return []
        self._subscription = message.subscription
        self.details_panel.show_messages(message.topic.name)
        logger.info("Tailing %s", message.topic.name)
        return [self._poll(message.subscription)]

    def _receive_records(self, message: TopicMessagesReceived) -> list[Command]:
        subscription = self._subscription
        if subscription is None or subscription.id != message.subscription_id:
            return []
        self.details_panel.append_records(message.records)
        return [self._poll(subscription)]

    def _poll(self, subscription: Subscription) -> Command:
        def poll() -> TopicMessagesReceived | None:
            records = subscription.poll()
            if records is None:
                return None
            return TopicMessagesReceived(subscription.id, records)

        return poll

    # Render

    def render(self, style: PanelStyle) -> RenderableType:
        if not self.startup_panel.initialized():
            return self.startup_panel.render(style)
        if self.state is SessionState.ERROR:
            return self.error_panel.render(style)
        if self.state is SessionState.ADD_TOPIC and self.add_topic_prompt is not None:
            return self.add_topic_prompt.render(style)

        left = Group(self.connection_panel.render(style), self.menu_panel.render(style))
        if self.menu_panel.is_info_selected():
            right = Group(self.info_panel.render(style), self.help_panel.render(style))
        else:
            right = Group(
                self.result_panel.render(style),
                self.details_panel.render(style),
                self.help_panel.render(style),
            )

        layout = Table.grid(padding=(0, 1))
        cells: list[RenderableType] = [left, right]
        if self.state is SessionState.RESET_OFFSET and self.reset_offset_prompt is not None:
            cells.append(self.reset_offset_prompt.render(style))
        for _ in cells:
            layout.add_column()
        layout.add_row(*cells)
        return layout
