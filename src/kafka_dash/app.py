"""Main TUI application."""

from __future__ import annotations

import logging
from functools import partial
from typing import Any, Callable, Optional

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.css.query import NoMatches
from textual.widgets import Static

from kafka_dash import __version__
from kafka_dash.config import ConnectionsConfig, Preferences
from kafka_dash.keys import CANCEL, ESC, SHIFT_TAB, TAB
from kafka_dash.messages import (
    Command,
    KeyPressed,
    QuitRequested,
    Resized,
    SessionMessage,
    run_command,
)
from kafka_dash.services.broker_client import KafkaBrokerClient
from kafka_dash.session import ClientFactory, SessionController
from kafka_dash.themes import THEMES, get_panel_style, get_theme

logger = logging.getLogger(__name__)

# Keys Textual would otherwise handle itself (focus cycling, quit)
HOST_KEYS = frozenset({TAB, SHIFT_TAB, CANCEL, ESC})


class StatusFooter(Static):
    """Footer widget showing the connection, focused pane and version."""

    DEFAULT_CSS = """
    StatusFooter {
        dock: bottom;
        height: 1;
        background: $surface;
        color: $text-muted;
        padding: 0 1;
    }
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._connection: str = ""
        self._focused_panel: str = ""

    def on_mount(self) -> None:
        """Update with initial status on mount."""
        self._update_display()

    def set_status(self, connection: str, focused_panel: str) -> None:
        if (connection, focused_panel) == (self._connection, self._focused_panel):
            return
        self._connection = connection
        self._focused_panel = focused_panel
        self._update_display()

    def _update_display(self) -> None:
        """Rebuild the status display."""
        parts = []

        if self._connection:
            parts.append(f"[bold $primary]{self._connection}[/]")

        if self._focused_panel:
            parts.append(f"[dim]({self._focused_panel})[/]")

        left_side = " │ ".join(parts) if parts else ""
        right_side = f"[dim]kafka-dash v{__version__}[/]"

        if left_side:
            self.update(f"{left_side}  [dim]│[/]  {right_side}")
        else:
            self.update(right_side)


class DashboardApp(App):
    """Kafka cluster dashboard.

    The app is only a host: every key and resize becomes a SessionMessage for
    the SessionController, the commands it returns run on thread workers and
    their results are posted back to the event loop.
    """

    ENABLE_COMMAND_PALETTE = False

    CSS = """
    Screen {
        padding: 0 1;
    }

    #session-view {
        width: 100%;
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding(TAB, f"dispatch_key('{TAB}')", "Next pane", show=False, priority=True),
        Binding(
            SHIFT_TAB, f"dispatch_key('{SHIFT_TAB}')", "Previous pane", show=False, priority=True
        ),
        Binding(ESC, f"dispatch_key('{ESC}')", "Menu", show=False, priority=True),
        Binding(CANCEL, f"dispatch_key('{CANCEL}')", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        connections: ConnectionsConfig,
        client_factory: ClientFactory = KafkaBrokerClient.connect,
        preferences: Optional[Preferences] = None,
        startup_delay: Optional[Callable[[], float]] = None,
    ) -> None:
        """Initialize the dashboard app.

        Args:
            connections: Clusters from the connections file.
            client_factory: Opens a broker client for a connection.
            preferences: User preferences. Defaults apply when None.
            startup_delay: Seconds between splash ticks, random when None.
        """
        super().__init__()
        self.preferences = preferences or Preferences()
        self.controller = SessionController(
            connections, client_factory, startup_delay=startup_delay
        )

    def compose(self) -> ComposeResult:
        yield Static(id="session-view")
        yield StatusFooter(id="status-footer")

    def on_mount(self) -> None:
        # Register custom themes
        for theme in THEMES:
            self.register_theme(theme)

        # Apply saved theme (or default)
        self.theme = get_theme(self.preferences.theme).name

        self._deliver(Resized(self.size.width, self.size.height))
        self._schedule(self.controller.init())

    def on_unmount(self) -> None:
        self.controller.shutdown()

    # Input

    def on_resize(self, event: events.Resize) -> None:
        """Handle terminal resize."""
        self._deliver(Resized(event.size.width, event.size.height))

    def on_key(self, event: events.Key) -> None:
        if event.key in HOST_KEYS:
            return
        event.stop()
        self._deliver(KeyPressed(event.key, event.character))

    def action_dispatch_key(self, key: str) -> None:
        self._deliver(KeyPressed(key))

    # Message loop

    def _deliver(self, message: SessionMessage) -> None:
        """Feed a message to the controller and run what it asks for."""
        if isinstance(message, QuitRequested):
            logger.info("Quit requested")
            self.exit()
            return

        commands = self.controller.update(message)
        self._schedule(commands)
        self._refresh_view()

    def _schedule(self, commands: list[Command]) -> None:
        for command in commands:
            self.run_worker(
                partial(self._execute, command),
                thread=True,
                group="commands",
                exit_on_error=False,
            )

    def _execute(self, command: Command) -> None:
        """Run a command on a worker thread and post its message back."""
        message = run_command(command)
        if message is None:
            return
        try:
            self.call_from_thread(self._deliver, message)
        except RuntimeError:
            # The app stopped while the command was running
            logger.debug("Dropping %s after shutdown", type(message).__name__)

    def _refresh_view(self) -> None:
        try:
            view = self.query_one("#session-view", Static)
            footer = self.query_one("#status-footer", StatusFooter)
        except NoMatches:
            return
        view.update(self.controller.render(get_panel_style(self.theme)))
        connection = self.controller.active_connection
        footer.set_status(
            connection.name if connection else "",
            self.controller.focused_panel() or "",
        )
