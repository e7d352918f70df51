"""Connection picker pane."""

from __future__ import annotations

import logging

from kafka_dash.config import ConnectionsConfig
from kafka_dash.messages import Command, ConnectionChanged, SessionMessage, emit
from kafka_dash.models import Connection
from kafka_dash.widgets.table import Column, TablePanel

logger = logging.getLogger(__name__)

COLUMNS = [Column("Connections", 30)]


class ConnectionPanel(TablePanel):
    """Lists the configured connections. Moving the cursor switches cluster."""

    name = "connection"

    def __init__(self, connections: ConnectionsConfig) -> None:
        super().__init__(COLUMNS, [(name,) for name in connections.names])
        self._connections = connections

    def selected_connection(self) -> Connection | None:
        name = self.selected_key()
        if name is None:
            return None
        return self._connections.find_connection(name)

    def update(self, message: SessionMessage) -> list[Command]:
        commands = super().update(message)
        if self.selection_changed:
            connection = self.selected_connection()
            if connection is not None:
                logger.info("Connection changed to %s", connection.name)
                commands.append(emit(ConnectionChanged(connection)))
        return commands
