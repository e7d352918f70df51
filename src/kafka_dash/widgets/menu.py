"""Menu pane: choose what the result pane lists."""

from __future__ import annotations

from kafka_dash.messages import (
    ClientConnected,
    Command,
    ConsumersSelected,
    InfoSelected,
    SessionMessage,
    TopicsSelected,
    emit,
)
from kafka_dash.widgets.table import Column, TablePanel

TOPICS = "Topics"
CONSUMER_GROUPS = "Consumer Groups"
INFO = "Info"

ENTRIES = [TOPICS, CONSUMER_GROUPS, INFO]

_SELECTIONS = {
    TOPICS: TopicsSelected,
    CONSUMER_GROUPS: ConsumersSelected,
    INFO: InfoSelected,
}


class MenuPanel(TablePanel):
    name = "menu"

    def __init__(self) -> None:
        super().__init__([Column("Menu", 30)], [(entry,) for entry in ENTRIES])

    def is_topics_selected(self) -> bool:
        return self.selected_key() == TOPICS

    def is_consumers_selected(self) -> bool:
        return self.selected_key() == CONSUMER_GROUPS

    def is_info_selected(self) -> bool:
        return self.selected_key() == INFO

    def update(self, message: SessionMessage) -> list[Command]:
        commands = super().update(message)
        # A fresh client reloads whatever the menu points at
        if self.selection_changed or isinstance(message, ClientConnected):
            selection = _SELECTIONS.get(self.selected_key() or "")
            if selection is not None:
                commands.append(emit(selection()))
        return commands
