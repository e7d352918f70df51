"""Panels hosted by the session controller.

Panels are plain objects, not Textual widgets: the controller feeds them
messages through update() and composes their render() output into the one
view the app displays.
"""

from typing import Protocol

from rich.console import RenderableType

from kafka_dash.messages import Command, SessionMessage
from kafka_dash.themes import PanelStyle
from kafka_dash.widgets.connection import ConnectionPanel
from kafka_dash.widgets.details import MAX_RECORDS, DetailsPanel
from kafka_dash.widgets.error import ErrorPanel
from kafka_dash.widgets.help_panel import HelpPanel
from kafka_dash.widgets.info import InfoPanel
from kafka_dash.widgets.menu import MenuPanel
from kafka_dash.widgets.prompts import (
    AddTopicPrompt,
    FormField,
    FormPanel,
    ResetOffsetPrompt,
    parse_int64,
)
from kafka_dash.widgets.result import ResultPanel
from kafka_dash.widgets.startup import StartupPanel
from kafka_dash.widgets.table import Column, TablePanel


class Panel(Protocol):
    """What every panel provides: state changes in update, a pure render."""

    name: str

    def update(self, message: SessionMessage) -> list[Command]: ...

    def render(self, style: PanelStyle) -> RenderableType: ...


__all__ = [
    "MAX_RECORDS",
    "AddTopicPrompt",
    "Column",
    "ConnectionPanel",
    "DetailsPanel",
    "ErrorPanel",
    "FormField",
    "FormPanel",
    "HelpPanel",
    "InfoPanel",
    "MenuPanel",
    "Panel",
    "ResetOffsetPrompt",
    "ResultPanel",
    "StartupPanel",
    "TablePanel",
    "parse_int64",
]
