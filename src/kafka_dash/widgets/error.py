"""Full-screen error overlay."""

from __future__ import annotations

from rich import box
from rich.align import Align
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from kafka_dash.messages import Command, Resized, SessionMessage
from kafka_dash.themes import PanelStyle

MESSAGE_WIDTH = 50
HINT = "Press any key to continue ..."


class ErrorPanel:
    name = "error"

    def __init__(self) -> None:
        self.message = ""
        self.width = 0
        self.height = 0

    def set_message(self, text: str) -> None:
        self.message = text

    def update(self, message: SessionMessage) -> list[Command]:
        if isinstance(message, Resized):
            self.width = message.width
            self.height = message.height
        return []

    def render(self, style: PanelStyle) -> RenderableType:
        header = Panel(
            Text("Error", style=f"bold {style.error}", justify="center"),
            box=box.ROUNDED,
            border_style=style.error,
            width=11,
        )
        body = Panel(
            Text(self.message, justify="center"),
            box=box.MINIMAL,
            width=MESSAGE_WIDTH,
        )
        hint = Text(HINT, style=style.muted, justify="center")
        content = Group(Align.center(header), Align.center(body), Align.center(hint))
        return Align.center(content, vertical="middle", height=self.height or None)
