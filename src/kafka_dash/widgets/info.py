"""Info page rendered from the bundled Markdown."""

from __future__ import annotations

from importlib.resources import files

from rich import box
from rich.console import RenderableType
from rich.markdown import Markdown
from rich.panel import Panel

from kafka_dash.messages import Command, Resized, SessionMessage
from kafka_dash.themes import PanelStyle

WIDTH = 68


def load_info() -> str:
    return files("kafka_dash.widgets").joinpath("info.md").read_text(encoding="utf-8")


class InfoPanel:
    name = "info"

    def __init__(self, content: str | None = None) -> None:
        self.content = load_info() if content is None else content
        self.height: int | None = None

    def update(self, message: SessionMessage) -> list[Command]:
        if isinstance(message, Resized):
            self.height = max(3, message.height - 1)
        return []

    def render(self, style: PanelStyle) -> RenderableType:
        return Panel(
            Markdown(self.content),
            box=box.SQUARE,
            border_style=style.info_border,
            padding=(0, 2, 0, 0),
            width=WIDTH + 4,
            height=self.height,
        )
