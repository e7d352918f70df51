"""Help bar showing keyboard shortcuts."""

from __future__ import annotations

from rich.console import RenderableType
from rich.table import Table
from rich.text import Text

from kafka_dash.keys import FULL_HELP, SHORT_HELP, KeyHelp
from kafka_dash.messages import Command, SessionMessage
from kafka_dash.themes import PanelStyle

SEPARATOR = " • "

# Human-readable key name mappings
KEY_DISPLAY_MAP: dict[str, str] = {
    "question_mark": "?",
    "escape": "esc",
    "up": "↑",
    "down": "↓",
    "left": "←",
    "right": "→",
    "pageup": "pgup",
    "pagedown": "pgdn",
    "enter": "enter",
    "tab": "tab",
}


def _format_key(key: str) -> str:
    """Format a key binding for display.

    Single letters keep their case since g and G are different bindings.
    """
    if key in KEY_DISPLAY_MAP:
        return KEY_DISPLAY_MAP[key]
    # Handle modifier combinations
    if "+" in key:
        parts = key.split("+")
        return "+".join(KEY_DISPLAY_MAP.get(p, p) for p in parts)
    return key


def format_keys(binding: KeyHelp) -> str:
    return "/".join(_format_key(key) for key in binding.keys)


class HelpPanel:
    name = "help"

    def __init__(self) -> None:
        self.show_all = False

    def toggle(self) -> None:
        self.show_all = not self.show_all

    def update(self, message: SessionMessage) -> list[Command]:
        return []

    def _entry(self, binding: KeyHelp, style: PanelStyle) -> Text:
        return Text.assemble((format_keys(binding), "bold"), " ", (binding.description, style.muted))

    def render(self, style: PanelStyle) -> RenderableType:
        if not self.show_all:
            line = Text(style=style.muted)
            for index, binding in enumerate(SHORT_HELP):
                if index:
                    line.append(SEPARATOR, style=style.muted)
                line.append_text(self._entry(binding, style))
            return line

        grid = Table.grid(padding=(0, 4))
        for _ in FULL_HELP:
            grid.add_column()
        depth = max(len(column) for column in FULL_HELP)
        for row in range(depth):
            grid.add_row(
                *[
                    self._entry(column[row], style) if row < len(column) else Text("")
                    for column in FULL_HELP
                ]
            )
        return grid
