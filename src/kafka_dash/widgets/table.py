"""Scrollable table panel shared by the browsing panes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from rich import box
from rich.console import RenderableType
from rich.panel import Panel
from rich.table import Table

from kafka_dash.keys import (
    DOWN_KEYS,
    END_KEYS,
    HOME_KEYS,
    PAGE_DOWN_KEYS,
    PAGE_UP_KEYS,
    UP_KEYS,
)
from kafka_dash.messages import Command, KeyPressed, Reset, SessionMessage
from kafka_dash.themes import PanelStyle

Row = tuple[str, ...]

DEFAULT_HEIGHT = 5


@dataclass(frozen=True)
class Column:
    """A fixed-width table column."""

    title: str
    width: int


class TablePanel:
    """Rows of strings with a cursor.

    The first column is the row's primary key: selection changes are
    detected by comparing it before and after each update. The cursor is
    None exactly when there are no rows.
    """

    name = "table"

    def __init__(
        self,
        columns: Sequence[Column],
        rows: Sequence[Sequence[str]] = (),
        height: int = DEFAULT_HEIGHT,
    ) -> None:
        self._columns: list[Column] = list(columns)
        self._rows: list[Row] = []
        self._cursor: int | None = None
        self._height = max(1, height)
        self._focused = False
        self._selection_changed = False
        self.set_rows(rows)

    # Layout

    @property
    def columns(self) -> list[Column]:
        return list(self._columns)

    def set_columns(self, columns: Sequence[Column]) -> None:
        self._columns = list(columns)

    @property
    def height(self) -> int:
        return self._height

    def set_height(self, height: int) -> None:
        self._height = max(1, height)

    # Rows and selection

    @property
    def rows(self) -> list[Row]:
        return list(self._rows)

    def set_rows(self, rows: Sequence[Sequence[str]]) -> None:
        """Replace every row and move the cursor back to the first one."""
        self._rows = [tuple(str(cell) for cell in row) for row in rows]
        self._cursor = 0 if self._rows else None

    @property
    def cursor(self) -> int | None:
        return self._cursor

    def set_cursor(self, index: int) -> None:
        if not self._rows:
            self._cursor = None
            return
        self._cursor = min(max(index, 0), len(self._rows) - 1)

    def selected_row(self) -> Row | None:
        if self._cursor is None:
            return None
        return self._rows[self._cursor]

    def selected_key(self) -> str | None:
        row = self.selected_row()
        return row[0] if row else None

    @property
    def selection_changed(self) -> bool:
        """Whether the last update moved the selection to another primary key."""
        return self._selection_changed

    # Focus

    @property
    def focused(self) -> bool:
        return self._focused

    def focus(self) -> None:
        self._focused = True

    def blur(self) -> None:
        self._focused = False

    # Update

    def update(self, message: SessionMessage) -> list[Command]:
        if isinstance(message, Reset):
            self._selection_changed = False
            return []

        before = self.selected_key()
        if isinstance(message, KeyPressed) and self._focused:
            self._move(message.key)
        after = self.selected_key()
        self._selection_changed = before is not None and after is not None and before != after
        return []

    def _move(self, key: str) -> None:
        if self._cursor is None:
            return
        if key in UP_KEYS:
            self.set_cursor(self._cursor - 1)
        elif key in DOWN_KEYS:
            self.set_cursor(self._cursor + 1)
        elif key in PAGE_UP_KEYS:
            self.set_cursor(self._cursor - self._height)
        elif key in PAGE_DOWN_KEYS:
            self.set_cursor(self._cursor + self._height)
        elif key in HOME_KEYS:
            self.set_cursor(0)
        elif key in END_KEYS:
            self.set_cursor(len(self._rows) - 1)

    # Render

    def visible_range(self) -> range:
        """Indices of the rows inside the scroll window."""
        if self._cursor is None:
            return range(0)
        start = max(0, self._cursor - self._height + 1)
        return range(start, min(len(self._rows), start + self._height))

    def render(self, style: PanelStyle) -> RenderableType:
        table = Table(
            box=box.SIMPLE_HEAD,
            header_style=style.header,
            border_style=style.border_for(self._focused),
            pad_edge=False,
            show_edge=False,
        )
        for column in self._columns:
            table.add_column(column.title, width=column.width, no_wrap=True, overflow="ellipsis")

        window = self.visible_range()
        for index in window:
            row_style = style.selection_for(self._focused) if index == self._cursor else None
            table.add_row(*self._pad(self._rows[index]), style=row_style)
        # Keep the panel height stable while rows load
        for _ in range(self._height - len(window)):
            table.add_row(*[""] * len(self._columns))

        return Panel(table, box=box.SQUARE, border_style=style.border_for(self._focused), expand=False)

    def _pad(self, row: Row) -> Row:
        missing = len(self._columns) - len(row)
        if missing > 0:
            return row + ("",) * missing
        return row[: len(self._columns)]
