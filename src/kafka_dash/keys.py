"""Fixed key bindings.

Key names follow Textual's naming so host events can be passed through as-is.
"""

from __future__ import annotations

from dataclasses import dataclass

ESC = "escape"
CANCEL = "ctrl+c"
QUIT = "q"
TAB = "tab"
SHIFT_TAB = "shift+tab"
ENTER = "enter"
BACKSPACE = "backspace"
HELP = "question_mark"
NEW_TOPIC = "n"
RESET_OFFSET = "r"
TAIL_MESSAGES = "m"

QUIT_KEYS = frozenset({QUIT, CANCEL})

UP_KEYS = frozenset({"up", "k"})
DOWN_KEYS = frozenset({"down", "j"})
LEFT_KEYS = frozenset({"left", "h"})
RIGHT_KEYS = frozenset({"right", "l"})
PAGE_UP_KEYS = frozenset({"pageup"})
PAGE_DOWN_KEYS = frozenset({"pagedown"})
HOME_KEYS = frozenset({"home", "g"})
END_KEYS = frozenset({"end", "G"})


@dataclass(frozen=True)
class KeyHelp:
    """A documented binding: the Textual key names and what they do."""

    keys: tuple[str, ...]
    description: str


UP = KeyHelp(("up", "k"), "move up")
DOWN = KeyHelp(("down", "j"), "move down")
LEFT = KeyHelp(("left", "h"), "previous pane")
RIGHT = KeyHelp(("right", "l"), "next pane")
NEXT_PANE = KeyHelp((TAB, SHIFT_TAB), "cycle panes")
MENU = KeyHelp((ESC,), "toggle menu")
NEW = KeyHelp((NEW_TOPIC,), "new topic")
RESET = KeyHelp((RESET_OFFSET,), "reset offset")
TAIL = KeyHelp((TAIL_MESSAGES,), "tail messages")
TOGGLE_HELP = KeyHelp((HELP,), "toggle help")
QUIT_HELP = KeyHelp((QUIT, CANCEL), "quit")

SHORT_HELP: list[KeyHelp] = [TOGGLE_HELP, QUIT_HELP]

# Columns of the expanded help view
FULL_HELP: list[list[KeyHelp]] = [
    [UP, DOWN, LEFT, RIGHT],
    [NEXT_PANE, MENU, NEW, RESET, TAIL],
    [TOGGLE_HELP, QUIT_HELP],
]
